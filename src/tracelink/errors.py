"""Exception types for tracelink.

All exceptions inherit from TraceError to enable catch-all error handling.
Recoverable scan problems (malformed segments, orphaned annotations) are not
exceptions: they are recorded on the scan result instead.

Exception Hierarchy:
    TraceError (base)
    ├── FileReadError - Source file could not be read or decoded
    ├── UnsupportedLanguageError - No resolver for a file extension
    ├── MappingFileError - JSON mapping file is unreadable or invalid
    ├── DeliveryFileError - Delivery selection file is unreadable or invalid
    └── ConfigurationError - Settings failed validation

Example:
    >>> from tracelink.errors import TraceError, FileReadError
    >>> try:
    ...     scan_file(Path("Missing.java"))
    ... except FileReadError as e:
    ...     print(f"Skipping {e.path}: {e.message}")
    ... except TraceError as e:
    ...     print(f"Scan failed: {e}")
"""

from __future__ import annotations

from pathlib import Path
from typing import Any


class TraceError(Exception):
    """Base exception for all tracelink errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional error context.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize TraceError.

        Args:
            message: Human-readable error description.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class FileReadError(TraceError):
    """A source file could not be read.

    Raised by scan_file when the file is missing, unreadable, or not
    decodable with the configured encoding.

    Attributes:
        path: The file that failed.
    """

    def __init__(
        self,
        message: str,
        path: Path,
        details: dict[str, Any] | None = None,
    ) -> None:
        _details = details or {}
        _details["path"] = str(path)
        super().__init__(message, _details)
        self.path = path


class UnsupportedLanguageError(TraceError):
    """No declaration resolver is registered for a file.

    Attributes:
        path: The file whose extension is not recognised.
        extension: The unrecognised extension (may be empty).
    """

    def __init__(self, path: Path) -> None:
        extension = path.suffix
        super().__init__(
            f"No resolver for file extension '{extension}'",
            {"path": str(path)},
        )
        self.path = path
        self.extension = extension


class MappingFileError(TraceError):
    """A JSON mapping file is unreadable or does not match the schema."""


class DeliveryFileError(TraceError):
    """A delivery selection file is unreadable or does not match the schema."""


class ConfigurationError(TraceError):
    """Settings failed to load or validate.

    Example:
        >>> raise ConfigurationError(
        ...     "Invalid settings",
        ...     details={"field": "max_workers", "value": 0},
        ... )
    """


__all__ = [
    "ConfigurationError",
    "DeliveryFileError",
    "FileReadError",
    "MappingFileError",
    "TraceError",
    "UnsupportedLanguageError",
]
