"""Value types produced by scanning annotated source files.

Everything here is immutable. References and declarations are hashable and
can be used as dictionary keys; scan results own their tuples of entries.

Example:
    >>> ref = Reference(system="Jira", project="MYJIRAPROJECT", id="3")
    >>> str(ref)
    'Jira:MYJIRAPROJECT-3'
    >>> decl = Declaration(DeclarationKind.METHOD, "testLogin", Path("LoginTest.java"), 12)
    >>> TraceEntry(ref, decl).reference.project
    'MYJIRAPROJECT'
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class DeclarationKind(str, Enum):
    """Kind of code artifact an annotation can bind to."""

    CLASS = "class"
    METHOD = "method"


@dataclass(frozen=True)
class Reference:
    """A requirement identifier in an external tracker.

    Equality and hashing use system, project and id only. The separator is
    kept so the reference renders the way it was written.

    Attributes:
        system: Tracker name as written (e.g., "GitHub", "Jira"). Opaque.
        project: Project part (e.g., "MYJIRAPROJECT", "myOrg/myRepo").
        id: Item identifier within the project (e.g., "3").
        separator: Character between project and id ("-" or "#").
    """

    system: str
    project: str
    id: str
    separator: str = field(default="-", compare=False)

    @property
    def key(self) -> str:
        """Tracker-local key, e.g. ``MYJIRAPROJECT-3`` or ``myOrg/myRepo#1``."""
        return f"{self.project}{self.separator}{self.id}"

    def __str__(self) -> str:
        return f"{self.system}:{self.key}"


@dataclass(frozen=True)
class Declaration:
    """A class or method definition found in scanned source.

    Attributes:
        kind: Class or method.
        name: Declared name (for test-framework blocks, the block title).
        file: Source file containing the declaration.
        line: 1-based line of the first physical line of the declaration.
            0 when the declaration comes from a mapping file.
        scope: Enclosing package and containers joined by ``.``, e.g.
            ``com.myCompany.myapp.AnnotatedJavaTest`` for a Java method or
            ``TestLogin`` for a Python test method. Empty when
            nothing encloses the declaration.
    """

    kind: DeclarationKind
    name: str
    file: Path
    line: int
    scope: str = ""

    @property
    def qualified_name(self) -> str:
        """Name prefixed with its scope, e.g. ``com.myCompany.myapp.AnnotatedJavaTest``."""
        if not self.scope:
            return self.name
        return f"{self.scope}.{self.name}"


@dataclass(frozen=True)
class Annotation:
    """A ``Trace(...)`` comment with at least one valid reference."""

    references: tuple[Reference, ...]
    source_line: int
    source_file: Path


@dataclass(frozen=True)
class TraceEntry:
    """Binding of one reference to one declaration."""

    reference: Reference
    declaration: Declaration


@dataclass(frozen=True)
class MalformedReference:
    """A Trace segment that could not be parsed into a reference.

    Attributes:
        text: The offending segment, trimmed.
        line: 1-based source line (0 when not from a source line).
        file: Source of the segment, if known.
        reason: Short description of what is missing.
    """

    text: str
    line: int
    file: Path | None
    reason: str


@dataclass(frozen=True)
class OrphanedAnnotation:
    """An annotation with no following declaration in its block."""

    annotation: Annotation

    @property
    def file(self) -> Path:
        return self.annotation.source_file

    @property
    def line(self) -> int:
        return self.annotation.source_line


@dataclass(frozen=True)
class FileReadFailure:
    """A file whose contribution to a batch scan was skipped."""

    file: Path
    reason: str


@dataclass(frozen=True)
class FileScan:
    """Result of scanning a single file.

    Attributes:
        file: The scanned file.
        entries: Bindings in scan order.
        orphaned: Annotations that resolved to no declaration.
        malformed: Segments that failed to parse.
    """

    file: Path
    entries: tuple[TraceEntry, ...] = ()
    orphaned: tuple[OrphanedAnnotation, ...] = ()
    malformed: tuple[MalformedReference, ...] = ()


__all__ = [
    "Annotation",
    "Declaration",
    "DeclarationKind",
    "FileReadFailure",
    "FileScan",
    "MalformedReference",
    "OrphanedAnnotation",
    "Reference",
    "TraceEntry",
]
