"""JSON mapping files: traces declared outside the source code.

A mapping file lists code artifacts and the tracker keys they trace to,
for sources that cannot carry Trace comments. Its entries feed the same
TraceAggregator as scanned files.

Format::

    [
      {"source_reference": "com.myCompany.myApp.MyJavaTest",
       "jira_keys": ["MYJIRAPROJECT-3"]},
      {"source_reference": "com.myCompany.myApp.MyJavaTest.myMethod()",
       "filelocation": {
         "git": {"organization": "myOrg", "repository": "myRepo", "branch": "main"},
         "relativePath": "./src/test/java/com/myCompany/myApp/MyJavaTest.java"},
       "github_keys": ["myOrg/myRepo#2"]}
    ]

A ``source_reference`` ending in ``()`` is a method; anything else is a class.
"""

from __future__ import annotations

import json
from pathlib import Path

import structlog
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from tracelink.errors import MappingFileError
from tracelink.links import TrackerSystem
from tracelink.matcher import parse_reference
from tracelink.models import (
    Declaration,
    DeclarationKind,
    FileScan,
    MalformedReference,
    TraceEntry,
)

logger = structlog.get_logger(__name__)


class GitCoordinates(BaseModel):
    """Git location of a mapped file."""

    model_config = ConfigDict(frozen=True)

    organization: str = ""
    repository: str = ""
    branch: str = ""


class FileLocation(BaseModel):
    """Where the mapped artifact is defined."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    git: GitCoordinates = Field(default_factory=GitCoordinates)
    relative_path: str = Field(default="", alias="relativePath")


class MappingEntry(BaseModel):
    """One entry of a mapping file."""

    model_config = ConfigDict(frozen=True)

    source_reference: str = Field(..., min_length=1)
    filelocation: FileLocation | None = None
    jira_keys: list[str] = Field(default_factory=list)
    github_keys: list[str] = Field(default_factory=list)

    def declaration(self, mapping_path: Path) -> Declaration:
        """Declaration named by ``source_reference``.

        The last dotted part is the name and the rest its scope, so
        ``com.myCompany.myApp.MyJavaTest.myMethod()`` is method ``myMethod``
        in ``com.myCompany.myApp.MyJavaTest``. The file is the entry's
        relative path when given, otherwise the mapping file itself. Mapping
        files carry no line numbers.
        """
        reference = self.source_reference.strip()
        if reference.endswith("()"):
            kind = DeclarationKind.METHOD
            reference = reference[: -len("()")]
        else:
            kind = DeclarationKind.CLASS
        scope, _, name = reference.rpartition(".")

        file = mapping_path
        if self.filelocation is not None and self.filelocation.relative_path:
            file = Path(self.filelocation.relative_path.removeprefix("./"))
        return Declaration(kind=kind, name=name, file=file, line=0, scope=scope)

    def keyed_references(self) -> list[str]:
        """Keys prefixed with their system, Jira first then GitHub."""
        return [f"{TrackerSystem.JIRA.value}:{key}" for key in self.jira_keys] + [
            f"{TrackerSystem.GITHUB.value}:{key}" for key in self.github_keys
        ]


_ENTRIES = TypeAdapter(list[MappingEntry])


def parse_mapping(content: str | bytes, mapping_path: Path) -> FileScan:
    """Parse mapping file content.

    Args:
        content: Raw JSON text.
        mapping_path: Path recorded on declarations and malformed keys.

    Returns:
        FileScan with one entry per (key, source_reference) pair and any
        malformed keys. Mapping files never produce orphans.

    Raises:
        MappingFileError: If the content is not JSON or does not match the
            mapping schema.
    """
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise MappingFileError(
            "Mapping file is not valid JSON",
            {"path": str(mapping_path), "error": str(e)},
        ) from e

    try:
        entries = _ENTRIES.validate_python(data)
    except ValidationError as e:
        raise MappingFileError(
            "Mapping file does not match the expected schema",
            {"path": str(mapping_path), "errors": e.error_count()},
        ) from e

    trace_entries: list[TraceEntry] = []
    malformed: list[MalformedReference] = []
    for entry in entries:
        declaration = entry.declaration(mapping_path)
        for keyed in entry.keyed_references():
            try:
                reference = parse_reference(keyed)
            except ValueError as e:
                logger.warning(
                    "mapping_file.malformed_key",
                    key=keyed,
                    reason=str(e),
                    source_reference=entry.source_reference,
                )
                malformed.append(
                    MalformedReference(text=keyed, line=0, file=mapping_path, reason=str(e))
                )
                continue
            trace_entries.append(TraceEntry(reference=reference, declaration=declaration))

    return FileScan(file=mapping_path, entries=tuple(trace_entries), malformed=tuple(malformed))


def load_mapping_file(path: Path) -> FileScan:
    """Read and parse a mapping file.

    Raises:
        MappingFileError: If the file cannot be read or is invalid.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise MappingFileError(
            f"Cannot read mapping file: {e.strerror or e}",
            {"path": str(path)},
        ) from e

    scan = parse_mapping(content, path)
    logger.info(
        "mapping_file.loaded",
        path=str(path),
        entries=len(scan.entries),
        malformed=len(scan.malformed),
    )
    return scan


__all__ = [
    "FileLocation",
    "GitCoordinates",
    "MappingEntry",
    "load_mapping_file",
    "parse_mapping",
]
