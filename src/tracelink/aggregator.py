"""Aggregation of trace entries across scanned files.

TraceAggregator is an explicit accumulator: create one per run, feed it
FileScan results (from any number of files or mapping files), then query it.
Bindings are kept in the order they were added and never deduplicated.

Models:
    TraceReport: JSON-serialisable snapshot handed to a reporter
    CoverageReport: Coverage of a required set of references

Example:
    >>> aggregator = TraceAggregator()
    >>> aggregator.add_scan(scan_file(Path("LoginTest.java")))
    >>> aggregator.query(Reference("Jira", "MYJIRAPROJECT", "3"))
    (Declaration(kind=<DeclarationKind.METHOD: 'method'>, name='testLogin', ...),)
"""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field

from tracelink.models import (
    Declaration,
    FileReadFailure,
    FileScan,
    MalformedReference,
    OrphanedAnnotation,
    Reference,
    TraceEntry,
)


class DeclarationRecord(BaseModel):
    """Serialisable form of a Declaration."""

    model_config = ConfigDict(frozen=True)

    kind: str = Field(..., description="'class' or 'method'")
    name: str = Field(..., description="Declared name")
    file: str = Field(..., description="Source file")
    line: int = Field(..., ge=0, description="1-based line, 0 if unknown")
    scope: str = Field("", description="Enclosing package and containers joined by '.'")

    @classmethod
    def from_declaration(cls, declaration: Declaration) -> DeclarationRecord:
        return cls(
            kind=declaration.kind.value,
            name=declaration.name,
            file=str(declaration.file),
            line=declaration.line,
            scope=declaration.scope,
        )


class ReferenceBindings(BaseModel):
    """All declarations bound to one reference."""

    model_config = ConfigDict(frozen=True)

    reference: str = Field(..., description="Rendered reference, e.g. 'Jira:ABC-1'")
    system: str
    project: str
    id: str
    declarations: list[DeclarationRecord] = Field(default_factory=list)


class IssueRecord(BaseModel):
    """An orphaned annotation, malformed segment, or failed file."""

    model_config = ConfigDict(frozen=True)

    file: str | None = None
    line: int = Field(0, ge=0)
    text: str = Field("", description="Offending text or references")
    reason: str = ""


class TraceReport(BaseModel):
    """Snapshot of an aggregation run for a reporter.

    Attributes:
        total_entries: Number of reference-to-declaration bindings.
        bindings: Bindings grouped by reference, in first-seen order.
        orphaned: Annotations without a declaration.
        malformed: Segments that failed to parse.
        failures: Files whose contribution was skipped.
    """

    model_config = ConfigDict(frozen=True)

    total_entries: int = Field(0, ge=0)
    bindings: list[ReferenceBindings] = Field(default_factory=list)
    orphaned: list[IssueRecord] = Field(default_factory=list)
    malformed: list[IssueRecord] = Field(default_factory=list)
    failures: list[IssueRecord] = Field(default_factory=list)

    @property
    def has_issues(self) -> bool:
        """Check if any orphaned, malformed or failed items were recorded."""
        return bool(self.orphaned or self.malformed or self.failures)


class RequirementCoverage(BaseModel):
    """Coverage information for a single reference."""

    model_config = ConfigDict(frozen=True)

    reference: str = Field(..., description="Rendered reference")
    declarations: list[DeclarationRecord] = Field(default_factory=list)

    @property
    def covered(self) -> bool:
        """Check if the reference has at least one declaration."""
        return len(self.declarations) > 0


class CoverageReport(BaseModel):
    """Coverage of a required set of references (e.g. a delivery)."""

    model_config = ConfigDict(frozen=True)

    total_references: int = Field(0, ge=0)
    covered_references: int = Field(0, ge=0)
    uncovered_references: list[str] = Field(default_factory=list)
    coverage_percentage: float = Field(0.0, ge=0.0, le=100.0)
    requirements: list[RequirementCoverage] = Field(default_factory=list)

    def passes(self, threshold: float = 100.0) -> bool:
        """Check if coverage meets ``threshold`` percent."""
        return self.coverage_percentage >= threshold


class TraceAggregator:
    """Accumulates trace entries, orphaned annotations, malformed segments
    and file failures.

    Not thread-safe: concurrent scans should merge their results from a
    single thread (see tracelink.batch).
    """

    def __init__(self) -> None:
        self._entries: list[TraceEntry] = []
        self._by_reference: dict[Reference, list[Declaration]] = {}
        self._orphaned: list[OrphanedAnnotation] = []
        self._malformed: list[MalformedReference] = []
        self._failures: list[FileReadFailure] = []

    def __len__(self) -> int:
        return len(self._entries)

    def add_entries(self, entries: Iterable[TraceEntry]) -> None:
        """Append bindings, keeping duplicates."""
        for entry in entries:
            self._entries.append(entry)
            self._by_reference.setdefault(entry.reference, []).append(entry.declaration)

    def add_scan(self, scan: FileScan) -> None:
        """Append everything recorded for one file."""
        self.add_entries(scan.entries)
        self._orphaned.extend(scan.orphaned)
        self._malformed.extend(scan.malformed)

    def add_failure(self, failure: FileReadFailure) -> None:
        self._failures.append(failure)

    def merge(self, other: TraceAggregator) -> None:
        """Append all of ``other``'s records after this aggregator's own."""
        self.add_entries(other.entries)
        self._orphaned.extend(other.orphaned)
        self._malformed.extend(other.malformed)
        self._failures.extend(other.failures)

    def query(self, reference: Reference) -> tuple[Declaration, ...]:
        """Declarations bound to ``reference`` in scan order (empty if none)."""
        return tuple(self._by_reference.get(reference, ()))

    def mapping(self) -> dict[Reference, tuple[Declaration, ...]]:
        """Full reference to declarations mapping, in first-seen order."""
        return {ref: tuple(decls) for ref, decls in self._by_reference.items()}

    @property
    def entries(self) -> tuple[TraceEntry, ...]:
        return tuple(self._entries)

    @property
    def references(self) -> tuple[Reference, ...]:
        return tuple(self._by_reference)

    @property
    def orphaned(self) -> tuple[OrphanedAnnotation, ...]:
        return tuple(self._orphaned)

    @property
    def malformed(self) -> tuple[MalformedReference, ...]:
        return tuple(self._malformed)

    @property
    def failures(self) -> tuple[FileReadFailure, ...]:
        return tuple(self._failures)

    @property
    def issue_count(self) -> int:
        return len(self._orphaned) + len(self._malformed) + len(self._failures)

    def report(self) -> TraceReport:
        """Build a serialisable snapshot of the current state."""
        bindings = [
            ReferenceBindings(
                reference=str(ref),
                system=ref.system,
                project=ref.project,
                id=ref.id,
                declarations=[DeclarationRecord.from_declaration(d) for d in decls],
            )
            for ref, decls in self._by_reference.items()
        ]
        orphaned = [
            IssueRecord(
                file=str(item.file),
                line=item.line,
                text=", ".join(str(ref) for ref in item.annotation.references),
                reason="no declaration follows the annotation",
            )
            for item in self._orphaned
        ]
        malformed = [
            IssueRecord(
                file=str(item.file) if item.file else None,
                line=item.line,
                text=item.text,
                reason=item.reason,
            )
            for item in self._malformed
        ]
        failures = [IssueRecord(file=str(item.file), reason=item.reason) for item in self._failures]

        return TraceReport(
            total_entries=len(self._entries),
            bindings=bindings,
            orphaned=orphaned,
            malformed=malformed,
            failures=failures,
        )

    def coverage(self, required: Iterable[Reference]) -> CoverageReport:
        """Compute coverage of a required set of references.

        Duplicates in ``required`` are counted once, in first-seen order.

        Args:
            required: References that should have at least one declaration.

        Returns:
            CoverageReport with per-reference detail.
        """
        unique: list[Reference] = []
        seen: set[Reference] = set()
        for ref in required:
            if ref not in seen:
                seen.add(ref)
                unique.append(ref)

        requirements = [
            RequirementCoverage(
                reference=str(ref),
                declarations=[DeclarationRecord.from_declaration(d) for d in self.query(ref)],
            )
            for ref in unique
        ]
        covered = sum(1 for item in requirements if item.covered)
        total = len(requirements)
        percentage = (covered / total * 100) if total > 0 else 0.0

        return CoverageReport(
            total_references=total,
            covered_references=covered,
            uncovered_references=[item.reference for item in requirements if not item.covered],
            coverage_percentage=percentage,
            requirements=requirements,
        )


__all__ = [
    "CoverageReport",
    "DeclarationRecord",
    "IssueRecord",
    "ReferenceBindings",
    "RequirementCoverage",
    "TraceAggregator",
    "TraceReport",
]
