"""Unit tests for TraceAggregator and its report models."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from tracelink.aggregator import (
    CoverageReport,
    DeclarationRecord,
    TraceAggregator,
    TraceReport,
)
from tracelink.models import (
    Annotation,
    Declaration,
    DeclarationKind,
    FileReadFailure,
    FileScan,
    MalformedReference,
    OrphanedAnnotation,
    Reference,
    TraceEntry,
)

LOGIN = Reference("Jira", "APP", "1")
LOGOUT = Reference("Jira", "APP", "2")
ISSUE = Reference("GitHub", "org/app", "7", separator="#")


def _method(name: str, file: str = "LoginTest.java", line: int = 1) -> Declaration:
    return Declaration(DeclarationKind.METHOD, name, Path(file), line)


@pytest.fixture
def aggregator() -> TraceAggregator:
    """Aggregator with two files worth of entries."""
    agg = TraceAggregator()
    agg.add_scan(
        FileScan(
            file=Path("LoginTest.java"),
            entries=(
                TraceEntry(LOGIN, _method("testLogin", line=10)),
                TraceEntry(ISSUE, _method("testLogin", line=10)),
            ),
        )
    )
    agg.add_scan(
        FileScan(
            file=Path("SessionTest.java"),
            entries=(
                TraceEntry(LOGIN, _method("testRelogin", "SessionTest.java", 4)),
                TraceEntry(LOGOUT, _method("testLogout", "SessionTest.java", 9)),
            ),
        )
    )
    return agg


class TestQuery:
    """Tests for reference lookups."""

    def test_query_in_scan_order(self, aggregator: TraceAggregator) -> None:
        """Test declarations come back in the order they were added."""
        names = [decl.name for decl in aggregator.query(LOGIN)]

        assert names == ["testLogin", "testRelogin"]

    def test_query_unknown_reference(self, aggregator: TraceAggregator) -> None:
        """Test unknown references give an empty sequence."""
        assert aggregator.query(Reference("Jira", "APP", "99")) == ()

    def test_query_ignores_separator(self, aggregator: TraceAggregator) -> None:
        """Test lookups match regardless of how the reference was written."""
        assert len(aggregator.query(Reference("GitHub", "org/app", "7"))) == 1

    def test_mapping_first_seen_order(self, aggregator: TraceAggregator) -> None:
        """Test mapping keys keep first-seen order."""
        mapping = aggregator.mapping()

        assert list(mapping) == [LOGIN, ISSUE, LOGOUT]
        assert aggregator.references == (LOGIN, ISSUE, LOGOUT)
        assert len(aggregator) == 4

    def test_duplicates_retained(self) -> None:
        """Test identical bindings are kept as separate entries."""
        agg = TraceAggregator()
        entry = TraceEntry(LOGIN, _method("testLogin"))
        agg.add_entries([entry, entry])

        assert len(agg.query(LOGIN)) == 2
        assert agg.entries == (entry, entry)


class TestIssues:
    """Tests for orphaned, malformed and failed records."""

    def test_issue_tracking(self) -> None:
        """Test all issue kinds are collected and counted."""
        agg = TraceAggregator()
        orphan = OrphanedAnnotation(Annotation((LOGIN,), 20, Path("Tail.java")))
        bad = MalformedReference("BadSegmentNoColon", 3, Path("Bad.java"), "missing ':'")
        agg.add_scan(FileScan(file=Path("Tail.java"), orphaned=(orphan,), malformed=(bad,)))
        agg.add_failure(FileReadFailure(Path("Gone.java"), "Cannot read file"))

        assert agg.orphaned == (orphan,)
        assert agg.malformed == (bad,)
        assert agg.failures == (FileReadFailure(Path("Gone.java"), "Cannot read file"),)
        assert agg.issue_count == 3
        assert len(agg) == 0


class TestMerge:
    """Tests for merging aggregators."""

    def test_merge_appends_after_own_records(self, aggregator: TraceAggregator) -> None:
        """Test merged records follow existing ones."""
        other = TraceAggregator()
        other.add_entries([TraceEntry(LOGIN, _method("testLate", "LateTest.java"))])
        other.add_failure(FileReadFailure(Path("Gone.java"), "gone"))

        aggregator.merge(other)

        assert [decl.name for decl in aggregator.query(LOGIN)] == [
            "testLogin",
            "testRelogin",
            "testLate",
        ]
        assert len(aggregator.failures) == 1
        assert len(other) == 1


class TestReport:
    """Tests for TraceReport snapshots."""

    def test_report_contents(self, aggregator: TraceAggregator) -> None:
        """Test bindings are grouped by reference."""
        report = aggregator.report()

        assert isinstance(report, TraceReport)
        assert report.total_entries == 4
        assert [b.reference for b in report.bindings] == [
            "Jira:APP-1",
            "GitHub:org/app#7",
            "Jira:APP-2",
        ]
        assert report.bindings[0].declarations[1] == DeclarationRecord(
            kind="method",
            name="testRelogin",
            file="SessionTest.java",
            line=4,
        )
        assert report.has_issues is False

    def test_record_carries_scope(self) -> None:
        """Test declaration records keep the enclosing scope."""
        agg = TraceAggregator()
        decl = Declaration(DeclarationKind.METHOD, "testLogin", Path("LoginTest.java"), 3, scope="com.app.LoginTest")
        agg.add_entries([TraceEntry(LOGIN, decl)])

        record = agg.report().bindings[0].declarations[0]

        assert record.scope == "com.app.LoginTest"
        assert record == DeclarationRecord.from_declaration(decl)

    def test_report_is_json_serialisable(self) -> None:
        """Test the report round-trips through JSON for a reporter."""
        agg = TraceAggregator()
        agg.add_entries([TraceEntry(LOGIN, _method("testLogin"))])
        agg.add_scan(
            FileScan(
                file=Path("Bad.java"),
                malformed=(MalformedReference("oops", 2, Path("Bad.java"), "missing ':'"),),
                orphaned=(OrphanedAnnotation(Annotation((LOGOUT, ISSUE), 8, Path("Bad.java"))),),
            )
        )

        data = json.loads(agg.report().model_dump_json())

        assert data["bindings"][0]["system"] == "Jira"
        assert data["malformed"][0] == {
            "file": "Bad.java",
            "line": 2,
            "text": "oops",
            "reason": "missing ':'",
        }
        assert data["orphaned"][0]["text"] == "Jira:APP-2, GitHub:org/app#7"
        assert TraceReport.model_validate(data).has_issues is True


class TestCoverage:
    """Tests for coverage of a required reference set."""

    def test_partial_coverage(self, aggregator: TraceAggregator) -> None:
        """Test covered and uncovered references are separated."""
        missing = Reference("Jira", "APP", "3")

        report = aggregator.coverage([LOGIN, missing, LOGOUT])

        assert isinstance(report, CoverageReport)
        assert report.total_references == 3
        assert report.covered_references == 2
        assert report.uncovered_references == ["Jira:APP-3"]
        assert report.coverage_percentage == pytest.approx(66.67, rel=1e-3)
        assert report.passes(60.0)
        assert not report.passes()

    def test_duplicates_counted_once(self, aggregator: TraceAggregator) -> None:
        """Test repeated required references count once."""
        report = aggregator.coverage([LOGIN, LOGIN])

        assert report.total_references == 1
        assert report.coverage_percentage == 100.0
        assert report.requirements[0].covered

    def test_empty_requirement_set(self, aggregator: TraceAggregator) -> None:
        """Test no requirements gives zero coverage."""
        report = aggregator.coverage([])

        assert report.total_references == 0
        assert report.coverage_percentage == 0.0
