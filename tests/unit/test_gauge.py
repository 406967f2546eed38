"""Unit tests for Gauge specification scanning."""

from __future__ import annotations

from pathlib import Path

import pytest

from tracelink.gauge import scan_spec_lines
from tracelink.models import Declaration, DeclarationKind, FileScan, Reference

SPEC = Path("specs/login.spec")

LOGIN_SPEC = """\
# Login

Trace: GitHub:myOrg/webapp#4

## Rejects an empty password

Trace: Jira:WEB-12, Jira:WEB-13

* Open the login page
* Submit an empty password

## Accepts a valid password
* Submit a valid password
"""


def _scan(content: str) -> FileScan:
    return scan_spec_lines(content.splitlines(), SPEC)


class TestScanSpecLines:
    """Tests for scan_spec_lines."""

    def test_spec_and_scenario_bindings(self) -> None:
        """Test a spec heading binds as a class and a scenario as a method."""
        scan = _scan(LOGIN_SPEC)

        assert [(str(e.reference), e.declaration) for e in scan.entries] == [
            ("GitHub:myOrg/webapp#4", Declaration(DeclarationKind.CLASS, "Login", SPEC, 1)),
            (
                "Jira:WEB-12",
                Declaration(DeclarationKind.METHOD, "Rejects an empty password", SPEC, 5, scope="Login"),
            ),
            (
                "Jira:WEB-13",
                Declaration(DeclarationKind.METHOD, "Rejects an empty password", SPEC, 5, scope="Login"),
            ),
        ]
        assert scan.orphaned == ()
        assert scan.malformed == ()

    def test_untraced_scenario_has_no_binding(self) -> None:
        """Test scenarios without a Trace line produce nothing."""
        scan = _scan(LOGIN_SPEC)

        assert "Accepts a valid password" not in {e.declaration.name for e in scan.entries}

    def test_trace_lines_accumulate(self) -> None:
        """Test several Trace lines under one heading all bind to it."""
        scan = _scan("# Login\nTrace: Jira:A-1\nTrace: Jira:A-2\n")

        assert [e.reference for e in scan.entries] == [
            Reference("Jira", "A", "1"),
            Reference("Jira", "A", "2"),
        ]
        assert {e.declaration.name for e in scan.entries} == {"Login"}

    def test_deeper_headings_keep_current_scenario(self) -> None:
        """Test level-3 headings do not start a new declaration."""
        scan = _scan("# Login\n## Scenario 1\n### Details\nTrace: Jira:A-1\n")

        assert scan.entries[0].declaration.qualified_name == "Login.Scenario 1"
        assert scan.entries[0].declaration.line == 2

    def test_scenario_before_any_spec(self) -> None:
        """Test a scenario without a spec heading has no scope."""
        scan = _scan("## Lonely scenario\nTrace: Jira:A-1\n")

        assert scan.entries[0].declaration.kind is DeclarationKind.METHOD
        assert scan.entries[0].declaration.scope == ""

    def test_trace_before_first_heading_is_orphaned(self, captured_logs: list[dict]) -> None:
        """Test a Trace line with no heading above it is reported."""
        scan = _scan("Trace: Jira:MYPROJECT-1\n\n# Spec\n")

        assert scan.entries == ()
        assert len(scan.orphaned) == 1
        assert scan.orphaned[0].line == 1
        assert scan.orphaned[0].annotation.references == (Reference("Jira", "MYPROJECT", "1"),)
        assert any(log["event"] == "gauge.trace_orphaned" for log in captured_logs)

    def test_malformed_segments_recorded(self) -> None:
        """Test segments that do not parse are reported and valid ones still bind."""
        scan = _scan("# Login\nTrace: Jira:A-1, nonsense, GitHub:o/r#2\n")

        assert [str(e.reference) for e in scan.entries] == ["Jira:A-1", "GitHub:o/r#2"]
        assert len(scan.malformed) == 1
        assert scan.malformed[0].text == "nonsense"
        assert scan.malformed[0].line == 2
        assert scan.malformed[0].file == SPEC

    @pytest.mark.parametrize("line", ["  Trace: Jira:A-1", "trace: Jira:A-1", "* Trace: Jira:A-1"])
    def test_trace_prefix_must_start_the_line(self, line: str) -> None:
        """Test only lines starting with 'Trace:' are read."""
        scan = _scan(f"# Login\n{line}\n")

        assert scan.entries == ()

    def test_empty_spec(self) -> None:
        """Test an empty file gives an empty scan."""
        scan = _scan("")

        assert scan.entries == ()
        assert scan.orphaned == ()
