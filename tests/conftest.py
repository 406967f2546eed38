"""Shared pytest fixtures for tracelink tests.

Provides:
- Sample annotated sources (Java, TypeScript, Python)
- A factory writing source files into tmp_path
- Log capture for structlog events
"""

from __future__ import annotations

from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest
import structlog
from structlog.testing import capture_logs

ANNOTATED_JAVA_TEST = """\
package com.myCompany.myapp;

// Tracing entire test class to requirements GitHub#1 and Jira#1, Jira#2
// Trace(GitHub:myOrg/mySourcecodeRepo#1, Jira:MYJIRAPROJECT-1, Jira:MYJIRAPROJECT-2)
public AnnotatedJavaTest {

    @Test
    public void aTestMethodThatIsNotTraced() {
        // assertThat(..., is(...));
    }

    // Tracing test method to requirement Jira#3
    // Trace(Jira:MYJIRAPROJECT-3)
    @Test
    public void aTestMethodThatIsTraced() {
        // assertThat(..., is(...));
    }
}
"""

ANNOTATED_TS_SUITE = """\
import { login } from './login';

// Trace(GitHub:myOrg/webapp#4)
describe('login page', () => {
  // Trace(Jira:WEB-12)
  it('rejects an empty password', () => {
    expect(login('bob', '')).toBe(false);
  });

  it('accepts a valid password', () => {
    expect(login('bob', 'secret')).toBe(true);
  });
});
"""

ANNOTATED_PY_TEST = """\
import pytest


# Trace(Jira:PY-1)
class TestParser:
    # Trace(Jira:PY-2)
    @pytest.mark.parametrize(
        "value",
        [1, 2],
    )
    def test_parse(self, value):
        assert value
"""


@pytest.fixture
def annotated_java_source() -> str:
    """Content of the reference AnnotatedJavaTest.java example."""
    return ANNOTATED_JAVA_TEST


@pytest.fixture
def write_source(tmp_path: Path) -> Callable[[str, str], Path]:
    """Factory writing a source file under tmp_path and returning its path."""

    def _write(name: str, content: str) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def annotated_java_file(write_source: Callable[[str, str], Path]) -> Path:
    """AnnotatedJavaTest.java written to a temporary directory."""
    return write_source("src/test/java/AnnotatedJavaTest.java", ANNOTATED_JAVA_TEST)


@pytest.fixture
def annotated_sources(write_source: Callable[[str, str], Path]) -> list[Path]:
    """One annotated file per supported language family."""
    return [
        write_source("AnnotatedJavaTest.java", ANNOTATED_JAVA_TEST),
        write_source("login.spec.ts", ANNOTATED_TS_SUITE),
        write_source("test_parser.py", ANNOTATED_PY_TEST),
    ]


@pytest.fixture
def captured_logs() -> Generator[list[dict[str, Any]], None, None]:
    """Capture structlog events emitted during the test."""
    with capture_logs() as logs:
        yield logs


@pytest.fixture(autouse=True)
def reset_structlog() -> Generator[None, None, None]:
    """Restore default structlog configuration after each test."""
    yield
    structlog.reset_defaults()
