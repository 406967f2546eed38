"""Unit tests for tracker metadata and link helpers."""

from __future__ import annotations

from pathlib import Path

import pytest

from tracelink.config import SourceLocation, TraceSettings
from tracelink.links import TrackerSystem, issue_url, known_system, sourcecode_url
from tracelink.models import Reference


class TestKnownSystem:
    """Tests for known_system."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("GitHub", TrackerSystem.GITHUB),
            ("github", TrackerSystem.GITHUB),
            (" Jira ", TrackerSystem.JIRA),
            ("Polarion", None),
        ],
    )
    def test_lookup(self, name: str, expected: TrackerSystem | None) -> None:
        """Test case-insensitive lookup with opaque fallback."""
        assert known_system(name) is expected


class TestIssueUrl:
    """Tests for issue_url."""

    def test_github(self) -> None:
        """Test GitHub issue links use org/repo and the id."""
        settings = TraceSettings(github_base_url="https://github.example.com/")
        ref = Reference("GitHub", "myOrg/myRepo", "1", separator="#")

        assert issue_url(ref, settings) == "https://github.example.com/myOrg/myRepo/issues/1"

    def test_github_requires_org_and_repo(self) -> None:
        """Test GitHub projects without a slash get no link."""
        assert issue_url(Reference("GitHub", "myRepo", "1"), TraceSettings()) is None

    def test_jira(self) -> None:
        """Test Jira links use the browse path."""
        settings = TraceSettings(jira_base_url="https://jira.example.com")

        assert (
            issue_url(Reference("Jira", "MYJIRAPROJECT", "3"), settings)
            == "https://jira.example.com/browse/MYJIRAPROJECT-3"
        )

    def test_jira_without_base_url(self) -> None:
        """Test Jira references get no link when no instance is configured."""
        assert issue_url(Reference("Jira", "MYJIRAPROJECT", "3"), TraceSettings()) is None

    def test_unknown_system(self) -> None:
        """Test opaque systems get no link."""
        assert issue_url(Reference("Polarion", "REQ", "7"), TraceSettings()) is None


class TestSourcecodeUrl:
    """Tests for sourcecode_url."""

    @pytest.fixture
    def location(self) -> SourceLocation:
        return SourceLocation(local=Path("checkout"), organization="myOrg", repository="app", branch="main")

    def test_default_template(self, location: SourceLocation) -> None:
        """Test the local checkout prefix is stripped."""
        url = sourcecode_url(Path("checkout/src/test/LoginTest.java"), location, "https://github.com/")

        assert url == "https://github.com/myOrg/app/blob/main/src/test/LoginTest.java"

    def test_path_outside_checkout(self, location: SourceLocation) -> None:
        """Test paths outside the checkout are used as given."""
        url = sourcecode_url(Path("other/LoginTest.java"), location, "https://github.com")

        assert url == "https://github.com/myOrg/app/blob/main/other/LoginTest.java"

    def test_custom_template(self) -> None:
        """Test a custom template with all placeholders."""
        location = SourceLocation(
            organization="myOrg",
            repository="app",
            branch="dev",
            url_template="%{base}/%{git.org}/%{git.repository}/src/%{git.branch}/%{fileName}",
        )

        url = sourcecode_url(Path("LoginTest.java"), location, "https://git.example.com")

        assert url == "https://git.example.com/myOrg/app/src/dev/LoginTest.java"

    def test_missing_coordinates(self) -> None:
        """Test incomplete git coordinates give no link."""
        location = SourceLocation(organization="myOrg", repository="app")

        assert sourcecode_url(Path("LoginTest.java"), location, "https://github.com") is None
