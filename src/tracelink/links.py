"""Advisory tracker metadata and link helpers for reporters.

The matcher accepts any system name; the systems listed here only add
metadata, such as issue URLs, that a reporter may want to render.

Example:
    >>> settings = TraceSettings(jira_base_url="https://jira.example.com")
    >>> issue_url(Reference("Jira", "MYJIRAPROJECT", "3"), settings)
    'https://jira.example.com/browse/MYJIRAPROJECT-3'
"""

from __future__ import annotations

from enum import Enum
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

    from tracelink.config import SourceLocation, TraceSettings
    from tracelink.models import Reference

DEFAULT_SOURCE_TEMPLATE = "%{base}/%{git.org}/%{git.repository}/blob/%{git.branch}/%{fileName}"


class TrackerSystem(str, Enum):
    """Trackers with known link conventions."""

    GITHUB = "GitHub"
    JIRA = "Jira"


def known_system(name: str) -> TrackerSystem | None:
    """Look up a system name case-insensitively.

    Args:
        name: System as written in the annotation.

    Returns:
        The matching TrackerSystem, or None for opaque systems.
    """
    lowered = name.strip().lower()
    for system in TrackerSystem:
        if system.value.lower() == lowered:
            return system
    return None


def issue_url(reference: Reference, settings: TraceSettings) -> str | None:
    """Build the tracker URL for a reference.

    Args:
        reference: Parsed reference.
        settings: Settings holding the tracker base URLs.

    Returns:
        The issue URL, or None for unknown systems, unset base URLs, or
        GitHub projects that are not ``org/repo``.
    """
    system = known_system(reference.system)
    if system is TrackerSystem.GITHUB:
        if not settings.github_base_url or "/" not in reference.project:
            return None
        return f"{settings.github_base_url}/{reference.project}/issues/{reference.id}"
    if system is TrackerSystem.JIRA:
        if not settings.jira_base_url:
            return None
        return f"{settings.jira_base_url}/browse/{reference.project}-{reference.id}"
    return None


def _render_template(template: str, params: dict[str, str]) -> str:
    for key, value in params.items():
        template = template.replace("%{" + key + "}", value)
    return template


def sourcecode_url(
    path: Path,
    location: SourceLocation,
    github_base_url: str,
) -> str | None:
    """Build a browsable URL for a scanned source file.

    The local checkout prefix is stripped from the path before it is placed
    into the template. Placeholders: ``%{base}``, ``%{git.org}``,
    ``%{git.repository}``, ``%{git.branch}``, ``%{fileName}``.

    Args:
        path: Scanned file path.
        location: Git coordinates and local checkout root.
        github_base_url: Base URL of the GitHub instance.

    Returns:
        The URL, or None when any git coordinate or the base URL is missing.

    Examples:
        >>> loc = SourceLocation(local=Path("repo"), organization="org", repository="app", branch="main")
        >>> sourcecode_url(Path("repo/src/AppTest.java"), loc, "https://github.com/")
        'https://github.com/org/app/blob/main/src/AppTest.java'
    """
    if not (github_base_url and location.organization and location.repository and location.branch):
        return None

    file_name = PurePosixPath(path.as_posix())
    if location.local is not None:
        local = PurePosixPath(location.local.as_posix())
        if local.parts and file_name.is_relative_to(local):
            file_name = file_name.relative_to(local)

    params = {
        "base": github_base_url.rstrip("/"),
        "git.org": location.organization,
        "git.repository": location.repository,
        "git.branch": location.branch,
        "fileName": str(file_name).lstrip("/"),
    }
    return _render_template(location.url_template or DEFAULT_SOURCE_TEMPLATE, params)


__all__ = [
    "DEFAULT_SOURCE_TEMPLATE",
    "TrackerSystem",
    "issue_url",
    "known_system",
    "sourcecode_url",
]
