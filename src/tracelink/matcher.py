"""Trace annotation matcher.

Finds ``Trace(System:Project-ID, ...)`` markers in comment lines and splits
them into references. Parsing is segment-by-segment: a malformed segment is
reported and skipped while the rest of the list is still used.

Usage:
    >>> result = match_line("// Trace(Jira:MYJIRAPROJECT-3, GitHub:org/repo#7)", comment_leaders=("//",))
    >>> [str(ref) for ref in result.references]
    ['Jira:MYJIRAPROJECT-3', 'GitHub:org/repo#7']
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

import structlog

from tracelink.links import known_system
from tracelink.models import MalformedReference, Reference

logger = structlog.get_logger(__name__)

TRACE_MARKER = re.compile(r"\bTrace\(([^)]*)\)")

# GitHub issue keys (org/repo#1) split on '#', everything else on the last '-'
GITHUB_SEPARATOR = "#"
DEFAULT_SEPARATOR = "-"


@dataclass(frozen=True)
class LineMatch:
    """References and malformed segments found on one annotation line."""

    references: tuple[Reference, ...]
    malformed: tuple[MalformedReference, ...]


def parse_reference(text: str) -> Reference:
    """Parse a single ``System:Project-ID`` segment.

    Args:
        text: The segment, with or without surrounding whitespace.

    Returns:
        The parsed Reference.

    Raises:
        ValueError: If the segment is malformed. The message names the
            missing part.

    Examples:
        >>> parse_reference("Jira:MYJIRAPROJECT-3")
        Reference(system='Jira', project='MYJIRAPROJECT', id='3', separator='-')
        >>> parse_reference("GitHub:myOrg/my-repo#12").project
        'myOrg/my-repo'
    """
    segment = text.strip()
    if ":" not in segment:
        raise ValueError("missing ':' between system and key")

    system, rest = segment.split(":", 1)
    system = system.strip()
    rest = rest.strip()
    if not system:
        raise ValueError("empty system")

    separator = GITHUB_SEPARATOR if GITHUB_SEPARATOR in rest else DEFAULT_SEPARATOR
    if separator not in rest:
        raise ValueError(f"missing '{separator}' between project and id")

    project, item_id = rest.rsplit(separator, 1)
    project = project.strip()
    item_id = item_id.strip()
    if not project:
        raise ValueError("empty project")
    if not item_id:
        raise ValueError("empty id")

    return Reference(system=system, project=project, id=item_id, separator=separator)


def parse_segments(
    body: str,
    *,
    line_number: int = 0,
    file: Path | None = None,
) -> LineMatch:
    """Split a comma separated segment list into references.

    Whitespace-only segments (e.g. a trailing comma) are ignored.

    Args:
        body: Text between ``Trace(`` and ``)``.
        line_number: Source line used for malformed reports.
        file: Source file used for malformed reports.

    Returns:
        LineMatch with references in written order and malformed segments.
    """
    references: list[Reference] = []
    malformed: list[MalformedReference] = []

    for raw in body.split(","):
        segment = raw.strip()
        if not segment:
            continue
        try:
            reference = parse_reference(segment)
        except ValueError as e:
            logger.warning(
                "matcher.malformed_reference",
                segment=segment,
                reason=str(e),
                line=line_number,
                file=str(file) if file else None,
            )
            malformed.append(
                MalformedReference(text=segment, line=line_number, file=file, reason=str(e))
            )
            continue

        if known_system(reference.system) is None:
            logger.debug(
                "matcher.unknown_system",
                system=reference.system,
                line=line_number,
                file=str(file) if file else None,
            )
        references.append(reference)

    return LineMatch(references=tuple(references), malformed=tuple(malformed))


def parse_reference_list(text: str) -> LineMatch:
    """Parse a free-standing list such as ``"GitHub:org/repo#1, Jira:ABC-2"``.

    An optional surrounding ``Trace(...)`` is accepted.
    """
    marker = TRACE_MARKER.search(text)
    body = marker.group(1) if marker else text
    return parse_segments(body)


def _comment_body(line: str, comment_leaders: Sequence[str]) -> str | None:
    stripped = line.lstrip()
    for leader in comment_leaders:
        if stripped.startswith(leader):
            return stripped[len(leader) :]
    return None


def match_line(
    line: str,
    *,
    comment_leaders: Sequence[str],
    line_number: int = 0,
    file: Path | None = None,
) -> LineMatch | None:
    """Extract references from a single source line.

    Only comment-only lines count: the first non-blank characters must be
    one of ``comment_leaders``. Free text may precede ``Trace(`` and follow
    the closing parenthesis. Several markers on one line are concatenated.

    Args:
        line: Raw source line.
        comment_leaders: Line-comment tokens of the host language.
        line_number: 1-based line number, used for malformed reports.
        file: Source file, used for malformed reports.

    Returns:
        LineMatch, or None if the line carries no Trace marker.

    Examples:
        >>> match_line("int x = 1;", comment_leaders=("//",)) is None
        True
        >>> result = match_line("# Trace(A:B-1, BadSegmentNoColon, C:D-2)", comment_leaders=("#",))
        >>> len(result.references), len(result.malformed)
        (2, 1)
    """
    body = _comment_body(line, comment_leaders)
    if body is None or "Trace(" not in body:
        return None

    markers = TRACE_MARKER.findall(body)
    if not markers:
        return None

    references: list[Reference] = []
    malformed: list[MalformedReference] = []
    for marker_body in markers:
        result = parse_segments(marker_body, line_number=line_number, file=file)
        references.extend(result.references)
        malformed.extend(result.malformed)

    return LineMatch(references=tuple(references), malformed=tuple(malformed))


__all__ = [
    "LineMatch",
    "TRACE_MARKER",
    "match_line",
    "parse_reference",
    "parse_reference_list",
    "parse_segments",
]
