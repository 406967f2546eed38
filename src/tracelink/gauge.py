"""Gauge specification scanning.

Gauge ``.spec`` files are Markdown. A level-1 heading starts a specification
and a level-2 heading starts a scenario within it. Requirements are listed on
a ``Trace:`` line below the heading they belong to::

    # Login
    Trace: GitHub:myOrg/webapp#4

    ## Rejects an empty password
    Trace: Jira:WEB-12, Jira:WEB-13

A specification becomes a class declaration and a scenario a method
declaration scoped by its specification title. Deeper headings do not start a
new declaration.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from pathlib import Path

import structlog

from tracelink.matcher import parse_segments
from tracelink.models import (
    Annotation,
    Declaration,
    DeclarationKind,
    FileScan,
    MalformedReference,
    OrphanedAnnotation,
    TraceEntry,
)

logger = structlog.get_logger(__name__)

HEADING = re.compile(r"^(#+)\s*(.+)$")
TRACE_PREFIX = "Trace:"


def scan_spec_lines(lines: Sequence[str], file: Path) -> FileScan:
    """Scan the lines of a Gauge specification.

    Every ``Trace:`` line binds to the latest specification or scenario
    heading, so several lines below one heading add up. A ``Trace:`` line
    above the first heading is orphaned.

    Args:
        lines: Specification lines without line terminators.
        file: Path recorded on annotations and declarations.

    Returns:
        FileScan with entries in source order.
    """
    entries: list[TraceEntry] = []
    orphaned: list[OrphanedAnnotation] = []
    malformed: list[MalformedReference] = []

    spec_title = ""
    current: Declaration | None = None

    for index, line in enumerate(lines):
        line_number = index + 1

        heading = HEADING.match(line.rstrip())
        if heading:
            level = len(heading.group(1))
            title = heading.group(2).strip()
            if level == 1:
                spec_title = title
                current = Declaration(DeclarationKind.CLASS, title, file, line_number)
            elif level == 2:
                current = Declaration(
                    DeclarationKind.METHOD, title, file, line_number, scope=spec_title
                )
            continue

        if not line.startswith(TRACE_PREFIX):
            continue

        result = parse_segments(line[len(TRACE_PREFIX) :], line_number=line_number, file=file)
        malformed.extend(result.malformed)
        if not result.references:
            continue

        if current is None:
            annotation = Annotation(
                references=result.references,
                source_line=line_number,
                source_file=file,
            )
            logger.warning(
                "gauge.trace_orphaned",
                file=str(file),
                line=line_number,
                references=[str(ref) for ref in annotation.references],
            )
            orphaned.append(OrphanedAnnotation(annotation=annotation))
            continue

        entries.extend(
            TraceEntry(reference=reference, declaration=current)
            for reference in result.references
        )

    return FileScan(
        file=file,
        entries=tuple(entries),
        orphaned=tuple(orphaned),
        malformed=tuple(malformed),
    )


__all__ = ["HEADING", "TRACE_PREFIX", "scan_spec_lines"]
