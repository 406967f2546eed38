"""Single-file scanning: match annotations and bind them to declarations.

Usage:
    >>> from pathlib import Path
    >>> from tracelink.scanner import scan_file
    >>> scan = scan_file(Path("src/test/java/LoginTest.java"))
    >>> for entry in scan.entries:
    ...     print(entry.reference, "->", entry.declaration.qualified_name)
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping, Sequence
from pathlib import Path

import structlog

from tracelink.errors import FileReadError
from tracelink.gauge import scan_spec_lines
from tracelink.matcher import match_line
from tracelink.models import (
    Annotation,
    FileScan,
    MalformedReference,
    OrphanedAnnotation,
    TraceEntry,
)
from tracelink.resolvers import (
    GAUGE_SPEC,
    DeclarationResolver,
    get_resolver,
    indentation,
    language_for_path,
)

logger = structlog.get_logger(__name__)


def scan_lines(
    lines: Sequence[str],
    file: Path,
    resolver: DeclarationResolver,
) -> FileScan:
    """Scan already-read source lines.

    Every annotation resolves independently, so stacked annotation comments
    above one declaration each produce their own entries for it.

    Args:
        lines: Source lines without line terminators.
        file: Path recorded on annotations and declarations.
        resolver: Language resolver for this file.

    Returns:
        FileScan with entries in source order.
    """
    entries: list[TraceEntry] = []
    orphaned: list[OrphanedAnnotation] = []
    malformed: list[MalformedReference] = []

    for index, line in enumerate(lines):
        if not resolver.is_comment(line):
            continue
        line_number = index + 1
        result = match_line(
            line,
            comment_leaders=resolver.comment_leaders,
            line_number=line_number,
            file=file,
        )
        if result is None:
            continue
        malformed.extend(result.malformed)
        if not result.references:
            continue

        annotation = Annotation(
            references=result.references,
            source_line=line_number,
            source_file=file,
        )
        declaration = resolver.resolve(
            lines[index + 1 :],
            first_line_number=line_number + 1,
            file=file,
            anchor_indent=indentation(line),
        )
        if declaration is None:
            logger.warning(
                "scanner.annotation_orphaned",
                file=str(file),
                line=line_number,
                references=[str(ref) for ref in annotation.references],
            )
            orphaned.append(OrphanedAnnotation(annotation=annotation))
            continue

        scope = resolver.scope(lines, declaration.line - 1)
        if scope:
            declaration = dataclasses.replace(declaration, scope=scope)
        entries.extend(
            TraceEntry(reference=reference, declaration=declaration)
            for reference in annotation.references
        )

    return FileScan(
        file=file,
        entries=tuple(entries),
        orphaned=tuple(orphaned),
        malformed=tuple(malformed),
    )


def _scan_language(lines: Sequence[str], file: Path, language: str) -> FileScan:
    if language == GAUGE_SPEC:
        return scan_spec_lines(lines, file)
    return scan_lines(lines, file, get_resolver(language))


def scan_text(text: str, file: Path, resolver: DeclarationResolver | None = None) -> FileScan:
    """Scan source text. The language defaults to the one for ``file``'s extension."""
    if resolver is None:
        return _scan_language(text.splitlines(), file, language_for_path(file))
    return scan_lines(text.splitlines(), file, resolver)


def scan_file(
    path: Path,
    *,
    encoding: str = "utf-8",
    extra_extensions: Mapping[str, str] | None = None,
) -> FileScan:
    """Read and scan one source file.

    Args:
        path: File to scan.
        encoding: Text encoding of the file.
        extra_extensions: Additional extension to language entries.

    Returns:
        FileScan for the file.

    Raises:
        UnsupportedLanguageError: If no language is mapped to the extension.
        FileReadError: If the file cannot be read or decoded, or the
            encoding is unknown.
    """
    language = language_for_path(path, extra_extensions)
    try:
        text = path.read_text(encoding=encoding)
    except LookupError as e:
        raise FileReadError(f"Unknown encoding '{encoding}'", path) from e
    except UnicodeDecodeError as e:
        raise FileReadError(f"Cannot decode file as {encoding}", path, {"error": str(e)}) from e
    except OSError as e:
        raise FileReadError(f"Cannot read file: {e.strerror or e}", path) from e

    scan = _scan_language(text.splitlines(), path, language)
    logger.debug(
        "scanner.file_scanned",
        file=str(path),
        language=language,
        entries=len(scan.entries),
        orphaned=len(scan.orphaned),
        malformed=len(scan.malformed),
    )
    return scan


__all__ = ["scan_file", "scan_lines", "scan_text"]
