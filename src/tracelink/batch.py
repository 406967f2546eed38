"""Multi-file scanning with a worker pool.

Each file is scanned in its own task; tasks share no state. Results are
merged into one TraceAggregator after the pool has finished, in the order the
paths were given, so output does not depend on the number of workers. A
file that cannot be scanned is recorded as a FileReadFailure and the run
continues.

Example:
    >>> aggregator = scan_paths(sorted(Path("src/test").rglob("*.java")), max_workers=8)
    >>> print(len(aggregator), "bindings,", aggregator.issue_count, "issues")
"""

from __future__ import annotations

import time
from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from tracelink.aggregator import TraceAggregator
from tracelink.errors import TraceError
from tracelink.models import FileReadFailure, FileScan
from tracelink.scanner import scan_file

if TYPE_CHECKING:
    from tracelink.config import TraceSettings

logger = structlog.get_logger(__name__)


def _scan_one(
    path: Path,
    encoding: str,
    extra_extensions: Mapping[str, str] | None,
) -> FileScan | FileReadFailure:
    try:
        return scan_file(path, encoding=encoding, extra_extensions=extra_extensions)
    except TraceError as e:
        return FileReadFailure(file=path, reason=e.message)


def scan_paths(
    paths: Sequence[Path],
    *,
    max_workers: int = 4,
    encoding: str = "utf-8",
    extra_extensions: Mapping[str, str] | None = None,
    aggregator: TraceAggregator | None = None,
) -> TraceAggregator:
    """Scan many files and aggregate the results.

    Args:
        paths: Files to scan. Order determines the order of results.
        max_workers: Size of the thread pool (1 scans sequentially).
        encoding: Text encoding of the files.
        extra_extensions: Additional extension to language entries.
        aggregator: Existing aggregator to add to; a new one by default.

    Returns:
        The aggregator holding all bindings, issues and failures.

    Raises:
        ValueError: If max_workers is less than 1.
    """
    if max_workers < 1:
        msg = f"max_workers must be at least 1, got {max_workers}"
        raise ValueError(msg)

    if aggregator is None:
        aggregator = TraceAggregator()

    start = time.perf_counter()
    scan = partial(_scan_one, encoding=encoding, extra_extensions=extra_extensions)

    if max_workers == 1 or len(paths) <= 1:
        results = [scan(path) for path in paths]
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            results = list(executor.map(scan, paths))

    failures = 0
    for result in results:
        if isinstance(result, FileReadFailure):
            failures += 1
            logger.warning("batch.file_skipped", file=str(result.file), reason=result.reason)
            aggregator.add_failure(result)
        else:
            aggregator.add_scan(result)

    logger.info(
        "batch.completed",
        files=len(paths),
        failures=failures,
        entries=len(aggregator),
        issues=aggregator.issue_count,
        duration_ms=round((time.perf_counter() - start) * 1000, 1),
    )
    return aggregator


def scan_with_settings(
    paths: Sequence[Path],
    settings: TraceSettings,
    aggregator: TraceAggregator | None = None,
) -> TraceAggregator:
    """Run scan_paths with worker count, encoding and extensions from settings."""
    return scan_paths(
        paths,
        max_workers=settings.max_workers,
        encoding=settings.encoding,
        extra_extensions=settings.extra_extensions,
        aggregator=aggregator,
    )


__all__ = ["scan_paths", "scan_with_settings"]
