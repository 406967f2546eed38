"""Requirement traceability extraction from annotated source code.

Source files mark tests with comments such as
``// Trace(GitHub:myOrg/myRepo#1, Jira:MYJIRAPROJECT-3)`` placed above a
class or method. tracelink finds these annotations, binds each one to the
declaration that follows it, and aggregates the result into a mapping from
requirement reference to declarations.

Components:
    matcher: Finds Trace markers and parses references
    resolvers: Binds an annotation to the next class or method declaration
    gauge: Binds Trace lines in Gauge specifications to their headings
    aggregator: Reference to declarations mapping, issues and coverage
    batch: Multi-file scanning with a worker pool

Usage:
    >>> from pathlib import Path
    >>> from tracelink import Reference, scan_paths
    >>> aggregator = scan_paths(sorted(Path("src/test").rglob("*.java")))
    >>> aggregator.query(Reference("Jira", "MYJIRAPROJECT", "3"))
"""

from __future__ import annotations

__version__ = "0.1.0"

from tracelink.aggregator import CoverageReport, TraceAggregator, TraceReport
from tracelink.batch import scan_paths, scan_with_settings
from tracelink.config import TraceSettings, get_settings
from tracelink.delivery import Delivery, load_delivery
from tracelink.errors import (
    ConfigurationError,
    DeliveryFileError,
    FileReadError,
    MappingFileError,
    TraceError,
    UnsupportedLanguageError,
)
from tracelink.mapping_file import load_mapping_file
from tracelink.matcher import match_line, parse_reference
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
from tracelink.scanner import scan_file, scan_text

__all__ = [
    "Annotation",
    "ConfigurationError",
    "CoverageReport",
    "Declaration",
    "DeclarationKind",
    "Delivery",
    "DeliveryFileError",
    "FileReadError",
    "FileReadFailure",
    "FileScan",
    "MalformedReference",
    "MappingFileError",
    "OrphanedAnnotation",
    "Reference",
    "TraceAggregator",
    "TraceEntry",
    "TraceError",
    "TraceReport",
    "TraceSettings",
    "UnsupportedLanguageError",
    "__version__",
    "get_settings",
    "load_delivery",
    "load_mapping_file",
    "match_line",
    "parse_reference",
    "scan_file",
    "scan_paths",
    "scan_text",
    "scan_with_settings",
]
