"""Scan outline documents and act on the headings a query matches."""

from .actions import Scope, SkipFlag, collect_for_report, map_entries, sparse_tree
from .context import SPECIAL_PROPERTIES, ScanContext
from .engine import ScanMode, ScanOptions, scan, scan_document
from .report import ReportRecord, format_report_row, priority_value, sort_records

__all__ = [
    # Actions
    "sparse_tree",
    "collect_for_report",
    "map_entries",
    "Scope",
    "SkipFlag",
    # Engine
    "scan",
    "scan_document",
    "ScanMode",
    "ScanOptions",
    "ScanContext",
    "SPECIAL_PROPERTIES",
    # Reports
    "ReportRecord",
    "format_report_row",
    "priority_value",
    "sort_records",
]
