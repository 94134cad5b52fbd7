"""Match outline headings with tag/property/TODO queries and act on them."""

from .config import ScanConfig, load_scan_config
from .errors import (
    GroupExpansionError,
    InheritanceError,
    OrgScanError,
    OutlineParseError,
    QuerySyntaxError,
    ScanCallbackError,
    StopScan,
    UnknownOperatorError,
)
from .outline import OutlineDocument, parse_outline, read_outline_file
from .query import CompiledMatcher, compile_matcher, expand_tag_groups
from .scan import (
    ReportRecord,
    ScanContext,
    Scope,
    SkipFlag,
    collect_for_report,
    map_entries,
    sparse_tree,
)

__all__ = [
    # Config
    "ScanConfig",
    "load_scan_config",
    # Errors
    "OrgScanError",
    "GroupExpansionError",
    "QuerySyntaxError",
    "UnknownOperatorError",
    "ScanCallbackError",
    "InheritanceError",
    "OutlineParseError",
    "StopScan",
    # Outline
    "OutlineDocument",
    "parse_outline",
    "read_outline_file",
    # Query
    "compile_matcher",
    "CompiledMatcher",
    "expand_tag_groups",
    # Scan
    "sparse_tree",
    "collect_for_report",
    "map_entries",
    "ScanContext",
    "ReportRecord",
    "Scope",
    "SkipFlag",
]
