"""
Dev/Prod Page Comparison Engine.

Compares a development rendering of a web page with its production rendering:
line diffs, DOM fact sheets, tag and resource reconciliation, folder trees and
threshold alerts. Designed to be reusable by the CLI and any other front end.
"""

from .alerts import DEFAULT_THRESHOLDS, STRICT_THRESHOLDS, AlertSystem, get_thresholds
from .analyzer import analyze_page
from .differ import align, diff_lines, summarize_diff
from .extractor import DOMFactExtractor
from .history import HistoryStore
from .job_runner import PageComparator, populate_content
from .models import (
    AlertRecord,
    AlignedRow,
    ComparisonExtras,
    ComparisonResult,
    ComparisonThresholds,
    DiffLine,
    DiffSegment,
    DOMSnapshot,
    FileNode,
    FolderNode,
    PageInput,
    StaticResource,
    URLInput,
)
from .resources import comparison_key, normalized_key, reconcile_resources
from .tags import pair_by_position, reconcile_tags
from .tree import build_tree, compare_trees, find_node

__all__ = [
    # Models
    "AlertRecord",
    "AlignedRow",
    "ComparisonExtras",
    "ComparisonResult",
    "ComparisonThresholds",
    "DiffLine",
    "DiffSegment",
    "DOMSnapshot",
    "FileNode",
    "FolderNode",
    "PageInput",
    "StaticResource",
    "URLInput",
    # Core operations
    "align",
    "analyze_page",
    "build_tree",
    "compare_trees",
    "comparison_key",
    "diff_lines",
    "find_node",
    "normalized_key",
    "pair_by_position",
    "reconcile_resources",
    "reconcile_tags",
    "summarize_diff",
    "DOMFactExtractor",
    # Alerts
    "AlertSystem",
    "DEFAULT_THRESHOLDS",
    "STRICT_THRESHOLDS",
    "get_thresholds",
    # History
    "HistoryStore",
    # Main entry point
    "PageComparator",
    "populate_content",
]
