"""Pattern compilation, line scanning, classification and workspace scanning."""

from open_tasks.parser.line_scanner import LineScanner
from open_tasks.parser.patterns import TagRule, TagRules, compile_tag_pattern, compile_tag_rules
from open_tasks.parser.workspace import ScanResult, WorkspaceScanner, merge_results, scan_workspace

__all__ = [
    "LineScanner",
    "ScanResult",
    "TagRule",
    "TagRules",
    "WorkspaceScanner",
    "compile_tag_pattern",
    "compile_tag_rules",
    "merge_results",
    "scan_workspace",
]
