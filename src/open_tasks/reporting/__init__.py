"""Report model plus JSON/YAML formatting."""

from open_tasks.reporting.summary import ScanReport, format_json, format_yaml, summary_line

__all__ = ["ScanReport", "format_json", "format_yaml", "summary_line"]
