"""
open-tasks — open task scanner

File: src/open_tasks/__init__.py

Purpose
- Package root. Scans a workspace for tagged comments (FIXME, TODO, ...),
  aggregates them into a module → package → file tree and reports the delta
  against a previous scan.

What should be included in this file
- Version export and a small public API surface.

Functional requirements
- Must not have side effects at import time (no config loading, no logging init).
"""

from __future__ import annotations

from open_tasks.domain import Finding, Priority, Project, ScanConfiguration, compute_delta
from open_tasks.errors import ConfigurationError, NotFoundError, ScanIOError
from open_tasks.parser import ScanResult, WorkspaceScanner, scan_workspace

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "Finding",
    "NotFoundError",
    "Priority",
    "Project",
    "ScanConfiguration",
    "ScanIOError",
    "ScanResult",
    "WorkspaceScanner",
    "__version__",
    "compute_delta",
    "scan_workspace",
]
