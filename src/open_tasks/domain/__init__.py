"""
open-tasks — domain layer

File: src/open_tasks/domain/__init__.py

Purpose
- Value types and the aggregation tree shared by the scanner, persistence and
  reporting layers.

What should be included in this file
- Re-export of the core domain entities for convenience.
- Keep the domain layer free of IO side effects.
"""

from open_tasks.domain.containers import (
    AnnotationContainer,
    Module,
    Package,
    Project,
    WorkspaceFile,
)
from open_tasks.domain.delta import ResultDelta, compute_delta
from open_tasks.domain.models import Finding, Priority, ScanConfiguration

__all__ = [
    "AnnotationContainer",
    "Finding",
    "Module",
    "Package",
    "Priority",
    "Project",
    "ResultDelta",
    "ScanConfiguration",
    "WorkspaceFile",
    "compute_delta",
]
