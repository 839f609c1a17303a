"""
open-tasks — scan result persistence

File: src/open_tasks/persistence/results_store.py

Purpose
- Persist a scan's flat finding set so a later scan can compute new/fixed
  tasks against it.

What should be included in this file
- Versioned JSON document: ``schema_version``, ``scanned_files``, ``findings``.
- Atomic save; bulk load followed by an explicit ``rebuild()`` pass.

Functional requirements
- A round trip preserves total and per-priority counts and finding keys.
- Malformed or version-mismatched documents raise ``ResultsLoadError``.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from open_tasks.constants import RESULTS_SCHEMA_VERSION
from open_tasks.domain.containers import Project
from open_tasks.domain.models import Finding
from open_tasks.errors import ScanIOError
from open_tasks.parser.workspace import ScanResult
from open_tasks.utils.fs import atomic_write

_LOGGER = logging.getLogger(__name__)


class ResultsLoadError(ValueError):
    """Raised when a persisted results document cannot be decoded."""


def result_to_dict(result: ScanResult) -> dict[str, Any]:
    return {
        "schema_version": RESULTS_SCHEMA_VERSION,
        "project": result.project.name,
        "root": result.root,
        "scanned_files": result.scanned_files,
        "findings": [finding.to_dict() for finding in result.project.findings()],
    }


def result_from_dict(payload: Mapping[str, object]) -> ScanResult:
    """Rebuild a ``ScanResult`` from its persisted form.

    Findings are bulk-loaded into the flat index and the tree is derived in a
    single ``rebuild()`` pass, preserving the persisted keys.
    """

    if not isinstance(payload, Mapping):
        raise ResultsLoadError(f"results document must be an object, got {type(payload).__name__}")
    version = payload.get("schema_version")
    if version != RESULTS_SCHEMA_VERSION:
        raise ResultsLoadError(
            f"unsupported results schema_version {version!r}; expected {RESULTS_SCHEMA_VERSION}"
        )
    scanned = payload.get("scanned_files")
    if isinstance(scanned, bool) or not isinstance(scanned, int) or scanned < 0:
        raise ResultsLoadError("scanned_files must be a non-negative integer")
    raw_findings = payload.get("findings")
    if not isinstance(raw_findings, list):
        raise ResultsLoadError("findings must be a list")

    name = payload.get("project")
    root = payload.get("root")
    project = Project(
        name if isinstance(name, str) and name else "project",
        workspace_path=root if isinstance(root, str) else "",
    )
    try:
        findings = [Finding.from_dict(item) for item in raw_findings]
        project.bulk_load(findings)
    except ValueError as exc:
        raise ResultsLoadError(f"invalid finding in results document: {exc}") from exc
    return ScanResult(
        project=project,
        scanned_files=scanned,
        root=root if isinstance(root, str) else "",
    )


def save_result(result: ScanResult, path: Path | str) -> Path:
    target = Path(path)
    document = json.dumps(result_to_dict(result), sort_keys=True, indent=2, ensure_ascii=False)
    try:
        atomic_write(target, document + "\n")
    except OSError as exc:
        raise ScanIOError(str(target), str(exc)) from exc
    _LOGGER.info(
        "saved scan result",
        extra={"path": str(target), "finding_count": result.project.count()},
    )
    return target


def load_result(path: Path | str) -> ScanResult:
    source = Path(path)
    try:
        text = source.read_text(encoding="utf-8")
    except OSError as exc:
        raise ScanIOError(str(source), str(exc)) from exc
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ResultsLoadError(f"invalid JSON in {source}: {exc}") from exc
    result = result_from_dict(payload)
    _LOGGER.info(
        "loaded scan result",
        extra={"path": str(source), "finding_count": result.project.count()},
    )
    return result


def load_project(path: Path | str) -> Project:
    return load_result(path).project


__all__ = [
    "ResultsLoadError",
    "load_project",
    "load_result",
    "result_from_dict",
    "result_to_dict",
    "save_result",
]
