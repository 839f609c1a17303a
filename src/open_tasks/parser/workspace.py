"""
open-tasks — workspace scanning orchestration

File: src/open_tasks/parser/workspace.py

Purpose
- Turn a workspace root plus ``ScanConfiguration`` into an aggregated
  ``Project``: select files, scan each one, attribute every finding, insert.

What should be included in this file
- ``WorkspaceScanner`` driving file selection, line scanning, package and
  module classification, and context hashing.
- ``ScanResult`` pairing the aggregate with the scanned-file count, plus
  merging of several results into one.

Functional requirements
- An include pattern that matches nothing is a ``ConfigurationError``.
- Any unreadable file aborts the whole scan with ``ScanIOError``; no partial
  ``Project`` is returned.
- Files without findings are counted as scanned but never enter the aggregate.

Non-functional requirements
- With ``workers > 1`` files are read on a bounded thread pool; insertion still
  happens in sorted path order so finding keys do not depend on timing.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from functools import partial
from pathlib import Path

from open_tasks.domain.containers import Project
from open_tasks.domain.models import Finding, ScanConfiguration
from open_tasks.errors import ConfigurationError, ScanIOError
from open_tasks.parser.filesets import FileSet
from open_tasks.parser.line_scanner import LineScanner
from open_tasks.parser.modules import (
    DescriptorModuleDetector,
    ModuleDetector,
    NullModuleDetector,
    PrefixOrder,
)
from open_tasks.parser.packages import PACKAGE_DETECTORS, PackageDetector, detect_package_name
from open_tasks.parser.patterns import compile_tag_rules
from open_tasks.utils.concurrency import run_blocking_pool
from open_tasks.utils.hashing import context_hash

_LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class ScanResult:
    """Aggregate of one scan plus the number of files that were read."""

    project: Project
    scanned_files: int
    root: str = ""

    @property
    def files_with_findings(self) -> int:
        return len(self.project.files())

    def merge(self, *others: ScanResult) -> ScanResult:
        """Combine several results (for example one per configuration axis) into a new one.

        Scanned-file counts are summed and every finding is re-added to a fresh
        project, so the merged aggregate owns its own keys.
        """

        merged = Project(self.project.name, workspace_path=self.project.workspace_path)
        scanned = 0
        for result in (self, *others):
            merged.add_all(finding.without_key() for finding in result.project.findings())
            scanned += result.scanned_files
        return ScanResult(project=merged, scanned_files=scanned, root=self.root)


class WorkspaceScanner:
    """Scan a workspace root for open tasks.

    Tag rules are compiled in the constructor, so an invalid identifier fails
    before any file is touched.
    """

    def __init__(
        self,
        config: ScanConfiguration,
        *,
        package_detectors: Sequence[PackageDetector] = PACKAGE_DETECTORS,
        module_detector: ModuleDetector | None = None,
        prefix_order: PrefixOrder = sorted,
    ) -> None:
        self._config = config
        self._scanner = LineScanner(compile_tag_rules(config))
        self._fileset = FileSet(config.includes, config.excludes)
        self._package_detectors = tuple(package_detectors)
        self._module_detector = module_detector
        self._prefix_order = prefix_order

    @property
    def config(self) -> ScanConfiguration:
        return self._config

    def find_files(self, root: Path) -> list[str]:
        files = self._fileset.find_files(root)
        if not files:
            raise ConfigurationError(
                f"no files matched {self._fileset.describe()} in workspace {str(root)!r}"
            )
        return files

    def scan(self, root: Path | str, *, project_name: str | None = None) -> ScanResult:
        workspace = Path(root)
        files = self.find_files(workspace)
        _LOGGER.info(
            "scanning workspace",
            extra={
                "root": str(workspace),
                "file_count": len(files),
                "workers": self._config.workers,
            },
        )

        scan_one = partial(self.scan_file, workspace, self._resolve_module_detector(workspace))
        if self._config.workers > 1 and len(files) > 1:
            per_file = run_blocking_pool(scan_one, files, max_concurrency=self._config.workers)
        else:
            per_file = [scan_one(rel_path) for rel_path in files]

        project = Project(
            project_name or workspace.resolve().name or str(workspace),
            workspace_path=str(workspace),
        )
        for findings in per_file:
            project.add_all(findings)

        result = ScanResult(project=project, scanned_files=len(files), root=str(workspace))
        _LOGGER.info(
            "scan complete",
            extra={
                "scanned_files": result.scanned_files,
                "files_with_findings": result.files_with_findings,
                "finding_count": project.count(),
            },
        )
        return result

    def scan_file(
        self,
        root: Path,
        module_detector: ModuleDetector,
        rel_path: str,
    ) -> tuple[Finding, ...]:
        """Scan one file and return its attributed findings (empty when it has none)."""

        lines = self._read_lines(root / rel_path, rel_path)
        findings = self._scanner.scan_lines(lines)
        if not findings:
            return ()

        package = detect_package_name(rel_path, lines, self._package_detectors)
        module = (self._config.module_name or "").strip() or module_detector.guess_module_name(
            rel_path
        )
        _LOGGER.debug(
            "file has findings",
            extra={"path": rel_path, "finding_count": len(findings), "module_name": module},
        )
        return tuple(
            finding.attributed(
                path=rel_path,
                package=package,
                module=module,
                context_hash=context_hash(rel_path, finding.tag, lines, finding.line),
            )
            for finding in findings
        )

    def _read_lines(self, path: Path, rel_path: str) -> list[str]:
        try:
            with path.open(
                "r", encoding=self._config.encoding, errors="replace", newline=""
            ) as handle:
                return [line.rstrip("\r\n") for line in handle]
        except OSError as exc:
            raise ScanIOError(rel_path, str(exc)) from exc

    def _resolve_module_detector(self, root: Path) -> ModuleDetector:
        if self._module_detector is not None:
            return self._module_detector
        if not self._config.detect_modules:
            return NullModuleDetector()
        return DescriptorModuleDetector(root, prefix_order=self._prefix_order)


def scan_workspace(
    root: Path | str,
    config: ScanConfiguration | None = None,
) -> ScanResult:
    """Convenience wrapper: compile ``config`` and scan ``root`` in one call."""

    return WorkspaceScanner(config or ScanConfiguration()).scan(root)


def merge_results(results: Iterable[ScanResult]) -> ScanResult:
    items = list(results)
    if not items:
        raise ValueError("merge_results requires at least one result")
    return items[0].merge(*items[1:])


__all__ = ["ScanResult", "WorkspaceScanner", "merge_results", "scan_workspace"]
