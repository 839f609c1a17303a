"""
open-tasks — scan report model and machine-readable formats

File: src/open_tasks/reporting/summary.py

Purpose
- Combine a ``ScanResult`` and its ``ResultDelta`` into one report with a
  stable dictionary form shared by the JSON, YAML and text outputs.

Functional requirements
- Summary line: ``"N open task(s) in M workspace file(s) (+d)."`` with ``±0``
  when nothing changed.
- Counts: total, new, fixed, per priority, per module and package.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

import yaml

from open_tasks.domain.containers import AnnotationContainer
from open_tasks.domain.delta import ResultDelta, compute_delta
from open_tasks.domain.models import Priority, ScanConfiguration
from open_tasks.parser.workspace import ScanResult


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


def summary_line(result: ScanResult, delta: ResultDelta) -> str:
    tasks = _plural(result.project.count(), "open task")
    files = _plural(result.scanned_files, "workspace file")
    return f"{tasks} in {files} ({delta.signed})."


@dataclass(frozen=True, slots=True)
class ScanReport:
    result: ScanResult
    delta: ResultDelta
    config: ScanConfiguration | None = None

    @classmethod
    def build(
        cls,
        result: ScanResult,
        previous: ScanResult | None = None,
        config: ScanConfiguration | None = None,
    ) -> ScanReport:
        delta = compute_delta(result.project, previous.project if previous else None)
        return cls(result=result, delta=delta, config=config)

    @property
    def summary(self) -> str:
        return summary_line(self.result, self.delta)

    @property
    def total(self) -> int:
        return self.result.project.count()

    @property
    def new_count(self) -> int:
        return self.delta.new_count

    @property
    def fixed_count(self) -> int:
        return self.delta.fixed_count

    def active_priorities(self) -> tuple[Priority, ...]:
        return self.result.project.active_priorities(self.config)

    def to_dict(self) -> dict[str, Any]:
        project = self.result.project
        return {
            "summary": self.summary,
            "project": project.name,
            "root": self.result.root,
            "scanned_files": self.result.scanned_files,
            "files_with_findings": self.result.files_with_findings,
            "total": self.total,
            "new": self.new_count,
            "fixed": self.fixed_count,
            "delta": self.delta.delta,
            "counts": _counts(project),
            "active_priorities": [priority.value for priority in self.active_priorities()],
            "modules": [
                {
                    **_node(module),
                    "packages": [
                        {
                            **_node(package),
                            "files": [_node(item) for item in package.files()],
                        }
                        for package in module.packages()
                    ],
                }
                for module in project.modules()
            ],
            "findings": [finding.to_dict() for finding in project.findings()],
            "new_findings": [finding.to_dict() for finding in self.delta.new],
            "fixed_findings": [finding.to_dict() for finding in self.delta.fixed],
        }


def format_json(report: ScanReport) -> str:
    return json.dumps(report.to_dict(), sort_keys=True, indent=2, ensure_ascii=False) + "\n"


def format_yaml(report: ScanReport) -> str:
    rendered = yaml.safe_dump(
        report.to_dict(),
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
        width=120,
    )
    if not rendered.endswith("\n"):
        rendered += "\n"
    return rendered


def _counts(container: AnnotationContainer) -> dict[str, int]:
    return {priority.value: count for priority, count in container.counts_by_priority().items()}


def _node(container: AnnotationContainer) -> dict[str, Any]:
    return {"name": container.name, "count": container.count(), "counts": _counts(container)}


__all__ = ["ScanReport", "format_json", "format_yaml", "summary_line"]
