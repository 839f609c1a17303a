"""Terminal rendering of scan reports.

File: src/open_tasks/ui/render.py

Purpose
- Render a ``ScanReport`` as human-readable tables using ``rich``.
- Respect the NO_COLOR environment variable and the --no-color CLI flag.

Functional requirements
- Output is deterministic for a given report and width, so it can be asserted
  on in tests.
"""

from __future__ import annotations

import io
import os
import sys
from typing import TYPE_CHECKING, TextIO

from rich.console import Console
from rich.table import Table
from rich.text import Text

from open_tasks.domain.models import Priority

if TYPE_CHECKING:
    from open_tasks.domain.models import Finding
    from open_tasks.reporting.summary import ScanReport

_DEFAULT_WIDTH = 120
_PRIORITY_STYLES = {
    Priority.HIGH: "bold red",
    Priority.NORMAL: "yellow",
    Priority.LOW: "cyan",
}


def _color_allowed(no_color_flag: bool, stream: TextIO) -> bool:
    if no_color_flag:
        return False
    if os.environ.get("NO_COLOR", ""):
        return False
    return hasattr(stream, "isatty") and stream.isatty()


class CLIRenderer:
    """Writes reports and messages to a stream through a ``rich`` console."""

    def __init__(
        self,
        *,
        no_color: bool = False,
        stream: TextIO | None = None,
        width: int | None = None,
    ) -> None:
        target = stream if stream is not None else sys.stdout
        color = _color_allowed(no_color, target)
        self._console = Console(
            file=target,
            width=width or _DEFAULT_WIDTH,
            no_color=not color,
            force_terminal=color,
            highlight=False,
            soft_wrap=False,
        )

    @property
    def console(self) -> Console:
        return self._console

    def text(self, line: str) -> None:
        self._console.print(line, markup=False)

    def raw(self, payload: str) -> None:
        """Write pre-formatted output (JSON, YAML) without any rich processing."""

        self._console.file.write(payload)
        self._console.file.flush()

    def report(self, report: ScanReport, *, show_findings: bool = True) -> None:
        self._console.print(report.summary, markup=False)
        project = report.result.project
        if project.count() == 0:
            return

        self._console.print(_priority_table(report))
        self._console.print(_module_table(report))
        if show_findings:
            self._console.print(_findings_table("Open tasks", project.findings()))
        if report.delta.new:
            self._console.print(_findings_table("New tasks", report.delta.new))
        if report.delta.fixed:
            self._console.print(_findings_table("Fixed tasks", report.delta.fixed))


def render_text(report: ScanReport, *, width: int = _DEFAULT_WIDTH) -> str:
    """Render ``report`` to a plain string (no colour codes)."""

    buffer = io.StringIO()
    CLIRenderer(no_color=True, stream=buffer, width=width).report(report)
    return buffer.getvalue()


def _priority_table(report: ScanReport) -> Table:
    table = Table(title="Priorities")
    table.add_column("Priority")
    table.add_column("Total", justify="right")
    table.add_column("New", justify="right")
    table.add_column("Fixed", justify="right")
    counts = report.result.project.counts_by_priority()
    new_counts = report.delta.new_by_priority()
    fixed_counts = report.delta.fixed_by_priority()
    for priority in report.active_priorities():
        table.add_row(
            priority.label,
            str(counts[priority]),
            str(new_counts.get(priority, 0)),
            str(fixed_counts.get(priority, 0)),
            style=_PRIORITY_STYLES[priority],
        )
    return table


def _module_table(report: ScanReport) -> Table:
    table = Table(title="Modules")
    table.add_column("Module")
    table.add_column("Package")
    table.add_column("Files", justify="right")
    for priority in Priority:
        table.add_column(priority.label, justify="right")
    table.add_column("Total", justify="right")
    for module in report.result.project.modules():
        for package in module.packages():
            counts = package.counts_by_priority()
            table.add_row(
                Text(module.name),
                Text(package.name),
                str(len(package.files())),
                *(str(counts[priority]) for priority in Priority),
                str(package.count()),
            )
    return table


def _findings_table(title: str, findings: tuple[Finding, ...]) -> Table:
    table = Table(title=title)
    table.add_column("Priority")
    table.add_column("File")
    table.add_column("Line", justify="right")
    table.add_column("Tag")
    table.add_column("Message", overflow="fold")
    for finding in findings:
        table.add_row(
            finding.priority.label,
            Text(finding.path or ""),
            str(finding.line),
            Text(finding.tag),
            Text(finding.message),
            style=_PRIORITY_STYLES[finding.priority],
        )
    return table


def create_renderer(*, no_color: bool = False) -> CLIRenderer:
    return CLIRenderer(no_color=no_color)


__all__ = ["CLIRenderer", "create_renderer", "render_text"]
