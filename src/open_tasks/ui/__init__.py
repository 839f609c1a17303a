"""Command-line router and terminal rendering for open-tasks."""

from open_tasks.ui.cli import CLIError, build_parser, run_cli
from open_tasks.ui.render import CLIRenderer, create_renderer, render_text

__all__ = [
    "CLIError",
    "CLIRenderer",
    "build_parser",
    "create_renderer",
    "render_text",
    "run_cli",
]
