"""Command-line interface router for open-tasks."""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final

import yaml

from open_tasks.config import load_config, scan_configuration_from
from open_tasks.observability import (
    correlation_scope,
    new_run_id,
    setup_logging,
    shutdown_logging,
)
from open_tasks.parser import ScanResult, WorkspaceScanner
from open_tasks.persistence import load_result, save_result
from open_tasks.reporting import ScanReport, format_json, format_yaml
from open_tasks.ui.render import CLIRenderer, create_renderer

OUTPUT_FORMATS: Final[tuple[str, ...]] = ("text", "json", "yaml")
EXIT_NEW_TASKS: Final[int] = 1


@dataclass(frozen=True, slots=True)
class CLIError(RuntimeError):
    """Typed CLI failure with an explicit process exit code."""

    message: str
    exit_code: int = 2

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse command router for all supported CLI workflows."""

    parser = argparse.ArgumentParser(
        prog="open-tasks",
        description=(
            "open-tasks — collect open task markers (FIXME, TODO, ...) from a workspace.\n\n"
            "Common workflows:\n"
            "  open-tasks scan src                       Report open tasks under src/\n"
            "  open-tasks scan --save tasks.json         Persist the result for later diffs\n"
            "  open-tasks scan --previous tasks.json     Show new and fixed tasks\n"
            "  open-tasks show tasks.json                Render a persisted result\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        dest="config_path",
        default=None,
        help="Path to TOML config (default: ./tasks.toml if present).",
    )
    common.add_argument(
        "--log-level",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        default=None,
        help="Override observability.log_level.",
    )
    common.add_argument(
        "--log-format",
        choices=("text", "json"),
        default=None,
        help="Override observability.log_format.",
    )
    common.add_argument(
        "--no-color",
        action="store_true",
        default=False,
        help="Disable colored output (also respects NO_COLOR env var).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # scan ----------------------------------------------------------------
    scan_parser = subparsers.add_parser(
        "scan",
        parents=[common],
        help="Scan a workspace for open tasks",
        description=(
            "Scan every matching file below ROOT and report tagged comments.\n\n"
            "Examples:\n"
            "  open-tasks scan\n"
            "  open-tasks scan src --include '**/*.py' --high FIXME,XXX\n"
            "  open-tasks scan --previous last.json --fail-on-new\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    scan_parser.add_argument("root", nargs="?", default=".", help="Workspace root (default: .)")
    scan_parser.add_argument("--high", default=None, help="High priority tag identifiers.")
    scan_parser.add_argument("--normal", default=None, help="Normal priority tag identifiers.")
    scan_parser.add_argument("--low", default=None, help="Low priority tag identifiers.")
    scan_parser.add_argument(
        "--ignore-case",
        action="store_true",
        default=None,
        help="Match tag identifiers case-insensitively.",
    )
    scan_parser.add_argument(
        "--regexp",
        dest="as_regexp",
        action="store_true",
        default=None,
        help="Treat tag identifiers as a regular expression.",
    )
    scan_parser.add_argument(
        "--include",
        dest="includes",
        default=None,
        help="Comma separated include patterns (Ant style, e.g. '**/*.java').",
    )
    scan_parser.add_argument(
        "--exclude",
        dest="excludes",
        default=None,
        help="Comma separated exclude patterns.",
    )
    scan_parser.add_argument("--encoding", default=None, help="Source file encoding.")
    scan_parser.add_argument(
        "--module-name",
        default=None,
        help="Attribute every finding to this module instead of detecting modules.",
    )
    scan_parser.add_argument(
        "--no-detect-modules",
        dest="detect_modules",
        action="store_false",
        default=None,
        help="Skip module descriptor discovery (pom.xml, build.xml, MANIFEST.MF).",
    )
    scan_parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of files scanned concurrently.",
    )
    scan_parser.add_argument(
        "--previous",
        default=None,
        help="Persisted result to compare against (default: paths.results_file if present).",
    )
    scan_parser.add_argument(
        "--save",
        default=None,
        help="Write the result to this file (default: paths.results_file when configured).",
    )
    scan_parser.add_argument("--format", choices=OUTPUT_FORMATS, default="text")
    scan_parser.add_argument(
        "--fail-on-new",
        action="store_true",
        default=False,
        help="Exit with status 1 when the scan finds tasks absent from the previous result.",
    )
    scan_parser.set_defaults(handler=_cmd_scan)

    # show ----------------------------------------------------------------
    show_parser = subparsers.add_parser(
        "show",
        parents=[common],
        help="Render a persisted scan result",
        description=(
            "Render a result file written by 'scan --save'.\n\n"
            "Examples:\n"
            "  open-tasks show tasks.json\n"
            "  open-tasks show tasks.json --format yaml\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    show_parser.add_argument("file", help="Result file to render.")
    show_parser.add_argument("--format", choices=OUTPUT_FORMATS, default="text")
    show_parser.set_defaults(handler=_cmd_show)

    # config --------------------------------------------------------------
    config_parser = subparsers.add_parser(
        "config",
        parents=[common],
        help="Show effective configuration",
        description=(
            "Display the effective config after merging defaults, file, env and flags.\n\n"
            "Examples:\n"
            "  open-tasks config\n"
            "  open-tasks config --format yaml\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    config_parser.add_argument("--format", choices=("json", "yaml"), default="json")
    config_parser.set_defaults(handler=_cmd_config)

    return parser


# ---------------------------------------------------------------------------
# Entrypoints
# ---------------------------------------------------------------------------


def run_cli(argv: Sequence[str] | None = None) -> int:
    """Parse argv, route to a command handler, and return process exit code."""

    parser = build_parser()
    namespace = parser.parse_args(list(argv) if argv is not None else None)
    handler = getattr(namespace, "handler", None)
    if not callable(handler):
        parser.print_help(sys.stderr)
        return 2

    config = load_config(
        namespace.config_path,
        cli_overrides=_cli_overrides(namespace),
    )
    run_id = new_run_id()
    setup_logging(config.get("observability"), run_id=run_id)
    try:
        with correlation_scope(run_id=run_id, command=namespace.command):
            return int(handler(namespace, config))
    except CLIError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_code
    finally:
        shutdown_logging()


def main(argv: Sequence[str] | None = None) -> int:
    """Compatibility wrapper for main-module wiring."""

    return run_cli(argv)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _cmd_scan(args: argparse.Namespace, config: Mapping[str, Any]) -> int:
    scan_config = scan_configuration_from(config)
    root = _resolve_root(args.root)
    results_file = _results_file(config)

    previous_path = _optional_path(args.previous)
    if previous_path is None and results_file is not None and results_file.is_file():
        previous_path = results_file
    previous: ScanResult | None = None
    if previous_path is not None:
        previous = load_result(previous_path)

    result = WorkspaceScanner(scan_config).scan(root, project_name=root.name or str(root))
    report = ScanReport.build(result, previous, scan_config)

    save_path = _optional_path(args.save) or results_file
    if save_path is not None:
        save_result(result, save_path)

    _emit_report(args, report)

    if args.fail_on_new and report.new_count > 0:
        return EXIT_NEW_TASKS
    return 0


def _cmd_show(args: argparse.Namespace, config: Mapping[str, Any]) -> int:
    del config
    result = load_result(Path(args.file).expanduser())
    _emit_report(args, ScanReport.build(result))
    return 0


def _cmd_config(args: argparse.Namespace, config: Mapping[str, Any]) -> int:
    renderer = _get_renderer(args)
    if args.format == "yaml":
        renderer.raw(yaml.safe_dump(dict(config), sort_keys=True, default_flow_style=False))
        return 0
    renderer.raw(json.dumps(config, indent=2, sort_keys=True, ensure_ascii=False) + "\n")
    return 0


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _emit_report(args: argparse.Namespace, report: ScanReport) -> None:
    renderer = _get_renderer(args)
    if args.format == "json":
        renderer.raw(format_json(report))
    elif args.format == "yaml":
        renderer.raw(format_yaml(report))
    else:
        renderer.report(report)


def _get_renderer(args: argparse.Namespace) -> CLIRenderer:
    return create_renderer(no_color=bool(getattr(args, "no_color", False)))


def _cli_overrides(args: argparse.Namespace) -> dict[str, object]:
    """Map parsed flags onto dotted config keys; unset flags stay ``None``."""

    overrides: dict[str, object] = {
        "observability.log_level": getattr(args, "log_level", None),
        "observability.log_format": getattr(args, "log_format", None),
    }
    for field in (
        "high",
        "normal",
        "low",
        "ignore_case",
        "as_regexp",
        "includes",
        "excludes",
        "encoding",
        "module_name",
        "detect_modules",
        "workers",
    ):
        overrides[f"scan.{field}"] = getattr(args, field, None)
    return overrides


def _resolve_root(raw: str) -> Path:
    candidate = Path(raw).expanduser().resolve()
    if not candidate.is_dir():
        raise CLIError(f"workspace root is not a directory: {candidate}")
    return candidate


def _results_file(config: Mapping[str, Any]) -> Path | None:
    paths = config.get("paths")
    if not isinstance(paths, Mapping):
        return None
    return _optional_path(paths.get("results_file"))


def _optional_path(value: object) -> Path | None:
    if not isinstance(value, str) or not value.strip():
        return None
    return Path(value.strip()).expanduser()


__all__ = ["CLIError", "build_parser", "main", "run_cli"]
