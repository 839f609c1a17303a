"""
open-tasks — CLI smoke contracts

File: tests/integration/test_cli_smoke.py

Purpose
- Drive ``scan``, ``show`` and ``config`` end to end against temporary
  workspaces and check output, persisted results and exit codes.
- Run one subprocess invocation of ``python -m open_tasks`` to cover the
  module entrypoint.
"""

from __future__ import annotations

import json
import os
import subprocess
import sys
from pathlib import Path

import pytest
import yaml

from open_tasks.main import ExitCode, cli_entrypoint

PROJECT_ROOT = Path(__file__).resolve().parents[2]
SRC_PATH = PROJECT_ROOT / "src"

FIXTURE = (
    "// TODO here we have a task with priority NORMAL\n"
    "// FIXME here another task with priority HIGH\n"
)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in list(os.environ):
        if name.startswith("OPEN_TASKS_"):
            monkeypatch.delenv(name)
    monkeypatch.setenv("NO_COLOR", "1")
    monkeypatch.chdir(tmp_path)


def _write(root: Path, rel_path: str, text: str) -> None:
    path = root / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def _workspace(tmp_path: Path) -> Path:
    root = tmp_path / "ws"
    _write(root, "src/tasks.txt", FIXTURE)
    _write(root, "src/clean.txt", "nothing\n")
    return root


def _run_json(capsys: pytest.CaptureFixture[str], *argv: str) -> tuple[int, dict[str, object]]:
    code = cli_entrypoint([*argv, "--format", "json"])
    out = capsys.readouterr().out
    return code, json.loads(out)


@pytest.mark.integration
def test_scan_prints_summary_and_tables(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    root = _workspace(tmp_path)

    code = cli_entrypoint(["scan", str(root), "--no-color"])

    out = capsys.readouterr().out
    assert code == ExitCode.SUCCESS
    assert out.splitlines()[0] == "2 open tasks in 2 workspace files (±0)."
    assert "src/tasks.txt" in out
    assert "here another task with priority HIGH" in out


@pytest.mark.integration
def test_scan_json_reports_counts(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    root = _workspace(tmp_path)

    code, payload = _run_json(capsys, "scan", str(root), "--high", "FIXME", "--normal", "")

    assert code == ExitCode.SUCCESS
    assert payload["total"] == 1
    assert payload["counts"] == {"HIGH": 1, "NORMAL": 0, "LOW": 0}
    assert payload["scanned_files"] == 2
    assert payload["files_with_findings"] == 1


@pytest.mark.integration
def test_save_then_compare_and_fail_on_new(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    root = _workspace(tmp_path)
    saved = tmp_path / "state" / "tasks.json"

    code, _ = _run_json(capsys, "scan", str(root), "--save", str(saved))
    assert code == ExitCode.SUCCESS
    assert saved.is_file()

    _write(root, "src/more.txt", "# TODO a brand new task\n")
    code, payload = _run_json(
        capsys, "scan", str(root), "--previous", str(saved), "--fail-on-new"
    )

    assert code == ExitCode.NEW_TASKS
    assert payload["new"] == 1
    assert payload["fixed"] == 0
    assert payload["delta"] == 1
    assert payload["summary"] == "3 open tasks in 3 workspace files (+1)."


@pytest.mark.integration
def test_fail_on_new_needs_a_previous_result(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    root = _workspace(tmp_path)

    code, payload = _run_json(capsys, "scan", str(root), "--fail-on-new")

    assert code == ExitCode.SUCCESS
    assert payload["new"] == 0


@pytest.mark.integration
def test_configured_results_file_is_compared_and_updated(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    root = _workspace(tmp_path)
    _write(tmp_path, "tasks.toml", '[paths]\nresults_file = "state/last.json"\n')

    code, first = _run_json(capsys, "scan", str(root))
    assert code == ExitCode.SUCCESS
    assert first["fixed"] == 0
    assert (tmp_path / "state" / "last.json").is_file()

    (root / "src" / "tasks.txt").write_text("// TODO here we have a task\n", encoding="utf-8")
    code, second = _run_json(capsys, "scan", str(root))

    assert code == ExitCode.SUCCESS
    assert second["total"] == 1
    assert second["fixed"] == 2
    assert second["new"] == 1


@pytest.mark.integration
def test_show_renders_a_saved_result(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    root = _workspace(tmp_path)
    saved = tmp_path / "tasks.json"
    cli_entrypoint(["scan", str(root), "--save", str(saved), "--format", "json"])
    capsys.readouterr()

    code = cli_entrypoint(["show", str(saved), "--format", "yaml"])

    payload = yaml.safe_load(capsys.readouterr().out)
    assert code == ExitCode.SUCCESS
    assert payload["total"] == 2
    assert payload["scanned_files"] == 2


@pytest.mark.integration
def test_config_command_reflects_env_and_flags(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setenv("OPEN_TASKS_SCAN_HIGH", "XXX")

    code = cli_entrypoint(["config", "--log-level", "DEBUG"])

    payload = json.loads(capsys.readouterr().out)
    assert code == ExitCode.SUCCESS
    assert payload["scan"]["high"] == "XXX"
    assert payload["observability"]["log_level"] == "DEBUG"


@pytest.mark.integration
@pytest.mark.parametrize(
    ("extra", "message"),
    [
        (["--include", "**/*.java"], "no files matched"),
        (["--high", "(", "--regexp"], "invalid tag identifiers"),
        (["--workers", "0"], "scan.workers"),
    ],
)
def test_configuration_errors_exit_with_code_two(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
    extra: list[str],
    message: str,
) -> None:
    root = _workspace(tmp_path)

    code = cli_entrypoint(["scan", str(root), *extra])

    assert code == ExitCode.CONFIG_ERROR
    assert message in capsys.readouterr().err


@pytest.mark.integration
def test_missing_root_is_a_configuration_error(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    code = cli_entrypoint(["scan", str(tmp_path / "missing")])

    assert code == ExitCode.CONFIG_ERROR
    assert "not a directory" in capsys.readouterr().err


@pytest.mark.integration
def test_unreadable_file_exits_with_io_error(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    root = _workspace(tmp_path)
    (root / "src" / "dangling.txt").symlink_to(root / "src" / "gone.txt")

    code = cli_entrypoint(["scan", str(root)])

    assert code == ExitCode.IO_ERROR
    assert "src/dangling.txt" in capsys.readouterr().err


@pytest.mark.integration
def test_binary_files_are_scanned_without_failing(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    root = _workspace(tmp_path)
    (root / "src" / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n\xff\xfe\xfa")

    code, payload = _run_json(capsys, "scan", str(root))

    assert code == ExitCode.SUCCESS
    assert payload["total"] == 2
    assert payload["scanned_files"] == 3


@pytest.mark.integration
def test_show_errors(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    broken = tmp_path / "broken.json"
    broken.write_text("{}", encoding="utf-8")

    assert cli_entrypoint(["show", str(tmp_path / "missing.json")]) == ExitCode.IO_ERROR
    assert cli_entrypoint(["show", str(broken)]) == ExitCode.CONFIG_ERROR
    assert "schema_version" in capsys.readouterr().err


@pytest.mark.integration
def test_unknown_command_is_a_usage_error(capsys: pytest.CaptureFixture[str]) -> None:
    assert cli_entrypoint(["frobnicate"]) == ExitCode.CONFIG_ERROR
    assert "invalid choice" in capsys.readouterr().err


@pytest.mark.integration
def test_module_entrypoint_subprocess(tmp_path: Path) -> None:
    root = _workspace(tmp_path)
    env = os.environ.copy()
    existing = env.get("PYTHONPATH")
    env["PYTHONPATH"] = str(SRC_PATH) if not existing else f"{SRC_PATH}{os.pathsep}{existing}"

    completed = subprocess.run(
        [sys.executable, "-m", "open_tasks", "scan", str(root), "--format", "json"],
        cwd=tmp_path,
        text=True,
        capture_output=True,
        check=False,
        env=env,
    )

    assert completed.returncode == 0, completed.stderr
    assert json.loads(completed.stdout)["total"] == 2
