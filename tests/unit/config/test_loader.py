"""
open-tasks — unit tests for config loading

File: tests/unit/config/test_loader.py

Purpose
- Validate precedence (CLI > env > file > defaults), env coercion, path
  normalization and the ``ScanConfiguration`` bridge.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from open_tasks.config.loader import (
    ConfigLoadError,
    dump_effective_config,
    load_config,
    scan_configuration_from,
)
from open_tasks.config.schema import ConfigValidationError, default_config
from open_tasks.domain.models import Priority
from open_tasks.errors import ConfigurationError


def _write_config(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


@pytest.mark.unit
def test_defaults_apply_without_a_config_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.chdir(tmp_path)

    config = load_config(environ={})

    assert config["scan"]["high"] == "FIXME"
    assert config["scan"]["workers"] == 1
    assert config["observability"]["log_level"] == "WARNING"
    assert config["paths"]["results_file"] == ""


@pytest.mark.unit
def test_tasks_toml_in_working_directory_is_picked_up(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _write_config(tmp_path / "tasks.toml", '[scan]\nhigh = "XXX"\nworkers = 3\n')
    monkeypatch.chdir(tmp_path)

    config = load_config(environ={})

    assert config["scan"]["high"] == "XXX"
    assert config["scan"]["workers"] == 3
    assert config["scan"]["normal"] == "TODO"


@pytest.mark.unit
def test_precedence_cli_over_env_over_file(tmp_path: Path) -> None:
    path = _write_config(tmp_path / "custom.toml", '[scan]\nhigh = "FILE"\nnormal = "FILE"\n')

    config = load_config(
        path,
        environ={"OPEN_TASKS_SCAN_HIGH": "ENV", "OPEN_TASKS_SCAN_NORMAL": "ENV"},
        cli_overrides={"scan.high": "CLI", "scan.normal": None},
    )

    assert config["scan"]["high"] == "CLI"
    assert config["scan"]["normal"] == "ENV"


@pytest.mark.unit
def test_env_values_are_coerced(tmp_path: Path) -> None:
    config = load_config(
        _write_config(tmp_path / "tasks.toml", ""),
        environ={
            "OPEN_TASKS_SCAN_IGNORE_CASE": "yes",
            "OPEN_TASKS_SCAN_WORKERS": "8",
            "OPEN_TASKS_OBSERVABILITY_LOG_FORMAT": "json",
        },
    )

    assert config["scan"]["ignore_case"] is True
    assert config["scan"]["workers"] == 8
    assert config["observability"]["log_format"] == "json"


@pytest.mark.unit
@pytest.mark.parametrize(
    "environ",
    [{"OPEN_TASKS_SCAN_WORKERS": "many"}, {"OPEN_TASKS_SCAN_AS_REGEXP": "perhaps"}],
)
def test_uncoercible_env_values_fail(tmp_path: Path, environ: dict[str, str]) -> None:
    with pytest.raises(ConfigLoadError):
        load_config(_write_config(tmp_path / "tasks.toml", ""), environ=environ)


@pytest.mark.unit
def test_explicit_missing_config_file_fails(tmp_path: Path) -> None:
    with pytest.raises(ConfigLoadError, match="not found"):
        load_config(tmp_path / "nope.toml", environ={})


@pytest.mark.unit
def test_invalid_toml_fails(tmp_path: Path) -> None:
    with pytest.raises(ConfigLoadError, match="invalid TOML"):
        load_config(_write_config(tmp_path / "tasks.toml", "[scan\n"), environ={})


@pytest.mark.unit
def test_invalid_values_raise_validation_error(tmp_path: Path) -> None:
    path = _write_config(tmp_path / "tasks.toml", '[scan]\nworkers = 0\nencoding = "nope"\n')

    with pytest.raises(ConfigValidationError) as excinfo:
        load_config(path, environ={})

    paths = {issue.path for issue in excinfo.value.issues}
    assert paths == {"scan.workers", "scan.encoding"}
    assert isinstance(excinfo.value, ConfigurationError)


@pytest.mark.unit
def test_results_file_is_resolved_relative_to_the_config_file(tmp_path: Path) -> None:
    config_dir = tmp_path / "conf"
    config_dir.mkdir()
    path = _write_config(config_dir / "tasks.toml", '[paths]\nresults_file = "state/tasks.json"\n')

    config = load_config(path, environ={})

    expected = config_dir.resolve() / "state" / "tasks.json"
    assert config["paths"]["results_file"] == expected.as_posix()


@pytest.mark.unit
def test_scan_configuration_from_config(tmp_path: Path) -> None:
    path = _write_config(
        tmp_path / "tasks.toml",
        '[scan]\nlow = ""\nignore_case = true\nmodule_name = "  "\nincludes = "**/*.py"\n',
    )

    scan = scan_configuration_from(load_config(path, environ={}))

    assert scan.ignore_case is True
    assert scan.module_name is None
    assert scan.includes == "**/*.py"
    assert scan.enabled_priorities() == (Priority.HIGH, Priority.NORMAL)


@pytest.mark.unit
def test_scan_configuration_requires_a_scan_section() -> None:
    with pytest.raises(ConfigLoadError):
        scan_configuration_from({})


@pytest.mark.unit
def test_dump_effective_config_is_canonical_json() -> None:
    dumped = dump_effective_config(default_config())

    assert json.loads(dumped)["scan"]["low"] == "@deprecated"
    assert dumped == dump_effective_config(json.loads(dumped))
