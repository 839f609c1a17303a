"""
open-tasks — unit tests for observability logging

File: tests/unit/observability/test_logging.py

Purpose
- Validate JSON-lines output, correlation propagation, text formatting and
  shutdown behaviour of the queue-backed logging setup.

Non-functional requirements
- Offline, deterministic, no reliance on global root logger state.
"""

from __future__ import annotations

import json
import logging
import re
import threading
from typing import TYPE_CHECKING
from uuid import uuid4

import pytest

from open_tasks.observability.logging import (
    LoggingConfig,
    correlation_scope,
    flush_logging,
    get_active_logging_handle,
    new_run_id,
    setup_logging,
    setup_structured_logging,
    shutdown_logging,
)

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


@pytest.fixture(autouse=True)
def _cleanup_logging() -> Iterator[None]:
    yield
    shutdown_logging()


def _logger_name() -> str:
    return f"open_tasks.tests.logging.{uuid4().hex}"


def _read_json_lines(path: Path) -> list[dict[str, object]]:
    lines = path.read_text(encoding="utf-8").splitlines()
    return [json.loads(line) for line in lines]


def _file_config(tmp_path: Path, logger_name: str, **overrides: object) -> LoggingConfig:
    values: dict[str, object] = {
        "run_id": "scan-test",
        "log_dir": tmp_path,
        "logger_name": logger_name,
        "level": "DEBUG",
        "log_to_stderr": False,
    }
    values.update(overrides)
    return LoggingConfig(**values)  # type: ignore[arg-type]


@pytest.mark.unit
def test_json_lines_carry_run_id_and_extra_fields(tmp_path: Path) -> None:
    logger_name = _logger_name()
    handle = setup_structured_logging(_file_config(tmp_path, logger_name))

    logging.getLogger(logger_name).info(
        "scan complete",
        extra={"scanned_files": 3, "module_name": "core"},
    )
    handle.shutdown()

    assert handle.log_path == tmp_path / "scan-test" / "open-tasks.jsonl"
    (event,) = _read_json_lines(handle.log_path)
    assert event["message"] == "scan complete"
    assert event["level"] == "INFO"
    assert event["run_id"] == "scan-test"
    assert event["fields"] == {"scanned_files": 3, "module_name": "core"}
    assert str(event["timestamp"]).endswith("Z")


@pytest.mark.unit
def test_correlation_scope_is_attached_to_records(tmp_path: Path) -> None:
    logger_name = _logger_name()
    handle = setup_structured_logging(_file_config(tmp_path, logger_name))
    logger = logging.getLogger(logger_name)

    with correlation_scope(command="scan", scan_root="/work"):
        logger.info("inside")
    logger.info("outside")
    handle.shutdown()

    assert handle.log_path is not None
    inside, outside = _read_json_lines(handle.log_path)
    assert inside["command"] == "scan"
    assert inside["scan_root"] == "/work"
    assert "command" not in outside


@pytest.mark.unit
def test_level_filters_records(tmp_path: Path) -> None:
    logger_name = _logger_name()
    handle = setup_structured_logging(_file_config(tmp_path, logger_name, level="WARNING"))
    logger = logging.getLogger(logger_name)

    logger.info("dropped")
    logger.warning("kept")
    handle.shutdown()

    assert handle.log_path is not None
    assert [event["message"] for event in _read_json_lines(handle.log_path)] == ["kept"]


@pytest.mark.unit
def test_concurrent_producers_do_not_lose_records(tmp_path: Path) -> None:
    logger_name = _logger_name()
    handle = setup_structured_logging(_file_config(tmp_path, logger_name))
    logger = logging.getLogger(logger_name)

    def produce(worker: int) -> None:
        for index in range(25):
            logger.info("tick", extra={"worker": worker, "index": index})

    threads = [threading.Thread(target=produce, args=(worker,)) for worker in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    handle.shutdown()

    assert handle.log_path is not None
    assert len(_read_json_lines(handle.log_path)) == 100
    assert handle.dropped_records == 0


@pytest.mark.unit
def test_text_format_goes_to_stderr(capsys: pytest.CaptureFixture[str]) -> None:
    logger_name = _logger_name()
    handle = setup_structured_logging(
        LoggingConfig(run_id="scan-text", logger_name=logger_name, level="INFO")
    )

    logging.getLogger(logger_name).info("hello world", extra={"file_count": 2})
    handle.shutdown()

    err = capsys.readouterr().err
    assert f"INFO {logger_name}: hello world file_count=2" in err


@pytest.mark.unit
def test_setup_logging_reads_observability_section(tmp_path: Path) -> None:
    handle = setup_logging(
        {
            "log_level": "INFO",
            "log_format": "json",
            "log_dir": str(tmp_path),
            "log_to_stderr": False,
        },
        run_id="scan-cfg",
        logger_name=_logger_name(),
    )

    assert get_active_logging_handle() is handle
    assert handle.log_path == tmp_path / "scan-cfg" / "open-tasks.jsonl"
    assert handle.logger.level == logging.INFO


@pytest.mark.unit
def test_shutdown_is_idempotent_and_restores_propagation(tmp_path: Path) -> None:
    logger_name = _logger_name()
    handle = setup_structured_logging(_file_config(tmp_path, logger_name))

    assert handle.logger.propagate is False
    shutdown_logging()
    shutdown_logging()

    assert handle.is_shutdown
    assert handle.logger.propagate is True
    assert get_active_logging_handle() is None


@pytest.mark.unit
def test_new_setup_replaces_the_active_handle(tmp_path: Path) -> None:
    first = setup_structured_logging(_file_config(tmp_path, _logger_name(), run_id="scan-a"))
    second = setup_structured_logging(_file_config(tmp_path, _logger_name(), run_id="scan-b"))

    assert first.is_shutdown
    assert get_active_logging_handle() is second


@pytest.mark.unit
@pytest.mark.parametrize(
    "overrides",
    [{"run_id": " "}, {"queue_size": 0}, {"level": "LOUD"}, {"log_filename": "a/b.jsonl"}],
)
def test_invalid_logging_config_is_rejected(tmp_path: Path, overrides: dict[str, object]) -> None:
    with pytest.raises(ValueError):
        setup_structured_logging(_file_config(tmp_path, _logger_name(), **overrides))


@pytest.mark.unit
def test_new_run_id_shape() -> None:
    run_id = new_run_id()

    assert re.fullmatch(r"scan-\d{8}T\d{6}Z-[0-9a-f]{6}", run_id)
    assert run_id != new_run_id()


@pytest.mark.unit
def test_flush_drains_the_queue_before_shutdown(tmp_path: Path) -> None:
    logger_name = _logger_name()
    handle = setup_structured_logging(_file_config(tmp_path, logger_name))

    logging.getLogger(logger_name).info("queued")
    flush_logging()

    assert handle.log_path is not None
    assert [event["message"] for event in _read_json_lines(handle.log_path)] == ["queued"]
    assert not handle.is_shutdown
