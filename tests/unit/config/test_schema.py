"""Unit tests for config schema validation."""

from __future__ import annotations

import pytest

from open_tasks.config.schema import (
    ConfigValidationError,
    assert_valid_config,
    default_config,
    merge_config,
    migration_guidance,
    validate_config,
)


@pytest.mark.unit
def test_default_config_is_valid_and_copied() -> None:
    first = default_config()
    first["scan"]["high"] = "CHANGED"

    assert validate_config(default_config()).is_valid
    assert default_config()["scan"]["high"] == "FIXME"


@pytest.mark.unit
def test_merge_config_deep_merges_without_mutating_inputs() -> None:
    base = default_config()
    merged = merge_config(base, {"scan": {"workers": 4}})

    assert merged["scan"]["workers"] == 4
    assert merged["scan"]["high"] == "FIXME"
    assert base["scan"]["workers"] == 1


@pytest.mark.unit
def test_unknown_keys_are_reported_with_paths() -> None:
    config = merge_config(default_config(), {"scan": {"colour": "red"}, "extra": {}})

    result = validate_config(config)

    assert not result.is_valid
    assert {issue.path for issue in result.issues} >= {"scan.colour", "extra"}


@pytest.mark.unit
@pytest.mark.parametrize(
    ("overlay", "path"),
    [
        ({"scan": {"ignore_case": "yes"}}, "scan.ignore_case"),
        ({"scan": {"includes": ""}}, "scan.includes"),
        ({"scan": {"workers": 1000}}, "scan.workers"),
        ({"observability": {"log_level": "TRACE"}}, "observability.log_level"),
        ({"observability": {"log_format": "xml"}}, "observability.log_format"),
        ({"meta": {"schema_version": 2}}, "meta.schema_version"),
    ],
)
def test_invalid_values_are_reported(overlay: dict[str, object], path: str) -> None:
    with pytest.raises(ConfigValidationError) as excinfo:
        assert_valid_config(merge_config(default_config(), overlay))

    assert path in {issue.path for issue in excinfo.value.issues}
    assert path in str(excinfo.value)


@pytest.mark.unit
def test_empty_tag_identifiers_are_valid() -> None:
    config = assert_valid_config(merge_config(default_config(), {"scan": {"low": ""}}))

    assert config["scan"]["low"] == ""


@pytest.mark.unit
def test_migration_guidance_mentions_direction() -> None:
    assert "older" in migration_guidance(0)
    assert "newer" in migration_guidance(2)
    assert migration_guidance(1) == "schema version is current"
