"""Unit tests for core domain models."""

from __future__ import annotations

import json

import pytest

from open_tasks.domain.models import Finding, Priority, ScanConfiguration
from open_tasks.errors import ConfigurationError


def _finding(**overrides: object) -> Finding:
    values: dict[str, object] = {
        "priority": Priority.NORMAL,
        "line": 3,
        "tag": "TODO",
        "message": "wire it",
    }
    values.update(overrides)
    return Finding(**values)  # type: ignore[arg-type]


@pytest.mark.unit
@pytest.mark.parametrize(
    ("raw", "expected"),
    [("HIGH", Priority.HIGH), (" normal ", Priority.NORMAL), ("low", Priority.LOW)],
)
def test_priority_parse(raw: str, expected: Priority) -> None:
    assert Priority.parse(raw) is expected


@pytest.mark.unit
def test_priority_parse_rejects_unknown_values() -> None:
    with pytest.raises(ValueError, match="unsupported priority"):
        Priority.parse("urgent")


@pytest.mark.unit
def test_priority_order_and_labels() -> None:
    assert list(Priority) == [Priority.HIGH, Priority.NORMAL, Priority.LOW]
    assert [priority.label for priority in Priority] == ["High", "Normal", "Low"]


@pytest.mark.unit
def test_finding_coerces_string_priority() -> None:
    assert _finding(priority="high").priority is Priority.HIGH


@pytest.mark.unit
@pytest.mark.parametrize("line", [0, -1, True])
def test_finding_rejects_invalid_line_numbers(line: object) -> None:
    with pytest.raises(ValueError):
        _finding(line=line)


@pytest.mark.unit
def test_attribution_happens_once() -> None:
    attributed = _finding().attributed(path="a.txt", package="n/a", module="", context_hash="h")

    assert attributed.is_attributed
    assert attributed.match_key() == ("a.txt", "TODO", "h")
    with pytest.raises(ValueError, match="already attributed"):
        attributed.attributed(path="b.txt", package="n/a", module="")


@pytest.mark.unit
def test_key_is_assigned_once() -> None:
    keyed = _finding().keyed(7)

    assert keyed.key == 7
    assert keyed.without_key().key is None
    with pytest.raises(ValueError, match="already carries key"):
        keyed.keyed(8)


@pytest.mark.unit
def test_keyed_findings_cannot_be_attributed() -> None:
    with pytest.raises(ValueError):
        _finding().keyed(1).attributed(path="a.txt", package="", module="")


@pytest.mark.unit
def test_finding_dict_round_trip_and_canonical_json() -> None:
    finding = _finding().attributed(path="a.txt", package="p", module="m", context_hash="h")

    assert Finding.from_dict(finding.to_dict()) == finding
    assert json.loads(finding.to_json())["priority"] == "NORMAL"
    assert finding.to_json() == json.dumps(
        finding.to_dict(), sort_keys=True, separators=(",", ":"), ensure_ascii=False
    )


@pytest.mark.unit
def test_finding_from_dict_rejects_unknown_and_missing_fields() -> None:
    payload = _finding().to_dict()
    with pytest.raises(ValueError, match="unexpected fields"):
        Finding.from_dict({**payload, "extra": 1})
    payload.pop("tag")
    with pytest.raises(ValueError, match="missing required fields"):
        Finding.from_dict(payload)


@pytest.mark.unit
def test_scan_configuration_defaults() -> None:
    config = ScanConfiguration()

    assert (config.high, config.normal, config.low) == ("FIXME", "TODO", "@deprecated")
    assert config.enabled_priorities() == (Priority.HIGH, Priority.NORMAL, Priority.LOW)
    assert config.to_dict()["workers"] == 1


@pytest.mark.unit
def test_scan_configuration_enabled_priorities_skip_blank_tiers() -> None:
    config = ScanConfiguration(normal="  ", low=None)

    assert config.enabled_priorities() == (Priority.HIGH,)
    assert config.tags_for(Priority.NORMAL) == "  "


@pytest.mark.unit
@pytest.mark.parametrize(
    "overrides",
    [{"workers": 0}, {"workers": "2"}, {"includes": " "}, {"encoding": "no-such-codec"}],
)
def test_scan_configuration_rejects_invalid_values(overrides: dict[str, object]) -> None:
    with pytest.raises(ConfigurationError):
        ScanConfiguration(**overrides)  # type: ignore[arg-type]
