"""Dataclass domain models with strict validation and canonical serialization."""

from __future__ import annotations

import codecs
import json
from collections.abc import Mapping
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import NoReturn

from open_tasks.constants import (
    DEFAULT_ENCODING,
    DEFAULT_EXCLUDES,
    DEFAULT_HIGH_TAGS,
    DEFAULT_INCLUDES,
    DEFAULT_LOW_TAGS,
    DEFAULT_NORMAL_TAGS,
)
from open_tasks.errors import ConfigurationError

JSONScalar = str | int | float | bool | None
JSONValue = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]


class Priority(StrEnum):
    """Closed set of task tiers; declaration order is the reporting order."""

    HIGH = "HIGH"
    NORMAL = "NORMAL"
    LOW = "LOW"

    @classmethod
    def parse(cls, value: str | Priority) -> Priority:
        if isinstance(value, Priority):
            return value
        if not isinstance(value, str):
            _fail("priority", f"expected string, got {type(value).__name__}")
        try:
            return cls(value.strip().upper())
        except ValueError:
            _fail("priority", f"unsupported priority {value!r}; expected HIGH, NORMAL or LOW")

    @property
    def label(self) -> str:
        return self.value.capitalize()


@dataclass(frozen=True, slots=True)
class Finding:
    """A single tagged comment occurrence.

    The scanner produces unattributed findings; the workspace scanner assigns
    ``path``/``package``/``module``/``context_hash`` once via :meth:`attributed`
    and containers assign ``key`` once via :meth:`keyed`.
    """

    priority: Priority
    line: int
    tag: str
    message: str
    path: str | None = None
    package: str | None = None
    module: str | None = None
    context_hash: str | None = None
    key: int | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.priority, Priority):
            object.__setattr__(self, "priority", Priority.parse(self.priority))
        if isinstance(self.line, bool) or not isinstance(self.line, int) or self.line < 1:
            _fail("Finding.line", f"must be a positive integer, got {self.line!r}")

    @property
    def is_attributed(self) -> bool:
        return self.path is not None

    def attributed(
        self,
        *,
        path: str,
        package: str,
        module: str,
        context_hash: str = "",
    ) -> Finding:
        if self.is_attributed:
            raise ValueError(f"finding at line {self.line} is already attributed to {self.path}")
        if self.key is not None:
            raise ValueError("finding must be attributed before it is inserted into a container")
        return replace(
            self,
            path=path,
            package=package,
            module=module,
            context_hash=context_hash,
        )

    def keyed(self, key: int) -> Finding:
        if self.key is not None:
            raise ValueError(f"finding already carries key {self.key}")
        return replace(self, key=key)

    def without_key(self) -> Finding:
        return replace(self, key=None)

    def match_key(self) -> tuple[str, str, str]:
        """Key used to match the same finding across two scans."""

        return (self.path or "", self.tag, self.context_hash or "")

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "priority": self.priority.value,
            "line": self.line,
            "tag": self.tag,
            "message": self.message,
            "path": self.path,
            "package": self.package,
            "module": self.module,
            "context_hash": self.context_hash,
            "key": self.key,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Finding:
        parsed = _expect_object(
            data,
            "Finding",
            required={"priority", "line", "tag", "message"},
            optional={"path", "package", "module", "context_hash", "key"},
        )
        raw_priority = parsed["priority"]
        if not isinstance(raw_priority, str):
            _fail("Finding.priority", f"expected string, got {type(raw_priority).__name__}")
        return cls(
            priority=Priority.parse(raw_priority),
            line=_as_int(parsed["line"], "Finding.line", minimum=1),
            tag=_as_str(parsed["tag"], "Finding.tag"),
            message=_as_str(parsed["message"], "Finding.message", min_len=0),
            path=_as_optional_str(parsed.get("path"), "Finding.path"),
            package=_as_optional_str(parsed.get("package"), "Finding.package", min_len=0),
            module=_as_optional_str(parsed.get("module"), "Finding.module", min_len=0),
            context_hash=_as_optional_str(
                parsed.get("context_hash"), "Finding.context_hash", min_len=0
            ),
            key=_as_optional_int(parsed.get("key"), "Finding.key"),
        )

    def to_json(self) -> str:
        return _canonical_json(self.to_dict())


@dataclass(frozen=True, slots=True)
class ScanConfiguration:
    """Immutable scan settings passed by value into compilation and scanning."""

    high: str | None = DEFAULT_HIGH_TAGS
    normal: str | None = DEFAULT_NORMAL_TAGS
    low: str | None = DEFAULT_LOW_TAGS
    ignore_case: bool = False
    as_regexp: bool = False
    includes: str = DEFAULT_INCLUDES
    excludes: str = DEFAULT_EXCLUDES
    encoding: str = DEFAULT_ENCODING
    detect_modules: bool = True
    module_name: str | None = None
    workers: int = 1

    def __post_init__(self) -> None:
        if not isinstance(self.includes, str) or not self.includes.strip():
            raise ConfigurationError("includes pattern must not be empty")
        if isinstance(self.workers, bool) or not isinstance(self.workers, int):
            raise ConfigurationError(f"workers must be an integer, got {self.workers!r}")
        if self.workers < 1:
            raise ConfigurationError("workers must be >= 1")
        try:
            codecs.lookup(self.encoding)
        except LookupError as exc:
            raise ConfigurationError(f"unknown source encoding {self.encoding!r}") from exc

    def tags_for(self, priority: Priority) -> str | None:
        if priority is Priority.HIGH:
            return self.high
        if priority is Priority.NORMAL:
            return self.normal
        return self.low

    def enabled_priorities(self) -> tuple[Priority, ...]:
        """Priorities that have at least one configured tag identifier."""

        return tuple(
            priority for priority in Priority if (self.tags_for(priority) or "").strip()
        )

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "high": self.high,
            "normal": self.normal,
            "low": self.low,
            "ignore_case": self.ignore_case,
            "as_regexp": self.as_regexp,
            "includes": self.includes,
            "excludes": self.excludes,
            "encoding": self.encoding,
            "detect_modules": self.detect_modules,
            "module_name": self.module_name,
            "workers": self.workers,
        }


def _fail(path: str, message: str) -> NoReturn:
    raise ValueError(f"{path}: {message}")


def _canonical_json(value: JSONValue) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _expect_object(
    value: object,
    path: str,
    *,
    required: set[str],
    optional: set[str] | None = None,
) -> dict[str, object]:
    if not isinstance(value, Mapping):
        _fail(path, f"expected object, got {type(value).__name__}")

    parsed: dict[str, object] = {}
    for key, item in value.items():
        if not isinstance(key, str):
            _fail(path, f"object keys must be strings, got {type(key).__name__}")
        parsed[key] = item

    allowed = required | (optional or set())
    unknown = sorted(key for key in parsed if key not in allowed)
    if unknown:
        _fail(path, f"unexpected fields: {unknown}")

    missing = sorted(key for key in required if key not in parsed)
    if missing:
        _fail(path, f"missing required fields: {missing}")

    return parsed


def _as_str(
    value: object,
    path: str,
    *,
    min_len: int = 1,
) -> str:
    if not isinstance(value, str):
        _fail(path, f"expected string, got {type(value).__name__}")
    if len(value) < min_len:
        _fail(path, f"must be at least {min_len} character(s)")
    return value


def _as_optional_str(value: object, path: str, *, min_len: int = 1) -> str | None:
    if value is None:
        return None
    return _as_str(value, path, min_len=min_len)


def _as_int(value: object, path: str, *, minimum: int | None = None) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        _fail(path, f"expected integer, got {type(value).__name__}")
    if minimum is not None and value < minimum:
        _fail(path, f"must be >= {minimum}")
    return value


def _as_optional_int(value: object, path: str) -> int | None:
    if value is None:
        return None
    return _as_int(value, path, minimum=0)


__all__ = [
    "Finding",
    "JSONScalar",
    "JSONValue",
    "Priority",
    "ScanConfiguration",
]
