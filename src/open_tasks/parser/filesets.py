"""Ant-style include/exclude file selection relative to a workspace root."""

from __future__ import annotations

import os
import re
from collections.abc import Sequence
from functools import partial
from pathlib import Path
from typing import NoReturn

from open_tasks.errors import ConfigurationError, ScanIOError

# Version-control and tool metadata never scanned unless default excludes are disabled.
DEFAULT_EXCLUDED_DIRS: frozenset[str] = frozenset(
    {".git", ".hg", ".svn", ".bzr", "CVS", "_darcs", ".cache", "__pycache__"}
)

_PATTERN_SPLIT_RE = re.compile(r"[,\s]+")


def split_patterns(patterns: str | Sequence[str] | None) -> tuple[str, ...]:
    """Split a comma/whitespace separated pattern list, dropping blanks and duplicates."""

    if patterns is None:
        return ()
    raw = [patterns] if isinstance(patterns, str) else list(patterns)
    result: list[str] = []
    for chunk in raw:
        for token in _PATTERN_SPLIT_RE.split(chunk.strip()):
            normalized = _normalize_pattern(token)
            if normalized and normalized not in result:
                result.append(normalized)
    return tuple(result)


def ant_pattern_to_regex(pattern: str) -> re.Pattern[str]:
    """Translate ``**``/``*``/``?`` wildcards into an anchored regular expression."""

    normalized = _normalize_pattern(pattern)
    if not normalized:
        raise ConfigurationError("file pattern must not be empty")
    segments = normalized.split("/")
    parts: list[str] = []
    for index, segment in enumerate(segments):
        last = index == len(segments) - 1
        if segment == "**":
            parts.append(".*" if last else "(?:[^/]*/)*")
            continue
        parts.append(_segment_regex(segment))
        if not last:
            parts.append("/")
    return re.compile("^" + "".join(parts) + "$")


class FileSet:
    """Compiled include/exclude patterns."""

    def __init__(
        self,
        includes: str | Sequence[str],
        excludes: str | Sequence[str] | None = None,
        *,
        default_excludes: bool = True,
    ) -> None:
        self.includes = split_patterns(includes)
        if not self.includes:
            raise ConfigurationError("includes pattern must not be empty")
        self.excludes = split_patterns(excludes)
        self.default_excludes = default_excludes
        self._include_rules = tuple(ant_pattern_to_regex(item) for item in self.includes)
        self._exclude_rules = tuple(ant_pattern_to_regex(item) for item in self.excludes)

    def matches(self, rel_path: str) -> bool:
        if not any(rule.match(rel_path) for rule in self._include_rules):
            return False
        return not any(rule.match(rel_path) for rule in self._exclude_rules)

    def find_files(self, root: Path) -> list[str]:
        """Return the sorted POSIX paths (relative to ``root``) selected by this set."""

        if not root.is_dir():
            raise ConfigurationError(f"workspace root {str(root)!r} is not a directory")

        discovered: list[str] = []
        walk = os.walk(root, onerror=partial(_raise_unreadable_directory, root))
        for dirpath, dirnames, filenames in walk:
            if self.default_excludes:
                dirnames[:] = [name for name in dirnames if name not in DEFAULT_EXCLUDED_DIRS]
            dirnames.sort()
            current = Path(dirpath)
            for filename in filenames:
                rel_path = (current / filename).relative_to(root).as_posix()
                if self.matches(rel_path):
                    discovered.append(rel_path)
        return sorted(discovered)

    def describe(self) -> str:
        text = f"includes={','.join(self.includes)!r}"
        if self.excludes:
            text += f" excludes={','.join(self.excludes)!r}"
        return text


def find_files(
    root: Path,
    includes: str | Sequence[str],
    excludes: str | Sequence[str] | None = None,
    *,
    default_excludes: bool = True,
) -> list[str]:
    return FileSet(includes, excludes, default_excludes=default_excludes).find_files(root)


def _raise_unreadable_directory(root: Path, exc: OSError) -> NoReturn:
    """``os.walk`` error hook: a directory that cannot be listed aborts the scan."""

    name = os.fsdecode(exc.filename) if exc.filename is not None else str(root)
    if Path(name).is_relative_to(root):
        name = Path(name).relative_to(root).as_posix()
    raise ScanIOError(name, exc.strerror or str(exc)) from exc


def _normalize_pattern(value: str) -> str:
    raw = value.strip().replace("\\", "/")
    if not raw:
        return ""
    if raw.endswith("/"):
        raw += "**"
    while raw.startswith("./"):
        raw = raw[2:]
    return raw.lstrip("/")


def _segment_regex(segment: str) -> str:
    pieces: list[str] = []
    for char in segment:
        if char == "*":
            pieces.append("[^/]*")
        elif char == "?":
            pieces.append("[^/]")
        else:
            pieces.append(re.escape(char))
    return "".join(pieces)


__all__ = [
    "DEFAULT_EXCLUDED_DIRS",
    "FileSet",
    "ant_pattern_to_regex",
    "find_files",
    "split_patterns",
]
