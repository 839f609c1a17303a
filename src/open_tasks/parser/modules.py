"""
open-tasks — module classification

File: src/open_tasks/parser/modules.py

Purpose
- Guess the coarse module (build sub-project) that owns a scanned file.

What should be included in this file
- ``PathModuleDetector``: the directory enclosing the first ``/src/`` segment.
- ``DescriptorModuleDetector``: maps directories holding ``pom.xml``,
  ``build.xml`` or ``META-INF/MANIFEST.MF`` to their declared names and assigns
  each file to the longest matching directory prefix.
- ``NullModuleDetector`` for scans with module detection disabled.

Functional requirements
- Prefixes are ordered lexicographically and the last match wins; callers can
  replace the ordering with ``prefix_order``.
- No match falls back to the path heuristic, then to ``""``.

Non-functional requirements
- Descriptor parsing is best-effort: unreadable or malformed descriptors are
  logged and ignored.
"""

from __future__ import annotations

import logging
import os
import xml.etree.ElementTree as ET
from collections.abc import Callable, Iterable, Mapping, Sequence
from pathlib import Path
from typing import Protocol

_LOGGER = logging.getLogger(__name__)

MAVEN_DESCRIPTOR = "pom.xml"
ANT_DESCRIPTOR = "build.xml"
OSGI_DESCRIPTOR = "META-INF/MANIFEST.MF"

_SKIPPED_DIRS = frozenset({".git", ".hg", ".svn", "__pycache__", "node_modules"})

PrefixOrder = Callable[[Iterable[str]], Sequence[str]]


class ModuleDetector(Protocol):
    def guess_module_name(self, path: str) -> str: ...


class NullModuleDetector:
    """Module detection disabled: every file lands in the default module."""

    def guess_module_name(self, path: str) -> str:
        return ""


class PathModuleDetector:
    """``a/core/src/main/X.java`` -> ``core``."""

    def guess_module_name(self, path: str) -> str:
        normalized = path.replace("\\", "/")
        head, separator, _ = normalized.partition("/src/")
        if not separator:
            return ""
        return head.rsplit("/", 1)[-1].strip()


class DescriptorModuleDetector:
    """Resolve modules from build descriptors found under ``root``.

    Descriptors in the same directory are applied in the order ``build.xml``,
    ``META-INF/MANIFEST.MF``, ``pom.xml``; a later descriptor replaces the name
    of an earlier one.
    """

    def __init__(
        self,
        root: Path,
        *,
        prefix_order: PrefixOrder = sorted,
        fallback: ModuleDetector | None = None,
    ) -> None:
        self._root = root
        self._prefix_order = prefix_order
        self._fallback = fallback if fallback is not None else PathModuleDetector()
        self._mapping = discover_descriptor_modules(root)
        self._prefixes = tuple(prefix_order(self._mapping.keys()))

    @property
    def mapping(self) -> Mapping[str, str]:
        """Directory prefix (``""`` or ``"dir/"``) to module name."""

        return dict(self._mapping)

    def guess_module_name(self, path: str) -> str:
        normalized = path.replace("\\", "/").lstrip("/")
        guessed = ""
        for prefix in self._prefixes:
            if normalized.startswith(prefix):
                guessed = self._mapping[prefix]
        if guessed:
            return guessed
        return self._fallback.guess_module_name(normalized)


def discover_descriptor_modules(root: Path) -> dict[str, str]:
    """Walk ``root`` and map each descriptor directory prefix to a module name."""

    ant: dict[str, str] = {}
    osgi: dict[str, str] = {}
    maven: dict[str, str] = {}
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(name for name in dirnames if name not in _SKIPPED_DIRS)
        current = Path(dirpath)
        prefix = _prefix_for(current, root)
        if ANT_DESCRIPTOR in filenames:
            _remember(ant, prefix, parse_ant_project_name(current / ANT_DESCRIPTOR))
        if MAVEN_DESCRIPTOR in filenames:
            _remember(maven, prefix, parse_maven_module_name(current / MAVEN_DESCRIPTOR))
        if current.name == "META-INF" and "MANIFEST.MF" in filenames:
            parent = _prefix_for(current.parent, root)
            _remember(osgi, parent, parse_manifest_module_name(current / "MANIFEST.MF"))

    mapping: dict[str, str] = {}
    mapping.update(ant)
    mapping.update(osgi)
    mapping.update(maven)
    _LOGGER.debug("discovered module descriptors", extra={"module_count": len(mapping)})
    return mapping


def parse_maven_module_name(path: Path) -> str:
    """``<name>`` of the POM, else ``<artifactId>``, else ``""``."""

    project = _parse_xml_root(path)
    if project is None:
        return ""
    name = _child_text(project, "name")
    if name:
        return name
    return _child_text(project, "artifactId")


def parse_ant_project_name(path: Path) -> str:
    project = _parse_xml_root(path)
    if project is None:
        return ""
    return (project.get("name") or "").strip()


def parse_manifest_module_name(path: Path) -> str:
    """``Bundle-Name`` unless it is a ``%`` localisation key, else ``Bundle-SymbolicName``."""

    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        _LOGGER.warning("unable to read manifest", extra={"path": str(path), "error": str(exc)})
        return ""
    headers = parse_manifest_headers(text)
    bundle_name = headers.get("Bundle-Name", "").strip()
    if bundle_name and not bundle_name.startswith("%"):
        return bundle_name
    symbolic = headers.get("Bundle-SymbolicName", "")
    return symbolic.split(";", 1)[0].strip()


def parse_manifest_headers(text: str) -> dict[str, str]:
    """Parse ``Key: value`` headers; lines starting with a space continue the previous value."""

    headers: dict[str, str] = {}
    last_key: str | None = None
    for line in text.splitlines():
        if line.startswith(" ") and last_key is not None:
            headers[last_key] += line[1:]
            continue
        key, separator, value = line.partition(":")
        if not separator or not key.strip():
            last_key = None
            continue
        last_key = key.strip()
        headers[last_key] = value.strip()
    return headers


def _parse_xml_root(path: Path) -> ET.Element | None:
    try:
        return ET.parse(path).getroot()
    except (OSError, ET.ParseError) as exc:
        _LOGGER.warning(
            "ignoring unreadable build descriptor",
            extra={"path": str(path), "error": str(exc)},
        )
        return None


def _child_text(element: ET.Element, local_name: str) -> str:
    for child in element:
        tag = child.tag.rsplit("}", 1)[-1] if isinstance(child.tag, str) else ""
        if tag == local_name:
            return (child.text or "").strip()
    return ""


def _prefix_for(directory: Path, root: Path) -> str:
    relative = directory.relative_to(root).as_posix()
    return "" if relative == "." else f"{relative}/"


def _remember(target: dict[str, str], prefix: str, name: str) -> None:
    if name:
        target[prefix] = name


__all__ = [
    "ANT_DESCRIPTOR",
    "MAVEN_DESCRIPTOR",
    "OSGI_DESCRIPTOR",
    "DescriptorModuleDetector",
    "ModuleDetector",
    "NullModuleDetector",
    "PathModuleDetector",
    "PrefixOrder",
    "discover_descriptor_modules",
    "parse_ant_project_name",
    "parse_manifest_headers",
    "parse_manifest_module_name",
    "parse_maven_module_name",
]
