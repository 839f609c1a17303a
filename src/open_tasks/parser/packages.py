"""Package/namespace classification from in-file declarations."""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from open_tasks.constants import PACKAGE_NOT_APPLICABLE

_JAVA_PACKAGE_RE = re.compile(r"^\s*package\s+([^;]+);")
_CSHARP_NAMESPACE_RE = re.compile(r"^\s*namespace\s+(.*)$")


@runtime_checkable
class PackageDetector(Protocol):
    """Strategy that guesses a package name for one source dialect."""

    def accepts(self, filename: str) -> bool: ...

    def detect(self, lines: Iterable[str]) -> str: ...


class JavaPackageDetector:
    """``package com.acme.core;`` declarations in ``*.java`` files."""

    def accepts(self, filename: str) -> bool:
        return filename.endswith(".java")

    def detect(self, lines: Iterable[str]) -> str:
        for line in lines:
            matched = _JAVA_PACKAGE_RE.match(line)
            if matched is not None:
                return matched.group(1).strip()
        return PACKAGE_NOT_APPLICABLE


class CsharpNamespaceDetector:
    """``namespace Acme.Core`` declarations in ``*.cs`` files, with or without ``{``."""

    def accepts(self, filename: str) -> bool:
        return filename.endswith(".cs")

    def detect(self, lines: Iterable[str]) -> str:
        for line in lines:
            matched = _CSHARP_NAMESPACE_RE.match(line)
            if matched is None:
                continue
            name = matched.group(1).split("{", 1)[0].strip()
            # File-scoped namespaces end in ';'.
            return name.rstrip(";").strip()
        return PACKAGE_NOT_APPLICABLE


PACKAGE_DETECTORS: tuple[PackageDetector, ...] = (
    JavaPackageDetector(),
    CsharpNamespaceDetector(),
)


def detector_for(
    filename: str,
    detectors: Iterable[PackageDetector] = PACKAGE_DETECTORS,
) -> PackageDetector | None:
    """Return the first detector that accepts ``filename``."""

    for detector in detectors:
        if detector.accepts(filename):
            return detector
    return None


def detect_package_name(
    filename: str,
    lines: Iterable[str],
    detectors: Iterable[PackageDetector] = PACKAGE_DETECTORS,
) -> str:
    detector = detector_for(filename, detectors)
    if detector is None:
        return PACKAGE_NOT_APPLICABLE
    return detector.detect(lines)


__all__ = [
    "PACKAGE_DETECTORS",
    "CsharpNamespaceDetector",
    "JavaPackageDetector",
    "PackageDetector",
    "detect_package_name",
    "detector_for",
]
