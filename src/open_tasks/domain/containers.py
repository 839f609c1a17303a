"""
open-tasks — hierarchical finding aggregation

File: src/open_tasks/domain/containers.py

Purpose
- Aggregate attributed findings into a file → package → module → project tree
  with O(1) total and per-priority counts.

What should be included in this file
- ``AnnotationContainer`` base with a flat key index and a priority index.
- ``WorkspaceFile``, ``Package``, ``Module``, ``Project`` nodes that route each
  inserted finding into the matching child, creating children lazily.
- An explicit rebuild pass for bulk-loaded aggregates.

Functional requirements
- ``count(priority)`` is the size of the priority bucket, kept in step with
  every insertion.
- Every finding belongs to exactly one file, package, and module.
- Unknown key/name lookups raise ``NotFoundError``.

Non-functional requirements
- Finding keys are process-unique and monotonic; iteration follows insertion order.
"""

from __future__ import annotations

import itertools
import threading
from collections.abc import Iterable
from typing import Final, cast

from open_tasks.constants import (
    DEFAULT_MODULE_NAME,
    DEFAULT_PACKAGE_NAME,
)
from open_tasks.domain.models import Finding, Priority, ScanConfiguration
from open_tasks.errors import NotFoundError

PriorityArg = Priority | str | None

_KEY_LOCK: Final[threading.Lock] = threading.Lock()
_KEY_COUNTER = itertools.count()


def next_finding_key() -> int:
    """Return the next process-unique finding key."""

    with _KEY_LOCK:
        return next(_KEY_COUNTER)


def module_bucket(name: str | None) -> str:
    return name.strip() if name and name.strip() else DEFAULT_MODULE_NAME


def package_bucket(name: str | None) -> str:
    return name.strip() if name and name.strip() else DEFAULT_PACKAGE_NAME


class AnnotationContainer:
    """Owns a set of findings indexed by key and by priority."""

    kind: str = "container"

    def __init__(self, name: str) -> None:
        self._name = name
        self._findings: dict[int, Finding] = {}
        self._by_priority: dict[Priority, dict[int, Finding]] = {
            priority: {} for priority in Priority
        }

    @property
    def name(self) -> str:
        return self._name

    def add(self, finding: Finding) -> Finding:
        """Insert ``finding``, assigning a key when it has none, and return the keyed value."""

        keyed = finding if finding.key is not None else finding.keyed(next_finding_key())
        key = cast("int", keyed.key)
        if key in self._findings:
            raise ValueError(f"{self.kind} {self._name!r} already contains finding key {key}")
        self._check_accepts(keyed)
        self._findings[key] = keyed
        self._by_priority[keyed.priority][key] = keyed
        self._finding_added(keyed)
        return keyed

    def add_all(self, findings: Iterable[Finding]) -> tuple[Finding, ...]:
        return tuple(self.add(finding) for finding in findings)

    def _check_accepts(self, finding: Finding) -> None:
        """Hook for nodes that restrict which findings they hold."""

    def _finding_added(self, finding: Finding) -> None:
        """Hook for nodes that route findings into children."""

    def _reset_children(self) -> None:
        """Hook for nodes that own children."""

    def bulk_load(self, findings: Iterable[Finding]) -> None:
        """Replace the flat index with ``findings`` and derive every other index from it."""

        loaded: dict[int, Finding] = {}
        for finding in findings:
            keyed = finding if finding.key is not None else finding.keyed(next_finding_key())
            key = cast("int", keyed.key)
            if key in loaded:
                raise ValueError(f"duplicate finding key {key} in bulk load")
            loaded[key] = keyed
        self._findings = loaded
        self.rebuild()

    def rebuild(self) -> None:
        """Recompute every index from the flat finding set.

        Used after bulk loading; keys are preserved so the rebuilt tree is
        identical to the one built by incremental insertion.
        """

        snapshot = list(self._findings.values())
        self._findings = {}
        self._by_priority = {priority: {} for priority in Priority}
        self._reset_children()
        for finding in snapshot:
            self.add(finding)

    def count(self, priority: PriorityArg = None) -> int:
        if priority is None:
            return len(self._findings)
        return len(self._by_priority[Priority.parse(priority)])

    def has(self, priority: PriorityArg = None) -> bool:
        return self.count(priority) > 0

    def get(self, key: int | str) -> Finding:
        try:
            lookup = int(key)
        except (TypeError, ValueError) as exc:
            raise NotFoundError("finding", key) from exc
        finding = self._findings.get(lookup)
        if finding is None:
            raise NotFoundError("finding", key)
        return finding

    def findings(self, priority: PriorityArg = None) -> tuple[Finding, ...]:
        if priority is None:
            return tuple(self._findings.values())
        return tuple(self._by_priority[Priority.parse(priority)].values())

    def counts_by_priority(self) -> dict[Priority, int]:
        return {priority: len(bucket) for priority, bucket in self._by_priority.items()}

    def active_priorities(self, config: ScanConfiguration | None = None) -> tuple[Priority, ...]:
        """Priorities that are configured (when ``config`` is given) and have findings."""

        candidates = config.enabled_priorities() if config is not None else tuple(Priority)
        return tuple(priority for priority in candidates if self.has(priority))

    def __len__(self) -> int:
        return len(self._findings)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self._name!r}, count={self.count()})"


class WorkspaceFile(AnnotationContainer):
    """Leaf node: one scanned file with at least one finding."""

    kind = "file"

    def __init__(self, path: str, *, package_name: str = "", module_name: str = "") -> None:
        super().__init__(path)
        self.package_name = package_name
        self.module_name = module_name

    @property
    def path(self) -> str:
        return self._name

    @property
    def short_name(self) -> str:
        return self._name.rsplit("/", 1)[-1]

    def _check_accepts(self, finding: Finding) -> None:
        if (finding.path or "") != self._name:
            raise ValueError(
                f"finding for {finding.path!r} cannot be added to file {self._name!r}"
            )


class Package(AnnotationContainer):
    """Logical package/namespace; indexes its files by path."""

    kind = "package"

    def __init__(self, name: str, *, module_name: str = "") -> None:
        super().__init__(name)
        self.module_name = module_name
        self._files: dict[str, WorkspaceFile] = {}

    def _finding_added(self, finding: Finding) -> None:
        path = finding.path or ""
        workspace_file = self._files.get(path)
        if workspace_file is None:
            workspace_file = WorkspaceFile(
                path,
                package_name=self._name,
                module_name=self.module_name,
            )
            self._files[path] = workspace_file
        workspace_file.add(finding)

    def _reset_children(self) -> None:
        self._files = {}

    def files(self) -> tuple[WorkspaceFile, ...]:
        return tuple(self._files.values())

    def file(self, path: str) -> WorkspaceFile:
        try:
            return self._files[path]
        except KeyError:
            raise NotFoundError("file", path) from None

    def has_file(self, path: str) -> bool:
        return path in self._files


class Module(AnnotationContainer):
    """Coarse grouping (build sub-project); indexes packages by name."""

    kind = "module"

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self._packages: dict[str, Package] = {}

    def _finding_added(self, finding: Finding) -> None:
        name = package_bucket(finding.package)
        package = self._packages.get(name)
        if package is None:
            package = Package(name, module_name=self._name)
            self._packages[name] = package
        package.add(finding)

    def _reset_children(self) -> None:
        self._packages = {}

    def packages(self) -> tuple[Package, ...]:
        return tuple(self._packages.values())

    def package(self, name: str) -> Package:
        try:
            return self._packages[name]
        except KeyError:
            raise NotFoundError("package", name) from None

    def has_package(self, name: str) -> bool:
        return name in self._packages

    def files(self) -> tuple[WorkspaceFile, ...]:
        return tuple(item for package in self._packages.values() for item in package.files())


class Project(AnnotationContainer):
    """Root aggregate of one scan; indexes modules by name."""

    kind = "project"

    def __init__(self, name: str = "project", *, workspace_path: str = "") -> None:
        super().__init__(name)
        self.workspace_path = workspace_path
        self._modules: dict[str, Module] = {}
        # Files are indexed by path for file_for() lookups.
        self._file_index: dict[str, WorkspaceFile] = {}

    def _finding_added(self, finding: Finding) -> None:
        name = module_bucket(finding.module)
        module = self._modules.get(name)
        if module is None:
            module = Module(name)
            self._modules[name] = module
        module.add(finding)
        path = finding.path or ""
        if path not in self._file_index:
            self._file_index[path] = module.package(package_bucket(finding.package)).file(path)

    def _reset_children(self) -> None:
        self._modules = {}
        self._file_index = {}

    def modules(self) -> tuple[Module, ...]:
        return tuple(self._modules.values())

    def module(self, name: str) -> Module:
        try:
            return self._modules[name]
        except KeyError:
            raise NotFoundError("module", name) from None

    def has_module(self, name: str) -> bool:
        return name in self._modules

    def packages(self) -> tuple[Package, ...]:
        return tuple(item for module in self._modules.values() for item in module.packages())

    def package(self, name: str) -> Package:
        """Return the first package named ``name`` across modules (module order)."""

        for module in self._modules.values():
            if module.has_package(name):
                return module.package(name)
        raise NotFoundError("package", name)

    def files(self) -> tuple[WorkspaceFile, ...]:
        return tuple(item for module in self._modules.values() for item in module.files())

    def file(self, path: str) -> WorkspaceFile:
        try:
            return self._file_index[path]
        except KeyError:
            raise NotFoundError("file", path) from None

    def file_for(self, finding: Finding) -> WorkspaceFile:
        """Resolve the file that owns ``finding`` by its path attribution."""

        owner = self.file(finding.path or "")
        if finding.key is None:
            raise NotFoundError("finding", None)
        owner.get(finding.key)
        return owner

    @property
    def task_bound(self) -> int:
        """Largest number of findings held by a single module."""

        return max((module.count() for module in self._modules.values()), default=0)

    @property
    def is_single_module(self) -> bool:
        return len(self._modules) == 1

    @property
    def is_single_package(self) -> bool:
        return self.is_single_module and len(self.packages()) == 1


__all__ = [
    "AnnotationContainer",
    "Module",
    "Package",
    "Project",
    "WorkspaceFile",
    "module_bucket",
    "next_finding_key",
    "package_bucket",
]
