"""Error taxonomy shared by pattern compilation, scanning, and lookups."""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Raised for invalid tag identifiers, file patterns, or configuration values.

    ``identifiers`` carries the offending tag-identifier string when the failure
    comes from pattern compilation.
    """

    def __init__(self, message: str, *, identifiers: str | None = None) -> None:
        super().__init__(message)
        self.identifiers = identifiers


class ScanIOError(OSError):
    """Raised when a workspace file cannot be opened or decoded."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"unable to read {path}: {reason}")
        self.path = path
        self.reason = reason


class NotFoundError(LookupError):
    """Raised when a finding, module, package, or file lookup misses."""

    def __init__(self, kind: str, name: object) -> None:
        super().__init__(f"{kind} not found: {name!r}")
        self.kind = kind
        self.name = name


__all__ = ["ConfigurationError", "NotFoundError", "ScanIOError"]
