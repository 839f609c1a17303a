"""Stable constants shared across scanner, aggregation, and persistence."""

from __future__ import annotations

from typing import Final

# Default tag identifiers per priority tier.
DEFAULT_HIGH_TAGS: Final[str] = "FIXME"
DEFAULT_NORMAL_TAGS: Final[str] = "TODO"
DEFAULT_LOW_TAGS: Final[str] = "@deprecated"

DEFAULT_INCLUDES: Final[str] = "**/*"
DEFAULT_EXCLUDES: Final[str] = ""
DEFAULT_ENCODING: Final[str] = "utf-8"

# Attribution sentinels.
PACKAGE_NOT_APPLICABLE: Final[str] = "n/a"
DEFAULT_PACKAGE_NAME: Final[str] = "Default Package"
DEFAULT_MODULE_NAME: Final[str] = "Default Module"

# Lines before/after a finding that feed its context hash.
CONTEXT_HASH_RADIUS: Final[int] = 3

# Schema versions for persisted contracts.
CONFIG_SCHEMA_VERSION: Final[int] = 1
RESULTS_SCHEMA_VERSION: Final[int] = 1

__all__ = [
    "CONFIG_SCHEMA_VERSION",
    "CONTEXT_HASH_RADIUS",
    "DEFAULT_ENCODING",
    "DEFAULT_EXCLUDES",
    "DEFAULT_HIGH_TAGS",
    "DEFAULT_INCLUDES",
    "DEFAULT_LOW_TAGS",
    "DEFAULT_MODULE_NAME",
    "DEFAULT_NORMAL_TAGS",
    "DEFAULT_PACKAGE_NAME",
    "PACKAGE_NOT_APPLICABLE",
    "RESULTS_SCHEMA_VERSION",
]
