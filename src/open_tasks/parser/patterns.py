"""
open-tasks — tag-identifier pattern compilation

File: src/open_tasks/parser/patterns.py

Purpose
- Turn the comma-separated tag identifiers configured per priority tier into a
  single compiled rule per tier.

What should be included in this file
- Literal-token escaping with word-boundary anchoring.
- Regular-expression mode where the identifiers are used as a pattern.
- ``TagRules``: the immutable per-tier rule set consumed by the line scanner.

Functional requirements
- Blank identifiers disable a tier.
- Each rule knows which group holds the tag and which holds the message.
- Invalid patterns raise ``ConfigurationError`` at compile time.

Non-functional requirements
- Stateless; no process-wide pattern registry.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass

from open_tasks.domain.models import Priority, ScanConfiguration
from open_tasks.errors import ConfigurationError

_RULE_TEMPLATE = "^.*({alternatives})(.*)$"


@dataclass(frozen=True, slots=True)
class TagRule:
    """A compiled tier rule plus the group numbers of tag and message."""

    pattern: re.Pattern[str]
    tag_group: int = 1
    message_group: int = 2

    def match(self, line: str) -> tuple[str, str] | None:
        """Return ``(tag, raw_message)`` when the whole line matches."""

        matched = self.pattern.match(line)
        if matched is None:
            return None
        return matched.group(self.tag_group) or "", matched.group(self.message_group) or ""


@dataclass(frozen=True, slots=True)
class TagRules:
    """Compiled rule per priority tier; ``None`` marks a disabled tier."""

    high: TagRule | None
    normal: TagRule | None
    low: TagRule | None
    ignore_case: bool = False

    def rule_for(self, priority: Priority) -> TagRule | None:
        if priority is Priority.HIGH:
            return self.high
        if priority is Priority.NORMAL:
            return self.normal
        return self.low

    def enabled(self) -> Iterator[tuple[Priority, TagRule]]:
        """Yield ``(priority, rule)`` pairs in tier order, skipping disabled tiers."""

        for priority in Priority:
            rule = self.rule_for(priority)
            if rule is not None:
                yield priority, rule

    def enabled_priorities(self) -> tuple[Priority, ...]:
        return tuple(priority for priority, _ in self.enabled())


def split_identifiers(identifiers: str) -> tuple[str, ...]:
    """Split on commas, trim each token and drop blanks."""

    return tuple(token.strip() for token in identifiers.split(",") if token.strip())


def literal_alternative(token: str) -> str:
    escaped = re.escape(token)
    if token[0].isalnum():
        return rf"\b{escaped}\b"
    return rf"{escaped}\b"


def compile_tag_pattern(
    identifiers: str | None,
    *,
    ignore_case: bool = False,
    as_regexp: bool = False,
) -> TagRule | None:
    """Compile one tier's identifiers into a rule, or ``None`` for a blank tier.

    In regexp mode an expression that already declares two or more groups is
    used verbatim (group 1 tag, group 2 message). Any other expression, and
    every literal alternation, is wrapped as ``^.*(expr)(.*)$`` so the message
    is the last group.
    """

    if identifiers is None or not identifiers.strip():
        return None

    if as_regexp:
        source = identifiers.strip()
    else:
        tokens = split_identifiers(identifiers)
        if not tokens:
            return None
        source = "|".join(literal_alternative(token) for token in tokens)

    flags = re.IGNORECASE if ignore_case else 0
    try:
        if as_regexp:
            candidate = re.compile(source, flags)
            if candidate.groups >= 2:
                return TagRule(pattern=candidate)
        wrapped = re.compile(_RULE_TEMPLATE.format(alternatives=source), flags)
    except re.error as exc:
        raise ConfigurationError(
            f"invalid tag identifiers {identifiers!r}: {exc}",
            identifiers=identifiers,
        ) from exc
    return TagRule(pattern=wrapped, tag_group=1, message_group=wrapped.groups)


def compile_tag_rules(config: ScanConfiguration) -> TagRules:
    """Compile all three tiers of ``config``; the first invalid tier raises."""

    compiled = {
        priority: compile_tag_pattern(
            config.tags_for(priority),
            ignore_case=config.ignore_case,
            as_regexp=config.as_regexp,
        )
        for priority in Priority
    }
    return TagRules(
        high=compiled[Priority.HIGH],
        normal=compiled[Priority.NORMAL],
        low=compiled[Priority.LOW],
        ignore_case=config.ignore_case,
    )


__all__ = [
    "TagRule",
    "TagRules",
    "compile_tag_pattern",
    "compile_tag_rules",
    "literal_alternative",
    "split_identifiers",
]
