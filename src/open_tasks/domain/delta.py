"""Comparison of two successive scan aggregates."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass

from open_tasks.domain.containers import Project
from open_tasks.domain.models import Finding, Priority

_LOGGER = logging.getLogger(__name__)

MatchKey = tuple[str, str, str]


@dataclass(frozen=True, slots=True)
class ResultDelta:
    """Signed count difference plus the findings that appeared or disappeared.

    ``new`` keeps the insertion order of the current project and ``fixed`` the
    insertion order of the previous one.
    """

    delta: int
    new: tuple[Finding, ...] = ()
    fixed: tuple[Finding, ...] = ()
    has_previous: bool = False

    @property
    def new_count(self) -> int:
        return len(self.new)

    @property
    def fixed_count(self) -> int:
        return len(self.fixed)

    def new_by_priority(self) -> dict[Priority, int]:
        return _tally(self.new)

    def fixed_by_priority(self) -> dict[Priority, int]:
        return _tally(self.fixed)

    @property
    def signed(self) -> str:
        """Render the delta as ``+N``, ``-N`` or ``±0``."""

        if self.delta == 0:
            return "±0"
        return f"{self.delta:+d}"


def compute_delta(current: Project, previous: Project | None = None) -> ResultDelta:
    """Compare ``current`` against ``previous``.

    Without a previous aggregate there is nothing to compare against: the delta
    is 0 and no finding is reported as new or fixed.
    Findings are matched by ``Finding.match_key()``; duplicates of one key are
    paired off one by one, so three occurrences against two leave one new.
    """

    if previous is None:
        return ResultDelta(delta=0, has_previous=False)

    current_findings = current.findings()
    previous_findings = previous.findings()
    new = _unmatched(current_findings, previous_findings)
    fixed = _unmatched(previous_findings, current_findings)
    result = ResultDelta(
        delta=current.count() - previous.count(),
        new=new,
        fixed=fixed,
        has_previous=True,
    )
    _LOGGER.info(
        "computed result delta",
        extra={
            "delta": result.delta,
            "new_count": result.new_count,
            "fixed_count": result.fixed_count,
        },
    )
    return result


def _unmatched(source: tuple[Finding, ...], other: tuple[Finding, ...]) -> tuple[Finding, ...]:
    remaining: Counter[MatchKey] = Counter(finding.match_key() for finding in other)
    unmatched: list[Finding] = []
    for finding in source:
        key = finding.match_key()
        if remaining[key] > 0:
            remaining[key] -= 1
        else:
            unmatched.append(finding)
    return tuple(unmatched)


def _tally(findings: tuple[Finding, ...]) -> dict[Priority, int]:
    counts = {priority: 0 for priority in Priority}
    for finding in findings:
        counts[finding.priority] += 1
    return counts


__all__ = ["MatchKey", "ResultDelta", "compute_delta"]
