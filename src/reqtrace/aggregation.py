"""Aggregation of test outcomes into one outcome per requirement.

The aggregate outcome is the outcome of highest precedence present:

    error > failed > passed > skipped > unknown

so it does not depend on evidence order or on how often an outcome occurs.
An empty evidence list aggregates to UNKNOWN.

Example:
    >>> aggregate_outcome([Outcome.PASSED, Outcome.SKIPPED])
    <Outcome.PASSED: 'passed'>
    >>> aggregate_outcome([])
    <Outcome.UNKNOWN: 'unknown'>
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from pydantic import BaseModel, ConfigDict, Field

from reqtrace.models import Evidence, Outcome, Requirement

SUMMARY_ORDER = (Outcome.PASSED, Outcome.FAILED, Outcome.ERROR, Outcome.SKIPPED, Outcome.UNKNOWN)
"""Order in which outcomes are listed in summaries and reports."""


def aggregate_outcome(outcomes: Iterable[Outcome]) -> Outcome:
    """Reduce outcomes to the one of highest precedence (UNKNOWN if empty)."""
    return max(outcomes, key=lambda outcome: outcome.precedence, default=Outcome.UNKNOWN)


def resolve_requirement(requirement: Requirement, evidence: Sequence[Evidence]) -> Requirement:
    """Return the resolved copy of a requirement.

    Args:
        requirement: Requirement as read from the feed.
        evidence: Evidence reached through the requirement's links.

    Returns:
        Copy carrying the evidence and its aggregate outcome. Deleted
        requirements always resolve to UNKNOWN with no evidence.
    """
    if requirement.is_deleted:
        return requirement.model_copy(update={"status": Outcome.UNKNOWN, "results": []})
    return requirement.model_copy(
        update={
            "status": aggregate_outcome(item.status for item in evidence),
            "results": list(evidence),
        }
    )


class OutcomeSummary(BaseModel):
    """Counters over resolved requirements.

    ``counts`` holds one entry per Outcome, so ``sum(counts.values())``
    always equals ``total``. Deleted requirements are counted under
    UNKNOWN and separately in ``deleted``.

    Attributes:
        counts: Requirements per aggregate outcome.
        deleted: Requirements with lifecycle DELETED.
        total: All requirements.
        evidence_referenced: Evidence entries over all resolved lists.
    """

    model_config = ConfigDict(frozen=True)

    counts: dict[Outcome, int] = Field(default_factory=lambda: dict.fromkeys(Outcome, 0))
    deleted: int = 0
    total: int = 0
    evidence_referenced: int = 0

    @classmethod
    def from_requirements(cls, requirements: Iterable[Requirement]) -> OutcomeSummary:
        """Count resolved requirements by outcome."""
        counts = dict.fromkeys(Outcome, 0)
        deleted = total = referenced = 0
        for requirement in requirements:
            counts[requirement.status] += 1
            total += 1
            referenced += len(requirement.results)
            if requirement.is_deleted:
                deleted += 1
        return cls(counts=counts, deleted=deleted, total=total, evidence_referenced=referenced)

    @property
    def active_total(self) -> int:
        """Requirements that are not deleted."""
        return self.total - self.deleted

    @property
    def unknown_active(self) -> int:
        """Non-deleted requirements without a known outcome."""
        return self.counts[Outcome.UNKNOWN] - self.deleted

    def count(self, outcome: Outcome) -> int:
        """Requirements whose aggregate outcome is ``outcome``."""
        return self.counts.get(outcome, 0)

    def percentage(self, outcome: Outcome) -> float:
        """Share of active requirements with an outcome, in [0, 1].

        UNKNOWN counts only active requirements. Returns 0.0 when there are
        no active requirements.
        """
        if self.active_total == 0:
            return 0.0
        count = self.unknown_active if outcome is Outcome.UNKNOWN else self.count(outcome)
        return count / self.active_total


__all__ = [
    "SUMMARY_ORDER",
    "OutcomeSummary",
    "aggregate_outcome",
    "resolve_requirement",
]
