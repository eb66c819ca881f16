"""Traceability report model.

TraceabilityReport is the single artifact produced by a run and the input
of every exporter. It is built once from a Correlation and never mutated.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, computed_field

from reqtrace.aggregation import OutcomeSummary
from reqtrace.models import Evidence, Outcome, Requirement, RequirementLink


class TraceabilityReport(BaseModel):
    """Resolved requirements with their evidence and run statistics.

    Attributes:
        generated_at: When the report was built (UTC).
        reporter_version: reqtrace version that built the report.
        requirements: Resolved requirements, sorted by id.
        unreferenced: Evidence reached by no requirement, sorted by identity.
        orphaned_links: Links naming requirement ids absent from the feed.
        summary: Outcome counters over ``requirements``.
        total_evidence: Size of the global evidence index.

    Example:
        >>> report = TraceabilityReport.build(correlation.requirements, ...)
        >>> report.summary.count(Outcome.FAILED)
        2
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    reporter_version: str
    requirements: list[Requirement] = Field(default_factory=list)
    unreferenced: list[Evidence] = Field(default_factory=list)
    orphaned_links: list[RequirementLink] = Field(default_factory=list)
    summary: OutcomeSummary = Field(default_factory=OutcomeSummary)
    total_evidence: int = Field(default=0, ge=0)

    @classmethod
    def build(
        cls,
        requirements: list[Requirement],
        unreferenced: list[Evidence],
        orphaned_links: list[RequirementLink],
        total_evidence: int,
        reporter_version: str,
    ) -> TraceabilityReport:
        """Build a report from resolved requirements."""
        return cls(
            reporter_version=reporter_version,
            requirements=sorted(requirements, key=lambda requirement: requirement.id),
            unreferenced=unreferenced,
            orphaned_links=orphaned_links,
            summary=OutcomeSummary.from_requirements(requirements),
            total_evidence=total_evidence,
        )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def tested(self) -> list[str]:
        """Ids of active requirements with a known outcome."""
        return [requirement.id for requirement in self.tested_requirements()]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def untested(self) -> list[str]:
        """Ids of active requirements without a known outcome."""
        return [requirement.id for requirement in self.untested_requirements()]

    def tested_requirements(self) -> list[Requirement]:
        """Active requirements with a known outcome, in report order."""
        return [
            requirement
            for requirement in self.requirements
            if not requirement.is_deleted and requirement.status is not Outcome.UNKNOWN
        ]

    def untested_requirements(self) -> list[Requirement]:
        """Active requirements without a known outcome, in report order."""
        return [
            requirement
            for requirement in self.requirements
            if not requirement.is_deleted and requirement.status is Outcome.UNKNOWN
        ]

    def requirement(self, requirement_id: str) -> Requirement | None:
        """Look up a resolved requirement by id."""
        for requirement in self.requirements:
            if requirement.id == requirement_id:
                return requirement
        return None

    def at_or_above(self, outcome: Outcome) -> list[Requirement]:
        """Requirements whose aggregate outcome ranks at least ``outcome``."""
        return [
            requirement
            for requirement in self.requirements
            if requirement.status.precedence >= outcome.precedence
        ]


__all__ = ["TraceabilityReport"]
