"""Correlation of requirements, links and evidence.

Phase-local maps produced by the adapters are merged into global indexes
once both ingestion phases have been joined:

- links: requirement id -> set of test identities (union, no duplicates)
- evidence: test identity -> evidence (the last map wins on collision)

``correlate`` then resolves, per requirement, the evidence reachable through
its links, and reports what could not be matched in either direction:

- orphaned links: a link names a requirement id that is not in the feed
- unreferenced evidence: evidence that no requirement's links reach

Example:
    >>> index = merge_link_maps({"R1": [id_a]}, {"R1": [id_b]})
    >>> sorted(index.get("R1"))
    [id_a, id_b]
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

import structlog

from reqtrace.aggregation import resolve_requirement
from reqtrace.models import Evidence, Requirement, RequirementLink, TestIdentity
from reqtrace.telemetry import traced

logger = structlog.get_logger(__name__)


class LinkIndex:
    """Requirement id to test identity index.

    Adding the same identity twice for a requirement keeps one entry.
    """

    def __init__(self) -> None:
        self._links: dict[str, set[TestIdentity]] = {}

    def add(self, requirement_id: str, identities: Iterable[TestIdentity]) -> None:
        """Link identities to a requirement id."""
        self._links.setdefault(requirement_id, set()).update(identities)

    def merge(self, other: LinkIndex | Mapping[str, Iterable[TestIdentity]]) -> None:
        """Union another index or adapter link map into this one."""
        items = other._links.items() if isinstance(other, LinkIndex) else other.items()
        for requirement_id, identities in items:
            self.add(requirement_id, identities)

    def get(self, requirement_id: str) -> frozenset[TestIdentity]:
        """Identities linked to a requirement id (empty if none)."""
        return frozenset(self._links.get(requirement_id, ()))

    def requirement_ids(self) -> list[str]:
        """All linked requirement ids, sorted."""
        return sorted(self._links)

    def links(self) -> list[RequirementLink]:
        """All links as records, sorted by requirement id then identity."""
        return [
            RequirementLink(requirement_id=requirement_id, identity=identity)
            for requirement_id in self.requirement_ids()
            for identity in sorted(self._links[requirement_id])
        ]

    def referenced_identities(self) -> set[TestIdentity]:
        """Every identity linked to at least one requirement id."""
        referenced: set[TestIdentity] = set()
        for identities in self._links.values():
            referenced |= identities
        return referenced

    def __len__(self) -> int:
        return len(self._links)

    def __contains__(self, requirement_id: object) -> bool:
        return requirement_id in self._links

    def __repr__(self) -> str:
        return f"LinkIndex(requirements={len(self._links)})"


def merge_link_maps(*maps: Mapping[str, Iterable[TestIdentity]]) -> LinkIndex:
    """Merge adapter link maps into one index (set union per requirement)."""
    index = LinkIndex()
    for link_map in maps:
        index.merge(link_map)
    return index


def merge_evidence_maps(
    *maps: Mapping[TestIdentity, Evidence],
) -> dict[TestIdentity, Evidence]:
    """Merge evidence maps in order; a later map wins on identity collision."""
    merged: dict[TestIdentity, Evidence] = {}
    for evidence_map in maps:
        merged.update(evidence_map)
    return merged


@dataclass(frozen=True)
class Correlation:
    """Outcome of correlating requirements with links and evidence.

    Attributes:
        requirements: Resolved requirements, in feed order.
        orphaned_links: Links to requirement ids missing from the feed.
        unreferenced: Evidence reached by no requirement, sorted by identity.
    """

    requirements: list[Requirement] = field(default_factory=list)
    orphaned_links: list[RequirementLink] = field(default_factory=list)
    unreferenced: list[Evidence] = field(default_factory=list)


@traced(operation_name="reqtrace.correlate")
def correlate(
    requirements: Iterable[Requirement],
    links: LinkIndex,
    evidence: Mapping[TestIdentity, Evidence],
) -> Correlation:
    """Resolve each requirement's evidence and find unmatched links/evidence.

    Deleted requirements resolve to UNKNOWN with no evidence. Linked
    identities without evidence are not synthesized.

    Args:
        requirements: Requirements from the feed.
        links: Global link index.
        evidence: Global evidence index.

    Returns:
        Resolved requirements plus orphaned links and unreferenced evidence.
    """
    resolved: list[Requirement] = []
    known_ids: set[str] = set()
    used: set[TestIdentity] = set()

    for requirement in requirements:
        known_ids.add(requirement.id)
        if requirement.is_deleted:
            resolved.append(resolve_requirement(requirement, []))
            continue
        matched = [
            evidence[identity]
            for identity in sorted(links.get(requirement.id))
            if identity in evidence
        ]
        used.update(item.identity for item in matched)
        resolved.append(resolve_requirement(requirement, matched))

    orphaned = [link for link in links.links() if link.requirement_id not in known_ids]
    for link in orphaned:
        logger.warning(
            "orphaned_requirement_link",
            requirement_id=link.requirement_id,
            identity=link.identity.key,
        )

    unreferenced = [evidence[identity] for identity in sorted(evidence) if identity not in used]

    logger.info(
        "correlation_completed",
        requirements=len(resolved),
        orphaned_links=len(orphaned),
        unreferenced=len(unreferenced),
    )
    return Correlation(requirements=resolved, orphaned_links=orphaned, unreferenced=unreferenced)


__all__ = [
    "Correlation",
    "LinkIndex",
    "correlate",
    "merge_evidence_maps",
    "merge_link_maps",
]
