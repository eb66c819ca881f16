"""Concurrent two-phase ingestion of links and evidence.

The coordinator runs two phases in parallel on a two-worker thread pool:

    links:   link adapter over every link root   -> phase-local LinkIndex
    results: result adapter over every result root -> phase-local evidence map

Within a phase, roots are scanned sequentially in configured order and a
later root wins on identity collision. Meanwhile the coordinating thread
loads the requirement feed. Both phases are always joined before the
coordinator returns or raises; phases never share writable state, each one
hands back a PhaseOutcome holding either its value or its error.

Error surfacing after the join:

1. Feed failure: phase errors are logged, the feed loader's error is raised.
2. Otherwise the first phase error in dispatch order (links, then results)
   is raised as IngestionError.

Example:
    >>> coordinator = IngestionCoordinator(
    ...     link_adapter=PythonSourceLinkAdapter(),
    ...     result_adapter=JUnitResultAdapter(),
    ...     link_roots=[Path("tests")],
    ...     result_roots=[Path("target/test-reports")],
    ...     feed_loader=lambda: load_requirements(Path("requirements.json")),
    ... )
    >>> result = coordinator.run()
    >>> len(result.evidence)
    42
"""

from __future__ import annotations

import contextvars
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, TypeVar

import structlog

from reqtrace.correlation import LinkIndex, merge_evidence_maps
from reqtrace.errors import IngestionError, ReqTraceError
from reqtrace.telemetry import traced

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from pathlib import Path

    from reqtrace.adapters.base import LinkAdapter, ResultAdapter
    from reqtrace.models import Evidence, Requirement, TestIdentity

logger = structlog.get_logger(__name__)

T = TypeVar("T")

LINK_PHASE = "links"
RESULT_PHASE = "results"


@dataclass(frozen=True)
class PhaseOutcome(Generic[T]):
    """Value or error of one ingestion phase.

    Attributes:
        phase: Phase name.
        value: Phase-local result, None if the phase failed.
        error: First exception raised by the phase, if any.
    """

    phase: str
    value: T | None = None
    error: Exception | None = None

    @property
    def failed(self) -> bool:
        """Whether the phase stopped on an error."""
        return self.error is not None


@dataclass(frozen=True)
class IngestionResult:
    """Merged output of a successful ingestion.

    Attributes:
        requirements: Requirements from the feed, in feed order.
        links: Global link index.
        evidence: Global evidence index.
    """

    requirements: list[Requirement]
    links: LinkIndex
    evidence: dict[TestIdentity, Evidence]


class IngestionCoordinator:
    """Runs the link and result phases concurrently and joins them.

    No timeouts and no cancellation: a run ends when both phases have
    finished.

    Args:
        link_adapter: Adapter producing requirement links.
        result_adapter: Adapter producing evidence.
        link_roots: Roots scanned by the link phase, in order.
        result_roots: Roots scanned by the result phase, in order.
        feed_loader: Loads and validates the requirement feed.
    """

    def __init__(
        self,
        link_adapter: LinkAdapter,
        result_adapter: ResultAdapter,
        link_roots: Sequence[Path | None],
        result_roots: Sequence[Path | None],
        feed_loader: Callable[[], list[Requirement]],
    ) -> None:
        self._link_adapter = link_adapter
        self._result_adapter = result_adapter
        self._link_roots = list(link_roots)
        self._result_roots = list(result_roots)
        self._feed_loader = feed_loader

    @traced(operation_name="reqtrace.ingest")
    def run(self) -> IngestionResult:
        """Ingest links, evidence and the requirement feed.

        Returns:
            Requirements plus the merged global link and evidence indexes.

        Raises:
            ConfigurationError: If the requirement feed cannot be used.
            IngestionError: If a phase failed.
        """
        log = logger.bind(
            link_adapter=self._link_adapter.name,
            result_adapter=self._result_adapter.name,
        )
        log.info(
            "ingestion_started",
            link_roots=len(self._link_roots),
            result_roots=len(self._result_roots),
        )

        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="reqtrace-ingest") as executor:
            # each phase gets its own context copy so spans and bound log
            # context follow it into the worker thread
            link_future = executor.submit(contextvars.copy_context().run, self._run_link_phase)
            result_future = executor.submit(contextvars.copy_context().run, self._run_result_phase)

            try:
                requirements = self._feed_loader()
            except Exception:
                # the feed error wins; phase outcomes are only logged
                outcomes = (
                    self._join(link_future, LINK_PHASE),
                    self._join(result_future, RESULT_PHASE),
                )
                for outcome in outcomes:
                    if outcome.failed:
                        log.error(
                            "ingestion_phase_failed",
                            phase=outcome.phase,
                            error=str(outcome.error),
                        )
                raise

            link_outcome = self._join(link_future, LINK_PHASE)
            result_outcome = self._join(result_future, RESULT_PHASE)

        for outcome in (link_outcome, result_outcome):
            if outcome.error is not None:
                raise _as_ingestion_error(outcome.phase, outcome.error) from outcome.error

        links = link_outcome.value if link_outcome.value is not None else LinkIndex()
        evidence = result_outcome.value if result_outcome.value is not None else {}

        log.info(
            "ingestion_completed",
            requirements=len(requirements),
            linked_requirements=len(links),
            evidence=len(evidence),
        )
        return IngestionResult(requirements=requirements, links=links, evidence=evidence)

    @traced(operation_name="reqtrace.ingest.links")
    def _run_link_phase(self) -> PhaseOutcome[LinkIndex]:
        index = LinkIndex()
        for root in self._link_roots:
            logger.debug("link_phase_root_started", root=str(root))
            try:
                index.merge(self._link_adapter.scan_for_links(root))
            except Exception as e:
                return PhaseOutcome(phase=LINK_PHASE, error=e)
        return PhaseOutcome(phase=LINK_PHASE, value=index)

    @traced(operation_name="reqtrace.ingest.results")
    def _run_result_phase(self) -> PhaseOutcome[dict[TestIdentity, Evidence]]:
        evidence: dict[TestIdentity, Evidence] = {}
        for root in self._result_roots:
            logger.debug("result_phase_root_started", root=str(root))
            try:
                found = self._result_adapter.scan_for_evidence(root)
                evidence = merge_evidence_maps(evidence, found)
            except Exception as e:
                return PhaseOutcome(phase=RESULT_PHASE, error=e)
        return PhaseOutcome(phase=RESULT_PHASE, value=evidence)

    @staticmethod
    def _join(future: Future[PhaseOutcome[T]], phase: str) -> PhaseOutcome[T]:
        """Wait for a phase; an interrupt while waiting does not abandon it."""
        while True:
            try:
                return future.result()
            except KeyboardInterrupt:
                logger.warning("ingestion_wait_interrupted", phase=phase)


def _as_ingestion_error(phase: str, error: Exception) -> IngestionError:
    if isinstance(error, IngestionError):
        return IngestionError(
            error.message, phase=phase, root=error.root, details=dict(error.details)
        )
    if isinstance(error, ReqTraceError):
        return IngestionError(error.message, phase=phase, details=dict(error.details))
    return IngestionError(
        f"{phase} phase failed",
        phase=phase,
        details={"error": f"{type(error).__name__}: {error}"},
    )


__all__ = [
    "IngestionCoordinator",
    "IngestionResult",
    "LINK_PHASE",
    "PhaseOutcome",
    "RESULT_PHASE",
]
