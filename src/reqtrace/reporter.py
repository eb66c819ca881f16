"""Run orchestration: ingest, correlate, aggregate, export.

Example:
    >>> settings = load_settings(Path("reqtrace.yaml"))
    >>> report = generate_report(settings)
    >>> report.summary.count(Outcome.PASSED)
    12
    >>> run(settings)
    [PosixPath('target/reqtrace/reqtrace-report.html'), ...]
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from reqtrace import __version__
from reqtrace.adapters import adapters_for
from reqtrace.correlation import correlate
from reqtrace.feed import load_requirements, merge_feeds
from reqtrace.ingestion import IngestionCoordinator
from reqtrace.report import TraceabilityReport, export_html, export_json
from reqtrace.telemetry import traced

if TYPE_CHECKING:
    from pathlib import Path

    from reqtrace.config import ReqTraceSettings
    from reqtrace.models import Requirement

logger = structlog.get_logger(__name__)


def _feed_loader(settings: ReqTraceSettings) -> list[Requirement]:
    requirements = load_requirements(settings.requirements_file)
    if settings.local_requirements_file is None:
        return requirements
    return merge_feeds(requirements, load_requirements(settings.local_requirements_file))


@traced(operation_name="reqtrace.generate_report")
def generate_report(settings: ReqTraceSettings) -> TraceabilityReport:
    """Build the traceability report for a run.

    Args:
        settings: Run settings.

    Returns:
        The report with resolved requirements and statistics.

    Raises:
        ConfigurationError: If the requirement feed cannot be used.
        IngestionError: If an ingestion phase failed.
    """
    link_adapter, result_adapter = adapters_for(settings.source_kind, settings)
    coordinator = IngestionCoordinator(
        link_adapter=link_adapter,
        result_adapter=result_adapter,
        link_roots=settings.link_roots,
        result_roots=settings.result_roots,
        feed_loader=lambda: _feed_loader(settings),
    )
    ingested = coordinator.run()

    correlation = correlate(ingested.requirements, ingested.links, ingested.evidence)
    report = TraceabilityReport.build(
        requirements=correlation.requirements,
        unreferenced=correlation.unreferenced,
        orphaned_links=correlation.orphaned_links,
        total_evidence=len(ingested.evidence),
        reporter_version=__version__,
    )

    logger.info(
        "report_generated",
        requirements=report.summary.total,
        tested=len(report.tested),
        untested=len(report.untested),
    )
    return report


def export_report(report: TraceabilityReport, settings: ReqTraceSettings) -> list[Path]:
    """Export a report in every configured format.

    Args:
        report: Report to export.
        settings: Settings naming formats, output directory and template.

    Returns:
        Written paths, in configured format order.
    """
    written: list[Path] = []
    for fmt, path in settings.output_paths().items():
        if fmt == "html":
            written.append(export_html(report, path, template_dir=settings.template_dir))
        else:
            written.append(export_json(report, path))
    return written


def run(settings: ReqTraceSettings) -> list[Path]:
    """Generate the report and export it.

    Nothing is written when report generation fails.

    Args:
        settings: Run settings.

    Returns:
        Written report paths.
    """
    return export_report(generate_report(settings), settings)


__all__ = ["export_report", "generate_report", "run"]
