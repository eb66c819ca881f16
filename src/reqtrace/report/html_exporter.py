"""HTML exporter for TraceabilityReport.

Renders ``report.html.j2`` with Jinja2 into a standalone HTML file with
inline CSS and no JavaScript. The packaged template is used unless a
template directory is given, in which case its ``report.html.j2`` replaces
the packaged one.

Example:
    >>> from reqtrace.report.html_exporter import export_html
    >>> export_html(report, Path("target/reqtrace/reqtrace-report.html"))
    PosixPath('target/reqtrace/reqtrace-report.html')
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from jinja2 import Environment, FileSystemLoader, PackageLoader, TemplateNotFound, select_autoescape

from reqtrace.aggregation import SUMMARY_ORDER
from reqtrace.errors import ConfigurationError
from reqtrace.models import Outcome
from reqtrace.telemetry import traced

if TYPE_CHECKING:
    from pathlib import Path

    from reqtrace.models import Evidence, Requirement
    from reqtrace.report.models import TraceabilityReport

logger = structlog.get_logger(__name__)

TEMPLATE_NAME = "report.html.j2"


# Packaged template environment, created on first use
_template_env: Environment | None = None


def _get_template_env(template_dir: Path | None = None) -> Environment:
    """Get the Jinja2 environment for the packaged or a custom template.

    Args:
        template_dir: Directory holding a custom ``report.html.j2``.

    Returns:
        Configured Jinja2 Environment.
    """
    global _template_env
    autoescape = select_autoescape(["html", "xml", "j2"])
    if template_dir is not None:
        return Environment(loader=FileSystemLoader(str(template_dir)), autoescape=autoescape)
    if _template_env is None:
        _template_env = Environment(
            loader=PackageLoader("reqtrace.report", "templates"),
            autoescape=autoescape,
        )
    return _template_env


@traced(operation_name="reqtrace.export.html")
def export_html(
    report: TraceabilityReport,
    output_path: Path,
    template_dir: Path | None = None,
) -> Path:
    """Export a TraceabilityReport to an HTML report.

    The report includes:
    - Overview with date, version, counts and percentages per outcome
    - Tested requirements with one row per evidence and a result bar
    - Untested requirements
    - Unreferenced evidence and orphaned links

    Args:
        report: Report to render.
        output_path: Path where the HTML file should be written. Parent
            directories are created.
        template_dir: Optional directory with a custom ``report.html.j2``.

    Returns:
        The output path where the file was written.

    Raises:
        ConfigurationError: If the template directory lacks the template.
        OSError: If the file cannot be written.
    """
    log = logger.bind(
        component="html_exporter",
        output_path=str(output_path),
        template_dir=str(template_dir) if template_dir else None,
    )

    env = _get_template_env(template_dir)
    try:
        template = env.get_template(TEMPLATE_NAME)
    except TemplateNotFound as e:
        raise ConfigurationError(
            "Report template not found",
            path=template_dir,
            details={"template": TEMPLATE_NAME},
        ) from e

    html_content = template.render(**_build_template_context(report))

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(html_content, encoding="utf-8")

    log.info(
        "html_export_complete",
        requirements=len(report.requirements),
        tested=len(report.tested),
    )
    return output_path


def _build_template_context(report: TraceabilityReport) -> dict[str, Any]:
    """Build the template context from a TraceabilityReport."""
    summary = report.summary
    outcomes = [
        {
            "name": outcome.value,
            "count": (
                summary.unknown_active if outcome is Outcome.UNKNOWN else summary.count(outcome)
            ),
            "percentage": round(summary.percentage(outcome) * 100, 1),
        }
        for outcome in SUMMARY_ORDER
    ]

    return {
        "timestamp": report.generated_at.strftime("%Y-%m-%d %H:%M:%S UTC"),
        "reporter_version": report.reporter_version,
        "summary": {
            "total": summary.total,
            "active_total": summary.active_total,
            "deleted": summary.deleted,
            "evidence_referenced": summary.evidence_referenced,
            "total_evidence": report.total_evidence,
        },
        "outcomes": outcomes,
        "tested": [_requirement_to_dict(r) for r in report.tested_requirements()],
        "untested": [_requirement_to_dict(r) for r in report.untested_requirements()],
        "unreferenced": [_evidence_to_dict(e) for e in report.unreferenced],
        "orphaned_links": [
            {"requirement_id": link.requirement_id, "identity": link.identity.key}
            for link in report.orphaned_links
        ],
    }


def _requirement_to_dict(requirement: Requirement) -> dict[str, Any]:
    results = [_evidence_to_dict(e) for e in requirement.results]
    statuses = [e.status for e in requirement.results]
    total = len(statuses) or 1
    bar = [
        {"name": outcome.value, "width": round(100 * statuses.count(outcome) / total, 1)}
        for outcome in SUMMARY_ORDER
    ]
    return {
        "id": requirement.id,
        "display_id": requirement.id_and_version,
        "title": requirement.title,
        "status": requirement.status.value,
        "ref_name": requirement.ref_name,
        "ref_url": requirement.ref_url,
        "description": requirement.description,
        "results": results,
        "bar": [segment for segment in bar if segment["width"] > 0],
    }


def _evidence_to_dict(evidence: Evidence) -> dict[str, Any]:
    return {
        "identity": evidence.identity.key,
        "namespace": evidence.display_namespace,
        "member": evidence.display_member,
        "status": evidence.status.value,
        "message": evidence.message,
        "error_type": evidence.error_type,
        "detail": evidence.detail,
        "path": evidence.path,
    }


__all__ = ["TEMPLATE_NAME", "export_html"]
