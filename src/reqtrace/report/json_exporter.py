"""JSON exporter for TraceabilityReport.

Writes the report as pretty-printed JSON matching the Pydantic model
schema, suitable for CI/CD consumption.

Example:
    >>> from reqtrace.report.json_exporter import export_json
    >>> export_json(report, Path("target/reqtrace/reqtrace-report.json"))
    PosixPath('target/reqtrace/reqtrace-report.json')
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import structlog

from reqtrace.telemetry import traced

if TYPE_CHECKING:
    from pathlib import Path

    from reqtrace.report.models import TraceabilityReport

logger = structlog.get_logger(__name__)


@traced(operation_name="reqtrace.export.json")
def export_json(
    report: TraceabilityReport,
    output_path: Path,
) -> Path:
    """Export a TraceabilityReport to a JSON file.

    Args:
        report: Report to serialize.
        output_path: Path where the JSON file should be written. Parent
            directories are created.

    Returns:
        The output path where the file was written.

    Raises:
        OSError: If the file cannot be written.
    """
    log = logger.bind(
        component="json_exporter",
        output_path=str(output_path),
    )

    output_path.parent.mkdir(parents=True, exist_ok=True)

    data = report.model_dump(mode="json")
    output_path.write_text(
        json.dumps(data, indent=2, ensure_ascii=False, default=str),
        encoding="utf-8",
    )

    log.info(
        "json_export_complete",
        requirements=len(report.requirements),
        unreferenced=len(report.unreferenced),
    )
    return output_path


__all__ = ["export_json"]
