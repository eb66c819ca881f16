"""Traceability report model and exporters.

- TraceabilityReport: Resolved requirements plus run statistics
- export_json: Pretty-printed JSON matching the report schema
- export_html: Standalone HTML report rendered with Jinja2

Example:
    >>> from reqtrace.report import export_html, export_json
    >>> export_json(report, Path("target/reqtrace/reqtrace-report.json"))
    >>> export_html(report, Path("target/reqtrace/reqtrace-report.html"))
"""

from __future__ import annotations

from reqtrace.report.html_exporter import export_html
from reqtrace.report.json_exporter import export_json
from reqtrace.report.models import TraceabilityReport

__all__: list[str] = [
    "TraceabilityReport",
    "export_html",
    "export_json",
]
