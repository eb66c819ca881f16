"""reqtrace: requirement evidence traceability.

Correlates requirement links discovered in test sources with test outcomes
read from result artifacts, and reduces them to one aggregate outcome per
requirement.

Example:
    >>> from reqtrace import generate_report, load_settings
    >>>
    >>> settings = load_settings(
    ...     requirements_file=Path("requirements.json"),
    ...     link_roots=[Path("tests")],
    ...     result_roots=[Path("target/test-reports")],
    ... )
    >>> report = generate_report(settings)
    >>> [(r.id, r.status.value) for r in report.requirements]
    [('A_19874', 'passed'), ('A_20000', 'unknown')]

Modules:
    models: Identity, evidence and requirement types
    adapters: Link and result adapters per source kind
    ingestion: Concurrent two-phase ingestion
    correlation: Link/evidence indexes and resolution
    aggregation: Outcome precedence and summary counters
    report: Report model and JSON/HTML exporters
    reporter: Run orchestration
    config: Settings
    cli: Command line
"""

from __future__ import annotations

__version__ = "0.1.0"
__all__ = [
    "Outcome",
    "ReqTraceError",
    "ReqTraceSettings",
    "TraceabilityReport",
    "generate_report",
    "load_settings",
    "run",
]


# Lazy imports keep `reqtrace.__version__` importable without the full stack
def __getattr__(name: str) -> object:
    """Lazy import of package components."""
    if name == "Outcome":
        from reqtrace.models import Outcome

        return Outcome
    if name == "ReqTraceError":
        from reqtrace.errors import ReqTraceError

        return ReqTraceError
    if name in ("ReqTraceSettings", "load_settings"):
        from reqtrace import config

        return getattr(config, name)
    if name == "TraceabilityReport":
        from reqtrace.report import TraceabilityReport

        return TraceabilityReport
    if name in ("generate_report", "run"):
        from reqtrace import reporter

        return getattr(reporter, name)
    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
