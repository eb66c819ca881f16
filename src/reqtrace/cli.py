"""Command line interface for reqtrace.

Commands:
    reqtrace report: Build the traceability report and export it
    reqtrace check: Print per-requirement outcomes, optionally failing the
        build on failed or erroneous requirements

Exit codes:
    0: Success
    1: reqtrace error (bad feed or settings, failed ingestion) or a
       ``check --fail-on`` threshold was reached
    2: Unexpected error

Example:
    $ reqtrace report -f requirements.json -l tests -r target/test-reports
    $ reqtrace check -c reqtrace.yaml --fail-on failed
"""

from __future__ import annotations

import sys
from enum import IntEnum
from pathlib import Path
from typing import TYPE_CHECKING, Any, NoReturn

import click
import structlog

from reqtrace import __version__
from reqtrace.adapters import SourceKind
from reqtrace.aggregation import SUMMARY_ORDER
from reqtrace.config import load_settings
from reqtrace.errors import ReqTraceError
from reqtrace.logging import configure_logging
from reqtrace.models import Outcome
from reqtrace.reporter import export_report, generate_report

if TYPE_CHECKING:
    from collections.abc import Callable

    from reqtrace.config import ReqTraceSettings
    from reqtrace.report import TraceabilityReport

logger = structlog.get_logger(__name__)


class ExitCode(IntEnum):
    """Exit codes of the reqtrace commands."""

    SUCCESS = 0
    """Command completed successfully."""

    GENERAL_ERROR = 1
    """reqtrace error or check threshold reached."""

    UNEXPECTED_ERROR = 2
    """Unexpected failure (see the logged traceback)."""


def error_exit(message: str, exit_code: ExitCode = ExitCode.GENERAL_ERROR) -> NoReturn:
    """Print a one-line error to stderr and exit."""
    click.echo(f"Error: {message}", err=True)
    sys.exit(exit_code)


def _run_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by every command that runs an ingestion."""
    options = [
        click.option(
            "--config",
            "-c",
            "config_path",
            type=click.Path(exists=True, dir_okay=False, path_type=Path),
            help="YAML settings file.",
        ),
        click.option(
            "--requirements",
            "-f",
            "requirements_file",
            type=click.Path(path_type=Path),
            help="JSON requirement feed.",
        ),
        click.option(
            "--local-requirements",
            "local_requirements_file",
            type=click.Path(path_type=Path),
            help="Locally maintained feed merged into the requirement feed.",
        ),
        click.option(
            "--kind",
            "source_kind",
            type=click.Choice([kind.value for kind in SourceKind]),
            help="Adapter family used to find links and evidence.",
        ),
        click.option(
            "--link-root",
            "-l",
            "link_roots",
            multiple=True,
            type=click.Path(path_type=Path),
            help="Root scanned for requirement links (repeatable).",
        ),
        click.option(
            "--result-root",
            "-r",
            "result_roots",
            multiple=True,
            type=click.Path(path_type=Path),
            help="Root scanned for test results (repeatable).",
        ),
        click.option("--verbose", "-v", is_flag=True, help="Enable debug logging."),
        click.option("--json-logs", is_flag=True, help="Render logs as JSON lines."),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _settings(verbose: bool, json_logs: bool, **values: Any) -> ReqTraceSettings:
    config_path = values.pop("config_path", None)
    # empty multiple options mean "not given"
    overrides = {
        key: (value or None) if isinstance(value, tuple) else value
        for key, value in values.items()
    }
    for key in ("link_roots", "result_roots", "formats"):
        if overrides.get(key) is not None:
            overrides[key] = list(overrides[key])
    if verbose:
        overrides["log_level"] = "DEBUG"
    if json_logs:
        overrides["json_logs"] = True

    settings = load_settings(config_path, **overrides)
    configure_logging(log_level=settings.log_level, json_output=settings.json_logs)
    return settings


def _execute(action: Callable[[], ExitCode]) -> None:
    """Run a command body, mapping errors to exit codes."""
    try:
        exit_code = action()
    except ReqTraceError as e:
        error_exit(str(e), ExitCode.GENERAL_ERROR)
    except Exception as e:
        logger.exception("unexpected_error", error=str(e))
        error_exit(f"Unexpected error: {e}", ExitCode.UNEXPECTED_ERROR)
    if exit_code is not ExitCode.SUCCESS:
        sys.exit(exit_code)


def _format_summary(report: TraceabilityReport) -> str:
    summary = report.summary
    lines = [
        f"Requirements: {summary.total} ({summary.active_total} active, {summary.deleted} deleted)",
    ]
    for outcome in SUMMARY_ORDER:
        count = summary.unknown_active if outcome is Outcome.UNKNOWN else summary.count(outcome)
        lines.append(f"  {outcome.value:<8} {count:>5}  {summary.percentage(outcome) * 100:5.1f}%")
    lines.append(f"Evidence: {summary.evidence_referenced} referenced of {report.total_evidence}")
    if report.unreferenced:
        lines.append(f"Unreferenced evidence: {len(report.unreferenced)}")
    if report.orphaned_links:
        lines.append(f"Orphaned links: {len(report.orphaned_links)}")
    return "\n".join(lines)


@click.group(
    name="reqtrace",
    help="reqtrace - requirement evidence traceability.",
    epilog="Use 'reqtrace <command> --help' for command-specific help.",
    context_settings={
        "help_option_names": ["-h", "--help"],
    },
)
@click.version_option(
    version=__version__,
    prog_name="reqtrace",
    message="%(prog)s %(version)s",
)
def cli() -> None:
    """Root command group for the reqtrace CLI."""


@cli.command(name="report")
@_run_options
@click.option(
    "--template-dir",
    "-t",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Directory with a custom report.html.j2.",
)
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory receiving the reports.",
)
@click.option(
    "--format",
    "formats",
    multiple=True,
    type=click.Choice(["html", "json"]),
    help="Report format (repeatable, default: html and json).",
)
def report_command(verbose: bool, json_logs: bool, **values: Any) -> None:
    """Build the traceability report and export it."""

    def action() -> ExitCode:
        settings = _settings(verbose, json_logs, **values)
        report = generate_report(settings)
        written: list[Path] = export_report(report, settings)
        click.echo(_format_summary(report))
        for path in written:
            click.echo(f"Wrote {path}")
        return ExitCode.SUCCESS

    _execute(action)


@cli.command(name="check")
@_run_options
@click.option(
    "--fail-on",
    type=click.Choice([Outcome.FAILED.value, Outcome.ERROR.value]),
    default=None,
    help="Exit 1 if any requirement aggregates to this outcome or worse.",
)
def check_command(verbose: bool, json_logs: bool, fail_on: str | None, **values: Any) -> None:
    """Print the aggregate outcome of every requirement."""

    def action() -> ExitCode:
        settings = _settings(verbose, json_logs, **values)
        report = generate_report(settings)
        for requirement in report.requirements:
            click.echo(
                f"{requirement.status.value:<8} {requirement.id_and_version}  {requirement.title}"
            )
        click.echo(_format_summary(report))

        if fail_on is None:
            return ExitCode.SUCCESS
        offending = report.at_or_above(Outcome(fail_on))
        if offending:
            click.echo(
                f"{len(offending)} requirement(s) at or above '{fail_on}': "
                + ", ".join(requirement.id for requirement in offending),
                err=True,
            )
            return ExitCode.GENERAL_ERROR
        return ExitCode.SUCCESS

    _execute(action)


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the reqtrace CLI.

    Args:
        argv: Command-line arguments (uses sys.argv if None).
    """
    cli(args=argv, prog_name="reqtrace")


if __name__ == "__main__":
    main()


__all__ = ["ExitCode", "cli", "main"]
