"""Settings for a reqtrace run.

Settings come from, in increasing precedence:

1. Field defaults
2. Environment variables (``REQTRACE_`` prefix) and a ``.env`` file
3. An optional YAML file
4. Explicit overrides (command line options)

Example:
    >>> settings = load_settings(Path("reqtrace.yaml"), output_dir=Path("out"))
    >>> settings.source_kind
    <SourceKind.SOURCE_ANNOTATED: 'source_annotated'>

A YAML file mirrors the field names:

    requirements_file: requirements.json
    source_kind: tag_based
    link_roots: [src/test/resources/features]
    result_roots: [target/site/serenity]
    formats: [html]
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import structlog
import yaml
from pydantic import Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from reqtrace.adapters import SourceKind
from reqtrace.errors import ConfigurationError

logger = structlog.get_logger(__name__)

ReportFormat = Literal["html", "json"]

HTML_REPORT_NAME = "reqtrace-report.html"
JSON_REPORT_NAME = "reqtrace-report.json"


class ReqTraceSettings(BaseSettings):
    """Configuration of a traceability run.

    Environment Variables:
        REQTRACE_REQUIREMENTS_FILE: Requirement feed path
        REQTRACE_SOURCE_KIND: ``source_annotated`` or ``tag_based``
        REQTRACE_LINK_ROOTS / REQTRACE_RESULT_ROOTS: JSON lists of paths
        REQTRACE_OUTPUT_DIR: Report directory
        REQTRACE_LOG_LEVEL: Minimum log level
    """

    model_config = SettingsConfigDict(
        env_prefix="REQTRACE_",
        env_file=".env",
        extra="ignore",
    )

    requirements_file: Path = Field(
        default=Path("requirements.json"),
        description="JSON requirement feed",
    )
    local_requirements_file: Path | None = Field(
        default=None,
        description="Locally maintained feed merged into the requirement feed",
    )
    source_kind: SourceKind = Field(
        default=SourceKind.SOURCE_ANNOTATED,
        description="Adapter family used to find links and evidence",
    )
    link_roots: list[Path] = Field(
        default_factory=list,
        description="Roots scanned for requirement links, in order",
    )
    result_roots: list[Path] = Field(
        default_factory=list,
        description="Roots scanned for test evidence, in order",
    )
    template_dir: Path | None = Field(
        default=None,
        description="Directory with a custom report.html.j2",
    )
    output_dir: Path = Field(
        default=Path("target/reqtrace"),
        description="Directory receiving the exported reports",
    )
    formats: list[ReportFormat] = Field(
        default_factory=lambda: ["html", "json"],
        description="Report formats to export",
    )
    tag_marker: str = Field(
        default="Afo",
        min_length=1,
        description="Tag marker for tag-based links (@Afo:ID)",
    )
    python_marker: str = Field(
        default="requirement",
        min_length=1,
        description="pytest marker carrying a requirement id",
    )
    junit_pattern: str = Field(
        default="TEST-*.xml",
        min_length=1,
        description="Glob for JUnit result files",
    )
    log_level: str = Field(
        default="INFO",
        description="Minimum log level",
    )
    json_logs: bool = Field(
        default=False,
        description="Render logs as JSON lines",
    )

    @field_validator("formats")
    @classmethod
    def _dedupe_formats(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(value))

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            msg = f"Unknown log level: {value}"
            raise ValueError(msg)
        return level

    def output_paths(self) -> dict[str, Path]:
        """Report path per configured format."""
        names = {"html": HTML_REPORT_NAME, "json": JSON_REPORT_NAME}
        return {fmt: self.output_dir / names[fmt] for fmt in self.formats}


def load_yaml_config(config_path: Path) -> dict[str, Any]:
    """Load settings values from a YAML file.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Mapping of setting names to values (empty for an empty file).

    Raises:
        ConfigurationError: If the file is missing, unreadable, not YAML,
            or not a mapping.
    """
    if not config_path.is_file():
        raise ConfigurationError("Unable to find configuration file", path=config_path)

    try:
        with config_path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(
            "Unable to read configuration file",
            path=config_path,
            details={"error": str(e)},
        ) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError("Configuration file must contain a mapping", path=config_path)
    return data


def load_settings(config_path: Path | None = None, **overrides: Any) -> ReqTraceSettings:
    """Load settings from the environment, a YAML file and overrides.

    Args:
        config_path: Optional YAML configuration file.
        **overrides: Setting values that win over every other source.
            ``None`` values are ignored.

    Returns:
        Validated settings.

    Raises:
        ConfigurationError: If the YAML file or any value is invalid.
    """
    values = load_yaml_config(config_path) if config_path is not None else {}
    values.update({key: value for key, value in overrides.items() if value is not None})

    try:
        settings = ReqTraceSettings(**values)
    except PydanticValidationError as e:
        raise ConfigurationError(
            "Invalid settings",
            path=config_path,
            details={"errors": "; ".join(_describe(error) for error in e.errors())},
        ) from e

    logger.debug(
        "settings_loaded",
        config_path=str(config_path) if config_path else None,
        source_kind=settings.source_kind.value,
    )
    return settings


def _describe(error: Any) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()))
    return f"{location}: {error.get('msg', '')}"


__all__ = [
    "HTML_REPORT_NAME",
    "JSON_REPORT_NAME",
    "ReqTraceSettings",
    "load_settings",
    "load_yaml_config",
]
