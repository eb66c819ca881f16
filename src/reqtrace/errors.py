"""Exception types for the reqtrace package.

All exceptions inherit from ReqTraceError to enable catch-all error handling.

Exception Hierarchy:
    ReqTraceError (base)
    ├── ValidationError - Invalid identity keys or values
    ├── ConfigurationError - Requirement feed or settings unusable (fatal)
    ├── IngestionError - Adapter call failed during an ingestion phase (fatal)
    └── ArtifactParseError - One malformed artifact (logged and skipped)

Example:
    >>> from reqtrace.errors import ConfigurationError, ReqTraceError
    >>> try:
    ...     run(settings)
    ... except ConfigurationError as e:
    ...     print(f"Bad configuration: {e}")
    ... except ReqTraceError as e:
    ...     print(f"Traceability run failed: {e}")
"""

from __future__ import annotations

from pathlib import Path
from typing import Any


class ReqTraceError(Exception):
    """Base exception for all reqtrace errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional error context.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize ReqTraceError.

        Args:
            message: Human-readable error description.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ValidationError(ReqTraceError):
    """Input validation failed.

    Attributes:
        field: Name of the field that failed validation (if applicable).
        value: The invalid value (if applicable).
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        _details = details or {}
        if field:
            _details["field"] = field
        if value is not None:
            _details["value"] = str(value)
        super().__init__(message, _details)
        self.field = field
        self.value = value


class ConfigurationError(ReqTraceError):
    """Requirement feed or settings cannot be used.

    Raised when the requirement feed is missing, unreadable, not a JSON
    array, or empty, and when settings fail validation. Aborts the run
    before any report is produced.

    Attributes:
        path: The offending file path, if any.

    Example:
        >>> raise ConfigurationError(
        ...     "Unable to find requirements file",
        ...     path=Path("requirements.json"),
        ... )
    """

    def __init__(
        self,
        message: str,
        path: Path | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        _details = details or {}
        if path is not None:
            _details["path"] = str(path)
        super().__init__(message, _details)
        self.path = path


class IngestionError(ReqTraceError):
    """An adapter call failed unrecoverably during an ingestion phase.

    Raised by adapters when a root exists but cannot be enumerated, and
    re-raised by the coordinator after both phases have been joined.

    Attributes:
        phase: Name of the ingestion phase ("links" or "results").
        root: The root being scanned when the failure happened.
    """

    def __init__(
        self,
        message: str,
        phase: str | None = None,
        root: Path | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        _details = details or {}
        if phase:
            _details["phase"] = phase
        if root is not None:
            _details["root"] = str(root)
        super().__init__(message, _details)
        self.phase = phase
        self.root = root


class ArtifactParseError(ReqTraceError):
    """A single artifact inside an otherwise valid root is malformed.

    Adapters raise this internally and handle it themselves: the file is
    logged as a warning and skipped, sibling files are still scanned.

    Attributes:
        path: The malformed artifact.
    """

    def __init__(
        self,
        message: str,
        path: Path | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        _details = details or {}
        if path is not None:
            _details["path"] = str(path)
        super().__init__(message, _details)
        self.path = path


__all__ = [
    "ArtifactParseError",
    "ConfigurationError",
    "IngestionError",
    "ReqTraceError",
    "ValidationError",
]
