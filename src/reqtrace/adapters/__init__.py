"""Evidence adapters and adapter family selection.

A run uses exactly one adapter family, chosen by SourceKind:

    SOURCE_ANNOTATED: Python test markers + JUnit XML results
    TAG_BASED: Gherkin scenario tags + tag-run JSON results
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from reqtrace.adapters.base import AdapterBase, LinkAdapter, ResultAdapter
from reqtrace.adapters.gherkin import GherkinLinkAdapter
from reqtrace.adapters.junit import JUnitResultAdapter
from reqtrace.adapters.python_source import PythonSourceLinkAdapter
from reqtrace.adapters.serenity import SerenityAdapter

if TYPE_CHECKING:
    from reqtrace.config import ReqTraceSettings


class SourceKind(str, Enum):
    """Adapter family used for a run."""

    SOURCE_ANNOTATED = "source_annotated"
    TAG_BASED = "tag_based"


def adapters_for(
    kind: SourceKind,
    settings: ReqTraceSettings | None = None,
) -> tuple[LinkAdapter, ResultAdapter]:
    """Build the link and result adapter of a family.

    Args:
        kind: Adapter family.
        settings: Settings supplying markers and file patterns. Defaults
            apply when omitted.

    Returns:
        Tuple of (link adapter, result adapter).
    """
    if kind is SourceKind.TAG_BASED:
        tag_marker = settings.tag_marker if settings else "Afo"
        return GherkinLinkAdapter(marker=tag_marker), SerenityAdapter(tag_type=tag_marker)

    if settings is None:
        return PythonSourceLinkAdapter(), JUnitResultAdapter()
    return (
        PythonSourceLinkAdapter(marker=settings.python_marker),
        JUnitResultAdapter(pattern=settings.junit_pattern),
    )


__all__ = [
    "AdapterBase",
    "GherkinLinkAdapter",
    "JUnitResultAdapter",
    "LinkAdapter",
    "PythonSourceLinkAdapter",
    "ResultAdapter",
    "SerenityAdapter",
    "SourceKind",
    "adapters_for",
]
