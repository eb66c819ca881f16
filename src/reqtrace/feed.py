"""Requirement feed loading and merging.

The feed is a JSON array of requirement objects:

    [
      {"id": "A_19874", "version": "1", "title": "Login", "afoStatus": "ADDED"},
      {"id": "A_20000", "title": "Logout"}
    ]

The feed is only checked for "exists, parses, non-empty"; every entry must
still satisfy the Requirement model (an ``id`` is required).
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import structlog
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from reqtrace.errors import ConfigurationError, ValidationError
from reqtrace.models import Requirement

if TYPE_CHECKING:
    from pathlib import Path

logger = structlog.get_logger(__name__)

_FEED_ADAPTER = TypeAdapter(list[Requirement])


def load_requirements(path: Path) -> list[Requirement]:
    """Load and validate the requirement feed.

    Args:
        path: Path of the JSON feed file.

    Returns:
        Requirements in feed order.

    Raises:
        ConfigurationError: If the file is missing, unreadable, not a JSON
            array of requirements, or empty.
    """
    if not path.is_file():
        raise ConfigurationError("Unable to find requirements file", path=path)

    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(
            "Unable to read requirements file",
            path=path,
            details={"error": str(e)},
        ) from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            "Requirements file is not valid JSON",
            path=path,
            details={"error": str(e)},
        ) from e

    if not isinstance(data, list):
        raise ConfigurationError("Requirements file must contain a JSON array", path=path)

    try:
        requirements = _FEED_ADAPTER.validate_python(data)
    except PydanticValidationError as e:
        raise ConfigurationError(
            "Requirements file contains invalid entries",
            path=path,
            details={"errors": e.error_count()},
        ) from e

    if not requirements:
        raise ConfigurationError("No requirements were found", path=path)

    logger.info("requirements_loaded", path=str(path), count=len(requirements))
    return requirements


def merge_feeds(base: list[Requirement], local: list[Requirement]) -> list[Requirement]:
    """Merge locally maintained bookkeeping into a base feed.

    Entries are matched by id. A matched base entry is replaced by
    ``base.merged_with(local)``; local entries without a base counterpart
    are appended in their local order.

    Args:
        base: Requirements as published.
        local: Locally maintained entries (lifecycle, references, versions).

    Returns:
        Merged requirements, base order first.

    Raises:
        ConfigurationError: If a matched pair cannot be merged (non-numeric
            versions).
    """
    local_by_id = {requirement.id: requirement for requirement in local}
    merged: list[Requirement] = []
    for requirement in base:
        if requirement.id not in local_by_id:
            merged.append(requirement)
            continue
        try:
            merged.append(requirement.merged_with(local_by_id[requirement.id]))
        except ValidationError as e:
            raise ConfigurationError(
                "Unable to merge local requirement",
                details={"id": requirement.id, **e.details},
            ) from e
    base_ids = {requirement.id for requirement in base}
    added = [requirement for requirement in local if requirement.id not in base_ids]

    logger.debug(
        "requirement_feeds_merged",
        base=len(base),
        local=len(local),
        added=len(added),
    )
    return merged + added


__all__ = ["load_requirements", "merge_feeds"]
