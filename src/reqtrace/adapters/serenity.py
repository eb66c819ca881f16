"""Adapter for tag-run JSON documents (one JSON document per test run).

Each ``*.json`` file directly inside a root describes one executed scenario:

    {
      "id": "user-login;valid-password",
      "title": "Valid password",
      "result": "FAILURE",
      "userStory": {"storyName": "User Login", "path": "login.feature"},
      "tags": [{"type": "Afo", "name": "A_19874"}],
      "testFailureCause": {"errorType": "AssertionError", "message": "..."}
    }

The identity is the ``id`` split on ``;``: every segment but the last,
joined with ``.``, forms the namespace, the last segment the member. The
adapter reads outcomes (ResultAdapter) and, from the ``tags`` list, links
(LinkAdapter).
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError as PydanticValidationError

from reqtrace.adapters.base import LinkAdapter, ResultAdapter
from reqtrace.errors import ArtifactParseError
from reqtrace.models import Evidence, Outcome, TestIdentity

if TYPE_CHECKING:
    from pathlib import Path

logger = structlog.get_logger(__name__)

FEED_FILE_NAME = "requirements.json"
"""Requirement feed file name, never treated as a result document."""

DEFAULT_TAG_TYPE = "Afo"

_RESULT_STATUS: dict[str, Outcome] = {
    "FAILURE": Outcome.FAILED,
    "ERROR": Outcome.ERROR,
    "SUCCESS": Outcome.PASSED,
    "SKIPPED": Outcome.SKIPPED,
}


def map_result(result: object) -> Outcome:
    """Map a tag-run ``result`` value to an Outcome (UNKNOWN if unmapped)."""
    if not isinstance(result, str):
        return Outcome.UNKNOWN
    return _RESULT_STATUS.get(result, Outcome.UNKNOWN)


class SerenityAdapter(LinkAdapter, ResultAdapter):
    """Tag-run JSON adapter, usable as link and as result adapter.

    Args:
        tag_type: Tag ``type`` value that marks a requirement link.
    """

    def __init__(self, tag_type: str = DEFAULT_TAG_TYPE) -> None:
        self._tag_type = tag_type

    @property
    def name(self) -> str:
        return "serenity-json"

    def scan_for_links(self, root: Path | None) -> dict[str, list[TestIdentity]]:
        resolved = self._resolve_root(root)
        if resolved is None:
            return {}

        links: dict[str, list[TestIdentity]] = {}
        for path in self._documents(resolved):
            try:
                document = self._load(path)
                identity = _identity(document, path)
                tags = document.get("tags")
                if not isinstance(tags, list):
                    tags = []
                requirement_ids = [
                    tag["name"]
                    for tag in tags
                    if isinstance(tag, dict)
                    and tag.get("type") == self._tag_type
                    and isinstance(tag.get("name"), str)
                    and tag["name"]
                ]
            except ArtifactParseError as e:
                self._skip(path, e)
                continue
            for requirement_id in requirement_ids:
                links.setdefault(requirement_id, []).append(identity)

        logger.debug("serenity_links_scanned", root=str(resolved), requirements=len(links))
        return links

    def scan_for_evidence(self, root: Path | None) -> dict[TestIdentity, Evidence]:
        resolved = self._resolve_root(root)
        if resolved is None:
            return {}

        results: dict[TestIdentity, Evidence] = {}
        for path in self._documents(resolved):
            try:
                evidence = _evidence(self._load(path), path)
            except ArtifactParseError as e:
                self._skip(path, e)
                continue
            results[evidence.identity] = evidence

        logger.debug("serenity_results_scanned", root=str(resolved), results=len(results))
        return results

    def _documents(self, root: Path) -> list[Path]:
        return [
            path
            for path in self._list_files(root, "*.json", recursive=False)
            if path.name != FEED_FILE_NAME
        ]

    def _load(self, path: Path) -> dict[str, Any]:
        try:
            document = json.loads(self._read_text(path))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ArtifactParseError("Invalid JSON document", path=path) from e
        if not isinstance(document, dict):
            raise ArtifactParseError("JSON document is not an object", path=path)
        return document


def _identity(document: dict[str, Any], path: Path) -> TestIdentity:
    test_id = document.get("id")
    if not isinstance(test_id, str) or not test_id:
        raise ArtifactParseError("Document has no id", path=path)
    segments = test_id.split(";")
    return TestIdentity(namespace=".".join(segments[:-1]), member=segments[-1])


def _evidence(document: dict[str, Any], path: Path) -> Evidence:
    status = map_result(document.get("result"))
    fields: dict[str, Any] = {}

    if status in (Outcome.FAILED, Outcome.ERROR):
        cause = document.get("exception") or document.get("testFailureCause")
        if not isinstance(cause, dict):
            raise ArtifactParseError(
                "Unable to find failure/error details",
                path=path,
                details={"result": document.get("result")},
            )
        fields["message"] = cause.get("message")
        fields["error_type"] = cause.get("errorType")

    user_story = document.get("userStory")
    if isinstance(user_story, dict):
        fields["feature_name"] = user_story.get("storyName")
        fields["path"] = user_story.get("path")

    identity = _identity(document, path)
    try:
        return Evidence(
            identity=identity,
            status=status,
            scenario_name=document.get("title"),
            **fields,
        )
    except PydanticValidationError as e:
        raise ArtifactParseError(
            "Document fields have unexpected types",
            path=path,
            details={"errors": e.error_count()},
        ) from e


__all__ = [
    "DEFAULT_TAG_TYPE",
    "FEED_FILE_NAME",
    "SerenityAdapter",
    "map_result",
]
