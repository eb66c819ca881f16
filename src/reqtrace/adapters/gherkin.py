"""Link adapter for tagged Gherkin scenarios.

Scenarios (and scenario outlines, also inside ``Rule`` blocks) carrying a
tag ``@<marker>:<requirement id>`` are linked to that requirement. Only a
scenario's own tags count: feature and rule tags are not inherited, and
backgrounds are ignored.

The identity is derived from the display names with ``normalize_name``:

    Feature: User Login / Scenario: Valid password
    -> user-login:valid-password
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import structlog
from gherkin.errors import ParserError
from gherkin.parser import Parser
from gherkin.token_scanner import TokenScanner

from reqtrace.adapters.base import LinkAdapter
from reqtrace.models import TestIdentity, normalize_name

logger = structlog.get_logger(__name__)

DEFAULT_TAG_MARKER = "Afo"


def _scenarios(children: list[dict[str, Any]]) -> list[dict[str, Any]]:
    scenarios: list[dict[str, Any]] = []
    for child in children:
        if "scenario" in child:
            scenarios.append(child["scenario"])
        elif "rule" in child:
            scenarios.extend(_scenarios(child["rule"].get("children", [])))
    return scenarios


class GherkinLinkAdapter(LinkAdapter):
    """Tag-based link adapter for ``.feature`` files.

    Args:
        marker: Tag prefix before the colon, without ``@``.
    """

    def __init__(self, marker: str = DEFAULT_TAG_MARKER) -> None:
        self._token = f"@{marker}:"

    @property
    def name(self) -> str:
        return "gherkin"

    def scan_for_links(self, root: Path | None) -> dict[str, list[TestIdentity]]:
        resolved = self._resolve_root(root)
        if resolved is None:
            return {}

        links: dict[str, list[TestIdentity]] = {}
        files = self._list_files(resolved, "*.feature", recursive=True)
        for path in files:
            try:
                # trailing newline keeps TokenScanner from treating the text as a path
                text = self._read_text(path).rstrip("\n") + "\n"
                document = Parser().parse(TokenScanner(text))
            except (ParserError, UnicodeDecodeError) as e:
                self._skip(path, e)
                continue
            for requirement_id, identity in self._links_in(document):
                links.setdefault(requirement_id, []).append(identity)

        logger.debug(
            "feature_files_scanned",
            root=str(resolved),
            files=len(files),
            requirements=len(links),
        )
        return links

    def _links_in(self, document: dict[str, Any]) -> list[tuple[str, TestIdentity]]:
        feature = document.get("feature")
        if not feature:
            return []
        namespace = normalize_name(feature.get("name", ""))

        found: list[tuple[str, TestIdentity]] = []
        for scenario in _scenarios(feature.get("children", [])):
            identity = TestIdentity(
                namespace=namespace,
                member=normalize_name(scenario.get("name", "")),
            )
            for tag in scenario.get("tags", []):
                tag_name = tag.get("name", "")
                if tag_name.startswith(self._token):
                    found.append((tag_name[len(self._token) :], identity))
        return found


__all__ = ["DEFAULT_TAG_MARKER", "GherkinLinkAdapter"]
