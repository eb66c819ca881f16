"""Result adapter for JUnit-style XML reports.

Reads ``TEST-*.xml`` files (the Surefire naming convention; pytest's
``--junitxml`` output works with a matching ``pattern``) directly inside a
root directory. Each ``testsuite`` element contributes its direct
``testcase`` children as one Evidence each, keyed by ``classname:name``.

A pytest parametrization suffix is stripped from ``name`` so that
``test_ok[1]`` and ``test_ok[2]`` are both evidence for ``test_ok``, the id
the link adapter derives from the source. Within one file the case of
highest outcome precedence represents the test; the full case name is kept
as ``scenario_name``.

Status mapping per testcase:
    no child element      -> PASSED
    <failure>             -> FAILED
    <error>               -> ERROR
    <skipped>             -> SKIPPED
    <system-out/err>      -> captured output only
    any other element     -> UNKNOWN
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from typing import TYPE_CHECKING

import structlog

from reqtrace.adapters.base import ResultAdapter
from reqtrace.errors import ArtifactParseError, IngestionError
from reqtrace.models import Evidence, Outcome, TestIdentity

if TYPE_CHECKING:
    from pathlib import Path

logger = structlog.get_logger(__name__)

DEFAULT_PATTERN = "TEST-*.xml"

# pytest parametrization ids: test_ok[1], test_login[admin-secret]
_PARAMETRIZED = re.compile(r"^(?P<member>[^\[]+)\[.*\]$", re.DOTALL)

_STATUS_ELEMENTS: dict[str, Outcome] = {
    "failure": Outcome.FAILED,
    "error": Outcome.ERROR,
    "skipped": Outcome.SKIPPED,
}


class JUnitResultAdapter(ResultAdapter):
    """JUnit XML result adapter.

    Args:
        pattern: Glob for result file names inside the root.
    """

    def __init__(self, pattern: str = DEFAULT_PATTERN) -> None:
        self._pattern = pattern

    @property
    def name(self) -> str:
        return "junit-xml"

    def scan_for_evidence(self, root: Path | None) -> dict[TestIdentity, Evidence]:
        resolved = self._resolve_root(root)
        if resolved is None:
            return {}

        results: dict[TestIdentity, Evidence] = {}
        for path in self._list_files(resolved, self._pattern, recursive=False):
            try:
                tree = ET.parse(path)
            except ET.ParseError as e:
                self._skip(path, e)
                continue
            except OSError as e:
                raise IngestionError(
                    "Unable to read JUnit result file",
                    root=path,
                    details={"error": str(e)},
                ) from e

            # parametrized cases of one test share an identity; within a file
            # the case of highest precedence represents the test
            file_results: dict[TestIdentity, Evidence] = {}
            for suite in tree.getroot().iter("testsuite"):
                for testcase in suite.findall("testcase"):
                    try:
                        evidence = _parse_testcase(testcase, suite.get("name"), path)
                    except ArtifactParseError as e:
                        self._skip(path, e)
                        continue
                    current = file_results.get(evidence.identity)
                    if current is None or evidence.status.precedence > current.status.precedence:
                        file_results[evidence.identity] = evidence
            results.update(file_results)

        logger.debug("junit_results_scanned", root=str(resolved), results=len(results))
        return results


def _parse_testcase(testcase: ET.Element, suite: str | None, path: Path) -> Evidence:
    classname = testcase.get("classname")
    name = testcase.get("name")
    if not classname or not name:
        raise ArtifactParseError(
            "testcase element lacks classname or name",
            path=path,
            details={"classname": classname, "name": name},
        )

    status = Outcome.PASSED
    fields: dict[str, str | None] = {}
    for child in testcase:
        if child.tag in _STATUS_ELEMENTS:
            status = _STATUS_ELEMENTS[child.tag]
            fields["message"] = child.get("message")
            fields["error_type"] = child.get("type")
            fields["detail"] = "".join(child.itertext())
        elif child.tag == "system-out":
            fields["stdout"] = "".join(child.itertext())
        elif child.tag == "system-err":
            fields["stderr"] = "".join(child.itertext())
        else:
            status = Outcome.UNKNOWN

    member = name
    parametrized = _PARAMETRIZED.match(name)
    if parametrized is not None:
        member = parametrized.group("member")
        fields["scenario_name"] = name

    return Evidence(
        identity=TestIdentity(namespace=classname, member=member),
        status=status,
        suite=suite,
        **fields,
    )


__all__ = ["DEFAULT_PATTERN", "JUnitResultAdapter"]
