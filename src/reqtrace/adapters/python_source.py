"""Link adapter for requirement markers in Python test sources.

Finds test functions and methods decorated with
``@pytest.mark.requirement("ID")`` (or ``@requirement("ID")`` when the marker
is imported directly) without importing the tests: sources are parsed with
``ast``.

Identities match what pytest writes into JUnit XML: the namespace is the
dotted module path relative to the root's parent directory followed by any
enclosing class names, the member is the function name.

    tests/unit/test_login.py::TestLogin::test_ok
    -> tests.unit.test_login.TestLogin:test_ok
"""

from __future__ import annotations

import ast
from pathlib import Path

import structlog

from reqtrace.adapters.base import LinkAdapter
from reqtrace.models import TestIdentity

logger = structlog.get_logger(__name__)

DEFAULT_MARKER = "requirement"


class _MarkerVisitor(ast.NodeVisitor):
    """Collects (requirement id, identity) pairs from one module."""

    def __init__(self, module: str, marker: str) -> None:
        self._module = module
        self._marker = marker
        self._scope: list[str] = []
        self.found: list[tuple[str, TestIdentity]] = []
        self.problems: list[str] = []

    def visit_ClassDef(self, node: ast.ClassDef) -> None:
        self._scope.append(node.name)
        self.generic_visit(node)
        self._scope.pop()

    def visit_FunctionDef(self, node: ast.FunctionDef | ast.AsyncFunctionDef) -> None:
        # nested functions are never collected as tests
        namespace = ".".join([self._module, *self._scope])
        for decorator in node.decorator_list:
            if not isinstance(decorator, ast.Call) or not self._is_marker(decorator.func):
                continue
            if (
                len(decorator.args) != 1
                or decorator.keywords
                or not isinstance(decorator.args[0], ast.Constant)
                or not isinstance(decorator.args[0].value, str)
            ):
                self.problems.append(
                    f"{namespace}:{node.name} line {decorator.lineno}: "
                    f"{self._marker} marker needs exactly one string literal"
                )
                continue
            identity = TestIdentity(namespace=namespace, member=node.name)
            self.found.append((decorator.args[0].value, identity))

    visit_AsyncFunctionDef = visit_FunctionDef

    def _is_marker(self, func: ast.expr) -> bool:
        if isinstance(func, ast.Name):
            return func.id == self._marker
        if isinstance(func, ast.Attribute) and func.attr == self._marker:
            owner = func.value
            if isinstance(owner, ast.Attribute):
                return owner.attr == "mark"
            if isinstance(owner, ast.Name):
                return owner.id == "mark"
        return False


class PythonSourceLinkAdapter(LinkAdapter):
    """Source-annotated link adapter for pytest-style test modules.

    Args:
        marker: Marker/decorator name carrying the requirement id.

    Example:
        >>> adapter = PythonSourceLinkAdapter()
        >>> links = adapter.scan_for_links(Path("tests"))
        >>> links["FR-001"]
        [TestIdentity(namespace='tests.unit.test_models.TestOutcome', member='test_order')]
    """

    def __init__(self, marker: str = DEFAULT_MARKER) -> None:
        self._marker = marker

    @property
    def name(self) -> str:
        return "python-source"

    def scan_for_links(self, root: Path | None) -> dict[str, list[TestIdentity]]:
        resolved = self._resolve_root(root)
        if resolved is None:
            return {}

        links: dict[str, list[TestIdentity]] = {}
        files = self._list_files(resolved, "*.py", recursive=True)
        for path in files:
            try:
                found = self._inspect_file(path, resolved.parent)
            except (SyntaxError, UnicodeDecodeError, ValueError) as e:
                self._skip(path, e)
                continue
            for requirement_id, identity in found:
                links.setdefault(requirement_id, []).append(identity)

        logger.debug(
            "python_sources_scanned",
            root=str(resolved),
            files=len(files),
            requirements=len(links),
        )
        return links

    def _inspect_file(self, path: Path, base: Path) -> list[tuple[str, TestIdentity]]:
        tree = ast.parse(self._read_text(path), filename=str(path))
        visitor = _MarkerVisitor(_module_name(path, base), self._marker)
        visitor.visit(tree)
        for problem in visitor.problems:
            logger.warning("unsupported_requirement_marker", path=str(path), problem=problem)
        return visitor.found


def _module_name(path: Path, base: Path) -> str:
    return ".".join(path.relative_to(base).with_suffix("").parts)


__all__ = ["DEFAULT_MARKER", "PythonSourceLinkAdapter"]
