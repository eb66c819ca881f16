"""Unit tests for the Python source link adapter."""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest
from structlog.testing import capture_logs

from reqtrace.adapters.python_source import PythonSourceLinkAdapter
from reqtrace.models import TestIdentity

LOGIN_TESTS = '''
import pytest
from pytest import mark


@pytest.mark.requirement("FR-001")
def test_module_level():
    pass


class TestLogin:
    @pytest.mark.requirement("FR-001")
    @pytest.mark.requirement("FR-002")
    def test_ok(self):
        def test_nested():
            pass

    @mark.requirement("FR-003")
    async def test_async(self):
        pass

    class TestInner:
        @pytest.mark.requirement("FR-004")
        def test_deep(self):
            pass


@pytest.mark.parametrize("x", [1])
def test_unmarked(x):
    pass
'''


def _write(root: Path, relative: str, source: str) -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(source), encoding="utf-8")
    return path


@pytest.fixture
def tests_root(tmp_path: Path) -> Path:
    root = tmp_path / "tests"
    _write(root, "unit/test_login.py", LOGIN_TESTS)
    return root


class TestPythonSourceLinkAdapter:
    """Tests for marker discovery in test sources."""

    @pytest.mark.requirement("FR-012")
    def test_identities_match_junit_names(self, tests_root: Path) -> None:
        """Namespace is the dotted module path plus classes, member the function."""
        links = PythonSourceLinkAdapter().scan_for_links(tests_root)

        assert links["FR-001"] == [
            TestIdentity.parse("tests.unit.test_login:test_module_level"),
            TestIdentity.parse("tests.unit.test_login.TestLogin:test_ok"),
        ]
        assert links["FR-002"] == [TestIdentity.parse("tests.unit.test_login.TestLogin:test_ok")]
        assert links["FR-003"] == [TestIdentity.parse("tests.unit.test_login.TestLogin:test_async")]
        assert links["FR-004"] == [
            TestIdentity.parse("tests.unit.test_login.TestLogin.TestInner:test_deep")
        ]
        assert set(links) == {"FR-001", "FR-002", "FR-003", "FR-004"}

    @pytest.mark.requirement("FR-012")
    def test_bare_marker_name(self, tmp_path: Path) -> None:
        """A directly imported marker decorator is recognized."""
        root = tmp_path / "suite"
        _write(
            root,
            "test_bare.py",
            """
            from markers import covers

            @covers("REQ-9")
            def test_it():
                pass
            """,
        )

        links = PythonSourceLinkAdapter(marker="covers").scan_for_links(root)

        assert links == {"REQ-9": [TestIdentity.parse("suite.test_bare:test_it")]}

    @pytest.mark.requirement("FR-012")
    def test_unsupported_marker_arguments_are_warned(self, tmp_path: Path) -> None:
        """Markers without exactly one string literal are skipped with a warning."""
        root = tmp_path / "tests"
        _write(
            root,
            "test_bad.py",
            """
            import pytest

            REQ = "FR-001"

            @pytest.mark.requirement(REQ)
            def test_variable():
                pass

            @pytest.mark.requirement("FR-001", "FR-002")
            def test_two():
                pass

            @pytest.mark.requirement("FR-005")
            def test_good():
                pass
            """,
        )

        with capture_logs() as logs:
            links = PythonSourceLinkAdapter().scan_for_links(root)

        assert links == {"FR-005": [TestIdentity.parse("tests.test_bad:test_good")]}
        problems = [entry for entry in logs if entry["event"] == "unsupported_requirement_marker"]
        assert len(problems) == 2

    @pytest.mark.requirement("FR-012")
    def test_syntax_error_skips_file(self, tests_root: Path) -> None:
        """A broken module is skipped, siblings are still scanned."""
        _write(tests_root, "unit/test_broken.py", "def test_(:\n")

        with capture_logs() as logs:
            links = PythonSourceLinkAdapter().scan_for_links(tests_root)

        assert "FR-001" in links
        skipped = [entry for entry in logs if entry["event"] == "artifact_skipped"]
        assert len(skipped) == 1
        assert skipped[0]["path"].endswith("test_broken.py")

    @pytest.mark.requirement("FR-005")
    def test_missing_root_yields_nothing(self, tmp_path: Path) -> None:
        """A missing root is a warning, not an error."""
        with capture_logs() as logs:
            assert PythonSourceLinkAdapter().scan_for_links(tmp_path / "absent") == {}
            assert PythonSourceLinkAdapter().scan_for_links(None) == {}

        events = [entry["event"] for entry in logs]
        assert events == ["adapter_root_invalid", "adapter_root_missing"]

    @pytest.mark.requirement("FR-005")
    def test_file_root_is_invalid(self, tests_root: Path) -> None:
        """A file is not a scan root."""
        assert PythonSourceLinkAdapter().scan_for_links(tests_root / "unit" / "test_login.py") == {}
