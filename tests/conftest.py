"""Shared pytest fixtures for reqtrace tests.

This module provides fixtures used by both test tiers (unit, integration).

NOTE: Do NOT add __init__.py to test directories - pytest uses importlib mode
which can cause namespace collisions with __init__.py files.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest
import structlog

from reqtrace.models import Evidence, Outcome, TestIdentity
from reqtrace.telemetry import reset_tracer


def pytest_configure(config: pytest.Config) -> None:
    """Register the requirement marker."""
    config.addinivalue_line(
        "markers",
        "requirement(id): mark test as validating a specific requirement (FR-XXX)",
    )


@pytest.fixture(autouse=True)
def reset_observability() -> Generator[None, None, None]:
    """Reset structlog and tracer state after each test.

    The CLI configures structlog with the stderr stream of its runner, which
    is closed once the runner exits.
    """
    yield
    structlog.reset_defaults()
    reset_tracer()


@pytest.fixture
def make_identity() -> Callable[[str], TestIdentity]:
    """Factory building identities from ``namespace:member`` keys."""
    return TestIdentity.parse


@pytest.fixture
def make_evidence() -> Callable[..., Evidence]:
    """Factory building evidence from a key and an outcome."""

    def _make(key: str, status: Outcome = Outcome.PASSED, **fields: Any) -> Evidence:
        return Evidence(identity=TestIdentity.parse(key), status=status, **fields)

    return _make


@pytest.fixture
def write_feed(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing a requirement feed into the test directory.

    Usage:
        def test_x(write_feed):
            path = write_feed([{"id": "A1"}])
    """

    def _write(entries: Any, name: str = "requirements.json") -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(entries), encoding="utf-8")
        return path

    return _write
