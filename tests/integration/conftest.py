"""Integration test configuration.

Integration tests run the full pipeline (adapters, ingestion, correlation,
export) over real files written into a temporary project tree. They need no
external services.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

FEED = [
    {"id": "A1", "version": "1", "title": "Login", "afoStatus": "ADDED"},
    {"id": "A2", "title": "Logout"},
]

SOURCE_MODULE = '''\
import pytest


class TestLogin:
    @pytest.mark.requirement("A1")
    def test_valid_password(self):
        pass

    @pytest.mark.requirement("A1")
    def test_wrong_password(self):
        pass

    @pytest.mark.requirement("R404")
    def test_forgotten_password(self):
        pass


def helper():
    pass
'''

JUNIT_REPORT = """\
<?xml version="1.0" encoding="utf-8"?>
<testsuites>
  <testsuite name="pytest" tests="3" failures="1">
    <testcase classname="tests.test_login.TestLogin" name="test_valid_password"/>
    <testcase classname="tests.test_login.TestLogin" name="test_wrong_password">
      <failure message="assert 401 == 200" type="AssertionError">Traceback ...</failure>
      <system-out>login attempt</system-out>
    </testcase>
    <testcase classname="x.Y" name="z"/>
  </testsuite>
</testsuites>
"""

FEATURE = """\
@Afo:A2
Feature: User Login

  Background:
    Given the login page

  @Afo:A1
  Scenario: Valid password
    When I log in with a valid password
    Then I see the dashboard

  @Afo:A1 @smoke
  Scenario: Wrong password
    When I log in with a wrong password
    Then I see an error

  @Afo:R404
  Scenario: Forgotten password
    When I reset my password
"""


def _tag_run(test_id: str, result: str, **extra: object) -> str:
    document = {
        "id": test_id,
        "title": test_id.split(";")[-1],
        "result": result,
        "userStory": {"storyName": "User Login", "path": "features/login.feature"},
        **extra,
    }
    return json.dumps(document)


@pytest.fixture
def feed_file(tmp_path: Path) -> Path:
    """The two-requirement feed shared by both adapter families."""
    path = tmp_path / "requirements.json"
    path.write_text(json.dumps(FEED), encoding="utf-8")
    return path


@pytest.fixture
def source_annotated_project(tmp_path: Path, feed_file: Path) -> Path:
    """pytest-style sources under tests/, JUnit XML under results/."""
    (tmp_path / "tests").mkdir()
    (tmp_path / "tests" / "test_login.py").write_text(SOURCE_MODULE, encoding="utf-8")
    (tmp_path / "tests" / "broken.py").write_text("def broken(:\n", encoding="utf-8")
    (tmp_path / "results").mkdir()
    (tmp_path / "results" / "TEST-login.xml").write_text(JUNIT_REPORT, encoding="utf-8")
    (tmp_path / "results" / "TEST-truncated.xml").write_text("<testsuite>", encoding="utf-8")
    return tmp_path


@pytest.fixture
def tag_based_project(tmp_path: Path, feed_file: Path) -> Path:
    """Feature files under features/, tag-run JSON under results/."""
    (tmp_path / "features").mkdir()
    (tmp_path / "features" / "login.feature").write_text(FEATURE, encoding="utf-8")
    results = tmp_path / "results"
    results.mkdir()
    (results / "valid.json").write_text(
        _tag_run("user-login;valid-password", "SUCCESS"), encoding="utf-8"
    )
    (results / "wrong.json").write_text(
        _tag_run(
            "user-login;wrong-password",
            "FAILURE",
            testFailureCause={"errorType": "AssertionError", "message": "error not shown"},
        ),
        encoding="utf-8",
    )
    (results / "stray.json").write_text(_tag_run("x.Y;z", "SUCCESS"), encoding="utf-8")
    (results / "no-details.json").write_text(
        _tag_run("user-login;forgotten-password", "ERROR"), encoding="utf-8"
    )
    (results / "requirements.json").write_text(json.dumps(FEED), encoding="utf-8")
    return tmp_path
