"""Unit tests for requirement feed loading and merging."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from reqtrace.errors import ConfigurationError
from reqtrace.feed import load_requirements, merge_feeds
from reqtrace.models import LifecycleStatus, Outcome, Requirement


class TestLoadRequirements:
    """Tests for reading and validating the feed."""

    @pytest.mark.requirement("FR-011")
    def test_loads_entries_in_order(self, write_feed: Callable[..., Path]) -> None:
        """Entries are returned in feed order with defaults applied."""
        path = write_feed(
            [
                {"id": "A2", "title": "Second", "afoStatus": "added", "extra": 1},
                {"id": "A1", "version": "1"},
            ]
        )

        requirements = load_requirements(path)

        assert [r.id for r in requirements] == ["A2", "A1"]
        assert requirements[0].lifecycle is LifecycleStatus.ADDED
        assert all(r.status is Outcome.UNKNOWN for r in requirements)

    @pytest.mark.requirement("FR-011")
    def test_missing_file(self, tmp_path: Path) -> None:
        """A missing feed is a configuration error."""
        with pytest.raises(ConfigurationError, match="Unable to find requirements file"):
            load_requirements(tmp_path / "absent.json")

    @pytest.mark.requirement("FR-011")
    def test_directory_is_not_a_feed(self, tmp_path: Path) -> None:
        """A directory path is treated as a missing file."""
        with pytest.raises(ConfigurationError, match="Unable to find requirements file"):
            load_requirements(tmp_path)

    @pytest.mark.requirement("FR-011")
    def test_invalid_json(self, tmp_path: Path) -> None:
        """Unparseable JSON is a configuration error."""
        path = tmp_path / "requirements.json"
        path.write_text("[{", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="not valid JSON"):
            load_requirements(path)

    @pytest.mark.requirement("FR-011")
    def test_not_an_array(self, write_feed: Callable[..., Path]) -> None:
        """The feed must be a JSON array."""
        with pytest.raises(ConfigurationError, match="JSON array"):
            load_requirements(write_feed({"id": "A1"}))

    @pytest.mark.requirement("FR-011")
    def test_empty_array(self, write_feed: Callable[..., Path]) -> None:
        """An empty feed is a configuration error."""
        with pytest.raises(ConfigurationError, match="No requirements were found"):
            load_requirements(write_feed([]))

    @pytest.mark.requirement("FR-011")
    def test_entry_without_id(self, write_feed: Callable[..., Path]) -> None:
        """Entries must at least carry an id."""
        with pytest.raises(ConfigurationError, match="invalid entries"):
            load_requirements(write_feed([{"title": "No id"}]))


class TestMergeFeeds:
    """Tests for merging a local feed into the published one."""

    @pytest.mark.requirement("FR-022")
    def test_matched_entries_are_merged_and_new_ones_appended(self) -> None:
        """Base order is kept; local-only entries follow."""
        base = [Requirement(id="A1", version="2"), Requirement(id="A2")]
        local = [
            Requirement(id="A3", title="Local only"),
            Requirement(id="A1", version="1", lifecycle=LifecycleStatus.DELETED),
        ]

        merged = merge_feeds(base, local)

        assert [r.id for r in merged] == ["A1", "A2", "A3"]
        assert merged[0].version == "1"
        assert merged[0].is_deleted
        assert merged[1] == base[1]
        assert merged[2].title == "Local only"

    @pytest.mark.requirement("FR-022")
    def test_empty_local_feed(self) -> None:
        """Nothing to merge leaves the base unchanged."""
        base = [Requirement(id="A1")]
        assert merge_feeds(base, []) == base

    @pytest.mark.requirement("FR-022")
    def test_non_numeric_versions_are_a_configuration_error(self) -> None:
        """Versions that cannot be compared stop the merge as a feed problem."""
        base = [Requirement(id="A1", version="2")]
        local = [Requirement(id="A1", version="1a")]

        with pytest.raises(ConfigurationError, match="Unable to merge local requirement") as exc:
            merge_feeds(base, local)

        assert exc.value.details["id"] == "A1"
        assert exc.value.details["field"] == "version"
