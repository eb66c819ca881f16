"""Unit tests for identity, evidence and requirement models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError as PydanticValidationError

from reqtrace.errors import ValidationError
from reqtrace.models import (
    Evidence,
    LifecycleStatus,
    Outcome,
    Requirement,
    RequirementLink,
    TestIdentity,
    normalize_name,
)


class TestTestIdentity:
    """Tests for the namespace:member identity key."""

    @pytest.mark.requirement("FR-001")
    def test_key_concatenates_parts(self) -> None:
        """Key is namespace, separator, member."""
        identity = TestIdentity(namespace="tests.unit.test_login.TestLogin", member="test_ok")
        assert identity.key == "tests.unit.test_login.TestLogin:test_ok"
        assert str(identity) == identity.key

    @pytest.mark.requirement("FR-001")
    def test_equality_and_hash_use_key(self) -> None:
        """Identities producing the same key are one dictionary key."""
        a = TestIdentity(namespace="a.b", member="c")
        b = TestIdentity.parse("a.b:c")
        assert a == b
        assert len({a: 1, b: 2}) == 1

    @pytest.mark.requirement("FR-001")
    def test_ordering_is_lexicographic_on_key(self) -> None:
        """Sorting identities sorts their keys."""
        keys = ["b:a", "a:z", "a:b"]
        identities = sorted(TestIdentity.parse(key) for key in keys)
        assert [identity.key for identity in identities] == sorted(keys)

    @pytest.mark.requirement("FR-001")
    def test_parse_splits_on_first_separator(self) -> None:
        """The member may itself contain the separator."""
        identity = TestIdentity.parse("feature:scenario:outline")
        assert identity.namespace == "feature"
        assert identity.member == "scenario:outline"

    @pytest.mark.requirement("FR-001")
    def test_parse_without_separator_raises(self) -> None:
        """A key without namespace is rejected."""
        with pytest.raises(ValidationError, match="separator"):
            TestIdentity.parse("no-separator")

    @pytest.mark.requirement("FR-001")
    def test_identity_is_frozen(self) -> None:
        """Identities are immutable."""
        identity = TestIdentity.parse("a:b")
        with pytest.raises(PydanticValidationError):
            identity.member = "c"  # type: ignore[misc]

    @pytest.mark.requirement("FR-001")
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("User Login", "user-login"),
            ("Login (happy path)", "login--happy-path-"),
            ("a;b,c.d+e*f~g\\h/i!j$k[l]m{n}", "a-b-c-d-e-f-g-h-i-j-k-l-m-n-"),
            ("already-normal", "already-normal"),
        ],
    )
    def test_normalize_name(self, name: str, expected: str) -> None:
        """Punctuation and spaces become dashes, letters are lowered."""
        assert normalize_name(name) == expected


class TestOutcome:
    """Tests for outcome values and precedence."""

    @pytest.mark.requirement("FR-002")
    def test_precedence_order(self) -> None:
        """error > failed > passed > skipped > unknown."""
        ranked = sorted(Outcome, key=lambda outcome: outcome.precedence, reverse=True)
        assert ranked == [
            Outcome.ERROR,
            Outcome.FAILED,
            Outcome.PASSED,
            Outcome.SKIPPED,
            Outcome.UNKNOWN,
        ]

    @pytest.mark.requirement("FR-002")
    @pytest.mark.parametrize("raw", ["PASSED", "Passed", "passed"])
    def test_parse_is_case_insensitive(self, raw: str) -> None:
        """Feeds may use upper-case outcome names."""
        assert Outcome(raw) is Outcome.PASSED

    @pytest.mark.requirement("FR-002")
    def test_unknown_value_raises(self) -> None:
        """Values outside the enum are rejected."""
        with pytest.raises(ValueError):
            Outcome("flaky")


class TestEvidence:
    """Tests for the evidence record."""

    @pytest.mark.requirement("FR-002")
    def test_defaults_to_unknown(self) -> None:
        """Evidence without a status is UNKNOWN."""
        evidence = Evidence(identity=TestIdentity.parse("a:b"))
        assert evidence.status is Outcome.UNKNOWN
        assert evidence.message is None

    @pytest.mark.requirement("FR-002")
    def test_display_names_fall_back_to_identity(self) -> None:
        """Display fields fall back to the identity parts."""
        plain = Evidence(identity=TestIdentity.parse("user-login:valid-password"))
        named = plain.model_copy(
            update={"feature_name": "User Login", "scenario_name": "Valid password"}
        )

        assert (plain.display_namespace, plain.display_member) == ("user-login", "valid-password")
        assert (named.display_namespace, named.display_member) == ("User Login", "Valid password")

    @pytest.mark.requirement("FR-002")
    def test_link_embeds_identity(self) -> None:
        """A link carries an identity, it is not one."""
        link = RequirementLink(requirement_id="A1", identity=TestIdentity.parse("a:b"))
        assert link.identity.key == "a:b"
        assert not isinstance(link, TestIdentity)


class TestRequirement:
    """Tests for requirement feed entries."""

    @pytest.mark.requirement("FR-003")
    def test_parses_feed_aliases(self) -> None:
        """JSON aliases map to snake_case fields, unknown fields are ignored."""
        requirement = Requirement.model_validate(
            {
                "id": "A_19874",
                "version": 2,
                "title": "Login",
                "afoStatus": "ADDED",
                "refName": "gemSpec_IDP",
                "refURL": "https://example.org/docs/login",
                "petStatus": "open",
                "somethingElse": True,
            }
        )
        assert requirement.version == "2"
        assert requirement.lifecycle is LifecycleStatus.ADDED
        assert requirement.ref_name == "gemSpec_IDP"
        assert requirement.ref_url == "https://example.org/docs/login"
        assert requirement.pet_status == "open"
        assert requirement.status is Outcome.UNKNOWN
        assert requirement.results == []

    @pytest.mark.requirement("FR-003")
    def test_null_fields_take_defaults(self) -> None:
        """Explicit nulls behave like missing fields."""
        requirement = Requirement.model_validate(
            {"id": "A1", "title": None, "status": None, "afoStatus": None}
        )
        assert requirement.title == ""
        assert requirement.status is Outcome.UNKNOWN
        assert requirement.lifecycle is LifecycleStatus.NOTSET

    @pytest.mark.requirement("FR-003")
    def test_empty_id_is_rejected(self) -> None:
        """Every requirement needs an id."""
        with pytest.raises(PydanticValidationError):
            Requirement.model_validate({"id": ""})

    @pytest.mark.requirement("FR-003")
    def test_id_and_version(self) -> None:
        """Version is appended with a dash when set."""
        assert Requirement(id="A1").id_and_version == "A1"
        assert Requirement(id="A1", version="3").id_and_version == "A1-3"

    @pytest.mark.requirement("FR-003")
    def test_is_deleted(self) -> None:
        """Only DELETED lifecycle marks a requirement deleted."""
        assert Requirement(id="A1", lifecycle=LifecycleStatus.DELETED).is_deleted
        assert not Requirement(id="A1", lifecycle=LifecycleStatus.ADDED).is_deleted


class TestRequirementMerge:
    """Tests for merging local bookkeeping into a requirement."""

    @pytest.mark.requirement("FR-022")
    def test_takes_lifecycle_and_references_from_local(self) -> None:
        """Lifecycle and reference fields come from the local entry."""
        base = Requirement(id="A1", title="Base", ref_name="old")
        local = Requirement(
            id="A1",
            title="Local",
            lifecycle=LifecycleStatus.ADDED,
            ref_name="new",
            ref_url="https://example.org",
        )
        merged = base.merged_with(local)
        assert merged.title == "Base"
        assert merged.lifecycle is LifecycleStatus.ADDED
        assert (merged.ref_name, merged.ref_url) == ("new", "https://example.org")

    @pytest.mark.requirement("FR-022")
    def test_locally_deleted_resets_status(self) -> None:
        """A locally deleted requirement has no outcome."""
        base = Requirement(id="A1", status=Outcome.PASSED)
        merged = base.merged_with(Requirement(id="A1", lifecycle=LifecycleStatus.DELETED))
        assert merged.status is Outcome.UNKNOWN
        assert merged.is_deleted

    @pytest.mark.requirement("FR-022")
    @pytest.mark.parametrize(
        ("base_version", "local_version", "expected"),
        [
            ("3", "2", "2"),
            ("2", "3", "2"),
            ("010", "9", "9"),
            (None, "4", "4"),
            ("5", None, "5"),
            (None, None, None),
        ],
    )
    def test_keeps_lower_version(
        self,
        base_version: str | None,
        local_version: str | None,
        expected: str | None,
    ) -> None:
        """The lower numeric version wins, leading zeros are ignored."""
        base = Requirement(id="A1", version=base_version)
        merged = base.merged_with(Requirement(id="A1", version=local_version))
        assert merged.version == expected

    @pytest.mark.requirement("FR-022")
    def test_non_numeric_version_raises(self) -> None:
        """Versions are compared numerically."""
        with pytest.raises(ValidationError, match="not numeric"):
            Requirement(id="A1", version="x").merged_with(Requirement(id="A1", version="1"))

    @pytest.mark.requirement("FR-022")
    @pytest.mark.parametrize(
        ("raw_id", "expected_id", "expected_version"),
        [
            ("A_19874-01", "A_19874", "01"),
            ("GS-A_4357-02", "GS-A_4357", "02"),
            ("A_19874", "A_19874", None),
        ],
    )
    def test_sanitized_splits_version_from_id(
        self,
        raw_id: str,
        expected_id: str,
        expected_version: str | None,
    ) -> None:
        """The version starts after the first dash following the underscore."""
        sanitized = Requirement(id=raw_id).sanitized()
        assert (sanitized.id, sanitized.version) == (expected_id, expected_version)
