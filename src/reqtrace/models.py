"""Identity and evidence value types shared by adapters and the engine.

Every adapter and every stage of the pipeline speaks in these types:

    TestIdentity: Normalized ``namespace:member`` key naming one test
    Outcome: Test/requirement outcome with a fixed precedence
    LifecycleStatus: Declared lifecycle of a requirement in the feed
    Evidence: Outcome record of one test, keyed by its identity
    RequirementLink: Association of a requirement id with a test identity
    Requirement: A tracked requirement as read from the feed

Models are frozen Pydantic v2 models. A requirement's resolved evidence and
aggregate outcome are filled in once, by producing a resolved copy.

Example:
    >>> identity = TestIdentity.parse("tests.unit.test_login.TestLogin:test_ok")
    >>> identity.namespace
    'tests.unit.test_login.TestLogin'
    >>> Evidence(identity=identity, status=Outcome.PASSED).status
    <Outcome.PASSED: 'passed'>
"""

from __future__ import annotations

from enum import Enum
from functools import total_ordering
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from reqtrace.errors import ValidationError

IDENTITY_SEPARATOR = ":"
"""Separator between namespace and member in a TestIdentity key."""

_NAME_REPLACED_CHARS = " ;,.+*~\\/!$()[]{}"
"""Characters replaced by '-' when deriving identities from display names."""


def normalize_name(name: str) -> str:
    """Normalize a human-readable feature or scenario name into an id part.

    Every character of ``_NAME_REPLACED_CHARS`` becomes ``-`` and the result
    is lower-cased, which is how tag-run result documents name their tests.

    Args:
        name: Feature or scenario display name.

    Returns:
        Normalized identity part.

    Example:
        >>> normalize_name("Login (happy path)")
        'login--happy-path-'
    """
    table = str.maketrans({char: "-" for char in _NAME_REPLACED_CHARS})
    return name.translate(table).lower()


class _CaseInsensitiveEnum(str, Enum):
    """String enum accepting values in any letter case (``PASSED``, ``Passed``)."""

    @classmethod
    def _missing_(cls, value: object) -> Any:
        if isinstance(value, str):
            lowered = value.lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return None


class Outcome(_CaseInsensitiveEnum):
    """Outcome of a test run or aggregate outcome of a requirement.

    Outcomes are totally ordered by ``precedence``:
    ERROR > FAILED > PASSED > SKIPPED > UNKNOWN.
    """

    PASSED = "passed"
    FAILED = "failed"
    ERROR = "error"
    SKIPPED = "skipped"
    UNKNOWN = "unknown"

    @property
    def precedence(self) -> int:
        """Rank of this outcome when reducing several outcomes to one."""
        return _OUTCOME_PRECEDENCE[self]


_OUTCOME_PRECEDENCE: dict[Outcome, int] = {
    Outcome.UNKNOWN: 0,
    Outcome.SKIPPED: 1,
    Outcome.PASSED: 2,
    Outcome.FAILED: 3,
    Outcome.ERROR: 4,
}


class LifecycleStatus(_CaseInsensitiveEnum):
    """Declared lifecycle of a requirement.

    DELETED requirements are excluded from aggregation.
    """

    NOTSET = "notset"
    ADDED = "added"
    DELETED = "deleted"


@total_ordering
class TestIdentity(BaseModel):
    """Key naming one physical test across all adapters.

    The key is ``namespace + ":" + member``. Equality, hashing and ordering
    use the concatenated key only, so two adapters agree on a test exactly
    when they produce byte-identical keys.

    Attributes:
        namespace: Fully qualified grouping (class path, feature id).
        member: Method or scenario id.
    """

    __test__: ClassVar[bool] = False

    model_config = ConfigDict(frozen=True, extra="forbid")

    namespace: str = Field(..., description="Fully qualified grouping")
    member: str = Field(..., description="Method or scenario name")

    @property
    def key(self) -> str:
        """Concatenated identity key."""
        return f"{self.namespace}{IDENTITY_SEPARATOR}{self.member}"

    @classmethod
    def parse(cls, key: str) -> TestIdentity:
        """Build an identity from its concatenated key.

        Args:
            key: ``namespace:member`` string. Splits on the first separator.

        Returns:
            The parsed identity.

        Raises:
            ValidationError: If the key contains no separator.
        """
        namespace, sep, member = key.partition(IDENTITY_SEPARATOR)
        if not sep:
            raise ValidationError(
                "Test identity key lacks a namespace separator",
                field="key",
                value=key,
            )
        return cls(namespace=namespace, member=member)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TestIdentity):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, TestIdentity):
            return NotImplemented
        return self.key < other.key

    def __str__(self) -> str:
        return self.key


class Evidence(BaseModel):
    """Outcome and diagnostics of one test run.

    Attributes:
        identity: Which test this record describes.
        status: Observed outcome.
        message: Failure/error/skip message.
        error_type: Exception or failure type.
        detail: Failure detail (stack trace, element text).
        stdout: Captured standard output.
        stderr: Captured standard error.
        suite: Name of the containing suite, if the artifact has one.
        feature_name: Human-readable grouping name for display.
        scenario_name: Human-readable test name for display.
        path: Source path of the test for display.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    identity: TestIdentity
    status: Outcome = Outcome.UNKNOWN
    message: str | None = None
    error_type: str | None = None
    detail: str | None = None
    stdout: str | None = None
    stderr: str | None = None
    suite: str | None = None
    feature_name: str | None = None
    scenario_name: str | None = None
    path: str | None = None

    @property
    def display_namespace(self) -> str:
        """Feature name if known, else the identity namespace."""
        return self.feature_name or self.identity.namespace

    @property
    def display_member(self) -> str:
        """Scenario name if known, else the identity member."""
        return self.scenario_name or self.identity.member


class RequirementLink(BaseModel):
    """A discovered association between a requirement id and a test."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    requirement_id: str
    identity: TestIdentity


class Requirement(BaseModel):
    """A tracked requirement as declared in the requirement feed.

    Field aliases match the feed's JSON names (``afoStatus``, ``refName``,
    ``refURL``, ``petStatus``). Unknown feed fields are ignored.

    ``status`` and ``results`` are only ever set by aggregation, which
    returns a resolved copy of the requirement.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    id: str = Field(..., min_length=1)
    version: str | None = None
    title: str = ""
    status: Outcome = Outcome.UNKNOWN
    lifecycle: LifecycleStatus = Field(default=LifecycleStatus.NOTSET, alias="afoStatus")
    ref_name: str | None = Field(default=None, alias="refName")
    ref_url: str | None = Field(default=None, alias="refURL")
    description: str | None = None
    pet_status: str | None = Field(default=None, alias="petStatus")
    results: list[Evidence] = Field(default_factory=list)

    @field_validator("version", mode="before")
    @classmethod
    def _version_as_string(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("title", mode="before")
    @classmethod
    def _title_default(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("status", mode="before")
    @classmethod
    def _status_default(cls, value: Any) -> Any:
        return Outcome.UNKNOWN if value is None else value

    @field_validator("lifecycle", mode="before")
    @classmethod
    def _lifecycle_default(cls, value: Any) -> Any:
        return LifecycleStatus.NOTSET if value is None else value

    @property
    def is_deleted(self) -> bool:
        """Whether the requirement is excluded from aggregation."""
        return self.lifecycle is LifecycleStatus.DELETED

    @property
    def id_and_version(self) -> str:
        """Display id, suffixed with ``-version`` when a version is set."""
        if self.version is not None:
            return f"{self.id}-{self.version}"
        return self.id

    def merged_with(self, local: Requirement) -> Requirement:
        """Merge locally maintained bookkeeping into this requirement.

        Lifecycle and reference fields come from ``local``. A locally
        deleted requirement has its outcome reset to UNKNOWN. Of two numeric
        versions the lower one is kept; a missing version adopts the local one.

        Args:
            local: The locally maintained entry for the same requirement.

        Returns:
            Merged copy of this requirement.
        """
        update: dict[str, Any] = {
            "lifecycle": local.lifecycle,
            "ref_name": local.ref_name,
            "ref_url": local.ref_url,
        }
        if local.is_deleted:
            update["status"] = Outcome.UNKNOWN
        if self.version is None:
            if local.version is not None:
                update["version"] = local.version
        elif local.version is not None and _version_number(self.version) > _version_number(
            local.version
        ):
            update["version"] = local.version
        return self.model_copy(update=update)

    def sanitized(self) -> Requirement:
        """Split a ``PREFIX_NAME-VERSION`` id into id and version.

        The version starts after the first ``-`` following the first ``_``.
        Ids without such a dash are returned unchanged.
        """
        underscore = self.id.find("_")
        dash = self.id.find("-", underscore + 1)
        if dash == -1:
            return self
        return self.model_copy(update={"id": self.id[:dash], "version": self.id[dash + 1 :]})


def _version_number(version: str) -> int:
    stripped = version.lstrip("0")
    try:
        return int(stripped) if stripped else 0
    except ValueError as e:
        raise ValidationError(
            "Requirement version is not numeric", field="version", value=version
        ) from e


__all__ = [
    "Evidence",
    "IDENTITY_SEPARATOR",
    "LifecycleStatus",
    "Outcome",
    "Requirement",
    "RequirementLink",
    "TestIdentity",
    "normalize_name",
]
