"""Canonical Pydantic models shared across specguard modules.

Schema nodes live in :mod:`specguard.schema.nodes` because they are
recursive and carry their own conversion helpers. Everything else is here,
in two groups:

**Configuration models** -- loaded from ``./specguard.json`` and the
environment by :mod:`specguard.config`:
    :class:`StrictnessOptions`, :class:`CompatibilityPolicy`,
    :class:`OutputConfig`, and :class:`GuardConfig`.

**Engine records** -- produced by the validator and the diff engine:
    :class:`HTTPMethod`, :class:`ParameterLocation`, :class:`NullableDialect`,
    :class:`CombinatorKind`, :class:`ChangeType`, :class:`DiffEntry`,
    :class:`DeprecatedEntry`, :class:`CompareResult`, and
    :class:`ValidationIssue`.
"""

from __future__ import annotations

import enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# --- Configuration ---


class StrictnessOptions(BaseModel):
    """Global validation-strictness overrides applied before validation.

    Both options tighten every object schema in the tree, including nested
    properties, array items, and combinator members.
    """

    no_additional_properties: bool = Field(
        default=False,
        description="Treat every object schema as additionalProperties: false",
    )
    all_properties_required: bool = Field(
        default=False,
        description="Treat every declared property as required",
    )

    @property
    def enabled(self) -> bool:
        """Whether any override is active."""
        return self.no_additional_properties or self.all_properties_required


class CompatibilityPolicy(BaseModel):
    """Named, independently toggleable rules used by the diff engine.

    Disabling a rule does not hide the change: the entry is reported in the
    non-breaking list instead of the breaking one.
    """

    response_required_added_is_breaking: bool = Field(
        default=True,
        description="A property newly required in a success response is breaking",
    )
    new_required_parameter_is_breaking: bool = Field(
        default=True,
        description="A parameter absent in base and required in head is breaking",
    )


class OutputConfig(BaseModel):
    """Default output format preference stored in :class:`GuardConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class GuardConfig(BaseModel):
    """Effective configuration after precedence resolution.

    See :func:`~specguard.config.resolve_config` for the precedence chain.
    Unknown keys in the project file are rejected so typos surface early.
    """

    model_config = ConfigDict(extra="forbid")

    openapi_version: Optional[str] = Field(
        default=None,
        description="Version assumed for documents without an openapi field",
    )
    strictness: StrictnessOptions = Field(default_factory=StrictnessOptions)
    policy: CompatibilityPolicy = Field(default_factory=CompatibilityPolicy)
    output: OutputConfig = Field(default_factory=OutputConfig)


# --- Engine enums ---


class HTTPMethod(str, enum.Enum):
    """HTTP methods recognised by OpenAPI 3.x path-item objects.

    Declaration order is the canonical iteration order of the diff engine;
    reports depend on it being stable.
    """

    GET = "get"
    POST = "post"
    PUT = "put"
    PATCH = "patch"
    DELETE = "delete"
    OPTIONS = "options"
    HEAD = "head"
    TRACE = "trace"


class ParameterLocation(str, enum.Enum):
    """Locations where an API parameter can appear, per OpenAPI ``in`` field."""

    QUERY = "query"
    HEADER = "header"
    PATH = "path"
    COOKIE = "cookie"


class NullableDialect(str, enum.Enum):
    """How "this value may be null" is spelled.

    ``FLAG`` is OpenAPI 3.0 (``nullable: true``); ``UNION`` is OpenAPI 3.1
    (``type: ["string", "null"]``).
    """

    FLAG = "flag"
    UNION = "union"


class CombinatorKind(str, enum.Enum):
    """Schema composition operators."""

    ONE_OF = "oneOf"
    ANY_OF = "anyOf"
    ALL_OF = "allOf"


class ChangeType(str, enum.Enum):
    """Fixed set of change kinds reported by the diff engine."""

    REMOVED = "removed"
    ADDED = "added"
    PARAMETER_REMOVED = "parameter-removed"
    PARAMETER_REQUIRED_ADDED = "parameter-required-added"
    RESPONSE_CODE_REMOVED = "response-code-removed"
    TYPE_CHANGED = "type-changed"
    REQUIRED_ADDED = "required-added"
    ENUM_VALUE_REMOVED = "enum-value-removed"
    REQUEST_BODY_REQUIRED_ADDED = "request-body-required-added"
    MODIFIED = "modified"


# --- Engine records ---


class DiffEntry(BaseModel):
    """A single classified change between two documents."""

    path: str
    method: Optional[str] = None
    description: str
    type: ChangeType


class DeprecatedEntry(BaseModel):
    """An operation that became deprecated in the head document."""

    path: str
    method: str
    description: Optional[str] = None


class CompareResult(BaseModel):
    """Outcome of :func:`~specguard.diff.engine.compare_specs`.

    Each list keeps encounter order (path order, then canonical method order,
    then sub-comparison order) so results can be snapshot-tested.
    ``model_dump(by_alias=True)`` yields the ``nonBreaking`` key used by
    JSON consumers.
    """

    breaking: list[DiffEntry] = Field(default_factory=list)
    non_breaking: list[DiffEntry] = Field(default_factory=list, alias="nonBreaking")
    deprecated: list[DeprecatedEntry] = Field(default_factory=list)

    model_config = {"populate_by_name": True}

    @property
    def has_breaking_changes(self) -> bool:
        """Whether at least one breaking change was recorded."""
        return bool(self.breaking)

    @property
    def is_empty(self) -> bool:
        """Whether nothing at all was recorded."""
        return not (self.breaking or self.non_breaking or self.deprecated)


class ValidationIssue(BaseModel):
    """One validation failure at a JSON-path-like location (``$.items[0].id``)."""

    path: str
    message: str
    expected: Any = None
    actual: Any = None
