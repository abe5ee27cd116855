"""Validate JSON-like data against schema nodes and combinators.

:class:`SchemaValidator` bundles the pieces a validation session needs --
the :class:`~specguard.schema.registry.SchemaRegistry` for ``$ref``
resolution and optional :class:`~specguard.models.StrictnessOptions` -- and
exposes the baseline validator plus one method per combinator:

* :meth:`~SchemaValidator.validate_against_schema` -- type, constraint, and
  structure checks on plain schemas.
* :meth:`~SchemaValidator.validate_one_of` -- exactly one member must match.
* :meth:`~SchemaValidator.validate_any_of` -- at least one member must match.
* :meth:`~SchemaValidator.validate_all_of` -- every member must match.
* :meth:`~SchemaValidator.validate_composite_schema` -- dispatch on whatever
  combinators a schema declares.

Every method returns an ordered list of
:class:`~specguard.models.ValidationIssue`; an empty list means valid.
Issue paths are JSON-path-like: ``$``, ``$.owner.name``, ``$.tags[2]``.

Invalid regular expressions in ``pattern`` never abort validation. They are
recorded in :attr:`SchemaValidator.warnings`, logged, and the pattern check
is skipped.

References are expanded lazily against the registry. A reference that comes
back to itself at the same data path (an alias chain such as ``A -> B -> A``,
or a self-reference inside a combinator) is left unresolved and constrains
nothing, so validation always terminates.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from typing import Any, Optional

from specguard.models import CombinatorKind, StrictnessOptions, ValidationIssue
from specguard.schema.merger import apply_strictness
from specguard.schema.nodes import (
    ArraySchema,
    CompositeSchema,
    ObjectSchema,
    RefSchema,
    Scalar,
    SchemaNode,
    type_names,
)
from specguard.schema.registry import SchemaRegistry

logger = logging.getLogger(__name__)


class SchemaValidator:
    """Validator bound to one registry and one set of strictness overrides.

    Args:
        registry: Definitions used to resolve ``$ref`` pointers. An empty
            registry is created when omitted.
        strictness: Global overrides applied to every schema before
            validation. ``None`` applies none.

    Example::

        validator = SchemaValidator(SchemaRegistry.from_document(document))
        issues = validator.validate_composite_schema(body, schema)
        for issue in issues:
            print(issue.path, issue.message)
    """

    def __init__(
        self,
        registry: Optional[SchemaRegistry] = None,
        strictness: Optional[StrictnessOptions] = None,
    ) -> None:
        self.registry = registry if registry is not None else SchemaRegistry()
        self.strictness = strictness or StrictnessOptions()
        self.warnings: list[str] = []
        # (pointer, data path) pairs being expanded on the current call stack.
        self._expanding: set[tuple[str, str]] = set()

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def validate_against_schema(
        self, data: Any, schema: SchemaNode, path: str = "$"
    ) -> list[ValidationIssue]:
        """Validate *data* against a plain schema.

        References are expanded as the data is walked. A composite schema
        found here (at the top or nested inside properties or items) is
        handed to :meth:`validate_composite_schema`.
        """
        return self._validate(data, self._prepare(schema), path)

    def validate_one_of(
        self, data: Any, schemas: Sequence[SchemaNode], path: str = "$"
    ) -> list[ValidationIssue]:
        """Succeed only if *data* matches exactly one of *schemas*.

        Member errors are not reported. No match yields a single "does not
        match any" issue; several matches yield a single ambiguity issue
        naming the match count.
        """
        matches = sum(
            1 for schema in schemas if not self.validate_against_schema(data, schema, path)
        )
        if matches == 0:
            return [
                ValidationIssue(
                    path=path,
                    message=f"oneOf: does not match any schema ({len(schemas)} schemas checked)",
                )
            ]
        if matches > 1:
            return [
                ValidationIssue(
                    path=path,
                    message=f"oneOf: must match exactly one schema but matched {matches}",
                )
            ]
        return []

    def validate_any_of(
        self, data: Any, schemas: Sequence[SchemaNode], path: str = "$"
    ) -> list[ValidationIssue]:
        """Succeed as soon as *data* matches one of *schemas*."""
        for schema in schemas:
            if not self.validate_against_schema(data, schema, path):
                return []
        return [
            ValidationIssue(
                path=path,
                message=f"anyOf: does not match any schema ({len(schemas)} schemas checked)",
            )
        ]

    def validate_all_of(
        self, data: Any, schemas: Sequence[SchemaNode], path: str = "$"
    ) -> list[ValidationIssue]:
        """Require *data* to match every schema, collecting every failure.

        Each failing member contributes an ``allOf[i]`` summary issue followed
        by that member's own issues.
        """
        issues: list[ValidationIssue] = []
        for index, schema in enumerate(schemas):
            member_issues = self.validate_against_schema(data, schema, path)
            if member_issues:
                issues.append(
                    ValidationIssue(
                        path=path, message=f"allOf[{index}]: does not match schema"
                    )
                )
                issues.extend(member_issues)
        return issues

    def validate_composite_schema(
        self, data: Any, schema: SchemaNode, path: str = "$"
    ) -> list[ValidationIssue]:
        """Validate *data* against whichever combinators *schema* declares.

        Falls back to :meth:`validate_against_schema` for plain schemas.
        """
        node = self._prepare(schema)
        if not isinstance(node, CompositeSchema):
            return self._validate(data, node, path)
        return self._validate_composite(data, node, path)

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _prepare(self, schema: SchemaNode) -> SchemaNode:
        return apply_strictness(schema, self.strictness)

    def _validate_ref(self, data: Any, node: RefSchema, path: str) -> list[ValidationIssue]:
        key = (node.ref, path)
        if key in self._expanding:
            # Re-entered without consuming any data: leave the marker unresolved.
            logger.debug("Cycle at %s through %s; leaving reference unresolved", path, node.ref)
            return []
        target = self.registry.lookup(node.ref)
        if target is None:
            logger.debug("Unresolvable reference %s at %s; skipping", node.ref, path)
            return []
        self._expanding.add(key)
        try:
            return self._validate(data, self._prepare(target), path)
        finally:
            self._expanding.discard(key)

    def _validate_composite(
        self, data: Any, node: CompositeSchema, path: str
    ) -> list[ValidationIssue]:
        if data is None and node.is_nullable:
            return []

        issues: list[ValidationIssue] = []
        current: Optional[SchemaNode] = node
        # Several combinators on one schema arrive as nested composites.
        while isinstance(current, CompositeSchema):
            if current.members:
                if current.combinator is CombinatorKind.ONE_OF:
                    issues.extend(self.validate_one_of(data, current.members, path))
                elif current.combinator is CombinatorKind.ANY_OF:
                    issues.extend(self.validate_any_of(data, current.members, path))
                else:
                    issues.extend(self.validate_all_of(data, current.members, path))
            current = current.base
        # Keywords beside the combinators still apply to the data.
        if current is not None:
            issues.extend(self._validate(data, current, path))
        return issues

    def _validate(self, data: Any, node: SchemaNode, path: str) -> list[ValidationIssue]:
        if isinstance(node, RefSchema):
            return self._validate_ref(data, node, path)

        if isinstance(node, CompositeSchema):
            return self._validate_composite(data, node, path)

        expected = type_names(node)

        if data is None:
            if node.is_nullable or (not expected and not node.null_in_type and node.kind == "scalar"):
                return []
            return [
                ValidationIssue(
                    path=path,
                    message="null is not allowed",
                    expected=_describe(expected),
                    actual="null",
                )
            ]

        actual = json_type(data)
        if expected and not any(_type_matches(name, data, actual) for name in expected):
            return [
                ValidationIssue(
                    path=path,
                    message=f"type mismatch: expected {_describe(expected)}, got {actual}",
                    expected=_describe(expected),
                    actual=actual,
                )
            ]
        if not expected and node.null_in_type and not node.nullable:
            return [
                ValidationIssue(
                    path=path,
                    message=f"type mismatch: expected null, got {actual}",
                    expected="null",
                    actual=actual,
                )
            ]

        issues: list[ValidationIssue] = []
        if node.enum is not None and not _in_enum(data, node.enum):
            issues.append(
                ValidationIssue(
                    path=path,
                    message=f"value {data!r} is not one of the allowed values",
                    expected=list(node.enum),
                    actual=data,
                )
            )

        if isinstance(node, Scalar):
            issues.extend(self._check_scalar(data, node, path))
        elif isinstance(node, ArraySchema) and isinstance(data, list):
            issues.extend(self._check_array(data, node, path))
        elif isinstance(node, ObjectSchema) and isinstance(data, Mapping):
            issues.extend(self._check_object(data, node, path))
        return issues

    def _check_scalar(self, data: Any, node: Scalar, path: str) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []

        if isinstance(data, str):
            if node.min_length is not None and len(data) < node.min_length:
                issues.append(
                    ValidationIssue(
                        path=path,
                        message=f"string is shorter than minLength {node.min_length}",
                        expected=node.min_length,
                        actual=len(data),
                    )
                )
            if node.max_length is not None and len(data) > node.max_length:
                issues.append(
                    ValidationIssue(
                        path=path,
                        message=f"string is longer than maxLength {node.max_length}",
                        expected=node.max_length,
                        actual=len(data),
                    )
                )
            if node.pattern is not None:
                issues.extend(self._check_pattern(data, node.pattern, path))

        if _is_number(data):
            issues.extend(_check_range(data, node, path))
        return issues

    def _check_pattern(self, data: str, pattern: str, path: str) -> list[ValidationIssue]:
        try:
            compiled = re.compile(pattern)
        except re.error as exc:
            message = f"{path}: invalid pattern {pattern!r} ignored ({exc})"
            logger.warning(message)
            self.warnings.append(message)
            return []
        if compiled.search(data) is None:
            return [
                ValidationIssue(
                    path=path,
                    message=f"string does not match pattern {pattern!r}",
                    expected=pattern,
                    actual=data,
                )
            ]
        return []

    def _check_array(
        self, data: list[Any], node: ArraySchema, path: str
    ) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        if node.min_items is not None and len(data) < node.min_items:
            issues.append(
                ValidationIssue(
                    path=path,
                    message=f"array has fewer than minItems {node.min_items}",
                    expected=node.min_items,
                    actual=len(data),
                )
            )
        if node.max_items is not None and len(data) > node.max_items:
            issues.append(
                ValidationIssue(
                    path=path,
                    message=f"array has more than maxItems {node.max_items}",
                    expected=node.max_items,
                    actual=len(data),
                )
            )
        if node.items is not None:
            for index, item in enumerate(data):
                issues.extend(self._validate(item, node.items, f"{path}[{index}]"))
        return issues

    def _check_object(
        self, data: Mapping[str, Any], node: ObjectSchema, path: str
    ) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []

        for name in node.required:
            if name not in data:
                issues.append(
                    ValidationIssue(path=f"{path}.{name}", message="missing required property")
                )

        extra_keys = [key for key in data if key not in node.properties]
        if node.additional_properties is False:
            for key in extra_keys:
                issues.append(
                    ValidationIssue(
                        path=f"{path}.{key}", message="additional property is not allowed"
                    )
                )
        elif not isinstance(node.additional_properties, (bool, type(None))):
            for key in extra_keys:
                issues.extend(
                    self._validate(data[key], node.additional_properties, f"{path}.{key}")
                )

        for name, prop in node.properties.items():
            if name in data:
                issues.extend(self._validate(data[name], prop, f"{path}.{name}"))
        return issues


def validate(
    data: Any,
    schema: SchemaNode,
    registry: Optional[SchemaRegistry] = None,
    strictness: Optional[StrictnessOptions] = None,
) -> list[ValidationIssue]:
    """One-shot helper: validate *data* with a fresh :class:`SchemaValidator`."""
    return SchemaValidator(registry, strictness).validate_composite_schema(data, schema)


def json_type(value: Any) -> str:
    """Return the JSON Schema type name of a Python value.

    ``bool`` is checked before ``int`` because it is a subclass of it.
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, Mapping):
        return "object"
    return type(value).__name__


def _type_matches(expected: str, value: Any, actual: str) -> bool:
    if expected == actual:
        return True
    if expected == "number":
        return actual == "integer"
    if expected == "integer":
        return actual == "number" and float(value).is_integer()
    return False


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _in_enum(value: Any, allowed: tuple[Any, ...]) -> bool:
    # 1 == True in Python; JSON keeps booleans and numbers apart.
    return any(
        value == option and isinstance(value, bool) == isinstance(option, bool)
        for option in allowed
    )


def _describe(names: tuple[str, ...]) -> str:
    return " | ".join(names) if names else "any"


def _check_range(value: float, node: Scalar, path: str) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []

    if node.minimum is not None:
        exclusive = node.exclusive_minimum is True
        if value < node.minimum or (exclusive and value == node.minimum):
            issues.append(
                ValidationIssue(
                    path=path,
                    message=f"value is below {'exclusive ' if exclusive else ''}minimum {node.minimum}",
                    expected=node.minimum,
                    actual=value,
                )
            )
    if _is_number(node.exclusive_minimum) and value <= node.exclusive_minimum:
        issues.append(
            ValidationIssue(
                path=path,
                message=f"value must be greater than {node.exclusive_minimum}",
                expected=node.exclusive_minimum,
                actual=value,
            )
        )

    if node.maximum is not None:
        exclusive = node.exclusive_maximum is True
        if value > node.maximum or (exclusive and value == node.maximum):
            issues.append(
                ValidationIssue(
                    path=path,
                    message=f"value is above {'exclusive ' if exclusive else ''}maximum {node.maximum}",
                    expected=node.maximum,
                    actual=value,
                )
            )
    if _is_number(node.exclusive_maximum) and value >= node.exclusive_maximum:
        issues.append(
            ValidationIssue(
                path=path,
                message=f"value must be less than {node.exclusive_maximum}",
                expected=node.exclusive_maximum,
                actual=value,
            )
        )
    return issues
