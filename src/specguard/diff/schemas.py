"""Structural comparison of two response schemas.

Both schemas must already be resolved and normalized to the same nullable
dialect; :class:`~specguard.diff.engine.SpecComparer` takes care of that.
:func:`compare_schemas` then walks the two trees side by side and reports:

* a changed base type or format (``type-changed``);
* a property newly listed in ``required`` (``required-added``);
* an enum value that disappeared (``enum-value-removed``).

The walk recurses into properties present on both sides and into array
items. Composite schemas are compared member by member when they use the
same combinator with the same number of members. An ``allOf`` whose members
merge into a single object schema is merged first. Cycle markers and dangling
references are skipped rather than compared.

The result is a list of :class:`SchemaChange` tuples without path or method;
the caller attaches those and decides which list each change belongs in.
"""

from __future__ import annotations

import json
from typing import Any, NamedTuple

from specguard.models import ChangeType, CombinatorKind
from specguard.schema.merger import merge_schemas
from specguard.schema.nodes import (
    ArraySchema,
    CompositeSchema,
    ObjectSchema,
    RefSchema,
    Scalar,
    SchemaNode,
)


class SchemaChange(NamedTuple):
    """One difference found between two schemas."""

    type: ChangeType
    description: str


def compare_schemas(base: SchemaNode, head: SchemaNode) -> list[SchemaChange]:
    """Compare *base* against *head*, returning changes in discovery order.

    Order within one level is: type change, newly required properties (in
    head's ``required`` order), removed enum values (in base's order), then
    nested properties (in base's declaration order), then array items.
    """
    if isinstance(base, RefSchema) or isinstance(head, RefSchema):
        return []
    base, head = _merged(base), _merged(head)

    changes: list[SchemaChange] = []

    base_label, head_label = type_label(base), type_label(head)
    if base_label != head_label:
        changes.append(
            SchemaChange(
                ChangeType.TYPE_CHANGED,
                f'Response type changed from "{base_label}" to "{head_label}"',
            )
        )

    if isinstance(head, ObjectSchema):
        base_required = set(base.required) if isinstance(base, ObjectSchema) else set()
        for name in head.required:
            if name not in base_required:
                changes.append(
                    SchemaChange(
                        ChangeType.REQUIRED_ADDED,
                        f'Property "{name}" became required in response',
                    )
                )

    if base.enum is not None:
        head_enum = head.enum or ()
        for value in base.enum:
            if not _contains(head_enum, value):
                changes.append(
                    SchemaChange(
                        ChangeType.ENUM_VALUE_REMOVED,
                        f'Enum value "{_render(value)}" was removed',
                    )
                )

    if isinstance(base, ObjectSchema) and isinstance(head, ObjectSchema):
        for name, base_prop in base.properties.items():
            head_prop = head.properties.get(name)
            if head_prop is not None:
                changes.extend(compare_schemas(base_prop, head_prop))

    if isinstance(base, ArraySchema) and isinstance(head, ArraySchema):
        if base.items is not None and head.items is not None:
            changes.extend(compare_schemas(base.items, head.items))

    if (
        isinstance(base, CompositeSchema)
        and isinstance(head, CompositeSchema)
        and base.combinator is head.combinator
        and len(base.members) == len(head.members)
    ):
        if base.base is not None and head.base is not None:
            changes.extend(compare_schemas(base.base, head.base))
        for base_member, head_member in zip(base.members, head.members):
            changes.extend(compare_schemas(base_member, head_member))

    return changes


def type_label(node: SchemaNode) -> str:
    """Return the type as shown in change descriptions.

    ``"string"``, ``"string (date-time)"``, ``"object"``, ``"oneOf[2]"``,
    or ``"any"`` for an untyped scalar.
    """
    if isinstance(node, CompositeSchema):
        return f"{node.combinator.value}[{len(node.members)}]"
    if isinstance(node, ObjectSchema):
        return "object"
    if isinstance(node, ArraySchema):
        return "array"
    if isinstance(node, Scalar):
        if node.type is None:
            name = "any"
        elif isinstance(node.type, str):
            name = node.type
        else:
            name = " | ".join(node.type)
        return f"{name} ({node.format})" if node.format else name
    return "ref"


def _merged(node: SchemaNode) -> SchemaNode:
    """Collapse an object-shaped ``allOf`` so its properties compare directly."""
    if isinstance(node, CompositeSchema) and node.combinator is CombinatorKind.ALL_OF:
        merged = merge_schemas([node])
        if isinstance(merged, ObjectSchema):
            return merged
    return node


def _contains(values: tuple[Any, ...], value: Any) -> bool:
    # Keep JSON's distinction between true and 1.
    return any(
        value == other and isinstance(value, bool) == isinstance(other, bool)
        for other in values
    )


def _render(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value)
