"""Merge ``allOf`` member lists and apply global strictness overrides.

:func:`merge_schemas` collapses an ordered list of schemas into one
effective schema. The precedence rules are deliberately asymmetric and must
stay that way:

=========================  ==========================================
field                      rule
=========================  ==========================================
``type``                   first non-empty type, left to right
``properties``             union by name; a later schema wins per name
``required``               set union, duplicates removed
``additionalProperties``   first schema that defines it wins
``description``            first non-empty description wins
=========================  ==========================================

:func:`apply_strictness` rewrites every object schema in a tree according to
:class:`~specguard.models.StrictnessOptions`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any, Optional

from specguard.models import CombinatorKind, StrictnessOptions
from specguard.schema.nodes import (
    ArraySchema,
    CompositeSchema,
    ObjectSchema,
    Scalar,
    SchemaNode,
    base_type,
    map_children,
)
from specguard.schema.registry import SchemaRegistry
from specguard.schema.resolver import resolve

logger = logging.getLogger(__name__)


def merge_schemas(
    schemas: Sequence[SchemaNode], registry: Optional[SchemaRegistry] = None
) -> SchemaNode:
    """Merge *schemas* into a single schema with ``allOf`` semantics.

    Each member is resolved against *registry* first. Members that are
    themselves ``allOf`` composites are flattened in place, their base first.
    Members that still are unresolved references contribute nothing.

    Args:
        schemas: Ordered member schemas.
        registry: Definitions for ``$ref`` members. ``None`` means no
            references can be resolved.

    Returns:
        An :class:`~specguard.schema.nodes.ObjectSchema` when the merged type
        is ``object`` or unset and any object keyword was seen, an
        :class:`~specguard.schema.nodes.ArraySchema` for ``array``, otherwise
        a :class:`~specguard.schema.nodes.Scalar`.
    """
    registry = registry if registry is not None else SchemaRegistry()

    merged_type: Optional[str] = None
    properties: dict[str, SchemaNode] = {}
    required: dict[str, None] = {}
    additional: Any = None
    description: Optional[str] = None
    items: Optional[SchemaNode] = None
    saw_object_keyword = False

    for member in _flatten(resolve(s, registry) for s in schemas):
        if merged_type is None:
            merged_type = base_type(member)
        if isinstance(member, ObjectSchema):
            saw_object_keyword = True
            properties.update(member.properties)
            required.update(dict.fromkeys(member.required))
            if additional is None and member.additional_properties is not None:
                additional = member.additional_properties
        if isinstance(member, ArraySchema) and items is None:
            items = member.items
        if not description and member.description:
            description = member.description

    if merged_type == "array":
        return ArraySchema(items=items, description=description)
    if merged_type in (None, "object") and (saw_object_keyword or merged_type):
        return ObjectSchema(
            properties=properties,
            required=tuple(required),
            additional_properties=additional,
            description=description,
        )
    return Scalar(type=merged_type, description=description)


def apply_strictness(node: SchemaNode, options: StrictnessOptions) -> SchemaNode:
    """Return a copy of *node* with strictness overrides applied everywhere.

    ``no_additional_properties`` sets ``additionalProperties: false`` on every
    object schema; ``all_properties_required`` marks every declared property
    of every object schema as required.
    """
    if not options.enabled:
        return node
    node = map_children(node, lambda child: apply_strictness(child, options))
    if not isinstance(node, ObjectSchema):
        return node

    update: dict[str, Any] = {}
    if options.no_additional_properties:
        update["additional_properties"] = False
    if options.all_properties_required and node.properties:
        update["required"] = tuple(node.properties)
    return node.model_copy(update=update)


def _flatten(members: Iterable[SchemaNode]) -> Iterable[SchemaNode]:
    for member in members:
        if isinstance(member, CompositeSchema) and member.combinator is CombinatorKind.ALL_OF:
            if member.base is not None:
                yield from _flatten([member.base])
            yield from _flatten(member.members)
        elif isinstance(member, CompositeSchema):
            logger.debug("Skipping %s member while merging allOf", member.combinator.value)
            if member.base is not None:
                yield from _flatten([member.base])
        else:
            yield member
