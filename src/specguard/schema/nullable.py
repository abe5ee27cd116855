"""Translate "may be null" between OpenAPI dialects.

OpenAPI 3.0 spells it as a flag next to a single type::

    {"type": "string", "nullable": true}

OpenAPI 3.1 spells it as a type set::

    {"type": ["string", "null"]}

Swagger-era documents sometimes carry ``x-nullable: true``; it is accepted as
input in either direction and never written back out.

Converting a union with several non-null members to the flag dialect keeps
only the first member as the base type. That loses information, but the
flag dialect has no way to express it.
"""

from __future__ import annotations

from typing import Union

from specguard.models import NullableDialect
from specguard.schema.nodes import Scalar, SchemaNode, map_children


def dialect_for_version(openapi_version: str) -> NullableDialect:
    """Return the nullable dialect native to an ``openapi`` version string."""
    if str(openapi_version).startswith("3.1"):
        return NullableDialect.UNION
    return NullableDialect.FLAG


def normalize_nullable(
    node: SchemaNode, dialect: Union[NullableDialect, str]
) -> SchemaNode:
    """Return a copy of *node* with nullability spelled in *dialect*.

    Applies recursively to properties, additional-properties schemas, items,
    combinator members, and composite bases. References are left alone.

    Args:
        node: The schema to normalize.
        dialect: ``"flag"`` (OpenAPI 3.0) or ``"union"`` (OpenAPI 3.1).

    Returns:
        The normalized copy.
    """
    dialect = NullableDialect(dialect)
    node = map_children(node, lambda child: normalize_nullable(child, dialect))

    if node.kind == "ref" or not node.is_nullable:
        return node
    # A composite whose base carries the nullability is handled via the base.
    if node.kind == "composite" and not (
        node.nullable or node.null_in_type or node.legacy_nullable
    ):
        return node

    if dialect is NullableDialect.UNION:
        return node.model_copy(
            update={"nullable": False, "legacy_nullable": False, "null_in_type": True}
        )

    update = {"nullable": True, "legacy_nullable": False, "null_in_type": False}
    if isinstance(node, Scalar) and isinstance(node.type, tuple):
        update["type"] = node.type[0] if node.type else None
    return node.model_copy(update=update)
