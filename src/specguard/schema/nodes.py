"""Immutable, tagged schema nodes.

A raw OpenAPI schema is a loosely shaped dict whose behaviour depends on
which keys happen to be present. The engine works on a closed set of
variants instead, each carrying a literal ``kind`` tag that callers dispatch
on:

* :class:`Scalar` -- strings, numbers, integers, booleans, or "any".
* :class:`ArraySchema` -- an item schema plus length constraints.
* :class:`ObjectSchema` -- ordered properties, required names, and the
  additional-properties policy.
* :class:`RefSchema` -- an unresolved ``$ref`` pointer. After resolution it
  only survives as a cycle marker or as a dangling reference.
* :class:`CompositeSchema` -- ``oneOf`` / ``anyOf`` / ``allOf`` members and
  an optional ``base`` node holding the sibling keywords.

Every variant is a frozen Pydantic model. Transformations use
``model_copy(update=...)`` and never mutate a node in place.

Conversion to and from raw dicts lives in :mod:`specguard.schema.convert`.
"""

from __future__ import annotations

from typing import Any, Callable, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from specguard.models import CombinatorKind


class _SchemaBase(BaseModel):
    """Metadata shared by every variant.

    Nullability can arrive three ways and is kept apart so the normalizer can
    translate between them: ``nullable`` is the OpenAPI 3.0 flag,
    ``null_in_type`` is the 3.1 ``"null"`` type entry, and
    ``legacy_nullable`` is the Swagger-era ``x-nullable`` marker.
    """

    model_config = ConfigDict(frozen=True)

    nullable: bool = False
    null_in_type: bool = False
    legacy_nullable: bool = False
    description: Optional[str] = None
    title: Optional[str] = None
    default: Any = None
    enum: Optional[tuple[Any, ...]] = None
    deprecated: bool = False
    extras: dict[str, Any] = Field(
        default_factory=dict, description="Keywords with no dedicated field"
    )

    @property
    def is_nullable(self) -> bool:
        """Whether ``null`` is an acceptable value under any dialect."""
        return self.nullable or self.null_in_type or self.legacy_nullable


class Scalar(_SchemaBase):
    """A non-container schema. ``type=None`` accepts any JSON value."""

    kind: Literal["scalar"] = "scalar"
    type: Union[str, tuple[str, ...], None] = None
    format: Optional[str] = None
    minimum: Optional[Union[int, float]] = None
    maximum: Optional[Union[int, float]] = None
    # bool in 3.0 (modifies minimum/maximum), number in 3.1 (its own bound)
    exclusive_minimum: Union[bool, int, float, None] = None
    exclusive_maximum: Union[bool, int, float, None] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[str] = None


class ArraySchema(_SchemaBase):
    """An array schema."""

    kind: Literal["array"] = "array"
    items: Optional[SchemaNode] = None
    min_items: Optional[int] = None
    max_items: Optional[int] = None
    unique_items: bool = False


class ObjectSchema(_SchemaBase):
    """An object schema.

    ``additional_properties`` is ``None`` when the source did not say,
    a bool when it did, or a schema that extra keys must satisfy.
    """

    kind: Literal["object"] = "object"
    properties: dict[str, SchemaNode] = Field(default_factory=dict)
    required: tuple[str, ...] = ()
    additional_properties: Union[bool, SchemaNode, None] = None
    min_properties: Optional[int] = None
    max_properties: Optional[int] = None


class RefSchema(_SchemaBase):
    """A ``$ref`` pointer, e.g. ``#/components/schemas/Pet``."""

    kind: Literal["ref"] = "ref"
    ref: str


class CompositeSchema(_SchemaBase):
    """A combinator over an ordered list of member schemas.

    ``base`` holds whatever sat next to the combinator keyword in the source
    (``type: object``, ``description``, or even a second combinator, which
    then appears as a nested composite).
    """

    kind: Literal["composite"] = "composite"
    combinator: CombinatorKind
    members: tuple[SchemaNode, ...] = ()
    base: Optional[SchemaNode] = None

    @property
    def is_nullable(self) -> bool:
        if super().is_nullable:
            return True
        return self.base is not None and self.base.is_nullable


SchemaNode = Union[Scalar, ArraySchema, ObjectSchema, RefSchema, CompositeSchema]

for _model in (Scalar, ArraySchema, ObjectSchema, RefSchema, CompositeSchema):
    _model.model_rebuild()


def type_names(node: SchemaNode) -> tuple[str, ...]:
    """Return the declared non-null type names of *node*.

    Containers report their implicit type. Refs and composites have no type
    of their own and return an empty tuple.
    """
    if isinstance(node, Scalar):
        if node.type is None:
            return ()
        if isinstance(node.type, str):
            return (node.type,)
        return tuple(node.type)
    if isinstance(node, ArraySchema):
        return ("array",)
    if isinstance(node, ObjectSchema):
        return ("object",)
    return ()


def base_type(node: SchemaNode) -> Optional[str]:
    """Return the first declared type name, or ``None``."""
    names = type_names(node)
    return names[0] if names else None


def map_children(
    node: SchemaNode, fn: Callable[[SchemaNode], SchemaNode]
) -> SchemaNode:
    """Return a copy of *node* with *fn* applied to each direct child schema.

    Children are object properties, an additional-properties schema, array
    items, combinator members, and a composite's base. Scalars and refs have
    no children and are returned as-is.
    """
    if isinstance(node, ObjectSchema):
        update: dict[str, Any] = {
            "properties": {name: fn(prop) for name, prop in node.properties.items()}
        }
        if isinstance(node.additional_properties, BaseModel):
            update["additional_properties"] = fn(node.additional_properties)
        return node.model_copy(update=update)
    if isinstance(node, ArraySchema):
        if node.items is None:
            return node
        return node.model_copy(update={"items": fn(node.items)})
    if isinstance(node, CompositeSchema):
        update = {"members": tuple(fn(member) for member in node.members)}
        if node.base is not None:
            update["base"] = fn(node.base)
        return node.model_copy(update=update)
    return node
