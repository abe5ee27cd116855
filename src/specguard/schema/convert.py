"""Convert between raw OpenAPI schema dicts and tagged schema nodes.

:func:`schema_from_dict` decides the variant once, from the keys present,
so the rest of the engine never branches on ad hoc field presence.
:func:`schema_to_dict` renders a node back into OpenAPI form. Keywords
without a dedicated field travel in ``extras`` and are written back
unchanged, so ``schema_to_dict(schema_from_dict(raw))`` keeps everything the
engine does not interpret.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional

from pydantic import ValidationError

from specguard.exceptions import SchemaParseError
from specguard.models import CombinatorKind
from specguard.schema.nodes import (
    ArraySchema,
    CompositeSchema,
    ObjectSchema,
    RefSchema,
    Scalar,
    SchemaNode,
)

# Checked in this order; the first one found becomes the outer composite.
_COMBINATORS = (CombinatorKind.ONE_OF, CombinatorKind.ANY_OF, CombinatorKind.ALL_OF)

_COMMON_KEYS = {
    "nullable": "nullable",
    "x-nullable": "legacy_nullable",
    "description": "description",
    "title": "title",
    "default": "default",
    "deprecated": "deprecated",
}

_SCALAR_KEYS = {
    "format": "format",
    "minimum": "minimum",
    "maximum": "maximum",
    "exclusiveMinimum": "exclusive_minimum",
    "exclusiveMaximum": "exclusive_maximum",
    "minLength": "min_length",
    "maxLength": "max_length",
    "pattern": "pattern",
}

_ARRAY_KEYS = {
    "minItems": "min_items",
    "maxItems": "max_items",
    "uniqueItems": "unique_items",
}

_OBJECT_KEYS = {
    "minProperties": "min_properties",
    "maxProperties": "max_properties",
}

# Keywords that make an untyped schema an object schema.
_OBJECT_HINTS = ("properties", "additionalProperties", "required", *_OBJECT_KEYS)


def schema_from_dict(raw: Any, location: str = "#") -> SchemaNode:
    """Build a schema node from a raw OpenAPI schema value.

    Args:
        raw: A schema mapping, or a JSON Schema boolean (``true`` / ``false``)
            which converts to an unconstrained :class:`Scalar`.
        location: JSON-pointer-like location of *raw*, used in error
            messages only.

    Returns:
        The tagged node for *raw*.

    Raises:
        SchemaParseError: If *raw* (or any nested schema) is neither a
            mapping nor a boolean.
    """
    if isinstance(raw, bool):
        return Scalar()
    if not isinstance(raw, Mapping):
        raise SchemaParseError(
            f"Schema at {location} must be an object, got {type(raw).__name__}"
        )
    try:
        return _build(raw, location)
    except ValidationError as exc:
        raise SchemaParseError(f"Invalid schema at {location}: {exc}") from exc


def _build(raw: Mapping[str, Any], location: str) -> SchemaNode:
    if "$ref" in raw:
        fields, extras = _split_common(raw, skip={"$ref"})
        return RefSchema(ref=str(raw["$ref"]), extras=extras, **fields)

    for combinator in _COMBINATORS:
        if combinator.value in raw:
            return _composite_from_dict(raw, combinator, location)

    names, null_in_type = _split_type(raw.get("type"))

    if names == ["object"] or (not names and any(k in raw for k in _OBJECT_HINTS)):
        return _object_from_dict(raw, null_in_type, location)
    if names == ["array"] or (not names and "items" in raw):
        return _array_from_dict(raw, null_in_type, location)
    return _scalar_from_dict(raw, names, null_in_type)


def schema_to_dict(node: SchemaNode) -> dict[str, Any]:
    """Render *node* back into a raw OpenAPI schema dict."""
    out: dict[str, Any] = {}

    if isinstance(node, RefSchema):
        out["$ref"] = node.ref
    elif isinstance(node, CompositeSchema):
        if node.base is not None:
            out.update(schema_to_dict(node.base))
        out[node.combinator.value] = [schema_to_dict(m) for m in node.members]
    elif isinstance(node, ObjectSchema):
        out["type"] = _type_value(("object",), node.null_in_type)
        if node.properties:
            out["properties"] = {
                name: schema_to_dict(prop) for name, prop in node.properties.items()
            }
        if node.required:
            out["required"] = list(node.required)
        if isinstance(node.additional_properties, bool):
            out["additionalProperties"] = node.additional_properties
        elif node.additional_properties is not None:
            out["additionalProperties"] = schema_to_dict(node.additional_properties)
        _put_fields(out, node, _OBJECT_KEYS)
    elif isinstance(node, ArraySchema):
        out["type"] = _type_value(("array",), node.null_in_type)
        if node.items is not None:
            out["items"] = schema_to_dict(node.items)
        _put_fields(out, node, _ARRAY_KEYS)
        if not node.unique_items:
            out.pop("uniqueItems", None)
    else:
        names: tuple[str, ...] = ()
        if isinstance(node.type, str):
            names = (node.type,)
        elif node.type is not None:
            names = tuple(node.type)
        type_value = _type_value(names, node.null_in_type)
        if type_value is not None:
            out["type"] = type_value
        _put_fields(out, node, _SCALAR_KEYS)

    if node.nullable:
        out["nullable"] = True
    if node.legacy_nullable:
        out["x-nullable"] = True
    for key in ("description", "title", "default"):
        value = getattr(node, key)
        if value is not None:
            out[key] = value
    if node.enum is not None:
        out["enum"] = list(node.enum)
    if node.deprecated:
        out["deprecated"] = True
    out.update(node.extras)
    return out


def schemas_from_components(
    components: Optional[Mapping[str, Any]],
) -> dict[str, SchemaNode]:
    """Convert every entry of ``components.schemas`` into a node, keyed by name."""
    if not components:
        return {}
    schemas = components.get("schemas") or {}
    return {
        name: schema_from_dict(raw, f"#/components/schemas/{name}")
        for name, raw in schemas.items()
    }


# ------------------------------------------------------------------ #
# Private helpers
# ------------------------------------------------------------------ #


def _split_type(raw_type: Any) -> tuple[list[str], bool]:
    """Split a ``type`` value into non-null names and a null flag."""
    if raw_type is None:
        return [], False
    if isinstance(raw_type, str):
        raw_names = [raw_type]
    else:
        raw_names = [str(name) for name in raw_type]
    names = [name for name in raw_names if name != "null"]
    return names, len(names) != len(raw_names)


def _type_value(names: tuple[str, ...], null_in_type: bool) -> Any:
    """Inverse of :func:`_split_type`: ``"null"`` goes last."""
    if null_in_type:
        return [*names, "null"]
    if not names:
        return None
    if len(names) == 1:
        return names[0]
    return list(names)


def _split_common(
    raw: Mapping[str, Any], skip: set[str]
) -> tuple[dict[str, Any], dict[str, Any]]:
    """Pull shared metadata out of *raw*; everything else not in *skip* is extra."""
    fields: dict[str, Any] = {}
    extras: dict[str, Any] = {}
    for key, value in raw.items():
        if key in skip:
            continue
        if key in _COMMON_KEYS:
            if key in ("nullable", "x-nullable", "deprecated"):
                value = value is True
            fields[_COMMON_KEYS[key]] = value
        elif key == "enum":
            fields["enum"] = tuple(value) if value is not None else None
        else:
            extras[key] = value
    return fields, extras


def _take(raw: Mapping[str, Any], mapping: dict[str, str]) -> dict[str, Any]:
    return {attr: raw[key] for key, attr in mapping.items() if key in raw}


def _put_fields(out: dict[str, Any], node: SchemaNode, mapping: dict[str, str]) -> None:
    for key, attr in mapping.items():
        value = getattr(node, attr)
        if value is not None:
            out[key] = value


def _scalar_from_dict(
    raw: Mapping[str, Any], names: list[str], null_in_type: bool
) -> Scalar:
    skip = {"type", *_SCALAR_KEYS}
    fields, extras = _split_common(raw, skip=skip)
    type_value: Any = None
    if len(names) == 1:
        type_value = names[0]
    elif names:
        type_value = tuple(names)
    return Scalar(
        type=type_value,
        null_in_type=null_in_type,
        extras=extras,
        **_take(raw, _SCALAR_KEYS),
        **fields,
    )


def _array_from_dict(
    raw: Mapping[str, Any], null_in_type: bool, location: str
) -> ArraySchema:
    skip = {"type", "items", *_ARRAY_KEYS}
    fields, extras = _split_common(raw, skip=skip)
    items = None
    if raw.get("items") is not None:
        items = schema_from_dict(raw["items"], f"{location}/items")
    attrs = _take(raw, _ARRAY_KEYS)
    attrs["unique_items"] = attrs.get("unique_items") is True
    return ArraySchema(
        items=items,
        null_in_type=null_in_type,
        extras=extras,
        **attrs,
        **fields,
    )


def _object_from_dict(
    raw: Mapping[str, Any], null_in_type: bool, location: str
) -> ObjectSchema:
    skip = {"type", "properties", "required", "additionalProperties", *_OBJECT_KEYS}
    fields, extras = _split_common(raw, skip=skip)

    properties = {
        name: schema_from_dict(prop, f"{location}/properties/{name}")
        for name, prop in (raw.get("properties") or {}).items()
    }
    required = tuple(dict.fromkeys(raw.get("required") or ()))

    additional: Any = raw.get("additionalProperties")
    if isinstance(additional, Mapping):
        additional = schema_from_dict(additional, f"{location}/additionalProperties")
    elif additional is not None:
        additional = bool(additional)

    return ObjectSchema(
        properties=properties,
        required=required,
        additional_properties=additional,
        null_in_type=null_in_type,
        extras=extras,
        **_take(raw, _OBJECT_KEYS),
        **fields,
    )


def _composite_from_dict(
    raw: Mapping[str, Any], combinator: CombinatorKind, location: str
) -> CompositeSchema:
    key = combinator.value
    members = tuple(
        schema_from_dict(member, f"{location}/{key}/{index}")
        for index, member in enumerate(raw.get(key) or ())
    )
    rest = {k: v for k, v in raw.items() if k != key}
    base = schema_from_dict(rest, location) if rest else None
    return CompositeSchema(combinator=combinator, members=members, base=base)
