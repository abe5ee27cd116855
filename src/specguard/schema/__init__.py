"""Schema engine -- registry, ``$ref`` resolution, nullable dialects, merging, validation.

Every function here works on immutable
:mod:`~specguard.schema.nodes` trees and returns new trees; nothing mutates
its input. Definitions for ``$ref`` pointers come from an explicit
:class:`~specguard.schema.registry.SchemaRegistry` that the caller creates
per session.

Typical usage::

    from specguard.schema import SchemaRegistry, SchemaValidator, schema_from_dict

    registry = SchemaRegistry.from_document(document)
    schema = schema_from_dict({"$ref": "#/components/schemas/Pet"})
    issues = SchemaValidator(registry).validate_composite_schema(data, schema)

Sub-modules:

* :mod:`~specguard.schema.nodes` -- Tagged schema variants.
* :mod:`~specguard.schema.convert` -- Raw dict to node and back.
* :mod:`~specguard.schema.registry` -- Session-scoped pointer store.
* :mod:`~specguard.schema.resolver` -- ``$ref`` resolution with cycle markers.
* :mod:`~specguard.schema.nullable` -- OpenAPI 3.0 / 3.1 nullable conversion.
* :mod:`~specguard.schema.merger` -- ``allOf`` merging and strictness overrides.
* :mod:`~specguard.schema.validator` -- Data validation with combinators.
"""

from specguard.schema.convert import schema_from_dict, schema_to_dict
from specguard.schema.merger import apply_strictness, merge_schemas
from specguard.schema.nodes import (
    ArraySchema,
    CompositeSchema,
    ObjectSchema,
    RefSchema,
    Scalar,
    SchemaNode,
)
from specguard.schema.nullable import dialect_for_version, normalize_nullable
from specguard.schema.registry import SchemaRegistry, component_pointer
from specguard.schema.resolver import resolve, resolve_pointer
from specguard.schema.validator import SchemaValidator, validate

__all__ = [
    "ArraySchema",
    "CompositeSchema",
    "ObjectSchema",
    "RefSchema",
    "Scalar",
    "SchemaNode",
    "SchemaRegistry",
    "SchemaValidator",
    "apply_strictness",
    "component_pointer",
    "dialect_for_version",
    "merge_schemas",
    "normalize_nullable",
    "resolve",
    "resolve_pointer",
    "schema_from_dict",
    "schema_to_dict",
    "validate",
]
