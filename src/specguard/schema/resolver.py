"""Resolve ``$ref`` pointers in schema nodes and raw documents.

OpenAPI documents use ``$ref`` pointers (e.g.,
``{"$ref": "#/components/schemas/Pet"}``) to avoid repetition. This module
replaces every pointer it can find a target for with a dereferenced copy of
that target, recursing into object properties, additional-properties
schemas, array items, combinator members, and composite bases.

Two situations leave a :class:`~specguard.schema.nodes.RefSchema` in the
output instead of raising:

* **Cycles** -- a pointer that is already being resolved on the current
  path is returned unresolved. This cycle marker stops the recursion of a
  self-referential schema (tree nodes, linked lists) after one expansion.
* **Dangling pointers** -- a pointer the registry does not know is passed
  through unchanged, so partially specified documents still resolve.

The visited set is an immutable ``frozenset`` threaded through every call.
Each branch extends its own copy, so two sibling properties that both point
at ``#/components/schemas/Address`` are both resolved; only a pointer that
re-enters itself is treated as a cycle.

Public functions:

* :func:`resolve` -- dereference a schema node against a registry.
* :func:`resolve_pointer` -- look up an internal JSON pointer in a raw
  document (used for shared parameters and responses).
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Optional

from specguard.schema.nodes import RefSchema, SchemaNode, map_children
from specguard.schema.registry import SchemaRegistry

logger = logging.getLogger(__name__)


def resolve(
    node: SchemaNode,
    registry: SchemaRegistry,
    visited: frozenset[str] = frozenset(),
) -> SchemaNode:
    """Return a dereferenced copy of *node*.

    Args:
        node: The schema to resolve.
        registry: Definitions to resolve pointers against.
        visited: Pointers being resolved on the current path. Callers
            normally leave the default; recursive calls extend it.

    Returns:
        A new node with every resolvable ``$ref`` replaced by its target.
        A node with nothing to resolve comes back structurally equal to the
        input. Cycle markers and dangling pointers remain as
        :class:`~specguard.schema.nodes.RefSchema`.

    Example::

        registry = SchemaRegistry.from_document(document)
        pet = resolve(RefSchema(ref="#/components/schemas/Pet"), registry)
    """
    if isinstance(node, RefSchema):
        if node.ref in visited:
            logger.debug("Cycle detected at %s; leaving reference unresolved", node.ref)
            return node
        target = registry.lookup(node.ref)
        if target is None:
            logger.debug("No definition registered for %s; passing through", node.ref)
            return node
        return resolve(target, registry, visited | {node.ref})

    return map_children(node, lambda child: resolve(child, registry, visited))


def resolve_pointer(document: Mapping[str, Any], ref: str) -> Optional[Any]:
    """Look up an internal JSON pointer (``#/...``) inside a raw document.

    Handles RFC 6901 escaping (``~1`` for ``/``, ``~0`` for ``~``).

    Args:
        document: The raw OpenAPI document.
        ref: The pointer string, e.g. ``"#/components/parameters/Limit"``.

    Returns:
        The referenced value, or ``None`` when the pointer is external or any
        segment does not exist.
    """
    if not ref.startswith("#/"):
        logger.debug("External reference %s is not followed", ref)
        return None

    current: Any = document
    for segment in ref[2:].split("/"):
        segment = segment.replace("~1", "/").replace("~0", "~")
        if isinstance(current, Mapping):
            if segment not in current:
                return None
            current = current[segment]
        elif isinstance(current, list):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError):
                return None
        else:
            return None
    return current


def follow_ref(document: Mapping[str, Any], value: Any) -> Any:
    """Dereference a raw ``{"$ref": ...}`` mapping, following chains.

    Used for parameter, response, and request-body objects. Stops at a
    pointer seen before in the chain or at a dangling pointer, returning the
    last mapping reached.
    """
    seen: set[str] = set()
    while isinstance(value, Mapping) and isinstance(value.get("$ref"), str):
        ref = value["$ref"]
        if ref in seen:
            break
        seen.add(ref)
        target = resolve_pointer(document, ref)
        if target is None:
            break
        value = target
    return value
