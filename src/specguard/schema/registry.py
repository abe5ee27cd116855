"""Session-scoped mapping from ``$ref`` pointer to schema definition.

A :class:`SchemaRegistry` is created for one resolution or validation
session, populated once from a document's ``components.schemas``, and passed
explicitly into every resolver, merger, and validator call. There is no
process-wide default: two documents never share definitions unless the
caller hands them the same registry, and a reused registry keeps its old
entries until :meth:`SchemaRegistry.reset` is called.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from typing import Any, Optional, Union

from pydantic import BaseModel

from specguard.schema.convert import schema_from_dict
from specguard.schema.nodes import SchemaNode

logger = logging.getLogger(__name__)

COMPONENT_SCHEMA_PREFIX = "#/components/schemas/"


def component_pointer(name: str) -> str:
    """Return the ``$ref`` pointer for a component schema *name*.

    Applies RFC 6901 escaping so names containing ``/`` or ``~`` round-trip.
    """
    escaped = name.replace("~", "~0").replace("/", "~1")
    return f"{COMPONENT_SCHEMA_PREFIX}{escaped}"


class SchemaRegistry:
    """Pointer-to-node store for one session.

    Re-registering a pointer overwrites the previous definition.

    Example::

        registry = SchemaRegistry()
        registry.register_all(document.get("components"))
        node = registry.lookup("#/components/schemas/Pet")
    """

    def __init__(self) -> None:
        self._schemas: dict[str, SchemaNode] = {}

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> SchemaRegistry:
        """Create a registry populated from *document*'s ``components`` section.

        An absent or empty ``components`` section yields an empty registry.
        """
        registry = cls()
        registry.register_all(document.get("components"))
        return registry

    def register(
        self, pointer: str, node: Union[SchemaNode, Mapping[str, Any]]
    ) -> None:
        """Store *node* under *pointer*, replacing any existing definition.

        Raw schema mappings are converted with
        :func:`~specguard.schema.convert.schema_from_dict`.
        """
        if not isinstance(node, BaseModel):
            node = schema_from_dict(node, pointer)
        if pointer in self._schemas:
            logger.debug("Overwriting schema definition for %s", pointer)
        self._schemas[pointer] = node

    def register_all(self, components: Optional[Mapping[str, Any]]) -> int:
        """Bulk-register every schema in a ``components`` mapping.

        Args:
            components: The document's ``components`` object. Only its
                ``schemas`` entry is read; ``None`` is treated as empty.

        Returns:
            The number of schemas registered.
        """
        if not components:
            return 0
        schemas = components.get("schemas") or {}
        for name, raw in schemas.items():
            self.register(component_pointer(name), raw)
        logger.debug("Registered %d component schema(s)", len(schemas))
        return len(schemas)

    def lookup(self, pointer: str) -> Optional[SchemaNode]:
        """Return the definition for *pointer*, or ``None`` when absent."""
        return self._schemas.get(pointer)

    def reset(self) -> None:
        """Drop every definition so the registry can start a new session."""
        self._schemas.clear()

    def pointers(self) -> list[str]:
        """Return registered pointers in registration order."""
        return list(self._schemas)

    def __contains__(self, pointer: object) -> bool:
        return pointer in self._schemas

    def __len__(self) -> int:
        return len(self._schemas)

    def __iter__(self) -> Iterator[str]:
        return iter(self._schemas)
