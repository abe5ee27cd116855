"""Breaking-change detection between two revisions of an OpenAPI document.

:func:`compare_specs` walks the union of both documents' paths in encounter
order (every path of *base*, then the paths only *head* has), and for each
path the eight HTTP methods in the canonical order of
:class:`~specguard.models.HTTPMethod`. Operations present on both sides go
through :meth:`SpecComparer.compare_operations`, which checks, in order:

1. parameters (removed, became required, newly required);
2. request body (became required);
3. removed ``2xx`` response codes;
4. response schemas for ``200``, ``201`` and ``204`` on shared media types;
5. summary and description edits;
6. deprecation.

Every entry lands in exactly one list of the
:class:`~specguard.models.CompareResult`. Two rules are governed by
:class:`~specguard.models.CompatibilityPolicy`; when a rule is switched off
its entries are reported as non-breaking instead of being dropped.

Schemas are resolved against a :class:`~specguard.schema.registry.SchemaRegistry`
built per document and normalized to the flag nullable dialect before
comparison, so a 3.0 document and its 3.1 rewrite compare equal.

Example::

    result = compare_specs(base_document, head_document)
    if result.has_breaking_changes:
        for change in result.breaking:
            print(change.method, change.path, change.description)
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Optional

from specguard.diff.schemas import compare_schemas
from specguard.exceptions import InvalidDocumentError
from specguard.models import (
    ChangeType,
    CompareResult,
    CompatibilityPolicy,
    DeprecatedEntry,
    DiffEntry,
    HTTPMethod,
    NullableDialect,
    ParameterLocation,
)
from specguard.schema.convert import schema_from_dict
from specguard.schema.nodes import SchemaNode
from specguard.schema.nullable import normalize_nullable
from specguard.schema.registry import SchemaRegistry
from specguard.schema.resolver import follow_ref, resolve

logger = logging.getLogger(__name__)

# Status codes whose response bodies are compared structurally.
_SCHEMA_STATUS_CODES = ("200", "201", "204")


def compare_specs(
    base: Mapping[str, Any],
    head: Mapping[str, Any],
    policy: Optional[CompatibilityPolicy] = None,
) -> CompareResult:
    """Compare two parsed OpenAPI documents.

    Args:
        base: The previous revision.
        head: The new revision.
        policy: Compatibility rules. Defaults to
            :class:`~specguard.models.CompatibilityPolicy` with every rule on.

    Returns:
        The classified changes, in deterministic encounter order.

    Raises:
        InvalidDocumentError: If either input (or its ``paths`` section) is
            not a mapping. Absent ``paths`` or ``components`` sections are
            treated as empty.
    """
    return SpecComparer(base, head, policy).compare()


def compare_operations(
    path: str,
    method: str,
    base_op: Mapping[str, Any],
    head_op: Mapping[str, Any],
    policy: Optional[CompatibilityPolicy] = None,
) -> CompareResult:
    """Compare two operation objects outside of any document.

    ``$ref`` pointers inside the operations cannot be followed here; use
    :func:`compare_specs` for whole documents.
    """
    comparer = SpecComparer({}, {}, policy)
    comparer.compare_operations(path, method, base_op, head_op)
    return comparer.result


class SpecComparer:
    """One comparison session between a *base* and a *head* document.

    Holds the per-document schema registries and the result being built.
    Use once; call :meth:`compare` for the full walk.
    """

    def __init__(
        self,
        base: Mapping[str, Any],
        head: Mapping[str, Any],
        policy: Optional[CompatibilityPolicy] = None,
    ) -> None:
        for label, document in (("base", base), ("head", head)):
            if not isinstance(document, Mapping):
                raise InvalidDocumentError(label, document)
            paths = document.get("paths")
            if paths is not None and not isinstance(paths, Mapping):
                raise InvalidDocumentError(label, paths, what="'paths' section")

        self.base = base
        self.head = head
        self.policy = policy or CompatibilityPolicy()
        self.base_registry = SchemaRegistry.from_document(base)
        self.head_registry = SchemaRegistry.from_document(head)
        self.result = CompareResult()

    # ------------------------------------------------------------------ #
    # Document walk
    # ------------------------------------------------------------------ #

    def compare(self) -> CompareResult:
        """Run the full comparison and return the result."""
        base_paths = self.base.get("paths") or {}
        head_paths = self.head.get("paths") or {}

        all_paths = list(base_paths)
        all_paths.extend(p for p in head_paths if p not in base_paths)

        for path in all_paths:
            base_item = _as_mapping(base_paths.get(path))
            head_item = _as_mapping(head_paths.get(path))

            for method in HTTPMethod:
                base_op = base_item.get(method.value)
                head_op = head_item.get(method.value)

                if base_op is not None and head_op is None:
                    self._record(
                        path, method.value, ChangeType.REMOVED,
                        f"Endpoint {method.value.upper()} {path} was removed",
                    )
                elif head_op is not None and base_op is None:
                    self._record(
                        path, method.value, ChangeType.ADDED,
                        f"New endpoint {method.value.upper()} {path} was added",
                        breaking=False,
                    )
                elif base_op is not None and head_op is not None:
                    self.compare_operations(
                        path,
                        method.value,
                        base_op,
                        head_op,
                        base_item.get("parameters"),
                        head_item.get("parameters"),
                    )

        logger.debug(
            "Comparison complete: %d breaking, %d non-breaking, %d deprecated",
            len(self.result.breaking),
            len(self.result.non_breaking),
            len(self.result.deprecated),
        )
        return self.result

    def compare_operations(
        self,
        path: str,
        method: str,
        base_op: Mapping[str, Any],
        head_op: Mapping[str, Any],
        base_path_params: Optional[list[Any]] = None,
        head_path_params: Optional[list[Any]] = None,
    ) -> None:
        """Compare one operation present in both documents.

        Args:
            path: Path template, e.g. ``/pets/{petId}``.
            method: Lower-case HTTP method.
            base_op: The operation object from *base*.
            head_op: The operation object from *head*.
            base_path_params: Path-item level parameters from *base*.
            head_path_params: Path-item level parameters from *head*.
        """
        base_op, head_op = _as_mapping(base_op), _as_mapping(head_op)

        self._compare_parameters(
            path,
            method,
            self._parameters(self.base, base_path_params, base_op.get("parameters")),
            self._parameters(self.head, head_path_params, head_op.get("parameters")),
        )
        self._compare_request_body(path, method, base_op, head_op)

        base_responses = self._responses(self.base, base_op)
        head_responses = self._responses(self.head, head_op)
        self._compare_response_codes(path, method, base_responses, head_responses)
        self._compare_response_schemas(path, method, base_responses, head_responses)

        for key, label in (("summary", "Summary"), ("description", "Description")):
            head_value = head_op.get(key)
            if head_value and base_op.get(key) != head_value:
                self._record(
                    path, method, ChangeType.MODIFIED, f"{label} was updated",
                    breaking=False,
                )

        if not base_op.get("deprecated") and head_op.get("deprecated"):
            self.result.deprecated.append(
                DeprecatedEntry(
                    path=path, method=method, description=head_op.get("description")
                )
            )

    # ------------------------------------------------------------------ #
    # Operation parts
    # ------------------------------------------------------------------ #

    def _compare_parameters(
        self,
        path: str,
        method: str,
        base_params: dict[tuple[ParameterLocation, str], Mapping[str, Any]],
        head_params: dict[tuple[ParameterLocation, str], Mapping[str, Any]],
    ) -> None:
        for location, name in base_params:
            if (location, name) not in head_params:
                self._record(
                    path, method, ChangeType.PARAMETER_REMOVED,
                    f'Parameter "{name}" ({location.value}) was removed',
                )

        for key, head_param in head_params.items():
            location, name = key
            if not head_param.get("required"):
                continue
            base_param = base_params.get(key)
            if base_param is None:
                self._record(
                    path, method, ChangeType.PARAMETER_REQUIRED_ADDED,
                    f'Required parameter "{name}" ({location.value}) was added',
                    breaking=self.policy.new_required_parameter_is_breaking,
                )
            elif not base_param.get("required"):
                self._record(
                    path, method, ChangeType.PARAMETER_REQUIRED_ADDED,
                    f'Parameter "{name}" ({location.value}) became required',
                )

    def _compare_request_body(
        self,
        path: str,
        method: str,
        base_op: Mapping[str, Any],
        head_op: Mapping[str, Any],
    ) -> None:
        base_body = _as_mapping(follow_ref(self.base, base_op.get("requestBody")))
        head_body = _as_mapping(follow_ref(self.head, head_op.get("requestBody")))
        if head_body.get("required") and not base_body.get("required"):
            self._record(
                path, method, ChangeType.REQUEST_BODY_REQUIRED_ADDED,
                "Request body became required",
            )

    def _compare_response_codes(
        self,
        path: str,
        method: str,
        base_responses: dict[str, Any],
        head_responses: dict[str, Any],
    ) -> None:
        for code in base_responses:
            if code.startswith("2") and code not in head_responses:
                self._record(
                    path, method, ChangeType.RESPONSE_CODE_REMOVED,
                    f'Response code "{code}" was removed',
                )

    def _compare_response_schemas(
        self,
        path: str,
        method: str,
        base_responses: dict[str, Any],
        head_responses: dict[str, Any],
    ) -> None:
        for code in _SCHEMA_STATUS_CODES:
            base_content = _as_mapping(_as_mapping(base_responses.get(code)).get("content"))
            head_content = _as_mapping(_as_mapping(head_responses.get(code)).get("content"))

            for media_type, base_media in base_content.items():
                base_raw = _as_mapping(base_media).get("schema")
                head_raw = _as_mapping(head_content.get(media_type)).get("schema")
                if base_raw is None or head_raw is None:
                    continue

                location = f"#/paths/{path}/{method}/responses/{code}/content/{media_type}/schema"
                base_schema = self._prepare_schema(base_raw, self.base_registry, location)
                head_schema = self._prepare_schema(head_raw, self.head_registry, location)

                for change in compare_schemas(base_schema, head_schema):
                    breaking = (
                        change.type is not ChangeType.REQUIRED_ADDED
                        or self.policy.response_required_added_is_breaking
                    )
                    self._record(
                        path, method, change.type, change.description, breaking=breaking
                    )

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _record(
        self,
        path: str,
        method: str,
        change_type: ChangeType,
        description: str,
        breaking: bool = True,
    ) -> None:
        entry = DiffEntry(path=path, method=method, description=description, type=change_type)
        if breaking:
            self.result.breaking.append(entry)
        else:
            self.result.non_breaking.append(entry)

    @staticmethod
    def _prepare_schema(raw: Any, registry: SchemaRegistry, location: str) -> SchemaNode:
        node = resolve(schema_from_dict(raw, location), registry)
        return normalize_nullable(node, NullableDialect.FLAG)

    @staticmethod
    def _parameters(
        document: Mapping[str, Any],
        path_params: Optional[list[Any]],
        op_params: Optional[list[Any]],
    ) -> dict[tuple[ParameterLocation, str], Mapping[str, Any]]:
        """Merge path-level and operation-level parameters by ``(in, name)``.

        Operation-level parameters override path-level ones with the same key.
        ``$ref`` entries are followed; entries that still are not parameter
        objects, or whose ``in`` is not a known location, are ignored.
        """
        merged: dict[tuple[ParameterLocation, str], Mapping[str, Any]] = {}
        for param in [*(path_params or []), *(op_params or [])]:
            param = follow_ref(document, param)
            if not isinstance(param, Mapping) or "name" not in param:
                continue
            try:
                location = ParameterLocation(param.get("in"))
            except ValueError:
                logger.debug(
                    "Ignoring parameter %r with location %r", param["name"], param.get("in")
                )
                continue
            merged[(location, str(param["name"]))] = param
        return merged

    @staticmethod
    def _responses(
        document: Mapping[str, Any], operation: Mapping[str, Any]
    ) -> dict[str, Any]:
        """Return the operation's responses keyed by status-code string.

        YAML loads unquoted codes as integers, so keys are stringified.
        """
        responses = _as_mapping(operation.get("responses"))
        return {str(code): follow_ref(document, value) for code, value in responses.items()}


def _as_mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}
