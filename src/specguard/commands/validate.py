"""``specguard validate`` -- check a JSON/YAML value against a document's schema.

The schema is picked either by component name (``--schema Pet``) or by
locating an operation's response (``--path /pets/{petId} --method get
--status 200``). Validation runs through
:class:`~specguard.schema.validator.SchemaValidator` with the document's
component schemas registered, so ``$ref`` pointers and ``oneOf`` / ``anyOf``
/ ``allOf`` combinators are honoured.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional

import typer

from specguard.config import resolve_config
from specguard.exceptions import InvalidUsageError, SpecguardError
from specguard.exit_codes import EXIT_VALIDATION_FAILED
from specguard.loader import detect_openapi_version, load_data, load_document
from specguard.models import ValidationIssue
from specguard.output import (
    OutputFormat,
    debug,
    error,
    get_output,
    print_json,
    print_table,
    success,
    warning,
)
from specguard.schema import (
    RefSchema,
    SchemaNode,
    SchemaRegistry,
    SchemaValidator,
    component_pointer,
    schema_from_dict,
)
from specguard.schema.resolver import follow_ref


def validate_command(
    spec: str = typer.Argument(..., help="OpenAPI document: file, URL, or '-'."),
    data: str = typer.Argument(..., help="JSON/YAML data file, URL, or '-'."),
    schema: Optional[str] = typer.Option(
        None, "--schema", "-s", help="Component schema name to validate against."
    ),
    path: Optional[str] = typer.Option(
        None, "--path", help="Path template whose response schema to use."
    ),
    method: str = typer.Option("get", "--method", help="HTTP method (with --path)."),
    status: str = typer.Option("200", "--status", help="Response status (with --path)."),
    media_type: str = typer.Option(
        "application/json", "--media-type", help="Response media type (with --path)."
    ),
    no_additional_properties: Optional[bool] = typer.Option(
        None,
        "--no-additional-properties/--allow-additional-properties",
        help="Treat every object schema as additionalProperties: false.",
    ),
    all_properties_required: Optional[bool] = typer.Option(
        None,
        "--all-required/--declared-required",
        help="Treat every declared property as required.",
    ),
) -> None:
    """Validate DATA against a schema from SPEC.

    Example::

        specguard validate openapi.yaml pet.json --schema Pet
        specguard validate openapi.yaml resp.json --path /pets/{petId} --status 200
        curl -s https://api.example.com/pets/1 | specguard validate openapi.yaml - -s Pet
    """
    if spec == "-" and data == "-":
        error("Only one of SPEC and DATA can be read from stdin")
        raise typer.Exit(code=InvalidUsageError.exit_code)

    try:
        config = resolve_config(
            cli_no_additional_properties=no_additional_properties,
            cli_all_properties_required=all_properties_required,
        )
        document = load_document(spec)
        version = detect_openapi_version(document, config.openapi_version)
        debug(f"OpenAPI version: {version}")
        registry = SchemaRegistry.from_document(document)
        target = _select_schema(document, registry, schema, path, method, status, media_type)
        value = load_data(data)
    except SpecguardError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    validator = SchemaValidator(registry, config.strictness)
    issues = validator.validate_composite_schema(value, target)
    for message in validator.warnings:
        warning(message)

    if not issues:
        success("Valid: data matches the schema")
        return

    _render(issues)
    raise typer.Exit(code=EXIT_VALIDATION_FAILED)


def _select_schema(
    document: Mapping[str, Any],
    registry: SchemaRegistry,
    schema: Optional[str],
    path: Optional[str],
    method: str,
    status: str,
    media_type: str,
) -> SchemaNode:
    """Return the schema chosen by ``--schema`` or ``--path``.

    Raises:
        InvalidUsageError: If neither or both selectors were given, or the
            selected schema does not exist.
    """
    if schema and path:
        raise InvalidUsageError("Pass either --schema or --path, not both")

    if schema:
        pointer = component_pointer(schema)
        if pointer not in registry:
            raise InvalidUsageError(f"Schema '{schema}' not found in components.schemas")
        return RefSchema(ref=pointer)

    if not path:
        raise InvalidUsageError("Pass --schema NAME or --path PATH to select a schema")

    path_item = (document.get("paths") or {}).get(path) or {}
    operation = path_item.get(method.lower())
    if not isinstance(operation, Mapping):
        raise InvalidUsageError(f"Operation {method.upper()} {path} not found")

    responses = operation.get("responses") or {}
    response = follow_ref(document, responses.get(status, responses.get(_as_int(status))))
    if not isinstance(response, Mapping):
        raise InvalidUsageError(
            f"Response {status} not defined for {method.upper()} {path}"
        )

    media = (response.get("content") or {}).get(media_type)
    if not isinstance(media, Mapping) or "schema" not in media:
        raise InvalidUsageError(
            f"No {media_type} schema for {method.upper()} {path} response {status}"
        )
    return schema_from_dict(
        media["schema"], f"#/paths/{path}/{method.lower()}/responses/{status}"
    )


def _as_int(status: str) -> Optional[int]:
    # YAML loads unquoted status codes as integers.
    return int(status) if status.isdigit() else None


def _render(issues: list[ValidationIssue]) -> None:
    if get_output().format == OutputFormat.JSON:
        print_json([issue.model_dump(mode="json") for issue in issues])
        return

    print_table(
        ["Path", "Message"],
        [[issue.path, issue.message] for issue in issues],
        title=f"Validation issues ({len(issues)})",
    )
