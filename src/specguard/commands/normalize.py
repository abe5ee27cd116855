"""``specguard normalize`` -- rewrite component schemas into one nullable dialect.

Useful when migrating a document between OpenAPI 3.0 and 3.1, or when
cleaning up Swagger-era ``x-nullable`` markers. Prints the rewritten
``components.schemas`` mapping as JSON (default) or YAML.
"""

from __future__ import annotations

from typing import Any, Optional

import typer
import yaml

from specguard.config import resolve_config
from specguard.exceptions import SpecguardError
from specguard.loader import detect_openapi_version, load_document
from specguard.models import NullableDialect
from specguard.output import debug, error, info, print_data, print_json
from specguard.schema import (
    SchemaRegistry,
    dialect_for_version,
    normalize_nullable,
    resolve,
    schema_to_dict,
)
from specguard.schema.convert import schemas_from_components


def normalize_command(
    spec: str = typer.Argument(..., help="OpenAPI document: file, URL, or '-'."),
    dialect: Optional[NullableDialect] = typer.Option(
        None,
        "--dialect",
        "-d",
        case_sensitive=False,
        help="Target dialect: flag (3.0) or union (3.1). Defaults to the document's version.",
    ),
    dereference: bool = typer.Option(
        False, "--resolve", help="Inline $ref pointers (cycles stay as references)."
    ),
    as_yaml: bool = typer.Option(False, "--yaml", help="Emit YAML instead of JSON."),
) -> None:
    """Print component schemas with nullability spelled in one dialect.

    Example::

        specguard normalize openapi.yaml --dialect union --yaml
    """
    try:
        config = resolve_config()
        document = load_document(spec)
        version = detect_openapi_version(document, config.openapi_version)
        schemas = schemas_from_components(document.get("components"))
        registry = SchemaRegistry.from_document(document) if dereference else None
    except SpecguardError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    target = dialect or dialect_for_version(version)
    debug(f"Normalizing {len(schemas)} schema(s) from OpenAPI {version} to {target.value}")

    if not schemas:
        info("No schemas defined in this document.")
        return

    normalized: dict[str, Any] = {}
    for name, node in schemas.items():
        if registry is not None:
            node = resolve(node, registry)
        normalized[name] = schema_to_dict(normalize_nullable(node, target))

    if as_yaml:
        print_data(yaml.safe_dump(normalized, sort_keys=False, allow_unicode=True).rstrip())
    else:
        print_json(normalized)
