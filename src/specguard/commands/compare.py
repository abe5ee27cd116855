"""``specguard compare`` -- detect breaking changes between two documents.

Loads a *base* and a *head* revision, runs
:func:`~specguard.diff.engine.compare_specs` with the configured
:class:`~specguard.models.CompatibilityPolicy`, and renders the result as a
table, JSON, plain text, or Markdown. The command exits with
:data:`~specguard.exit_codes.EXIT_BREAKING_CHANGES` when anything breaking
was found, so it can gate a CI pipeline.
"""

from __future__ import annotations

from typing import Optional

import typer

from specguard.config import resolve_config
from specguard.diff import compare_specs, format_compare_result
from specguard.exceptions import SpecguardError
from specguard.exit_codes import EXIT_BREAKING_CHANGES, EXIT_INVALID_USAGE
from specguard.loader import detect_openapi_version, load_document
from specguard.models import CompareResult
from specguard.output import (
    OutputFormat,
    debug,
    error,
    get_output,
    info,
    print_json,
    print_markdown,
    print_table,
    success,
    warning,
)


def compare_command(
    base: str = typer.Argument(..., help="Previous document: file, URL, or '-'."),
    head: str = typer.Argument(..., help="New document: file, URL, or '-'."),
    markdown: bool = typer.Option(
        False, "--markdown", "-m", help="Render the report as Markdown."
    ),
    response_required_breaking: Optional[bool] = typer.Option(
        None,
        "--response-required-breaking/--response-required-non-breaking",
        help="Whether a newly required response property is breaking.",
    ),
    new_required_param_breaking: Optional[bool] = typer.Option(
        None,
        "--new-required-param-breaking/--new-required-param-non-breaking",
        help="Whether a newly added required parameter is breaking.",
    ),
    fail_on_breaking: bool = typer.Option(
        True,
        "--fail-on-breaking/--no-fail-on-breaking",
        help="Exit with code 4 when breaking changes are found.",
    ),
) -> None:
    """Compare two OpenAPI documents and classify every change.

    Example::

        specguard compare openapi.main.yaml openapi.yaml
        specguard compare old.json new.json --markdown > report.md
        specguard --json compare old.json new.json
    """
    if base == "-" and head == "-":
        error("Only one of BASE and HEAD can be read from stdin")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    try:
        config = resolve_config(
            cli_response_required_breaking=response_required_breaking,
            cli_new_required_parameter_breaking=new_required_param_breaking,
        )
        base_doc = load_document(base)
        head_doc = load_document(head)
        base_version = detect_openapi_version(base_doc, config.openapi_version)
        head_version = detect_openapi_version(head_doc, config.openapi_version)
        debug(f"Comparing OpenAPI {base_version} against {head_version}")
        result = compare_specs(base_doc, head_doc, config.policy)
    except SpecguardError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    _render(result, markdown)

    if result.has_breaking_changes:
        warning(f"{len(result.breaking)} breaking change(s) found")
        if fail_on_breaking:
            raise typer.Exit(code=EXIT_BREAKING_CHANGES)
    elif not result.is_empty:
        success("No breaking changes")


def _render(result: CompareResult, markdown: bool) -> None:
    if markdown:
        print_markdown(format_compare_result(result))
        return

    if get_output().format == OutputFormat.JSON:
        print_json(result.model_dump(by_alias=True, mode="json"))
        return

    if result.is_empty:
        info("No changes detected.")
        return

    rows: list[list[str]] = []
    for category, entries in (
        ("breaking", result.breaking),
        ("non-breaking", result.non_breaking),
    ):
        for entry in entries:
            rows.append([
                category,
                entry.type.value,
                (entry.method or "").upper(),
                entry.path,
                entry.description,
            ])
    for endpoint in result.deprecated:
        rows.append([
            "deprecated",
            "deprecated",
            endpoint.method.upper(),
            endpoint.path,
            endpoint.description or "-",
        ])

    print_table(
        ["Category", "Type", "Method", "Path", "Description"],
        rows,
        title=f"Changes ({len(rows)})",
    )
