"""specguard -- Resolve, validate, and diff OpenAPI 3.0/3.1 documents.

This package implements the schema engine behind an API documentation and
contract-testing toolkit. Callers hand it already-parsed OpenAPI documents
and get back dereferenced schemas, validation issues, and a classified list
of changes between two revisions of a document.

Typical workflow::

    specguard compare openapi.base.yaml openapi.yaml   # exit 4 on breaking changes
    specguard validate openapi.yaml body.json --schema Pet

Modules:
    schema: Schema nodes, registry, ``$ref`` resolution, nullable
        normalization, ``allOf`` merging, and composite validation.
    diff: Breaking-change detection between two documents.
    models: Pydantic models shared across the package.
    config: Project-local configuration and precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    loader: Load documents from files, stdin, or URLs (CLI layer only).
    output: stdout/stderr formatting system with Rich support.
    app: Typer CLI entry point.
"""

__version__ = "0.1.0"
