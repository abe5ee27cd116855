"""Render a :class:`~specguard.models.CompareResult` as Markdown text.

The format is meant for pull-request comments and CI logs::

    ## Breaking Changes

    - **removed**: GET /widgets
      Endpoint GET /widgets was removed

Sections with no entries are omitted entirely. An empty result renders as
``No changes detected.``.
"""

from __future__ import annotations

from specguard.models import CompareResult, DiffEntry


def format_compare_result(result: CompareResult) -> str:
    """Format *result* as Markdown, one section per non-empty list."""
    lines: list[str] = []

    for title, entries in (
        ("Breaking Changes", result.breaking),
        ("Non-Breaking Changes", result.non_breaking),
    ):
        if not entries:
            continue
        lines.extend([f"## {title}", ""])
        for entry in entries:
            lines.extend(_entry_lines(entry))
        lines.append("")

    if result.deprecated:
        lines.extend(["## Deprecated Endpoints", ""])
        for endpoint in result.deprecated:
            lines.append(f"- {endpoint.method.upper()} {endpoint.path}")
            if endpoint.description:
                lines.append(f"  {endpoint.description}")
        lines.append("")

    if not lines:
        return "No changes detected."
    return "\n".join(lines)


def _entry_lines(entry: DiffEntry) -> list[str]:
    method = (entry.method or "").upper()
    return [
        f"- **{entry.type.value}**: {method} {entry.path}",
        f"  {entry.description}",
    ]
