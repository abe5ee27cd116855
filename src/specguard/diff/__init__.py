"""Compare two OpenAPI documents and classify every change.

Typical usage::

    from specguard.diff import compare_specs, format_compare_result

    result = compare_specs(base_document, head_document)
    print(format_compare_result(result))

Sub-modules:

* :mod:`~specguard.diff.engine` -- Path, method, and operation walk.
* :mod:`~specguard.diff.schemas` -- Structural comparison of response schemas.
* :mod:`~specguard.diff.report` -- Markdown rendering of the result.
"""

from specguard.diff.engine import SpecComparer, compare_operations, compare_specs
from specguard.diff.report import format_compare_result

__all__ = [
    "SpecComparer",
    "compare_operations",
    "compare_specs",
    "format_compare_result",
]
