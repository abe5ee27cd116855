"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific outcome and is referenced by the
corresponding :class:`~specguard.exceptions.SpecguardError` subclass or by
the CLI commands directly. CI scripts can branch on the exit code without
parsing stderr.

Example::

    $ specguard compare base.yaml head.yaml
    $ echo $?
    4   # EXIT_BREAKING_CHANGES -- head breaks clients of base
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_SPEC_PARSE_ERROR = 3
"""An OpenAPI document or schema could not be loaded or is not a document at all."""

EXIT_BREAKING_CHANGES = 4
"""``compare`` found at least one breaking change."""

EXIT_VALIDATION_FAILED = 5
"""``validate`` found the data does not conform to the schema."""
