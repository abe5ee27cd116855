"""Exception hierarchy for specguard.

All exceptions inherit from :class:`SpecguardError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`specguard.exit_codes`.
The top-level error handler in :func:`specguard.app.main` catches
``SpecguardError`` and exits with the appropriate code.

The schema engine itself raises only for inputs that are not documents or
schemas at all. Imperfect but well-formed inputs (missing ``$ref`` targets,
cycles, bad regex patterns, absent sections) degrade to pass-through values
or warnings instead.

Subclass hierarchy::

    SpecguardError (exit 1)
    +-- InvalidUsageError       (exit 2)
    +-- ConfigError             (exit 1)
    +-- SpecParseError          (exit 3)
        +-- SchemaParseError    (exit 3)
        +-- InvalidDocumentError (exit 3)
"""

from specguard.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_SPEC_PARSE_ERROR,
)


class SpecguardError(Exception):
    """Base exception for all specguard errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`specguard.exit_codes`.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(SpecguardError):
    """Raised for invalid CLI arguments or contradictory options."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(SpecguardError):
    """Raised for configuration problems (invalid JSON, failed validation, bad env values)."""

    exit_code = EXIT_GENERIC_FAILURE


class SpecParseError(SpecguardError):
    """Raised when an OpenAPI document cannot be loaded or fails basic checks."""

    exit_code = EXIT_SPEC_PARSE_ERROR


class SchemaParseError(SpecParseError):
    """Raised when a raw schema value is neither a mapping nor a boolean.

    The message names the location of the offending value so the caller can
    find it in the source document.
    """


class InvalidDocumentError(SpecParseError):
    """Raised when a value handed to the diff engine is not a document.

    Args:
        label: Which input was wrong (``"base"`` or ``"head"``).
        value: The offending value; only its type is reported.
        what: The part of the document that was expected to be a mapping.
    """

    def __init__(self, label: str, value: object, what: str = "document"):
        super().__init__(
            f"{label} {what} must be a mapping, got {type(value).__name__}"
        )
        self.label = label
