"""Load OpenAPI documents and data files from a URL, local file, or stdin.

This is the I/O edge of specguard. The schema engine and the diff engine
never read files themselves; the CLI calls :func:`load_document` and hands
the parsed mapping over.

The public functions are:

* :func:`load_document` -- Load and parse a document from any supported source.
* :func:`load_data` -- Load an arbitrary JSON/YAML value (request or response
  bodies to validate), which need not be a mapping.
* :func:`detect_openapi_version` -- Check and return the ``openapi`` version
  string, rejecting Swagger 2.x and missing versions.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

import httpx
import yaml

from specguard.exceptions import SpecParseError

logger = logging.getLogger(__name__)


def load_document(source: str) -> dict[str, Any]:
    """Load an OpenAPI document from URL, file path, or stdin (``-``).

    Args:
        source: A URL (http/https), file path, or ``-`` for stdin.

    Returns:
        The parsed document as a dictionary.

    Raises:
        SpecParseError: If the source cannot be read, cannot be parsed, or
            is not a JSON/YAML object.
    """
    document = load_data(source)
    if not isinstance(document, dict):
        raise SpecParseError(
            f"Document at {source} must be a JSON/YAML object "
            f"(got {type(document).__name__})"
        )
    return document


def load_data(source: str) -> Any:
    """Load any JSON or YAML value from URL, file path, or stdin (``-``).

    Raises:
        SpecParseError: If the source cannot be read or parsed.
    """
    if source == "-":
        content, hint = _read_stdin(), ""
    elif source.startswith(("http://", "https://")):
        content, hint = _fetch_url(source)
    else:
        content, hint = _read_file(source)
    logger.debug("Loaded %d characters from %s", len(content), source)
    return _parse_content(content, hint=hint)


def _read_stdin() -> str:
    try:
        content = sys.stdin.read()
    except OSError as exc:
        raise SpecParseError(f"Failed to read from stdin: {exc}") from exc

    if not content.strip():
        raise SpecParseError("No input received from stdin")
    return content


def _fetch_url(url: str) -> tuple[str, str]:
    """Fetch *url* and return its body plus a format hint from the content type.

    Raises:
        SpecParseError: If the URL cannot be fetched.
    """
    try:
        response = httpx.get(url, timeout=30.0, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise SpecParseError(
            f"HTTP {exc.response.status_code} fetching document from {url}"
        ) from exc
    except httpx.RequestError as exc:
        raise SpecParseError(f"Failed to fetch document from {url}: {exc}") from exc

    content_type = response.headers.get("content-type", "")
    hint = ""
    if "json" in content_type:
        hint = "json"
    elif "yaml" in content_type or "yml" in content_type:
        hint = "yaml"
    return response.text, hint


def _read_file(path: str) -> tuple[str, str]:
    """Read a local file and return its text plus a hint from the extension.

    Raises:
        SpecParseError: If the file is missing, unreadable, or empty.
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise SpecParseError(f"File not found: {path}")

    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SpecParseError(f"Failed to read {path}: {exc}") from exc

    if not content.strip():
        raise SpecParseError(f"File is empty: {path}")

    suffix = file_path.suffix.lower()
    hint = ""
    if suffix == ".json":
        hint = "json"
    elif suffix in (".yaml", ".yml"):
        hint = "yaml"
    return content, hint


def _parse_content(content: str, hint: str = "") -> Any:
    """Parse *content* as JSON or YAML.

    JSON is tried first unless the hint says YAML; every JSON document is
    also YAML, so YAML is the fallback. An explicit ``json`` hint disables
    the fallback.

    Raises:
        SpecParseError: If the content parses as neither format.
    """
    json_error: Exception | None = None

    if hint != "yaml":
        try:
            return json.loads(content)
        except json.JSONDecodeError as exc:
            if hint == "json":
                raise SpecParseError(f"Invalid JSON: {exc}") from exc
            json_error = exc

    try:
        return yaml.safe_load(content)
    except yaml.YAMLError as exc:
        msg = "Failed to parse content as JSON or YAML"
        if json_error:
            msg += f"\n  JSON error: {json_error}"
        msg += f"\n  YAML error: {exc}"
        raise SpecParseError(msg) from exc


def detect_openapi_version(
    document: dict[str, Any], default: Optional[str] = None
) -> str:
    """Return the document's ``openapi`` version string.

    Args:
        document: The parsed document.
        default: Version to assume when the document has no ``openapi``
            field, usually ``GuardConfig.openapi_version``.

    Returns:
        The version string, e.g. ``"3.0.3"`` or ``"3.1.0"``.

    Raises:
        SpecParseError: If the document is Swagger 2.x, has no ``openapi``
            field and no *default* was given, or declares a major
            version other than 3.
    """
    if "swagger" in document:
        raise SpecParseError(
            f"Swagger {document['swagger']} is not supported. "
            "Only OpenAPI 3.0.x and 3.1.x are supported. "
            "Consider converting with https://converter.swagger.io"
        )

    version = document.get("openapi", default)
    if version is None:
        raise SpecParseError("Missing 'openapi' field. Is this an OpenAPI 3.x document?")

    version_str = str(version)
    if not version_str.startswith("3."):
        raise SpecParseError(
            f"Unsupported OpenAPI version: {version_str}. "
            "Only OpenAPI 3.0.x and 3.1.x are supported."
        )
    return version_str
