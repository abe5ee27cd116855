"""Shared test fixtures for specguard.

Provides raw document fixtures loaded from ``tests/fixtures``, a registry
populated from them, an isolated working directory for config tests, and
automatic reset of the global output state. These fixtures are discovered
by pytest and available to every test module without explicit imports.
"""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any

import pytest

from specguard.config import (
    ENV_ALL_PROPERTIES_REQUIRED,
    ENV_CONFIG,
    ENV_NO_ADDITIONAL_PROPERTIES,
    ENV_OPENAPI_VERSION,
)
from specguard.output import reset_output
from specguard.schema import SchemaRegistry


FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams and the
    test finishes, the cached references go stale. Resetting forces a fresh
    manager on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Raw document fixtures (plain dicts loaded from JSON files)
# ---------------------------------------------------------------------------


def load_fixture(name: str) -> dict[str, Any]:
    with open(FIXTURES_DIR / name) as f:
        return json.load(f)


@pytest.fixture
def petstore_base_raw() -> dict[str, Any]:
    """Load the base (OpenAPI 3.0) petstore document."""
    return load_fixture("petstore_base.json")


@pytest.fixture
def petstore_head_raw() -> dict[str, Any]:
    """Load the head (OpenAPI 3.1) petstore document."""
    return load_fixture("petstore_head.json")


@pytest.fixture
def petstore_copy(petstore_base_raw: dict[str, Any]) -> dict[str, Any]:
    """A deep copy of the base document, safe to edit in a test."""
    return copy.deepcopy(petstore_base_raw)


@pytest.fixture
def registry(petstore_base_raw: dict[str, Any]) -> SchemaRegistry:
    """Registry populated from the base petstore components."""
    return SchemaRegistry.from_document(petstore_base_raw)


# ---------------------------------------------------------------------------
# Isolated project directory
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run the test inside an empty directory with no specguard env vars set.

    Returns:
        The temporary project directory (also the current working directory).
    """
    for name in (
        ENV_CONFIG,
        ENV_NO_ADDITIONAL_PROPERTIES,
        ENV_ALL_PROPERTIES_REQUIRED,
        ENV_OPENAPI_VERSION,
        "NO_COLOR",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path
