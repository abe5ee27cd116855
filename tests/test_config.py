"""Tests for specguard.config: project file, env overrides and precedence."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from specguard.config import (
    ENV_ALL_PROPERTIES_REQUIRED,
    ENV_CONFIG,
    ENV_NO_ADDITIONAL_PROPERTIES,
    ENV_OPENAPI_VERSION,
    load_project_config,
    project_config_path,
    resolve_config,
)
from specguard.exceptions import ConfigError
from specguard.models import GuardConfig


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_json(path: Path, data: Any) -> None:
    """Write a dict as JSON to *path*, creating parent dirs."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


# ---------------------------------------------------------------------------
# Project config file
# ---------------------------------------------------------------------------


class TestProjectConfigPath:
    def test_default_is_cwd(self, isolated_project: Path) -> None:
        assert project_config_path() == isolated_project / "specguard.json"

    def test_env_override(self, isolated_project: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(ENV_CONFIG, str(isolated_project / "ci" / "guard.json"))
        assert project_config_path() == isolated_project / "ci" / "guard.json"


class TestProjectConfig:
    def test_missing_file_gives_defaults(self, isolated_project: Path) -> None:
        assert load_project_config() == GuardConfig()

    def test_load_valid_project_config(self, isolated_project: Path) -> None:
        _write_json(
            isolated_project / "specguard.json",
            {
                "openapi_version": "3.1.0",
                "strictness": {"no_additional_properties": True},
                "policy": {"response_required_added_is_breaking": False},
                "output": {"format": "json"},
            },
        )

        cfg = load_project_config()

        assert cfg.openapi_version == "3.1.0"
        assert cfg.strictness.no_additional_properties is True
        assert cfg.strictness.all_properties_required is False
        assert cfg.policy.response_required_added_is_breaking is False
        assert cfg.policy.new_required_parameter_is_breaking is True
        assert cfg.output.format == "json"

    def test_load_invalid_json_raises_config_error(self, isolated_project: Path) -> None:
        (isolated_project / "specguard.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid project config"):
            load_project_config()

    def test_unknown_key_rejected(self, isolated_project: Path) -> None:
        _write_json(isolated_project / "specguard.json", {"strictnes": {}})
        with pytest.raises(ConfigError, match="Invalid project config"):
            load_project_config()

    def test_explicit_missing_path_raises(self, isolated_project: Path) -> None:
        with pytest.raises(ConfigError, match="Config file not found"):
            load_project_config(isolated_project / "nope.json")

    def test_env_named_missing_file_raises(
        self, isolated_project: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv(ENV_CONFIG, str(isolated_project / "missing.json"))
        with pytest.raises(ConfigError, match="Config file not found"):
            load_project_config()

    def test_env_named_file_is_read(
        self, isolated_project: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        path = isolated_project / "conf" / "guard.json"
        _write_json(path, {"openapi_version": "3.1.0"})
        monkeypatch.setenv(ENV_CONFIG, str(path))
        assert load_project_config().openapi_version == "3.1.0"


# ---------------------------------------------------------------------------
# Precedence
# ---------------------------------------------------------------------------


class TestResolveConfig:
    """Test the full precedence chain: CLI > env > project > defaults."""

    def test_defaults(self, isolated_project: Path) -> None:
        cfg = resolve_config()
        assert cfg == GuardConfig()
        assert cfg.openapi_version is None
        assert cfg.strictness.enabled is False
        assert cfg.policy.new_required_parameter_is_breaking is True

    def test_project_overrides_defaults(self, isolated_project: Path) -> None:
        _write_json(
            isolated_project / "specguard.json",
            {"strictness": {"all_properties_required": True}},
        )
        assert resolve_config().strictness.all_properties_required is True

    def test_env_overrides_project(
        self, isolated_project: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        _write_json(
            isolated_project / "specguard.json",
            {"openapi_version": "3.0.3", "strictness": {"no_additional_properties": False}},
        )
        monkeypatch.setenv(ENV_NO_ADDITIONAL_PROPERTIES, "true")
        monkeypatch.setenv(ENV_OPENAPI_VERSION, "3.1.0")

        cfg = resolve_config()

        assert cfg.strictness.no_additional_properties is True
        assert cfg.openapi_version == "3.1.0"

    def test_cli_overrides_env(
        self, isolated_project: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv(ENV_ALL_PROPERTIES_REQUIRED, "yes")
        cfg = resolve_config(cli_all_properties_required=False)
        assert cfg.strictness.all_properties_required is False

    def test_cli_policy_flags(self, isolated_project: Path) -> None:
        _write_json(
            isolated_project / "specguard.json",
            {"policy": {"response_required_added_is_breaking": False}},
        )
        cfg = resolve_config(
            cli_response_required_breaking=True,
            cli_new_required_parameter_breaking=False,
        )
        assert cfg.policy.response_required_added_is_breaking is True
        assert cfg.policy.new_required_parameter_is_breaking is False

    def test_cli_format_overrides_project(self, isolated_project: Path) -> None:
        _write_json(isolated_project / "specguard.json", {"output": {"format": "plain"}})
        assert resolve_config(cli_format="json").output.format == "json"

    def test_none_flags_do_not_override(self, isolated_project: Path) -> None:
        _write_json(
            isolated_project / "specguard.json",
            {"strictness": {"no_additional_properties": True}},
        )
        cfg = resolve_config(cli_no_additional_properties=None)
        assert cfg.strictness.no_additional_properties is True

    def test_explicit_config_path(self, isolated_project: Path) -> None:
        path = isolated_project / "other.json"
        _write_json(path, {"output": {"format": "rich"}})
        assert resolve_config(config_path=path).output.format == "rich"

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("1", True), ("TRUE", True), (" on ", True), ("0", False), ("no", False), ("", False)],
    )
    def test_env_boolean_spellings(
        self,
        isolated_project: Path,
        monkeypatch: pytest.MonkeyPatch,
        raw: str,
        expected: bool,
    ) -> None:
        monkeypatch.setenv(ENV_NO_ADDITIONAL_PROPERTIES, raw)
        assert resolve_config().strictness.no_additional_properties is expected

    def test_env_invalid_boolean_raises(
        self, isolated_project: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv(ENV_ALL_PROPERTIES_REQUIRED, "maybe")
        with pytest.raises(ConfigError, match="must be a boolean"):
            resolve_config()
