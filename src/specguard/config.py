"""Project-local configuration and precedence resolution.

specguard keeps no per-user state. Its only configuration file is the
project-local ``specguard.json`` (or whatever ``$SPECGUARD_CONFIG`` points
at), deserialised into :class:`~specguard.models.GuardConfig`::

    {
      "openapi_version": "3.1.0",
      "strictness": {"no_additional_properties": true},
      "policy": {"response_required_added_is_breaking": false},
      "output": {"format": "json"}
    }

:func:`resolve_config` layers CLI flags and environment variables on top.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from specguard.exceptions import ConfigError
from specguard.models import GuardConfig

_PROJECT_CONFIG_FILENAME = "specguard.json"

ENV_CONFIG = "SPECGUARD_CONFIG"
ENV_NO_ADDITIONAL_PROPERTIES = "SPECGUARD_NO_ADDITIONAL_PROPERTIES"
ENV_ALL_PROPERTIES_REQUIRED = "SPECGUARD_ALL_PROPERTIES_REQUIRED"
ENV_OPENAPI_VERSION = "SPECGUARD_OPENAPI_VERSION"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def project_config_path() -> Path:
    """Return the project config path: ``$SPECGUARD_CONFIG`` or ``./specguard.json``."""
    env_path = os.environ.get(ENV_CONFIG)
    if env_path:
        return Path(env_path).expanduser()
    return Path.cwd() / _PROJECT_CONFIG_FILENAME


def load_project_config(path: Optional[Path] = None) -> GuardConfig:
    """Load the project configuration file.

    Args:
        path: Explicit file to read. Defaults to :func:`project_config_path`.

    Returns:
        The validated :class:`~specguard.models.GuardConfig`. A missing file
        yields the defaults, unless it was named explicitly through
        ``$SPECGUARD_CONFIG`` or *path*.

    Raises:
        ConfigError: If the file contains invalid JSON, fails validation, or
            was named explicitly but does not exist.
    """
    explicit = path is not None or bool(os.environ.get(ENV_CONFIG))
    path = path if path is not None else project_config_path()

    if not path.is_file():
        if explicit:
            raise ConfigError(f"Config file not found: {path}")
        return GuardConfig()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return GuardConfig.model_validate(data)
    except (json.JSONDecodeError, ValidationError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Cannot read project config at {path}: {exc}") from exc


def resolve_config(
    cli_no_additional_properties: Optional[bool] = None,
    cli_all_properties_required: Optional[bool] = None,
    cli_response_required_breaking: Optional[bool] = None,
    cli_new_required_parameter_breaking: Optional[bool] = None,
    cli_format: Optional[str] = None,
    config_path: Optional[Path] = None,
) -> GuardConfig:
    """Resolve the effective configuration.

    Precedence (high to low):
        1. CLI flags (any argument that is not ``None``)
        2. Environment variables (``SPECGUARD_NO_ADDITIONAL_PROPERTIES``,
           ``SPECGUARD_ALL_PROPERTIES_REQUIRED``, ``SPECGUARD_OPENAPI_VERSION``)
        3. Project config (``./specguard.json`` or ``$SPECGUARD_CONFIG``)
        4. Defaults

    Raises:
        ConfigError: If the project file is invalid or an environment
            variable holds something that is not a boolean.
    """
    # 4 + 3. Defaults, then the project file
    config = load_project_config(config_path)
    strictness: dict[str, Any] = config.strictness.model_dump()
    policy: dict[str, Any] = config.policy.model_dump()
    output: dict[str, Any] = config.output.model_dump()
    openapi_version = config.openapi_version

    # 2. Environment variables
    env_value = _env_bool(ENV_NO_ADDITIONAL_PROPERTIES)
    if env_value is not None:
        strictness["no_additional_properties"] = env_value
    env_value = _env_bool(ENV_ALL_PROPERTIES_REQUIRED)
    if env_value is not None:
        strictness["all_properties_required"] = env_value
    env_version = os.environ.get(ENV_OPENAPI_VERSION)
    if env_version:
        openapi_version = env_version

    # 1. CLI flags
    if cli_no_additional_properties is not None:
        strictness["no_additional_properties"] = cli_no_additional_properties
    if cli_all_properties_required is not None:
        strictness["all_properties_required"] = cli_all_properties_required
    if cli_response_required_breaking is not None:
        policy["response_required_added_is_breaking"] = cli_response_required_breaking
    if cli_new_required_parameter_breaking is not None:
        policy["new_required_parameter_is_breaking"] = cli_new_required_parameter_breaking
    if cli_format is not None:
        output["format"] = cli_format

    return GuardConfig(
        openapi_version=openapi_version,
        strictness=strictness,
        policy=policy,
        output=output,
    )


def _env_bool(name: str) -> Optional[bool]:
    """Read a boolean environment variable; ``None`` when unset."""
    raw = os.environ.get(name)
    if raw is None:
        return None
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean (true/false), got {raw!r}")
