"""
Configuration Loading with File/Env/CLI Precedence

Implements three-level config composition:
1. **File level** (YAML/JSON): base configuration
2. **Environment level**: ROUTER_CONFIG__* prefixed variables override file
3. **CLI level**: programmatic overrides win

Environment variables use double-underscore notation:
  ROUTER_CONFIG__HTTP__TIMEOUT_S=10  →  http.timeout_s=10
  ROUTER_CONFIG__SOURCE_URL=https://ex.com/go  →  source_url="https://ex.com/go"

JSON values are automatically parsed; strings are type-coerced when possible.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import ValidationError

from ..errors import ConfigurationError
from .models import RouterConfig

__all__ = ["ENV_PREFIX", "load_config", "export_config_schema"]

_LOGGER = logging.getLogger(__name__)

ENV_PREFIX = "ROUTER_CONFIG__"


def _read_file(path: Union[str, Path]) -> dict[str, Any]:
    """
    Read YAML or JSON config file.

    Args:
        path: File path (suffix determines format: .yaml/.yml or .json)

    Returns:
        Parsed config dictionary

    Raises:
        ConfigurationError: If file cannot be read or parsed
    """
    p = Path(path)
    if not p.exists():
        raise ConfigurationError(f"Config file not found: {path}")

    try:
        text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {path}: {e}") from e

    suffix = p.suffix.lower()

    if suffix in (".yaml", ".yml"):
        try:
            loaded = yaml.safe_load(text) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
    elif suffix == ".json":
        try:
            loaded = json.loads(text)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in {path}: {e}") from e
    else:
        raise ConfigurationError(f"Unsupported file format: {suffix}. Use .yaml or .json")

    if not isinstance(loaded, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")
    return loaded


def _assign_nested(data: dict[str, Any], dotted_key: str, value: Any) -> None:
    keys = dotted_key.split(".")
    current = data

    for key in keys[:-1]:
        if not isinstance(current.get(key), dict):
            current[key] = {}
        current = current[key]

    current[keys[-1]] = value


def _coerce_env_value(value: str) -> Any:
    """
    Attempt to coerce environment variable string to appropriate type.

    Tries JSON parsing first (handles lists, dicts, bools, numbers).
    Falls back to the raw string.
    """
    try:
        return json.loads(value)
    except (json.JSONDecodeError, ValueError):
        pass

    if value.lower() in ("true", "false"):
        return value.lower() == "true"

    return value


def _merge_env_overrides(data: dict[str, Any], env_prefix: str = ENV_PREFIX) -> dict[str, Any]:
    """Overlay ``env_prefix`` variables onto ``data`` using ``__`` for nesting."""
    for env_key, env_value in os.environ.items():
        if not env_key.upper().startswith(env_prefix):
            continue

        relative_key = env_key[len(env_prefix) :].lower()
        if not relative_key:
            continue
        dotted_key = relative_key.replace("__", ".")
        coerced_value = _coerce_env_value(env_value)
        _assign_nested(data, dotted_key, coerced_value)
        _LOGGER.debug("Environment override: %s → %s", env_key, dotted_key)

    return data


def _merge_cli_overrides(
    data: dict[str, Any], cli_overrides: Optional[Mapping[str, Any]]
) -> dict[str, Any]:
    """Recursively merge CLI overrides into ``data``; later values win."""
    if not cli_overrides:
        return data

    for key, value in cli_overrides.items():
        if value is None:
            continue
        if isinstance(value, Mapping) and isinstance(data.get(key), dict):
            data[key] = _merge_cli_overrides(data[key], value)
        else:
            data[key] = dict(value) if isinstance(value, Mapping) else value
        _LOGGER.debug("CLI override: %s = %r", key, value)

    return data


def load_config(
    path: Union[str, Path, None] = None,
    env_prefix: str = ENV_PREFIX,
    cli_overrides: Optional[Mapping[str, Any]] = None,
) -> RouterConfig:
    """
    Load RouterConfig from file, environment, and CLI with proper precedence.

    **Precedence:** file < environment < CLI

    Args:
        path: Path to YAML/JSON config file (optional)
        env_prefix: Environment variable prefix (default: ROUTER_CONFIG__)
        cli_overrides: CLI override dict (optional); ``None`` values are skipped

    Returns:
        Validated RouterConfig instance

    Raises:
        ConfigurationError: If the file cannot be read or the merged config is invalid
    """
    data: dict[str, Any] = {}

    if path:
        data = _read_file(path)
        _LOGGER.info("Loaded config from %s", path)

    data = _merge_env_overrides(data, env_prefix)
    data = _merge_cli_overrides(data, cli_overrides)

    try:
        config = RouterConfig.model_validate(data)
    except ValidationError as e:
        _LOGGER.error("Configuration validation failed: %s", e)
        raise ConfigurationError(f"Invalid router configuration: {e}") from e

    _LOGGER.debug("Configuration validated", extra={"config_hash": config.config_hash()[:8]})
    return config


def export_config_schema() -> dict[str, Any]:
    """Return the JSON Schema for :class:`RouterConfig`."""
    return RouterConfig.model_json_schema()
