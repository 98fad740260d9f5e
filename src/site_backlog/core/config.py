"""Configuration loading and management."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .types import BacklogConfig

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent.parent / "configs" / "default.yaml"


class ConfigError(ValueError):
    """Raised when configuration cannot be loaded or validated."""


def load_yaml(file_path: Path) -> dict[str, Any]:
    """Load YAML configuration file.

    Args:
        file_path: Path to YAML file

    Returns:
        Parsed YAML as dictionary (empty for an empty file)

    Raises:
        FileNotFoundError: If file doesn't exist
        ConfigError: If YAML is invalid or not a mapping
    """
    if not file_path.exists():
        raise FileNotFoundError(f"Config file not found: {file_path}")

    with open(file_path, encoding="utf-8") as f:
        try:
            result = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {file_path}: {e}") from e

    if result is None:
        return {}
    if not isinstance(result, dict):
        raise ConfigError(f"Config file must contain a mapping: {file_path}")
    return result


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge two configuration dictionaries.

    Args:
        base: Base configuration
        override: Override configuration (takes precedence)

    Returns:
        Merged configuration
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value

    return result


def load_config(
    config_path: Path | None = None,
    override_path: Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> BacklogConfig:
    """Load and merge configuration from files and overrides.

    Args:
        config_path: Path to base config file (default: configs/default.yaml)
        override_path: Path to a deployment-specific config file
        overrides: Additional runtime overrides

    Returns:
        Validated BacklogConfig instance

    Raises:
        ConfigError: If configuration is invalid
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if config_path.exists():
        config_dict = load_yaml(config_path)
    else:
        config_dict = {}

    if override_path and override_path.exists():
        config_dict = merge_configs(config_dict, load_yaml(override_path))

    if overrides:
        config_dict = merge_configs(config_dict, overrides)

    try:
        return BacklogConfig(**config_dict)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
