"""Configuration loading utilities."""

import copy
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml


DEFAULT_CONFIG_DIR = Path("configs")


def load_config(
    config_path: Union[str, Path],
    overrides: Optional[Dict[str, Any]] = None,
    config_dir: Union[str, Path] = DEFAULT_CONFIG_DIR,
) -> Dict[str, Any]:
    """
    Load an estimator configuration from a YAML file.

    Every call reads the file again and returns a fresh dictionary, so
    callers may modify the result freely.

    Args:
        config_path: Path to config file. Relative paths that do not exist
            are looked up in ``config_dir``.
        overrides: Optional nested overrides, merged key by key.
        config_dir: Directory for bare file names.

    Returns:
        Configuration dictionary.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the top level of the file is not a mapping.
    """
    config_path = Path(config_path)
    if not config_path.is_absolute() and not config_path.exists():
        config_path = Path(config_dir) / config_path

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r") as f:
        config = yaml.safe_load(f) or {}

    if not isinstance(config, dict):
        raise ValueError(f"Config file must contain a mapping: {config_path}")

    if overrides:
        config = merge_configs(config, overrides)

    return config


def merge_configs(
    base: Dict[str, Any],
    override: Dict[str, Any],
) -> Dict[str, Any]:
    """
    Deep merge two configurations without modifying either.

    Args:
        base: Base configuration.
        override: Values replacing those in ``base``; nested sections merge.

    Returns:
        Merged configuration.
    """
    result = copy.deepcopy(base)

    for key, value in override.items():
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = copy.deepcopy(value)

    return result


def get_nested(
    config: Dict[str, Any],
    key: str,
    default: Any = None,
) -> Any:
    """
    Get nested config value using dot notation.

    Args:
        config: Configuration dictionary.
        key: Dot-separated key (e.g., 'optimizer.max_iterations').
        default: Default value if key not found.

    Returns:
        Config value or default.
    """
    value = config
    for k in key.split("."):
        if not isinstance(value, dict) or k not in value:
            return default
        value = value[k]
    return value
