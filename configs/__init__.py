"""Configuration loading for simanalysis experiments."""

from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG_PATH = Path(__file__).parent / "default.yaml"


def load_config(config_path: str, defaults: Optional[dict] = None) -> dict:
    """Load an experiment configuration from a YAML file.

    Args:
        config_path: Path to configuration file
        defaults: Configuration the file is merged onto (optional)

    Returns:
        Configuration dictionary
    """
    with open(config_path, 'r') as f:
        config = yaml.safe_load(f) or {}
    if defaults is not None:
        return merge_configs(defaults, config)
    return config


def load_default_config() -> dict:
    """Load the bundled default configuration."""
    return load_config(DEFAULT_CONFIG_PATH)


def merge_configs(base_config: dict, override_config: dict) -> dict:
    """Recursively merge two configuration dictionaries.

    Args:
        base_config: Base configuration
        override_config: Values taking precedence over the base

    Returns:
        Merged configuration (inputs are left untouched)
    """
    merged = base_config.copy()
    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value
    return merged
