"""Centralized configuration loading for kptedit.

This module provides utilities for loading and accessing configuration from
kptedit.json with support for environment variable fallbacks and default values.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

DEFAULT_CONFIG_PATH = "kptedit.json"
ENV_PREFIX = "KPTEDIT"


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
    """Load configuration from JSON file.

    Returns empty dict if file doesn't exist or is invalid.

    Args:
        config_path: Path to config file (default: "kptedit.json")

    Returns:
        Configuration dictionary, or empty dict if file not found/invalid
    """
    path = Path(config_path)

    if not path.exists():
        return {}

    try:
        with open(path, "r") as f:
            loaded = json.load(f)
    except (json.JSONDecodeError, IOError):
        # Return empty dict on error, allowing code to use defaults
        return {}

    return loaded if isinstance(loaded, dict) else {}


def get_config_value(
    keys: List[str], default: Any = None, config: Optional[Dict[str, Any]] = None
) -> Any:
    """Get nested configuration value with fallback to environment variable.

    Supports key paths like ["yaml", "width"] or ["pipeline", "insert_position"].
    Also checks environment variables as fallback
    (e.g., KPTEDIT_YAML_WIDTH for yaml.width).

    Args:
        keys: List of keys to traverse (e.g., ["yaml", "width"])
        default: Default value if key not found
        config: Optional config dict (uses load_config() if not provided)

    Returns:
        Configuration value, or default if not found
    """
    if config is None:
        config = load_config()

    value: Any = config
    for key in keys:
        if isinstance(value, dict):
            value = value.get(key)
            if value is None:
                break
        else:
            value = None
            break

    if value is not None:
        return value

    env_key = "_".join([ENV_PREFIX] + [k.upper() for k in keys])
    env_value = os.environ.get(env_key)
    if env_value is not None:
        return env_value

    return default


def get_int_config_value(
    keys: List[str], default: int, config: Optional[Dict[str, Any]] = None
) -> int:
    """Like get_config_value, but coerces the result to int.

    Environment variables always arrive as strings, so values such as
    ``KPTEDIT_YAML_WIDTH=120`` need converting. Unparseable values fall back
    to the default.
    """
    value = get_config_value(keys, default=default, config=config)
    try:
        return int(value)
    except (TypeError, ValueError):
        return default
