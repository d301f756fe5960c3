"""Static configuration for postfilter.

All user-editable settings (plugin settings, reserved channel names,
Mattermost connection, logging) live in a single JSON file for quick edits
without touching Python. Secrets stay in the environment.
"""

import json
import os

from core.config import ConfigurationError

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# POSTFILTER_CONFIG points at an alternative file, e.g. per deployment.
CONFIG_PATH = os.getenv("POSTFILTER_CONFIG") or os.path.join(PROJECT_ROOT, "config.json")


def load_json_config(path: str = CONFIG_PATH) -> dict:
    """Load the config file with a flat, user-friendly schema."""

    if not os.path.exists(path):
        raise ConfigurationError(f"Config file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as handle:
            config = json.load(handle)
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"Failed to read config file {path}: {e}") from e

    if not isinstance(config, dict):
        raise ConfigurationError(f"Config file {path} must contain a JSON object")
    return config


def config_section(config: dict, name: str) -> dict:
    """Return one top-level section, empty when absent."""

    section = config.get(name, {})
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ConfigurationError(f"'{name}' section must be a JSON object")
    return section


def load_plugin_settings(path: str = CONFIG_PATH) -> dict:
    """Re-read the file and return only the flat plugin settings record.

    Called on every configuration change so edits apply without a restart.
    """

    return config_section(load_json_config(path), "plugin")


_CONFIG = load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Reserved channel names for the special rules; an empty value disables one.
_reserved = config_section(_CONFIG, "reserved_channels")
LOWERCASE_CHANNEL = _reserved.get("lowercase", "ssm")
UPPERCASE_CHANNEL = _reserved.get("uppercase", "ssm-v0")
BOARD_CHANNEL = _reserved.get("board", "bestuur-intern")

# Mattermost connection. The token is read from the environment only.
_mattermost = config_section(_CONFIG, "mattermost")
MATTERMOST_URL = _mattermost.get("url", "http://localhost:8065")
MATTERMOST_TIMEOUT = float(_mattermost.get("timeout", 10))

# Logging configuration (optional).
LOGGING = config_section(_CONFIG, "logging")
