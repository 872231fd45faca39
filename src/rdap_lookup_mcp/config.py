"""
Configuration for RDAP Lookup MCP.

Settings lookup order:
1. Environment variable (RDAP_LOOKUP_*)
2. Config file (config.json in the user's config directory)
3. Built-in default
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path

# Bootstrap registries are refreshed once a day
DEFAULT_BOOTSTRAP_TTL = 86400
DEFAULT_TIMEOUT = 15.0

ENV_VARS = {
    "timeout": "RDAP_LOOKUP_TIMEOUT",
    "geolocation": "RDAP_LOOKUP_GEOLOCATION",
    "bootstrap_ttl": "RDAP_LOOKUP_BOOTSTRAP_TTL",
    "debug": "RDAP_LOOKUP_DEBUG",
}

DEFAULTS = {
    "timeout": DEFAULT_TIMEOUT,
    "geolocation": True,
    "bootstrap_ttl": DEFAULT_BOOTSTRAP_TTL,
    "debug": False,
}


@dataclass(frozen=True)
class Settings:
    """Resolved runtime settings."""
    timeout: float = DEFAULT_TIMEOUT
    geolocation: bool = True
    bootstrap_ttl: int = DEFAULT_BOOTSTRAP_TTL
    debug: bool = False


def get_config_dir() -> Path:
    """Get the config directory for this app."""
    if os.name == 'nt':  # Windows
        base = Path(os.environ.get('APPDATA', Path.home()))
    else:  # macOS, Linux
        base = Path(os.environ.get('XDG_CONFIG_HOME', Path.home() / '.config'))

    return base / 'rdap-lookup-mcp'


def get_config_file() -> Path:
    """Get the path to the config file."""
    return get_config_dir() / 'config.json'


def load_config() -> dict:
    """Load the config file, returning an empty dict if missing or invalid."""
    try:
        config_file = get_config_file()
        if config_file.exists():
            config = json.loads(config_file.read_text())
            if isinstance(config, dict):
                return config
    except (json.JSONDecodeError, OSError):
        pass
    return {}


def _parse_bool(value) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ("1", "true", "yes", "on"):
            return True
        if text in ("0", "false", "no", "off", ""):
            return False
    return None


def _parse_positive(value, kind: type) -> float | int | None:
    if isinstance(value, bool):
        return None
    try:
        number = kind(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


_PARSERS = {
    "timeout": lambda v: _parse_positive(v, float),
    "geolocation": _parse_bool,
    "bootstrap_ttl": lambda v: _parse_positive(v, int),
    "debug": _parse_bool,
}


def get_setting(key: str, config: dict | None = None):
    """
    Get a single setting value.

    Malformed values in the environment or config file are ignored and the
    next source is consulted.
    """
    parse = _PARSERS[key]

    if (raw := os.environ.get(ENV_VARS[key])) is not None:
        if (value := parse(raw)) is not None:
            return value

    if config is None:
        config = load_config()
    if key in config:
        if (value := parse(config[key])) is not None:
            return value

    return DEFAULTS[key]


def get_config_source(key: str) -> str:
    """Determine where a setting comes from (for display purposes)."""
    parse = _PARSERS[key]

    raw = os.environ.get(ENV_VARS[key])
    if raw is not None and parse(raw) is not None:
        return "environment variable"

    config = load_config()
    if key in config and parse(config[key]) is not None:
        return "config file"

    return "default"


def get_settings() -> Settings:
    """Resolve all settings from environment, config file and defaults."""
    config = load_config()
    return Settings(**{key: get_setting(key, config) for key in DEFAULTS})
