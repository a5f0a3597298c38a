"""
Configuration management for Compendium.

Uses XDG base directories:
- Config: ~/.config/compendium/config.toml
- Data: ~/.compendium/ (local cache)
"""

from pathlib import Path
from typing import Any
import logging
import os

# XDG defaults
DEFAULT_CONFIG_HOME = Path.home() / ".config"
DEFAULT_DATA_HOME = Path.home() / ".compendium"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_config_dir() -> Path:
    """Get the config directory (XDG_CONFIG_HOME/compendium)."""
    base = Path(os.environ.get("XDG_CONFIG_HOME", DEFAULT_CONFIG_HOME))
    return base / "compendium"


def get_compendium_home() -> Path:
    """Get the data directory (~/.compendium or COMPENDIUM_HOME)."""
    if env_home := os.environ.get("COMPENDIUM_HOME"):
        return Path(env_home)
    return DEFAULT_DATA_HOME


def get_config_path() -> Path:
    """Get the path to config.toml."""
    return get_config_dir() / "config.toml"


def get_storage_path(config: dict[str, Any] | None = None) -> Path:
    """
    Get the path to the local cache database.

    Uses [compendium] home from config when set, else COMPENDIUM_HOME.
    """
    home = (config or {}).get("compendium", {}).get("home")
    base = Path(home).expanduser() if home else get_compendium_home()
    return base / "compendium.db"


def load_config() -> dict[str, Any]:
    """
    Load configuration from config.toml.

    Returns default config if file doesn't exist. Sections missing
    from the file fall back to their defaults.
    """
    config_path = get_config_path()
    config = get_default_config()

    if not config_path.exists():
        return config

    # Lazy import tomli only when needed
    import tomli

    with open(config_path, "rb") as f:
        loaded = tomli.load(f)

    for section, values in loaded.items():
        if isinstance(values, dict) and isinstance(config.get(section), dict):
            config[section].update(values)
        else:
            config[section] = values

    return config


def get_default_config() -> dict[str, Any]:
    """Return default configuration."""
    return {
        "compendium": {
            "home": str(get_compendium_home()),
        },
        "supabase": {
            "url": None,
            "anon_key": None,
            "access_token": None,
            "table": "user_data",
        },
        "sync": {
            "timeout": 30.0,
        },
        "logging": {
            "level": "INFO",
        },
    }


def get_supabase_settings(config: dict[str, Any] | None = None) -> dict[str, Any]:
    """
    Resolve Supabase connection settings.

    Environment variables win over config.toml values.
    """
    config = config or load_config()
    supabase = config.get("supabase", {})
    sync = config.get("sync", {})

    return {
        "url": os.environ.get("SUPABASE_URL") or supabase.get("url"),
        "anon_key": os.environ.get("SUPABASE_ANON_KEY") or supabase.get("anon_key"),
        "access_token": (
            os.environ.get("COMPENDIUM_ACCESS_TOKEN")
            or supabase.get("access_token")
        ),
        "table": supabase.get("table", "user_data"),
        "timeout": float(sync.get("timeout", 30.0)),
    }


def setup_logging(config: dict[str, Any] | None = None) -> None:
    """Configure root logging from the [logging] section."""
    config = config or load_config()
    level_name = (
        os.environ.get("COMPENDIUM_LOG_LEVEL")
        or config.get("logging", {}).get("level", "INFO")
    )
    level = getattr(logging, str(level_name).upper(), logging.INFO)

    logging.basicConfig(format=LOG_FORMAT, level=level)
