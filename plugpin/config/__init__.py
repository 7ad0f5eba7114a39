"""
plugpin Configuration - TOML-based settings and plugin list.

This module provides:
- Default locations following the XDG base directory layout
- Loading of settings and the ordered plugin list from TOML
- Environment overrides (PLUGPIN_CONFIG, PLUGPIN_PACKAGE_ROOT, PLUGPIN_LOCKFILE)
- Generation of a commented default config file

Example config:
    plugins = [
        "owner/plugin-a",
        { url = "owner/plugin-b", branch = "stable", build = "make" },
    ]

    [settings]
    package_root = "~/.local/share/plugpin/site/pack/plugpin/opt"
    lockfile = "~/.config/plugpin/plugpin-lock.json"
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from plugpin.config.toml_handler import (
    TOMLError,
    generate_default_config,
    read_toml,
    write_toml,
)

SETTINGS_KEYS = frozenset({"package_root", "lockfile", "log_level"})
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class ConfigError(Exception):
    """Base exception for config errors."""

    pass


def _xdg_home(var: str, fallback: str) -> Path:
    value = os.environ.get(var)
    return Path(value) if value else Path.home() / fallback


def default_config_file() -> Path:
    value = os.environ.get("PLUGPIN_CONFIG")
    if value:
        return Path(value).expanduser()
    return _xdg_home("XDG_CONFIG_HOME", ".config") / "plugpin" / "plugpin.toml"


def default_package_root() -> Path:
    return (
        _xdg_home("XDG_DATA_HOME", ".local/share")
        / "plugpin" / "site" / "pack" / "plugpin" / "opt"
    )


def default_lockfile() -> Path:
    return _xdg_home("XDG_CONFIG_HOME", ".config") / "plugpin" / "plugpin-lock.json"


@dataclass
class Settings:
    """
    Effective configuration.

    Attributes:
        package_root: Directory holding one clone per plugin
        lockfile: Path of the lockfile
        log_level: Console log level
        plugins: Ordered raw plugin specs (URL strings or mappings)
        config_file: File the settings were read from, if any
    """

    package_root: Path = field(default_factory=default_package_root)
    lockfile: Path = field(default_factory=default_lockfile)
    log_level: str = "INFO"
    plugins: list[Any] = field(default_factory=list)
    config_file: Path | None = None


def _path_setting(table: dict[str, Any], key: str, default: Path) -> Path:
    value = table.get(key)
    if value is None:
        return default
    if not isinstance(value, str):
        raise ConfigError(f"settings.{key} must be a string")
    return Path(value).expanduser()


def load_settings(config_file: Path | None = None) -> Settings:
    """
    Load settings and the plugin list.

    A missing config file yields default settings with no plugins.

    Args:
        config_file: Config file path (defaults to ``default_config_file()``)

    Returns:
        Settings

    Raises:
        ConfigError: If the file is unreadable or has invalid values
    """
    path = config_file or default_config_file()
    data: dict[str, Any] = {}

    if path.exists():
        try:
            data = read_toml(path)
        except TOMLError as e:
            raise ConfigError(str(e)) from e

    table = data.get("settings", {})
    if not isinstance(table, dict):
        raise ConfigError("[settings] must be a table")

    unknown = set(table) - SETTINGS_KEYS
    if unknown:
        raise ConfigError(f"Unknown settings: {', '.join(sorted(unknown))}")

    plugins = data.get("plugins", [])
    if not isinstance(plugins, list):
        raise ConfigError("plugins must be an array")

    log_level = str(table.get("log_level", "INFO")).upper()
    if log_level not in LOG_LEVELS:
        raise ConfigError(f"settings.log_level must be one of {', '.join(LOG_LEVELS)}")

    settings = Settings(
        package_root=_path_setting(table, "package_root", default_package_root()),
        lockfile=_path_setting(table, "lockfile", default_lockfile()),
        log_level=log_level,
        plugins=list(plugins),
        config_file=path if path.exists() else None,
    )

    # Environment wins over the file
    if os.environ.get("PLUGPIN_PACKAGE_ROOT"):
        settings.package_root = Path(os.environ["PLUGPIN_PACKAGE_ROOT"]).expanduser()
    if os.environ.get("PLUGPIN_LOCKFILE"):
        settings.lockfile = Path(os.environ["PLUGPIN_LOCKFILE"]).expanduser()

    return settings


def write_default_config(config_file: Path | None = None) -> Path:
    """
    Write a commented default config file.

    Args:
        config_file: Target path (defaults to ``default_config_file()``)

    Returns:
        Path written to

    Raises:
        ConfigError: If the file already exists or cannot be written
    """
    path = config_file or default_config_file()
    if path.exists():
        raise ConfigError(f"Config file already exists: {path}")

    try:
        write_toml(path, generate_default_config(default_package_root(), default_lockfile()))
    except TOMLError as e:
        raise ConfigError(str(e)) from e

    return path


__all__ = [
    "ConfigError",
    "Settings",
    "default_config_file",
    "default_lockfile",
    "default_package_root",
    "load_settings",
    "write_default_config",
]
