"""
Config file I/O.

plugpin reads its config with tomllib and writes generated files with
tomlkit, so the default config keeps its explanatory comments.
"""

import tomllib
from pathlib import Path
from typing import Any

import tomlkit


class TOMLError(Exception):
    """Raised when a config file cannot be read, parsed or written."""

    pass


def read_toml(file_path: Path) -> dict[str, Any]:
    """
    Parse the TOML document at ``file_path``.

    Raises:
        TOMLError: On a missing, unreadable or malformed file
    """
    try:
        raw = file_path.read_bytes()
    except FileNotFoundError as e:
        raise TOMLError(f"TOML file not found: {file_path}") from e
    except OSError as e:
        raise TOMLError(f"Cannot open {file_path}: {e.strerror or e}") from e

    try:
        return tomllib.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
        raise TOMLError(f"Failed to parse TOML file {file_path}: {e}") from e


def write_toml(file_path: Path, document: Any) -> None:
    """
    Render ``document`` with tomlkit and write it to ``file_path``.

    Parent directories are created as needed.

    Raises:
        TOMLError: If the document cannot be rendered or the file written
    """
    try:
        text = tomlkit.dumps(document)
    except (TypeError, ValueError) as e:
        raise TOMLError(f"Cannot render config for {file_path}: {e}") from e

    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(text, encoding="utf-8")
    except OSError as e:
        raise TOMLError(f"Cannot write {file_path}: {e.strerror or e}") from e


def generate_default_config(package_root: Path, lockfile: Path) -> tomlkit.TOMLDocument:
    """
    Build the commented config written by ``plugpin --init``.

    The plugin list is an empty array followed by a ``[settings]`` table
    holding the given locations.
    """
    doc = tomlkit.document()
    doc.add(tomlkit.comment("plugpin configuration"))
    doc.add(tomlkit.nl())

    # Top-level keys must precede the [settings] table
    doc.add(tomlkit.comment("Plugins, in load order. Either an URL or a table:"))
    doc.add(
        tomlkit.comment(
            '{ url = "owner/repo", branch = "main", tag = "v1.0", commit = "abc1234",'
        )
    )
    doc.add(
        tomlkit.comment(
            '  dir = "~/src/plugin", load = "cmd", init = "cmd", build = "cmd", config = "cmd" }'
        )
    )
    plugins = tomlkit.array()
    plugins.multiline(True)
    doc.add("plugins", plugins)
    doc.add(tomlkit.nl())

    settings = tomlkit.table()
    settings.add(tomlkit.comment("Directory every plugin is cloned into"))
    settings.add("package_root", str(package_root))
    settings.add(tomlkit.comment("Lockfile recording the commit of every plugin"))
    settings.add("lockfile", str(lockfile))
    settings.add(tomlkit.comment("One of DEBUG, INFO, WARNING, ERROR"))
    settings.add("log_level", "INFO")
    doc.add("settings", settings)

    return doc
