"""
Plugin Lifecycle Hooks.

This module provides lifecycle hook execution for plugins.

Key features:
- Hook types: load, init, build, config
- Temporary working-directory switch (restored on every path)
- Shell-command hooks for file-based configuration
- Environment variable injection for command hooks
"""

import contextlib
import os
import subprocess
from enum import Enum
from pathlib import Path
from typing import Any

from plugpin.spec import HookFn, PluginSpec


class HookError(Exception):
    """Raised when a hook fails."""

    pass


class HookType(Enum):
    """Hook type enumeration."""

    LOAD = "load"
    INIT = "init"
    BUILD = "build"
    CONFIG = "config"


def get_hook(spec: PluginSpec, hook_type: HookType) -> HookFn | None:
    return getattr(spec.hooks, hook_type.value)


def has_hook(spec: PluginSpec, hook_type: HookType) -> bool:
    """
    Check if plugin has a specific hook.

    Args:
        spec: Plugin specification
        hook_type: Type of hook to check

    Returns:
        True if hook exists
    """
    return get_hook(spec, hook_type) is not None


def run_hook(
    spec: PluginSpec,
    hook_type: HookType,
    name: str,
    cwd: Path | None = None,
) -> Any:
    """
    Execute a lifecycle hook for a plugin.

    Args:
        spec: Plugin specification
        hook_type: Type of hook to execute
        name: Plugin name passed to the hook
        cwd: Working directory for the duration of the hook

    Returns:
        Hook return value, or None if the plugin has no such hook

    Raises:
        HookError: If the hook raises
    """
    hook = get_hook(spec, hook_type)

    if hook is None:
        return None

    chdir = contextlib.chdir(cwd) if cwd is not None else contextlib.nullcontext()

    try:
        with chdir:
            return hook(name, spec)
    except HookError:
        raise
    except Exception as e:
        raise HookError(f"{e.__class__.__name__}: {e}") from e


def command_hook(command: str, hook_type: HookType) -> HookFn:
    """
    Wrap a shell command as a hook callable.

    The command runs in the current working directory (which is the plugin
    directory for build hooks) with ``PLUGPIN_PLUGIN_NAME``,
    ``PLUGPIN_PLUGIN_URL`` and ``PLUGPIN_HOOK_TYPE`` set.

    Args:
        command: Shell command line
        hook_type: Hook the command is bound to

    Returns:
        Callable; for load hooks it returns whether the command succeeded
    """

    def hook(name: str, spec: PluginSpec) -> bool | None:
        env = os.environ.copy()
        env["PLUGPIN_PLUGIN_NAME"] = name
        env["PLUGPIN_PLUGIN_URL"] = spec.url
        env["PLUGPIN_HOOK_TYPE"] = hook_type.value

        result = subprocess.run(
            command,
            shell=True,
            env=env,
            capture_output=True,
            text=True,
            check=False,
        )

        if hook_type is HookType.LOAD:
            return result.returncode == 0

        if result.returncode != 0:
            raise HookError(
                f"Hook {hook_type.value} failed with exit code {result.returncode}:\n"
                f"stdout: {result.stdout}\n"
                f"stderr: {result.stderr}"
            )
        return None

    hook.command = command  # type: ignore[attr-defined]
    return hook
