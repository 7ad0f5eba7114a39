"""
pm commands.

Every command loads the config, builds the engine and runs a convergence
pass first: the plugin registry only exists after setup.
"""

import logging
from typing import Any

from plugpin.config import ConfigError, Settings, load_settings
from plugpin.manager import PluginEngine
from plugpin.notify import Notifier, configure_logging


def open_engine(args: Any, setup: bool = True) -> tuple[PluginEngine, Settings]:
    """
    Load settings and create an engine.

    Args:
        args: Parsed command-line arguments
        setup: Run a convergence pass over the configured plugins

    Returns:
        Tuple of (engine, settings)

    Raises:
        PMError: If the configuration is invalid
    """
    from pm.cli import PMError

    try:
        settings = load_settings(args.config)
    except ConfigError as e:
        raise PMError(str(e)) from e

    configure_logging("DEBUG" if args.verbose else settings.log_level)

    engine = PluginEngine.from_settings(settings, notifier=Notifier())
    if setup:
        engine.setup(settings.plugins)

    return engine, settings


def exit_code(engine: PluginEngine) -> int:
    """Non-zero if any error was reported during the run."""
    return 1 if engine.notifier.messages(logging.ERROR) else 0
