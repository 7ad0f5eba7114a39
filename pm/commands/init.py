"""
pm init command (--init).
"""

from typing import Any

from plugpin.config import ConfigError, write_default_config


def init_command(args: Any) -> int:
    """
    Write a commented default config file.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    from pm.cli import PMError

    try:
        path = write_default_config(args.config)
    except ConfigError as e:
        raise PMError(str(e)) from e

    print(f"Wrote {path}")
    return 0
