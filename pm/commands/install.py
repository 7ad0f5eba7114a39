"""
pm install command (-S).

Clone missing plugins, run their hooks and load them in declaration order.
"""

from typing import Any

from pm.commands import exit_code, open_engine


def install_command(args: Any) -> int:
    """
    Execute install command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    engine, settings = open_engine(args)

    if args.verbose:
        print(f"Managed: {len(engine.list_plugins())} of {len(settings.plugins)} plugins")
        print(f"Lockfile: {settings.lockfile}")

    return exit_code(engine)
