"""
pm upgrade command (-U).
"""

from typing import Any

from pm.commands import exit_code, open_engine


def upgrade_command(args: Any) -> int:
    """
    Update the given plugins, or all of them.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    engine, _ = open_engine(args)
    result = engine.update(*args.targets)
    print(result.message)
    return exit_code(engine)
