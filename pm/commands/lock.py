"""
pm lockfile commands (--restore, --lock, --clean-lock).
"""

from typing import Any

from pm.commands import exit_code, open_engine


def lock_command(args: Any) -> int:
    """
    Execute one of the lockfile commands.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    engine, _ = open_engine(args)

    if args.clean_lock:
        removed = engine.clean_lock()
        print(f"Removed {removed} entries from the lockfile")
    elif args.restore:
        print(engine.restore(*args.targets).message)
    else:
        print(engine.lock(*args.targets).message)

    return exit_code(engine)
