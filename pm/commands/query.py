"""
pm query command (-Q, -Qu).

Prints the status view; with -u also fetches and lists new upstream commits.
"""

import asyncio
from typing import Any

from plugpin.status import render_status
from pm.commands import exit_code, open_engine


def print_commits(name: str, commits: list[str]) -> None:
    print(f"> {name}")
    for line in commits:
        print(f"   {line}")


def query_command(args: Any) -> int:
    """
    Execute query command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    engine, _ = open_engine(args)

    for line in render_status(engine.status()):
        print(line)

    if args.updates:
        print()
        print("New Commits")
        print()
        asyncio.run(engine.check_new_commits(*args.targets, callback=print_commits))

    return exit_code(engine)
