"""
pm remove command (-R).

Deletes a plugin directory after confirmation. The lockfile is not touched;
use --clean-lock for that.
"""

from typing import Any

from pm.commands import exit_code, open_engine


def confirm(name: str) -> bool:
    answer = input(f'Do you want to delete "{name}"? [y/N] ')
    return answer.strip().lower() in ("y", "yes")


def remove_command(args: Any) -> int:
    """
    Execute remove command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    from pm.cli import PMError

    if len(args.targets) != 1:
        raise PMError("Exactly one plugin must be given: plugpin -R <plugin>")

    name = args.targets[0]
    engine, _ = open_engine(args)

    if not args.noconfirm and not confirm(name):
        print("Aborted")
        return 0

    result = engine.delete(name)
    print(result.message)

    if result.count == 0:
        return 1
    return exit_code(engine)
