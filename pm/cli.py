"""
pm CLI - plugpin Package Manager.

Pacman-style interface for managing editor plugins.

Usage:
    plugpin -S                    Install missing plugins and load all
    plugpin -U [plugin...]        Update plugin(s)
    plugpin -R <plugin>           Delete plugin
    plugpin -Q                    Show plugin status
    plugpin -Qu [plugin...]       Show status and new upstream commits
    plugpin --restore [plugin...] Restore plugin(s) to the lockfile
    plugpin --lock [plugin...]    Lock plugin(s) at their current commit
    plugpin --clean-lock          Remove outdated lockfile entries
    plugpin --init                Write a default config file
"""

import argparse
import importlib
import sys
from pathlib import Path

# operation flag -> (command module, command function)
OPERATIONS = {
    "init": ("pm.commands.init", "init_command"),
    "sync": ("pm.commands.install", "install_command"),
    "remove": ("pm.commands.remove", "remove_command"),
    "upgrade": ("pm.commands.upgrade", "upgrade_command"),
    "query": ("pm.commands.query", "query_command"),
    "restore": ("pm.commands.lock", "lock_command"),
    "lock": ("pm.commands.lock", "lock_command"),
    "clean_lock": ("pm.commands.lock", "lock_command"),
}


class PMError(Exception):
    """Raised by commands for errors reported to the user."""

    pass


def create_parser() -> argparse.ArgumentParser:
    """Build the argument parser; exactly one operation flag may be given."""
    parser = argparse.ArgumentParser(
        prog="plugpin",
        description="Declarative editor plugin manager",
        add_help=False,
    )

    ops = parser.add_mutually_exclusive_group()
    ops.add_argument("-S", "--sync", action="store_true", help="Install and load plugins")
    ops.add_argument("-R", "--remove", action="store_true", help="Delete a plugin")
    ops.add_argument("-U", "--upgrade", action="store_true", help="Update plugins")
    ops.add_argument("-Q", "--query", action="store_true", help="Show plugin status")
    ops.add_argument("--restore", action="store_true", help="Restore plugins to the lockfile")
    ops.add_argument("--lock", action="store_true", help="Lock plugins at their current commit")
    ops.add_argument("--clean-lock", action="store_true", help="Drop outdated lockfile entries")
    ops.add_argument("--init", action="store_true", help="Write a default config file")
    ops.add_argument("-h", "--help", action="store_true", help="Show help")

    # -Qu
    parser.add_argument(
        "-u", "--updates", action="store_true", help="List new upstream commits"
    )

    parser.add_argument("-c", "--config", type=Path, help="Config file")
    parser.add_argument(
        "--noconfirm", action="store_true", help="Do not ask before deleting"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug output")

    parser.add_argument("targets", nargs="*", help="Plugin names")

    return parser


def print_help() -> None:
    print(__doc__.strip())
    print(
        "\nOptions:\n"
        "    -c, --config <file>           Config file\n"
        "    --noconfirm                   Do not ask before deleting\n"
        "    -v, --verbose                 Debug output\n"
        "    -h, --help                    Show this help"
    )


def selected_operation(args: argparse.Namespace) -> str | None:
    for flag in OPERATIONS:
        if getattr(args, flag):
            return flag
    return None


def main(argv: list[str] | None = None) -> int:
    """Entry point of the ``plugpin`` console script."""
    args = create_parser().parse_args(argv)
    operation = selected_operation(args)

    if args.help or operation is None:
        print_help()
        return 0

    module_name, func_name = OPERATIONS[operation]

    try:
        # Commands are imported on demand so --help stays cheap
        command = getattr(importlib.import_module(module_name), func_name)
        return command(args)
    except PMError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback

            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
