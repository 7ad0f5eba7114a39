"""
Host Load Mechanism.

The engine never loads plugins itself; it hands them to a Host. PathHost is
the default host: an ordered runtime path, optionally mirrored into sys.path
so Python-based plugins become importable.
"""

import sys
from pathlib import Path
from typing import Protocol


class Host(Protocol):
    """Load mechanism of the host environment."""

    def load_package(self, name: str, path: Path) -> None:
        """Add an installed plugin to the host."""
        ...

    def prepend_path(self, path: Path) -> None:
        """Put a local plugin directory in front of the search path."""
        ...

    def runtime_paths(self) -> list[str]:
        """Directories currently on the host's search path."""
        ...


class PathHost:
    """
    Host that keeps an ordered list of runtime directories.

    Args:
        use_sys_path: Mirror additions into ``sys.path``
    """

    def __init__(self, use_sys_path: bool = False):
        self.use_sys_path = use_sys_path
        self._paths: list[str] = []

    def load_package(self, name: str, path: Path) -> None:
        entry = str(path)
        if entry in self._paths:
            return
        self._paths.append(entry)
        if self.use_sys_path and entry not in sys.path:
            sys.path.append(entry)

    def prepend_path(self, path: Path) -> None:
        entry = str(path)
        if entry in self._paths:
            self._paths.remove(entry)
        self._paths.insert(0, entry)
        if self.use_sys_path:
            if entry in sys.path:
                sys.path.remove(entry)
            sys.path.insert(0, entry)

    def runtime_paths(self) -> list[str]:
        return list(self._paths)
