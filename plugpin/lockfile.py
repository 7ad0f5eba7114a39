"""
Lock Store.

This module persists the name -> commit mapping of managed plugins.

Key features:
- Tolerant loading (missing or malformed files yield an empty lock)
- Deterministic, sorted, line-per-entry serialization for minimal diffs
- Wholesale rewrites (no partial updates)
"""

import json
import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


class LockError(Exception):
    """Raised when the lockfile cannot be written."""

    pass


@dataclass(frozen=True)
class LockEntry:
    """
    Locked state of one plugin.

    Attributes:
        commit: Full commit hash
    """

    commit: str


def _quote(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


def dumps(entries: Mapping[str, LockEntry]) -> str:
    """
    Serialize lock entries.

    Keys are sorted and each entry occupies its own line so the file diffs
    cleanly under version control.

    Args:
        entries: Plugin name -> LockEntry

    Returns:
        Lockfile text
    """
    lines = [
        f"  {_quote(name)}: {{ \"commit\": {_quote(entries[name].commit)} }}"
        for name in sorted(entries)
    ]
    return "{\n" + ",\n".join(lines) + "\n}"


def loads(text: str) -> dict[str, LockEntry]:
    """
    Parse lockfile text, dropping anything that is not a valid entry.

    Args:
        text: Lockfile content

    Returns:
        Plugin name -> LockEntry (empty on malformed content)
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        logger.debug("Ignoring malformed lockfile: %s", e)
        return {}

    if not isinstance(data, dict):
        return {}

    entries = {}
    for name, value in data.items():
        if not isinstance(value, dict):
            continue
        # "hash" is what older lockfiles used
        commit = value.get("commit", value.get("hash"))
        if isinstance(commit, str) and commit:
            entries[name] = LockEntry(commit)
    return entries


class LockStore:
    """
    In-memory lock state backed by a JSON lockfile.

    The engine owns exactly one store; ``load`` replaces the in-memory state
    with the file content and ``save`` rewrites the file from it.
    """

    def __init__(self, path: Path):
        self.path = path
        self._entries: dict[str, LockEntry] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> dict[str, LockEntry]:
        return dict(self._entries)

    def get(self, name: str) -> LockEntry | None:
        return self._entries.get(name)

    def set(self, name: str, commit: str) -> None:
        self._entries[name] = LockEntry(commit)

    def remove(self, name: str) -> None:
        self._entries.pop(name, None)

    def load(self) -> dict[str, LockEntry]:
        """
        Load the lockfile into memory.

        Returns:
            Loaded entries; empty if the file is missing or malformed
        """
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            text = None
        except (OSError, UnicodeDecodeError) as e:
            logger.debug("Cannot read lockfile %s: %s", self.path, e)
            text = None

        self._entries = loads(text) if text is not None else {}
        return self.entries

    def save(self, entries: Mapping[str, LockEntry] | None = None) -> None:
        """
        Write the lockfile.

        Args:
            entries: Entries to persist; defaults to the in-memory state

        Raises:
            LockError: If the file cannot be written
        """
        if entries is not None:
            self._entries = dict(entries)

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(dumps(self._entries), encoding="utf-8", newline="\n")
        except OSError as e:
            raise LockError(f"Failed to write lockfile {self.path}: {e}") from e
