"""
Shared fixtures: an in-memory git backend for reconciler tests.

FakeGitWorld models one remote per plugin name (refs, ancestry, tags, branch
membership) and the HEAD of every working directory it has "cloned".
"""

import asyncio
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from plugpin.git_ops import NO_NEW_COMMITS, CloneError, GitError, GitResult
from plugpin.host import PathHost
from plugpin.lockfile import LockStore
from plugpin.manager import PluginEngine
from plugpin.notify import Notifier

A1 = "a1" * 20
A2 = "a2" * 20
A3 = "a3" * 20
B1 = "b1" * 20
B2 = "b2" * 20
C1 = "c1" * 20


@dataclass
class FakeRemote:
    refs: dict[str, str]
    ancestors: dict[str, set[str]] = field(default_factory=dict)
    tags: dict[str, str] = field(default_factory=dict)
    branches: dict[str, set[str]] = field(default_factory=dict)
    new_commits: list[str] = field(default_factory=list)
    commits: set[str] = field(default_factory=set)
    fetch_error: Exception | None = None
    fetch_delay: float = 0

    def known_commits(self) -> set[str]:
        known = set(self.refs.values()) | set(self.ancestors) | self.commits
        for parents in self.ancestors.values():
            known |= parents
        return known


class FakeGitWorld:
    def __init__(self):
        self.remotes: dict[str, FakeRemote] = {}
        self.heads: dict[Path, str] = {}
        self.clones: list[str] = []
        self.checkouts: list[tuple[str, str]] = []
        self.fetches: list[str] = []
        self.failing: set[str] = set()

    def add_remote(self, name: str, **kwargs) -> FakeRemote:
        remote = FakeRemote(**kwargs)
        self.remotes[name] = remote
        return remote

    def install(self, root: Path, name: str, head: str) -> Path:
        path = root / name
        path.mkdir(parents=True)
        self.heads[path] = head
        return path

    def head(self, root: Path, name: str) -> str:
        return self.heads[root / name]

    def factory(self, path: Path) -> "FakeRepo":
        return FakeRepo(path, self)


class FakeRepo:
    def __init__(self, path: Path, world: FakeGitWorld):
        self.path = path
        self.world = world

    @property
    def remote(self) -> FakeRemote:
        return self.world.remotes[self.path.name]

    def exists(self) -> bool:
        return self.path.is_dir()

    def clone(self, url: str) -> None:
        name = self.path.name
        self.world.clones.append(name)
        if name in self.world.failing or name not in self.world.remotes:
            raise CloneError(f"fatal: repository '{url}' not found")
        self.path.mkdir(parents=True)
        self.world.heads[self.path] = self.remote.refs["origin/HEAD"]

    def checkout(self, ref: str) -> GitResult:
        self.world.checkouts.append((self.path.name, ref))
        remote = self.remote
        if ref in remote.refs:
            target = remote.refs[ref]
        elif ref in remote.known_commits():
            target = ref
        else:
            return GitResult(1, "", f"error: pathspec '{ref}' did not match")
        self.world.heads[self.path] = target
        return GitResult(0)

    def fetch(self) -> GitResult:
        self.world.fetches.append(self.path.name)
        return GitResult(0)

    def current_commit(self) -> str:
        if self.path not in self.world.heads:
            raise GitError(f"Failed to resolve HEAD in {self.path}")
        return self.world.heads[self.path]

    def current_tag(self) -> str | None:
        return self.remote.tags.get(self.current_commit())

    def belongs_to_branch(self, commit: str, branch: str) -> bool:
        return commit in self.remote.branches.get(branch, set())

    def is_ancestor(self, commit: str, maybe_ancestor: str) -> bool:
        return maybe_ancestor in self.remote.ancestors.get(commit, set())

    async def fetch_new_commits(self, ref: str) -> list[str]:
        await asyncio.sleep(self.remote.fetch_delay)
        if self.remote.fetch_error is not None:
            raise self.remote.fetch_error
        return list(self.remote.new_commits) or [NO_NEW_COMMITS]


class RecordingHost(PathHost):
    def __init__(self, calls: list[str] | None = None):
        super().__init__()
        self.calls = calls if calls is not None else []

    def load_package(self, name: str, path: Path) -> None:
        self.calls.append(f"load_package:{name}")
        super().load_package(name, path)

    def prepend_path(self, path: Path) -> None:
        self.calls.append(f"prepend_path:{path.name}")
        super().prepend_path(path)


@pytest.fixture
def world() -> FakeGitWorld:
    return FakeGitWorld()


@pytest.fixture
def package_root(tmp_path: Path) -> Path:
    return tmp_path / "pack"


@pytest.fixture
def lockfile(tmp_path: Path) -> Path:
    return tmp_path / "plugpin-lock.json"


@pytest.fixture
def host() -> RecordingHost:
    return RecordingHost()


@pytest.fixture
def engine(package_root, lockfile, host, world) -> PluginEngine:
    return PluginEngine(
        package_root,
        LockStore(lockfile),
        host=host,
        notifier=Notifier(),
        git_factory=world.factory,
    )
