"""
End-to-end tests against real git repositories on disk.

Skipped when git is missing or too old for --also-filter-submodules.
"""

import json
import os
import re
import shutil
import subprocess
from pathlib import Path

import pytest

from plugpin.host import PathHost
from plugpin.lockfile import LockStore
from plugpin.manager import PluginEngine


def git_version() -> tuple[int, int]:
    if shutil.which("git") is None:
        return (0, 0)
    out = subprocess.run(["git", "--version"], capture_output=True, text=True).stdout
    match = re.search(r"(\d+)\.(\d+)", out)
    return (int(match.group(1)), int(match.group(2))) if match else (0, 0)


pytestmark = pytest.mark.skipif(git_version() < (2, 36), reason="git >= 2.36 required")

GIT_ENV = {
    "GIT_AUTHOR_NAME": "Test",
    "GIT_AUTHOR_EMAIL": "test@example.com",
    "GIT_COMMITTER_NAME": "Test",
    "GIT_COMMITTER_EMAIL": "test@example.com",
    "GIT_CONFIG_NOSYSTEM": "1",
}


def git(cwd: Path, *args: str) -> str:
    env = {**os.environ, **GIT_ENV}
    result = subprocess.run(
        ["git", *args], cwd=cwd, env=env, capture_output=True, text=True, check=True
    )
    return result.stdout.strip()


def commit(repo: Path, message: str) -> str:
    (repo / "file.txt").write_text(message)
    git(repo, "add", "file.txt")
    git(repo, "commit", "-q", "-m", message)
    return git(repo, "rev-parse", "HEAD")


@pytest.fixture
def upstream(tmp_path):
    repo = tmp_path / "upstream" / "plugin-a"
    repo.mkdir(parents=True)
    git(repo, "init", "-q", "-b", "main")
    first = commit(repo, "first")
    git(repo, "tag", "v1.0")
    second = commit(repo, "second")
    return repo, first, second


@pytest.fixture
def real_engine(tmp_path):
    return PluginEngine(tmp_path / "pack", LockStore(tmp_path / "lock.json"), host=PathHost())


class TestRealGit:
    def test_install_and_lock(self, upstream, real_engine, tmp_path):
        repo, first, second = upstream

        real_engine.setup([str(repo)])

        assert (tmp_path / "pack" / "plugin-a" / "file.txt").read_text() == "second"
        lock = json.loads((tmp_path / "lock.json").read_text())
        assert lock == {"plugin-a": {"commit": second}}

    def test_tag_pin_and_status(self, upstream, real_engine):
        repo, first, second = upstream

        real_engine.setup([{"url": str(repo), "tag": "v1.0"}])
        view = real_engine.status()

        assert real_engine.git("plugin-a").current_commit() == first
        assert [s.line for s in view.loaded] == ["> plugin-a ;; tag v1.0"]

    def test_update_and_restore(self, upstream, real_engine):
        repo, first, second = upstream
        real_engine.setup([str(repo)])
        third = commit(repo, "third")

        updated = real_engine.update()
        assert updated.count == 1
        assert real_engine.git("plugin-a").current_commit() == third

        status = real_engine.status().loaded[0]
        assert status.comment == "MODIFIED (newer commit)"

        restored = real_engine.restore()
        assert restored.count == 1
        assert real_engine.git("plugin-a").current_commit() == second

    @pytest.mark.asyncio
    async def test_new_commits(self, upstream, real_engine):
        repo, first, second = upstream
        real_engine.setup([str(repo)])
        commit(repo, "third")

        results = await real_engine.check_new_commits()

        [line] = results["plugin-a"]
        assert line.endswith(")")
        assert " third (" in line
