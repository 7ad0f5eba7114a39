"""
Git Operations for Plugin Management.

This module provides the git backend used to converge plugin repositories.

Key features:
- Partial clones (blob-filtered, with submodules)
- Checkout of resolved refs, recursing into submodules
- HEAD inspection (commit, exact tag, branch membership, ancestry)
- Asynchronous fetch + listing of new commits
"""

import asyncio
import logging
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

NO_NEW_COMMITS = ";; no new commits"
LOG_FORMAT = "--pretty=format:%h %s (%cs)"


class GitError(Exception):
    """Base exception for git-related errors."""

    pass


class CloneError(GitError):
    """Raised when cloning a plugin repository fails."""

    pass


@dataclass
class GitResult:
    """
    Outcome of a single git invocation.

    Attributes:
        returncode: Process exit code
        stdout: Captured standard output
        stderr: Captured standard error
    """

    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def error(self) -> str:
        return (self.stderr or self.stdout).strip()


def spawn_error(error: OSError, cwd: Path) -> GitError:
    """Describe why git could not be started in ``cwd``."""
    if isinstance(error, FileNotFoundError) and cwd.is_dir():
        return GitError("git command not found. Please install git.")
    return GitError(f"Cannot run git in {cwd}: {error.strerror or error}")


def run_git(args: list[str], cwd: Path) -> GitResult:
    """
    Run a git command and capture its output.

    Args:
        args: Arguments following ``git``
        cwd: Working directory

    Returns:
        GitResult of the invocation

    Raises:
        GitError: If git cannot be started in ``cwd``
    """
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as e:
        raise spawn_error(e, cwd) from e

    logger.debug("git %s (%s) -> %d", " ".join(args), cwd, result.returncode)
    return GitResult(result.returncode, result.stdout, result.stderr)


async def run_git_async(args: list[str], cwd: Path) -> GitResult:
    """
    Run a git command without blocking the event loop.

    Args:
        args: Arguments following ``git``
        cwd: Working directory

    Returns:
        GitResult of the invocation

    Raises:
        GitError: If git cannot be started in ``cwd``
    """
    try:
        process = await asyncio.create_subprocess_exec(
            "git",
            *args,
            cwd=cwd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise spawn_error(e, cwd) from e

    stdout, stderr = await process.communicate()
    return GitResult(
        process.returncode,
        stdout.decode("utf-8", errors="replace"),
        stderr.decode("utf-8", errors="replace"),
    )


class GitRepo:
    """
    Git backend bound to one plugin working directory.

    All methods spawn exactly one git process (``fetch_new_commits`` two) and
    classify it by exit code.
    """

    def __init__(self, path: Path):
        self.path = path

    def __repr__(self) -> str:
        return f"GitRepo({self.path})"

    def exists(self) -> bool:
        return self.path.is_dir()

    def clone(self, url: str) -> None:
        """
        Clone ``url`` into the bound directory.

        Args:
            url: Clone URL

        Raises:
            CloneError: If git exits non-zero; carries git's stderr
        """
        # Ensure package root exists
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CloneError(f"Cannot create {self.path.parent}: {e.strerror or e}") from e
        existed = self.path.exists()

        result = run_git(
            [
                "clone",
                "--filter=blob:none",
                "--recurse-submodules",
                "--also-filter-submodules",
                url,
                str(self.path),
            ],
            cwd=self.path.parent,
        )

        if not result.ok:
            # Never remove something that was there before the clone
            if not existed and self.path.is_dir():
                shutil.rmtree(self.path, ignore_errors=True)
            raise CloneError(result.error or f"git clone exited with {result.returncode}")

    def checkout(self, ref: str) -> GitResult:
        """Check out ``ref`` (recursing into submodules); never raises on failure."""
        return run_git(["checkout", "--recurse-submodules", ref], cwd=self.path)

    def fetch(self) -> GitResult:
        return run_git(["fetch", "--recurse-submodules=yes"], cwd=self.path)

    def current_commit(self) -> str:
        """
        Resolve the commit checked out at HEAD.

        Returns:
            Full 40 character commit hash

        Raises:
            GitError: If HEAD cannot be resolved
        """
        result = run_git(["rev-parse", "HEAD"], cwd=self.path)
        if not result.ok:
            raise GitError(f"Failed to resolve HEAD in {self.path}: {result.error}")
        return result.stdout.strip()

    def current_tag(self) -> str | None:
        result = run_git(["describe", "--tags", "--exact-match"], cwd=self.path)
        if not result.ok:
            return None
        return result.stdout.strip() or None

    def belongs_to_branch(self, commit: str, branch: str) -> bool:
        """
        Check whether ``commit`` is reachable from a remote-tracking ``branch``.

        Args:
            commit: Commit to look up
            branch: Branch name without remote prefix

        Returns:
            True if a ref ending in ``/<branch>`` contains the commit
        """
        result = run_git(["branch", "-a", "--contains", commit], cwd=self.path)
        if not result.ok:
            return False

        suffix = f"/{branch}"
        for line in result.stdout.splitlines():
            ref = line.lstrip("* ").strip()
            if "->" in ref:
                continue
            if ref.startswith("remotes/") and ref.endswith(suffix):
                return True
        return False

    def is_ancestor(self, commit: str, maybe_ancestor: str) -> bool:
        """True if ``maybe_ancestor`` is an ancestor of ``commit``."""
        result = run_git(
            ["merge-base", "--is-ancestor", maybe_ancestor, commit], cwd=self.path
        )
        return result.ok

    async def fetch_new_commits(self, ref: str) -> list[str]:
        """
        Fetch remotely and list commits reachable from ``ref`` but not HEAD.

        Args:
            ref: Ref to compare HEAD against

        Returns:
            One ``<short-hash> <subject> (<date>)`` line per commit, or a
            single sentinel line if there is nothing new
        """
        fetched = await run_git_async(["fetch", "--recurse-submodules=yes"], self.path)
        if not fetched.ok:
            logger.debug("fetch failed in %s: %s", self.path, fetched.error)

        out = await run_git_async(["log", LOG_FORMAT, f"HEAD..{ref}"], self.path)
        if not out.ok:
            return [f";; {out.error or 'git log failed'}"]

        commits = [line for line in out.stdout.split("\n") if line]
        return commits or [NO_NEW_COMMITS]
