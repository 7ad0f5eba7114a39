"""
Divergence Reporter.

This module compares live repository state against the declared spec and the
lock, and partitions plugins for presentation.

Key features:
- Pin divergence (commit / tag / branch) per plugin
- Lock divergence with "newer commit" classification
- Loaded / not loaded / unmanaged / outdated lock entry partitions
- Plain-text rendering for terminal clients
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from plugpin.git_ops import GitError, GitRepo
from plugpin.spec import Pinning, PluginSpec

if TYPE_CHECKING:
    from plugpin.manager import PluginEngine

MODIFIED = "MODIFIED"


@dataclass
class PluginStatus:
    """
    Presentation-ready state of one registered plugin.

    Attributes:
        name: Plugin name
        local_dir: Directory of a local plugin
        commit: Commit at HEAD (None for local plugins or on error)
        pin: Human-readable pin ("branch stable", "tag v1.0", ...)
        pin_modified: HEAD does not match the pin
        lock_modified: HEAD differs from the locked commit
        newer: The locked commit is an ancestor of HEAD
        error: Why the repository could not be inspected
    """

    name: str
    local_dir: Path | None = None
    commit: str | None = None
    pin: str | None = None
    pin_modified: bool = False
    lock_modified: bool = False
    newer: bool = False
    error: str | None = None

    @property
    def comment(self) -> str:
        parts = []
        if self.local_dir is not None:
            parts.append(f"dir {self.local_dir}")
        if self.pin:
            parts.append(f"{self.pin} {MODIFIED}" if self.pin_modified else self.pin)
        if self.lock_modified:
            parts.append(f"{MODIFIED} (newer commit)" if self.newer else MODIFIED)
        if self.error:
            parts.append(f"ERROR {self.error}")
        return " ;; ".join(parts)

    @property
    def line(self) -> str:
        comment = self.comment
        return f"> {self.name} ;; {comment}" if comment else f"> {self.name}"


@dataclass
class StatusView:
    """Partitions shown by status clients; every list is sorted."""

    loaded: list[PluginStatus] = field(default_factory=list)
    not_loaded: list[PluginStatus] = field(default_factory=list)
    unmanaged: list[str] = field(default_factory=list)
    outdated_lock_entries: list[str] = field(default_factory=list)


def pin_label(spec: PluginSpec) -> str | None:
    pinning = spec.pinning
    if pinning is Pinning.COMMIT:
        return f"commit {spec.commit}"
    if pinning is Pinning.TAG:
        return f"tag {spec.tag}"
    if pinning is Pinning.BRANCH:
        return f"branch {spec.branch}"
    return None


def pin_diverged(repo: GitRepo, spec: PluginSpec, commit: str) -> bool:
    """
    Check whether HEAD no longer matches the spec's pin.

    Args:
        repo: Git backend of the plugin
        spec: Plugin specification
        commit: Commit at HEAD

    Returns:
        True if the pin is not satisfied
    """
    pinning = spec.pinning

    if pinning is Pinning.COMMIT:
        # Abbreviated pins match by prefix
        return not commit.lower().startswith(spec.commit.lower())
    if pinning is Pinning.TAG:
        # Without an exact tag at HEAD this counts as diverged
        return repo.current_tag() != spec.tag
    if pinning is Pinning.BRANCH:
        return not repo.belongs_to_branch(commit, spec.branch)
    return False


def plugin_status(engine: "PluginEngine", name: str, spec: PluginSpec) -> PluginStatus:
    """
    Compute the pin and lock divergence of one plugin.

    Args:
        engine: Engine owning registry and lock store
        name: Plugin name
        spec: Registered spec of the plugin

    Returns:
        PluginStatus
    """
    if spec.is_local:
        return PluginStatus(name, local_dir=spec.dir)

    status = PluginStatus(name, pin=pin_label(spec))
    repo = engine.git(name)

    try:
        commit = repo.current_commit()
    except GitError as e:
        status.error = str(e)
        return status

    status.commit = commit
    status.pin_modified = pin_diverged(repo, spec, commit)

    entry = engine.lock_store.get(name)
    if entry is not None and entry.commit != commit:
        status.lock_modified = True
        status.newer = repo.is_ancestor(commit, entry.commit)

    return status


def find_unmanaged(package_root: Path, registered: set[str]) -> list[str]:
    """Directories under ``package_root`` that no registered spec owns."""
    try:
        with os.scandir(package_root) as it:
            names = [e.name for e in it if e.is_dir() and e.name not in registered]
    except FileNotFoundError:
        return []
    return sorted(names)


def compute_status(engine: "PluginEngine") -> StatusView:
    """
    Build the status view for every registered plugin.

    Args:
        engine: Engine owning registry, lock store and host

    Returns:
        StatusView
    """
    plugins = engine.plugins()
    runtime_paths = engine.host.runtime_paths()
    runtime_names = {Path(p).name for p in runtime_paths}

    view = StatusView()

    for name, spec in plugins.items():
        status = plugin_status(engine, name, spec)
        loaded = name in runtime_names or (
            spec.dir is not None and str(spec.dir) in runtime_paths
        )
        (view.loaded if loaded else view.not_loaded).append(status)

    view.loaded.sort(key=lambda s: s.name)
    view.not_loaded.sort(key=lambda s: s.name)
    view.unmanaged = find_unmanaged(engine.package_root, set(plugins))
    view.outdated_lock_entries = sorted(
        name for name in engine.lock_store if name not in plugins
    )

    return view


def render_status(view: StatusView) -> list[str]:
    """
    Render a status view as plain text lines.

    Args:
        view: Computed status view

    Returns:
        Lines with one section per non-empty partition
    """
    lines = ["", f"Loaded ({len(view.loaded)})", ""]
    lines.extend(status.line for status in view.loaded)

    if view.not_loaded:
        lines.extend(["", f"Not Loaded ({len(view.not_loaded)})", ""])
        lines.extend(status.line for status in view.not_loaded)

    if view.unmanaged:
        lines.extend(["", f"Unmanaged ({len(view.unmanaged)})", ""])
        lines.extend(f"> {name}" for name in view.unmanaged)

    if view.outdated_lock_entries:
        lines.extend(
            ["", f"Outdated Lockfile Entries ({len(view.outdated_lock_entries)})", ""]
        )
        lines.extend(f"- {name}" for name in view.outdated_lock_entries)

    return lines
