"""
plugpin - Declarative, lockfile-backed package manager for editor plugins.

This is the main package that exports the public API.
"""

__version__ = "0.1.0"

from plugpin.git_ops import CloneError, GitError, GitRepo
from plugpin.hooks import HookError, HookType
from plugpin.host import Host, PathHost
from plugpin.lockfile import LockEntry, LockStore
from plugpin.manager import BatchResult, PluginEngine
from plugpin.notify import Notice, Notifier
from plugpin.resolver import resolve
from plugpin.spec import Hooks, Pinning, PluginSpec, SpecError, normalize_spec
from plugpin.status import PluginStatus, StatusView, compute_status, render_status

__all__ = [
    "__version__",
    "BatchResult",
    "CloneError",
    "GitError",
    "GitRepo",
    "HookError",
    "HookType",
    "Hooks",
    "Host",
    "LockEntry",
    "LockStore",
    "Notice",
    "Notifier",
    "PathHost",
    "Pinning",
    "PluginEngine",
    "PluginSpec",
    "PluginStatus",
    "SpecError",
    "StatusView",
    "compute_status",
    "normalize_spec",
    "render_status",
    "resolve",
]
