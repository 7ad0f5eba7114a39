"""
Plugin Manager.

This module provides the reconciliation engine.

Key features:
- Convergence pass over an ordered spec list (install, hooks, load)
- Lock-first checkout on fresh installs
- Batch update / restore / lock with aggregated reports
- Delete and lockfile cleanup
- Background checks for new upstream commits
"""

import asyncio
import logging
import shutil
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from plugpin.git_ops import GitError, GitRepo
from plugpin.hooks import HookError, HookType, has_hook, run_hook
from plugpin.host import Host, PathHost
from plugpin.lockfile import LockError, LockStore
from plugpin.notify import Notifier
from plugpin.resolver import resolve
from plugpin.spec import PluginSpec, SpecError, normalize_spec

if TYPE_CHECKING:
    from plugpin.config import Settings
    from plugpin.status import StatusView

logger = logging.getLogger(__name__)

RawSpec = str | Mapping[str, Any] | PluginSpec
CommitCallback = Callable[[str, list[str]], None]


@dataclass
class BatchResult:
    """
    Aggregate outcome of a batch operation.

    Attributes:
        label: Past-tense operation name ("updated", "locked", ...)
        count: Number of plugins successfully processed
        issues: One line per plugin that was skipped or failed
    """

    label: str
    count: int = 0
    issues: list[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        text = f"{self.label.capitalize()} {self.count} plugins"
        if self.issues:
            text += ":\n" + "\n".join(self.issues)
        return text


class PluginEngine:
    """
    Reconciliation engine owning the plugin registry and the lock store.

    Every operation runs synchronously and processes plugins strictly in
    registration order, except ``check_new_commits`` which runs its git
    calls concurrently.
    """

    def __init__(
        self,
        package_root: Path,
        lock_store: LockStore,
        host: Host | None = None,
        notifier: Notifier | None = None,
        git_factory: Callable[[Path], GitRepo] = GitRepo,
    ):
        """
        Initialize PluginEngine.

        Args:
            package_root: Directory holding one clone per plugin
            lock_store: Lock store backing the lockfile
            host: Host load mechanism (defaults to a PathHost)
            notifier: Notification channel
            git_factory: Builds the git backend for a plugin directory
        """
        self.package_root = Path(package_root)
        self.lock_store = lock_store
        self.host = host if host is not None else PathHost()
        self.notifier = notifier if notifier is not None else Notifier()
        self._git_factory = git_factory
        self._registry: dict[str, PluginSpec] = {}

    @classmethod
    def from_settings(
        cls,
        settings: "Settings",
        host: Host | None = None,
        notifier: Notifier | None = None,
    ) -> "PluginEngine":
        return cls(
            settings.package_root,
            LockStore(settings.lockfile),
            host=host,
            notifier=notifier,
        )

    # ~~~~~~~~~~
    #  Registry
    # ~~~~~~~~~~

    def plugins(self) -> dict[str, PluginSpec]:
        return dict(self._registry)

    def list_plugins(self) -> list[str]:
        return list(self._registry)

    def get_plugin(self, name: str) -> PluginSpec | None:
        return self._registry.get(name)

    def plugin_path(self, name: str) -> Path:
        """Directory of plugin ``name``; for local plugins their own ``dir``."""
        spec = self._registry.get(name)
        if spec is not None and spec.dir is not None:
            return spec.dir
        return self.package_root / name

    def git(self, name: str) -> GitRepo:
        return self._git_factory(self.package_root / name)

    # ~~~~~~~~~~~~~~~~~~
    #  Convergence pass
    # ~~~~~~~~~~~~~~~~~~

    def setup(self, specs: Iterable[RawSpec]) -> None:
        """
        Converge all plugins of ``specs`` and rebuild the registry.

        Missing plugins are cloned, every plugin gets a lock entry, hooks run
        in the order load -> init -> (host load) -> build -> config. A
        failing plugin never blocks the remaining ones.

        Args:
            specs: Ordered bare URLs, spec mappings or PluginSpecs
        """
        self.lock_store.load()
        self._registry = {}

        for raw in specs:
            try:
                spec = normalize_spec(raw)
            except SpecError as e:
                self.notifier.error(f"Invalid plugin spec {raw!r}: {e}")
                continue

            name = spec.name

            if not self._should_load(name, spec):
                continue

            try:
                if spec.is_local:
                    ready = self._setup_local(name, spec)
                else:
                    ready = self._setup_remote(name, spec)
            except GitError as e:
                self.notifier.error(f"Setting up {name} failed: {e}")
                continue

            if not ready:
                continue

            self._call_hook(name, spec, HookType.CONFIG)

            # mark plugin as managed
            self._registry[name] = spec

        self._save_lock()

    def _should_load(self, name: str, spec: PluginSpec) -> bool:
        if not has_hook(spec, HookType.LOAD):
            return True

        try:
            load = run_hook(spec, HookType.LOAD, name)
        except HookError as e:
            self.notifier.error(f"Load hook for {name} threw an error: {e}")
            return False

        if not load:
            self.notifier.warning(f"Skipping {name}: load hook returned false")
            return False
        return True

    def _setup_local(self, name: str, spec: PluginSpec) -> bool:
        assert spec.dir is not None

        if not spec.dir.exists():
            self.notifier.error(
                f'The provided directory for "{name}": "{spec.dir}" does not exist!'
            )
            return False

        # Local plugins never enter the lockfile, but existing entries stay
        self._call_hook(name, spec, HookType.INIT)
        self._host_call(name, self.host.prepend_path, spec.dir)
        return True

    def _setup_remote(self, name: str, spec: PluginSpec) -> bool:
        repo = self.git(name)
        fresh = False

        if not repo.exists():
            self.notifier.info(f"Installing {name}...")
            try:
                repo.clone(spec.git_url)
            except GitError as e:
                self.notifier.error(f"Cloning {name} encountered an issue: {e}")
                return False

            # A lock entry takes precedence over the spec's pin
            entry = self.lock_store.get(name)
            self._checkout(name, repo, entry.commit if entry else resolve(spec))
            fresh = True

        if name not in self.lock_store:
            self.lock_store.set(name, repo.current_commit())

        self._call_hook(name, spec, HookType.INIT)
        self._host_call(name, self.host.load_package, name, repo.path)

        if fresh:
            self._call_hook(name, spec, HookType.BUILD, cwd=repo.path)

        return True

    # ~~~~~~~~~~~~~~~~~~
    #  Batch operations
    # ~~~~~~~~~~~~~~~~~~

    def _process(
        self,
        label: str,
        names: Iterable[str],
        process: Callable[[str], tuple[bool, str | None]],
        registry_scoped: bool = True,
    ) -> BatchResult:
        """
        Run ``process`` for each plugin and aggregate the outcome.

        Args:
            label: Past-tense operation name
            names: Plugin names; empty means every registered plugin
            process: Returns (success, issue) for one plugin
            registry_scoped: Report names that are not registered

        Returns:
            BatchResult (also emitted as one info notice)
        """
        names = list(names) or list(self._registry)
        result = BatchResult(label)

        for name in names:
            spec = self._registry.get(name)

            if spec is None and registry_scoped:
                result.issues.append(f'- "{name}" is not a registered plugin')
                continue

            # always skip local plugins
            if spec is not None and spec.is_local:
                result.issues.append(f'- local plugin "{name}" can not be {label}')
                continue

            try:
                success, issue = process(name)
            except GitError as e:
                success, issue = False, f'- "{name}": {e}'

            if success:
                result.count += 1
            elif issue:
                result.issues.append(issue)

        self.notifier.info(result.message)
        return result

    def update(self, *names: str) -> BatchResult:
        """
        Check out the latest state of each plugin's pin.

        A plugin counts as updated only if its commit changed; the build
        hook is re-run for those.
        """

        def process(name: str) -> tuple[bool, str | None]:
            spec = self._registry[name]
            repo = self.git(name)

            fetched = repo.fetch()
            if not fetched.ok:
                self.notifier.warning(f"Fetching {name} failed:\n{fetched.error}")

            before = repo.current_commit()
            self._checkout(name, repo, resolve(spec))
            if repo.current_commit() == before:
                return False, f'- "{name}" is up to date already'

            # if the update changed something retrigger the build
            self._call_hook(name, spec, HookType.BUILD, cwd=repo.path)
            return True, None

        return self._process("updated", names, process)

    def restore(self, *names: str) -> BatchResult:
        """Check out the locked commit of each plugin, ignoring its pin."""

        def process(name: str) -> tuple[bool, str | None]:
            entry = self.lock_store.get(name)
            if entry is None:
                return False, f'- "{name}" has no lock entry'

            repo = self.git(name)
            if repo.current_commit() == entry.commit:
                return False, f'- "{name}" is in locked state already'

            if not self._checkout(name, repo, entry.commit):
                return False, f'- "{name}" could not be restored'
            return True, None

        return self._process("restored", names, process)

    def lock(self, *names: str) -> BatchResult:
        """
        Record the current commit of each plugin in the lock.

        The lockfile is written once after the whole batch.
        """

        def process(name: str) -> tuple[bool, str | None]:
            commit = self.git(name).current_commit()
            entry = self.lock_store.get(name)
            modified = entry is None or entry.commit != commit
            self.lock_store.set(name, commit)
            return modified, None

        result = self._process("locked", names, process)
        self._save_lock()
        return result

    def delete(self, name: str) -> BatchResult:
        """
        Remove the directory of plugin ``name`` from the package root.

        Works for unmanaged directories too. Confirmation is up to the caller
        and the lockfile is left untouched.
        """

        def process(name: str) -> tuple[bool, str | None]:
            if not name or name in (".", "..") or Path(name).name != name:
                return False, f'- "{name}" is not a valid plugin name'

            path = self.package_root / name
            if not path.is_dir():
                return False, f'- "{name}" is not installed'

            try:
                shutil.rmtree(path)
            except OSError as e:
                self.notifier.error(f'Could not delete the plugin "{name}":\n{e}')
                return False, f'- "{name}" could not be deleted'

            self._registry.pop(name, None)
            return True, None

        return self._process("deleted", [name], process, registry_scoped=False)

    def clean_lock(self) -> int:
        """
        Remove lock entries without a registered plugin.

        Returns:
            Number of removed entries
        """
        stale = [name for name in self.lock_store if name not in self._registry]
        for name in stale:
            self.lock_store.remove(name)

        self._save_lock()
        self.notifier.info(f"Removed {len(stale)} entries from the lockfile")
        return len(stale)

    def rebuild(self, name: str) -> bool:
        """Re-trigger the build hook of a registered, non-local plugin."""
        spec = self._registry.get(name)
        if spec is None or spec.is_local or not has_hook(spec, HookType.BUILD):
            self.notifier.warning(f'"{name}" has no build hook to run')
            return False
        return self._call_hook(name, spec, HookType.BUILD, cwd=self.package_root / name)

    # ~~~~~~~~~
    #  Queries
    # ~~~~~~~~~

    async def check_new_commits(
        self, *names: str, callback: CommitCallback | None = None
    ) -> dict[str, list[str]]:
        """
        Fetch and list new upstream commits for each plugin concurrently.

        Every check reports through ``callback`` as soon as it completes;
        there is no ordering between plugins.

        Args:
            names: Plugin names; empty means every registered plugin
            callback: Called with (name, commit lines) per plugin

        Returns:
            Plugin name -> commit lines
        """
        targets = [
            name
            for name in (names or tuple(self._registry))
            if name in self._registry and not self._registry[name].is_local
        ]

        async def check(name: str) -> tuple[str, list[str]]:
            ref = resolve(self._registry[name])
            # A failing check must not cancel the others
            try:
                commits = await self.git(name).fetch_new_commits(ref)
            except Exception as e:
                commits = [f";; {e}"]
            if callback is not None:
                try:
                    callback(name, commits)
                except Exception as e:
                    self.notifier.error(f"Reporting new commits of {name} failed: {e}")
            return name, commits

        results = await asyncio.gather(*(check(name) for name in targets))
        return dict(results)

    def start_commit_check(self, name: str, callback: CommitCallback) -> asyncio.Task:
        """Schedule ``check_new_commits`` for one plugin on the running loop."""
        return asyncio.get_running_loop().create_task(
            self.check_new_commits(name, callback=callback)
        )

    def status(self) -> "StatusView":
        from plugpin.status import compute_status

        return compute_status(self)

    # ~~~~~~~~~
    #  Helpers
    # ~~~~~~~~~

    def _checkout(self, name: str, repo: GitRepo, ref: str) -> bool:
        logger.debug("Checking out %s for %s", ref, name)
        result = repo.checkout(ref)
        if not result.ok:
            self.notifier.error(f'Checking out "{ref}" for {name} failed:\n{result.error}')
        return result.ok

    def _call_hook(
        self, name: str, spec: PluginSpec, hook_type: HookType, cwd: Path | None = None
    ) -> bool:
        try:
            run_hook(spec, hook_type, name, cwd=cwd)
        except HookError as e:
            self.notifier.error(
                f"{hook_type.value.capitalize()} hook for {name} threw an error: {e}"
            )
            return False
        return True

    def _host_call(self, name: str, fn: Callable[..., Any], *args: Any) -> None:
        try:
            fn(*args)
        except Exception as e:
            self.notifier.error(f"Loading {name} into the host failed: {e}")

    def _save_lock(self) -> None:
        try:
            self.lock_store.save()
        except LockError as e:
            self.notifier.error(str(e))
