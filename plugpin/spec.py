"""
Plugin Specification Model.

This module provides the declared configuration for a single plugin.

Key features:
- Normalization of bare URL strings and mappings into PluginSpec
- Short-form GitHub identifiers (owner/repo) expanded to clone URLs
- Plugin name derivation from the source URL
- Pinning priority (commit > tag > branch > none)
"""

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any


class SpecError(Exception):
    """Raised when a plugin specification is invalid."""

    pass


class Pinning(Enum):
    """Effective pinning strategy of a plugin spec."""

    NONE = "none"
    BRANCH = "branch"
    TAG = "tag"
    COMMIT = "commit"


HookFn = Callable[[str, "PluginSpec"], Any]

SPEC_KEYS = frozenset(
    {"url", "branch", "tag", "commit", "dir", "load", "init", "build", "config"}
)

# Anything that git can take verbatim: scheme URLs, scp-like and filesystem paths
_EXPLICIT_URL = re.compile(r"^([a-zA-Z][a-zA-Z0-9+.-]*://|[^/:\s]+@[^:\s]+:|[/.~])")
_SHORT_FORM = re.compile(r"^[\w.-]+/[\w.-]+$")


@dataclass
class Hooks:
    """
    Optional lifecycle callables of a plugin.

    Every hook is called as ``hook(name, spec)``.

    Attributes:
        load: Gate evaluated first; a falsy return skips the plugin
        init: Called before the plugin is loaded
        build: Called after a fresh install or a successful update
        config: Called after the plugin has been loaded
    """

    load: HookFn | None = None
    init: HookFn | None = None
    build: HookFn | None = None
    config: HookFn | None = None


@dataclass
class PluginSpec:
    """
    Declared configuration for one plugin.

    Attributes:
        url: Git remote or short-form GitHub identifier
        branch: Branch to follow
        tag: Tag to pin to
        commit: Exact (or abbreviated) commit to pin to
        dir: Local directory; makes this a local plugin
        hooks: Lifecycle hooks
    """

    url: str
    branch: str | None = None
    tag: str | None = None
    commit: str | None = None
    dir: Path | None = None
    hooks: Hooks = field(default_factory=Hooks)

    @property
    def name(self) -> str:
        return plugin_name(self.url)

    @property
    def git_url(self) -> str:
        return git_url(self.url)

    @property
    def is_local(self) -> bool:
        return self.dir is not None

    @property
    def pinning(self) -> Pinning:
        if self.commit:
            return Pinning.COMMIT
        if self.tag:
            return Pinning.TAG
        if self.branch:
            return Pinning.BRANCH
        return Pinning.NONE


def git_url(url: str) -> str:
    """
    Resolve a plugin source into something git can clone.

    Short ``owner/repo`` identifiers are expanded to GitHub HTTPS URLs,
    everything else is returned unchanged.

    Args:
        url: Source URL or short-form identifier

    Returns:
        Clone URL
    """
    url = url.strip()
    if _EXPLICIT_URL.match(url) or not _SHORT_FORM.match(url):
        return url
    if url.endswith(".git"):
        url = url[: -len(".git")]
    return f"https://github.com/{url}.git"


def plugin_name(url: str) -> str:
    """
    Derive the plugin name from its source URL.

    Args:
        url: Source URL or short-form identifier

    Returns:
        Final path segment without a ``.git`` suffix

    Raises:
        SpecError: If no usable name can be derived
    """
    path = url.strip().rstrip("/")
    if path.endswith(".git"):
        path = path[: -len(".git")]

    name = re.split(r"[/:\\]", path)[-1]

    if not name or name in (".", ".."):
        raise SpecError(f"Cannot derive a plugin name from '{url}'")

    return name


def _to_hook(value: Any, hook_name: str) -> HookFn | None:
    if value is None:
        return None
    if isinstance(value, str):
        from plugpin.hooks import HookType, command_hook

        return command_hook(value, HookType(hook_name))
    if not callable(value):
        raise SpecError(f"Hook '{hook_name}' must be callable or a shell command")
    return value


def normalize_spec(raw: "str | Mapping[str, Any] | PluginSpec") -> PluginSpec:
    """
    Normalize a bare URL or a mapping into a PluginSpec.

    Args:
        raw: Bare source URL, spec mapping, or an existing PluginSpec

    Returns:
        PluginSpec instance

    Raises:
        SpecError: If the spec is malformed
    """
    if isinstance(raw, PluginSpec):
        plugin_name(raw.url)
        return raw

    if isinstance(raw, str):
        raw = {"url": raw}

    if not isinstance(raw, Mapping):
        raise SpecError(f"Plugin spec must be a string or a mapping, got {type(raw).__name__}")

    unknown = set(raw) - SPEC_KEYS
    if unknown:
        raise SpecError(f"Unknown plugin spec fields: {', '.join(sorted(unknown))}")

    url = raw.get("url")
    if not isinstance(url, str) or not url.strip():
        raise SpecError("Missing required field: url")

    for key in ("branch", "tag", "commit"):
        if raw.get(key) is not None and not isinstance(raw[key], str):
            raise SpecError(f"Field '{key}' must be a string")

    local_dir = raw.get("dir")
    if local_dir is not None:
        local_dir = Path(local_dir).expanduser().absolute()

    spec = PluginSpec(
        url=url.strip(),
        branch=raw.get("branch") or None,
        tag=raw.get("tag") or None,
        commit=raw.get("commit") or None,
        dir=local_dir,
        hooks=Hooks(
            load=_to_hook(raw.get("load"), "load"),
            init=_to_hook(raw.get("init"), "init"),
            build=_to_hook(raw.get("build"), "build"),
            config=_to_hook(raw.get("config"), "config"),
        ),
    )

    # Validates the name eagerly
    plugin_name(spec.url)

    return spec
