"""
Reference Resolver.

Turns the pinning fields of a plugin spec into a single git ref.
"""

from plugpin.spec import PluginSpec

DEFAULT_REF = "origin/HEAD"


def resolve(spec: PluginSpec) -> str:
    """
    Resolve the git ref a plugin should be checked out to.

    Priority: commit > tag > branch > remote default branch.

    Args:
        spec: Plugin specification

    Returns:
        Commit as given, ``tags/<tag>``, ``origin/<branch>`` or ``origin/HEAD``
    """
    if spec.commit:
        return spec.commit
    if spec.tag:
        return f"tags/{spec.tag}"
    if spec.branch:
        return f"origin/{spec.branch}"
    return DEFAULT_REF
