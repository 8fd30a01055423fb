"""Namespace path construction for server set directories.

Nothing here talks to ZooKeeper; these are pure string functions.
"""

import posixpath
from typing import Optional

from .config import DEFAULT_NAMESPACE, NamespaceConfig
from .errors import ConfigurationError


def derive_namespace_path(
    role: str,
    environment: str,
    service: str,
    config: Optional[NamespaceConfig] = None,
) -> str:
    """Return the directory path where members of *service* live.

    The service name must not contain slashes, otherwise it would silently
    add levels to the hierarchy.
    """
    if "/" in service:
        raise ConfigurationError(f"service name ({service}) must not contain slashes")

    config = config or DEFAULT_NAMESPACE
    path = config.format_path(role, environment, service)
    if not path.startswith("/"):
        raise ConfigurationError(f"namespace path ({path}) must begin with '/'")
    return path


def expand_to_ancestor_chain(path: str) -> list[str]:
    """Split *path* into every directory needed to create it, root first.

    >>> expand_to_ancestor_chain("/a/b/c")
    ['/a', '/a/b', '/a/b/c']

    The root itself is never included, so ``"/"`` yields an empty list.
    """
    parts = [p for p in posixpath.normpath("/" + path).split("/") if p]

    result = []
    base = ""
    for part in parts:
        base += "/" + part
        result.append(base)
    return result
