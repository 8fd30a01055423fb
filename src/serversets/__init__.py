"""
ZooKeeper server sets

This package provides:
1. ServerSet: namespace path handling and directory creation/verification
2. Entity: the Finagle-compatible member record written into each znode
3. Membership / Watch: joining a server set and following its members
"""

from .config import (
    BASE_DIRECTORY,
    DEFAULT_NAMESPACE,
    DEFAULT_ZK_TIMEOUT,
    MEMBER_PREFIX,
    NamespaceConfig,
    ServerSetConfig,
    load_config,
)
from .entity import Endpoint, Entity, Status, new_entity
from .errors import (
    ConfigurationError,
    HierarchyNotFoundError,
    MemberDataError,
    ServerSetConnectionError,
    ServerSetError,
)
from .membership import Membership
from .paths import derive_namespace_path, expand_to_ancestor_chain
from .serverset import ServerSet
from .watch import Watch

__version__ = '0.1.0'
__all__ = [
    'BASE_DIRECTORY',
    'DEFAULT_NAMESPACE',
    'DEFAULT_ZK_TIMEOUT',
    'MEMBER_PREFIX',
    'ConfigurationError',
    'Endpoint',
    'Entity',
    'HierarchyNotFoundError',
    'MemberDataError',
    'Membership',
    'NamespaceConfig',
    'ServerSet',
    'ServerSetConfig',
    'ServerSetConnectionError',
    'ServerSetError',
    'Status',
    'Watch',
    'derive_namespace_path',
    'expand_to_ancestor_chain',
    'load_config',
    'new_entity',
]
