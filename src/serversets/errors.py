"""Exception types raised by serversets."""


class ServerSetError(Exception):
    """Base exception for server set errors."""


class ConfigurationError(ServerSetError, ValueError):
    """Invalid server set identity or namespace configuration."""


class ServerSetConnectionError(ServerSetError):
    """Could not establish a ZooKeeper session."""


class HierarchyNotFoundError(ServerSetError):
    """A directory node along the namespace path does not exist."""

    def __init__(self, path: str):
        super().__init__(f"znode {path} does not exist")
        self.path = path


class MemberDataError(ServerSetError):
    """A member znode payload is not a valid server set entity."""
