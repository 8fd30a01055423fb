"""
ZooKeeper server sets

A ServerSet represents a service with a set of servers that may change over
time. The master list of servers is kept as ephemeral znodes under
``<base>/<role>/<environment>/<service>``.
"""

from typing import Callable, Dict, List, Optional

from kazoo.client import KazooClient
from kazoo.exceptions import KazooException, NodeExistsError
from kazoo.handlers.threading import KazooTimeoutError
from kazoo.security import OPEN_ACL_UNSAFE

from .config import DEFAULT_NAMESPACE, NamespaceConfig, parse_zookeepers
from .entity import Endpoint, Entity, new_entity
from .errors import HierarchyNotFoundError, ServerSetConnectionError
from .membership import Membership
from .paths import derive_namespace_path, expand_to_ancestor_chain
from .watch import Watch, alive_endpoints, read_members


class ServerSet:
    """A role/environment/service triple bound to a ZooKeeper ensemble.

    Construction validates the service name and derives the directory path
    once; nothing touches the network until :meth:`connect` is called.
    ``zk_timeout`` is the only attribute meant to change afterwards.
    """

    def __init__(
        self,
        role: str,
        environment: str,
        service: str,
        zookeepers: List[str] | str,
        config: Optional[NamespaceConfig] = None,
    ):
        self.config = config or DEFAULT_NAMESPACE
        self._directory_path = derive_namespace_path(role, environment, service, self.config)

        self._role = role
        self._environment = environment
        self._service = service
        self.zk_timeout = self.config.zk_timeout
        # A bare "host:port,host:port" string is accepted as well as a list
        self._zookeepers = parse_zookeepers(zookeepers)

    def __repr__(self) -> str:
        return (
            f"ServerSet({self.role!r}, {self.environment!r}, {self.service!r}, "
            f"{self._zookeepers!r})"
        )

    @property
    def role(self) -> str:
        return self._role

    @property
    def environment(self) -> str:
        return self._environment

    @property
    def service(self) -> str:
        return self._service

    @property
    def zookeeper_servers(self) -> List[str]:
        """The ZooKeeper servers this set is using."""
        return list(self._zookeepers)

    @property
    def directory_path(self) -> str:
        """Path of the directory all member znodes live in."""
        return self._directory_path

    @property
    def member_prefix(self) -> str:
        return self.config.member_prefix

    def connect(self, listener: Optional[Callable] = None) -> KazooClient:
        """Start a session with the ensemble, waiting up to ``zk_timeout``.

        *listener* receives kazoo session state changes (``KazooState``).
        The caller owns the returned client and must stop and close it.
        """
        if not self._zookeepers:
            raise ServerSetConnectionError("no ZooKeeper servers configured")

        hosts = ",".join(self._zookeepers)
        try:
            client = KazooClient(hosts=hosts, timeout=self.zk_timeout)
        except ValueError as exc:
            raise ServerSetConnectionError(f"invalid ZooKeeper hosts {hosts!r}: {exc}") from exc
        if listener is not None:
            client.add_listener(listener)
        try:
            client.start(timeout=self.zk_timeout)
        except (KazooTimeoutError, KazooException) as exc:
            client.stop()
            client.close()
            raise ServerSetConnectionError(
                f"could not connect to {','.join(self._zookeepers)}: {exc}"
            ) from exc
        return client

    def ensure_hierarchy_exists(self, client: KazooClient) -> None:
        """Create every directory znode along the path, root first.

        An existing node is fine: members of the same service race to create
        the same directories. Any other failure stops immediately, leaving the
        directories created so far in place.
        """
        for path in expand_to_ancestor_chain(self._directory_path):
            try:
                client.create(path, b"", acl=OPEN_ACL_UNSAFE)
            except NodeExistsError:
                pass

    def verify_hierarchy_exists(self, client: KazooClient) -> None:
        """Check every directory znode along the path without creating any.

        Raises :class:`HierarchyNotFoundError` for the first missing node.
        """
        for path in expand_to_ancestor_chain(self._directory_path):
            if client.exists(path) is None:
                raise HierarchyNotFoundError(path)

    def endpoints(self, client: KazooClient) -> List[str]:
        """Current ALIVE members as ``host:port`` strings. Read-only."""
        self.verify_hierarchy_exists(client)
        members = read_members(client, self._directory_path, self.member_prefix)
        return alive_endpoints(members)

    def register_endpoint(
        self,
        host: str,
        port: int,
        client: Optional[KazooClient] = None,
        additional_endpoints: Optional[Dict[str, Endpoint]] = None,
        shard: int = 0,
    ) -> Membership:
        """Join the server set as *host*:*port*.

        Without a *client* a new session is opened and owned by the returned
        membership, which closes it on :meth:`Membership.close`.
        """
        entity = new_entity(host, port)
        entity.shard = shard
        for name, ep in (additional_endpoints or {}).items():
            entity.additional_endpoints[name] = ep if isinstance(ep, Endpoint) else Endpoint(*ep)
        return self._join(entity, client)

    def register_entity(self, entity: Entity, client: Optional[KazooClient] = None) -> Membership:
        """Join the server set with a prebuilt entity."""
        return self._join(entity, client)

    def _join(self, entity: Entity, client: Optional[KazooClient]) -> Membership:
        owns_client = client is None
        if owns_client:
            client = self.connect()
        membership = Membership(self, client, entity, owns_client=owns_client)
        try:
            membership.open()
        except Exception:
            membership.close()
            raise
        return membership

    def watch(
        self,
        client: Optional[KazooClient] = None,
        callback: Optional[Callable[[List[str]], None]] = None,
    ) -> Watch:
        """Follow the set of ALIVE endpoints as members come and go."""
        owns_client = client is None
        if owns_client:
            client = self.connect()
        try:
            self.ensure_hierarchy_exists(client)
            return Watch(self, client, callback=callback, owns_client=owns_client)
        except Exception:
            if owns_client:
                client.stop()
                client.close()
            raise
