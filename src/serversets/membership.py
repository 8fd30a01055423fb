"""Joining a server set: one ephemeral sequential znode per member."""

import posixpath
import sys
import threading
from typing import Optional

from kazoo.exceptions import KazooException, NoNodeError
from kazoo.protocol.states import KazooState
from kazoo.security import OPEN_ACL_UNSAFE

from .entity import Entity


class Membership:
    """A live registration of one endpoint in a server set.

    The member znode is ephemeral, so ZooKeeper drops it when the session
    dies. When a lost session is replaced by a new one the node is created
    again with the same payload.
    """

    def __init__(self, serverset, client, entity: Entity, owns_client: bool = False):
        self._serverset = serverset
        self._client = client
        self._entity = entity
        self._owns_client = owns_client

        self._lock = threading.Lock()
        self._path: Optional[str] = None
        self._closed = False
        self._session_lost = False

    @property
    def entity(self) -> Entity:
        return self._entity

    @property
    def path(self) -> Optional[str]:
        """Full path of the member znode, e.g. ``/aurora/www/prod/frontend/member_0000000003``."""
        with self._lock:
            return self._path

    @property
    def closed(self) -> bool:
        return self._closed

    def open(self) -> Optional[str]:
        """Create the member znode and start following the session."""
        path = self._register()
        self._client.add_listener(self._on_state_change)
        return path

    def _register(self) -> Optional[str]:
        """Create the member znode; None if the membership was closed meanwhile."""
        with self._lock:
            if self._closed:
                return None
        self._serverset.ensure_hierarchy_exists(self._client)
        prefix = posixpath.join(self._serverset.directory_path, self._serverset.member_prefix)
        path = self._client.create(
            prefix,
            self._entity.to_bytes(),
            acl=OPEN_ACL_UNSAFE,
            ephemeral=True,
            sequence=True,
        )
        with self._lock:
            if not self._closed:
                self._path = path
                return path

        # close() ran while the node was being created
        try:
            self._client.delete(path)
        except NoNodeError:
            pass
        return None

    def _on_state_change(self, state) -> None:
        # Runs on the kazoo event thread; must not block.
        if state == KazooState.LOST:
            self._session_lost = True
        elif state == KazooState.CONNECTED and self._session_lost and not self._closed:
            self._session_lost = False
            self._client.handler.spawn(self._reregister)

    def _reregister(self) -> None:
        try:
            path = self._register()
        except KazooException as exc:
            print(
                f"[serversets] failed to re-register {self._entity.service_endpoint}: {exc}",
                file=sys.stderr,
            )
            return
        if path is None:
            return
        print(
            f"[serversets] session lost, re-registered {self._entity.service_endpoint} at {path}",
            file=sys.stderr,
        )

    def close(self) -> None:
        """Leave the server set. Safe to call more than once."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            path = self._path

        try:
            self._client.remove_listener(self._on_state_change)
            if path is not None:
                try:
                    self._client.delete(path)
                except NoNodeError:
                    pass  # session already expired
        finally:
            if self._owns_client:
                self._client.stop()
                self._client.close()

    def __enter__(self) -> "Membership":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
