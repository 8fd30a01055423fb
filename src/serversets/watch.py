"""Following the live members of a server set."""

import posixpath
import sys
import threading
from typing import Callable, Iterable, List, Optional

from kazoo.exceptions import NoNodeError
from kazoo.recipe.watchers import ChildrenWatch

from .entity import Entity, Status
from .errors import MemberDataError


def read_members(
    client,
    directory: str,
    member_prefix: str,
    children: Optional[Iterable[str]] = None,
) -> List[Entity]:
    """Read and decode the member znodes under *directory*, in sequence order.

    Children that are not members, members that disappear before they can be
    read, and undecodable payloads are skipped.
    """
    if children is None:
        children = client.get_children(directory)

    members = []
    for child in sorted(children):
        if not child.startswith(member_prefix):
            continue
        try:
            data, _ = client.get(posixpath.join(directory, child))
        except NoNodeError:
            continue
        try:
            members.append(Entity.from_json(data))
        except MemberDataError as exc:
            print(f"[serversets] skipping {directory}/{child}: {exc}", file=sys.stderr)
    return members


def alive_endpoints(members: Iterable[Entity]) -> List[str]:
    """Sorted ``host:port`` strings of the ALIVE members."""
    return sorted(
        str(m.service_endpoint) for m in members if m.status == Status.ALIVE
    )


class Watch:
    """Keeps the current endpoint list of a server set up to date.

    *callback*, if given, is called with the new endpoint list after every
    membership change, on the kazoo event thread.
    """

    def __init__(
        self,
        serverset,
        client,
        callback: Optional[Callable[[List[str]], None]] = None,
        owns_client: bool = False,
    ):
        self._serverset = serverset
        self._client = client
        self._callback = callback
        self._owns_client = owns_client

        self._lock = threading.Lock()
        self._endpoints: List[str] = []
        self._closed = False

        # ChildrenWatch fires once synchronously with the current children
        self._watcher = ChildrenWatch(client, serverset.directory_path, self._on_children)

    def _on_children(self, children: List[str]):
        if self._closed:
            return False  # stops the kazoo watch

        members = read_members(
            self._client,
            self._serverset.directory_path,
            self._serverset.member_prefix,
            children,
        )
        endpoints = alive_endpoints(members)
        with self._lock:
            self._endpoints = endpoints
        if self._callback is not None:
            self._callback(list(endpoints))
        return None

    def endpoints(self) -> List[str]:
        with self._lock:
            return list(self._endpoints)

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        if self._owns_client:
            self._client.stop()
            self._client.close()

    def __enter__(self) -> "Watch":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
