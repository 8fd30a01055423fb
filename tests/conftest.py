"""Shared fixtures: an in-memory stand-in for a kazoo client."""

import posixpath
import threading

import pytest
from kazoo.exceptions import NoNodeError, NodeExistsError
from kazoo.protocol.states import KazooState


class FakeHandler:
    """Runs spawned callables inline."""

    def spawn(self, func, *args, **kwargs):
        func(*args, **kwargs)


class FakeZooKeeper:
    """Enough of KazooClient's node API to exercise server sets.

    Mirrors ZooKeeper semantics for create (parent must exist, NodeExistsError
    on duplicates, sequence suffixes), exists, get, get_children and delete.
    """

    def __init__(self):
        self.nodes = {"/": b""}
        self.acls = {}
        self.ephemeral = set()
        self.created = []
        self.fail_on = {}
        self.listeners = []
        self.child_watchers = {}
        self.handler = FakeHandler()
        self.stopped = False
        self.closed = False
        self._sequence = {}
        self._lock = threading.Lock()

    def create(self, path, value=b"", acl=None, ephemeral=False, sequence=False, makepath=False):
        with self._lock:
            if path in self.fail_on:
                raise self.fail_on[path]
            parent = posixpath.dirname(path)
            if sequence:
                counter = self._sequence.get(parent, 0)
                self._sequence[parent] = counter + 1
                path = f"{path}{counter:010d}"
            if parent not in self.nodes:
                raise NoNodeError(parent)
            if path in self.nodes:
                raise NodeExistsError(path)
            self.nodes[path] = value
            self.acls[path] = acl
            self.created.append(path)
            if ephemeral:
                self.ephemeral.add(path)
        self._fire(parent)
        return path

    def exists(self, path, watch=None):
        if path in self.fail_on:
            raise self.fail_on[path]
        return object() if path in self.nodes else None

    def get(self, path, watch=None):
        with self._lock:
            if path not in self.nodes:
                raise NoNodeError(path)
            return self.nodes[path], None

    def get_children(self, path, watch=None):
        with self._lock:
            if path not in self.nodes:
                raise NoNodeError(path)
            prefix = path.rstrip("/") + "/"
            return sorted(
                p[len(prefix):] for p in self.nodes
                if p != path and p.startswith(prefix) and "/" not in p[len(prefix):]
            )

    def delete(self, path, version=-1, recursive=False):
        with self._lock:
            if path not in self.nodes:
                raise NoNodeError(path)
            del self.nodes[path]
            self.ephemeral.discard(path)
        self._fire(posixpath.dirname(path))

    def add_listener(self, listener):
        self.listeners.append(listener)

    def remove_listener(self, listener):
        if listener in self.listeners:
            self.listeners.remove(listener)

    def stop(self):
        self.stopped = True

    def close(self):
        self.closed = True

    def expire_session(self):
        """Drop ephemeral nodes as ZooKeeper would, then reconnect."""
        for path in list(self.ephemeral):
            self.delete(path)
        for listener in list(self.listeners):
            listener(KazooState.LOST)
        for listener in list(self.listeners):
            listener(KazooState.CONNECTED)

    def _fire(self, path):
        for func in list(self.child_watchers.get(path, [])):
            if func(self.get_children(path)) is False:
                self.child_watchers[path].remove(func)


class FakeChildrenWatch:
    """Replacement for kazoo's ChildrenWatch driven by FakeZooKeeper."""

    def __init__(self, client, path, func):
        self.client = client
        self.path = path
        if func(client.get_children(path)) is not False:
            client.child_watchers.setdefault(path, []).append(func)


@pytest.fixture
def zk():
    return FakeZooKeeper()


@pytest.fixture
def children_watch(monkeypatch):
    monkeypatch.setattr("serversets.watch.ChildrenWatch", FakeChildrenWatch)
    return FakeChildrenWatch
