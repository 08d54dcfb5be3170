import copy
import os as _os
import sys

import pytest

# Ensure project root is importable (so `import mdr` / `import main` work without installing)
_project_root = _os.path.dirname(_os.path.dirname(__file__))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from mdr.config import ClusterConfig  # noqa: E402
from mdr.errors import AlreadyExistsError, NotFoundError  # noqa: E402


class FakeStore:
    """In-memory resource store keyed by (kind, namespace, name).

    ``fail`` maps (operation, kind, name) to an exception raised instead of
    performing the operation.
    """

    def __init__(self):
        self.records = {}
        self.calls = []
        self.fail = {}

    def _key(self, kind, namespace, name):
        return (kind.value, namespace, name)

    def _maybe_fail(self, op, kind, name):
        exc = self.fail.get((op, kind.value, name))
        if exc is not None:
            raise exc

    def get(self, kind, namespace, name):
        self.calls.append(("get", kind.value, name))
        self._maybe_fail("get", kind, name)
        try:
            return copy.deepcopy(self.records[self._key(kind, namespace, name)])
        except KeyError:
            raise NotFoundError(name)

    def create(self, kind, record):
        meta = record["metadata"]
        self.calls.append(("create", kind.value, meta["name"]))
        self._maybe_fail("create", kind, meta["name"])
        key = self._key(kind, meta["namespace"], meta["name"])
        if key in self.records:
            raise AlreadyExistsError(meta["name"])
        self.records[key] = copy.deepcopy(record)
        return record

    def delete(self, kind, namespace, name):
        self.calls.append(("delete", kind.value, name))
        self._maybe_fail("delete", kind, name)
        try:
            del self.records[self._key(kind, namespace, name)]
        except KeyError:
            raise NotFoundError(name)

    def names(self, kind):
        return sorted(name for (k, _, name) in self.records if k == kind)


class FakeCeph:
    """Records calls and tracks module state the way the mgr would."""

    def __init__(self):
        self.calls = []
        self.modules = set()
        self.keys = {}
        self.fail = {}
        self._counter = 0

    def _maybe_fail(self, op):
        exc = self.fail.get(op)
        if exc is not None:
            raise exc

    def auth_get_or_create_key(self, principal, caps):
        self.calls.append(("auth", principal, tuple(caps)))
        self._maybe_fail("auth")
        # A fresh key on every call makes accidental re-issues visible in tests.
        self._counter += 1
        self.keys[principal] = f"AQB{principal}-{self._counter}=="
        return self.keys[principal]

    def mgr_module_enable(self, name, force=True):
        self.calls.append(("enable", name))
        self._maybe_fail(("enable", name))
        self.modules.add(name)

    def mgr_module_disable(self, name):
        self.calls.append(("disable", name))
        self._maybe_fail(("disable", name))
        self.modules.discard(name)


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def ceph():
    return FakeCeph()


@pytest.fixture
def config():
    return ClusterConfig(namespace="rook-ceph", replicas=1, dashboard_enabled=False)
