import itertools

import pytest

from errors import BackendError
from schemas import CurrentUser
from stores import LocalStore, next_number_after, normalize_all, to_remote
from workspace import Workspace


class MemoryRemote:
    """Stands in for MongoDB: keeps snake_case documents and assigns string ids."""

    name = "remote"

    def __init__(self):
        self.docs = {"parties": [], "items": [], "invoices": []}
        self._ids = itertools.count(1)

    def list(self, kind):
        return normalize_all(kind, reversed(self.docs[kind]), self.name)

    def add(self, kind, record):
        doc = to_remote(record)
        doc["_id"] = f"r{next(self._ids)}"
        self.docs[kind].append(doc)
        return record.model_copy(update={"id": doc["_id"]})

    def delete(self, kind, record_id):
        self.docs[kind] = [d for d in self.docs[kind] if d["_id"] != str(record_id)]

    def next_invoice_number(self):
        return next_number_after(d["invoice_number"] for d in self.docs["invoices"])


class DownRemote:
    name = "remote"

    def __init__(self):
        self.calls = 0

    def _fail(self, *args, **kwargs):
        self.calls += 1
        raise BackendError("connection refused")

    list = add = delete = next_invoice_number = _fail


@pytest.fixture
def user():
    return CurrentUser(id="u1", name="Asha")


@pytest.fixture
def local(tmp_path, user):
    return LocalStore(tmp_path, user.id)


@pytest.fixture
def remote():
    return MemoryRemote()


@pytest.fixture
def down_remote():
    return DownRemote()


@pytest.fixture
def workspace(user, remote, local):
    ws = Workspace(user, remote, local)
    ws.load()
    return ws


@pytest.fixture
def offline_workspace(user, down_remote, local):
    ws = Workspace(user, down_remote, local)
    ws.load()
    return ws
