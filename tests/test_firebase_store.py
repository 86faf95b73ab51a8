import asyncio
from types import SimpleNamespace

import pytest
from firebase_admin.exceptions import UnavailableError
from google.auth.exceptions import RefreshError, TransportError

from conftest import drain, make_session

from weblock.stores import firebase as firebase_store
from weblock.config import Config
from weblock.stores import build_store
from weblock.stores.firebase import FirebaseStore, apply_event
from weblock.stores.memory import MemoryStore
from weblock.utils.exceptions import StoreAuthError, StoreError


# ---------------------------------------------------------------------------
# apply_event
# ---------------------------------------------------------------------------
def test_initial_put_sets_snapshot():
    assert apply_event(None, "put", "/", {"1234": "Alice"}) == {"1234": "Alice"}


def test_put_at_child_path():
    snap = apply_event({"1234": "Alice"}, "put", "/5678", "Bob")
    assert snap == {"1234": "Alice", "5678": "Bob"}


def test_put_none_deletes_child_and_empties():
    snap = apply_event({"1234": "Alice"}, "put", "/1234", None)
    assert snap is None


def test_patch_updates_children():
    snap = {"1": {"message": "a", "timestamp": 1}}
    snap = apply_event(snap, "patch", "/", {"2": {"message": "b", "timestamp": 2}, "1": None})
    assert snap == {"2": {"message": "b", "timestamp": 2}}


def test_nested_put():
    snap = apply_event({}, "put", "/1/message", "hello")
    assert snap == {"1": {"message": "hello"}}


def test_snapshot_is_not_mutated():
    snapshot = {"1": "A"}
    apply_event(snapshot, "put", "/2", "B")
    assert snapshot == {"1": "A"}


def test_unknown_event_is_ignored():
    assert apply_event({"1": "A"}, "keep-alive", "/", None) == {"1": "A"}


# ---------------------------------------------------------------------------
# FirebaseStore against a fake db.reference
# ---------------------------------------------------------------------------
class FakeRegistration:
    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True


class FakeReference:
    """Mimics firebase_admin.db.Reference on top of a MemoryStore."""

    def __init__(self, backend, path, error=None):
        self.backend = backend
        self.path = path
        self.error = error

    def _check(self):
        if self.error is not None:
            raise self.error

    def get(self, shallow=False):
        self._check()
        return self.backend.read(self.path)

    def set(self, value):
        self._check()
        self.backend.write(self.path, value)

    def delete(self):
        self._check()
        self.backend.remove(self.path)

    def transaction(self, update):
        self._check()
        value = update(self.backend.read(self.path))
        self.backend.write(self.path, value)
        return value

    def listen(self, callback):
        self._check()
        callback(SimpleNamespace(event_type="put", path="/", data=self.backend.read(self.path)))
        return FakeRegistration()


@pytest.fixture
def fake_db(monkeypatch):
    backend = MemoryStore()
    state = SimpleNamespace(backend=backend, error=None, refs=[])

    def reference(path="/", app=None):
        ref = FakeReference(backend, path, error=state.error)
        state.refs.append(ref)
        return ref

    monkeypatch.setattr(firebase_store.db, "reference", reference)
    return state


def test_connect_requires_configuration():
    with pytest.raises(StoreError):
        FirebaseStore.connect(None, None)
    with pytest.raises(StoreError):
        FirebaseStore.connect("https://example.firebaseio.com", "/nonexistent/creds.json")


def test_store_roundtrip_through_reference(fake_db):
    store = FirebaseStore(app=object())
    assert store.connected

    store.write("users/1234", "Alice")
    assert fake_db.backend.read("users") == {"1234": "Alice"}
    assert store.read("users/1234") == "Alice"
    assert fake_db.refs[-1].path == "/users/1234"

    store.remove("users/1234")
    assert store.read("users") is None


def test_write_none_deletes(fake_db):
    store = FirebaseStore(app=object())
    store.write("users/1", "A")
    store.write("users/1", None)
    assert fake_db.backend.read("users/1") is None


def test_write_if_absent_uses_transaction(fake_db):
    store = FirebaseStore(app=object())
    assert store.write_if_absent("users/1", "A") is True
    assert store.write_if_absent("users/1", "B") is False
    assert fake_db.backend.read("users/1") == "A"


def test_subscribe_folds_events(fake_db):
    fake_db.backend.write("users/1", "A")
    store = FirebaseStore(app=object())
    seen = []
    sub = store.subscribe("users", seen.append)
    assert seen == [{"1": "A"}]

    sub.close()
    assert sub.closed


def test_failures_raise_store_error_and_drop_connection(fake_db):
    store = FirebaseStore(app=object())
    flags = []
    store.subscribe_connection(flags.append)

    fake_db.error = UnavailableError("database unavailable")
    with pytest.raises(StoreError):
        store.write("users/1", "A")
    assert store.connected is False

    fake_db.error = None
    store.write("users/1", "A")
    assert flags == [True, False, True]


def test_unreachable_database_starts_disconnected(fake_db):
    fake_db.error = UnavailableError("database unavailable")
    store = FirebaseStore(app=object())
    assert store.connected is False


# ---------------------------------------------------------------------------
# Credential / token failures
# ---------------------------------------------------------------------------
def test_rejected_credentials_at_startup_raise_store_error(fake_db):
    fake_db.error = RefreshError("invalid_grant: Invalid JWT Signature.")
    with pytest.raises(StoreAuthError):
        FirebaseStore(app=object())


def test_unreachable_token_endpoint_falls_back_to_local_only(fake_db, monkeypatch, tmp_path):
    creds = tmp_path / "service-account.json"
    creds.write_text("{}")
    deleted = []
    monkeypatch.setattr(firebase_store.credentials, "Certificate", lambda path: object())
    monkeypatch.setattr(firebase_store.firebase_admin, "initialize_app", lambda *a, **kw: "weblock-app")
    monkeypatch.setattr(firebase_store.firebase_admin, "delete_app", deleted.append)
    fake_db.error = TransportError("HTTPConnectionPool(host='127.0.0.1', port=9): Connection refused")

    settings = Config()
    settings.STORE_BACKEND = "firebase"
    settings.FIREBASE_DB_URL = "https://example.firebaseio.com"
    settings.FIREBASE_CREDENTIALS = str(creds)

    store = build_store(settings)
    assert isinstance(store, MemoryStore)
    assert deleted == ["weblock-app"]


def test_token_failure_after_startup_drops_connection(fake_db):
    store = FirebaseStore(app=object())
    fake_db.error = TransportError("Connection refused")
    with pytest.raises(StoreError):
        store.write("users/1", "A")
    with pytest.raises(StoreError):
        store.read("users/1")
    assert store.connected is False


def test_token_failure_in_session_becomes_toast(fake_db):
    fake_db.backend.write("users/1234", "Alice")
    store = FirebaseStore(app=object())

    async def scenario():
        session = make_session(store)
        await session.start()
        await drain(session)
        fake_db.error = TransportError("Connection refused")
        locked = await session.toggle_lock()
        decision = await session.submit_rfid("1234")
        messages = await drain(session)
        await session.close()
        return locked, decision, messages

    locked, decision, messages = asyncio.run(scenario())
    assert locked is False
    assert decision is None
    descriptions = [m["description"] for m in messages if m["type"] == "toast"]
    assert any(d.startswith("Failed to write log:") for d in descriptions)
    assert any(d.startswith("Failed to verify RFID:") for d in descriptions)
    assert {"type": "connection", "connected": False, "persistent": True, "backend": "firebase"} in messages
