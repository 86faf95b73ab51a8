# =======================================================================================
# weblock/stores/firebase.py - Hosted Firebase Realtime Database Store
# =======================================================================================
import copy
import logging
import os
import threading
from typing import Any, Callable, List

import firebase_admin
from firebase_admin import credentials, db
from firebase_admin.exceptions import FirebaseError
from google.auth.exceptions import GoogleAuthError

from ..utils.exceptions import InvalidPathError, StoreAuthError, StoreError, StoreNotConfiguredError
from ..utils.validators import split_path
from .base import Callback, RealtimeStore, Subscription, safe_call

logger = logging.getLogger(__name__)

APP_NAME = "weblock"

RULES_HINT = """Make sure your Firebase database rules allow read/write access.
Recommended rules for testing:
{
  "rules": {
    ".read": true,
    ".write": true
  }
}"""


# ----------------------------------------------------------------------
# Listener event folding
# ----------------------------------------------------------------------
def _prune(value: Any) -> Any:
    """Drop None leaves and empty dicts, the way the database stores them."""
    if isinstance(value, dict):
        pruned = {}
        for key, child in value.items():
            child = _prune(child)
            if child is not None:
                pruned[str(key)] = child
        return pruned or None
    return value


def _set_in(tree: Any, segments: List[str], value: Any) -> Any:
    if not segments:
        return _prune(copy.deepcopy(value))
    base = dict(tree) if isinstance(tree, dict) else {}
    head, rest = segments[0], segments[1:]
    child = _set_in(base.get(head), rest, value)
    if child is None:
        base.pop(head, None)
    else:
        base[head] = child
    return base or None


def _segments(path: str) -> List[str]:
    return [s for s in (path or "").split("/") if s]


def apply_event(snapshot: Any, event_type: str, path: str, data: Any) -> Any:
    """
    Fold one streaming event into the cached value of a listened reference.

    `put` replaces the value at the event path (relative to the listened
    reference); `patch` updates each child key of `data` under that path.
    """
    segments = _segments(path)
    if event_type == "put":
        return _set_in(snapshot, segments, data)
    if event_type == "patch":
        for key, value in (data or {}).items():
            snapshot = _set_in(snapshot, segments + _segments(key), value)
        return snapshot
    logger.debug("Ignoring %s event at %s", event_type, path)
    return snapshot


# ----------------------------------------------------------------------
# Store
# ----------------------------------------------------------------------
class FirebaseStore(RealtimeStore):
    """RealtimeStore over the Firebase Admin SDK."""

    backend = "firebase"

    def __init__(self, app):
        super().__init__()
        self.app = app
        self._listeners: List[Any] = []
        self._listeners_lock = threading.Lock()
        self._check_connection()

    @classmethod
    def connect(cls, db_url: str, credentials_path: str) -> "FirebaseStore":
        """Initialise the Admin SDK app from a service account file."""
        if not db_url or not credentials_path:
            raise StoreNotConfiguredError("FIREBASE_DB_URL and FIREBASE_CREDENTIALS are required")
        if not os.path.exists(credentials_path):
            raise StoreNotConfiguredError(f"Credentials file not found: {credentials_path}")

        logger.info("Initializing Firebase with databaseURL=%s", db_url)
        try:
            cred = credentials.Certificate(credentials_path)
            app = firebase_admin.initialize_app(cred, {"databaseURL": db_url}, name=APP_NAME)
        except (ValueError, IOError) as e:
            raise StoreNotConfiguredError(f"Firebase initialization error: {e}") from e
        logger.info("Firebase initialized successfully")
        try:
            return cls(app)
        except StoreAuthError as e:
            firebase_admin.delete_app(app)
            raise StoreNotConfiguredError(f"Firebase credentials unusable: {e}") from e

    def _ref(self, path: str):
        segments = split_path(path)
        return db.reference("/" + "/".join(segments), app=self.app)

    def _call(self, action: str, fn: Callable[[], Any]) -> Any:
        try:
            result = fn()
        except FirebaseError as e:
            self._set_connected(False)
            raise StoreError(f"{action} failed: {e}") from e
        except GoogleAuthError as e:
            # the service account token could not be fetched
            self._set_connected(False)
            raise StoreAuthError(f"{action} failed: {e}") from e
        except ValueError as e:
            raise InvalidPathError(f"{action} rejected: {e}") from e
        self._set_connected(True)
        return result

    def _check_connection(self) -> None:
        try:
            self._call("Connection check", lambda: self._ref("/").get(shallow=True))
            logger.info("Connected to Firebase Realtime Database")
        except StoreAuthError:
            raise
        except StoreError as e:
            logger.warning("Disconnected from Firebase Realtime Database: %s", e)
            logger.warning(RULES_HINT)

    # ---- RealtimeStore ----
    def subscribe(self, path: str, callback: Callback) -> Subscription:
        ref = self._ref(path)
        state = {"value": None}
        lock = threading.Lock()

        def on_event(event):
            # runs on the SDK listener thread
            with lock:
                state["value"] = apply_event(state["value"], event.event_type, event.path, event.data)
                safe_call(callback, copy.deepcopy(state["value"]))

        registration = self._call("Subscribe", lambda: ref.listen(on_event))
        with self._listeners_lock:
            self._listeners.append(registration)

        def closer():
            with self._listeners_lock:
                if registration in self._listeners:
                    self._listeners.remove(registration)
            registration.close()

        return Subscription(closer)

    def read(self, path: str) -> Any:
        ref = self._ref(path)
        return self._call("Read", ref.get)

    def write(self, path: str, value: Any) -> None:
        ref = self._ref(path)
        value = _prune(copy.deepcopy(value))
        if value is None:
            self._call("Delete", ref.delete)
        else:
            self._call("Write", lambda: ref.set(value))

    def write_if_absent(self, path: str, value: Any) -> bool:
        ref = self._ref(path)
        created = False

        def update(current):
            nonlocal created
            created = current is None
            return value if current is None else current

        self._call("Transaction", lambda: ref.transaction(update))
        return created

    def remove(self, path: str) -> None:
        ref = self._ref(path)
        self._call("Delete", ref.delete)

    def close(self) -> None:
        with self._listeners_lock:
            listeners, self._listeners = self._listeners, []
        for registration in listeners:
            registration.close()
        firebase_admin.delete_app(self.app)
