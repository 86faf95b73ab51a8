# =======================================================================================
# weblock/stores/base.py - Realtime Store Interface
# =======================================================================================
import copy
import itertools
import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Tuple

from ..utils.exceptions import InvalidPathError
from ..utils.validators import is_valid_key, split_path

logger = logging.getLogger(__name__)

Callback = Callable[[Any], None]
Leaves = Dict[Tuple[str, ...], Any]


class Subscription:
    """Handle returned by `subscribe`; `close()` stops delivery."""

    def __init__(self, closer: Callable[[], None]):
        self._closer = closer
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._closer()


class RealtimeStore(ABC):
    """
    Path addressed document store with live subscriptions.

    Values follow the hosted realtime database model: a path holds either a
    leaf (str/int/float/bool/list) or a tree of dicts. Writing `None` or an
    empty dict removes the path.
    """

    backend: str = "abstract"
    persistent: bool = True

    def __init__(self):
        self._connected = False
        self._connection_lock = threading.Lock()
        self._connection_listeners: Dict[int, Callback] = {}
        self._ids = itertools.count(1)

    # ------------------------------------------------------------------
    # Liveness
    # ------------------------------------------------------------------
    @property
    def connected(self) -> bool:
        return self._connected

    def subscribe_connection(self, callback: Callback) -> Subscription:
        """Deliver the current liveness flag, then every change of it."""
        with self._connection_lock:
            sub_id = next(self._ids)
            self._connection_listeners[sub_id] = callback
            current = self._connected
        callback(current)
        return Subscription(lambda: self._drop_connection_listener(sub_id))

    def _drop_connection_listener(self, sub_id: int) -> None:
        with self._connection_lock:
            self._connection_listeners.pop(sub_id, None)

    def _set_connected(self, value: bool) -> None:
        with self._connection_lock:
            if self._connected == value:
                return
            self._connected = value
            listeners = list(self._connection_listeners.values())
        logger.info("%s store %s", self.backend, "connected" if value else "disconnected")
        for callback in listeners:
            safe_call(callback, value)

    # ------------------------------------------------------------------
    # Data operations
    # ------------------------------------------------------------------
    @abstractmethod
    def subscribe(self, path: str, callback: Callback) -> Subscription:
        """Deliver the current value at `path` now and after every change."""

    @abstractmethod
    def read(self, path: str) -> Any:
        """One-shot read. Returns None when nothing is stored at `path`."""

    @abstractmethod
    def write(self, path: str, value: Any) -> None:
        """Set/overwrite the value at `path`."""

    @abstractmethod
    def write_if_absent(self, path: str, value: Any) -> bool:
        """Write only when `path` is empty. Returns True when written."""

    @abstractmethod
    def remove(self, path: str) -> None:
        """Delete `path`. Removing an absent path is not an error."""

    def close(self) -> None:
        pass


# ----------------------------------------------------------------------
# Leaf helpers shared by the local backends
# ----------------------------------------------------------------------
def flatten(value: Any, prefix: Tuple[str, ...]) -> Leaves:
    """Turn a value written at `prefix` into {leaf path: leaf value}."""
    if value is None:
        return {}
    if isinstance(value, dict):
        leaves: Leaves = {}
        for key, child in value.items():
            key = str(key)
            if not is_valid_key(key):
                raise InvalidPathError(f"Invalid key {key!r}")
            leaves.update(flatten(child, prefix + (key,)))
        return leaves
    return {prefix: copy.deepcopy(value)}


def unflatten(leaves: Leaves, prefix: Tuple[str, ...]) -> Any:
    """Rebuild the value stored at `prefix` from leaf rows at/below it."""
    if prefix in leaves:
        return copy.deepcopy(leaves[prefix])

    depth = len(prefix)
    tree: Dict[str, Any] = {}
    for path, value in leaves.items():
        if len(path) <= depth or path[:depth] != prefix:
            continue
        node = tree
        for segment in path[depth:-1]:
            node = node.setdefault(segment, {})
        node[path[-1]] = copy.deepcopy(value)
    return tree or None


def is_related(a: Tuple[str, ...], b: Tuple[str, ...]) -> bool:
    """True when one path equals or contains the other."""
    n = min(len(a), len(b))
    return a[:n] == b[:n]


class LeafStore(RealtimeStore):
    """
    Base for backends that keep one row per leaf path and fan changes out to
    in-process subscribers.

    Subscriber callbacks run while the store lock is held so that values are
    delivered in write order; callbacks must hand work off rather than block.
    """

    def __init__(self):
        super().__init__()
        self._lock = threading.RLock()
        self._subscribers: Dict[int, Tuple[Tuple[str, ...], Callback]] = {}

    # ---- storage primitives ----
    @abstractmethod
    def _load(self, segments: Tuple[str, ...]) -> Leaves:
        """Return every leaf at or below `segments`."""

    @abstractmethod
    def _replace(self, segments: Tuple[str, ...], leaves: Leaves) -> None:
        """Drop leaves at/below `segments` and its leaf ancestors, insert `leaves`."""

    # ---- RealtimeStore ----
    def subscribe(self, path: str, callback: Callback) -> Subscription:
        segments = tuple(split_path(path))
        with self._lock:
            sub_id = next(self._ids)
            self._subscribers[sub_id] = (segments, callback)
            safe_call(callback, unflatten(self._load(segments), segments))
        logger.debug("Subscribed %s to /%s", sub_id, "/".join(segments))
        return Subscription(lambda: self._unsubscribe(sub_id))

    def _unsubscribe(self, sub_id: int) -> None:
        with self._lock:
            self._subscribers.pop(sub_id, None)

    def read(self, path: str) -> Any:
        segments = tuple(split_path(path))
        with self._lock:
            return unflatten(self._load(segments), segments)

    def write(self, path: str, value: Any) -> None:
        segments = tuple(split_path(path))
        leaves = flatten(value, segments)
        with self._lock:
            self._replace(segments, leaves)
            self._notify(segments)

    def write_if_absent(self, path: str, value: Any) -> bool:
        segments = tuple(split_path(path))
        leaves = flatten(value, segments)
        with self._lock:
            if self._load(segments):
                return False
            self._replace(segments, leaves)
            self._notify(segments)
            return True

    def remove(self, path: str) -> None:
        self.write(path, None)

    def _notify(self, changed: Tuple[str, ...]) -> None:
        for segments, callback in list(self._subscribers.values()):
            if is_related(segments, changed):
                safe_call(callback, unflatten(self._load(segments), segments))


def safe_call(callback: Callback, value: Any) -> None:
    try:
        callback(value)
    except Exception:
        logger.exception("Store subscriber raised")
