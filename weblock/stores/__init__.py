# =======================================================================================
# weblock/stores/__init__.py - Store Selection
# =======================================================================================
import logging

from ..config import Config
from ..database import DatabaseManager
from ..utils.exceptions import StoreError, StoreNotConfiguredError
from .base import RealtimeStore, Subscription
from .firebase import FirebaseStore
from .memory import MemoryStore
from .sql import SqlStore

logger = logging.getLogger(__name__)

BACKENDS = ("firebase", "sql", "memory")


def _open_backend(settings: Config) -> RealtimeStore:
    backend = settings.STORE_BACKEND
    if backend == "memory":
        return MemoryStore()
    if backend == "firebase":
        return FirebaseStore.connect(settings.FIREBASE_DB_URL, settings.FIREBASE_CREDENTIALS)
    if backend == "sql":
        if not settings.DB_URL:
            raise StoreNotConfiguredError("DB_URL is required for the sql backend")
        return SqlStore(
            DatabaseManager(settings.DB_URL, settings.DB_POOL_SIZE, settings.DB_MAX_OVERFLOW)
        )
    raise StoreNotConfiguredError(f"Unknown STORE_BACKEND {backend!r}; expected one of {BACKENDS}")


def build_store(settings: Config) -> RealtimeStore:
    """
    Create the store once for the process.

    A missing or broken configuration never stops the app: it falls back to a
    local-only MemoryStore and says so in the log.
    """
    try:
        store = _open_backend(settings)
    except StoreError as e:
        logger.warning("%s - running in local-only mode, data will not be persisted", e)
        return MemoryStore()
    logger.info("Using %s store", store.backend)
    return store


__all__ = [
    "RealtimeStore", "Subscription", "FirebaseStore", "SqlStore", "MemoryStore", "build_store",
]
