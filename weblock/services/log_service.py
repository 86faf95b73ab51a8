# =======================================================================================
# weblock/services/log_service.py - Access Log Service
# =======================================================================================
import logging
import threading
import time
from typing import Any, Callable, List, Optional

from pydantic import ValidationError as PydanticValidationError

from ..models.enums import StorePath
from ..models.schemas import LogEntry
from ..stores.base import RealtimeStore

logger = logging.getLogger(__name__)


def _key_order(key: str) -> int:
    try:
        return int(key)
    except ValueError:
        return -1


def project_log_feed(raw: Any, limit: Optional[int] = None) -> List[LogEntry]:
    """
    Project the raw logs/ snapshot into the feed shown on the dashboard.

    Entries are ordered newest first by their timestamp field (key breaks
    ties), whatever order the store delivered them in. Entries that do not
    look like {message, timestamp} are skipped.
    """
    if not isinstance(raw, dict):
        return []

    entries = []
    for key, value in raw.items():
        try:
            entry = LogEntry.model_validate(value)
        except PydanticValidationError:
            logger.debug("Skipping malformed log entry %s: %r", key, value)
            continue
        entries.append((entry.timestamp, _key_order(str(key)), entry))

    entries.sort(key=lambda item: (item[0], item[1]), reverse=True)
    feed = [entry for _, _, entry in entries]
    if limit:
        feed = feed[:limit]
    return feed


class LogService:
    """Appends access log entries to the store."""

    def __init__(self, store: RealtimeStore, clock: Callable[[], float] = time.time):
        self.store = store
        self._clock = clock
        self._last_key = 0
        self._key_lock = threading.Lock()

    def next_key(self) -> int:
        """Millisecond timestamp, bumped so that keys strictly increase."""
        with self._key_lock:
            key = max(int(self._clock() * 1000), self._last_key + 1)
            self._last_key = key
            return key

    def write_log(self, message: str) -> LogEntry:
        """Append a log entry. Raises StoreError when the write fails."""
        key = self.next_key()
        entry = LogEntry(message=message, timestamp=key)
        self.store.write(f"{StorePath.LOGS.value}/{key}", entry.model_dump())
        logger.info("Log written: %s", message)
        return entry

    def get_feed(self, limit: Optional[int] = None) -> List[LogEntry]:
        return project_log_feed(self.store.read(StorePath.LOGS.value), limit)
