import asyncio

import pytest
from fastapi.testclient import TestClient

from weblock.config import Config
from weblock.main import create_app
from weblock.services.lock_session import LockSession
from weblock.services.log_service import LogService
from weblock.services.user_service import UserService
from weblock.stores.memory import MemoryStore


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def settings():
    s = Config()
    s.STORE_BACKEND = "memory"
    s.RELOCK_DELAY_SECONDS = 0.2
    s.USER_CONFLICT_POLICY = "overwrite"
    s.LOG_FEED_LIMIT = 0
    return s


@pytest.fixture
def client(settings, store):
    app = create_app(settings, store)
    with TestClient(app) as c:
        yield c


def make_session(store, delay=0.05, user_service=None):
    return LockSession(
        store,
        user_service or UserService(store),
        LogService(store),
        relock_delay=delay,
    )


async def drain(session, settle=0.02):
    """Collect everything the session has pushed so far."""
    await asyncio.sleep(settle)
    messages = []
    while True:
        try:
            messages.append(await asyncio.wait_for(session.next_message(), timeout=0.01))
        except asyncio.TimeoutError:
            return messages


def log_messages(store):
    return [entry.message for entry in LogService(store).get_feed()]
