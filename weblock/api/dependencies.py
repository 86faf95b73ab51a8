# =======================================================================================
# weblock/api/dependencies.py - FastAPI Dependencies
# =======================================================================================
from fastapi import Request
from starlette.requests import HTTPConnection

from ..config import Config
from ..services.lock_session import LockSession
from ..services.log_service import LogService
from ..services.user_service import UserService
from ..stores.base import RealtimeStore

def get_settings(request: Request) -> Config:
    return request.app.state.settings

def get_store(request: Request) -> RealtimeStore:
    """Dependency to get the process-wide store client."""
    return request.app.state.store

def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service

def get_log_service(request: Request) -> LogService:
    return request.app.state.log_service

def create_lock_session(conn: HTTPConnection) -> LockSession:
    """New lock session for one WebSocket connection."""
    state = conn.app.state
    return LockSession(
        state.store,
        state.user_service,
        state.log_service,
        relock_delay=state.settings.RELOCK_DELAY_SECONDS,
        log_limit=state.settings.LOG_FEED_LIMIT,
    )
