# =======================================================================================
# weblock/services/__init__.py - Services Package
# =======================================================================================
from .access_control import AccessControlService, AccessDecision
from .log_service import LogService, project_log_feed
from .user_service import UserService
from .lock_session import LockSession

__all__ = [
    "AccessControlService", "AccessDecision", "LogService", "project_log_feed",
    "UserService", "LockSession",
]
