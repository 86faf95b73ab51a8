# =======================================================================================
# weblock/models/__init__.py - Models Package
# =======================================================================================
from .schemas import *
from .enums import *

__all__ = [
    "LogEntry", "UserRecord", "CreateUserRequest", "UserResponse", "UsersResponse",
    "LogsResponse", "HealthResponse", "ClientMessage", "Toast",
    "StoreBackend", "ToastVariant", "ClientAction", "ConflictPolicy", "StorePath", "PushType",
]
