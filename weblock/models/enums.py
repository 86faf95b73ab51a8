# =======================================================================================
# weblock/models/enums.py - Enums and Constants
# =======================================================================================
from enum import Enum
from typing import Literal

# Type aliases for better type hints
StoreBackend = Literal["firebase", "sql", "memory"]
ToastVariant = Literal["default", "destructive"]
ClientAction = Literal["toggle_lock", "submit_rfid", "add_user", "delete_user"]

class ConflictPolicy(Enum):
    """What add-user does when the RFID is already registered."""
    OVERWRITE = "overwrite"
    REJECT = "reject"

class StorePath(Enum):
    """Top level collections in the realtime store."""
    USERS = "users"
    LOGS = "logs"

class PushType(Enum):
    """Message types pushed from a lock session to its page."""
    LOCK = "lock"
    USERS = "users"
    LOGS = "logs"
    CONNECTION = "connection"
    TOAST = "toast"
    CLEAR = "clear"
