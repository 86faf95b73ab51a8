# =======================================================================================
# weblock/utils/__init__.py - Utils Package
# =======================================================================================
from .exceptions import *
from .validators import *

__all__ = [
    "WebLockError", "ValidationError", "UserConflictError", "StoreError",
    "StoreNotConfiguredError", "StoreAuthError", "InvalidPathError", "InputValidator",
    "is_valid_key", "split_path",
]
