# =======================================================================================
# weblock/utils/exceptions.py - Custom Exceptions
# =======================================================================================
class WebLockError(Exception):
    """Base exception for the lock dashboard."""
    pass

class ValidationError(WebLockError):
    """Raised when user input is rejected before any write."""
    pass

class UserConflictError(WebLockError):
    """Raised when an RFID is already registered and overwrites are disabled."""
    pass

class StoreError(WebLockError):
    """Raised when the realtime store fails to read or write."""
    pass

class StoreNotConfiguredError(StoreError):
    """Raised when the selected store backend is missing its configuration."""
    pass

class InvalidPathError(StoreError):
    """Raised when a store path contains a forbidden segment."""
    pass

class StoreAuthError(StoreError):
    """Raised when the store rejects or cannot verify the service credentials."""
    pass
