# =======================================================================================
# weblock/services/access_control.py - Core Access Logic
# =======================================================================================
from typing import NamedTuple, Optional

RELOCK_MESSAGE = "Lock Re-engaged"


class AccessDecision(NamedTuple):
    granted: bool
    message: str
    name: Optional[str] = None


class AccessControlService:
    """Handles the lock / RFID decisions. Holds no state."""

    @staticmethod
    def check_access(rfid: str, name: Optional[str]) -> AccessDecision:
        """Grant iff a name is registered for the RFID at the time of the scan."""
        if name:
            return AccessDecision(True, f"Access Granted: RFID {rfid} - {name}", name)
        return AccessDecision(False, f"Access Denied: Unknown RFID {rfid}")

    @staticmethod
    def lock_message(locked: bool) -> str:
        return "Lock Engaged" if locked else "Lock Disengaged"

    @staticmethod
    def lock_description(locked: bool) -> str:
        return f"The lock is now {'locked' if locked else 'unlocked'}."
