# =======================================================================================
# weblock/services/user_service.py - User Management Service
# =======================================================================================
import logging
from typing import Dict, Optional

from ..models.enums import ConflictPolicy, StorePath
from ..models.schemas import UserRecord
from ..stores.base import RealtimeStore
from ..utils.exceptions import UserConflictError
from ..utils.validators import InputValidator, is_valid_key

logger = logging.getLogger(__name__)


def _user_path(rfid: str) -> str:
    return f"{StorePath.USERS.value}/{rfid}"


class UserService:
    """Handles the RFID -> name mapping stored under users/."""

    def __init__(self, store: RealtimeStore, conflict_policy: ConflictPolicy = ConflictPolicy.OVERWRITE):
        self.store = store
        self.conflict_policy = conflict_policy

    @staticmethod
    def added_message(user: UserRecord) -> str:
        return f"User Added: RFID {user.rfid} - {user.name}"

    @staticmethod
    def deleted_message(rfid: str) -> str:
        return f"User Deleted: RFID {rfid}"

    def list_users(self) -> Dict[str, str]:
        data = self.store.read(StorePath.USERS.value)
        if not isinstance(data, dict):
            return {}
        return {rfid: str(name) for rfid, name in data.items()}

    def get_name(self, rfid: str) -> Optional[str]:
        """Look the RFID up in the store right now. Unusable RFIDs are unknown."""
        rfid = (rfid or "").strip()
        if not is_valid_key(rfid):
            return None
        name = self.store.read(_user_path(rfid))
        # a nested tree under users/{rfid} is not a name
        if name is None or isinstance(name, dict):
            return None
        return str(name)

    def add_user(self, rfid: str, name: str) -> UserRecord:
        """
        Register (or re-register) an RFID.

        Under the overwrite policy an existing RFID silently gets the new name;
        under the reject policy it raises UserConflictError and nothing changes.
        """
        rfid, name = InputValidator.normalize_user(rfid, name)
        path = _user_path(rfid)

        if self.conflict_policy is ConflictPolicy.REJECT:
            if not self.store.write_if_absent(path, name):
                raise UserConflictError(f"RFID {rfid} is already assigned.")
        else:
            self.store.write(path, name)

        logger.info("User added successfully: %s %s", rfid, name)
        return UserRecord(rfid=rfid, name=name)

    def delete_user(self, rfid: str) -> str:
        """Remove an RFID. Deleting an unknown RFID is not an error."""
        rfid = InputValidator.normalize_rfid(rfid)
        self.store.remove(_user_path(rfid))
        logger.info("User deleted successfully: %s", rfid)
        return rfid
