# =======================================================================================
# weblock/utils/validators.py - Validation Helpers
# =======================================================================================
from typing import List, Tuple

from .exceptions import InvalidPathError, ValidationError

# Characters the hosted realtime database refuses inside a key
FORBIDDEN_KEY_CHARS = set(".$#[]/")


def is_valid_key(key: str) -> bool:
    """True when `key` can be used as a single store path segment."""
    if not key:
        return False
    for ch in key:
        if ch in FORBIDDEN_KEY_CHARS or ord(ch) < 32 or ord(ch) == 127:
            return False
    return True


def split_path(path: str) -> List[str]:
    """Split a slash separated store path into its segments.

    Leading/trailing slashes are ignored, so "", "/" and "users/" are all
    accepted. Empty inner segments ("users//1") are rejected.
    """
    stripped = (path or "").strip("/")
    if not stripped:
        return []
    segments = stripped.split("/")
    for segment in segments:
        if not is_valid_key(segment):
            raise InvalidPathError(f"Invalid path segment {segment!r} in {path!r}")
    return segments


class InputValidator:
    """Validates user supplied RFID / name values."""

    @staticmethod
    def normalize_rfid(rfid: str) -> str:
        """Trim and check an RFID, raising ValidationError when unusable."""
        value = (rfid or "").strip()
        if not value:
            raise ValidationError("RFID cannot be empty.")
        if not is_valid_key(value):
            raise ValidationError(
                f"RFID {value!r} contains characters that are not allowed (. $ # [ ] /)."
            )
        return value

    @staticmethod
    def normalize_user(rfid: str, name: str) -> Tuple[str, str]:
        """Validate an add-user pair. Both values are required."""
        clean_name = (name or "").strip()
        if not (rfid or "").strip() or not clean_name:
            raise ValidationError("RFID and Name cannot be empty.")
        return InputValidator.normalize_rfid(rfid), clean_name
