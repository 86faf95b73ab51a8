# =======================================================================================
# weblock/config.py - Configuration Management
# =======================================================================================
import os
from typing import Optional
from dotenv import load_dotenv

load_dotenv()

def _env_float(name: str, default: float) -> float:
    """Helper to parse float environment variables."""
    v = os.getenv(name)
    try:
        return float(v) if v else default
    except ValueError:
        return default

def _env_optional(name: str) -> Optional[str]:
    v = os.getenv(name, "").strip()
    return v or None

class Config:
    def __init__(self):
        # Store backend: firebase | sql | memory
        self.STORE_BACKEND: str = os.getenv("STORE_BACKEND", "firebase").strip().lower()

        # Firebase Realtime Database
        self.FIREBASE_DB_URL: Optional[str] = _env_optional("FIREBASE_DB_URL")
        self.FIREBASE_CREDENTIALS: Optional[str] = _env_optional("FIREBASE_CREDENTIALS")

        # SQL Database
        self.DB_URL: Optional[str] = _env_optional("DB_URL")
        self.DB_POOL_SIZE: int = int(os.getenv("DB_POOL_SIZE", "10"))
        self.DB_MAX_OVERFLOW: int = int(os.getenv("DB_MAX_OVERFLOW", "20"))

        # API Settings
        self.API_DEBUG: bool = os.getenv("API_DEBUG", "false").lower() == "true"
        self.API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
        self.API_PORT: int = int(os.getenv("API_PORT", "8000"))
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

        # Lock behaviour
        self.RELOCK_DELAY_SECONDS: float = _env_float("RELOCK_DELAY_SECONDS", 5.0)
        # overwrite = last write wins, reject = refuse an RFID that is already registered
        self.USER_CONFLICT_POLICY: str = os.getenv("USER_CONFLICT_POLICY", "overwrite").strip().lower()
        self.LOG_FEED_LIMIT: int = int(os.getenv("LOG_FEED_LIMIT", "0"))

config = Config()
