# =======================================================================================
# weblock/models/schemas.py - Pydantic Models
# =======================================================================================
from typing import Dict, List, Optional
from pydantic import BaseModel, Field
from .enums import ClientAction, StoreBackend, ToastVariant

# ========== Store records ==========
class LogEntry(BaseModel):
    """One access log record as stored under logs/{key}."""
    message: str
    timestamp: int = Field(..., description="Milliseconds since the epoch")

class UserRecord(BaseModel):
    """Authorized RFID -> display name mapping."""
    rfid: str
    name: str

# ========== REST ==========
class CreateUserRequest(BaseModel):
    """Add user request model."""
    rfid: str = Field("", description="RFID tag to assign")
    name: str = Field("", description="Display name")

class UserResponse(BaseModel):
    success: bool
    message: str
    user: Optional[UserRecord] = None
    logged: bool = True

class UsersResponse(BaseModel):
    users: Dict[str, str]

class LogsResponse(BaseModel):
    logs: List[LogEntry]

class HealthResponse(BaseModel):
    status: str                 # "ok" | "degraded"
    backend: StoreBackend
    connected: bool
    persistent: bool

# ========== WebSocket ==========
class ClientMessage(BaseModel):
    """Action sent by the dashboard page."""
    action: ClientAction
    rfid: str = ""
    name: str = ""
    confirmed: bool = False

class Toast(BaseModel):
    title: str
    description: str
    variant: ToastVariant = "default"
