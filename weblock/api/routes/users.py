# =======================================================================================
# weblock/api/routes/users.py - User Management Endpoints
# =======================================================================================
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from starlette.concurrency import run_in_threadpool

from ...models.schemas import CreateUserRequest, UserResponse, UsersResponse
from ...services.log_service import LogService
from ...services.user_service import UserService
from ...utils.exceptions import StoreError, UserConflictError, ValidationError
from ..dependencies import get_log_service, get_user_service

router = APIRouter()
logger = logging.getLogger(__name__)


async def _log_quietly(log_service: LogService, message: str) -> bool:
    try:
        await run_in_threadpool(log_service.write_log, message)
    except StoreError as e:
        logger.error("Error writing log %r: %s", message, e)
        return False
    return True


@router.get("/users", response_model=UsersResponse)
async def list_users(user_service: UserService = Depends(get_user_service)):
    try:
        users = await run_in_threadpool(user_service.list_users)
    except StoreError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    return UsersResponse(users=users)


@router.post("/users", response_model=UserResponse)
async def add_user(
    request: CreateUserRequest,
    user_service: UserService = Depends(get_user_service),
    log_service: LogService = Depends(get_log_service),
):
    """Register an RFID (overwrites the name unless the reject policy is configured)."""
    try:
        user = await run_in_threadpool(user_service.add_user, request.rfid, request.name)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except UserConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except StoreError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=f"Failed to add user: {e}")

    logged = await _log_quietly(log_service, UserService.added_message(user))
    return UserResponse(
        success=True,
        message=f"User {user.name} added with RFID {user.rfid}.",
        user=user,
        logged=logged,
    )


@router.delete("/users/{rfid}", response_model=UserResponse)
async def delete_user(
    rfid: str,
    confirm: bool = Query(False, description="Must be true; deletes cannot be undone"),
    user_service: UserService = Depends(get_user_service),
    log_service: LogService = Depends(get_log_service),
):
    if not confirm:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Deleting a user must be confirmed (confirm=true).",
        )
    try:
        rfid = await run_in_threadpool(user_service.delete_user, rfid)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except StoreError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=f"Failed to delete user: {e}")

    logged = await _log_quietly(log_service, UserService.deleted_message(rfid))
    return UserResponse(
        success=True,
        message=f"User with RFID {rfid} has been deleted.",
        user=None,
        logged=logged,
    )
