# =======================================================================================
# weblock/api/routes/dashboard.py - Dashboard Page, Logs and Health
# =======================================================================================
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import HTMLResponse
from starlette.concurrency import run_in_threadpool

from ...config import Config
from ...utils.exceptions import StoreError
from ...models.schemas import HealthResponse, LogsResponse
from ...services.log_service import LogService
from ...stores.base import RealtimeStore
from ...ui import render_dashboard
from ..dependencies import get_log_service, get_settings, get_store

router = APIRouter()


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
def dashboard_page(request: Request):
    return render_dashboard(request)


@router.get("/api/logs", response_model=LogsResponse)
async def get_logs(
    limit: Optional[int] = Query(None, ge=1),
    log_service: LogService = Depends(get_log_service),
    settings: Config = Depends(get_settings),
):
    """Log feed, newest first."""
    try:
        logs = await run_in_threadpool(log_service.get_feed, limit or settings.LOG_FEED_LIMIT or None)
    except StoreError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    return LogsResponse(logs=logs)


@router.get("/api/health", response_model=HealthResponse, tags=["health"])
def api_health(store: RealtimeStore = Depends(get_store)):
    return HealthResponse(
        status="ok" if store.connected and store.persistent else "degraded",
        backend=store.backend,
        connected=store.connected,
        persistent=store.persistent,
    )
