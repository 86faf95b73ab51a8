# =======================================================================================
# weblock/main.py - FastAPI Application Entry Point
# =======================================================================================
import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .config import Config, config
from .logging_config import setup_logging
from .api.routes.dashboard import router as dashboard_router
from .api.routes.session import router as session_router
from .api.routes.users import router as users_router
from .models.enums import ConflictPolicy
from .services.log_service import LogService
from .services.user_service import UserService
from .stores import build_store
from .stores.base import RealtimeStore

logger = logging.getLogger(__name__)


def _conflict_policy(value: str) -> ConflictPolicy:
    try:
        return ConflictPolicy(value)
    except ValueError:
        logger.warning("Unknown USER_CONFLICT_POLICY %r, using overwrite", value)
        return ConflictPolicy.OVERWRITE


def create_app(settings: Optional[Config] = None, store: Optional[RealtimeStore] = None) -> FastAPI:
    settings = settings or config
    setup_logging(settings.LOG_LEVEL, settings.API_DEBUG)

    app = FastAPI(
        title="SecureWebLock",
        version=__version__,
        description="Electronic Lock Management System",
        debug=settings.API_DEBUG,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # One store client per process, handed to everything that needs it
    store = store or build_store(settings)
    app.state.settings = settings
    app.state.store = store
    app.state.log_service = LogService(store)
    app.state.user_service = UserService(store, _conflict_policy(settings.USER_CONFLICT_POLICY))

    # Routers
    app.include_router(dashboard_router, tags=["dashboard"])
    app.include_router(users_router, prefix="/api", tags=["users"])
    app.include_router(session_router, tags=["session"])

    @app.on_event("shutdown")
    async def shutdown_event():
        app.state.store.close()
        logger.info("Store closed")

    logger.info("SecureWebLock started with %s store", store.backend)
    return app


# Create app instance
app = create_app()


def run():
    """Console entry point."""
    import uvicorn

    uvicorn.run(app, host=config.API_HOST, port=config.API_PORT)
