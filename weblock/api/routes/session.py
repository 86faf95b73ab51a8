# =======================================================================================
# weblock/api/routes/session.py - Live Lock Session over WebSocket
# =======================================================================================
import asyncio
import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ...services.lock_session import LockSession
from ..dependencies import create_lock_session

router = APIRouter()
logger = logging.getLogger(__name__)


async def _pump(websocket: WebSocket, session: LockSession) -> None:
    """Forward session pushes to the page until the socket goes away."""
    try:
        while True:
            message = await session.next_message()
            await websocket.send_json(message)
    except WebSocketDisconnect:
        logger.debug("Page went away while sending")


@router.websocket("/ws")
async def lock_session(websocket: WebSocket):
    """One page load = one session with its own lock state."""
    await websocket.accept()
    session = create_lock_session(websocket)
    await session.start()
    sender = asyncio.create_task(_pump(websocket, session))
    logger.info("Lock session opened")

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                payload = json.loads(raw)
            except ValueError:
                payload = None
            await session.handle(payload)
    except WebSocketDisconnect:
        logger.info("Lock session closed")
    finally:
        sender.cancel()
        await session.close()
