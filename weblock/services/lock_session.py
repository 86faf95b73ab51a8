# =======================================================================================
# weblock/services/lock_session.py - Per-page Lock Session
# =======================================================================================
import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError
from starlette.concurrency import run_in_threadpool

from ..models.enums import PushType, StorePath, ToastVariant
from ..models.schemas import ClientMessage, Toast, UserRecord
from ..stores.base import RealtimeStore, Subscription
from ..utils.exceptions import StoreError, UserConflictError, ValidationError
from .access_control import RELOCK_MESSAGE, AccessControlService, AccessDecision
from .log_service import LogService, project_log_feed
from .user_service import UserService

logger = logging.getLogger(__name__)


class LockSession:
    """
    State and handlers behind one open dashboard page.

    The lock boolean lives here and nowhere else: every page load gets a new
    session that starts locked. Users and logs come from store subscriptions
    and are pushed to the page through `next_message()`.
    """

    def __init__(
        self,
        store: RealtimeStore,
        user_service: UserService,
        log_service: LogService,
        relock_delay: float = 5.0,
        log_limit: Optional[int] = None,
    ):
        self.store = store
        self.user_service = user_service
        self.log_service = log_service
        self.relock_delay = relock_delay
        self.log_limit = log_limit or None

        self.locked = True
        self._outbox: "asyncio.Queue[Dict[str, Any]]" = asyncio.Queue()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._relock_task: Optional["asyncio.Task[None]"] = None
        self._subscriptions: List[Subscription] = []
        self._closed = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def start(self) -> None:
        """Push the initial lock state and subscribe to the store."""
        self._loop = asyncio.get_running_loop()
        self._push_lock()
        self._subscriptions.append(
            await run_in_threadpool(self.store.subscribe_connection, self._threadsafe(self._on_connection))
        )
        for path, handler in (
            (StorePath.USERS.value, self._on_users),
            (StorePath.LOGS.value, self._on_logs),
        ):
            try:
                subscription = await run_in_threadpool(self.store.subscribe, path, self._threadsafe(handler))
            except StoreError as e:
                logger.error("Error subscribing to %s: %s", path, e)
                self._toast("Error", f"Failed to load {path}: {e}", "destructive")
                continue
            self._subscriptions.append(subscription)

    async def close(self) -> None:
        self._closed = True
        self._cancel_relock()
        subscriptions, self._subscriptions = self._subscriptions, []
        for subscription in subscriptions:
            await run_in_threadpool(subscription.close)

    async def next_message(self) -> Dict[str, Any]:
        """Wait for the next message to push to the page."""
        return await self._outbox.get()

    @property
    def relock_pending(self) -> bool:
        return self._relock_task is not None

    # ------------------------------------------------------------------
    # Store pushes
    # ------------------------------------------------------------------
    def _threadsafe(self, handler: Callable[[Any], None]) -> Callable[[Any], None]:
        # store callbacks may come from listener or worker threads
        loop = self._loop

        def deliver(value: Any) -> None:
            if self._closed or loop.is_closed():
                return
            loop.call_soon_threadsafe(self._dispatch, handler, value)

        return deliver

    def _dispatch(self, handler: Callable[[Any], None], value: Any) -> None:
        if not self._closed:
            handler(value)

    def _on_users(self, value: Any) -> None:
        users = value if isinstance(value, dict) else {}
        self._push(PushType.USERS, users={rfid: str(name) for rfid, name in users.items()})

    def _on_logs(self, value: Any) -> None:
        feed = project_log_feed(value, self.log_limit)
        self._push(PushType.LOGS, logs=[entry.model_dump() for entry in feed])

    def _on_connection(self, connected: bool) -> None:
        self._push(
            PushType.CONNECTION,
            connected=bool(connected),
            persistent=self.store.persistent,
            backend=self.store.backend,
        )

    # ------------------------------------------------------------------
    # Page actions
    # ------------------------------------------------------------------
    async def handle(self, payload: Any) -> None:
        """Dispatch one action message from the page."""
        try:
            message = ClientMessage.model_validate(payload)
        except PydanticValidationError:
            logger.warning("Unsupported message from page: %r", payload)
            self._toast("Error", "Unsupported action.", "destructive")
            return

        if message.action == "toggle_lock":
            await self.toggle_lock()
        elif message.action == "submit_rfid":
            await self.submit_rfid(message.rfid)
        elif message.action == "add_user":
            await self.add_user(message.rfid, message.name)
        elif message.action == "delete_user":
            await self.delete_user(message.rfid, message.confirmed)

    async def toggle_lock(self) -> bool:
        """Invert the lock. A manual toggle always cancels a pending re-lock."""
        self._cancel_relock()
        self.locked = not self.locked
        self._push_lock()

        message = AccessControlService.lock_message(self.locked)
        await self._write_log(message)
        self._toast(message, AccessControlService.lock_description(self.locked))
        return self.locked

    async def submit_rfid(self, rfid: str) -> Optional[AccessDecision]:
        rfid = (rfid or "").strip()
        try:
            name = await run_in_threadpool(self.user_service.get_name, rfid)
        except StoreError as e:
            logger.error("Error verifying RFID %s: %s", rfid, e)
            self._toast("Error", f"Failed to verify RFID: {e}", "destructive")
            return None
        finally:
            self._push(PushType.CLEAR, fields=["rfid"])

        decision = AccessControlService.check_access(rfid, name)
        if decision.granted:
            self.locked = False
            self._push_lock()
            self._schedule_relock()
            await self._write_log(decision.message)
            self._toast("Access Granted", decision.message)
        else:
            await self._write_log(decision.message)
            self._toast("Access Denied", decision.message, "destructive")
        return decision

    async def add_user(self, rfid: str, name: str) -> Optional[UserRecord]:
        try:
            user = await run_in_threadpool(self.user_service.add_user, rfid, name)
        except (ValidationError, UserConflictError) as e:
            self._toast("Error", str(e), "destructive")
            return None
        except StoreError as e:
            logger.error("Error adding user: %s", e)
            self._toast("Error", f"Failed to add user: {e}", "destructive")
            return None

        await self._write_log(UserService.added_message(user))
        self._toast("User Added", f"User {user.name} added with RFID {user.rfid}.")
        self._push(PushType.CLEAR, fields=["rfid", "name"])
        return user

    async def delete_user(self, rfid: str, confirmed: bool) -> Optional[str]:
        if not confirmed:
            self._toast("Error", "Deleting a user must be confirmed.", "destructive")
            return None
        try:
            rfid = await run_in_threadpool(self.user_service.delete_user, rfid)
        except (ValidationError, StoreError) as e:
            logger.error("Error deleting user %r: %s", rfid, e)
            self._toast("Error", f"Failed to delete user: {e}", "destructive")
            return None

        await self._write_log(UserService.deleted_message(rfid))
        self._toast("User Deleted", f"User with RFID {rfid} has been deleted.")
        return rfid

    # ------------------------------------------------------------------
    # Re-lock timer
    # ------------------------------------------------------------------
    def _schedule_relock(self) -> None:
        # only the most recent grant keeps a live timer
        self._cancel_relock()
        self._relock_task = asyncio.create_task(self._relock_after(self.relock_delay))

    def _cancel_relock(self) -> None:
        if self._relock_task is not None:
            self._relock_task.cancel()
            self._relock_task = None

    async def _relock_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        self._relock_task = None
        self.locked = True
        self._push_lock()
        await self._write_log(RELOCK_MESSAGE)
        self._toast(RELOCK_MESSAGE, "The lock has been automatically re-engaged.")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    async def _write_log(self, message: str) -> bool:
        try:
            await run_in_threadpool(self.log_service.write_log, message)
        except StoreError as e:
            logger.error("Error writing log %r: %s", message, e)
            self._toast("Error", f"Failed to write log: {e}", "destructive")
            return False
        return True

    def _push(self, kind: PushType, **fields: Any) -> None:
        self._outbox.put_nowait({"type": kind.value, **fields})

    def _push_lock(self) -> None:
        self._push(PushType.LOCK, locked=self.locked)

    def _toast(self, title: str, description: str, variant: ToastVariant = "default") -> None:
        toast = Toast(title=title, description=description, variant=variant)
        self._push(PushType.TOAST, **toast.model_dump())
