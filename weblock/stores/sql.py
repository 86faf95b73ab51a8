# =======================================================================================
# weblock/stores/sql.py - Self-hosted Store on SQLAlchemy
# =======================================================================================
import logging
from typing import Tuple

from sqlalchemy import delete, insert, or_, select
from sqlalchemy.exc import SQLAlchemyError

from ..database import DatabaseManager, nodes
from ..utils.exceptions import StoreError
from .base import LeafStore, Leaves

logger = logging.getLogger(__name__)


def _key(segments: Tuple[str, ...]) -> str:
    return "/".join(segments)


class SqlStore(LeafStore):
    """
    Realtime store backed by a SQL table of leaf paths.

    Subscriptions are served in-process, so live updates reach every session
    of this server process; other processes only see changes on their next read.
    """

    backend = "sql"

    def __init__(self, db_manager: DatabaseManager):
        super().__init__()
        self.db = db_manager
        try:
            self.db.create_schema()
            self.db.ping()
        except SQLAlchemyError as e:
            raise StoreError(f"Database unavailable: {e}") from e
        self._set_connected(True)

    def _path_filter(self, segments: Tuple[str, ...]):
        if not segments:
            return None
        key = _key(segments)
        return or_(nodes.c.path == key, nodes.c.path.startswith(key + "/", autoescape=True))

    def _load(self, segments: Tuple[str, ...]) -> Leaves:
        query = select(nodes.c.path, nodes.c.value)
        condition = self._path_filter(segments)
        if condition is not None:
            query = query.where(condition)
        try:
            with self.db.get_connection() as conn:
                rows = conn.execute(query).all()
        except SQLAlchemyError as e:
            self._set_connected(False)
            raise StoreError(f"Read failed: {e}") from e
        self._set_connected(True)
        return {tuple(row.path.split("/")): row.value for row in rows}

    def _replace(self, segments: Tuple[str, ...], leaves: Leaves) -> None:
        ancestors = [_key(segments[:i]) for i in range(1, len(segments))]
        condition = self._path_filter(segments)
        try:
            with self.db.get_connection() as conn:
                stmt = delete(nodes)
                if condition is not None:
                    stmt = stmt.where(condition)
                conn.execute(stmt)
                if ancestors:
                    conn.execute(delete(nodes).where(nodes.c.path.in_(ancestors)))
                if leaves:
                    conn.execute(
                        insert(nodes),
                        [{"path": _key(path), "value": value} for path, value in leaves.items()],
                    )
        except SQLAlchemyError as e:
            self._set_connected(False)
            raise StoreError(f"Write failed: {e}") from e
        self._set_connected(True)
        logger.debug("Replaced /%s with %d leaves", _key(segments), len(leaves))

    def close(self) -> None:
        self.db.dispose()
