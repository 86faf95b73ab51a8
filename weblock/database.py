# =======================================================================================
# weblock/database.py - Database Management
# =======================================================================================
from contextlib import contextmanager

from sqlalchemy import JSON, Column, MetaData, String, Table, create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import QueuePool

metadata = MetaData()

# One row per leaf path, e.g. "users/1234" -> "Alice", "logs/1700000000000/message" -> "..."
nodes = Table(
    "nodes",
    metadata,
    Column("path", String(512), primary_key=True),
    Column("value", JSON, nullable=False),
)


class DatabaseManager:
    """Manages database connections and transactions."""

    def __init__(self, db_url: str, pool_size: int = 10, max_overflow: int = 20):
        if db_url.startswith("sqlite"):
            # SQLite has no READ COMMITTED level; sessions reach it from worker threads
            self.engine: Engine = create_engine(
                db_url, connect_args={"check_same_thread": False}, future=True
            )
        else:
            self.engine = create_engine(
                db_url,
                poolclass=QueuePool,
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_pre_ping=True,
                isolation_level="READ COMMITTED",
                future=True,
            )

    def create_schema(self):
        """Create the nodes table if it does not exist."""
        metadata.create_all(self.engine)

    @contextmanager
    def get_connection(self):
        """Get a database connection with automatic cleanup."""
        with self.engine.begin() as conn:
            yield conn

    def ping(self) -> None:
        with self.get_connection() as conn:
            conn.execute(text("SELECT 1"))

    def dispose(self):
        self.engine.dispose()
