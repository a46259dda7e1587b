# =======================================================================================
# lockmaster/database.py - Database Management
# =======================================================================================
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import QueuePool, StaticPool
from contextlib import contextmanager
from typing import Optional
from .config import config
from .models.tables import metadata

class DatabaseManager:
    """Manages database connections and transactions."""

    def __init__(self, url: Optional[str] = None):
        self.url = url or config.DB_URL
        self.engine: Engine = self._build_engine(self.url)

    @staticmethod
    def _build_engine(url: str) -> Engine:
        if url.startswith("sqlite"):
            # in-memory sqlite must share one connection across the app
            kwargs = {"connect_args": {"check_same_thread": False}, "future": True}
            if url in ("sqlite://", "sqlite:///:memory:"):
                kwargs["poolclass"] = StaticPool
            return create_engine(url, **kwargs)
        return create_engine(
            url,
            poolclass=QueuePool,
            pool_size=config.DB_POOL_SIZE,
            max_overflow=config.DB_MAX_OVERFLOW,
            pool_pre_ping=True,
            isolation_level="READ COMMITTED",
            future=True,
        )

    def create_all(self):
        """Create any missing entity tables."""
        metadata.create_all(self.engine)

    def drop_all(self):
        metadata.drop_all(self.engine)

    @contextmanager
    def get_connection(self):
        """Get a database connection with automatic cleanup."""
        with self.engine.begin() as conn:
            yield conn

    def fetch_one(self, query: str, params: dict = None):
        """Fetch a single result."""
        with self.get_connection() as conn:
            result = conn.execute(text(query), params or {})
            return result.mappings().first()

# Global database instance
db_manager = DatabaseManager()
