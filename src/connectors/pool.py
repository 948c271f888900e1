"""
Pooled connections for discovery scans.

One SQLAlchemy engine (and therefore one connection pool) per database URL,
created on first use and reused by later scans.
"""

import logging
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from src.discovery.errors import ConnectionAcquisitionError
from src.discovery.models import DatabaseRef

logger = logging.getLogger(__name__)


class ConnectionPool:
    """Engine cache keyed by database URL."""

    def __init__(self, pool_pre_ping: bool = True, pool_recycle: int = 3600):
        self.pool_pre_ping = pool_pre_ping
        self.pool_recycle = pool_recycle
        self._engines: Dict[str, Engine] = {}

    def get_engine(self, database: DatabaseRef) -> Engine:
        engine = self._engines.get(database.url)
        if engine is None:
            try:
                engine = create_engine(
                    database.url,
                    pool_pre_ping=self.pool_pre_ping,  # Verify connections before using
                    pool_recycle=self.pool_recycle,
                )
            except (SQLAlchemyError, ImportError) as e:
                raise ConnectionAcquisitionError(
                    f"Failed to create engine: {e}", database=str(database)
                ) from e
            self._engines[database.url] = engine
            logger.debug(f"Created engine for {database}")
        return engine

    @contextmanager
    def get_connection(self, database: DatabaseRef) -> Iterator[Connection]:
        """Yield a pooled connection; it goes back to the pool on exit."""
        engine = self.get_engine(database)
        try:
            connection = engine.connect()
        except SQLAlchemyError as e:
            raise ConnectionAcquisitionError(
                f"Failed to connect to database: {e}", database=str(database)
            ) from e

        try:
            yield connection
        finally:
            connection.close()

    def dispose(self) -> None:
        for engine in self._engines.values():
            engine.dispose()
        self._engines.clear()


_default_pool: Optional[ConnectionPool] = None


def get_default_pool() -> ConnectionPool:
    """Process-wide pool, configured from settings on first use."""
    global _default_pool

    if _default_pool is None:
        from config.settings import get_database_config

        config = get_database_config()
        _default_pool = ConnectionPool(
            pool_pre_ping=config.pool_pre_ping,
            pool_recycle=config.pool_recycle,
        )
    return _default_pool
