"""
PostgreSQL query collaborator.

Executes the statements from pgdoctor.db.sql through a SQLAlchemy async
engine (asyncpg driver) and maps each result onto the typed rows in
pgdoctor.db.rows. Checks only ever see these rows.
"""

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from . import sql
from .rows import (
    BrokenIndexRow,
    DatabaseCacheEfficiencyRow,
    DatabaseFreezeAgeRow,
    IndexUsageStatsRow,
    InvalidPrimaryKeyTypeRow,
    PgVersionRow,
    SequenceHealthRow,
    TableFreezeAgeRow,
    TempUsageRow,
    build_row,
)

logger = logging.getLogger(__name__)

ASYNC_DRIVER = "postgresql+asyncpg"


class DatabaseUnavailable(Exception):
    """The monitored database could not be reached."""


def to_async_url(dsn: str) -> str:
    """
    Normalize a postgres:// or postgresql:// URL to the asyncpg dialect.

    Raises:
        ValueError: not a PostgreSQL URL
    """
    try:
        url = make_url(dsn)
    except Exception as e:
        raise ValueError(f"Invalid DSN: {e}") from e

    if url.get_backend_name() not in ("postgres", "postgresql"):
        raise ValueError(f"Unsupported database backend: {url.get_backend_name()}")
    return url.set(drivername=ASYNC_DRIVER).render_as_string(hide_password=False)


class Queries:
    """One async method per check query."""

    def __init__(self, engine: AsyncEngine, serialize: bool = False):
        """
        Args:
            engine: async engine pointed at the monitored database
            serialize: run one statement at a time (single-connection setups)
        """
        self.engine = engine
        self._lock: Optional[asyncio.Lock] = asyncio.Lock() if serialize else None

    @classmethod
    def from_dsn(cls, dsn: str, pool_size: int = 4, serialize: bool = False) -> "Queries":
        engine = create_async_engine(
            to_async_url(dsn),
            pool_size=pool_size,
            max_overflow=0,
        )
        return cls(engine, serialize=serialize)

    async def close(self) -> None:
        await self.engine.dispose()

    async def ping(self) -> None:
        """Open a connection and run a trivial statement."""
        try:
            await self._fetch_all("SELECT 1 AS ok")
        except Exception as e:
            raise DatabaseUnavailable(f"{type(e).__name__}: {e}") from e
        logger.info("database connection ok")

    async def _fetch_all(self, statement: str) -> List[Dict[str, Any]]:
        if self._lock is None:
            return await self._execute(statement)
        async with self._lock:
            return await self._execute(statement)

    async def _execute(self, statement: str) -> List[Dict[str, Any]]:
        start = time.monotonic()
        async with self.engine.connect() as conn:
            result = await conn.execute(text(statement))
            rows = [dict(row) for row in result.mappings().all()]
        logger.debug(f"query returned {len(rows)} rows in {time.monotonic() - start:.3f}s")
        return rows

    async def _fetch_one(self, statement: str) -> Optional[Dict[str, Any]]:
        rows = await self._fetch_all(statement)
        return rows[0] if rows else None

    # ==================== Single-row queries ====================
    # None when the server returned no row

    async def database_cache_efficiency(self) -> Optional[DatabaseCacheEfficiencyRow]:
        row = await self._fetch_one(sql.DATABASE_CACHE_EFFICIENCY)
        return build_row(DatabaseCacheEfficiencyRow, row) if row is not None else None

    async def pg_version(self) -> Optional[PgVersionRow]:
        row = await self._fetch_one(sql.PG_VERSION)
        return build_row(PgVersionRow, row) if row is not None else None

    async def temp_usage(self) -> Optional[TempUsageRow]:
        row = await self._fetch_one(sql.TEMP_USAGE)
        return build_row(TempUsageRow, row) if row is not None else None

    # ==================== Multi-row queries ====================

    async def broken_indexes(self) -> List[BrokenIndexRow]:
        rows = await self._fetch_all(sql.BROKEN_INDEXES)
        return [build_row(BrokenIndexRow, r) for r in rows]

    async def index_usage_stats(self) -> List[IndexUsageStatsRow]:
        rows = await self._fetch_all(sql.INDEX_USAGE_STATS)
        return [build_row(IndexUsageStatsRow, r) for r in rows]

    async def sequence_health(self) -> List[SequenceHealthRow]:
        rows = await self._fetch_all(sql.SEQUENCE_HEALTH)
        return [build_row(SequenceHealthRow, r) for r in rows]

    async def invalid_primary_key_types(self) -> List[InvalidPrimaryKeyTypeRow]:
        rows = await self._fetch_all(sql.INVALID_PRIMARY_KEY_TYPES)
        return [build_row(InvalidPrimaryKeyTypeRow, r) for r in rows]

    async def database_freeze_age(self) -> List[DatabaseFreezeAgeRow]:
        rows = await self._fetch_all(sql.DATABASE_FREEZE_AGE)
        return [build_row(DatabaseFreezeAgeRow, r) for r in rows]

    async def table_freeze_age(self) -> List[TableFreezeAgeRow]:
        rows = await self._fetch_all(sql.TABLE_FREEZE_AGE)
        return [build_row(TableFreezeAgeRow, r) for r in rows]
