"""
Тесты коллаборатора Queries без реальной базы: движок подменяется.
"""

from decimal import Decimal

import pytest

from pgdoctor.checks import CacheEfficiency, PgVersion, TempUsage
from pgdoctor.core.models import Severity
from pgdoctor.db import sql
from pgdoctor.db.queries import DatabaseUnavailable, Queries, to_async_url


class FakeResult:
    def __init__(self, rows):
        self._rows = rows

    def mappings(self):
        return self

    def all(self):
        return self._rows


class FakeConnection:
    def __init__(self, engine):
        self.engine = engine

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def execute(self, statement):
        text_sql = statement.text
        self.engine.statements.append(text_sql)
        if self.engine.error is not None:
            raise self.engine.error
        return FakeResult(self.engine.rows.get(text_sql, []))


class FakeEngine:
    """Минимальная замена AsyncEngine: отдаёт строки по тексту запроса."""

    def __init__(self, rows=None, error=None):
        self.rows = rows or {}
        self.error = error
        self.statements = []
        self.disposed = False

    def connect(self):
        return FakeConnection(self)

    async def dispose(self):
        self.disposed = True


class TestAsyncUrl:

    def test_postgres_scheme_rewritten(self):
        url = to_async_url("postgres://app:secret@db:5432/orders")
        assert url == "postgresql+asyncpg://app:secret@db:5432/orders"

    def test_postgresql_scheme_rewritten(self):
        assert to_async_url("postgresql://db/orders").startswith("postgresql+asyncpg://")

    def test_other_backend_rejected(self):
        with pytest.raises(ValueError):
            to_async_url("mysql://db/orders")

    def test_garbage_rejected(self):
        with pytest.raises(ValueError):
            to_async_url("host=db dbname=orders")


class TestQueries:

    @pytest.mark.asyncio
    async def test_pg_version(self):
        engine = FakeEngine({sql.PG_VERSION: [{"major": 16, "minor": 3, "version": "PostgreSQL 16.3"}]})
        row = await Queries(engine).pg_version()
        assert (row.major.value, row.minor.value, row.version.value) == (16, 3, "PostgreSQL 16.3")

    @pytest.mark.asyncio
    async def test_pg_version_null_major(self):
        engine = FakeEngine({sql.PG_VERSION: [{"major": None, "minor": None, "version": "PostgreSQL 16devel"}]})
        row = await Queries(engine).pg_version()
        assert not row.major.valid
        assert row.version.value == "PostgreSQL 16devel"

    @pytest.mark.asyncio
    async def test_single_row_queries_without_rows(self):
        queries = Queries(FakeEngine())
        assert await queries.pg_version() is None
        assert await queries.database_cache_efficiency() is None
        assert await queries.temp_usage() is None

    @pytest.mark.asyncio
    async def test_numeric_columns_parsed(self):
        engine = FakeEngine({sql.INDEX_USAGE_STATS: [{
            "table_name": "public.orders",
            "index_name": "orders_created_idx",
            "idx_scan": 0,
            "index_size_bytes": 52_428_800,
            "table_writes": Decimal("120000"),
            "cache_hit_ratio": "bogus",
            "is_primary": False,
            "is_unique": False,
        }]})
        [row] = await Queries(engine).index_usage_stats()
        assert row.table_writes.value == 120_000
        assert row.index_size_bytes.value == 52_428_800
        assert not row.cache_hit_ratio.valid

    @pytest.mark.asyncio
    async def test_broken_indexes(self):
        engine = FakeEngine({sql.BROKEN_INDEXES: [{"table_name": "public.orders", "index_name": "orders_tmp_idx"}]})
        [row] = await Queries(engine).broken_indexes()
        assert row.index_name.value == "orders_tmp_idx"

    @pytest.mark.asyncio
    async def test_broken_index_with_null_name(self):
        engine = FakeEngine({sql.BROKEN_INDEXES: [{"table_name": None, "index_name": "orders_tmp_idx"}]})
        [row] = await Queries(engine).broken_indexes()
        assert row.table_name.or_default() == ""

    @pytest.mark.asyncio
    async def test_freeze_age_rows(self):
        engine = FakeEngine({
            sql.DATABASE_FREEZE_AGE: [{"database_name": "orders", "freeze_age": 612_000_000, "freeze_max_age": 200_000_000}],
            sql.TABLE_FREEZE_AGE: [{"table_name": "public.events", "freeze_age": 450_000_000, "last_vacuum": None}],
        })
        queries = Queries(engine)
        [database] = await queries.database_freeze_age()
        [table] = await queries.table_freeze_age()
        assert database.freeze_age.value == 612_000_000
        assert table.table_name.value == "public.events"
        assert not table.last_vacuum.valid

    @pytest.mark.asyncio
    async def test_serialized_mode_runs_statements(self):
        engine = FakeEngine()
        queries = Queries(engine, serialize=True)
        await queries.sequence_health()
        await queries.invalid_primary_key_types()
        assert engine.statements == [sql.SEQUENCE_HEALTH, sql.INVALID_PRIMARY_KEY_TYPES]

    @pytest.mark.asyncio
    async def test_ping_failure(self):
        queries = Queries(FakeEngine(error=OSError("connection refused")))
        with pytest.raises(DatabaseUnavailable) as exc_info:
            await queries.ping()
        assert "connection refused" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_close_disposes_engine(self):
        engine = FakeEngine()
        await Queries(engine).close()
        assert engine.disposed


class TestSingleRowChecksOverQueries:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("check_class", [CacheEfficiency, PgVersion, TempUsage])
    async def test_no_row_gives_single_ok_finding(self, check_class):
        report = await check_class(Queries(FakeEngine())).check()

        [only] = report.findings
        assert only.id == check_class.metadata().check_id
        assert only.severity == Severity.OK
        assert only.details == ""

    @pytest.mark.asyncio
    async def test_null_version_is_not_an_error(self):
        engine = FakeEngine({sql.PG_VERSION: [{"major": None, "minor": 3, "version": "PostgreSQL"}]})
        report = await PgVersion(Queries(engine)).check()
        assert report.severity == Severity.OK
