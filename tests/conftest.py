"""
Pytest configuration and fixtures.

Использование:
    pytest tests/ -v

Ни один тест не требует PostgreSQL: проверки получают FakeQueries.
"""

from pathlib import Path

import pytest
from dotenv import load_dotenv

from pgdoctor.config import get_settings
from pgdoctor.db.rows import DatabaseCacheEfficiencyRow, DatabaseFreezeAgeRow, PgVersionRow, TempUsageRow, build_row
from pgdoctor.db.types import NullFloat64, NullInt64

# Загрузить .env файл
env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)

MIB = 1024 * 1024


# ═══════════════════════════════════════════════════════
# FAKE QUERY COLLABORATOR
# ═══════════════════════════════════════════════════════

def healthy_responses() -> dict:
    """Ответы здоровой базы: все проверки дают OK."""
    return {
        "database_cache_efficiency": DatabaseCacheEfficiencyRow(
            blks_hit=NullInt64.of(99_500),
            blks_read=NullInt64.of(500),
            cache_hit_ratio=NullFloat64.of(99.5),
        ),
        "broken_indexes": [],
        "index_usage_stats": [],
        "sequence_health": [],
        "invalid_primary_key_types": [],
        "pg_version": build_row(PgVersionRow, {"major": 17, "minor": 2, "version": "PostgreSQL 17.2"}),
        "temp_usage": TempUsageRow(
            temp_files=NullInt64.of(12),
            temp_bytes=NullInt64.of(64 * MIB),
            seconds_since_reset=NullFloat64.of(86_400),
            temp_files_per_hour=NullFloat64.of(0.5),
            temp_bytes_per_hour=NullFloat64.of(2 * MIB),
        ),
        "database_freeze_age": [
            build_row(DatabaseFreezeAgeRow, {
                "database_name": "orders",
                "freeze_age": 12_000_000,
                "freeze_max_age": 200_000_000,
            }),
        ],
        "table_freeze_age": [],
    }


class FakeQueries:
    """
    Подставной коллаборатор.

    Возвращает заданные строки; если значение является исключением,
    бросает его.
    """

    def __init__(self, **overrides):
        self.responses = healthy_responses()
        self.responses.update(overrides)
        self.calls = []
        self.closed = False
        self.ping_error = None

    async def _respond(self, name: str):
        self.calls.append(name)
        value = self.responses[name]
        if isinstance(value, BaseException):
            raise value
        return value

    async def ping(self):
        if self.ping_error is not None:
            raise self.ping_error

    async def close(self):
        self.closed = True

    async def database_cache_efficiency(self):
        return await self._respond("database_cache_efficiency")

    async def broken_indexes(self):
        return await self._respond("broken_indexes")

    async def index_usage_stats(self):
        return await self._respond("index_usage_stats")

    async def sequence_health(self):
        return await self._respond("sequence_health")

    async def invalid_primary_key_types(self):
        return await self._respond("invalid_primary_key_types")

    async def pg_version(self):
        return await self._respond("pg_version")

    async def temp_usage(self):
        return await self._respond("temp_usage")

    async def database_freeze_age(self):
        return await self._respond("database_freeze_age")

    async def table_freeze_age(self):
        return await self._respond("table_freeze_age")


@pytest.fixture
def fake_queries():
    return FakeQueries()


@pytest.fixture
def make_queries():
    """Фабрика FakeQueries с переопределёнными ответами."""
    return FakeQueries


# ═══════════════════════════════════════════════════════
# CONFIGURATION
# ═══════════════════════════════════════════════════════

@pytest.fixture(autouse=True)
def fresh_settings():
    """Settings кэшируются через lru_cache: сбрасываем между тестами."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
