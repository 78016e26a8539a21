"""
Typed rows returned by the query collaborator, one dataclass per query.
"""

from dataclasses import dataclass, fields
from typing import Any, Mapping, Type, TypeVar, get_type_hints

from .types import NullBool, NullFloat64, NullInt64, NullText, NullTimestamp, _Nullable

RowT = TypeVar("RowT")


def build_row(row_class: Type[RowT], mapping: Mapping[str, Any]) -> RowT:
    """Build a row dataclass from a column->value mapping.

    Nullable fields go through their type's of(); missing columns become invalid.
    """
    hints = get_type_hints(row_class)
    kwargs = {}
    for f in fields(row_class):
        hint = hints[f.name]
        raw = mapping.get(f.name)
        if isinstance(hint, type) and issubclass(hint, _Nullable):
            kwargs[f.name] = hint.of(raw)
        else:
            kwargs[f.name] = raw
    return row_class(**kwargs)


@dataclass(frozen=True)
class DatabaseCacheEfficiencyRow:
    blks_hit: NullInt64 = NullInt64()
    blks_read: NullInt64 = NullInt64()
    cache_hit_ratio: NullFloat64 = NullFloat64()  # percent, NULL when no activity


@dataclass(frozen=True)
class BrokenIndexRow:
    table_name: NullText = NullText()
    index_name: NullText = NullText()


@dataclass(frozen=True)
class IndexUsageStatsRow:
    table_name: NullText = NullText()
    index_name: NullText = NullText()
    idx_scan: NullInt64 = NullInt64()
    index_size_bytes: NullInt64 = NullInt64()
    table_writes: NullInt64 = NullInt64()
    cache_hit_ratio: NullFloat64 = NullFloat64()  # percent
    is_primary: bool = False
    is_unique: bool = False


@dataclass(frozen=True)
class SequenceHealthRow:
    sequence_name: NullText = NullText()
    table_name: NullText = NullText()
    column_name: NullText = NullText()
    column_type: NullText = NullText()
    seq_data_type: NullText = NullText()
    usage_percent: NullFloat64 = NullFloat64()
    current_value: NullInt64 = NullInt64()
    max_value: NullInt64 = NullInt64()
    column_max_value: NullInt64 = NullInt64()
    remaining_values: NullInt64 = NullInt64()
    is_cyclic: NullBool = NullBool()
    should_be_bigint: NullBool = NullBool()
    sequence_exceeds_column: NullBool = NullBool()


@dataclass(frozen=True)
class InvalidPrimaryKeyTypeRow:
    table_name: NullText = NullText()
    column_name: NullText = NullText()
    column_type: NullText = NullText()
    usage_pct: NullFloat64 = NullFloat64()  # fraction of the type's capacity, 0..1
    estimated_rows: NullInt64 = NullInt64()


@dataclass(frozen=True)
class PgVersionRow:
    major: NullInt64 = NullInt64()
    minor: NullInt64 = NullInt64()
    version: NullText = NullText()


@dataclass(frozen=True)
class TempUsageRow:
    temp_files: NullInt64 = NullInt64()
    temp_bytes: NullInt64 = NullInt64()
    seconds_since_reset: NullFloat64 = NullFloat64()
    temp_files_per_hour: NullFloat64 = NullFloat64()
    temp_bytes_per_hour: NullFloat64 = NullFloat64()
    stats_reset: NullTimestamp = NullTimestamp()


@dataclass(frozen=True)
class DatabaseFreezeAgeRow:
    database_name: NullText = NullText()
    freeze_age: NullInt64 = NullInt64()  # age(datfrozenxid)
    freeze_max_age: NullInt64 = NullInt64()  # autovacuum_freeze_max_age


@dataclass(frozen=True)
class TableFreezeAgeRow:
    table_name: NullText = NullText()
    freeze_age: NullInt64 = NullInt64()  # age(relfrozenxid)
    table_size_bytes: NullInt64 = NullInt64()
    last_vacuum: NullTimestamp = NullTimestamp()
    last_autovacuum: NullTimestamp = NullTimestamp()
    vacuum_count: NullInt64 = NullInt64()
    autovacuum_count: NullInt64 = NullInt64()
