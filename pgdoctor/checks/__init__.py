"""
Concrete health checks.

Contains:
- CacheEfficiency - buffer cache hit ratio
- InvalidIndexes - indexes left invalid by failed builds
- IndexUsage - unused, low-usage and poorly cached indexes
- SequenceHealth - sequence exhaustion and integer overflow risk
- PrimaryKeyTypes - non-bigint/uuid primary keys
- PgVersion - server major version
- TempUsage - temp file spills
- FreezeAge - transaction ID wraparound risk
"""

from ..core.registry import CheckRegistry
from .cache_efficiency import CacheEfficiency
from .freeze_age import FreezeAge
from .index_usage import IndexUsage
from .invalid_indexes import InvalidIndexes
from .pg_version import PgVersion
from .pk_types import PrimaryKeyTypes
from .sequence_health import SequenceHealth
from .temp_usage import TempUsage

# Registration order is the default execution and listing order
ALL_CHECKS = [
    PgVersion,
    CacheEfficiency,
    TempUsage,
    FreezeAge,
    InvalidIndexes,
    IndexUsage,
    SequenceHealth,
    PrimaryKeyTypes,
]


def default_registry() -> CheckRegistry:
    return CheckRegistry(ALL_CHECKS)


__all__ = [
    "ALL_CHECKS",
    "default_registry",
    "CacheEfficiency",
    "FreezeAge",
    "IndexUsage",
    "InvalidIndexes",
    "PgVersion",
    "PrimaryKeyTypes",
    "SequenceHealth",
    "TempUsage",
]
