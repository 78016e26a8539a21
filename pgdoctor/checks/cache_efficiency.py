"""
Database buffer cache efficiency.

Checks:
- cache-hit-ratio: share of block reads served from shared_buffers
"""

from typing import Optional

from ..core.base_checker import Checker
from ..core.models import Category, CheckMetadata, Finding, Report, Severity
from ..core.thresholds import grade_low
from ..db import sql
from ..db.rows import DatabaseCacheEfficiencyRow

CACHE_WARN_THRESHOLD = 95.0

README = """\
# Cache Efficiency

Measures how often PostgreSQL finds the blocks it needs in `shared_buffers`
instead of reading them from the operating system or disk.

## Why it matters

A healthy OLTP database serves well over 95% of block reads from cache. A lower
ratio usually means the working set no longer fits in memory, so queries pay
for disk I/O they did not pay for before.

## Thresholds

- ratio <= 95%: WARN
- no block activity recorded yet: OK (insufficient data)

## What to do

- Compare `shared_buffers` against the size of hot tables and indexes.
- Look for sequential scans over large tables (`pg_stat_user_tables.seq_scan`).
- Check whether a recent restart or stats reset skews the ratio.
"""


class CacheEfficiency(Checker):
    """Проверка эффективности буферного кэша."""

    METADATA = CheckMetadata(
        category=Category.PERFORMANCE,
        check_id="cache-efficiency",
        name="Cache Efficiency",
        description="Database-wide buffer cache hit ratio",
        readme=README,
        sql=sql.DATABASE_CACHE_EFFICIENCY,
    )

    async def check(self) -> Report:
        report = self.new_report()
        row: Optional[DatabaseCacheEfficiencyRow] = await self.fetch(self.queries.database_cache_efficiency)
        if row is None:
            return self.add_no_data_finding(report)

        report.add_finding(self.check_cache_hit_ratio(row))
        return report

    def check_cache_hit_ratio(self, row: DatabaseCacheEfficiencyRow) -> Finding:
        if not row.cache_hit_ratio:
            return Finding(
                id="cache-hit-ratio",
                name="Cache Hit Ratio",
                severity=Severity.OK,
                details="Insufficient cache activity data (no blocks read or hit)",
            )

        ratio = row.cache_hit_ratio.value
        # fail_at below any real ratio: this sub-check only warns
        severity = grade_low(ratio, warn_at=CACHE_WARN_THRESHOLD, fail_at=-1.0)
        if severity == Severity.OK:
            return Finding(
                id="cache-hit-ratio",
                name="Cache Hit Ratio",
                severity=Severity.OK,
                details=f"Cache hit ratio: {ratio:.2f}% (healthy)",
            )

        return Finding(
            id="cache-hit-ratio",
            name="Cache Hit Ratio",
            severity=severity,
            details=(
                f"Cache hit ratio: {ratio:.2f}% (at or below {CACHE_WARN_THRESHOLD:.0f}%)\n"
                f"Blocks hit: {row.blks_hit.or_default()}\n"
                f"Blocks read from disk: {row.blks_read.or_default()}"
            ),
            debug=f"blks_hit={row.blks_hit!r} blks_read={row.blks_read!r}",
        )
