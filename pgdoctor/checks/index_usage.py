"""
Index usage statistics.

Checks:
- unused-indexes: large non-unique indexes that were never scanned
- low-usage-indexes: rarely read indexes on write-heavy tables
- index-cache-ratio: large indexes that keep missing shared_buffers
"""

from typing import List, Tuple

from ..core.base_checker import Checker, preview_lines
from ..core.formatting import format_bytes, format_number
from ..core.models import Category, CheckMetadata, Finding, Report, Severity
from ..core.thresholds import grade_low
from ..db import sql
from ..db.rows import IndexUsageStatsRow

MIB = 1024 * 1024

UNUSED_SIZE_THRESHOLD = 10 * MIB
LOW_USAGE_SCAN_THRESHOLD = 1000
LOW_USAGE_WRITE_THRESHOLD = 10000
CACHE_WARN_THRESHOLD = 95.0
CACHE_FAIL_THRESHOLD = 90.0
CACHE_WARN_MIN_SIZE = 10 * MIB
CACHE_FAIL_MIN_SIZE = 100 * MIB

README = """\
# Index Usage

Uses `pg_stat_user_indexes` and `pg_statio_user_indexes` to find indexes that
cost more than they return.

## Sub-checks

- **unused-indexes**: zero scans since the last stats reset and larger than
  10 MiB. Primary keys and unique indexes are skipped since they enforce
  constraints. WARN.
- **low-usage-indexes**: fewer than 1000 scans on a table with more than
  10000 writes. Every write pays for index maintenance. WARN.
- **index-cache-ratio**: cache hit ratio at or below 95% on an index over
  10 MiB (WARN), at or below 90% on an index over 100 MiB (FAIL).

## Caveats

Statistics are per node. An index unused on the primary may serve reads on a
replica; check replicas before dropping anything.
"""


def _index_label(row: IndexUsageStatsRow) -> str:
    return f"{row.table_name.or_default()}.{row.index_name.or_default()}"


class IndexUsage(Checker):
    """Проверка использования индексов."""

    METADATA = CheckMetadata(
        category=Category.INDEXES,
        check_id="index-usage",
        name="Index Usage",
        description="Identifies unused and inefficient indexes based on usage statistics",
        readme=README,
        sql=sql.INDEX_USAGE_STATS,
    )

    async def check(self) -> Report:
        report = self.new_report()
        rows: List[IndexUsageStatsRow] = await self.fetch(self.queries.index_usage_stats)

        if not rows:
            return self.add_no_data_finding(report)

        report.add_finding(self.check_unused_indexes(rows))
        report.add_finding(self.check_low_usage_indexes(rows))
        report.add_finding(self.check_index_cache_ratio(rows))
        return report

    def check_unused_indexes(self, rows: List[IndexUsageStatsRow]) -> Finding:
        unused = [
            row for row in rows
            if not (row.is_primary or row.is_unique)
            and row.idx_scan.or_default() == 0
            and row.index_size_bytes.or_default() > UNUSED_SIZE_THRESHOLD
        ]

        if not unused:
            return Finding(id="unused-indexes", name="Unused Indexes", severity=Severity.OK)

        lines = [
            f"{_index_label(row)} ({format_bytes(row.index_size_bytes.or_default())})"
            for row in unused
        ]
        wasted = sum(row.index_size_bytes.or_default() for row in unused)
        return Finding(
            id="unused-indexes",
            name="Unused Indexes",
            severity=Severity.WARN,
            details=(
                f"Found {len(unused)} unused indexes (0 scans, size > {format_bytes(UNUSED_SIZE_THRESHOLD)}), "
                f"{format_bytes(wasted)} total:\n" + "\n".join(preview_lines(lines))
            ),
        )

    def check_low_usage_indexes(self, rows: List[IndexUsageStatsRow]) -> Finding:
        low_usage = [
            row for row in rows
            if not (row.is_primary or row.is_unique)
            and 0 < row.idx_scan.or_default() < LOW_USAGE_SCAN_THRESHOLD
            and row.table_writes.or_default() > LOW_USAGE_WRITE_THRESHOLD
        ]

        if not low_usage:
            return Finding(id="low-usage-indexes", name="Low Usage Indexes", severity=Severity.OK)

        lines = [
            f"{_index_label(row)} (scans: {format_number(row.idx_scan.or_default())}, "
            f"writes: {format_number(row.table_writes.or_default())})"
            for row in low_usage
        ]
        return Finding(
            id="low-usage-indexes",
            name="Low Usage Indexes",
            severity=Severity.WARN,
            details=(
                f"Found {len(low_usage)} indexes with low read usage but high write cost:\n"
                + "\n".join(preview_lines(lines))
            ),
        )

    def check_index_cache_ratio(self, rows: List[IndexUsageStatsRow]) -> Finding:
        flagged: List[Tuple[IndexUsageStatsRow, Severity]] = []

        for row in rows:
            if not row.cache_hit_ratio:
                continue
            ratio = row.cache_hit_ratio.value
            size = row.index_size_bytes.or_default()

            severity = Severity.OK
            if size > CACHE_FAIL_MIN_SIZE:
                severity = grade_low(ratio, warn_at=CACHE_WARN_THRESHOLD, fail_at=CACHE_FAIL_THRESHOLD)
            elif size > CACHE_WARN_MIN_SIZE:
                severity = grade_low(ratio, warn_at=CACHE_WARN_THRESHOLD, fail_at=-1.0)

            if severity != Severity.OK:
                flagged.append((row, severity))

        if not flagged:
            return Finding(id="index-cache-ratio", name="Index Cache Efficiency", severity=Severity.OK)

        # FAIL entries first
        flagged.sort(key=lambda item: item[1], reverse=True)
        lines = [
            f"{_index_label(row)} ({row.cache_hit_ratio.value:.1f}%, "
            f"{format_bytes(row.index_size_bytes.or_default())})"
            for row, _ in flagged
        ]
        return Finding(
            id="index-cache-ratio",
            name="Index Cache Efficiency",
            severity=Severity.fold(severity for _, severity in flagged),
            details=(
                f"Found {len(flagged)} indexes with low cache hit ratios:\n"
                + "\n".join(preview_lines(lines))
            ),
        )
