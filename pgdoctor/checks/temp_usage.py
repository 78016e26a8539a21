"""
Temporary file usage (work_mem spills).

Checks:
- temp-file-rate: temp files created per hour since the last stats reset
- temp-volume-rate: bytes written to temp files per hour
"""

from typing import Optional

from ..core.base_checker import Checker
from ..core.formatting import format_bytes, format_number
from ..core.models import Category, CheckMetadata, Finding, Report, Severity
from ..core.thresholds import grade_high
from ..db import sql
from ..db.rows import TempUsageRow

GIB = 1024 ** 3

MIN_STATS_SECONDS = 3600
FILE_RATE_WARN = 5.0
FILE_RATE_FAIL = 20.0
VOLUME_RATE_WARN = 1 * GIB
VOLUME_RATE_FAIL = 5 * GIB

README = """\
# Temporary File Usage

Sorts, hashes and materializations that do not fit in `work_mem` spill to
temporary files on disk. A steady stream of temp files means queries are
doing disk I/O for work that could happen in memory.

## Sub-checks

- **temp-file-rate**: >= 5 files/hour WARN, >= 20 files/hour FAIL
- **temp-volume-rate**: >= 1 GiB/hour WARN, >= 5 GiB/hour FAIL

Rates are computed since `pg_stat_database.stats_reset`. With less than one
hour of statistics the check reports OK and grades nothing.

## What to do

- Set `log_temp_files = 0` to find the queries that spill.
- Raise `work_mem` for those sessions or roles rather than globally.
"""


class TempUsage(Checker):
    METADATA = CheckMetadata(
        category=Category.PERFORMANCE,
        check_id="temp-usage",
        name="Temporary File Usage",
        description="Monitors temporary file creation indicating work_mem exhaustion",
        readme=README,
        sql=sql.TEMP_USAGE,
    )

    async def check(self) -> Report:
        report = self.new_report()
        row: Optional[TempUsageRow] = await self.fetch(self.queries.temp_usage)
        if row is None:
            return self.add_no_data_finding(report)

        seconds = row.seconds_since_reset.or_default()
        if seconds < MIN_STATS_SECONDS:
            return self.add_no_data_finding(
                report,
                f"Statistics reset too recently ({seconds / 60:.0f} minutes ago). "
                f"Need at least 1 hour of data.",
            )

        report.add_finding(self.check_temp_file_rate(row))
        report.add_finding(self.check_temp_volume_rate(row))
        return report

    def check_temp_file_rate(self, row: TempUsageRow) -> Finding:
        rate = row.temp_files_per_hour.or_default()
        severity = grade_high(rate, FILE_RATE_WARN, FILE_RATE_FAIL)

        if severity == Severity.OK:
            return Finding(
                id="temp-file-rate",
                name="Temp File Creation Rate",
                severity=Severity.OK,
                details=f"Temp file creation rate is acceptable: {rate:.1f} files/hour",
            )

        since = ""
        if row.stats_reset:
            since = f" (since {row.stats_reset.value:%Y-%m-%d})"

        return Finding(
            id="temp-file-rate",
            name="Temp File Creation Rate",
            severity=severity,
            details=(
                f"High temp file creation rate: {rate:.1f} files/hour{since}\n\n"
                f"Total temp files: {format_number(row.temp_files.or_default())}\n"
                f"Total temp data: {format_bytes(row.temp_bytes.or_default())}"
            ),
        )

    def check_temp_volume_rate(self, row: TempUsageRow) -> Finding:
        bytes_per_hour = row.temp_bytes_per_hour.or_default()
        severity = grade_high(bytes_per_hour, VOLUME_RATE_WARN, VOLUME_RATE_FAIL)

        if severity == Severity.OK:
            return Finding(
                id="temp-volume-rate",
                name="Temp Data Volume Rate",
                severity=Severity.OK,
                details=f"Temp data volume is acceptable: {format_bytes(bytes_per_hour)}/hour",
            )

        return Finding(
            id="temp-volume-rate",
            name="Temp Data Volume Rate",
            severity=severity,
            details=(
                f"High temp data volume: {format_bytes(bytes_per_hour)}/hour\n\n"
                f"This causes significant disk I/O and slows queries."
            ),
        )
