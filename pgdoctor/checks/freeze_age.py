"""
Transaction ID wraparound risk.

Checks:
- database-freeze-age: age(datfrozenxid) per database
- table-freeze-age: age(relfrozenxid) of the oldest tables
"""

from typing import List

from ..core.base_checker import Checker
from ..core.formatting import format_bytes, format_number
from ..core.models import Category, CheckMetadata, Finding, Report, Severity, Table, TableRow
from ..core.thresholds import grade_high
from ..db import sql
from ..db.rows import DatabaseFreezeAgeRow, TableFreezeAgeRow

# PostgreSQL refuses new transactions near 2^31 xids
WRAPAROUND_LIMIT = 2_000_000_000

DATABASE_AGE_WARN = 500_000_000
DATABASE_AGE_FAIL = 1_000_000_000
# tables can be vacuumed one at a time, so they are graded earlier
TABLE_AGE_WARN = 400_000_000
TABLE_AGE_FAIL = 800_000_000

README = """\
# Transaction ID Freeze Age

Every row carries the transaction id that wrote it. Transaction ids are 32-bit
and wrap around, so VACUUM has to "freeze" old rows before their ids get too
far behind the current one. When the oldest unfrozen id in a database gets
close to two billion transactions, PostgreSQL stops accepting writes until
the database is vacuumed.

## Sub-checks

- **database-freeze-age**: `age(datfrozenxid)` >= 500M WARN, >= 1B FAIL
- **table-freeze-age**: `age(relfrozenxid)` >= 400M WARN, >= 800M FAIL
  (only the 50 oldest tables past 400M are fetched)

`autovacuum_freeze_max_age` (200M by default) is the age at which autovacuum
starts an aggressive anti-wraparound vacuum; ages far beyond it mean those
vacuums are not finishing.

## What to do

- Run `VACUUM (FREEZE, VERBOSE)` on the listed tables, largest age first.
- Look for long-running transactions, abandoned replication slots and
  prepared transactions that hold back the xmin horizon.
- Check that autovacuum workers are not starved (`autovacuum_max_workers`,
  cost limits).
"""


def _percent_to_limit(age: int) -> str:
    return f"{age / WRAPAROUND_LIMIT * 100:.1f}%"


def _last_vacuum(row: TableFreezeAgeRow) -> str:
    if row.last_autovacuum:
        return f"{row.last_autovacuum.value:%Y-%m-%d %H:%M}"
    if row.last_vacuum:
        return f"{row.last_vacuum.value:%Y-%m-%d %H:%M} (manual)"
    return "never"


class FreezeAge(Checker):
    """Проверка возраста транзакций (риск wraparound)."""

    METADATA = CheckMetadata(
        category=Category.VACUUM,
        check_id="freeze-age",
        name="Transaction ID Freeze Age",
        description="Monitors transaction ID age to prevent wraparound issues",
        readme=README,
        sql=sql.DATABASE_FREEZE_AGE + "\n" + sql.TABLE_FREEZE_AGE,
    )

    async def check(self) -> Report:
        report = self.new_report()
        databases: List[DatabaseFreezeAgeRow] = await self.fetch(self.queries.database_freeze_age, "database")
        tables: List[TableFreezeAgeRow] = await self.fetch(self.queries.table_freeze_age, "tables")

        if not databases and not tables:
            return self.add_no_data_finding(report)

        report.add_finding(self.check_database_freeze_age(databases))
        report.add_finding(self.check_table_freeze_age(tables))
        return report

    def check_database_freeze_age(self, rows: List[DatabaseFreezeAgeRow]) -> Finding:
        graded = []
        for row in rows:
            severity = grade_high(row.freeze_age.or_default(), DATABASE_AGE_WARN, DATABASE_AGE_FAIL)
            if severity != Severity.OK:
                graded.append((row, severity))

        if not graded:
            details = "All databases within safe range"
            oldest = max(rows, key=lambda r: r.freeze_age.or_default(), default=None)
            if oldest is not None:
                details += (
                    f". Oldest: {oldest.database_name.or_default()} "
                    f"at {format_number(oldest.freeze_age.or_default())} transactions"
                )
            return Finding(
                id="database-freeze-age",
                name="Database Freeze Age",
                severity=Severity.OK,
                details=details,
            )

        graded.sort(key=lambda item: (item[1], item[0].freeze_age.or_default()), reverse=True)
        return Finding(
            id="database-freeze-age",
            name="Database Freeze Age",
            severity=Severity.fold(severity for _, severity in graded),
            details=f"Found {len(graded)} database(s) with high transaction ID age",
            table=Table(
                headers=("Database", "Age", "% to Limit", "Freeze Max Age"),
                rows=[
                    TableRow(
                        cells=(
                            row.database_name.or_default(),
                            format_number(row.freeze_age.or_default()),
                            _percent_to_limit(row.freeze_age.or_default()),
                            format_number(row.freeze_max_age.or_default()),
                        ),
                        severity=severity,
                    )
                    for row, severity in graded
                ],
            ),
        )

    def check_table_freeze_age(self, rows: List[TableFreezeAgeRow]) -> Finding:
        graded = []
        for row in rows:
            severity = grade_high(row.freeze_age.or_default(), TABLE_AGE_WARN, TABLE_AGE_FAIL)
            if severity != Severity.OK:
                graded.append((row, severity))

        if not graded:
            return Finding(
                id="table-freeze-age",
                name="Table Freeze Age",
                severity=Severity.OK,
                details="All tables within safe transaction ID age range",
            )

        graded.sort(key=lambda item: (item[1], item[0].freeze_age.or_default()), reverse=True)
        return Finding(
            id="table-freeze-age",
            name="Table Freeze Age",
            severity=Severity.fold(severity for _, severity in graded),
            details=f"Found {len(graded)} table(s) with high transaction ID age",
            table=Table(
                headers=("Table", "Age", "Size", "Last Vacuum", "Vacuum Count"),
                rows=[
                    TableRow(
                        cells=(
                            row.table_name.or_default(),
                            format_number(row.freeze_age.or_default()),
                            format_bytes(row.table_size_bytes.or_default()),
                            _last_vacuum(row),
                            str(row.vacuum_count.or_default() + row.autovacuum_count.or_default()),
                        ),
                        severity=severity,
                    )
                    for row, severity in graded
                ],
            ),
        )
