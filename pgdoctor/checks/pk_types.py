"""
Primary keys that are neither bigint nor uuid.
"""

from typing import List

from ..core.base_checker import Checker
from ..core.formatting import format_number
from ..core.models import Category, CheckMetadata, Finding, Report, Severity, Table, TableRow
from ..core.thresholds import grade_high
from ..db import sql
from ..db.rows import InvalidPrimaryKeyTypeRow

USAGE_FAIL_PERCENT = 50.0

README = """\
# Primary Key Types

Flags primary key columns typed `smallint` or `integer` (or anything other than
`bigint`/`uuid`). Integer keys run out at 2,147,483,647 and the migration to
`bigint` rewrites the whole table, so it should happen long before the limit.

## Thresholds

- every non-bigint/uuid primary key: WARN
- estimated rows >= 50% of the type capacity: FAIL

Usage is estimated from `pg_class.reltuples`, so it is approximate.
"""


class PrimaryKeyTypes(Checker):
    """Проверка типов первичных ключей."""

    METADATA = CheckMetadata(
        category=Category.SCHEMA,
        check_id="pk-types",
        name="Primary Key Types",
        description="Primary keys that should be bigint or uuid",
        readme=README,
        sql=sql.INVALID_PRIMARY_KEY_TYPES,
    )

    async def check(self) -> Report:
        report = self.new_report()
        rows: List[InvalidPrimaryKeyTypeRow] = await self.fetch(self.queries.invalid_primary_key_types)

        if not rows:
            return self.add_no_data_finding(report)

        table_rows = [self.analyze_row(row) for row in rows]
        critical = sum(1 for r in table_rows if r.severity == Severity.FAIL)
        warning = len(table_rows) - critical

        report.add_finding(Finding(
            id="pk-types",
            name=self.METADATA.name,
            severity=Severity.fold(r.severity for r in table_rows),
            details=self.format_details(critical, warning),
            table=Table(
                headers=("Table", "Column", "Type", "Usage %", "Rows"),
                rows=table_rows,
            ),
        ))
        return report

    @staticmethod
    def analyze_row(row: InvalidPrimaryKeyTypeRow) -> TableRow:
        if row.usage_pct:
            usage = row.usage_pct.value * 100
            usage_text = f"~{usage:.1f}%"
        else:
            usage = 0.0
            usage_text = "-"

        # any listed key is at least a warning
        severity = grade_high(usage, warn_at=float("-inf"), fail_at=USAGE_FAIL_PERCENT)
        return TableRow(
            cells=(
                row.table_name.or_default(),
                row.column_name.or_default(),
                row.column_type.or_default(),
                usage_text,
                format_number(row.estimated_rows.or_default()),
            ),
            severity=severity,
        )

    @staticmethod
    def format_details(critical: int, warning: int) -> str:
        total = critical + warning
        if critical and warning:
            return (
                f"Found {total} table(s) with non-bigint/UUID primary keys: "
                f"{critical} CRITICAL, {warning} WARNING"
            )
        if critical:
            return f"Found {critical} CRITICAL table(s) with non-bigint/UUID primary keys"
        return f"Found {warning} WARNING table(s) with non-bigint/UUID primary keys"
