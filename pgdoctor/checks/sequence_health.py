"""
Sequence exhaustion and integer overflow risk.

Checks:
- near-exhaustion: sequences close to their effective maximum
- integer-columns: int2/int4 columns fed by a sequence past half capacity
- type-mismatch: sequences able to produce values their column cannot hold
"""

from typing import List

from ..core.base_checker import Checker
from ..core.formatting import format_number
from ..core.models import Category, CheckMetadata, Finding, Report, Severity, Table, TableRow
from ..core.thresholds import grade_high
from ..db import sql
from ..db.rows import SequenceHealthRow

USAGE_WARN_THRESHOLD = 75.0
USAGE_FAIL_THRESHOLD = 90.0

README = """\
# Sequence Health

Sequences stop handing out values once they reach `max_value`, and an `integer`
column overflows at 2,147,483,647 regardless of what its sequence allows. Both
end in failed inserts.

## Sub-checks

- **near-exhaustion**: usage of the effective maximum (the lower of the
  sequence and column limits). >= 75% WARN, >= 90% FAIL. Cyclic sequences are
  skipped.
- **integer-columns**: `smallint`/`integer` columns whose sequence has used
  more than half of the column range. WARN, FAIL from 75%.
- **type-mismatch**: sequence `max_value` above the column type maximum. FAIL.

## What to do

Migrate the column to `bigint` (and `ALTER SEQUENCE ... AS bigint`) while
there is still headroom; the rewrite takes a long time on big tables.
"""


def _table_column(row: SequenceHealthRow) -> str:
    if not row.table_name:
        return "-"
    return f"{row.table_name.value}.{row.column_name.or_default()}"


def _usage(row: SequenceHealthRow) -> float:
    return row.usage_percent.or_default()


class SequenceHealth(Checker):
    METADATA = CheckMetadata(
        category=Category.SCHEMA,
        check_id="sequence-health",
        name="Sequence Health",
        description="Identifies sequences approaching exhaustion and integer columns needing bigint migration",
        readme=README,
        sql=sql.SEQUENCE_HEALTH,
    )

    async def check(self) -> Report:
        report = self.new_report()
        rows: List[SequenceHealthRow] = await self.fetch(self.queries.sequence_health)

        if not rows:
            return self.add_no_data_finding(report)

        report.add_finding(self.check_near_exhaustion(rows))
        report.add_finding(self.check_integer_columns(rows))
        report.add_finding(self.check_type_mismatch(rows))
        return report

    def check_near_exhaustion(self, rows: List[SequenceHealthRow]) -> Finding:
        graded = []
        for row in rows:
            if row.is_cyclic.or_default():
                continue
            severity = grade_high(_usage(row), USAGE_WARN_THRESHOLD, USAGE_FAIL_THRESHOLD)
            if severity != Severity.OK:
                graded.append((row, severity))

        if not graded:
            return Finding(
                id="near-exhaustion",
                name="Sequence Exhaustion",
                severity=Severity.OK,
                details=f"All sequences have sufficient headroom (<{USAGE_WARN_THRESHOLD:.0f}% used)",
            )

        graded.sort(key=lambda item: (item[1], _usage(item[0])), reverse=True)
        critical = sum(1 for _, severity in graded if severity == Severity.FAIL)
        warning = len(graded) - critical

        if critical:
            details = (
                f"CRITICAL: {critical} sequence(s) at >={USAGE_FAIL_THRESHOLD:.0f}% capacity! "
                f"{warning} more at >={USAGE_WARN_THRESHOLD:.0f}%"
            )
        else:
            details = f"Found {warning} sequence(s) nearing exhaustion"

        return Finding(
            id="near-exhaustion",
            name="Sequence Exhaustion",
            severity=Severity.fold(severity for _, severity in graded),
            details=details,
            table=Table(
                headers=("Sequence", "Table.Column", "Usage", "Remaining", "Type"),
                rows=[
                    TableRow(
                        cells=(
                            row.sequence_name.or_default(),
                            _table_column(row),
                            f"{_usage(row):.1f}%",
                            format_number(max(row.remaining_values.or_default(), 0)),
                            row.seq_data_type.or_default(),
                        ),
                        severity=severity,
                    )
                    for row, severity in graded
                ],
            ),
        )

    def check_integer_columns(self, rows: List[SequenceHealthRow]) -> Finding:
        needs_migration = [row for row in rows if row.should_be_bigint.or_default()]

        if not needs_migration:
            return Finding(
                id="integer-columns",
                name="Integer Column Safety",
                severity=Severity.OK,
                details="No integer columns with high sequence usage detected",
            )

        table_rows = []
        for row in needs_migration:
            # past half capacity is already a warning here
            row_severity = grade_high(_usage(row), warn_at=0.0, fail_at=USAGE_WARN_THRESHOLD)
            table_rows.append(TableRow(
                cells=(
                    row.table_name.or_default(),
                    row.column_name.or_default(),
                    row.column_type.or_default(),
                    f"{_usage(row):.1f}%",
                    format_number(row.current_value.or_default()),
                ),
                severity=row_severity,
            ))

        return Finding(
            id="integer-columns",
            name="Integer Column Safety",
            severity=Severity.fold(r.severity for r in table_rows),
            details=(
                f"Found {len(needs_migration)} integer column(s) with >50% sequence usage "
                f"that should be migrated to bigint"
            ),
            table=Table(
                headers=("Table", "Column", "Type", "Usage", "Current Value"),
                rows=table_rows,
            ),
        )

    def check_type_mismatch(self, rows: List[SequenceHealthRow]) -> Finding:
        mismatched = [
            row for row in rows
            if row.sequence_exceeds_column.or_default() and row.column_type.or_default()
        ]

        if not mismatched:
            return Finding(
                id="type-mismatch",
                name="Sequence Type Mismatch",
                severity=Severity.OK,
                details="All sequences are properly bounded by their column types",
            )

        return Finding(
            id="type-mismatch",
            name="Sequence Type Mismatch",
            severity=Severity.FAIL,
            details=(
                f"Found {len(mismatched)} sequence(s) that can generate values "
                f"exceeding their column's capacity"
            ),
            table=Table(
                headers=("Sequence", "Table.Column", "Column Type", "Seq Max", "Column Max"),
                rows=[
                    TableRow(
                        cells=(
                            row.sequence_name.or_default(),
                            _table_column(row),
                            row.column_type.or_default(),
                            format_number(row.max_value.or_default()),
                            format_number(row.column_max_value.or_default()),
                        ),
                        severity=Severity.FAIL,
                    )
                    for row in mismatched
                ],
            ),
        )
