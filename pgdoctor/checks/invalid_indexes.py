"""
Invalid indexes left behind by failed concurrent builds.
"""

from ..core.base_checker import Checker, preview_lines
from ..core.models import Category, CheckMetadata, Finding, Report, Severity, Table, TableRow
from ..db import sql

README = """\
# Invalid Indexes

Lists indexes marked invalid in `pg_index.indisvalid`.

An index becomes invalid when `CREATE INDEX CONCURRENTLY` or
`REINDEX CONCURRENTLY` fails part way. The planner ignores it, yet every write
to the table still maintains it.

## Thresholds

- any invalid index: WARN

## What to do

Drop the index and build it again:

```sql
DROP INDEX CONCURRENTLY schema.index_name;
CREATE INDEX CONCURRENTLY ...;
```
"""


class InvalidIndexes(Checker):
    METADATA = CheckMetadata(
        category=Category.INDEXES,
        check_id="invalid-indexes",
        name="Invalid Indexes",
        description="Indexes left invalid by failed concurrent builds",
        readme=README,
        sql=sql.BROKEN_INDEXES,
    )

    async def check(self) -> Report:
        report = self.new_report()
        rows = await self.fetch(self.queries.broken_indexes)

        if not rows:
            return self.add_no_data_finding(report)

        lines = [f"{row.table_name.or_default()}\t{row.index_name.or_default()}" for row in rows]
        report.add_finding(Finding(
            id="invalid-indexes",
            name=self.METADATA.name,
            severity=Severity.WARN,
            details=f"There are {len(rows)} invalid indexes.\n" + "\n".join(preview_lines(lines)),
            table=Table(
                headers=("Table", "Index"),
                rows=[
                    TableRow(cells=(row.table_name.or_default(), row.index_name.or_default()), severity=Severity.WARN)
                    for row in rows
                ],
            ),
        ))
        return report
