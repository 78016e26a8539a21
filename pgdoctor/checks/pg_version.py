"""
PostgreSQL major version support status.
"""

from typing import Optional

from ..core.base_checker import Checker
from ..core.models import Category, CheckMetadata, Finding, Report, Severity
from ..core.thresholds import grade_low
from ..db import sql
from ..db.rows import PgVersionRow

# majors at or below these are graded
WARN_MAJOR = 14
FAIL_MAJOR = 13
RECOMMENDED_MAJOR = 17

README = """\
# PostgreSQL Version

Reports the server major version.

## Thresholds

- major version 14: WARN (approaching end of life)
- major version below 14: FAIL (end of life or close to it)

## What to do

Plan a major upgrade (`pg_upgrade` or logical replication). Version 17 or
newer is recommended.
"""


class PgVersion(Checker):
    METADATA = CheckMetadata(
        category=Category.CONFIGS,
        check_id="pg-version",
        name="PostgreSQL Version",
        description="Server major version and end-of-life status",
        readme=README,
        sql=sql.PG_VERSION,
    )

    async def check(self) -> Report:
        report = self.new_report()
        version: Optional[PgVersionRow] = await self.fetch(self.queries.pg_version)
        if version is None:
            return self.add_no_data_finding(report)

        if not version.major:
            report.add_finding(Finding(
                id="pg-version",
                name=self.METADATA.name,
                severity=Severity.OK,
                details="Insufficient data: server did not report a usable version number",
                debug=version.version.or_default(),
            ))
            return report

        major = version.major.value
        severity = grade_low(major, warn_at=WARN_MAJOR, fail_at=FAIL_MAJOR)
        if severity == Severity.OK:
            report.add_finding(Finding(
                id="pg-version",
                name=self.METADATA.name,
                severity=Severity.OK,
                debug=version.version.or_default(),
            ))
            return report

        report.add_finding(Finding(
            id="pg-version",
            name=self.METADATA.name,
            severity=severity,
            details=(
                f"Running PostgreSQL {major} which is approaching end of life. "
                f"Upgrade to version {RECOMMENDED_MAJOR}+ recommended."
            ),
            debug=version.version.or_default(),
        ))
        return report
