"""
Core data models for pgdoctor diagnostics.
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from functools import reduce
from typing import Any, Dict, Iterable, List, Optional, Tuple


class Severity(IntEnum):
    """Health level of a finding, report or whole run. OK < WARN < FAIL."""

    OK = 0
    WARN = 1
    FAIL = 2

    @staticmethod
    def combine(a: "Severity", b: "Severity") -> "Severity":
        """Escalate: the result is always the more severe of the two."""
        return a if a >= b else b

    @classmethod
    def fold(cls, severities: Iterable["Severity"]) -> "Severity":
        """Combine any number of severities, starting from OK."""
        return reduce(cls.combine, severities, cls.OK)

    @property
    def label(self) -> str:
        return self.name

    @property
    def json_value(self) -> str:
        return {Severity.OK: "pass", Severity.WARN: "warn", Severity.FAIL: "fail"}[self]


class Category(Enum):
    """Grouping tag for checks, used for selective execution."""

    INDEXES = "indexes"
    CONFIGS = "configs"
    VACUUM = "vacuum"
    SCHEMA = "schema"
    PERFORMANCE = "performance"
    PATTERNS = "patterns"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class CheckMetadata:
    """Static descriptor of a check. Never requires database access."""

    category: Category
    check_id: str  # kebab-case, unique across the registry
    name: str
    description: str
    readme: str = ""
    sql: str = ""

    @property
    def qualified_id(self) -> str:
        return f"{self.category.value}/{self.check_id}"


@dataclass(frozen=True)
class TableRow:
    """One row of structured evidence, color-coded by its own severity."""

    cells: Tuple[str, ...]
    severity: Severity = Severity.OK

    def __post_init__(self):
        object.__setattr__(self, "cells", tuple(self.cells))


@dataclass(frozen=True)
class Table:
    """Structured evidence attached to a finding."""

    headers: Tuple[str, ...]
    rows: Tuple[TableRow, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "headers", tuple(self.headers))
        object.__setattr__(self, "rows", tuple(self.rows))
        for i, row in enumerate(self.rows):
            if len(row.cells) != len(self.headers):
                raise ValueError(
                    f"Table row {i} has {len(row.cells)} cells, expected {len(self.headers)}"
                )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "headers": list(self.headers),
            "rows": [
                {"cells": list(row.cells), "severity": row.severity.json_value}
                for row in self.rows
            ],
        }


@dataclass(frozen=True)
class Finding:
    """One diagnostic observation produced by a check."""

    id: str  # sub-check slug, unique within a report
    name: str
    severity: Severity
    details: str = ""
    table: Optional[Table] = None
    debug: str = ""  # only rendered at the debug detail level

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a dict for JSON output."""
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "severity": self.severity.json_value,
        }
        if self.details:
            data["details"] = self.details
        if self.table is not None:
            data["table"] = self.table.to_dict()
        return data


@dataclass
class Report:
    """
    Output of a single check invocation.

    Findings keep insertion order. The report severity is derived from
    the findings and is undefined (None) while the report is empty.
    """

    metadata: CheckMetadata
    findings: List[Finding] = field(default_factory=list)

    @classmethod
    def new(cls, metadata: CheckMetadata) -> "Report":
        return cls(metadata=metadata)

    @property
    def category(self) -> Category:
        return self.metadata.category

    @property
    def check_id(self) -> str:
        return self.metadata.check_id

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def severity(self) -> Optional[Severity]:
        if not self.findings:
            return None
        return Severity.fold(f.severity for f in self.findings)

    def add_finding(self, finding: Finding) -> None:
        if any(existing.id == finding.id for existing in self.findings):
            raise ValueError(f"Duplicate finding id {finding.id!r} in report {self.check_id}")
        self.findings.append(finding)

    def ok_count(self) -> int:
        return sum(1 for f in self.findings if f.severity == Severity.OK)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a dict for JSON output."""
        severity = self.severity
        return {
            "check_id": self.check_id,
            "name": self.name,
            "category": self.category.value,
            "severity": severity.json_value if severity is not None else None,
            "results": [f.to_dict() for f in self.findings],
        }
