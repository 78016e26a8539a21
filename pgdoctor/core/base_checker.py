"""
Base class for pgdoctor checks.

A check publishes static metadata and, given its query collaborator,
produces a fully populated Report or raises CheckError.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, ClassVar, List, Sequence

from .models import CheckMetadata, Finding, Report, Severity

DEFAULT_PREVIEW_LIMIT = 10


class CheckError(Exception):
    """A check could not complete because its query collaborator failed."""

    def __init__(self, metadata: CheckMetadata, message: str):
        self.category = metadata.category
        self.check_id = metadata.check_id
        super().__init__(f"running {metadata.qualified_id}: {message}")


class Checker(ABC):
    """
    Contract implemented by every check.

    Subclasses set METADATA and implement check(). The metadata is a class
    attribute so listing, filtering and documentation never need an instance
    or a database connection.

    Example:
        class InvalidIndexes(Checker):
            METADATA = CheckMetadata(
                category=Category.INDEXES,
                check_id="invalid-indexes",
                ...
            )

            async def check(self) -> Report:
                report = self.new_report()
                rows = await self.fetch(self.queries.broken_indexes)
                ...
                return report
    """

    METADATA: ClassVar[CheckMetadata]

    def __init__(self, queries: Any):
        self.queries = queries
        self.logger = logging.getLogger(f"pgdoctor.checks.{self.METADATA.check_id}")

    @classmethod
    def metadata(cls) -> CheckMetadata:
        return cls.METADATA

    @abstractmethod
    async def check(self) -> Report:
        """
        Run the check.

        Returns:
            Report with at least one finding

        Raises:
            CheckError: the query collaborator failed
        """

    def new_report(self) -> Report:
        return Report.new(self.METADATA)

    async def fetch(self, query: Callable[[], Awaitable[Any]], label: str = "") -> Any:
        """Call a collaborator query, wrapping any failure in CheckError."""
        try:
            return await query()
        except Exception as e:
            self.logger.debug(f"query {getattr(query, '__name__', query)} failed: {e}")
            suffix = f" ({label})" if label else ""
            raise CheckError(self.METADATA, f"{type(e).__name__}: {e}{suffix}") from e

    def add_no_data_finding(self, report: Report, details: str = "") -> Report:
        """Record the single OK finding used when the query returned nothing."""
        report.add_finding(Finding(
            id=self.METADATA.check_id,
            name=self.METADATA.name,
            severity=Severity.OK,
            details=details,
        ))
        return report

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}({self.METADATA.check_id})>"


def preview_lines(lines: Sequence[str], limit: int = DEFAULT_PREVIEW_LIMIT) -> List[str]:
    """First `limit` lines plus an '... and N more' line when truncated."""
    shown = list(lines[:limit])
    if len(lines) > limit:
        shown.append(f"... and {len(lines) - limit} more")
    return shown
