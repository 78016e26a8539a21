"""Database collaborator: nullable types, typed rows, SQL and the async Queries."""

from .queries import DatabaseUnavailable, Queries
from .types import NullBool, NullFloat64, NullInt64, NullText, NullTimestamp

__all__ = [
    "DatabaseUnavailable",
    "Queries",
    "NullBool",
    "NullFloat64",
    "NullInt64",
    "NullText",
    "NullTimestamp",
]
