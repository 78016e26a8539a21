"""Text and JSON rendering of run results."""

from .generator import DetailLevel, ReportGenerator, parse_dsn_label

__all__ = ["DetailLevel", "ReportGenerator", "parse_dsn_label"]
