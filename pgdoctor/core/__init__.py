"""
Core components for pgdoctor.

Contains:
- Data models (Severity, Finding, Table, Report, CheckMetadata)
- Checker base class and CheckError
- Check registry and filters
- Threshold grading and formatting helpers

Nothing in this package opens a database connection.
"""
