"""
pgdoctor: health checks for PostgreSQL databases.

Runs a battery of independent checks (indexes, schema, configuration,
performance) and aggregates their findings into one verdict.

Usage:
    pgdoctor run postgres://user@host/db
    pgdoctor list
    pgdoctor explain <check-id>
"""

__version__ = "0.1.0"
