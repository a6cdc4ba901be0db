"""DB-API adapter, dialect, and engine exports."""

from .database import Database, RowCursor
from .dialects import Dialect, MySQLDialect, PostgresDialect, SQLiteDialect
from .engine import QueryEngine
from .queries import SqlRawQuery, SqlStructuredQuery

__all__ = [
    "Database",
    "Dialect",
    "MySQLDialect",
    "PostgresDialect",
    "QueryEngine",
    "RowCursor",
    "SQLiteDialect",
    "SqlRawQuery",
    "SqlStructuredQuery",
]
