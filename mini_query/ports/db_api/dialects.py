"""Concrete SQL dialect implementations for DB-API adapters."""

from __future__ import annotations

from typing import Any


class Dialect:
    """Identifier quoting, parameter placeholders and row-window limits.

    `unbounded_limit` is the `LIMIT` value sent when a query skips rows
    without capping them, since most engines reject a bare `OFFSET`.
    """

    name: str = "generic"
    paramstyle: str = "named"
    quote_char: str = '"'
    unbounded_limit: Any = 2**63 - 1

    @property
    def uses_named_params(self) -> bool:
        return self.paramstyle == "named"

    def q(self, ident: str) -> str:
        """Quote SQL identifier, doubling embedded quote characters."""

        escaped = ident.replace(self.quote_char, self.quote_char * 2)
        return f"{self.quote_char}{escaped}{self.quote_char}"

    def placeholder(self, key: str) -> str:
        if self.paramstyle == "named":
            return f":{key}"
        if self.paramstyle == "qmark":
            return "?"
        if self.paramstyle == "format":
            return "%s"
        raise ValueError(f"Unsupported paramstyle: {self.paramstyle}")


class SQLiteDialect(Dialect):
    """SQLite dialect (`:name` parameters, `LIMIT -1` means no limit)."""

    name = "sqlite"
    paramstyle = "named"
    unbounded_limit = -1


class PostgresDialect(Dialect):
    """PostgreSQL dialect (`%s` parameters, `LIMIT NULL` means no limit)."""

    name = "postgres"
    paramstyle = "format"
    unbounded_limit = None


class MySQLDialect(Dialect):
    """MySQL dialect (`%s` parameters, backtick quoting)."""

    name = "mysql"
    paramstyle = "format"
    quote_char = "`"
    unbounded_limit = 2**64 - 1
