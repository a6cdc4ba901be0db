"""Relational engine facade over a DB-API `Database`."""

from __future__ import annotations

import contextlib
from collections.abc import Mapping as MappingABC
from typing import Any, Iterator, Mapping, Optional, Sequence, Type, TypeVar

from ...core.conditions import OrderBy
from ...core.contracts import DatabasePort
from ...core.metadata import build_model_metadata
from ...core.query_builder import WhereInput
from ...core.transactions import TransactionScope
from .queries import SqlRawQuery, SqlStructuredQuery

T = TypeVar("T")


class QueryEngine:
    """Creates live queries, deletes entities, and opens transaction scopes."""

    def __init__(self, db: DatabasePort):
        self.db = db
        self.d = db.dialect

    def find(
        self,
        model: Type[T],
        *,
        where: WhereInput = None,
        order_by: Optional[Sequence[OrderBy]] = None,
        assignments: Optional[Mapping[str, Any]] = None,
    ) -> SqlStructuredQuery[T]:
        """Create a structured query over `model`."""

        return SqlStructuredQuery(
            self.db, model, where=where, order_by=order_by, assignments=assignments
        )

    def sql_query(self, sql: str, *, model: Optional[type] = None) -> SqlRawQuery:
        """Create a raw SQL query, optionally mapping rows to `model`."""

        return SqlRawQuery(self.db, sql, model=model)

    def delete(self, entity: Any) -> int:
        """Delete one model instance identified by its primary key.

        Raises:
            TypeError: If `entity` is a plain row mapping or not a dataclass.
            ValueError: If the primary key is not set.
        """

        if isinstance(entity, MappingABC):
            raise TypeError("Cannot DELETE a raw row; map rows to a model first.")
        meta = build_model_metadata(type(entity))
        pk_value = meta.pk_value(entity)
        if pk_value is None:
            raise ValueError("Cannot DELETE without PK set on object.")

        table_sql = self.d.q(meta.table)
        if self.d.uses_named_params:
            sql = f"DELETE FROM {table_sql} WHERE {self.d.q(meta.pk)} = :pk;"
            cursor = self.db.execute(sql, {"pk": pk_value})
            return cursor.rowcount

        sql = (
            f"DELETE FROM {table_sql} WHERE {self.d.q(meta.pk)} "
            f"= {self.d.placeholder('pk')};"
        )
        cursor = self.db.execute(sql, [pk_value])
        return cursor.rowcount

    @contextlib.contextmanager
    def transaction(self) -> Iterator[TransactionScope]:
        """Open a database transaction and yield its active scope handle.

        Resources registered on the scope are released before commit or
        rollback.
        """

        with self.db.transaction():
            with TransactionScope() as scope:
                yield scope
