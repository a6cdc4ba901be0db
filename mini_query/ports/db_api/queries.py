"""Live query implementations over a DB-API `Database`.

`SqlStructuredQuery` compiles model-based conditions into SQL at execution
time; `SqlRawQuery` runs caller-provided SQL text. Both accept parameters by
1-based position or by name.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Generic, List, Mapping, Optional, Sequence, Tuple, Type, TypeVar

from ...core.conditions import OrderBy, WhereExpression
from ...core.contracts import DatabasePort, QueryKind
from ...core.domain import PagedList
from ...core.errors import NonUniqueResultError
from ...core.metadata import build_model_metadata, row_to_model
from ...core.query_builder import (
    WhereInput,
    append_limit_offset,
    compile_assignments,
    compile_order_by,
    compile_where,
    merge_params,
    normalize_where,
    resolve_placeholders,
    resolve_value,
)
from ...core.types import ParameterKey, QueryParams, RowMapping
from .database import RowCursor

T = TypeVar("T")

# `:name` (not `::cast`) or `?N`.
_RAW_PARAM = re.compile(r"(?<![:\w]):([A-Za-z_]\w*)|\?(\d+)")


def _check_key(key: ParameterKey) -> ParameterKey:
    if isinstance(key, bool) or not isinstance(key, (int, str)):
        raise TypeError(f"Parameter key must be a position or a name, got {key!r}.")
    if isinstance(key, int) and key < 1:
        raise ValueError("Parameter positions are 1-based.")
    if isinstance(key, str) and not key:
        raise ValueError("Parameter name must not be empty.")
    return key


class _LiveQuery:
    """Parameter and row-window state shared by both query variants."""

    def __init__(self, db: DatabasePort):
        self.db = db
        self.d = db.dialect
        self._params: Dict[ParameterKey, Any] = {}
        self.first_row: Optional[int] = None
        self.max_rows: Optional[int] = None

    @property
    def parameters(self) -> Dict[ParameterKey, Any]:
        return dict(self._params)

    def set_parameter(self, key: ParameterKey, value: Any):
        self._params[_check_key(key)] = value
        return self

    def set_first_row(self, first_row: int):
        if first_row < 0:
            raise ValueError("first_row must be >= 0.")
        self.first_row = first_row or None
        return self

    def set_max_rows(self, max_rows: int):
        """Limit fetched rows; 0 removes the limit."""

        if max_rows < 0:
            raise ValueError("max_rows must be >= 0.")
        self.max_rows = max_rows or None
        return self

    def _run_count(self, sql: str, params: QueryParams) -> int:
        row = self.db.fetchone(sql, params)
        if not row:
            return 0
        return int(row["__count"])


class SqlStructuredQuery(_LiveQuery, Generic[T]):
    """Structured query over one dataclass model table."""

    kind = QueryKind.STRUCTURED

    def __init__(
        self,
        db: DatabasePort,
        model: Type[T],
        *,
        where: WhereInput = None,
        order_by: Optional[Sequence[OrderBy]] = None,
        assignments: Optional[Mapping[str, Any]] = None,
    ):
        super().__init__(db)
        self.model = model
        self.meta = build_model_metadata(model)
        self._where: List[WhereExpression] = normalize_where(where)
        self._order_by: List[OrderBy] = list(order_by or ())
        self._assignments: Dict[str, Any] = dict(assignments or {})

    def where(self, *expressions: WhereExpression) -> SqlStructuredQuery[T]:
        self._where.extend(expressions)
        return self

    def set_order_by(self, order_by: Sequence[OrderBy]) -> SqlStructuredQuery[T]:
        self._order_by = list(order_by)
        return self

    def set_assignments(self, values: Mapping[str, Any]) -> SqlStructuredQuery[T]:
        self._assignments = dict(values)
        return self

    def find_list(self) -> List[T]:
        sql, params = self._select_sql(limit=self.max_rows, offset=self.first_row)
        return [self._to_model(row) for row in self.db.fetchall(sql + ";", params)]

    def find_one(self) -> Optional[T]:
        sql, params = self._select_sql(limit=2, offset=self.first_row)
        rows = self.db.fetchall(sql + ";", params)
        if len(rows) > 1:
            raise NonUniqueResultError(
                f"Expected at most one {self.model.__name__} row, found more."
            )
        return self._to_model(rows[0]) if rows else None

    def find_count(self) -> int:
        sql, params = self._count_sql()
        return self._run_count(sql, params)

    def find_paged_list(self) -> PagedList[T]:
        content = self.find_list()
        count_sql, count_params = self._count_sql()
        return PagedList(content, lambda: self._run_count(count_sql, count_params))

    def find_iterate(self, batch_size: int = 100) -> RowCursor:
        sql, params = self._select_sql(limit=self.max_rows, offset=self.first_row)
        return self.db.cursor(
            sql + ";", params, batch_size=batch_size, mapper=self._to_model
        )

    def update(self) -> int:
        """Run `UPDATE ... SET <assignments> WHERE <conditions>`."""

        if not self._assignments:
            raise ValueError("update assignments must not be empty.")
        invalid = [key for key in self._assignments if key not in self.meta.writable_columns]
        if invalid:
            raise ValueError(
                f"update() only supports writable model columns. Invalid: {invalid}"
            )

        where_fragment = self._where_fragment()
        if not where_fragment.sql:
            raise ValueError("where is required for update().")

        values = {
            key: resolve_value(value, self._params)
            for key, value in self._assignments.items()
        }
        set_fragment = compile_assignments(values, self.d)
        sql = f"UPDATE {self.d.q(self.meta.table)}{set_fragment.sql}{where_fragment.sql};"
        cursor = self.db.execute(sql, merge_params(set_fragment.params, where_fragment.params))
        return cursor.rowcount

    def _where_fragment(self):
        return compile_where(resolve_placeholders(self._where, self._params), self.d)

    def _select_sql(
        self, *, limit: Optional[int], offset: Optional[int]
    ) -> Tuple[str, QueryParams]:
        columns = ", ".join(self.d.q(name) for name in self.meta.columns)
        sql = f"SELECT {columns} FROM {self.d.q(self.meta.table)}"
        where_fragment = self._where_fragment()
        sql += where_fragment.sql
        sql += compile_order_by(self._order_by, self.d)
        return append_limit_offset(
            sql, where_fragment.params, limit=limit, offset=offset, dialect=self.d
        )

    def _count_sql(self) -> Tuple[str, QueryParams]:
        where_fragment = self._where_fragment()
        sql = (
            f"SELECT COUNT(*) AS {self.d.q('__count')} "
            f"FROM {self.d.q(self.meta.table)}{where_fragment.sql};"
        )
        return sql, where_fragment.params

    def _to_model(self, row: RowMapping) -> T:
        return self.meta.to_model(row)


class SqlRawQuery(_LiveQuery):
    """Raw SQL query with `:name` and `?N` parameter references.

    References are rewritten to the dialect's paramstyle on execution. Rows
    are returned as mappings, or mapped to `model` when one is given.
    """

    kind = QueryKind.RAW

    def __init__(self, db: DatabasePort, sql: str, *, model: Optional[type] = None):
        super().__init__(db)
        if not sql or not sql.strip():
            raise ValueError("sql must not be empty.")
        self.sql = sql
        self.model = model

    def find_list(self) -> List[Any]:
        sql, params = self._compile(limit=self.max_rows, offset=self.first_row)
        return [self._map(row) for row in self.db.fetchall(sql + ";", params)]

    def find_one(self) -> Optional[Any]:
        sql, params = self._compile(limit=2, offset=self.first_row)
        rows = self.db.fetchall(sql + ";", params)
        if len(rows) > 1:
            raise NonUniqueResultError("Expected at most one row from raw query, found more.")
        return self._map(rows[0]) if rows else None

    def find_count(self) -> int:
        """Count the rows the unwindowed SQL returns, without fetching them."""

        sql, params = self._compile(limit=None, offset=None)
        count_sql = (
            f"SELECT COUNT(*) AS {self.d.q('__count')} "
            f"FROM ({sql}) AS {self.d.q('__rows')};"
        )
        return self._run_count(count_sql, params)

    def _compile(
        self, *, limit: Optional[int], offset: Optional[int]
    ) -> Tuple[str, QueryParams]:
        named = self.d.uses_named_params
        params: Any = {} if named else []

        def substitute(match: re.Match[str]) -> str:
            key: ParameterKey = match.group(1) or int(match.group(2))
            if key not in self._params:
                raise ValueError(f"No value bound for query parameter {key!r}.")
            value = self._params[key]
            if named:
                name = key if isinstance(key, str) else f"p{key}"
                params[name] = value
                return f":{name}"
            params.append(value)
            return self.d.placeholder(str(key))

        sql = _RAW_PARAM.sub(substitute, self.sql.strip().rstrip(";"))
        return append_limit_offset(
            sql, params or None, limit=limit, offset=offset, dialect=self.d
        )

    def _map(self, row: RowMapping) -> Any:
        if self.model is None:
            return dict(row)
        return row_to_model(self.model, row)
