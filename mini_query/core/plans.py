"""Query plans that materialize bound live queries from an engine."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from .binder import bind_and_prepare
from .conditions import OrderBy
from .contracts import EnginePort, RawQueryPort, StructuredQueryPort
from .parameters import ParameterDescriptor, ParameterSet
from .query_builder import WhereInput


class StructuredQueryPlan:
    """Builds a structured query over `model` for every call.

    `where` and `assignments` values may be `Placeholder`s referring to
    method arguments by position or by name.
    """

    def __init__(
        self,
        engine: EnginePort,
        parameters: Sequence[ParameterDescriptor],
        model: type,
        *,
        where: WhereInput = None,
        order_by: Optional[Sequence[OrderBy]] = None,
        assignments: Optional[Mapping[str, Any]] = None,
    ):
        self.engine = engine
        self.parameters = tuple(parameters)
        self.model = model
        self.where = where
        self.order_by = tuple(order_by or ())
        self.assignments = dict(assignments or {})

    def materialize(self, args: Sequence[Any]) -> StructuredQueryPort:
        query = self.engine.find(
            self.model,
            where=self.where,
            order_by=self.order_by,
            assignments=self.assignments,
        )
        return bind_and_prepare(query, ParameterSet(self.parameters, args))


class RawQueryPlan:
    """Builds a raw SQL query for every call.

    The SQL may reference arguments as `:name` (named parameters) or `?1`,
    `?2`, ... (positional parameters).
    """

    def __init__(
        self,
        engine: EnginePort,
        parameters: Sequence[ParameterDescriptor],
        sql: str,
        *,
        model: Optional[type] = None,
    ):
        if not sql or not sql.strip():
            raise ValueError("sql must not be empty.")
        self.engine = engine
        self.parameters = tuple(parameters)
        self.sql = sql
        self.model = model

    def materialize(self, args: Sequence[Any]) -> RawQueryPort:
        query = self.engine.sql_query(self.sql, model=self.model)
        return bind_and_prepare(query, ParameterSet(self.parameters, args))
