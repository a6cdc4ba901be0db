"""Core port contracts used by executions, plans, and engine adapters."""

from __future__ import annotations

from contextlib import AbstractContextManager
from enum import Enum
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Iterator,
    List,
    Literal,
    Optional,
    Protocol,
    Sequence,
    Union,
)

from .conditions import OrderBy
from .types import MaybeRow, ParameterKey, QueryParams, RowMapping

if TYPE_CHECKING:
    from .domain import PagedList
    from .transactions import TransactionScope


class QueryKind(str, Enum):
    """Tag carried by every live query.

    `STRUCTURED` queries are typed query-builder queries; `RAW` queries are
    text-based SQL queries with a narrower capability set.
    """

    STRUCTURED = "structured"
    RAW = "raw"


class DialectPort(Protocol):
    """Dialect behavior required by fragment compilation."""

    name: str
    paramstyle: str
    unbounded_limit: Any

    @property
    def uses_named_params(self) -> bool: ...

    def q(self, ident: str) -> str: ...

    def placeholder(self, key: str) -> str: ...


class DatabasePort(Protocol):
    """Database adapter behavior required by the engine."""

    dialect: DialectPort

    def transaction(self) -> AbstractContextManager[None]: ...

    def execute(self, sql: str, params: QueryParams = None) -> Any: ...

    def fetchone(self, sql: str, params: QueryParams = None) -> MaybeRow: ...

    def fetchall(self, sql: str, params: QueryParams = None) -> List[RowMapping]: ...

    def cursor(
        self,
        sql: str,
        params: QueryParams = None,
        *,
        batch_size: int = 100,
        mapper: Optional[Callable[[RowMapping], Any]] = None,
    ) -> CursorPort: ...


class CursorPort(Protocol):
    """Forward-only cursor over query results."""

    def __iter__(self) -> Iterator[Any]: ...

    def __next__(self) -> Any: ...

    def close(self) -> None: ...


class StructuredQueryPort(Protocol):
    """Capabilities of a typed query-builder style live query."""

    kind: Literal[QueryKind.STRUCTURED]

    def set_parameter(self, key: ParameterKey, value: Any) -> Any: ...

    def set_first_row(self, first_row: int) -> Any: ...

    def set_max_rows(self, max_rows: int) -> Any: ...

    def set_order_by(self, order_by: Sequence[OrderBy]) -> Any: ...

    def find_list(self) -> List[Any]: ...

    def find_one(self) -> Optional[Any]: ...

    def find_count(self) -> int: ...

    def find_paged_list(self) -> PagedList[Any]: ...

    def find_iterate(self, batch_size: int = 100) -> CursorPort: ...

    def update(self) -> int: ...


class RawQueryPort(Protocol):
    """Capabilities of a text-based live query."""

    kind: Literal[QueryKind.RAW]

    def set_parameter(self, key: ParameterKey, value: Any) -> Any: ...

    def set_first_row(self, first_row: int) -> Any: ...

    def set_max_rows(self, max_rows: int) -> Any: ...

    def find_list(self) -> List[Any]: ...

    def find_one(self) -> Optional[Any]: ...

    def find_count(self) -> int: ...


LiveQuery = Union[StructuredQueryPort, RawQueryPort]


class QueryPlan(Protocol):
    """Already-derived query that materializes one live query per call."""

    def materialize(self, args: Sequence[Any]) -> LiveQuery: ...


class EnginePort(Protocol):
    """Relational engine behavior required by plans and executions."""

    def find(self, model: type, **options: Any) -> StructuredQueryPort: ...

    def sql_query(self, sql: str, *, model: Optional[type] = None) -> RawQueryPort: ...

    def delete(self, entity: Any) -> int: ...

    def transaction(self) -> AbstractContextManager[TransactionScope]: ...
