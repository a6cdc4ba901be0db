"""Query execution strategies.

Depending on the declared return shape of a repository method, a query plan
is executed in one of several flavors. Every execution materializes exactly
one live query from the plan, dispatches on its `QueryKind` tag, and shapes
the raw engine result into what the caller declared.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence, Tuple, Union

from .binder import query_kind
from .contracts import EnginePort, QueryKind, QueryPlan
from .domain import Page, Slice
from .errors import (
    InvalidReturnTypeError,
    MissingTransactionError,
    UnsupportedQueryTypeError,
)
from .parameters import ParameterDescriptor, ParameterSet
from .query_method import QueryMethod, ReturnShape
from .streams import ResultStream
from .transactions import TransactionScope

logger = logging.getLogger(__name__)

CountColumn = Union[int, str]

NO_SURROUNDING_TRANSACTION = (
    "You're trying to execute a streaming query method without a surrounding "
    "transaction that keeps the connection open so that the stream can actually "
    "be consumed. Make sure the code consuming the stream runs inside an active "
    "transaction scope (for example `with session.begin():`) and passes that "
    "scope to the execution."
)


class QueryExecution(ABC):
    """Base class for all execution strategies."""

    def execute(
        self,
        plan: QueryPlan,
        args: Sequence[Any],
        *,
        scope: Optional[TransactionScope] = None,
    ) -> Any:
        """Execute `plan` with `args` and return the caller-shaped result.

        Args:
            plan: Query plan that materializes a live query.
            args: Runtime argument values, in declaration order.
            scope: Surrounding transaction scope, required by streaming only.
        """

        if plan is None:
            raise ValueError("query plan must not be None.")
        if args is None:
            raise ValueError("args must not be None.")
        logger.debug("executing %s", type(self).__name__)
        return self._do_execute(plan, tuple(args), scope)

    @abstractmethod
    def _do_execute(
        self,
        plan: QueryPlan,
        args: Tuple[Any, ...],
        scope: Optional[TransactionScope],
    ) -> Any:
        """Materialize one live query from `plan` and shape its result."""


class CollectionExecution(QueryExecution):
    """Executes the query to return a list of results."""

    def _do_execute(self, plan, args, scope):
        query = plan.materialize(args)
        query_kind(query)
        return query.find_list()


class SlicedExecution(QueryExecution):
    """Executes the query to return a `Slice` of results.

    One extra row is fetched to learn whether another slice follows.
    """

    def __init__(self, parameters: Sequence[ParameterDescriptor]):
        self.parameters = tuple(parameters)

    def _do_execute(self, plan, args, scope):
        page_request = ParameterSet(self.parameters, args).page_request
        if page_request is None:
            raise ValueError("Sliced execution requires a PageRequest argument.")

        query = plan.materialize(args)
        query_kind(query)
        query.set_first_row(page_request.offset)
        query.set_max_rows(page_request.size + 1)
        rows = list(query.find_list())

        has_next = len(rows) > page_request.size
        content = rows[: page_request.size] if has_next else rows
        return Slice(content, page_request, has_next)


class PagedExecution(QueryExecution):
    """Executes the query to return a `Page` of results.

    Structured queries fetch the page and defer the count query until the
    total is needed. Raw queries are paged by this execution directly; their
    total is computed on demand by a count over a fresh, unwindowed query.
    """

    def __init__(self, parameters: Sequence[ParameterDescriptor]):
        self.parameters = tuple(parameters)

    def _do_execute(self, plan, args, scope):
        page_request = ParameterSet(self.parameters, args).page_request
        query = plan.materialize(args)

        if query_kind(query) is QueryKind.STRUCTURED:
            paged = query.find_paged_list()
            return Page(list(paged.content), page_request, paged.total_count)

        if page_request is None:
            return Page.unpaged(query.find_list())

        query.set_first_row(page_request.offset)
        query.set_max_rows(page_request.size)
        content = list(query.find_list())

        return Page(content, page_request, lambda: plan.materialize(args).find_count())


class SingleEntityExecution(QueryExecution):
    """Executes the query to return at most one result."""

    def _do_execute(self, plan, args, scope):
        query = plan.materialize(args)
        query_kind(query)
        return query.find_one()


class ModifyingExecution(QueryExecution):
    """Executes an update statement and returns the affected row count."""

    def __init__(self, method: QueryMethod):
        if method.return_shape not in (ReturnShape.VOID, ReturnShape.INTEGER):
            raise InvalidReturnTypeError(
                f"Modifying queries can only use None or int as return type; "
                f"{method.name}() declares {method.return_type!r}."
            )
        self.method = method

    def _do_execute(self, plan, args, scope):
        query = plan.materialize(args)
        if query_kind(query) is not QueryKind.STRUCTURED:
            raise UnsupportedQueryTypeError("Modifying queries must be structured queries.")
        return query.update()


class DeleteExecution(QueryExecution):
    """Removes the entities matching the query, one `engine.delete()` per row.

    Rows deleted before a failing row stay deleted; the failure propagates.
    """

    def __init__(self, engine: EnginePort, method: QueryMethod):
        self.engine = engine
        self.method = method

    def _do_execute(self, plan, args, scope):
        query = plan.materialize(args)
        query_kind(query)
        rows: List[Any] = list(query.find_list())

        for row in rows:
            self.engine.delete(row)
        logger.debug("deleted %d row(s) for %s()", len(rows), self.method.name)

        return rows if self.method.is_collection_query else len(rows)


class ExistsExecution(QueryExecution):
    """Checks whether the query matches at least one row.

    Raw queries are expected to select a count; `count_column` names the
    column (by position or by name) holding it.
    """

    def __init__(self, count_column: CountColumn = 0):
        self.count_column = count_column

    def _do_execute(self, plan, args, scope):
        query = plan.materialize(args)
        if query_kind(query) is QueryKind.STRUCTURED:
            return query.find_count() > 0
        return read_count(query.find_one(), self.count_column) > 0


class CountExecution(QueryExecution):
    """Returns the number of rows the query matches."""

    def __init__(self, count_column: CountColumn = 0):
        self.count_column = count_column

    def _do_execute(self, plan, args, scope):
        query = plan.materialize(args)
        if query_kind(query) is QueryKind.STRUCTURED:
            return query.find_count()
        return read_count(query.find_one(), self.count_column)


class StreamExecution(QueryExecution):
    """Executes the query and exposes the results as a `ResultStream`.

    Requires an active surrounding transaction scope; the stream is
    registered on it and closed when the scope ends at the latest.
    """

    def __init__(self, batch_size: int = 100):
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1.")
        self.batch_size = batch_size

    def _do_execute(self, plan, args, scope):
        if scope is None or not scope.active:
            raise MissingTransactionError(NO_SURROUNDING_TRANSACTION)

        query = plan.materialize(args)
        if query_kind(query) is not QueryKind.STRUCTURED:
            raise UnsupportedQueryTypeError("Streaming queries must be structured queries.")

        stream: ResultStream[Any] = ResultStream(query.find_iterate(self.batch_size))
        scope.register(stream.close)
        return stream


def read_count(row: Any, column: CountColumn) -> int:
    """Read an integer count from a raw result row.

    Args:
        row: Row mapping, mapped model instance, or `None`.
        column: Column position or name.

    Returns:
        The count, or 0 when there is no row.
    """

    if row is None:
        return 0
    if isinstance(column, int):
        values = list(row.values()) if hasattr(row, "values") else list(vars(row).values())
        value = values[column]
    elif hasattr(row, "keys"):
        value = row[column]
    else:
        value = getattr(row, column)
    return int(value or 0)
