"""Select the execution strategy for a declared repository method."""

from __future__ import annotations

import logging
from typing import Any, Optional

from .contracts import EnginePort, QueryPlan
from .execution import (
    CollectionExecution,
    CountColumn,
    CountExecution,
    DeleteExecution,
    ExistsExecution,
    ModifyingExecution,
    PagedExecution,
    QueryExecution,
    SingleEntityExecution,
    SlicedExecution,
    StreamExecution,
)
from .query_method import QueryMethod, ReturnShape
from .transactions import TransactionScope

logger = logging.getLogger(__name__)


def select_execution(
    method: QueryMethod,
    engine: EnginePort,
    *,
    count_column: CountColumn = 0,
    stream_batch_size: int = 100,
) -> QueryExecution:
    """Return the execution matching the method's flags and return shape.

    Raises:
        InvalidReturnTypeError: If a modifying method declares neither
            `None` nor `int` as its return type.
    """

    if method.modifying:
        return ModifyingExecution(method)
    if method.delete:
        return DeleteExecution(engine, method)

    shape = method.return_shape
    if shape is ReturnShape.STREAM:
        return StreamExecution(stream_batch_size)
    if shape is ReturnShape.COLLECTION:
        return CollectionExecution()
    if shape is ReturnShape.SLICE:
        return SlicedExecution(method.parameters)
    if shape is ReturnShape.PAGE:
        return PagedExecution(method.parameters)
    if shape is ReturnShape.BOOLEAN:
        return ExistsExecution(count_column)
    if shape is ReturnShape.INTEGER:
        return CountExecution(count_column)
    return SingleEntityExecution()


class RepositoryQuery:
    """A declared repository method bound to its plan and execution.

    The execution is selected once, at construction, so an invalid method
    declaration fails before the engine is ever used.
    """

    def __init__(
        self,
        method: QueryMethod,
        plan: QueryPlan,
        engine: EnginePort,
        *,
        count_column: CountColumn = 0,
        stream_batch_size: int = 100,
    ):
        self.method = method
        self.plan = plan
        self.engine = engine
        self.execution = select_execution(
            method,
            engine,
            count_column=count_column,
            stream_batch_size=stream_batch_size,
        )
        logger.debug(
            "%s() uses %s", method.name, type(self.execution).__name__
        )

    def execute(self, *args: Any, scope: Optional[TransactionScope] = None) -> Any:
        """Run the query with positional arguments in declaration order."""

        return self.execution.execute(self.plan, args, scope=scope)

    def __call__(self, *args: Any, scope: Optional[TransactionScope] = None) -> Any:
        return self.execute(*args, scope=scope)
