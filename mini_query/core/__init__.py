"""Public core API for parameter binding and query execution."""

from .binder import bind, bind_and_prepare, query_kind
from .conditions import C, Condition, ConditionGroup, NotCondition, OrderBy, P, Placeholder
from .contracts import (
    EnginePort,
    LiveQuery,
    QueryKind,
    QueryPlan,
    RawQueryPort,
    StructuredQueryPort,
)
from .dispatch import RepositoryQuery, select_execution
from .domain import Page, PagedList, PageRequest, Slice, Sort
from .errors import (
    InvalidArgumentShapeError,
    InvalidReturnTypeError,
    MissingParameterNameError,
    MissingTransactionError,
    NonUniqueResultError,
    QueryExecutionError,
    UnsupportedQueryTypeError,
)
from .execution import (
    CollectionExecution,
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
from .parameters import (
    Param,
    ParameterDescriptor,
    ParameterKind,
    ParameterSet,
    parameters_from_signature,
    resolve_type_hints,
)
from .plans import RawQueryPlan, StructuredQueryPlan
from .query_method import QueryMethod, ReturnShape, classify_return_type
from .session import Session
from .streams import ResultStream
from .transactions import TransactionScope

__all__ = [
    "C",
    "Condition",
    "ConditionGroup",
    "NotCondition",
    "OrderBy",
    "P",
    "Placeholder",
    "EnginePort",
    "LiveQuery",
    "QueryKind",
    "QueryPlan",
    "RawQueryPort",
    "StructuredQueryPort",
    "Page",
    "PagedList",
    "PageRequest",
    "Slice",
    "Sort",
    "QueryExecutionError",
    "InvalidArgumentShapeError",
    "UnsupportedQueryTypeError",
    "MissingParameterNameError",
    "InvalidReturnTypeError",
    "MissingTransactionError",
    "NonUniqueResultError",
    "Param",
    "ParameterDescriptor",
    "ParameterKind",
    "ParameterSet",
    "parameters_from_signature",
    "resolve_type_hints",
    "bind",
    "bind_and_prepare",
    "query_kind",
    "QueryExecution",
    "CollectionExecution",
    "SlicedExecution",
    "PagedExecution",
    "SingleEntityExecution",
    "ModifyingExecution",
    "DeleteExecution",
    "ExistsExecution",
    "CountExecution",
    "StreamExecution",
    "QueryMethod",
    "ReturnShape",
    "classify_return_type",
    "RepositoryQuery",
    "select_execution",
    "RawQueryPlan",
    "StructuredQueryPlan",
    "ResultStream",
    "TransactionScope",
    "Session",
]
