"""Exception types raised by binding and query execution.

Every error derives from the builtin exception a caller would naturally catch
(`ValueError`, `TypeError`, `RuntimeError`, `LookupError`) as well as from
`QueryExecutionError`.
"""

from __future__ import annotations


class QueryExecutionError(Exception):
    """Base class for query binding and execution failures."""


class InvalidArgumentShapeError(QueryExecutionError, ValueError):
    """Runtime argument count does not match the declared parameters."""


class UnsupportedQueryTypeError(QueryExecutionError, TypeError):
    """Live query variant cannot be handled by the current operation."""


class MissingParameterNameError(QueryExecutionError, ValueError):
    """A parameter requires binding by name but carries no name."""


class InvalidReturnTypeError(QueryExecutionError, TypeError):
    """Declared method return type is not valid for the selected execution."""


class MissingTransactionError(QueryExecutionError, RuntimeError):
    """Streaming query invoked without an active surrounding transaction."""


class NonUniqueResultError(QueryExecutionError, LookupError):
    """Single-result query matched more than one row."""
