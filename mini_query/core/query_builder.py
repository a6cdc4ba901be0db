"""SQL fragment builders for filtering, sorting, and paging.

This module centralizes SQL string compilation for structured queries. It
keeps the live query classes focused on state and execution while making
fragment generation reusable across dialects.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from .conditions import (
    Condition,
    ConditionGroup,
    NotCondition,
    OrderBy,
    Placeholder,
    WhereExpression,
)
from .contracts import DialectPort
from .types import NamedParams, ParameterKey, PositionalParams, QueryParams


WhereInput = Optional[Sequence[WhereExpression] | WhereExpression]


@dataclass(frozen=True)
class CompiledFragment:
    """Represents a compiled SQL fragment with its bound parameters."""

    sql: str
    params: QueryParams


class _ParamNameGenerator:
    """Generates safe, unique parameter names for named SQL styles."""

    def __init__(self) -> None:
        self._counter = 0

    def next(self, base: str) -> str:
        """Return a deterministic parameter name based on a column hint."""

        self._counter += 1
        safe = "".join(ch if ch.isalnum() or ch == "_" else "_" for ch in base)
        return f"{safe}_{self._counter}"


def normalize_where(where: WhereInput) -> List[WhereExpression]:
    """Return `where` input as a flat list of top-level expressions."""

    if where is None:
        return []
    if isinstance(where, (Condition, ConditionGroup, NotCondition)):
        return [where]
    return list(where)


def resolve_value(value: Any, bound: Mapping[ParameterKey, Any]) -> Any:
    """Replace a placeholder with its bound value; return literals unchanged."""

    if not isinstance(value, Placeholder):
        return value
    if value.key not in bound:
        raise ValueError(f"No value bound for query parameter {value.key!r}.")
    return bound[value.key]


def resolve_placeholders(
    where: WhereInput, bound: Mapping[ParameterKey, Any]
) -> List[WhereExpression]:
    """Return expressions with every placeholder replaced by its bound value.

    Raises:
        ValueError: If a placeholder has no bound value.
    """

    return [_resolve_expression(item, bound) for item in normalize_where(where)]


def compile_where(where: WhereInput, dialect: DialectPort) -> CompiledFragment:
    """Compile one or many expressions into a SQL `WHERE` fragment.

    Multiple top-level expressions are combined using `AND`. Expressions must
    already be resolved (see `resolve_placeholders`).

    Args:
        where: A single expression, a list of expressions, or `None`.
        dialect: SQL dialect used for identifier quoting and placeholders.

    Returns:
        A compiled SQL fragment and parameters. Empty fragment if no condition.
    """

    expressions = normalize_where(where)
    if not expressions:
        return CompiledFragment("", None)

    generator = _ParamNameGenerator()
    clauses: List[str] = []
    params: QueryParams = _empty_params(dialect)

    for item in expressions:
        clause, fragment_params = _compile_expression(item, dialect, generator)
        clauses.append(clause)
        _merge_params(params, fragment_params)

    return CompiledFragment(f" WHERE {' AND '.join(clauses)}", params)


def compile_order_by(
    order_by: Optional[Sequence[OrderBy]], dialect: DialectPort
) -> str:
    """Compile `ORDER BY` clause from ordering inputs."""

    if not order_by:
        return ""

    ordered_cols = ", ".join(
        f"{dialect.q(item.col)} {'DESC' if item.desc else 'ASC'}" for item in order_by
    )
    return f" ORDER BY {ordered_cols}"


def compile_assignments(
    values: Mapping[str, Any], dialect: DialectPort
) -> CompiledFragment:
    """Compile a resolved `SET` clause for `UPDATE` statements."""

    if not values:
        raise ValueError("update assignments must not be empty.")

    if dialect.uses_named_params:
        clause = ", ".join(f"{dialect.q(key)} = :set_{key}" for key in values)
        return CompiledFragment(
            f" SET {clause}",
            {f"set_{key}": value for key, value in values.items()},
        )

    clause = ", ".join(
        f"{dialect.q(key)} = {dialect.placeholder(f'set_{key}')}" for key in values
    )
    return CompiledFragment(f" SET {clause}", list(values.values()))


def append_limit_offset(
    sql: str,
    params: QueryParams,
    *,
    limit: Optional[int],
    offset: Optional[int],
    dialect: DialectPort,
) -> Tuple[str, QueryParams]:
    """Append pagination clauses and merge parameters.

    Args:
        sql: Base SQL string.
        params: Existing parameters from previous fragment compilation.
        limit: Optional row limit.
        offset: Optional row offset.
        dialect: SQL dialect used for placeholder style.

    Returns:
        Updated SQL and merged parameters.

    Raises:
        ValueError: If `limit` is lower than 1 or `offset` is negative.
    """

    if limit is not None and limit < 1:
        raise ValueError("limit must be >= 1.")
    if offset is not None and offset < 0:
        raise ValueError("offset must be >= 0.")
    windowed = limit is not None or offset is not None
    if limit is None and offset is not None:
        limit = dialect.unbounded_limit

    if dialect.uses_named_params:
        named_params: NamedParams = {}
        if isinstance(params, dict):
            named_params.update(params)
        if windowed:
            named_params["__limit"] = limit
            sql += " LIMIT :__limit"
        if offset is not None:
            named_params["__offset"] = offset
            sql += " OFFSET :__offset"
        return sql, named_params if named_params else None

    positional_params: PositionalParams = []
    if isinstance(params, list):
        positional_params.extend(params)
    if windowed:
        sql += f" LIMIT {dialect.placeholder('limit')}"
        positional_params.append(limit)
    if offset is not None:
        sql += f" OFFSET {dialect.placeholder('offset')}"
        positional_params.append(offset)
    return sql, positional_params if positional_params else None


def merge_params(first: QueryParams, second: QueryParams) -> QueryParams:
    """Return a new parameter collection holding `first` then `second`."""

    if first is None:
        return second
    merged: QueryParams = dict(first) if isinstance(first, dict) else list(first)
    if second is not None:
        _merge_params(merged, second)
    return merged


def _resolve_expression(
    item: WhereExpression, bound: Mapping[ParameterKey, Any]
) -> WhereExpression:
    if isinstance(item, ConditionGroup):
        return replace(
            item, items=tuple(_resolve_expression(child, bound) for child in item.items)
        )
    if isinstance(item, NotCondition):
        return replace(item, item=_resolve_expression(item.item, bound))
    if item.is_unary:
        return item
    if item.op == "IN":
        values = resolve_value(item.values, bound)
        if values is None:
            values = []
        return replace(item, values=[resolve_value(v, bound) for v in values])
    return replace(item, value=resolve_value(item.value, bound))


def _compile_expression(
    item: WhereExpression,
    dialect: DialectPort,
    generator: _ParamNameGenerator,
) -> Tuple[str, QueryParams]:
    if isinstance(item, ConditionGroup):
        clauses: List[str] = []
        params: QueryParams = _empty_params(dialect)
        for child in item.items:
            clause, child_params = _compile_expression(child, dialect, generator)
            clauses.append(f"({clause})")
            _merge_params(params, child_params)
        return f"({f' {item.operator} '.join(clauses)})", params

    if isinstance(item, NotCondition):
        clause, params = _compile_expression(item.item, dialect, generator)
        return f"NOT ({clause})", params

    return _compile_condition(item, dialect, generator)


def _compile_condition(
    condition: Condition,
    dialect: DialectPort,
    generator: _ParamNameGenerator,
) -> Tuple[str, QueryParams]:
    """Compile one condition into SQL and parameters."""

    col_sql = dialect.q(condition.col)

    if condition.is_unary:
        return f"{col_sql} {condition.op}", _empty_params(dialect)

    if isinstance(condition.value, Placeholder) or isinstance(
        condition.values, Placeholder
    ):
        raise ValueError("Placeholders must be resolved before compilation.")

    if condition.op == "IN":
        values = list(condition.values or [])
        if not values:
            return "1=0", _empty_params(dialect)

        keys = [generator.next(condition.col) for _ in values]
        if dialect.uses_named_params:
            placeholders = ", ".join(f":{key}" for key in keys)
            return (
                f"{col_sql} IN ({placeholders})",
                {key: value for key, value in zip(keys, values)},
            )

        placeholders = ", ".join(dialect.placeholder(key) for key in keys)
        return f"{col_sql} IN ({placeholders})", list(values)

    key = generator.next(condition.col)
    if dialect.uses_named_params:
        return f"{col_sql} {condition.op} :{key}", {key: condition.value}

    return (
        f"{col_sql} {condition.op} {dialect.placeholder(key)}",
        [condition.value],
    )


def _empty_params(dialect: DialectPort) -> QueryParams:
    """Return empty parameters matching dialect param style."""

    return {} if dialect.uses_named_params else []


def _merge_params(target: QueryParams, source: QueryParams) -> None:
    """Merge parameter collections in place."""

    if isinstance(target, dict) and isinstance(source, dict):
        target.update(source)
    elif isinstance(target, list) and isinstance(source, list):
        target.extend(source)
