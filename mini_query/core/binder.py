"""Bind method arguments onto live queries.

Bindable parameters are bound in declaration order. Named parameters bind by
name; all others bind by a 1-based position that only counts positional
bindable parameters, so page requests, sorts, and named values never shift
the positions of the remaining arguments.
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar

from .contracts import QueryKind
from .errors import MissingParameterNameError, UnsupportedQueryTypeError
from .parameters import ParameterDescriptor, ParameterSet

logger = logging.getLogger(__name__)

Q = TypeVar("Q")


def query_kind(query: Any) -> QueryKind:
    """Return the variant tag of a live query.

    Raises:
        UnsupportedQueryTypeError: If `query` is not a structured or raw query.
    """

    kind = getattr(query, "kind", None)
    if not isinstance(kind, QueryKind):
        raise UnsupportedQueryTypeError(
            f"query must be a structured or raw query, got {type(query).__name__}."
        )
    return kind


def bind(query: Q, parameters: ParameterSet) -> Q:
    """Bind every bindable argument of `parameters` onto `query`.

    Args:
        query: Structured or raw live query.
        parameters: Declared parameters with this call's values.

    Returns:
        The same query, for chaining.

    Raises:
        ValueError: If `query` is `None`.
        UnsupportedQueryTypeError: If `query` carries no valid kind tag.
        MissingParameterNameError: If a named parameter has no name.
    """

    if query is None:
        raise ValueError("query must not be None.")
    query_kind(query)

    position = 1
    for descriptor, value in parameters.bindable():
        if descriptor.named:
            query.set_parameter(_parameter_name(descriptor), value)  # type: ignore[attr-defined]
            logger.debug("bound :%s for parameter #%d", descriptor.name, descriptor.index)
            continue
        query.set_parameter(position, value)  # type: ignore[attr-defined]
        logger.debug("bound ?%d for parameter #%d", position, descriptor.index)
        position += 1

    return query


def bind_and_prepare(query: Q, parameters: ParameterSet) -> Q:
    """Bind arguments and apply sort and pagination carriers.

    Sort and pagination only apply to structured queries. Raw queries receive
    argument bindings only.
    """

    bind(query, parameters)

    if query_kind(query) is not QueryKind.STRUCTURED:
        return query

    sort = parameters.sort
    if sort:
        query.set_order_by(sort.orders)  # type: ignore[attr-defined]

    if not parameters.has_page_request_parameter:
        return query

    page_request = parameters.page_request
    if page_request is not None:
        query.set_first_row(page_request.offset)  # type: ignore[attr-defined]
        query.set_max_rows(page_request.size)  # type: ignore[attr-defined]
        logger.debug(
            "applied page %d (offset=%d, size=%d)",
            page_request.page,
            page_request.offset,
            page_request.size,
        )
    return query


def _parameter_name(descriptor: ParameterDescriptor) -> str:
    if not descriptor.name:
        raise MissingParameterNameError(
            f"Parameter #{descriptor.index} is bound by name but has no name."
        )
    return descriptor.name
