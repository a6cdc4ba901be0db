"""Repository method metadata: return shape and declared parameters."""

from __future__ import annotations

import collections.abc
import inspect
import types
import typing
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping, Optional, Tuple

from .domain import Page, Slice
from .parameters import ParameterDescriptor, parameters_from_signature, resolve_type_hints
from .streams import ResultStream


class ReturnShape(str, Enum):
    """Result shape a repository method declares."""

    VOID = "void"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    SINGLE = "single"
    COLLECTION = "collection"
    SLICE = "slice"
    PAGE = "page"
    STREAM = "stream"


_COLLECTION_TYPES = (
    list,
    tuple,
    set,
    frozenset,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
    collections.abc.Collection,
    collections.abc.Set,
    collections.abc.Iterable,
)
_UNION_TYPES = (typing.Union, types.UnionType)
_STREAM_TYPES = (
    ResultStream,
    collections.abc.Iterator,
    collections.abc.Generator,
)


def classify_return_type(annotation: Any) -> ReturnShape:
    """Map a return annotation to the result shape it declares.

    Raises:
        TypeError: If `annotation` is an unresolved string annotation.
    """

    if isinstance(annotation, str):
        raise TypeError(f"Unresolved return annotation {annotation!r}.")
    if annotation is None or annotation is type(None) or annotation is inspect.Signature.empty:
        return ReturnShape.VOID

    origin = typing.get_origin(annotation)
    if origin is typing.Annotated:
        return classify_return_type(typing.get_args(annotation)[0])

    args = typing.get_args(annotation)
    if origin in _UNION_TYPES and type(None) in args:
        remaining = [arg for arg in args if arg is not type(None)]
        if len(remaining) == 1:
            return classify_return_type(remaining[0])
        return ReturnShape.SINGLE

    target = origin or annotation
    if target is bool:
        return ReturnShape.BOOLEAN
    if target is int:
        return ReturnShape.INTEGER
    if not isinstance(target, type) or target in (str, bytes):
        return ReturnShape.SINGLE
    if issubclass(target, Slice):
        return ReturnShape.SLICE
    if issubclass(target, Page):
        return ReturnShape.PAGE
    if target in _COLLECTION_TYPES:
        return ReturnShape.COLLECTION
    if target in _STREAM_TYPES:
        return ReturnShape.STREAM
    return ReturnShape.SINGLE


@dataclass(frozen=True)
class QueryMethod:
    """Declared repository method as seen by the execution layer.

    Attributes:
        name: Method name, used in error messages.
        return_shape: Classified return type.
        parameters: Declared parameter descriptors, in order.
        return_type: Raw return annotation.
        modifying: Method runs an update statement.
        delete: Method deletes the rows its query matches.
        exists: Method checks whether any row matches.
    """

    name: str
    return_shape: ReturnShape
    parameters: Tuple[ParameterDescriptor, ...] = ()
    return_type: Any = None
    modifying: bool = False
    delete: bool = False
    exists: bool = False

    @classmethod
    def from_function(
        cls,
        func: Callable[..., Any],
        *,
        modifying: bool = False,
        delete: bool = False,
        exists: bool = False,
        localns: Optional[Mapping[str, Any]] = None,
    ) -> QueryMethod:
        """Build metadata from a function signature and its annotations.

        Raises:
            TypeError: If an annotation cannot be resolved; pass `localns`
                for types defined inside a function.
        """

        hints = resolve_type_hints(func, localns=localns)
        return_type = hints.get(
            "return", inspect.signature(func).return_annotation
        )
        shape = classify_return_type(return_type)
        if exists and shape is not ReturnShape.BOOLEAN:
            shape = ReturnShape.BOOLEAN
        return cls(
            name=func.__name__,
            return_shape=shape,
            parameters=parameters_from_signature(func, localns=localns),
            return_type=return_type,
            modifying=modifying,
            delete=delete,
            exists=exists,
        )

    @property
    def is_collection_query(self) -> bool:
        return self.return_shape is ReturnShape.COLLECTION

    @property
    def is_slice_query(self) -> bool:
        return self.return_shape is ReturnShape.SLICE

    @property
    def is_page_query(self) -> bool:
        return self.return_shape is ReturnShape.PAGE

    @property
    def is_stream_query(self) -> bool:
        return self.return_shape is ReturnShape.STREAM

    @property
    def is_modifying_query(self) -> bool:
        return self.modifying
