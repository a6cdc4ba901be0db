"""Declared method parameters and their runtime argument values."""

from __future__ import annotations

import inspect
import types
import typing
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterator, Mapping, Optional, Sequence, Tuple

from .domain import PageRequest, Sort
from .errors import InvalidArgumentShapeError


class ParameterKind(str, Enum):
    """Role a declared parameter plays during binding."""

    VALUE = "value"
    PAGE_REQUEST = "page_request"
    SORT = "sort"


@dataclass(frozen=True)
class Param:
    """Marks a parameter for binding by name.

    Use inside `Annotated`: `email: Annotated[str, Param()]` binds under
    `email`, `Annotated[str, Param("mail")]` binds under `mail`.
    """

    name: Optional[str] = None


@dataclass(frozen=True)
class ParameterDescriptor:
    """Immutable description of one declared method parameter.

    Attributes:
        index: Zero-based ordinal in the declared signature.
        name: Name used for named binding, if any.
        named: Whether the value binds by name rather than by position.
        kind: Regular value, page request, or sort carrier.
    """

    index: int
    name: Optional[str] = None
    named: bool = False
    kind: ParameterKind = ParameterKind.VALUE

    @property
    def bindable(self) -> bool:
        return self.kind is ParameterKind.VALUE

    @property
    def is_page_request(self) -> bool:
        return self.kind is ParameterKind.PAGE_REQUEST

    @property
    def is_sort(self) -> bool:
        return self.kind is ParameterKind.SORT


class ParameterSet:
    """Declared parameters paired with one call's argument values.

    Values are copied on construction, so later changes to the caller's
    sequence are not observed while binding.
    """

    def __init__(
        self,
        descriptors: Sequence[ParameterDescriptor],
        values: Sequence[Any],
    ):
        if descriptors is None:
            raise ValueError("descriptors must not be None.")
        if values is None:
            raise ValueError("values must not be None.")
        self._descriptors: Tuple[ParameterDescriptor, ...] = tuple(descriptors)
        self._values: Tuple[Any, ...] = tuple(values)
        if len(self._descriptors) != len(self._values):
            raise InvalidArgumentShapeError(
                f"Invalid number of parameters given: expected "
                f"{len(self._descriptors)}, got {len(self._values)}."
            )

    @property
    def descriptors(self) -> Tuple[ParameterDescriptor, ...]:
        return self._descriptors

    @property
    def values(self) -> Tuple[Any, ...]:
        return self._values

    def __len__(self) -> int:
        return len(self._descriptors)

    def __iter__(self) -> Iterator[Tuple[ParameterDescriptor, Any]]:
        return iter(zip(self._descriptors, self._values))

    def bindable(self) -> Iterator[Tuple[ParameterDescriptor, Any]]:
        """Yield `(descriptor, value)` pairs for bindable parameters only."""

        for descriptor, value in self:
            if descriptor.bindable:
                yield descriptor, value

    @property
    def has_page_request_parameter(self) -> bool:
        return any(d.is_page_request for d in self._descriptors)

    @property
    def page_request(self) -> Optional[PageRequest]:
        """Return the page request argument, or `None` when absent."""

        for descriptor, value in self:
            if descriptor.is_page_request:
                return value
        return None

    @property
    def sort(self) -> Optional[Sort]:
        """Return the explicit sort argument, else the page request's sort."""

        for descriptor, value in self:
            if descriptor.is_sort and value:
                return value
        page_request = self.page_request
        if page_request is not None and page_request.sort:
            return page_request.sort
        return None


def parameters_from_signature(
    func: Callable[..., Any],
    *,
    localns: Optional[Mapping[str, Any]] = None,
) -> Tuple[ParameterDescriptor, ...]:
    """Derive parameter descriptors from a repository method signature.

    A leading `self`/`cls` parameter is skipped. `PageRequest` and `Sort`
    annotated parameters are special carriers; `Annotated[..., Param()]`
    marks named binding. `localns` resolves annotations naming classes that
    are not module globals.

    Raises:
        TypeError: If the signature uses `*args` or `**kwargs`, or an
            annotation cannot be resolved.
    """

    signature = inspect.signature(func)
    hints = resolve_type_hints(func, localns=localns)
    descriptors: list[ParameterDescriptor] = []

    params = list(signature.parameters.values())
    if params and params[0].name in ("self", "cls"):
        params = params[1:]

    for index, parameter in enumerate(params):
        if parameter.kind in (parameter.VAR_POSITIONAL, parameter.VAR_KEYWORD):
            raise TypeError(
                f"{func.__qualname__}: variadic parameter {parameter.name!r} "
                "is not supported in query methods."
            )
        annotation = hints.get(parameter.name, parameter.annotation)
        marker = _param_marker(annotation)
        kind = _parameter_kind(annotation)
        if marker is not None and kind is ParameterKind.VALUE:
            descriptors.append(
                ParameterDescriptor(
                    index=index,
                    name=marker.name or parameter.name,
                    named=True,
                    kind=kind,
                )
            )
        else:
            descriptors.append(
                ParameterDescriptor(index=index, name=parameter.name, kind=kind)
            )

    return tuple(descriptors)


def resolve_type_hints(
    func: Callable[..., Any],
    *,
    localns: Optional[Mapping[str, Any]] = None,
) -> dict[str, Any]:
    """Resolve the annotations of `func` to runtime types.

    String annotations are evaluated against the function's module globals
    and `localns`.

    Raises:
        TypeError: If an annotation names something that cannot be resolved.
    """

    try:
        hints = typing.get_type_hints(
            func, localns=dict(localns) if localns else None, include_extras=True
        )
    except NameError as exc:
        raise TypeError(
            f"{func.__qualname__}: cannot resolve annotation ({exc}). Define the "
            "type at module level or pass it via localns."
        ) from exc

    unresolved = [name for name, hint in hints.items() if isinstance(hint, str)]
    if unresolved:
        raise TypeError(f"{func.__qualname__}: unresolved annotations for {unresolved}.")
    return hints


def _param_marker(annotation: Any) -> Optional[Param]:
    if typing.get_origin(annotation) is typing.Annotated:
        for extra in annotation.__metadata__:
            if isinstance(extra, Param):
                return extra
    return None


def _parameter_kind(annotation: Any) -> ParameterKind:
    for candidate in _unwrap(annotation):
        if candidate is PageRequest:
            return ParameterKind.PAGE_REQUEST
        if candidate is Sort:
            return ParameterKind.SORT
    return ParameterKind.VALUE


def _unwrap(annotation: Any) -> list[Any]:
    """Strip `Annotated` and `Optional` wrappers from an annotation."""

    if typing.get_origin(annotation) is typing.Annotated:
        annotation = typing.get_args(annotation)[0]
    if typing.get_origin(annotation) in (typing.Union, types.UnionType):
        return [arg for arg in typing.get_args(annotation) if arg is not type(None)]
    return [annotation]
