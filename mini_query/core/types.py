"""Shared core type aliases used across contracts, executions, and ports."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

NamedParams = Dict[str, Any]
PositionalParams = List[Any]
QueryParams = Union[NamedParams, PositionalParams, None]

RowMapping = Mapping[str, Any]
Rows = List[RowMapping]
MaybeRow = Optional[RowMapping]

ParameterKey = Union[int, str]
ArgumentValues = Sequence[Any]
