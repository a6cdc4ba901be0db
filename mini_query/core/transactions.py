"""Explicit transaction scope handle passed to streaming executions."""

from __future__ import annotations

from contextlib import ExitStack
from typing import Any, Callable


class TransactionScope:
    """Marks a surrounding transaction as active and owns scoped resources.

    Resources registered on the scope (open result streams, for example) are
    released in reverse registration order when the scope exits, before the
    transaction itself commits or rolls back.
    """

    def __init__(self) -> None:
        self._active = False
        self._resources = ExitStack()

    @property
    def active(self) -> bool:
        return self._active

    def register(self, callback: Callable[[], Any]) -> None:
        """Run `callback` when the scope exits."""

        if not self._active:
            raise RuntimeError("transaction scope is not active")
        self._resources.callback(callback)

    def __enter__(self) -> TransactionScope:
        if self._active:
            raise RuntimeError("transaction scope is already active")
        self._active = True
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self._active = False
        resources, self._resources = self._resources, ExitStack()
        resources.close()
