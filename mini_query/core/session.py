"""Session facade that runs repository queries inside one transaction."""

from __future__ import annotations

import contextlib
from contextlib import AbstractContextManager
from typing import Any, Iterator, Optional

from .contracts import EnginePort
from .dispatch import RepositoryQuery
from .transactions import TransactionScope


class Session:
    """Sync session that threads its transaction scope into query execution."""

    def __init__(self, engine: EnginePort):
        self.engine = engine
        self._active_tx: AbstractContextManager[TransactionScope] | None = None
        self._scope: Optional[TransactionScope] = None

    @property
    def scope(self) -> Optional[TransactionScope]:
        """Active transaction scope, or `None` outside a transaction."""

        return self._scope

    @property
    def in_transaction(self) -> bool:
        return self._scope is not None and self._scope.active

    @contextlib.contextmanager
    def begin(self) -> Iterator[Session]:
        """Run queries in one commit/rollback transaction block."""

        with self:
            yield self

    def transaction(self) -> contextlib.AbstractContextManager[Session]:
        """Alias for `begin()`."""

        return self.begin()

    def execute(self, query: RepositoryQuery, *args: Any) -> Any:
        """Execute `query` with the session's scope as surrounding transaction."""

        return query.execute(*args, scope=self._scope)

    def __enter__(self) -> Session:
        if self._active_tx is not None:
            raise RuntimeError("session transaction is already active")
        tx = self.engine.transaction()
        self._scope = tx.__enter__()
        self._active_tx = tx
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> bool | None:
        tx = self._active_tx
        self._active_tx = None
        self._scope = None
        if tx is None:
            return None
        return tx.__exit__(exc_type, exc, tb)
