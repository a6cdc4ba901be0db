from __future__ import annotations

import sqlite3
import unittest
from dataclasses import dataclass, field
from typing import Iterator, Optional

from mini_query import (
    C,
    Database,
    P,
    QueryEngine,
    QueryMethod,
    RepositoryQuery,
    SQLiteDialect,
    Session,
    StructuredQueryPlan,
    TransactionScope,
)


@dataclass
class UserRow:
    id: Optional[int] = field(default=None, metadata={"pk": True})
    email: str = ""


def rename(email: str, old: str) -> int: ...


def stream_users() -> Iterator[UserRow]: ...


class SessionTests(unittest.TestCase):
    def setUp(self) -> None:
        self.conn = sqlite3.connect(":memory:")
        self.db = Database(self.conn, SQLiteDialect())
        self.db.execute('CREATE TABLE "userrow" ("id" INTEGER PRIMARY KEY, "email" TEXT);')
        self.db.execute(
            'INSERT INTO "userrow" ("id", "email") VALUES (1, \'alice@example.com\');'
        )
        self.conn.commit()
        self.engine = QueryEngine(self.db)

        method = QueryMethod.from_function(rename, modifying=True)
        self.rename = RepositoryQuery(
            method,
            StructuredQueryPlan(
                self.engine,
                method.parameters,
                UserRow,
                where=C.eq("email", P(2)),
                assignments={"email": P(1)},
            ),
            self.engine,
        )

    def tearDown(self) -> None:
        self.conn.close()

    def emails(self) -> list[str]:
        return [row["email"] for row in self.db.fetchall('SELECT "email" FROM "userrow";')]

    def test_begin_commits_on_success(self) -> None:
        session = Session(self.engine)
        with session.begin():
            self.assertTrue(session.in_transaction)
            updated = session.execute(self.rename, "bob@example.com", "alice@example.com")
            self.assertEqual(updated, 1)

        self.assertFalse(session.in_transaction)
        self.assertIsNone(session.scope)
        self.conn.rollback()
        self.assertEqual(self.emails(), ["bob@example.com"])

    def test_begin_rolls_back_on_error(self) -> None:
        session = Session(self.engine)

        with self.assertRaises(RuntimeError):
            with session.begin():
                session.execute(self.rename, "bob@example.com", "alice@example.com")
                raise RuntimeError("boom")

        self.assertEqual(self.emails(), ["alice@example.com"])

    def test_session_cannot_be_entered_twice(self) -> None:
        with Session(self.engine) as session:
            with self.assertRaises(RuntimeError):
                session.__enter__()
            self.assertIsInstance(session.scope, TransactionScope)

    def test_scope_closes_streams_before_commit(self) -> None:
        method = QueryMethod.from_function(stream_users)
        query = RepositoryQuery(
            method, StructuredQueryPlan(self.engine, (), UserRow), self.engine
        )

        with Session(self.engine) as session:
            stream = session.execute(query)
            scope = session.scope
        self.assertTrue(stream.closed)
        self.assertFalse(scope.active)


class TransactionScopeTests(unittest.TestCase):
    def test_register_requires_active_scope(self) -> None:
        scope = TransactionScope()
        with self.assertRaises(RuntimeError):
            scope.register(lambda: None)

    def test_callbacks_run_in_reverse_order_on_exit(self) -> None:
        calls: list[str] = []
        with TransactionScope() as scope:
            scope.register(lambda: calls.append("first"))
            scope.register(lambda: calls.append("second"))
            self.assertEqual(calls, [])

        self.assertEqual(calls, ["second", "first"])
        self.assertFalse(scope.active)

    def test_scope_is_not_reentrant(self) -> None:
        with TransactionScope() as scope:
            with self.assertRaises(RuntimeError):
                scope.__enter__()


if __name__ == "__main__":
    unittest.main()
