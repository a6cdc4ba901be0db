from __future__ import annotations

import sqlite3
import unittest
from dataclasses import dataclass, field
from typing import Annotated, Any, Iterator, Optional

from mini_query import (
    C,
    Database,
    MissingTransactionError,
    NonUniqueResultError,
    OrderBy,
    P,
    Page,
    PageRequest,
    Param,
    PostgresDialect,
    QueryEngine,
    QueryMethod,
    RawQueryPlan,
    RepositoryQuery,
    ResultStream,
    Session,
    Slice,
    SQLiteDialect,
    StructuredQueryPlan,
)


@dataclass
class UserRow:
    id: Optional[int] = field(default=None, metadata={"pk": True})
    email: str = ""
    age: Optional[int] = None


class UserQueries:
    def find_by_min_age(self, age: int) -> list[UserRow]: ...

    def find_by_email(self, email: Annotated[str, Param()]) -> Optional[UserRow]: ...

    def find_page(self, age: int, page: PageRequest) -> Page[UserRow]: ...

    def find_slice(self, page: PageRequest) -> Slice[UserRow]: ...

    def count_older(self, age: int) -> int: ...

    def exists_by_email(self, email: Annotated[str, Param()]) -> bool: ...

    def set_age(self, age: int, email: Annotated[str, Param()]) -> int: ...

    def delete_younger(self, age: int) -> list[UserRow]: ...

    def stream_all(self) -> Iterator[UserRow]: ...

    def emails_from_age(self, age: int) -> list[dict]: ...

    def raw_count(self, age: Annotated[int, Param()]) -> int: ...

    def raw_page(self, age: int, page: PageRequest) -> Page[dict]: ...


USERS = [
    (1, "a@x.com", 17),
    (2, "b@x.com", 25),
    (3, "c@x.com", 32),
    (4, "d@x.com", 41),
    (5, "e@x.com", 58),
]


class SQLiteEngineTests(unittest.TestCase):
    def setUp(self) -> None:
        self.conn = sqlite3.connect(":memory:")
        self.conn.execute(
            'CREATE TABLE "userrow" (id INTEGER PRIMARY KEY, email TEXT, age INTEGER);'
        )
        self.conn.executemany('INSERT INTO "userrow" VALUES (?, ?, ?);', USERS)
        self.conn.commit()
        self.db = Database(self.conn, SQLiteDialect())
        self.engine = QueryEngine(self.db)

    def tearDown(self) -> None:
        self.conn.close()

    def structured(
        self, name: str, *, modifying: bool = False, delete: bool = False, **options: Any
    ) -> RepositoryQuery:
        method = QueryMethod.from_function(
            getattr(UserQueries, name), modifying=modifying, delete=delete
        )
        options.setdefault("order_by", [OrderBy("id")])
        plan = StructuredQueryPlan(self.engine, method.parameters, UserRow, **options)
        return RepositoryQuery(method, plan, self.engine)

    def raw(self, name: str, sql: str, **options: Any) -> RepositoryQuery:
        method = QueryMethod.from_function(getattr(UserQueries, name))
        plan = RawQueryPlan(self.engine, method.parameters, sql)
        return RepositoryQuery(method, plan, self.engine, **options)

    def ids(self, rows) -> list[int]:
        return [row.id for row in rows]

    def test_collection_query(self) -> None:
        query = self.structured("find_by_min_age", where=C.ge("age", P(1)))
        self.assertEqual(self.ids(query(18)), [2, 3, 4, 5])

    def test_single_entity_query(self) -> None:
        query = self.structured("find_by_email", where=C.eq("email", P("email")))

        self.assertEqual(query("c@x.com"), UserRow(id=3, email="c@x.com", age=32))
        self.assertIsNone(query("nobody@x.com"))

    def test_single_entity_query_rejects_many_rows(self) -> None:
        query = self.structured("find_by_email", where=C.like("email", P("email")))
        with self.assertRaises(NonUniqueResultError):
            query("%@x.com")

    def test_page_query_with_lazy_total(self) -> None:
        query = self.structured("find_page", where=C.ge("age", P(1)))

        page = query(18, PageRequest(0, 3))

        self.assertEqual(self.ids(page.content), [2, 3, 4])
        self.assertEqual(page.total_elements, 4)
        self.assertEqual(page.total_pages, 2)
        self.assertTrue(page.has_next)

    def test_page_request_sort_replaces_default_order(self) -> None:
        query = self.structured("find_page", where=C.ge("age", P(1)))

        page = query(18, PageRequest.of(0, 2, "-age"))

        self.assertEqual(self.ids(page), [5, 4])

    def test_slice_query(self) -> None:
        query = self.structured("find_slice")

        first = query(PageRequest(1, 2))
        last = query(PageRequest(2, 2))

        self.assertEqual(self.ids(first), [3, 4])
        self.assertTrue(first.has_next)
        self.assertEqual(self.ids(last), [5])
        self.assertFalse(last.has_next)

    def test_count_and_exists_queries(self) -> None:
        count = self.structured("count_older", where=C.gt("age", P(1)))
        exists = self.structured("exists_by_email", where=C.eq("email", P("email")))

        self.assertEqual(count(30), 3)
        self.assertTrue(exists("a@x.com"))
        self.assertFalse(exists("nobody@x.com"))

    def test_modifying_query_returns_affected_rows(self) -> None:
        query = self.structured(
            "set_age",
            modifying=True,
            where=C.eq("email", P("email")),
            assignments={"age": P(1)},
        )

        self.assertEqual(query(99, "b@x.com"), 1)
        row = self.db.fetchone('SELECT age FROM "userrow" WHERE id = 2;')
        self.assertEqual(row, {"age": 99})

    def test_delete_query_removes_matching_entities(self) -> None:
        query = self.structured("delete_younger", delete=True, where=C.lt("age", P(1)))

        deleted = query(30)

        self.assertEqual(self.ids(deleted), [1, 2])
        remaining = self.db.fetchall('SELECT id FROM "userrow" ORDER BY id;')
        self.assertEqual([row["id"] for row in remaining], [3, 4, 5])

    def test_stream_query_inside_session(self) -> None:
        query = self.structured("stream_all")
        session = Session(self.engine)

        with session.begin():
            stream = session.execute(query)
            self.assertIsInstance(stream, ResultStream)
            self.assertEqual(next(stream).id, 1)
        self.assertTrue(stream.closed)

        with session.begin():
            with session.execute(query) as rows:
                self.assertEqual(self.ids(rows), [1, 2, 3, 4, 5])

    def test_stream_query_outside_transaction_fails(self) -> None:
        with self.assertRaises(MissingTransactionError):
            self.structured("stream_all")()

    def test_raw_collection_query_with_positional_reference(self) -> None:
        query = self.raw(
            "emails_from_age",
            'SELECT email FROM "userrow" WHERE age >= ?1 ORDER BY id',
        )
        self.assertEqual(query(40), [{"email": "d@x.com"}, {"email": "e@x.com"}])

    def test_raw_count_reads_first_or_named_column(self) -> None:
        sql = 'SELECT COUNT(*) AS n FROM "userrow" WHERE age > :age'

        self.assertEqual(self.raw("raw_count", sql)(30), 3)
        self.assertEqual(self.raw("raw_count", sql, count_column="n")(30), 3)

    def test_raw_page_query(self) -> None:
        query = self.raw(
            "raw_page", 'SELECT id FROM "userrow" WHERE age >= ?1 ORDER BY id'
        )

        page = query(18, PageRequest(1, 3))

        self.assertEqual(page.content, [{"id": 5}])
        self.assertEqual(page.total_elements, 4)
        self.assertFalse(page.has_next)

    def test_raw_find_one_rejects_many_rows(self) -> None:
        query = self.engine.sql_query('SELECT id FROM "userrow" WHERE age > ?1')

        with self.assertRaises(NonUniqueResultError):
            query.set_parameter(1, 30).find_one()
        self.assertEqual(query.set_parameter(1, 50).find_one(), {"id": 5})
        self.assertIsNone(query.set_parameter(1, 90).find_one())

    def test_raw_find_count_ignores_row_window(self) -> None:
        query = self.engine.sql_query('SELECT id FROM "userrow" WHERE age >= ?1 ORDER BY id')
        query.set_parameter(1, 18).set_first_row(3)
        query.set_max_rows(1)

        self.assertEqual(query.find_count(), 4)

    def test_delete_rejects_raw_rows(self) -> None:
        with self.assertRaises(TypeError):
            self.engine.delete({"id": 1})
        with self.assertRaises(ValueError):
            self.engine.delete(UserRow(email="x"))


class _RecordingDatabase:
    def __init__(self, dialect) -> None:
        self.dialect = dialect
        self.calls: list[tuple[str, Any]] = []

    def fetchall(self, sql, params=None):  # noqa: ANN001,ANN201
        self.calls.append((sql, params))
        return []

    def fetchone(self, sql, params=None):  # noqa: ANN001,ANN201
        self.calls.append((sql, params))
        return None


class RawParameterRewriteTests(unittest.TestCase):
    def test_references_follow_positional_paramstyle(self) -> None:
        db = _RecordingDatabase(PostgresDialect())
        query = QueryEngine(db).sql_query(
            "SELECT * FROM t WHERE a = :name AND b = ?1 AND c::text = ?1"
        )
        query.set_parameter("name", "n").set_parameter(1, 7).set_max_rows(5)

        self.assertEqual(query.find_list(), [])

        sql, params = db.calls[0]
        self.assertEqual(
            sql, "SELECT * FROM t WHERE a = %s AND b = %s AND c::text = %s LIMIT %s;"
        )
        self.assertEqual(params, ["n", 7, 7, 5])

    def test_references_follow_named_paramstyle(self) -> None:
        db = _RecordingDatabase(SQLiteDialect())
        query = QueryEngine(db).sql_query("SELECT * FROM t WHERE b = ?2 OR a = :a")
        query.set_parameter(2, "two").set_parameter("a", "x")

        query.find_one()

        self.assertEqual(
            db.calls[0],
            (
                "SELECT * FROM t WHERE b = :p2 OR a = :a LIMIT :__limit;",
                {"p2": "two", "a": "x", "__limit": 2},
            ),
        )

    def test_count_wraps_sql_as_subquery(self) -> None:
        db = _RecordingDatabase(SQLiteDialect())
        query = QueryEngine(db).sql_query("SELECT id FROM t WHERE a = ?1;")
        query.set_parameter(1, 3).set_max_rows(5)

        self.assertEqual(query.find_count(), 0)
        self.assertEqual(
            db.calls[0],
            (
                'SELECT COUNT(*) AS "__count" FROM (SELECT id FROM t WHERE a = :p1) AS "__rows";',
                {"p1": 3},
            ),
        )

    def test_unbound_reference_fails(self) -> None:
        query = QueryEngine(_RecordingDatabase(SQLiteDialect())).sql_query(
            "SELECT * FROM t WHERE a = :a"
        )
        with self.assertRaises(ValueError):
            query.find_list()


if __name__ == "__main__":
    unittest.main()
