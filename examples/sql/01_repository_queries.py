"""Repository query example: one declared method per result shape."""

from __future__ import annotations

import sqlite3
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Annotated, Optional

# Allow running this script directly from repository root.
PROJECT_ROOT = next(
    (parent for parent in Path(__file__).resolve().parents if (parent / "mini_query").exists()),
    None,
)
if PROJECT_ROOT and str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from mini_query import (
    C,
    Database,
    OrderBy,
    P,
    Page,
    PageRequest,
    Param,
    QueryEngine,
    QueryMethod,
    RawQueryPlan,
    RepositoryQuery,
    Slice,
    SQLiteDialect,
    StructuredQueryPlan,
)


@dataclass
class User:
    id: Optional[int] = field(default=None, metadata={"pk": True})
    email: str = ""
    age: Optional[int] = None


class UserRepository:
    def find_by_email(self, email: Annotated[str, Param()]) -> Optional[User]: ...

    def find_adults(self, age: int, page: PageRequest) -> Page[User]: ...

    def browse(self, page: PageRequest) -> Slice[User]: ...

    def exists_by_email(self, email: Annotated[str, Param()]) -> bool: ...

    def birthday(self, age: int, email: Annotated[str, Param()]) -> int: ...

    def purge_minors(self, age: int) -> int: ...

    def count_from_age(self, age: int) -> int: ...


def seed(db: Database) -> None:
    db.execute('CREATE TABLE "user" ("id" INTEGER PRIMARY KEY, "email" TEXT, "age" INTEGER);')
    for index, age in enumerate((15, 22, 31, 44, 58), start=1):
        db.execute(
            'INSERT INTO "user" ("id", "email", "age") VALUES (:id, :email, :age);',
            {"id": index, "email": f"user{index}@example.com", "age": age},
        )


def structured(engine: QueryEngine, name: str, *, modifying=False, delete=False, **options):
    method = QueryMethod.from_function(
        getattr(UserRepository, name), modifying=modifying, delete=delete
    )
    plan = StructuredQueryPlan(engine, method.parameters, User, **options)
    return RepositoryQuery(method, plan, engine)


def main() -> None:
    conn = sqlite3.connect(":memory:")
    try:
        db = Database(conn, SQLiteDialect())
        seed(db)
        engine = QueryEngine(db)
        by_id = [OrderBy("id")]

        find_by_email = structured(engine, "find_by_email", where=C.eq("email", P("email")))
        print("Single:", find_by_email("user3@example.com"))

        find_adults = structured(
            engine, "find_adults", where=C.ge("age", P(1)), order_by=by_id
        )
        page = find_adults(18, PageRequest.of(0, 3, "-age"))
        print("Page:", [u.email for u in page], "of", page.total_elements)

        browse = structured(engine, "browse", order_by=by_id)
        chunk = browse(PageRequest(1, 2))
        print("Slice:", [u.id for u in chunk], "has next:", chunk.has_next)

        exists = structured(engine, "exists_by_email", where=C.eq("email", P("email")))
        print("Exists:", exists("user1@example.com"), exists("nobody@example.com"))

        birthday = structured(
            engine,
            "birthday",
            modifying=True,
            where=C.eq("email", P("email")),
            assignments={"age": P(1)},
        )
        print("Updated rows:", birthday(32, "user3@example.com"))

        purge = structured(engine, "purge_minors", delete=True, where=C.lt("age", P(1)))
        print("Deleted rows:", purge(18))

        count_method = QueryMethod.from_function(UserRepository.count_from_age)
        count_raw = RepositoryQuery(
            count_method,
            RawQueryPlan(
                engine,
                count_method.parameters,
                'SELECT COUNT(*) AS "total" FROM "user" WHERE "age" >= ?1',
            ),
            engine,
            count_column="total",
        )
        print("Raw count:", count_raw(30))
    finally:
        conn.close()


if __name__ == "__main__":
    main()
