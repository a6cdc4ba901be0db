"""Streaming example: result streams live inside a session transaction."""

from __future__ import annotations

import logging
import sqlite3
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional

# Allow running this script directly from repository root.
PROJECT_ROOT = next(
    (parent for parent in Path(__file__).resolve().parents if (parent / "mini_query").exists()),
    None,
)
if PROJECT_ROOT and str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from mini_query import (
    Database,
    MissingTransactionError,
    OrderBy,
    QueryEngine,
    QueryMethod,
    RepositoryQuery,
    Session,
    SQLiteDialect,
    StructuredQueryPlan,
)


@dataclass
class Event:
    id: Optional[int] = field(default=None, metadata={"pk": True})
    name: str = ""


def all_events() -> Iterator[Event]: ...


def main() -> None:
    logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")
    conn = sqlite3.connect(":memory:")
    try:
        db = Database(conn, SQLiteDialect())
        db.execute('CREATE TABLE "event" ("id" INTEGER PRIMARY KEY, "name" TEXT);')
        with db.transaction():
            for index in range(1, 8):
                db.execute(
                    'INSERT INTO "event" ("id", "name") VALUES (:id, :name);',
                    {"id": index, "name": f"event-{index}"},
                )

        engine = QueryEngine(db)
        method = QueryMethod.from_function(all_events)
        plan = StructuredQueryPlan(engine, method.parameters, Event, order_by=[OrderBy("id")])
        stream_events = RepositoryQuery(method, plan, engine, stream_batch_size=3)

        try:
            stream_events()
        except MissingTransactionError as exc:
            print("Outside a transaction:", exc)

        session = Session(engine)
        with session.begin():
            with session.execute(stream_events) as events:
                for event in events:
                    print("Streamed:", event.name)

        with session.begin():
            abandoned = session.execute(stream_events)
            print("First only:", next(abandoned).name)
        print("Closed with the transaction:", abandoned.closed)
    finally:
        conn.close()


if __name__ == "__main__":
    main()
