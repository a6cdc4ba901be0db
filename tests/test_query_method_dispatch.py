from __future__ import annotations

import unittest
from collections.abc import Generator, Iterable, Sequence
from dataclasses import dataclass
from typing import Iterator, Optional

from mini_query import (
    CollectionExecution,
    CountExecution,
    DeleteExecution,
    ExistsExecution,
    InvalidReturnTypeError,
    ModifyingExecution,
    Page,
    PagedExecution,
    PageRequest,
    QueryMethod,
    RepositoryQuery,
    ResultStream,
    ReturnShape,
    SingleEntityExecution,
    Slice,
    SlicedExecution,
    StreamExecution,
    classify_return_type,
    select_execution,
)
from tests._fakes import FakeEngine, FakePlan, FakeStructuredQuery


@dataclass
class User:
    id: int
    email: str


class ClassifyReturnTypeTests(unittest.TestCase):
    def test_return_shapes(self) -> None:
        samples = [
            (None, ReturnShape.VOID),
            (type(None), ReturnShape.VOID),
            (bool, ReturnShape.BOOLEAN),
            (int, ReturnShape.INTEGER),
            (User, ReturnShape.SINGLE),
            (Optional[User], ReturnShape.SINGLE),
            (str, ReturnShape.SINGLE),
            (list[User], ReturnShape.COLLECTION),
            (Sequence[User], ReturnShape.COLLECTION),
            (tuple[User, ...], ReturnShape.COLLECTION),
            (Iterable[User], ReturnShape.COLLECTION),
            (Slice[User], ReturnShape.SLICE),
            (Page[User], ReturnShape.PAGE),
            (Page, ReturnShape.PAGE),
            (Iterator[User], ReturnShape.STREAM),
            (Generator[User, None, None], ReturnShape.STREAM),
            (ResultStream[User], ReturnShape.STREAM),
        ]
        for annotation, expected in samples:
            with self.subTest(annotation=annotation):
                self.assertIs(classify_return_type(annotation), expected)

    def test_unresolved_string_annotation_is_rejected(self) -> None:
        with self.assertRaises(TypeError):
            classify_return_type("Page[User]")


class QueryMethodTests(unittest.TestCase):
    def test_from_function_reads_hints_and_parameters(self) -> None:
        class Repo:
            def find_by_email(self, email: str, page: PageRequest) -> Page[User]: ...

        method = QueryMethod.from_function(Repo.find_by_email)

        self.assertEqual(method.name, "find_by_email")
        self.assertTrue(method.is_page_query)
        self.assertEqual(len(method.parameters), 2)
        self.assertTrue(method.parameters[1].is_page_request)

    def test_exists_flag_forces_boolean_shape(self) -> None:
        def exists_by_email(email: str): ...

        method = QueryMethod.from_function(exists_by_email, exists=True)
        self.assertIs(method.return_shape, ReturnShape.BOOLEAN)


class SelectExecutionTests(unittest.TestCase):
    def test_shape_to_execution_mapping(self) -> None:
        engine = FakeEngine()
        samples = [
            (ReturnShape.STREAM, StreamExecution),
            (ReturnShape.COLLECTION, CollectionExecution),
            (ReturnShape.SLICE, SlicedExecution),
            (ReturnShape.PAGE, PagedExecution),
            (ReturnShape.BOOLEAN, ExistsExecution),
            (ReturnShape.INTEGER, CountExecution),
            (ReturnShape.SINGLE, SingleEntityExecution),
            (ReturnShape.VOID, SingleEntityExecution),
        ]
        for shape, expected in samples:
            with self.subTest(shape=shape):
                method = QueryMethod(name="m", return_shape=shape)
                self.assertIsInstance(select_execution(method, engine), expected)

    def test_flags_take_precedence(self) -> None:
        engine = FakeEngine()
        modifying = QueryMethod(name="m", return_shape=ReturnShape.INTEGER, modifying=True)
        delete = QueryMethod(name="d", return_shape=ReturnShape.COLLECTION, delete=True)

        self.assertIsInstance(select_execution(modifying, engine), ModifyingExecution)
        execution = select_execution(delete, engine)
        self.assertIsInstance(execution, DeleteExecution)
        self.assertIs(execution.engine, engine)

    def test_options_reach_executions(self) -> None:
        engine = FakeEngine()
        exists = select_execution(
            QueryMethod(name="e", return_shape=ReturnShape.BOOLEAN), engine, count_column="c"
        )
        stream = select_execution(
            QueryMethod(name="s", return_shape=ReturnShape.STREAM), engine, stream_batch_size=7
        )
        self.assertEqual(exists.count_column, "c")
        self.assertEqual(stream.batch_size, 7)


class RepositoryQueryTests(unittest.TestCase):
    def test_invalid_modifying_method_fails_before_materialization(self) -> None:
        def rename(email: str) -> str: ...

        plan = FakePlan(FakeStructuredQuery)
        with self.assertRaises(InvalidReturnTypeError):
            RepositoryQuery(QueryMethod.from_function(rename, modifying=True), plan, FakeEngine())
        self.assertEqual(plan.materialized, [])

    def test_execute_passes_arguments(self) -> None:
        def find_all(email: str) -> list[User]: ...

        plan = FakePlan(lambda: FakeStructuredQuery(["u"]))
        query = RepositoryQuery(QueryMethod.from_function(find_all), plan, FakeEngine())

        self.assertEqual(query("a@x.com"), ["u"])
        self.assertEqual(plan.args, [("a@x.com",)])


if __name__ == "__main__":
    unittest.main()
