from __future__ import annotations

import unittest
from dataclasses import dataclass, field
from typing import Optional

from mini_query.core.metadata import build_model_metadata, row_to_model


@dataclass
class Account:
    __table__ = "accounts"

    id: Optional[int] = field(default=None, metadata={"pk": True})
    owner: str = ""
    balance: int = 0


@dataclass
class NoPk:
    name: str = ""


@dataclass
class TwoPks:
    a: int = field(default=0, metadata={"pk": True})
    b: int = field(default=0, metadata={"pk": True})


class ModelMetadataTests(unittest.TestCase):
    def test_metadata_from_dataclass(self) -> None:
        meta = build_model_metadata(Account)

        self.assertEqual(meta.table, "accounts")
        self.assertEqual(meta.pk, "id")
        self.assertEqual(meta.columns, ("id", "owner", "balance"))
        self.assertEqual(meta.writable_columns, ("owner", "balance"))
        self.assertEqual(meta.pk_value(Account(id=7)), 7)
        self.assertEqual(
            meta.to_model({"id": 1, "owner": "ann", "balance": 5}),
            Account(id=1, owner="ann", balance=5),
        )

    def test_table_defaults_to_lowercased_class_name(self) -> None:
        @dataclass
        class Ledger:
            id: int = field(default=0, metadata={"pk": True})

        self.assertEqual(build_model_metadata(Ledger).table, "ledger")

    def test_invalid_models(self) -> None:
        with self.assertRaises(TypeError):
            build_model_metadata(dict)
        with self.assertRaises(TypeError):
            build_model_metadata(Account(id=1))  # type: ignore[arg-type]
        for model in (NoPk, TwoPks):
            with self.subTest(model=model.__name__):
                with self.assertRaises(ValueError):
                    build_model_metadata(model)

    def test_row_to_model_rejects_unknown_columns(self) -> None:
        with self.assertRaises(TypeError):
            row_to_model(Account, {"id": 1, "missing": True})


if __name__ == "__main__":
    unittest.main()
