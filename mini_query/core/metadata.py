"""Model metadata for dataclass-backed structured queries."""

from __future__ import annotations

from dataclasses import dataclass, fields, is_dataclass
from typing import Any, Generic, Tuple, Type, TypeVar

from .types import RowMapping

T = TypeVar("T")


@dataclass(frozen=True)
class ModelMetadata(Generic[T]):
    """Table, primary key and columns of one dataclass model.

    The table defaults to the lowercased class name; a `__table__` class
    attribute overrides it. The primary key is the single field declared with
    `field(metadata={"pk": True})`.
    """

    model: Type[T]
    table: str
    pk: str
    columns: Tuple[str, ...]

    @property
    def writable_columns(self) -> Tuple[str, ...]:
        return tuple(name for name in self.columns if name != self.pk)

    def pk_value(self, entity: T) -> Any:
        return getattr(entity, self.pk)

    def to_model(self, row: RowMapping) -> T:
        return row_to_model(self.model, row)


def require_dataclass_model(cls: Any) -> None:
    if not (isinstance(cls, type) and is_dataclass(cls)):
        name = getattr(cls, "__name__", type(cls).__name__)
        raise TypeError(f"{name} must be a dataclass.")


def build_model_metadata(model: Type[T]) -> ModelMetadata[T]:
    """Build model metadata from dataclass fields.

    Raises:
        TypeError: If `model` is not a dataclass.
        ValueError: If model has zero or multiple primary key fields.
    """

    require_dataclass_model(model)
    model_fields = fields(model)
    pks = [f.name for f in model_fields if f.metadata.get("pk")]
    if len(pks) != 1:
        raise ValueError(
            f"{model.__name__} must declare exactly 1 PK field. "
            "Use field(metadata={'pk': True})."
        )

    table = getattr(model, "__table__", None)
    return ModelMetadata(
        model=model,
        table=table if isinstance(table, str) and table else model.__name__.lower(),
        pk=pks[0],
        columns=tuple(f.name for f in model_fields),
    )


def row_to_model(model: Type[T], row: RowMapping) -> T:
    """Map one row mapping onto `model`; every column must name a field."""

    return model(**dict(row))
