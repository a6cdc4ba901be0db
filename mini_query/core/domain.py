"""Pagination requests and paged result containers."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable, Generic, List, Optional, Sequence, TypeVar, Union

from .conditions import OrderBy

T = TypeVar("T")

TotalSupplier = Callable[[], int]


@dataclass(frozen=True)
class Sort:
    """Ordered collection of ordering expressions."""

    orders: tuple[OrderBy, ...] = ()

    @staticmethod
    def by(*items: Union[str, OrderBy]) -> Sort:
        """Build a sort from column names or `OrderBy` values.

        A leading `-` on a column name means descending order:
        `Sort.by("last_name", "-age")`.
        """

        orders: list[OrderBy] = []
        for item in items:
            if isinstance(item, OrderBy):
                orders.append(item)
            elif isinstance(item, str) and item.startswith("-") and len(item) > 1:
                orders.append(OrderBy(item[1:], desc=True))
            elif isinstance(item, str) and item:
                orders.append(OrderBy(item))
            else:
                raise ValueError(f"Invalid sort item: {item!r}")
        return Sort(tuple(orders))

    @staticmethod
    def unsorted() -> Sort:
        return Sort()

    def __bool__(self) -> bool:
        return bool(self.orders)


@dataclass(frozen=True)
class PageRequest:
    """Zero-based page number and page size, with optional sort.

    Attributes:
        page: Zero-based page index.
        size: Maximum number of items per page.
        sort: Optional ordering applied to the query.
    """

    page: int
    size: int
    sort: Optional[Sort] = None

    def __post_init__(self) -> None:
        if self.page < 0:
            raise ValueError("page index must be >= 0.")
        if self.size < 1:
            raise ValueError("page size must be >= 1.")

    @staticmethod
    def of(page: int, size: int, *sort: Union[str, OrderBy]) -> PageRequest:
        return PageRequest(page, size, Sort.by(*sort) if sort else None)

    @property
    def offset(self) -> int:
        return self.page * self.size

    def next(self) -> PageRequest:
        return PageRequest(self.page + 1, self.size, self.sort)

    def previous_or_first(self) -> PageRequest:
        if self.page == 0:
            return self
        return PageRequest(self.page - 1, self.size, self.sort)

    def first(self) -> PageRequest:
        return PageRequest(0, self.size, self.sort)


@dataclass(frozen=True)
class PagedList(Generic[T]):
    """Engine result bundle: one page of items plus a deferred total count."""

    content: List[T]
    total_count: TotalSupplier


@dataclass(frozen=True)
class Slice(Generic[T]):
    """A chunk of results that only knows whether more rows follow."""

    content: List[T]
    page_request: PageRequest
    has_next: bool

    @property
    def number(self) -> int:
        return self.page_request.page

    @property
    def size(self) -> int:
        return self.page_request.size

    @property
    def has_previous(self) -> bool:
        return self.page_request.page > 0

    @property
    def is_first(self) -> bool:
        return not self.has_previous

    @property
    def is_last(self) -> bool:
        return not self.has_next

    def next_page_request(self) -> Optional[PageRequest]:
        return self.page_request.next() if self.has_next else None

    def __iter__(self):
        return iter(self.content)

    def __len__(self) -> int:
        return len(self.content)


@dataclass
class Page(Generic[T]):
    """A chunk of results plus the total number of matching rows.

    The total is computed on first access. When it can be derived from the
    content itself (a short first page, or a short non-empty later page) the
    supplier is never called.
    """

    content: List[T]
    page_request: Optional[PageRequest]
    total_supplier: Union[TotalSupplier, int] = field(repr=False, default=0)
    _total: Optional[int] = field(default=None, init=False, repr=False, compare=False)

    @staticmethod
    def unpaged(content: Sequence[T]) -> Page[T]:
        items = list(content)
        return Page(items, None, len(items))

    @property
    def total_elements(self) -> int:
        if self._total is None:
            self._total = self._compute_total()
        return self._total

    @property
    def number(self) -> int:
        return self.page_request.page if self.page_request else 0

    @property
    def size(self) -> int:
        return self.page_request.size if self.page_request else len(self.content)

    @property
    def total_pages(self) -> int:
        if self.size == 0:
            return 1
        return math.ceil(self.total_elements / self.size)

    @property
    def has_next(self) -> bool:
        return self.number + 1 < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.number > 0

    def next_page_request(self) -> Optional[PageRequest]:
        if self.page_request is None or not self.has_next:
            return None
        return self.page_request.next()

    def __iter__(self):
        return iter(self.content)

    def __len__(self) -> int:
        return len(self.content)

    def _compute_total(self) -> int:
        request = self.page_request
        count = len(self.content)
        if request is None:
            return count
        if request.offset == 0 and request.size > count:
            return count
        if request.offset > 0 and count and request.size > count:
            return request.offset + count
        supplier = self.total_supplier
        return int(supplier() if callable(supplier) else supplier)
