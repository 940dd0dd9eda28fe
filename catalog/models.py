"""
catalog/models.py -- Domain dataclasses for the Funko catalog.

Pure data containers with zero logic. Business rules (category must exist,
category names are unique) live in catalog/service.py; SQL lives in
catalog/store.py.

Entities round-trip through the JSON cache via dataclasses.asdict(), so
every field is a JSON-native type (timestamps are ISO 8601 strings).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, TypeVar

T = TypeVar("T")

SORTABLE_FIELDS = ("id", "name", "price", "created_at")


@dataclass
class Category:
    """A catalog category. id is a uuid4 string assigned by the store."""

    name: str
    id: str = ""
    created_at: str = ""
    updated_at: str = ""


@dataclass
class Funko:
    """A collectible figure.

    category is the category's name, denormalized from category_id so the
    cached snapshot is self-contained.

    id is None before the record is written to the database.
    """

    name: str
    price: float
    category_id: str = ""
    category: str = ""
    image: str = ""
    id: int | None = None
    created_at: str = ""
    updated_at: str = ""


@dataclass
class FunkoFilter:
    """Query parameters for the paginated funko listing."""

    name: str | None = None  # case-insensitive substring
    category: str | None = None  # exact category name, case-insensitive
    max_price: float | None = None
    page: int = 0  # zero-based
    size: int = 10
    sort_by: str = "id"  # one of SORTABLE_FIELDS
    direction: str = "asc"  # "asc" | "desc"


@dataclass
class Page(Generic[T]):
    items: list[T] = field(default_factory=list)
    total_count: int = 0
    page: int = 0
    size: int = 10

    @property
    def total_pages(self) -> int:
        if self.size <= 0:
            return 0
        return (self.total_count + self.size - 1) // self.size
