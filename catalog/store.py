"""
catalog/store.py -- SQLAlchemy-backed persistence layer for categories and funkos.

Uses SQLAlchemy Core (not ORM) so the dataclasses in catalog/models.py remain
the authoritative domain representation.

Pattern: Repository + Data Mapper. CatalogStore is the repository (one clean
interface per entity). The _row_to_* functions are the mappers. Services
never touch SQL directly.

Contract (mirrors auth/store.py):
  get_* lookups return None for unknown ids and blank keys.
  update_* / delete_* return the affected entity, or None if the id is unknown.

Security: all queries use bound parameters. No f-strings in SQL. Sort columns
come from a fixed whitelist, never from raw user input.

Usage:
    store = CatalogStore("sqlite:///funkostore.db")
    cat = store.create_category(Category(name="Marvel"))
    funko = store.save_funko(Funko(name="Iron Man", price=19.99, category_id=cat.id))
    items, total = store.get_funkos(FunkoFilter(category="marvel", page=0, size=10))
    store.close()
"""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import (
    Column,
    Float,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    func,
    select,
)
from sqlalchemy.engine import Engine

from catalog.models import Category, Funko, FunkoFilter
from core.db import make_engine, now_iso

_DEFAULT_DB_URL = "sqlite:///funkostore.db"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_categories = Table(
    "categories",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("name", String(100), nullable=False, unique=True),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

_funkos = Table(
    "funkos",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("price", Float, nullable=False),
    Column("category_id", String(36), ForeignKey("categories.id"), nullable=False),
    Column("image", String(500), nullable=False, server_default=""),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    sqlite_autoincrement=True,
)

# Funko rows are always read joined with their category name.
_funko_select = select(_funkos, _categories.c.name.label("category_name")).join(
    _categories, _funkos.c.category_id == _categories.c.id
)

_SORT_COLUMNS = {
    "id": _funkos.c.id,
    "name": _funkos.c.name,
    "price": _funkos.c.price,
    "created_at": _funkos.c.created_at,
}


class CatalogStore:
    def __init__(self, db_url: str = _DEFAULT_DB_URL, logger: logging.Logger | None = None) -> None:
        self.engine: Engine = make_engine(db_url)
        self._log = logger or logging.getLogger("funkostore.catalog.store")
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def list_categories(self) -> list[Category]:
        with self.engine.connect() as conn:
            rows = conn.execute(_categories.select().order_by(_categories.c.name)).fetchall()
        return [_row_to_category(r) for r in rows]

    def get_category(self, category_id: str) -> Category | None:
        if not category_id:
            return None
        with self.engine.connect() as conn:
            row = conn.execute(_categories.select().where(_categories.c.id == str(category_id))).fetchone()
        return _row_to_category(row) if row is not None else None

    def get_category_by_name(self, name: str) -> Category | None:
        """Case-insensitive name lookup. Returns None for blank names."""
        if not name or not name.strip():
            return None
        with self.engine.connect() as conn:
            row = conn.execute(
                _categories.select().where(func.lower(_categories.c.name) == name.strip().lower())
            ).fetchone()
        return _row_to_category(row) if row is not None else None

    def create_category(self, category: Category) -> Category:
        """Insert a category with a fresh uuid4 id.

        Raises sqlalchemy.exc.IntegrityError if the name already exists.
        """
        category_id = str(uuid.uuid4())
        now = now_iso()
        with self.engine.connect() as conn:
            conn.execute(_categories.insert().values(id=category_id, name=category.name, created_at=now, updated_at=now))
            conn.commit()
        self._log.info("Category %s created (%s)", category_id, category.name)
        return self.get_category(category_id)

    def update_category(self, category_id: str, category: Category) -> Category | None:
        with self.engine.connect() as conn:
            result = conn.execute(
                _categories.update()
                .where(_categories.c.id == str(category_id))
                .values(name=category.name, updated_at=now_iso())
            )
            conn.commit()
        if result.rowcount == 0:
            self._log.warning("Update skipped: category %s not found", category_id)
            return None
        return self.get_category(category_id)

    def delete_category(self, category_id: str) -> Category | None:
        found = self.get_category(category_id)
        if found is None:
            self._log.warning("Delete skipped: category %s not found", category_id)
            return None
        with self.engine.connect() as conn:
            conn.execute(_categories.delete().where(_categories.c.id == str(category_id)))
            conn.commit()
        self._log.info("Category %s deleted", category_id)
        return found

    def count_funkos_in_category(self, category_id: str) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(
                select(func.count()).select_from(_funkos).where(_funkos.c.category_id == str(category_id))
            ).scalar()
        return result or 0

    # ------------------------------------------------------------------
    # Funkos
    # ------------------------------------------------------------------

    def get_funko(self, funko_id: int) -> Funko | None:
        with self.engine.connect() as conn:
            row = conn.execute(_funko_select.where(_funkos.c.id == funko_id)).fetchone()
        return _row_to_funko(row) if row is not None else None

    def get_funkos(self, flt: FunkoFilter) -> tuple[list[Funko], int]:
        """Return one page of funkos matching the filter, plus the total match count."""
        conditions = []
        if flt.name:
            # autoescape: % and _ in the search text match literally.
            conditions.append(func.lower(_funkos.c.name).contains(flt.name.strip().lower(), autoescape=True))
        if flt.category:
            conditions.append(func.lower(_categories.c.name) == flt.category.strip().lower())
        if flt.max_price is not None:
            conditions.append(_funkos.c.price <= flt.max_price)

        query = _funko_select.where(*conditions) if conditions else _funko_select
        count_query = select(func.count()).select_from(query.subquery())

        sort_col = _SORT_COLUMNS.get(flt.sort_by, _funkos.c.id)
        order = sort_col.desc() if flt.direction.lower() == "desc" else sort_col.asc()
        page_query = query.order_by(order, _funkos.c.id).offset(flt.page * flt.size).limit(flt.size)

        with self.engine.connect() as conn:
            total = conn.execute(count_query).scalar() or 0
            rows = conn.execute(page_query).fetchall()
        return [_row_to_funko(r) for r in rows], total

    def save_funko(self, funko: Funko) -> Funko:
        now = now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _funkos.insert().values(
                    name=funko.name,
                    price=funko.price,
                    category_id=funko.category_id,
                    image=funko.image or "",
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
            funko_id = result.inserted_primary_key[0]
        self._log.info("Funko saved with id %s", funko_id)
        return self.get_funko(funko_id)

    def update_funko(self, funko_id: int, funko: Funko) -> Funko | None:
        with self.engine.connect() as conn:
            result = conn.execute(
                _funkos.update()
                .where(_funkos.c.id == funko_id)
                .values(
                    name=funko.name,
                    price=funko.price,
                    category_id=funko.category_id,
                    image=funko.image or "",
                    updated_at=now_iso(),
                )
            )
            conn.commit()
        if result.rowcount == 0:
            self._log.warning("Update skipped: funko %s not found", funko_id)
            return None
        return self.get_funko(funko_id)

    def delete_funko(self, funko_id: int) -> Funko | None:
        found = self.get_funko(funko_id)
        if found is None:
            self._log.warning("Delete skipped: funko %s not found", funko_id)
            return None
        with self.engine.connect() as conn:
            conn.execute(_funkos.delete().where(_funkos.c.id == funko_id))
            conn.commit()
        self._log.info("Funko %s deleted", funko_id)
        return found

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_category(row) -> Category:
    return Category(id=row.id, name=row.name, created_at=row.created_at, updated_at=row.updated_at)


def _row_to_funko(row) -> Funko:
    return Funko(
        id=row.id,
        name=row.name,
        price=row.price,
        category_id=row.category_id,
        category=row.category_name,
        image=row.image or "",
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
