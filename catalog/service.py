"""
catalog/service.py -- Category and Funko business rules.

Both services read single entities through CacheAside and invalidate the
cached snapshot after every successful update, patch, or delete, so a read
that follows a write never sees the pre-write snapshot from this process.

Expected outcomes come back as Result values (see core/errors.py):
  NOT_FOUND   unknown id
  CONFLICT    duplicate category name; category still in use; unknown
              category on patch
  VALIDATION  unknown category on create/update

Every store write also catches IntegrityError: the existence checks above
are not in the same transaction as the write, so a racing request that
trips a UNIQUE or FOREIGN KEY constraint gets the same Result as the
check would have produced.

FunkoService also announces writes on the NotificationHub and queues an
admin email on create. Neither can fail the write: the hub drops on
overflow and the outbox delivers in the background.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from cache.aside import DEFAULT_TTL_SECONDS, CacheAside
from cache.store import CacheStore
from catalog.models import Category, Funko, FunkoFilter, Page
from catalog.store import CatalogStore
from core.errors import ErrorKind, Result
from notifications.hub import FUNKO_CREATED, FUNKO_DELETED, FUNKO_PATCHED, FUNKO_UPDATED, NotificationHub
from notifications.mailer import EmailOutbox, funko_created_email

CATEGORY_PREFIX = "category"
FUNKO_PREFIX = "funko"


class CategoryService:
    def __init__(
        self,
        store: CatalogStore,
        cache: CacheStore,
        ttl: int = DEFAULT_TTL_SECONDS,
        logger: logging.Logger | None = None,
    ) -> None:
        self._store = store
        self._log = logger or logging.getLogger("funkostore.catalog.categories")
        self._cache = CacheAside(cache, CATEGORY_PREFIX, Category, ttl=ttl, logger=self._log)

    def get_all(self) -> list[Category]:
        return self._store.list_categories()

    def get_by_id(self, category_id: str) -> Result[Category]:
        category = self._cache.get(category_id, self._store.get_category)
        if category is None:
            return Result.fail(ErrorKind.NOT_FOUND, f"Category not found with id: {category_id}")
        return Result.ok(category)

    def create(self, name: str) -> Result[Category]:
        if self._store.get_category_by_name(name) is not None:
            return Result.fail(ErrorKind.CONFLICT, f"Category already exists: {name}")
        try:
            created = self._store.create_category(Category(name=name))
        except IntegrityError:
            return Result.fail(ErrorKind.CONFLICT, f"Category already exists: {name}")
        self._log.info("Category created: %s", created.id)
        return Result.ok(created)

    def update(self, category_id: str, name: str) -> Result[Category]:
        same_name = self._store.get_category_by_name(name)
        if same_name is not None and same_name.id != category_id:
            return Result.fail(ErrorKind.CONFLICT, f"Another category already uses the name: {name}")

        try:
            updated = self._store.update_category(category_id, Category(name=name))
        except IntegrityError:
            return Result.fail(ErrorKind.CONFLICT, f"Another category already uses the name: {name}")
        if updated is None:
            return Result.fail(ErrorKind.NOT_FOUND, f"Category not found with id: {category_id}")
        self._cache.invalidate(category_id)
        return Result.ok(updated)

    def delete(self, category_id: str) -> Result[Category]:
        if self._store.count_funkos_in_category(category_id) > 0:
            return Result.fail(ErrorKind.CONFLICT, f"Category {category_id} still has funkos")
        try:
            deleted = self._store.delete_category(category_id)
        except IntegrityError:
            # A funko was added between the count and the delete.
            return Result.fail(ErrorKind.CONFLICT, f"Category {category_id} still has funkos")
        if deleted is None:
            return Result.fail(ErrorKind.NOT_FOUND, f"Category not found with id: {category_id}")
        self._cache.invalidate(category_id)
        return Result.ok(deleted)


class FunkoService:
    def __init__(
        self,
        store: CatalogStore,
        cache: CacheStore,
        hub: NotificationHub,
        outbox: EmailOutbox,
        admin_email: str = "",
        ttl: int = DEFAULT_TTL_SECONDS,
        logger: logging.Logger | None = None,
    ) -> None:
        self._store = store
        self._hub = hub
        self._outbox = outbox
        self._admin_email = admin_email
        self._log = logger or logging.getLogger("funkostore.catalog.funkos")
        self._cache = CacheAside(cache, FUNKO_PREFIX, Funko, ttl=ttl, logger=self._log)

    def get_all(self, flt: FunkoFilter) -> Result[Page[Funko]]:
        self._log.info("Listing funkos page=%d size=%d", flt.page, flt.size)
        items, total = self._store.get_funkos(flt)
        return Result.ok(Page(items=items, total_count=total, page=flt.page, size=flt.size))

    def get_by_id(self, funko_id: int) -> Result[Funko]:
        funko = self._cache.get(funko_id, self._store.get_funko)
        if funko is None:
            self._log.warning("Funko not found: %s", funko_id)
            return Result.fail(ErrorKind.NOT_FOUND, f"Funko not found with id: {funko_id}")
        return Result.ok(funko)

    def create(self, name: str, category: str, price: float, image: str = "") -> Result[Funko]:
        self._log.info("Creating funko: %s", name)
        found = self._store.get_category_by_name(category)
        if found is None:
            return Result.fail(ErrorKind.VALIDATION, f"Category is not valid: {category}")

        try:
            saved = self._store.save_funko(Funko(name=name, price=price, category_id=found.id, image=image))
        except IntegrityError:
            # Category deleted after the lookup.
            return Result.fail(ErrorKind.VALIDATION, f"Category is not valid: {category}")
        self._hub.publish(FUNKO_CREATED, saved)
        if self._admin_email:
            self._outbox.enqueue(funko_created_email(saved, self._admin_email))
        return Result.ok(saved)

    def update(self, funko_id: int, name: str, category: str, price: float, image: str = "") -> Result[Funko]:
        self._log.info("Updating funko: %s", funko_id)
        found = self._store.get_category_by_name(category)
        if found is None:
            return Result.fail(ErrorKind.VALIDATION, f"Category is not valid: {category}")

        try:
            updated = self._store.update_funko(
                funko_id, Funko(name=name, price=price, category_id=found.id, image=image)
            )
        except IntegrityError:
            return Result.fail(ErrorKind.VALIDATION, f"Category is not valid: {category}")
        if updated is None:
            return Result.fail(ErrorKind.NOT_FOUND, f"Funko not found with id: {funko_id}")
        self._cache.invalidate(funko_id)
        self._hub.publish(FUNKO_UPDATED, updated)
        return Result.ok(updated)

    def patch(
        self,
        funko_id: int,
        name: str | None = None,
        category: str | None = None,
        price: float | None = None,
        image: str | None = None,
    ) -> Result[Funko]:
        current = self._store.get_funko(funko_id)
        if current is None:
            return Result.fail(ErrorKind.NOT_FOUND, f"Funko not found with id: {funko_id}")

        if name is not None:
            current.name = name
        if price is not None:
            current.price = price
        if image is not None:
            current.image = image
        if category is not None:
            found = self._store.get_category_by_name(category)
            if found is None:
                return Result.fail(ErrorKind.CONFLICT, f"Category does not exist: {category}")
            current.category_id = found.id

        try:
            patched = self._store.update_funko(funko_id, current)
        except IntegrityError:
            return Result.fail(ErrorKind.CONFLICT, f"Category does not exist: {category or current.category_id}")
        if patched is None:
            # Deleted between the read and the write.
            return Result.fail(ErrorKind.NOT_FOUND, f"Funko not found with id: {funko_id}")
        self._cache.invalidate(funko_id)
        self._hub.publish(FUNKO_PATCHED, patched)
        return Result.ok(patched)

    def delete(self, funko_id: int) -> Result[Funko]:
        self._log.warning("Deleting funko: %s", funko_id)
        deleted = self._store.delete_funko(funko_id)
        if deleted is None:
            return Result.fail(ErrorKind.NOT_FOUND, f"Funko not found with id: {funko_id}")
        self._cache.invalidate(funko_id)
        self._hub.publish(FUNKO_DELETED, deleted)
        return Result.ok(deleted)
