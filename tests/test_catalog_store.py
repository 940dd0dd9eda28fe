"""
tests/test_catalog_store.py -- CatalogStore persistence, filtering and paging.
"""

from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError

from catalog.models import Category, Funko, FunkoFilter


@pytest.fixture
def seeded(catalog_store):
    marvel = catalog_store.create_category(Category(name="Marvel"))
    disney = catalog_store.create_category(Category(name="Disney"))
    for name, price, cat in [
        ("Iron Man", 19.99, marvel),
        ("Thor", 24.50, marvel),
        ("Spider-Man", 15.00, marvel),
        ("Mickey", 12.00, disney),
        ("Stitch", 30.00, disney),
    ]:
        catalog_store.save_funko(Funko(name=name, price=price, category_id=cat.id))
    return catalog_store, marvel, disney


class TestCategories:
    def test_create_assigns_uuid(self, catalog_store):
        cat = catalog_store.create_category(Category(name="Marvel"))
        assert len(cat.id) == 36
        assert catalog_store.get_category(cat.id).name == "Marvel"

    def test_name_lookup_is_case_insensitive(self, catalog_store):
        cat = catalog_store.create_category(Category(name="Marvel"))
        assert catalog_store.get_category_by_name("mArVeL").id == cat.id
        assert catalog_store.get_category_by_name("  ") is None

    def test_duplicate_name_violates_constraint(self, catalog_store):
        catalog_store.create_category(Category(name="Marvel"))
        with pytest.raises(IntegrityError):
            catalog_store.create_category(Category(name="Marvel"))

    def test_list_is_sorted_by_name(self, seeded):
        store, _, _ = seeded
        assert [c.name for c in store.list_categories()] == ["Disney", "Marvel"]

    def test_update_and_delete_unknown_return_none(self, catalog_store):
        assert catalog_store.update_category("missing", Category(name="x")) is None
        assert catalog_store.delete_category("missing") is None

    def test_count_funkos_in_category(self, seeded):
        store, marvel, disney = seeded
        assert store.count_funkos_in_category(marvel.id) == 3
        assert store.count_funkos_in_category(disney.id) == 2


class TestFunkos:
    def test_saved_funko_carries_category_name(self, seeded):
        store, marvel, _ = seeded
        funko = store.save_funko(Funko(name="Hulk", price=20.0, category_id=marvel.id))
        assert funko.id is not None
        assert funko.category == "Marvel"
        assert store.get_funko(funko.id).name == "Hulk"

    def test_unfiltered_listing_pages_by_id(self, seeded):
        store, _, _ = seeded
        items, total = store.get_funkos(FunkoFilter(page=0, size=2))
        assert total == 5
        assert [f.name for f in items] == ["Iron Man", "Thor"]

        items, _ = store.get_funkos(FunkoFilter(page=2, size=2))
        assert [f.name for f in items] == ["Stitch"]

    def test_filters_combine(self, seeded):
        store, _, _ = seeded
        items, total = store.get_funkos(FunkoFilter(category="marvel", max_price=20.0))
        assert total == 2
        assert {f.name for f in items} == {"Iron Man", "Spider-Man"}

    def test_name_filter_is_substring_case_insensitive(self, seeded):
        store, _, _ = seeded
        items, total = store.get_funkos(FunkoFilter(name="man"))
        assert total == 2
        assert {f.name for f in items} == {"Iron Man", "Spider-Man"}

    def test_sort_by_price_descending(self, seeded):
        store, _, _ = seeded
        items, _ = store.get_funkos(FunkoFilter(sort_by="price", direction="desc", size=3))
        assert [f.price for f in items] == [30.0, 24.5, 19.99]

    def test_unknown_sort_field_falls_back_to_id(self, seeded):
        store, _, _ = seeded
        items, _ = store.get_funkos(FunkoFilter(sort_by="category_id; DROP TABLE funkos", size=1))
        assert items[0].name == "Iron Man"

    def test_update_and_delete(self, seeded):
        store, _, disney = seeded
        funko = store.get_funkos(FunkoFilter(name="Thor"))[0][0]
        funko.category_id = disney.id
        funko.price = 26.0
        updated = store.update_funko(funko.id, funko)
        assert updated.category == "Disney"
        assert updated.price == 26.0

        assert store.delete_funko(funko.id).name == "Thor"
        assert store.get_funko(funko.id) is None
        assert store.delete_funko(funko.id) is None

    def test_funko_requires_existing_category(self, catalog_store):
        with pytest.raises(IntegrityError):
            catalog_store.save_funko(Funko(name="Orphan", price=1.0, category_id="no-such-category"))


def test_name_filter_treats_wildcards_literally(catalog_store):
    cat = catalog_store.create_category(Category(name="Misc"))
    catalog_store.save_funko(Funko(name="Plain", price=1.0, category_id=cat.id))
    catalog_store.save_funko(Funko(name="100% Cotton", price=2.0, category_id=cat.id))
    catalog_store.save_funko(Funko(name="snake_case", price=3.0, category_id=cat.id))

    assert catalog_store.get_funkos(FunkoFilter(name="_"))[1] == 1
    assert catalog_store.get_funkos(FunkoFilter(name="%"))[0][0].name == "100% Cotton"
    assert catalog_store.get_funkos(FunkoFilter(name="SNAKE_"))[0][0].name == "snake_case"
