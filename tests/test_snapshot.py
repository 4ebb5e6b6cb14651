"""Tests für CatalogSnapshot-Validierung und den atomaren Austausch im CatalogStore."""

from __future__ import annotations

import pytest

from conftest import FALLBACK_ID, POLITICS_ID, TECH_ID, create_pipeline_catalog, create_test_catalog
from dailies.catalog.models import Action, Category, CategoryAction, CategoryAlias, Matcher
from dailies.catalog.snapshot import CatalogSnapshot, CatalogStore
from dailies.exceptions import ConfigurationInvalid


class TestValidation:
    def test_valid_catalog(self):
        snapshot = CatalogSnapshot.from_data(create_test_catalog())

        assert snapshot.fallback_category.id == FALLBACK_ID
        assert [c.name for c in snapshot.active_categories][0] == "US_Politics_News"
        assert all(not c.is_fallback for c in snapshot.classifiable_categories)

    def test_missing_fallback(self):
        catalog = create_test_catalog()
        catalog.categories = [c for c in catalog.categories if not c.is_fallback]

        with pytest.raises(ConfigurationInvalid) as exc_info:
            CatalogSnapshot.from_data(catalog)

        assert "keine aktive Fallback-Kategorie" in exc_info.value.problems

    def test_two_fallbacks(self):
        catalog = create_test_catalog()
        catalog.categories.append(Category(id=100, name="Misc", is_fallback=True))

        with pytest.raises(ConfigurationInvalid):
            CatalogSnapshot.from_data(catalog)

    def test_duplicate_alias_case_insensitive(self):
        catalog = create_test_catalog()
        catalog.aliases.append(CategoryAlias(alias="us politics", category_id=TECH_ID))

        with pytest.raises(ConfigurationInvalid, match="doppelter Alias"):
            CatalogSnapshot.from_data(catalog)

    def test_dangling_references(self):
        catalog = create_test_catalog()
        catalog.matchers.append(Matcher(category_id=500, pattern="example.com"))
        catalog.aliases.append(CategoryAlias(alias="Ghost", category_id=501))

        with pytest.raises(ConfigurationInvalid) as exc_info:
            CatalogSnapshot.from_data(catalog)

        assert len(exc_info.value.problems) == 2

    def test_duplicate_execution_order(self):
        catalog = create_pipeline_catalog(["t.a", "t.b"])
        catalog.category_actions = [
            CategoryAction(category_id=POLITICS_ID, action_id=1, execution_order=1),
            CategoryAction(category_id=POLITICS_ID, action_id=2, execution_order=1),
        ]

        with pytest.raises(ConfigurationInvalid, match="execution_order"):
            CatalogSnapshot.from_data(catalog)

    def test_unknown_handler(self):
        catalog = create_pipeline_catalog(["t.a", "t.unknown"])

        with pytest.raises(ConfigurationInvalid, match="t.unknown"):
            CatalogSnapshot.from_data(catalog, known_handlers={"t.a"})


class TestActionPlans:
    def test_sorted_and_filtered(self):
        catalog = create_test_catalog(
            actions=[
                Action(id=1, name="first", service_handler="t.a"),
                Action(id=2, name="second", service_handler="t.b"),
                Action(id=3, name="disabled", service_handler="t.c", is_active=False),
            ],
            category_actions=[
                CategoryAction(category_id=POLITICS_ID, action_id=2, execution_order=20),
                CategoryAction(category_id=POLITICS_ID, action_id=1, execution_order=10),
                CategoryAction(category_id=POLITICS_ID, action_id=3, execution_order=30),
            ],
        )

        plans = CatalogSnapshot.from_data(catalog).actions_for_category(POLITICS_ID)

        assert [p.action.name for p in plans] == ["first", "second"]

    def test_unknown_category_has_no_actions(self):
        snapshot = CatalogSnapshot.from_data(create_test_catalog())

        assert snapshot.actions_for_category(12345) == ()


class TestCatalogStore:
    def test_snapshot_before_load_raises(self):
        with pytest.raises(RuntimeError):
            CatalogStore().snapshot

    def test_replace_bumps_version(self):
        store = CatalogStore.from_data(create_test_catalog())
        old = store.snapshot

        store.replace(create_test_catalog())

        assert store.version == 2
        assert store.snapshot is not old

    def test_failed_replace_keeps_old_snapshot(self):
        store = CatalogStore.from_data(create_test_catalog())
        old = store.snapshot

        with pytest.raises(ConfigurationInvalid):
            store.replace(create_test_catalog(categories=[]))

        assert store.snapshot is old
        assert store.version == 1

    @pytest.mark.asyncio
    async def test_reload_without_loader(self):
        with pytest.raises(RuntimeError):
            await CatalogStore().reload()

    def test_old_snapshot_stays_readable_after_swap(self):
        store = CatalogStore.from_data(create_test_catalog())
        in_flight = store.snapshot

        store.replace(create_test_catalog(aliases=[]))

        assert in_flight.find_alias("US Politics") is not None
        assert store.snapshot.find_alias("US Politics") is None
