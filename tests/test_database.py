"""Tests für die SQLite-Persistenz (Katalog, Inhalte, Protokoll)."""

from __future__ import annotations

import pytest

from conftest import StubProvider, create_test_item
from dailies.actions import PoliticalContentAnalyzer, ProcessorRegistry, register_default_processors
from dailies.catalog import CatalogStore
from dailies.catalog.models import ContentStatus
from dailies.classifier.resolver import CategoryResolver, MatchType
from dailies.db import Database, seed


class TestConnection:
    def test_connection_before_initialize(self, tmp_path):
        with pytest.raises(RuntimeError):
            Database(tmp_path / "x.db").connection

    @pytest.mark.asyncio
    async def test_context_manager(self, tmp_path):
        async with Database(tmp_path / "ctx.db") as db:
            assert await db.seed_defaults() is True


class TestSeedAndCatalog:
    @pytest.mark.asyncio
    async def test_seed_is_idempotent(self, database):
        assert await database.seed_defaults() is True
        assert await database.seed_defaults() is False

        catalog = await database.load_catalog()
        assert len(catalog.categories) == len(seed.CATEGORIES)
        assert len(catalog.aliases) == len(seed.ALIASES)

    @pytest.mark.asyncio
    async def test_seeded_catalog_is_valid(self, database):
        await database.seed_defaults()
        registry = register_default_processors(
            ProcessorRegistry(), PoliticalContentAnalyzer([StubProvider()]),
        )
        store = CatalogStore(loader=database.load_catalog, known_handlers=registry.names())

        snapshot = await store.reload()

        assert snapshot.fallback_category.name == seed.FALLBACK_CATEGORY
        politics = snapshot.find_category_by_name(seed.POLITICS_CATEGORY)
        plans = snapshot.actions_for_category(politics.id)
        assert [p.action.name for p in plans] == seed.CATEGORY_ACTIONS[seed.POLITICS_CATEGORY]

    @pytest.mark.asyncio
    async def test_seeded_alias_resolves(self, database):
        await database.seed_defaults()
        store = CatalogStore(loader=database.load_catalog)
        await store.reload()

        resolution = CategoryResolver(store).resolve("US Politics")

        assert resolution.category.name == seed.POLITICS_CATEGORY
        assert resolution.match_type == MatchType.ALIAS

    @pytest.mark.asyncio
    async def test_create_alias(self, database):
        await database.seed_defaults()
        catalog = await database.load_catalog()
        sports_id = next(c.id for c in catalog.categories if c.name == "Sports")

        assert await database.create_alias("Athletics", sports_id) is True
        assert await database.create_alias("athletics", sports_id) is False


class TestContentItems:
    @pytest.mark.asyncio
    async def test_upsert_deduplicates_by_hash(self, database):
        first = await database.upsert_content_item(create_test_item())
        second = await database.upsert_content_item(create_test_item())

        assert first.id is not None
        assert first.id == second.id
        assert first.status == ContentStatus.PENDING

    @pytest.mark.asyncio
    async def test_classification_update(self, database):
        await database.seed_defaults()
        stored = await database.upsert_content_item(create_test_item())

        await database.update_content_classification(stored.id, 1, "US Politics", 0.81)

        item = await database.get_content_item(stored.id)
        assert item.category_id == 1
        assert item.confidence == pytest.approx(0.81)
        assert item.status == ContentStatus.CLASSIFIED

    @pytest.mark.asyncio
    async def test_metadata_merge(self, database):
        stored = await database.upsert_content_item(create_test_item())

        await database.merge_content_metadata(stored.id, {"a": 1})
        await database.merge_content_metadata(stored.id, {"b": {"nested": True}})

        item = await database.get_content_item(stored.id)
        assert item.metadata == {"a": 1, "b": {"nested": True}}

    @pytest.mark.asyncio
    async def test_metadata_merge_unknown_item(self, database):
        with pytest.raises(KeyError):
            await database.merge_content_metadata(4711, {"a": 1})

    @pytest.mark.asyncio
    async def test_review_queue(self, database):
        stored = await database.upsert_content_item(create_test_item())
        await database.upsert_content_item(create_test_item(title="Other"))

        await database.mark_needs_review(stored.id, "Confidence 0.30 unter 0.50")

        queue = await database.get_review_queue()
        assert [i.id for i in queue] == [stored.id]
        assert queue[0].metadata["review_reason"] == "Confidence 0.30 unter 0.50"

    @pytest.mark.asyncio
    async def test_missing_item(self, database):
        assert await database.get_content_item(999) is None
        assert await database.get_content_by_hash("nope") is None


class TestProcessingLogs:
    @pytest.mark.asyncio
    async def test_append_and_read(self, database):
        stored = await database.upsert_content_item(create_test_item())

        await database.append_processing_log(
            "classification", "success", content_id=stored.id,
            provider="stub", details={"confidence": 0.9},
        )
        await database.append_processing_log("action_pipeline", "partial", content_id=stored.id)

        logs = await database.get_processing_logs(stored.id)
        assert [e["operation"] for e in logs] == ["action_pipeline", "classification"]
        assert logs[1]["details"] == {"confidence": 0.9}
        assert logs[1]["provider"] == "stub"

    @pytest.mark.asyncio
    async def test_seed_is_logged(self, database):
        await database.seed_defaults()

        logs = await database.get_processing_logs()

        assert logs[0]["operation"] == "seed_defaults"
        assert logs[0]["provider"] == "manual_seed"

    @pytest.mark.asyncio
    async def test_failed_write_returns_none(self, database):
        # content_id verletzt den Foreign Key
        row_id = await database.append_processing_log("classification", "failed", content_id=4711)

        assert row_id is None
