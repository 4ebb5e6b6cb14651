"""Tests für den ClassificationWorker gegen eine echte SQLite-Datenbank."""

from __future__ import annotations

import pytest

from conftest import FailingProvider, StubProvider, create_test_item
from dailies.actions import (
    ActionPipelineExecutor,
    PoliticalContentAnalyzer,
    ProcessorRegistry,
    register_default_processors,
)
from dailies.catalog import CatalogStore
from dailies.catalog.models import ContentStatus
from dailies.classifier import ClassificationOrchestrator
from dailies.db import seed
from dailies.scheduler import ClassificationWorker, WorkerState


async def create_test_worker(database, providers) -> ClassificationWorker:
    """Worker mit Standard-Katalog und Standard-Processorn."""
    await database.seed_defaults()
    registry = register_default_processors(ProcessorRegistry(), PoliticalContentAnalyzer(providers))
    store = CatalogStore(loader=database.load_catalog, known_handlers=registry.names())
    await store.reload()
    return ClassificationWorker(
        database,
        ClassificationOrchestrator(providers, store),
        ActionPipelineExecutor(registry, store, timeout_seconds=5.0),
    )


class TestProcessItem:
    @pytest.mark.asyncio
    async def test_political_item_is_processed(self, database):
        worker = await create_test_worker(database, [StubProvider(label="US Politics")])

        item = await worker.process_item(create_test_item())

        assert item.status == ContentStatus.PROCESSED
        assert item.confidence >= 0.7
        classification = item.metadata["classification"]
        assert classification["category"] == seed.POLITICS_CATEGORY
        results = item.metadata["action_results"]
        assert list(results) == seed.CATEGORY_ACTIONS[seed.POLITICS_CATEGORY]
        assert all(r["success"] for r in results.values())
        assert results["assess_credibility"]["result"]["tier"] == "medium"
        assert worker.status.items_processed == 1

    @pytest.mark.asyncio
    async def test_processing_is_logged(self, database):
        worker = await create_test_worker(database, [StubProvider(label="US Politics")])

        item = await worker.process_item(create_test_item())

        logs = await database.get_processing_logs(item.id)
        assert [e["operation"] for e in logs] == ["action_pipeline", "classification"]
        assert logs[0]["details"]["executed"] == 5
        assert logs[1]["provider"] == "stub"

    @pytest.mark.asyncio
    async def test_no_providers_goes_to_review(self, database):
        worker = await create_test_worker(database, [])

        item = await worker.process_item(create_test_item())

        assert item.status == ContentStatus.NEEDS_REVIEW
        assert item.confidence == pytest.approx(0.1)
        assert item.metadata["classification"]["category"] == seed.FALLBACK_CATEGORY
        assert "review_reason" in item.metadata
        assert list(item.metadata["action_results"]) == seed.CATEGORY_ACTIONS[seed.FALLBACK_CATEGORY]
        assert worker.status.items_review == 1

        logs = await database.get_processing_logs(item.id)
        assert [(e["operation"], e["status"]) for e in logs] == [
            ("action_pipeline", "success"),
            ("classification", "review"),
            ("classification", "failed"),
        ]

    @pytest.mark.asyncio
    async def test_failing_providers_also_go_to_review(self, database):
        worker = await create_test_worker(database, [FailingProvider()])

        item = await worker.process_item(create_test_item())

        assert item.status == ContentStatus.NEEDS_REVIEW
        assert item.metadata["classification"]["match_type"] == "error_fallback"

    @pytest.mark.asyncio
    async def test_stored_item_without_id_raises(self, database, monkeypatch):
        provider = StubProvider()
        worker = await create_test_worker(database, [provider])

        async def upsert_without_id(item):
            return item

        monkeypatch.setattr(database, "upsert_content_item", upsert_without_id)

        with pytest.raises(RuntimeError, match="ohne ID"):
            await worker.process_item(create_test_item())
        assert provider.calls == 0


class TestWorkerLoop:
    @pytest.mark.asyncio
    async def test_submit_requires_running_worker(self, database):
        worker = await create_test_worker(database, [StubProvider()])

        with pytest.raises(RuntimeError):
            await worker.submit(create_test_item())

    @pytest.mark.asyncio
    async def test_start_submit_stop(self, database):
        worker = await create_test_worker(database, [StubProvider()])
        worker.start()

        await worker.submit(create_test_item())
        await worker.submit(create_test_item(title="Second bill advances"))
        await worker.join()
        await worker.stop()

        assert worker.status.items_processed == 2
        assert worker.status.state == WorkerState.STOPPED
        assert not worker.is_running

    @pytest.mark.asyncio
    async def test_double_start_raises(self, database):
        worker = await create_test_worker(database, [StubProvider()])
        worker.start()
        try:
            with pytest.raises(RuntimeError):
                worker.start()
        finally:
            await worker.stop()

    @pytest.mark.asyncio
    async def test_error_in_item_does_not_stop_loop(self, database, monkeypatch):
        worker = await create_test_worker(database, [StubProvider()])
        original = worker.process_item
        calls = []

        async def flaky(item):
            calls.append(item.title)
            if len(calls) == 1:
                raise ValueError("kaputt")
            return await original(item)

        monkeypatch.setattr(worker, "process_item", flaky)
        worker.start()

        await worker.submit(create_test_item(title="First"))
        await worker.submit(create_test_item(title="Second"))
        await worker.join()
        await worker.stop()

        assert worker.status.items_errored == 1
        assert worker.status.items_processed == 1
        assert "kaputt" in worker.status.last_error
