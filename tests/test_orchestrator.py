"""Tests für den ClassificationOrchestrator (Fallback, Consensus, Cache, Reload)."""

from __future__ import annotations

import pytest

from conftest import (
    FALLBACK_ID,
    POLITICS_ID,
    FailingProvider,
    SlowProvider,
    StubProvider,
    create_test_catalog,
    create_test_item,
)
from dailies.catalog.snapshot import CatalogStore
from dailies.classifier import ClassificationCache, ClassificationOrchestrator, MatchType
from dailies.classifier.orchestrator import CONSENSUS_PROVIDER_NAME
from dailies.exceptions import AllProvidersExhausted, ConfigurationInvalid, ProviderError


def create_orchestrator(providers, store=None, cache=None) -> ClassificationOrchestrator:
    return ClassificationOrchestrator(
        providers,
        store or CatalogStore.from_data(create_test_catalog()),
        cache=cache,
    )


class TestPoliticoScenario:
    @pytest.mark.asyncio
    async def test_no_provider_raises_all_providers_exhausted(self, politico_item):
        orchestrator = create_orchestrator([])

        with pytest.raises(AllProvidersExhausted):
            await orchestrator.classify(politico_item)

    @pytest.mark.asyncio
    async def test_alias_label_resolves_to_canonical_category(self, politico_item):
        provider = StubProvider(label="US Politics")
        orchestrator = create_orchestrator([provider])

        result = await orchestrator.classify(politico_item)

        assert result.category_name == "US_Politics_News"
        assert result.match_type == MatchType.ALIAS
        assert result.confidence >= 0.7
        assert result.needs_manual_review is False
        assert result.provider_name == "stub"

    @pytest.mark.asyncio
    async def test_prompt_contains_categories_and_matcher_hint(self, politico_item):
        provider = StubProvider()
        orchestrator = create_orchestrator([provider])

        await orchestrator.classify(politico_item)

        prompt = provider.prompts[0]
        assert "- US_Politics_News" in prompt
        assert "Uncategorized" not in prompt
        assert "Content from politico.com is typically US_Politics_News" in prompt


class TestFallbackMode:
    @pytest.mark.asyncio
    async def test_failing_provider_is_skipped(self, politico_item):
        failing = FailingProvider()
        working = StubProvider(name="second")
        orchestrator = create_orchestrator([failing, working])

        result = await orchestrator.classify(politico_item)

        assert failing.calls == 1
        assert result.provider_name == "second"
        assert result.category.id == POLITICS_ID

    @pytest.mark.asyncio
    async def test_all_failing_carries_last_error(self, politico_item):
        orchestrator = create_orchestrator([FailingProvider("a"), FailingProvider("b", status_code=429)])

        with pytest.raises(AllProvidersExhausted) as exc_info:
            await orchestrator.classify(politico_item)

        assert isinstance(exc_info.value.last_error, ProviderError)
        assert exc_info.value.last_error.is_rate_limited

    @pytest.mark.asyncio
    async def test_timeout_counts_as_provider_failure(self, politico_item):
        working = StubProvider(name="backup")
        orchestrator = create_orchestrator([SlowProvider(), working])

        result = await orchestrator.classify(politico_item)

        assert result.provider_name == "backup"

    @pytest.mark.asyncio
    async def test_stops_at_first_confident_provider(self, politico_item):
        first = StubProvider(name="first")
        second = StubProvider(name="second")
        orchestrator = create_orchestrator([first, second])

        await orchestrator.classify(politico_item)

        assert first.calls == 1
        assert second.calls == 0

    @pytest.mark.asyncio
    async def test_low_confidence_flags_review_and_skips_cache(self, politico_item):
        vague = StubProvider(label="maybe something about gardening and hobbies")
        orchestrator = create_orchestrator([vague])

        result = await orchestrator.classify(politico_item)

        assert result.category.id == FALLBACK_ID
        assert result.match_type == MatchType.FALLBACK
        assert result.needs_manual_review is True
        assert 0.1 <= result.confidence < 0.5
        assert len(orchestrator.cache) == 0

    @pytest.mark.asyncio
    async def test_best_low_confidence_result_wins(self, politico_item):
        vague = StubProvider(label="maybe something about gardening and hobbies", name="vague")
        exact = StubProvider(label="Sports", name="exact")
        orchestrator = create_orchestrator([vague, exact])

        result = await orchestrator.classify(politico_item, min_confidence=0.99)

        assert result.needs_manual_review is True
        assert result.provider_name == "exact"


class TestConsensusMode:
    @pytest.mark.asyncio
    async def test_unanimous_confidence_at_least_mean(self, politico_item):
        providers = [
            StubProvider(label="US_Politics_News", name="a"),
            StubProvider(label="US Politics", name="b"),
            StubProvider(label="US Politics", name="c"),
        ]
        orchestrator = create_orchestrator(providers)
        singles = [
            (await create_orchestrator([StubProvider(label=p.label)]).classify(politico_item)).confidence
            for p in providers
        ]

        result = await orchestrator.classify(politico_item, use_consensus=True)

        assert result.provider_name == CONSENSUS_PROVIDER_NAME
        assert result.category.id == POLITICS_ID
        assert result.consensus is not None
        assert result.consensus.ratio == 1.0
        assert result.confidence >= sum(singles) / len(singles) - 1e-9
        assert all(p.calls == 1 for p in providers)

    @pytest.mark.asyncio
    async def test_majority_lists_alternative_view(self, politico_item):
        providers = [
            StubProvider(label="US Politics", name="a"),
            StubProvider(label="Sports", name="b"),
            StubProvider(label="US Politics", name="c"),
        ]
        orchestrator = create_orchestrator(providers)

        result = await orchestrator.classify(politico_item, use_consensus=True)

        assert result.category.id == POLITICS_ID
        assert result.consensus.ratio == pytest.approx(2 / 3)
        assert result.consensus.providers == ["a", "c"]
        assert [v["provider"] for v in result.consensus.alternative_views] == ["b"]

    @pytest.mark.asyncio
    async def test_failed_providers_are_ignored(self, politico_item):
        orchestrator = create_orchestrator([
            FailingProvider("down"),
            StubProvider(name="a"),
            StubProvider(name="b"),
        ])

        result = await orchestrator.classify(politico_item, use_consensus=True)

        assert result.consensus.providers == ["a", "b"]

    @pytest.mark.asyncio
    async def test_single_answer_is_returned_directly(self, politico_item):
        orchestrator = create_orchestrator([FailingProvider("down"), StubProvider(name="only")])

        result = await orchestrator.classify(politico_item, use_consensus=True)

        assert result.provider_name == "only"
        assert result.consensus is None

    @pytest.mark.asyncio
    async def test_no_answers_raise(self, politico_item):
        orchestrator = create_orchestrator([FailingProvider("a"), FailingProvider("b")])

        with pytest.raises(AllProvidersExhausted):
            await orchestrator.classify(politico_item, use_consensus=True)

    @pytest.mark.asyncio
    async def test_queries_at_most_configured_providers(self, politico_item):
        providers = [StubProvider(name=str(i)) for i in range(4)]
        orchestrator = ClassificationOrchestrator(
            providers,
            CatalogStore.from_data(create_test_catalog()),
            consensus_max_providers=2,
        )

        await orchestrator.classify(politico_item, use_consensus=True)

        assert [p.calls for p in providers] == [1, 1, 0, 0]

    def test_rejects_consensus_maximum_below_two(self, catalog_store):
        with pytest.raises(ValueError):
            ClassificationOrchestrator([], catalog_store, consensus_max_providers=1)


class TestCaching:
    @pytest.mark.asyncio
    async def test_cache_hit_skips_providers(self, politico_item):
        provider = StubProvider()
        orchestrator = create_orchestrator([provider])

        first = await orchestrator.classify(politico_item)
        second = await orchestrator.classify(politico_item)

        assert provider.calls == 1
        assert second.from_cache is True
        assert first.from_cache is False
        assert second.category.id == first.category.id
        assert second.confidence == first.confidence

    @pytest.mark.asyncio
    async def test_different_content_is_classified_separately(self):
        provider = StubProvider()
        orchestrator = create_orchestrator([provider])

        await orchestrator.classify(create_test_item(title="First"))
        await orchestrator.classify(create_test_item(title="Second"))

        assert provider.calls == 2

    @pytest.mark.asyncio
    async def test_shared_cache_is_used(self, politico_item):
        cache = ClassificationCache(max_size=5)
        provider = StubProvider()
        orchestrator = create_orchestrator([provider], cache=cache)

        await orchestrator.classify(politico_item)

        assert politico_item.content_hash in cache

    @pytest.mark.asyncio
    async def test_cache_hit_respects_current_threshold(self, politico_item):
        provider = StubProvider()
        orchestrator = create_orchestrator([provider])

        first = await orchestrator.classify(politico_item, min_confidence=0.5)
        stricter = await orchestrator.classify(
            politico_item, min_confidence=first.confidence + 0.01,
        )
        relaxed = await orchestrator.classify(politico_item, min_confidence=0.5)

        assert provider.calls == 1
        assert first.needs_manual_review is False
        assert stricter.from_cache is True
        assert stricter.needs_manual_review is True
        assert relaxed.needs_manual_review is False

    @pytest.mark.asyncio
    async def test_returned_result_does_not_alias_cache_entry(self, politico_item):
        orchestrator = create_orchestrator([StubProvider()])

        first = await orchestrator.classify(politico_item)
        reasons_before = list(first.reasons)
        first.reasons.append("vom Aufrufer ergänzt")
        first.timing["extra_ms"] = 1.0

        second = await orchestrator.classify(politico_item)
        second.reasons.append("nochmal ergänzt")
        third = await orchestrator.classify(politico_item)

        assert second.reasons[:len(reasons_before)] == reasons_before
        assert "vom Aufrufer ergänzt" not in second.reasons
        assert "extra_ms" not in second.timing
        assert "nochmal ergänzt" not in third.reasons


class TestConfidenceBounds:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("label", [
        "US Politics",
        "US_Politics_News",
        "Sports",
        "",
        "I am not sure, this is difficult to classify and unclear " * 5,
    ])
    async def test_confidence_always_in_range(self, politico_item, label):
        orchestrator = create_orchestrator([StubProvider(label=label)])

        result = await orchestrator.classify(politico_item)

        assert 0.1 <= result.confidence <= 1.0
        assert result.category is not None


class TestOperations:
    @pytest.mark.asyncio
    async def test_reload_configuration_swaps_catalog_and_clears_cache(self, politico_item):
        catalogs = [create_test_catalog(), create_test_catalog(aliases=[])]

        async def loader():
            return catalogs.pop(0)

        store = CatalogStore(loader=loader)
        await store.reload()
        orchestrator = create_orchestrator([StubProvider()], store=store)
        await orchestrator.classify(politico_item)
        assert len(orchestrator.cache) == 1

        await orchestrator.reload_configuration()

        assert len(orchestrator.cache) == 0
        assert store.version == 2
        assert orchestrator.resolve_category("US Politics").match_type == MatchType.FALLBACK

    @pytest.mark.asyncio
    async def test_invalid_reload_keeps_previous_catalog(self, politico_item):
        broken = create_test_catalog(
            categories=[c for c in create_test_catalog().categories if not c.is_fallback],
            aliases=[],
        )
        catalogs = [create_test_catalog(), broken]

        async def loader():
            return catalogs.pop(0)

        store = CatalogStore(loader=loader)
        await store.reload()
        orchestrator = create_orchestrator([StubProvider()], store=store)

        with pytest.raises(ConfigurationInvalid):
            await orchestrator.reload_configuration()

        assert store.version == 1
        assert orchestrator.resolve_category("US Politics").match_type == MatchType.ALIAS

    def test_error_fallback_result(self, catalog_store):
        orchestrator = create_orchestrator([], store=catalog_store)

        result = orchestrator.error_fallback_result(AllProvidersExhausted("down"))

        assert result.category.id == FALLBACK_ID
        assert result.match_type == MatchType.ERROR_FALLBACK
        assert result.confidence == pytest.approx(0.1)
        assert result.needs_manual_review is True

    @pytest.mark.asyncio
    async def test_connectivity_report(self):
        orchestrator = create_orchestrator([StubProvider(name="up"), FailingProvider("down")])

        report = await orchestrator.test_connectivity()

        assert report["up"]["ok"] is True
        assert report["down"]["ok"] is False
        assert "unavailable" in report["down"]["error"]

    @pytest.mark.asyncio
    async def test_stats_include_cache_and_catalog(self, politico_item):
        orchestrator = create_orchestrator([StubProvider()])
        await orchestrator.classify(politico_item)

        stats = orchestrator.get_stats()

        assert stats["providers"] == ["stub"]
        assert stats["categories"] == 4
        assert stats["cache"]["size"] == 1

    @pytest.mark.asyncio
    async def test_result_to_dict_is_serializable(self, politico_item):
        orchestrator = create_orchestrator([StubProvider()])

        data = (await orchestrator.classify(politico_item)).to_dict()

        assert data["category"] == "US_Politics_News"
        assert data["match_type"] == "alias"
        assert "total_ms" in data["timing_ms"]
