"""Klassifizierungs-Orchestrator: Provider-Fallback, Consensus und Cache.

Ablauf pro Inhalt:

 1. Cache-Lookup über den Content-Hash (Treffer → keine Provider-Aufrufe)
 2. Signale und Matcher-Hinweise berechnen, Prompt bauen
 3a. Fallback-Modus: Provider nacheinander, erster ausreichend sicherer
     Treffer gewinnt; Fehler → nächster Provider (kein Retry)
 3b. Consensus-Modus: mehrere Provider parallel, Mehrheitsentscheid über
     die aufgelöste Kategorie
 4. Label → Kategorie (Resolver), Confidence = min(Provider, Auflösung)
 5. Ergebnis cachen

Unterschreitet die Confidence die Mindestschwelle, wird das Ergebnis trotzdem
geliefert, aber als `needs_manual_review` markiert.  Nur wenn kein einziger
Provider antwortet, wird AllProvidersExhausted geworfen.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from dailies.catalog.models import Category, ContentItem
from dailies.catalog.snapshot import CatalogSnapshot, CatalogStore
from dailies.classifier.cache import ClassificationCache
from dailies.classifier.confidence import (
    clamp_confidence,
    score_consensus,
    score_response,
)
from dailies.classifier.hints import MatcherHint, generate_hints
from dailies.classifier.resolver import CategoryResolution, CategoryResolver, MatchType
from dailies.classifier.signals import (
    ContentSignals,
    calculate_content_signals,
    extract_text_for_prompt,
)
from dailies.exceptions import AllProvidersExhausted, ProviderError
from dailies.logging_config import get_logger
from dailies.providers.base import ProviderAdapter, ProviderResponse
from dailies.providers.prompts import build_classification_prompt

logger = get_logger("classifier")

DEFAULT_MIN_CONFIDENCE = 0.5
DEFAULT_CONSENSUS_PROVIDERS = 3

CONSENSUS_PROVIDER_NAME = "consensus"
CONNECTIVITY_PROBE = "Respond with the single word: ok"


class ClassificationState(str, Enum):
    """Zustände eines Klassifizierungs-Durchlaufs (nur fürs Logging)."""
    NOT_STARTED = "not_started"
    TRYING_PROVIDER = "trying_provider"
    NEXT_PROVIDER = "next_provider"
    SUCCESS = "success"
    EXHAUSTED = "exhausted_providers"


# ---------------------------------------------------------------------------
# Ergebnis-Datenstrukturen
# ---------------------------------------------------------------------------

@dataclass
class ConsensusInfo:
    """Metadaten eines Mehrheitsentscheids."""

    ratio: float
    providers: list[str]
    # Abweichende Stimmen: provider, label, category, confidence
    alternative_views: list[dict[str, Any]] = field(default_factory=list)
    # Consensus-Confidence vor dem Abgleich mit der Auflösung
    confidence: float = 0.0


@dataclass
class ClassificationResult:
    """Ergebnis einer Klassifizierung – immer mit genau einer Kategorie."""

    provider_name: str
    raw_label: str
    category: Category
    match_type: MatchType
    confidence: float
    resolution_confidence: float = 0.0
    needs_manual_review: bool = False
    consensus: ConsensusInfo | None = None
    timing: dict[str, float] = field(default_factory=dict)
    from_cache: bool = False
    reasons: list[str] = field(default_factory=list)

    @property
    def category_id(self) -> int:
        return self.category.id

    @property
    def category_name(self) -> str:
        return self.category.name

    def to_dict(self) -> dict[str, Any]:
        """Serialisierbare Form für Logs und Metadaten."""
        data: dict[str, Any] = {
            "provider": self.provider_name,
            "raw_label": self.raw_label,
            "category_id": self.category.id,
            "category": self.category.name,
            "match_type": self.match_type.value,
            "confidence": round(self.confidence, 4),
            "needs_manual_review": self.needs_manual_review,
            "from_cache": self.from_cache,
            "timing_ms": {k: round(v, 1) for k, v in self.timing.items()},
        }
        if self.consensus is not None:
            data["consensus"] = {
                "ratio": round(self.consensus.ratio, 4),
                "providers": list(self.consensus.providers),
                "alternative_views": list(self.consensus.alternative_views),
                "confidence": round(self.consensus.confidence, 4),
            }
        return data


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------

class ClassificationOrchestrator:
    """Klassifiziert Inhalte über mehrere Provider.

    Alle Abhängigkeiten werden injiziert; der Cache ist der einzige
    veränderliche Zustand, der Katalog wird als Snapshot gelesen.

    Verwendung:
        orchestrator = ClassificationOrchestrator(providers, store, cache)
        result = await orchestrator.classify(item, use_consensus=False)
    """

    def __init__(
        self,
        providers: Sequence[ProviderAdapter],
        catalog_store: CatalogStore,
        cache: ClassificationCache | None = None,
        resolver: CategoryResolver | None = None,
        consensus_max_providers: int = DEFAULT_CONSENSUS_PROVIDERS,
    ) -> None:
        if consensus_max_providers < 2:
            raise ValueError("consensus_max_providers muss mindestens 2 sein")
        self._providers = list(providers)
        self._store = catalog_store
        self._cache = cache if cache is not None else ClassificationCache()
        self._resolver = resolver or CategoryResolver(catalog_store)
        self._consensus_max_providers = consensus_max_providers

    @property
    def provider_names(self) -> list[str]:
        return [p.name for p in self._providers]

    @property
    def cache(self) -> ClassificationCache:
        return self._cache

    # --- Hauptmethode ---

    async def classify(
        self,
        item: ContentItem,
        use_consensus: bool = False,
        min_confidence: float = DEFAULT_MIN_CONFIDENCE,
    ) -> ClassificationResult:
        """Klassifiziert einen Inhalt.

        Args:
            item: Zu klassifizierender Inhalt.
            use_consensus: Mehrere Provider parallel befragen.
            min_confidence: Schwelle; darunter needs_manual_review=True.

        Raises:
            AllProvidersExhausted: Kein Provider lieferte eine Antwort.
        """
        start = time.monotonic()

        cached = await self._cache.get(item.content_hash)
        if cached is not None:
            logger.debug(
                "Cache-Treffer %s → %s", item.content_hash[:12], cached.category.name,
            )
            return replace(
                cached,
                from_cache=True,
                needs_manual_review=cached.confidence < min_confidence,
                timing={"total_ms": _elapsed_ms(start)},
                reasons=list(cached.reasons),
            )

        snapshot = self._store.snapshot
        signals = calculate_content_signals(item)
        hints = generate_hints(item, snapshot)
        prompt = self.build_prompt(item, snapshot, hints)

        if use_consensus:
            result = await self._classify_consensus(
                prompt, snapshot, signals, hints, min_confidence,
            )
        else:
            result = await self._classify_fallback(
                prompt, snapshot, signals, hints, min_confidence,
            )

        result.timing["total_ms"] = _elapsed_ms(start)

        if result.needs_manual_review:
            logger.info(
                "Klassifizierung unsicher: '%s' → %s (%.2f < %.2f) – Review nötig",
                item.title[:50], result.category.name, result.confidence, min_confidence,
            )
        else:
            # Kopie ablegen, damit Aufrufer den Cache-Eintrag nicht verändern
            await self._cache.put(
                item.content_hash,
                replace(result, timing=dict(result.timing), reasons=list(result.reasons)),
            )
            logger.info(
                "Klassifiziert: '%s' → %s (%s, %.2f via %s, %.0fms)",
                item.title[:50], result.category.name, result.match_type.value,
                result.confidence, result.provider_name, result.timing["total_ms"],
            )
        return result

    # --- Weitere Operationen ---

    def resolve_category(
        self,
        raw_label: str,
        provider_confidence: float | None = None,
    ) -> CategoryResolution:
        return self._resolver.resolve(raw_label, provider_confidence)

    async def reload_configuration(self) -> CatalogSnapshot:
        """Lädt den Katalog neu und leert bei Erfolg den Cache.

        Raises:
            ConfigurationInvalid: Neuer Katalog ungültig; alter bleibt aktiv.
        """
        snapshot = await self._store.reload()
        await self._cache.clear()
        return snapshot

    def error_fallback_result(self, error: AllProvidersExhausted) -> ClassificationResult:
        """Ersatzergebnis, wenn kein Provider geantwortet hat (→ Review-Queue)."""
        resolution = self._resolver.error_fallback()
        return ClassificationResult(
            provider_name="none",
            raw_label="",
            category=resolution.category,
            match_type=resolution.match_type,
            confidence=resolution.confidence,
            resolution_confidence=resolution.confidence,
            needs_manual_review=True,
            reasons=[f"Alle Provider fehlgeschlagen: {error}"],
        )

    async def clear_cache(self) -> None:
        await self._cache.clear()

    def get_stats(self) -> dict[str, Any]:
        snapshot = self._store.snapshot
        return {
            "providers": self.provider_names,
            "categories": len(snapshot.active_categories),
            "aliases": snapshot.alias_count,
            "catalog_version": self._store.version,
            "cache": self._cache.stats(),
        }

    async def test_connectivity(self) -> dict[str, dict[str, Any]]:
        """Schickt eine Testanfrage an jeden Provider.

        Returns:
            {provider: {"ok": bool, "latency_ms": float, "error": str|None}}
        """
        report: dict[str, dict[str, Any]] = {}
        for provider in self._providers:
            start = time.monotonic()
            try:
                response = await provider.classify(CONNECTIVITY_PROBE)
            except ProviderError as exc:
                report[provider.name] = {
                    "ok": False,
                    "latency_ms": _elapsed_ms(start),
                    "error": str(exc),
                }
                logger.warning("Provider %s nicht erreichbar: %s", provider.name, exc)
                continue
            report[provider.name] = {
                "ok": bool(response.raw_label),
                "latency_ms": _elapsed_ms(start),
                "error": None,
            }
        return report

    def build_prompt(
        self,
        item: ContentItem,
        snapshot: CatalogSnapshot,
        hints: Sequence[MatcherHint] = (),
    ) -> str:
        return build_classification_prompt(
            title=item.title,
            source=item.source_domain,
            text=extract_text_for_prompt(item),
            category_names=[c.name for c in snapshot.classifiable_categories],
            hints=[h.text for h in hints],
        )

    # --- Fallback-Modus ---

    async def _classify_fallback(
        self,
        prompt: str,
        snapshot: CatalogSnapshot,
        signals: ContentSignals,
        hints: Sequence[MatcherHint],
        min_confidence: float,
    ) -> ClassificationResult:
        best: ClassificationResult | None = None
        last_error: ProviderError | None = None
        self._log_state(ClassificationState.NOT_STARTED, providers=len(self._providers))

        for index, provider in enumerate(self._providers):
            self._log_state(ClassificationState.TRYING_PROVIDER, index=index, provider=provider.name)
            start = time.monotonic()
            try:
                response = await provider.classify(prompt)
            except ProviderError as exc:
                last_error = exc
                logger.warning(
                    "Provider %s fehlgeschlagen (HTTP %s): %s",
                    provider.name, exc.status_code, exc,
                )
                self._log_state(ClassificationState.NEXT_PROVIDER, reason="error")
                continue

            result = self._evaluate(response, snapshot, signals, hints)
            result.timing[f"{provider.name}_ms"] = _elapsed_ms(start)

            if result.confidence >= min_confidence:
                self._log_state(ClassificationState.SUCCESS, provider=provider.name)
                return result

            if best is None or result.confidence > best.confidence:
                best = result
            self._log_state(
                ClassificationState.NEXT_PROVIDER,
                reason=f"confidence {result.confidence:.2f} < {min_confidence:.2f}",
            )

        if best is not None:
            best.needs_manual_review = True
            return best

        self._log_state(ClassificationState.EXHAUSTED)
        raise AllProvidersExhausted(
            f"Kein Provider lieferte eine Antwort ({len(self._providers)} versucht)",
            last_error=last_error,
        )

    # --- Consensus-Modus ---

    async def _classify_consensus(
        self,
        prompt: str,
        snapshot: CatalogSnapshot,
        signals: ContentSignals,
        hints: Sequence[MatcherHint],
        min_confidence: float,
    ) -> ClassificationResult:
        selected = self._providers[: self._consensus_max_providers]
        self._log_state(ClassificationState.NOT_STARTED, providers=len(selected), mode="consensus")

        outcomes = await asyncio.gather(
            *(self._timed_classify(p, prompt) for p in selected),
            return_exceptions=True,
        )

        results: list[ClassificationResult] = []
        last_error: ProviderError | None = None
        for provider, outcome in zip(selected, outcomes):
            if isinstance(outcome, ProviderError):
                last_error = outcome
                logger.warning("Consensus: Provider %s fehlgeschlagen: %s", provider.name, outcome)
                continue
            if isinstance(outcome, BaseException):
                raise outcome
            response, elapsed_ms = outcome
            result = self._evaluate(response, snapshot, signals, hints)
            result.timing[f"{provider.name}_ms"] = elapsed_ms
            results.append(result)

        if not results:
            self._log_state(ClassificationState.EXHAUSTED, mode="consensus")
            raise AllProvidersExhausted(
                f"Consensus: keiner von {len(selected)} Providern antwortete",
                last_error=last_error,
            )

        if len(results) == 1:
            single = results[0]
            logger.info("Consensus: nur %s antwortete – Einzelergebnis", single.provider_name)
            single.needs_manual_review = single.confidence < min_confidence
            return single

        return self._majority(results, min_confidence)

    async def _timed_classify(
        self,
        provider: ProviderAdapter,
        prompt: str,
    ) -> tuple[ProviderResponse, float]:
        start = time.monotonic()
        response = await provider.classify(prompt)
        return response, _elapsed_ms(start)

    def _majority(
        self,
        results: list[ClassificationResult],
        min_confidence: float,
    ) -> ClassificationResult:
        """Mehrheitsentscheid über die aufgelösten Kategorien.

        Bei Gleichstand gewinnt die Gruppe, deren erste Stimme in der
        Provider-Reihenfolge zuerst kam.
        """
        groups: dict[int, list[ClassificationResult]] = {}
        for result in results:
            groups.setdefault(result.category.id, []).append(result)

        winners = max(groups.values(), key=len)
        ratio = len(winners) / len(results)
        consensus_confidence = score_consensus([r.confidence for r in winners], ratio)
        resolution_confidence = max(r.resolution_confidence for r in winners)
        confidence = clamp_confidence(min(consensus_confidence, resolution_confidence))

        lead = winners[0]
        alternatives = [
            {
                "provider": r.provider_name,
                "label": r.raw_label,
                "category": r.category.name,
                "confidence": round(r.confidence, 4),
            }
            for r in results if r.category.id != lead.category.id
        ]

        timing: dict[str, float] = {}
        for r in results:
            timing.update(r.timing)

        self._log_state(
            ClassificationState.SUCCESS,
            mode="consensus",
            category=lead.category.name,
            ratio=f"{ratio:.2f}",
        )

        return ClassificationResult(
            provider_name=CONSENSUS_PROVIDER_NAME,
            raw_label=lead.raw_label,
            category=lead.category,
            match_type=lead.match_type,
            confidence=confidence,
            resolution_confidence=resolution_confidence,
            needs_manual_review=confidence < min_confidence,
            consensus=ConsensusInfo(
                ratio=ratio,
                providers=[r.provider_name for r in winners],
                alternative_views=alternatives,
                confidence=consensus_confidence,
            ),
            timing=timing,
            reasons=[f"Consensus {len(winners)}/{len(results)}"],
        )

    # --- Bewertung einer Einzelantwort ---

    def _evaluate(
        self,
        response: ProviderResponse,
        snapshot: CatalogSnapshot,
        signals: ContentSignals,
        hints: Sequence[MatcherHint],
    ) -> ClassificationResult:
        """Label auflösen und Confidence berechnen.

        Erst ohne Provider-Confidence auflösen (für den Signal-Abgleich),
        dann mit der berechneten Confidence erneut, damit Alias-Schwellen
        greifen.
        """
        names = [c.name for c in snapshot.active_categories]

        preliminary = self._resolver.resolve(response.raw_label)
        score = score_response(response, names, signals, preliminary.category, hints)

        resolution = self._resolver.resolve(response.raw_label, provider_confidence=score.value)
        if resolution.category.id != preliminary.category.id:
            score = score_response(response, names, signals, resolution.category, hints)

        confidence = clamp_confidence(min(score.value, resolution.confidence))

        return ClassificationResult(
            provider_name=response.provider_name,
            raw_label=response.raw_label,
            category=resolution.category,
            match_type=resolution.match_type,
            confidence=confidence,
            resolution_confidence=resolution.confidence,
            reasons=[*score.reasons, f"Auflösung {resolution.match_type.value} {resolution.confidence:.2f}"],
        )

    @staticmethod
    def _log_state(state: ClassificationState, **details: Any) -> None:
        info = ", ".join(f"{k}={v}" for k, v in details.items())
        logger.debug("Klassifizierung: %s %s", state.value, info)


def _elapsed_ms(start: float) -> float:
    return (time.monotonic() - start) * 1000
