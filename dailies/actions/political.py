"""Analyse politischer Inhalte.

Fünf Teilanalysen:
- Bias (Provider, JSON oder Fallback-Parser)
- Qualität 1–10 (Provider, JSON oder Fallback-Parser)
- Zusammenfassungen (Provider, JSON oder Fallback-Parser)
- Loaded Language (gewichtete Regex-Muster, lokal)
- Quellen-Glaubwürdigkeit (Domain-Tiers, lokal)

Die Provider-gestützten Analysen probieren die Provider in Reihenfolge;
Fehler → nächster Provider, alle fehlgeschlagen → AllProvidersExhausted.
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from dailies.actions.text import count_words, extract_context
from dailies.catalog.models import ContentItem
from dailies.classifier.fallback_parsers import (
    BiasResult,
    QualityResult,
    SummaryResult,
    parse_bias,
    parse_quality,
    parse_summary,
)
from dailies.exceptions import AllProvidersExhausted, ProviderError
from dailies.logging_config import get_logger
from dailies.providers.base import ProviderAdapter
from dailies.providers.prompts import (
    build_bias_prompt,
    build_quality_prompt,
    build_summary_prompt,
)

logger = get_logger("actions")

ResultT = TypeVar("ResultT", bound=BaseModel)


# ---------------------------------------------------------------------------
# Quellen-Glaubwürdigkeit (Score = Mitte des Tier-Bereichs)
# ---------------------------------------------------------------------------

CREDIBILITY_TIERS: dict[str, tuple[float, tuple[str, ...]]] = {
    "high": (9.25, (
        "reuters.com", "ap.org", "npr.org", "bbc.com", "pbs.org",
        "c-span.org", "factcheck.org", "snopes.com", "politifact.com",
    )),
    "medium-high": (6.75, (
        "washingtonpost.com", "nytimes.com", "wsj.com", "economist.com",
        "theatlantic.com", "newyorker.com", "usatoday.com", "abcnews.go.com",
        "cbsnews.com", "nbcnews.com", "cnn.com",
    )),
    "medium": (5.0, (
        "foxnews.com", "msnbc.com", "politico.com", "thehill.com",
        "huffpost.com", "salon.com", "slate.com", "vox.com",
    )),
    "low": (3.0, (
        "breitbart.com", "dailywire.com", "thegatewaypundit.com",
        "infowars.com", "naturalnews.com", "zerohedge.com",
    )),
}

UNKNOWN_CREDIBILITY = 5.0


# ---------------------------------------------------------------------------
# Loaded Language
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LoadedLanguagePattern:
    pattern: re.Pattern[str]
    weight: float
    category: str


def _pattern(words: str) -> re.Pattern[str]:
    return re.compile(rf"\b({words})\b", re.IGNORECASE)


LOADED_LANGUAGE_PATTERNS: tuple[LoadedLanguagePattern, ...] = (
    LoadedLanguagePattern(
        _pattern("radical|extremist|terrorist|fascist|communist|socialist"), 0.9, "political_labels",
    ),
    LoadedLanguagePattern(
        _pattern("destroy|demolish|annihilate|obliterate|devastate"), 0.8, "destructive_verbs",
    ),
    LoadedLanguagePattern(
        _pattern("fake news|propaganda|brainwash|indoctrinate"), 0.8, "media_attacks",
    ),
    LoadedLanguagePattern(
        _pattern("outrageous|shocking|devastating|catastrophic|alarming"), 0.7, "emotional_intensifiers",
    ),
    LoadedLanguagePattern(
        _pattern("betrayal|conspiracy|scandal|corruption|cover-up"), 0.8, "accusatory_terms",
    ),
    LoadedLanguagePattern(
        _pattern("real Americans|patriots|traitors|enemies of the people"), 0.9, "divisive_identity",
    ),
    LoadedLanguagePattern(
        _pattern("they want to|they're trying to|their agenda"), 0.6, "othering_language",
    ),
    LoadedLanguagePattern(
        _pattern("always|never|every single|completely|totally|absolutely"), 0.5, "absolutes",
    ),
    LoadedLanguagePattern(
        _pattern("disaster|crisis|emergency|urgent|critical"), 0.6, "crisis_language",
    ),
)

# (Untergrenze, Stufe) – absteigend geprüft
INTENSITY_BANDS: tuple[tuple[float, str], ...] = (
    (0.8, "very_high"),
    (0.6, "high"),
    (0.4, "medium"),
    (0.2, "low"),
)


def categorize_intensity(score: float) -> str:
    for threshold, label in INTENSITY_BANDS:
        if score >= threshold:
            return label
    return "minimal"


# ---------------------------------------------------------------------------
# Analyzer
# ---------------------------------------------------------------------------

class PoliticalContentAnalyzer:
    """Bias-, Qualitäts-, Sprach- und Quellenanalyse für politische Inhalte.

    Verwendung:
        analyzer = PoliticalContentAnalyzer(providers)
        result = await analyzer.analyze_content(item)
    """

    def __init__(self, providers: Sequence[ProviderAdapter]) -> None:
        self._providers = list(providers)
        self._credibility: dict[str, tuple[float, str]] = {
            domain: (score, tier)
            for tier, (score, domains) in CREDIBILITY_TIERS.items()
            for domain in domains
        }

    # --- Provider-gestützte Analysen ---

    async def analyze_bias(self, item: ContentItem) -> BiasResult:
        return await self._analyze(
            "Bias-Analyse", build_bias_prompt(item), _bias_from_data, parse_bias,
        )

    async def score_quality(self, item: ContentItem) -> QualityResult:
        return await self._analyze(
            "Qualitätsbewertung", build_quality_prompt(item), _quality_from_data, parse_quality,
        )

    async def generate_summaries(self, item: ContentItem) -> SummaryResult:
        return await self._analyze(
            "Zusammenfassung", build_summary_prompt(item), _summary_from_data, parse_summary,
        )

    # --- Lokale Analysen ---

    def detect_loaded_language(self, item: ContentItem) -> dict[str, Any]:
        """Findet emotional aufgeladene Formulierungen.

        Score = min(1, Summe der Gewichte / max(Wörter/100, 1)).
        """
        text = f"{item.title} {item.raw_content}"
        phrases: list[dict[str, Any]] = []
        total_weight = 0.0

        for entry in LOADED_LANGUAGE_PATTERNS:
            for match in entry.pattern.finditer(text):
                phrases.append({
                    "phrase": match.group(0),
                    "category": entry.category,
                    "weight": entry.weight,
                    "context": extract_context(text, match.group(0)),
                })
                total_weight += entry.weight

        word_count = count_words(text)
        score = min(1.0, total_weight / max(word_count / 100, 1))

        return {
            "loaded_language": phrases,
            "loaded_language_score": score,
            "analysis": {
                "total_phrases": len(phrases),
                "total_weight": total_weight,
                "word_count": word_count,
                "intensity": categorize_intensity(score),
            },
        }

    def assess_credibility(self, domain: str) -> dict[str, Any]:
        clean = domain.lower().strip()
        if clean.startswith("www."):
            clean = clean[4:]

        known = self._credibility.get(clean)
        if known is None:
            return {
                "credibility_score": UNKNOWN_CREDIBILITY,
                "tier": "unknown",
                "known_source": False,
                "reasoning": "Unknown source - assigned neutral credibility score",
            }
        score, tier = known
        return {
            "credibility_score": score,
            "tier": tier,
            "known_source": True,
            "reasoning": f"Known source in {tier} credibility tier",
        }

    # --- Gesamtanalyse ---

    async def analyze_content(self, item: ContentItem) -> dict[str, Any]:
        """Alle fünf Analysen parallel, zusammengeführt in ein Dict.

        Raises:
            AllProvidersExhausted: Wenn eine Provider-Analyse scheitert.
        """
        logger.info(
            "Politische Analyse: '%s' (%s)", item.title[:80], item.source_domain,
        )
        bias, quality, summary = await asyncio.gather(
            self.analyze_bias(item),
            self.score_quality(item),
            self.generate_summaries(item),
        )
        loaded = self.detect_loaded_language(item)
        credibility = self.assess_credibility(item.source_domain)

        credibility_reasoning = credibility.pop("reasoning")
        result: dict[str, Any] = {
            **bias.model_dump(mode="json"),
            **quality.model_dump(
                mode="json", exclude={"reasoning", "provider", "confidence", "fallback"},
            ),
            **loaded,
            **credibility,
            **summary.model_dump(mode="json", exclude={"provider", "confidence", "fallback"}),
            "quality_reasoning": quality.reasoning,
            "credibility_reasoning": credibility_reasoning,
            "quality_provider": quality.provider,
            "summary_provider": summary.provider,
            "processing_model": bias.provider,
            "analysis_timestamp": datetime.now(timezone.utc).isoformat(),
        }

        logger.info(
            "Politische Analyse fertig: bias=%s, quality=%d, credibility=%.2f, phrases=%d",
            bias.bias_label.value, quality.quality_score,
            credibility["credibility_score"], len(loaded["loaded_language"]),
        )
        return result

    # --- Intern ---

    async def _analyze(
        self,
        task: str,
        prompt: str,
        from_data: Callable[[dict[str, Any], str], ResultT],
        fallback: Callable[[str, str], ResultT],
    ) -> ResultT:
        if not self._providers:
            raise AllProvidersExhausted(f"{task}: kein Provider konfiguriert")

        last_error: ProviderError | None = None
        for provider in self._providers:
            logger.debug("%s via %s", task, provider.name)
            try:
                response = await provider.analyze(prompt)
            except ProviderError as exc:
                last_error = exc
                logger.warning(
                    "%s mit %s fehlgeschlagen, nächster Provider: %s", task, provider.name, exc,
                )
                continue

            if response.data is not None:
                try:
                    return from_data(response.data, provider.name)
                except (KeyError, ValidationError, TypeError, ValueError) as exc:
                    logger.warning(
                        "%s: JSON von %s unvollständig (%s) – Fallback-Parser",
                        task, provider.name, exc,
                    )
            return fallback(response.raw_text, provider.name)

        raise AllProvidersExhausted(
            f"{task}: alle {len(self._providers)} Provider fehlgeschlagen",
            last_error=last_error,
        )


# ---------------------------------------------------------------------------
# JSON → Ergebnis
# ---------------------------------------------------------------------------

def _bias_from_data(data: dict[str, Any], provider: str) -> BiasResult:
    return BiasResult(
        bias_score=data["biasScore"],
        bias_label=str(data["biasLabel"]).lower(),
        bias_confidence=data.get("confidence", 1.0),
        reasoning=str(data.get("reasoning", "")),
        provider=provider,
    )


def _quality_from_data(data: dict[str, Any], provider: str) -> QualityResult:
    return QualityResult(
        quality_score=round(float(data["qualityScore"])),
        reasoning=str(data.get("reasoning", "")),
        factors=[str(f) for f in data.get("factors", [])],
        provider=provider,
    )


def _summary_from_data(data: dict[str, Any], provider: str) -> SummaryResult:
    key_points = data.get("keyPoints", [])
    if isinstance(key_points, str):
        key_points = [key_points]
    return SummaryResult(
        summary_executive=str(data["executiveSummary"]),
        summary_detailed=str(data.get("detailedSummary", "")),
        key_points=[str(p) for p in key_points],
        implications=str(data.get("implications", "")),
        provider=provider,
    )
