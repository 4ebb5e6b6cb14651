"""Confidence-Bewertung für Provider-Antworten.

Reine Funktionen ohne I/O.  Kombiniert drei Stufen zu einem Wert in
[0.1, 1.0]:

1. Basis aus der Antwort-Form: kurzes, exaktes Kategorie-Label → hoch,
   lange/abgeschnittene/gefilterte Antworten → niedrig.  Ein vom Provider
   gelieferter Confidence-Hinweis (z.B. Token-Logprob) wird eingemittelt.
2. Sprachfaktor: Unsicherheits-Formulierungen senken, klare Aussagen
   heben den Wert.
3. Signal-Abgleich: passen Domain-, Keyword- und Matcher-Signale zur
   vorhergesagten Kategorie, wird hochskaliert, widersprechen sie,
   herunterskaliert.  Der Gesamtfaktor ist auf [0.5, 1.3] begrenzt.

Zusätzlich: Consensus-Bewertung für den Mehrheitsentscheid mehrerer Provider.

Alle Multiplikatoren sind heuristische Stellschrauben ohne empirische
Herleitung und deshalb als benannte Konstanten geführt.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from dailies.catalog.models import Category
from dailies.classifier.hints import MatcherHint
from dailies.classifier.signals import ContentSignals
from dailies.logging_config import get_logger
from dailies.providers.base import FinishReason, ProviderResponse

logger = get_logger("classifier")


# ---------------------------------------------------------------------------
# Grenzen
# ---------------------------------------------------------------------------

MIN_CONFIDENCE = 0.1
MAX_CONFIDENCE = 1.0

# Gesamtfaktor des Signal-Abgleichs
MIN_SIGNAL_FACTOR = 0.5
MAX_SIGNAL_FACTOR = 1.3


# ---------------------------------------------------------------------------
# Stufe 1: Basis aus der Antwort-Form (Stellschrauben)
# ---------------------------------------------------------------------------

SHORT_RESPONSE_CHARS = 30
LONG_RESPONSE_CHARS = 200

BASE_CONTENT_FILTER = 0.2
BASE_TRUNCATED = 0.3
BASE_EXACT_SHORT = 0.95
BASE_EXACT = 0.9
BASE_PARTIAL = 0.8
BASE_SHORT = 0.7
BASE_DEFAULT = 0.65
BASE_LONG = 0.5


# ---------------------------------------------------------------------------
# Stufe 2: Sprachfaktor (Stellschrauben)
# ---------------------------------------------------------------------------

HEDGE_PHRASES = ("uncertain", "unclear", "maybe", "not sure", "difficult to classify")
DECISIVE_PHRASES = ("definitely", "clearly", "obviously")
HEDGE_FACTOR = 0.7
DECISIVE_FACTOR = 1.1


# ---------------------------------------------------------------------------
# Stufe 3: Signal-Abgleich (Stellschrauben)
# ---------------------------------------------------------------------------

# Politische Kategorie vorhergesagt
POL_HIGH_DENSITY = 0.05
POL_HIGH_DENSITY_FACTOR = 1.2
POL_US_FACTOR = 1.1
POL_GOVERNMENT_FACTOR = 1.1
POL_DOMAIN_FACTOR = 1.3
POL_URL_SCORE = 2
POL_URL_FACTOR = 1.2
POL_LOW_DENSITY = 0.01
POL_LOW_DENSITY_FACTOR = 0.7
POL_TECH_DOMAIN_FACTOR = 0.8

# Andere Kategorie vorhergesagt
GEN_HIGH_DENSITY = 0.1
GEN_HIGH_DENSITY_FACTOR = 0.6
GEN_POLITICAL_US_FACTOR = 0.5
GEN_URL_SCORE = 3
GEN_URL_FACTOR = 0.7
GEN_LOW_DENSITY = 0.02
GEN_LOW_DENSITY_FACTOR = 1.1
GEN_TECH_SOCIAL_FACTOR = 1.1

# Matcher für die vorhergesagte Kategorie
MATCHER_SUPPORT_FACTOR = 1.2
MATCHER_EXCLUSION_FACTOR = 0.5


# ---------------------------------------------------------------------------
# Consensus (Stellschrauben)
# ---------------------------------------------------------------------------

CONSENSUS_UNANIMOUS_BOOST = 1.2
CONSENSUS_MAJORITY_RATIO = 2 / 3
CONSENSUS_SPLIT_PENALTY = 0.7
CONSENSUS_SPLIT_FLOOR = 0.3


# ---------------------------------------------------------------------------
# Ergebnis-Datenstrukturen
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ConfidenceScore:
    """Bewertete Provider-Antwort mit nachvollziehbaren Einzelwerten."""

    value: float
    base: float
    language_factor: float
    signal_factor: float
    reasons: list[str] = field(default_factory=list)


def clamp_confidence(value: float) -> float:
    """Begrenzt auf [0.1, 1.0] – nie exakt 0."""
    return max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, value))


def is_political_category(category: Category | None) -> bool:
    return category is not None and "politic" in category.name.lower()


# ---------------------------------------------------------------------------
# Bewertungslogik
# ---------------------------------------------------------------------------

def base_confidence(
    response: ProviderResponse,
    category_names: Sequence[str],
) -> tuple[float, str]:
    """Basis-Confidence aus Abbruchgrund und Form der Antwort."""
    if response.finish_reason == FinishReason.CONTENT_FILTER:
        return BASE_CONTENT_FILTER, "Antwort gefiltert"
    if response.finish_reason == FinishReason.LENGTH:
        return BASE_TRUNCATED, "Antwort abgeschnitten"

    label = response.raw_label.strip().lower()
    raw_length = len(response.raw_text or response.raw_label)
    names = [n.lower() for n in category_names]

    if label and label in names:
        if raw_length < SHORT_RESPONSE_CHARS:
            return BASE_EXACT_SHORT, "kurzes exaktes Label"
        return BASE_EXACT, "exaktes Label"
    if label and any(label in n or n in label for n in names):
        return BASE_PARTIAL, "Teiltreffer"
    if raw_length < SHORT_RESPONSE_CHARS:
        return BASE_SHORT, "kurze Antwort"
    if raw_length > LONG_RESPONSE_CHARS:
        return BASE_LONG, "lange Antwort"
    return BASE_DEFAULT, "unspezifische Antwort"


def language_factor(text: str) -> float:
    """Faktor für Unsicherheits- bzw. Bestimmtheits-Formulierungen."""
    lowered = text.lower()
    factor = 1.0
    if any(p in lowered for p in HEDGE_PHRASES):
        factor *= HEDGE_FACTOR
    if any(p in lowered for p in DECISIVE_PHRASES):
        factor *= DECISIVE_FACTOR
    return factor


def signal_factor(
    signals: ContentSignals | None,
    predicted: Category | None,
    hints: Sequence[MatcherHint] = (),
) -> tuple[float, list[str]]:
    """Abgleich der Inhaltssignale mit der vorhergesagten Kategorie.

    Returns:
        (Faktor in [0.5, 1.3], Begründungen)
    """
    factor = 1.0
    reasons: list[str] = []

    if signals is not None:
        text, domain, url = signals.text, signals.domain, signals.url

        if is_political_category(predicted):
            if text.political_keyword_density > POL_HIGH_DENSITY:
                factor *= POL_HIGH_DENSITY_FACTOR
                reasons.append("hohe politische Keyword-Dichte")
            if text.has_us_indicators:
                factor *= POL_US_FACTOR
                reasons.append("US-Bezug")
            if text.has_government_entities:
                factor *= POL_GOVERNMENT_FACTOR
                reasons.append("Behörden erwähnt")
            if domain.is_political:
                factor *= POL_DOMAIN_FACTOR
                reasons.append("politische Domain")
            if url.political_score > POL_URL_SCORE:
                factor *= POL_URL_FACTOR
                reasons.append("politischer URL-Pfad")
            if text.political_keyword_density < POL_LOW_DENSITY:
                factor *= POL_LOW_DENSITY_FACTOR
                reasons.append("kaum politische Keywords")
            if domain.is_tech and not text.has_us_indicators:
                factor *= POL_TECH_DOMAIN_FACTOR
                reasons.append("Tech-Domain ohne US-Bezug")
        else:
            if text.political_keyword_density > GEN_HIGH_DENSITY:
                factor *= GEN_HIGH_DENSITY_FACTOR
                reasons.append("politischer Inhalt, nicht-politische Kategorie")
            if domain.is_political and text.has_us_indicators:
                factor *= GEN_POLITICAL_US_FACTOR
                reasons.append("politische Domain mit US-Bezug")
            if url.political_score > GEN_URL_SCORE:
                factor *= GEN_URL_FACTOR
                reasons.append("politischer URL-Pfad")
            if text.political_keyword_density < GEN_LOW_DENSITY:
                factor *= GEN_LOW_DENSITY_FACTOR
                reasons.append("keine politischen Keywords")
            if domain.is_tech or domain.is_social:
                factor *= GEN_TECH_SOCIAL_FACTOR
                reasons.append("Tech-/Social-Domain")

    if predicted is not None:
        relevant = [h for h in hints if h.category_id == predicted.id]
        if any(not h.is_exclusion for h in relevant):
            factor *= MATCHER_SUPPORT_FACTOR
            reasons.append("Matcher stützt Kategorie")
        if any(h.is_exclusion for h in relevant):
            factor *= MATCHER_EXCLUSION_FACTOR
            reasons.append("Ausschluss-Matcher widerspricht")

    return max(MIN_SIGNAL_FACTOR, min(MAX_SIGNAL_FACTOR, factor)), reasons


def score_response(
    response: ProviderResponse,
    category_names: Sequence[str],
    signals: ContentSignals | None = None,
    predicted: Category | None = None,
    hints: Sequence[MatcherHint] = (),
) -> ConfidenceScore:
    """Bewertet eine Klassifizierungs-Antwort.

    Args:
        response: Antwort des Providers.
        category_names: Namen aller aktiven Kategorien.
        signals: Vorberechnete Inhaltssignale (None = kein Abgleich).
        predicted: Kategorie, auf die das Label aufgelöst wurde.
        hints: Zutreffende Matcher für den Inhalt.

    Returns:
        ConfidenceScore mit Wert in [0.1, 1.0].
    """
    base, base_reason = base_confidence(response, category_names)
    reasons = [f"Basis {base:.2f} ({base_reason})"]

    if response.confidence_hint is not None:
        base = (base + response.confidence_hint) / 2
        reasons.append(f"Provider-Hinweis {response.confidence_hint:.2f} → Basis {base:.2f}")

    lang = language_factor(response.raw_text or response.raw_label)
    if lang != 1.0:
        reasons.append(f"Sprachfaktor ×{lang:.2f}")

    sig, sig_reasons = signal_factor(signals, predicted, hints)
    if sig_reasons:
        reasons.append(f"Signale ×{sig:.2f}: {', '.join(sig_reasons)}")

    value = clamp_confidence(base * lang * sig)

    logger.debug(
        "Confidence %s: %.2f (Basis=%.2f, Sprache=%.2f, Signale=%.2f)",
        response.provider_name, value, base, lang, sig,
    )

    return ConfidenceScore(
        value=value,
        base=base,
        language_factor=lang,
        signal_factor=sig,
        reasons=reasons,
    )


def score_consensus(majority_confidences: Sequence[float], ratio: float) -> float:
    """Confidence eines Mehrheitsentscheids.

    - Einstimmig (ratio = 1.0): Mittelwert ×1.2, max. 1.0
    - Mehrheit (ratio ≥ 2/3): Mittelwert der Mehrheit
    - Geteilt: Mittelwert ×0.7, mindestens 0.3

    Raises:
        ValueError: Wenn keine Confidence-Werte übergeben werden.
    """
    if not majority_confidences:
        raise ValueError("Consensus ohne Ergebnisse")

    mean = sum(majority_confidences) / len(majority_confidences)
    if ratio >= 1.0:
        value = min(MAX_CONFIDENCE, mean * CONSENSUS_UNANIMOUS_BOOST)
    elif ratio >= CONSENSUS_MAJORITY_RATIO - 1e-9:
        value = mean
    else:
        value = max(CONSENSUS_SPLIT_FLOOR, mean * CONSENSUS_SPLIT_PENALTY)
    return clamp_confidence(value)
