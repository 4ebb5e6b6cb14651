"""Heuristik-Parser für Provider-Antworten ohne gültiges JSON.

Greifen, wenn `AnalysisResponse.data` None ist.  Sie werfen nie und
liefern immer ein vollständig befülltes Ergebnis, markiert mit der festen
Fallback-Confidence 0.6.
"""

from __future__ import annotations

import re
from enum import Enum

from pydantic import BaseModel, Field

FALLBACK_CONFIDENCE = 0.6

# Deterministische Scores je Label (statt Zufallsstreuung)
BIAS_SCORES = {"left": -0.65, "center": 0.0, "right": 0.65}

QUALITY_BASE_SCORE = 5
QUALITY_MIN, QUALITY_MAX = 1, 10

# Summary-Aufteilung (Anzahl Sätze)
EXECUTIVE_SENTENCES = 2
DETAILED_SENTENCES = 6
KEY_POINT_SENTENCES = 5
IMPLICATION_SENTENCES = 2
MIN_SENTENCE_CHARS = 10

_REASONING_PREVIEW = 200


class BiasLabel(str, Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class BiasResult(BaseModel):
    bias_score: float = Field(ge=-1.0, le=1.0)
    bias_label: BiasLabel
    bias_confidence: float = Field(ge=0.0, le=1.0)
    reasoning: str = ""
    provider: str = ""
    fallback: bool = False


class QualityResult(BaseModel):
    quality_score: int = Field(ge=QUALITY_MIN, le=QUALITY_MAX)
    reasoning: str = ""
    factors: list[str] = Field(default_factory=list)
    provider: str = ""
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
    fallback: bool = False


class SummaryResult(BaseModel):
    summary_executive: str = ""
    summary_detailed: str = ""
    key_points: list[str] = Field(default_factory=list)
    implications: str = ""
    provider: str = ""
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
    fallback: bool = False


# ---------------------------------------------------------------------------
# Bias
# ---------------------------------------------------------------------------

_LEFT = re.compile(r"\b(left|liberal)", re.IGNORECASE)
_RIGHT = re.compile(r"\b(right|conservative)", re.IGNORECASE)


def extract_bias_label(text: str) -> BiasLabel:
    """Links/liberal vor rechts/konservativ, sonst Mitte."""
    if _LEFT.search(text):
        return BiasLabel.LEFT
    if _RIGHT.search(text):
        return BiasLabel.RIGHT
    return BiasLabel.CENTER


def parse_bias(text: str, provider: str = "") -> BiasResult:
    label = extract_bias_label(text or "")
    return BiasResult(
        bias_score=BIAS_SCORES[label.value],
        bias_label=label,
        bias_confidence=FALLBACK_CONFIDENCE,
        reasoning=f"Fallback parsing: {_preview(text)}",
        provider=provider,
        fallback=True,
    )


# ---------------------------------------------------------------------------
# Qualität
# ---------------------------------------------------------------------------

_SCORE_PATTERN = re.compile(r"(\d+)(?:\s*/\s*10|\s*out\s*of\s*10)", re.IGNORECASE)

# (Schlüsselwörter, Anpassung) – alle zutreffenden Zeilen werden addiert
_QUALITY_ADJUSTMENTS: tuple[tuple[tuple[str, ...], int], ...] = (
    (("excellent", "high quality"), 2),
    (("good", "solid"), 1),
    (("poor", "low quality"), -2),
    (("bad", "terrible"), -3),
)


def extract_quality_score(text: str) -> int:
    match = _SCORE_PATTERN.search(text)
    if match:
        score = int(match.group(1))
    else:
        lowered = text.lower()
        score = QUALITY_BASE_SCORE + sum(
            delta for words, delta in _QUALITY_ADJUSTMENTS
            if any(w in lowered for w in words)
        )
    return max(QUALITY_MIN, min(QUALITY_MAX, score))


def parse_quality(text: str, provider: str = "") -> QualityResult:
    return QualityResult(
        quality_score=extract_quality_score(text or ""),
        reasoning=f"Fallback parsing: {_preview(text)}",
        factors=["fallback_analysis"],
        provider=provider,
        confidence=FALLBACK_CONFIDENCE,
        fallback=True,
    )


# ---------------------------------------------------------------------------
# Zusammenfassung
# ---------------------------------------------------------------------------

_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")


def split_sentences(text: str) -> list[str]:
    """Zerlegt an Satzgrenzen, verwirft Fragmente ≤ 10 Zeichen."""
    parts = _SENTENCE_SPLIT.split(" ".join((text or "").split()))
    return [p.strip() for p in parts if len(p.strip()) > MIN_SENTENCE_CHARS]


def parse_summary(text: str, provider: str = "") -> SummaryResult:
    sentences = split_sentences(text)
    return SummaryResult(
        summary_executive=" ".join(sentences[:EXECUTIVE_SENTENCES]),
        summary_detailed=" ".join(sentences[:DETAILED_SENTENCES]),
        key_points=sentences[:KEY_POINT_SENTENCES],
        implications=" ".join(sentences[-IMPLICATION_SENTENCES:]),
        provider=provider,
        confidence=FALLBACK_CONFIDENCE,
        fallback=True,
    )


def _preview(text: str | None) -> str:
    text = (text or "").strip()
    if len(text) <= _REASONING_PREVIEW:
        return text
    return text[:_REASONING_PREVIEW] + "..."
