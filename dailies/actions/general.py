"""Leichtgewichtige Verarbeitung für nicht-politische Inhalte.

Rein extraktiv, ohne Provider-Aufrufe: Keywords über Termfrequenz,
Zusammenfassung aus erstem und repräsentativem Satz, Lesezeit.
"""

from __future__ import annotations

import math
import re
import time
from collections import Counter
from typing import Any

from dailies.catalog.models import ContentItem

AVERAGE_WPM = 250

MAX_KEYWORDS = 10
KEYWORD_CANDIDATES = 15
MIN_KEYWORD_CHARS = 3
LONG_KEYWORD_CHARS = 5

MIN_SENTENCE_CHARS = 21
MAX_SENTENCE_CHARS = 199
SUMMARY_SCAN_SENTENCES = 10
SUMMARY_KEYWORDS = 5
MAX_SUMMARY_CHARS = 300
PREVIEW_CHARS = 200

STOP_WORDS = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with",
    "by", "from", "as", "is", "was", "are", "were", "be", "been", "being", "have",
    "has", "had", "do", "does", "did", "will", "would", "could", "should", "may",
    "might", "must", "can", "this", "that", "these", "those", "i", "you", "he",
    "she", "it", "we", "they", "me", "him", "her", "us", "them", "my", "your",
    "his", "its", "our", "their", "mine", "yours", "hers", "ours", "theirs",
})

_PUNCTUATION = re.compile(r"[^\w\s]")
_SENTENCE_END = re.compile(r"[.!?]+")


def extract_keywords(text: str) -> list[str]:
    """Top-Keywords nach Termfrequenz (ohne Stoppwörter).

    Von den 15 häufigsten Kandidaten bleiben Wörter, die mehrfach vorkommen
    oder mindestens 5 Zeichen lang sind; maximal 10.
    """
    words = [
        w for w in _PUNCTUATION.sub(" ", text.lower()).split()
        if len(w) >= MIN_KEYWORD_CHARS and w not in STOP_WORDS
    ]
    if not words:
        return []

    # most_common() sortiert stabil – bei Gleichstand zählt das erste Vorkommen
    candidates = Counter(words).most_common(KEYWORD_CANDIDATES)
    return [
        word for word, freq in candidates
        if freq > 1 or len(word) >= LONG_KEYWORD_CHARS
    ][:MAX_KEYWORDS]


def generate_summary(text: str) -> str:
    """Extraktive Zusammenfassung: erster Satz + keyword-reichster Folgesatz."""
    if not text:
        return ""

    sentences = [
        s.strip() for s in _SENTENCE_END.split(" ".join(text.split()))
        if MIN_SENTENCE_CHARS <= len(s.strip()) <= MAX_SENTENCE_CHARS
    ]
    if not sentences:
        return text[:PREVIEW_CHARS] + ("..." if len(text) > PREVIEW_CHARS else "")
    if len(sentences) == 1:
        return sentences[0] + "."

    first = sentences[0]
    keywords = extract_keywords(text)[:SUMMARY_KEYWORDS]
    best, best_score = sentences[1], 0
    for sentence in sentences[1:SUMMARY_SCAN_SENTENCES]:
        lowered = sentence.lower()
        score = sum(1 for k in keywords if k in lowered)
        if score > best_score:
            best, best_score = sentence, score

    summary = f"{first}. {best}." if best != first else f"{first}."
    if len(summary) > MAX_SUMMARY_CHARS:
        return summary[:MAX_SUMMARY_CHARS - 3] + "..."
    return summary


def calculate_reading_time(text: str) -> int:
    """Lesezeit in Minuten (250 Wörter/Minute, mindestens 1; leer → 0)."""
    word_count = len(text.split())
    if word_count == 0:
        return 0
    return max(1, math.ceil(word_count / AVERAGE_WPM))


def process_general_content(item: ContentItem) -> dict[str, Any]:
    """Zusammenfassung, Keywords und Lesezeit in einem Durchgang."""
    start = time.monotonic()
    text = item.raw_content
    keywords = extract_keywords(text)
    summary = generate_summary(text)
    return {
        "url": item.url,
        "title": item.title or "Untitled",
        "source_domain": item.clean_domain or "unknown",
        "content_type": item.content_type.value,
        "summary": summary,
        "keywords": keywords,
        "reading_time": calculate_reading_time(text),
        "content_hash": item.content_hash,
        "processing": {
            "processor": "general",
            "extraction_method": "lightweight",
            "processing_ms": round((time.monotonic() - start) * 1000, 1),
        },
    }
