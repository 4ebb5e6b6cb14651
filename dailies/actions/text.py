"""Kleine Text-Helfer für die Processor."""

from __future__ import annotations

import re

CONTEXT_CHARS = 50


def extract_context(text: str, phrase: str, context_chars: int = CONTEXT_CHARS) -> str:
    """Umgebung der ersten Fundstelle von `phrase` (case-insensitive).

    Wird die Phrase nicht gefunden, kommt sie selbst zurück.
    """
    index = text.lower().find(phrase.lower())
    if index == -1:
        return phrase
    start = max(0, index - context_chars)
    end = min(len(text), index + len(phrase) + context_chars)
    return text[start:end]


def word_pattern(term: str) -> re.Pattern[str]:
    """Regex für einen Begriff als ganzes Wort (case-insensitive).

    Lookarounds statt \\b, damit auch Begriffe wie "c++" oder "next.js" greifen.
    """
    return re.compile(rf"(?<!\w){re.escape(term)}(?!\w)", re.IGNORECASE)


def count_words(text: str) -> int:
    return len(text.split())
