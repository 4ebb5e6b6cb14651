"""Prompt-Bausteine für Klassifizierung und politische Analyse.

Die Prompts sind bewusst englisch gehalten (alle Provider liefern damit die
stabilsten Labels).  Klassifizierung erwartet nur den Kategorienamen, die
Analyse-Prompts ausschließlich ein JSON-Objekt – ungültiges JSON fangen die
Fallback-Parser ab.
"""

from __future__ import annotations

from collections.abc import Sequence

from dailies.catalog.models import ContentItem

# Maximale Textlänge je Prompt
ANALYSIS_TEXT_CHARS = 2000
SUMMARY_TEXT_CHARS = 3000

JSON_ONLY_PREAMBLE = (
    "You are a content analysis AI that ONLY responds with valid JSON. "
    "No explanations, no markdown, no extra text."
)

JSON_ONLY_FOOTER = "Respond only with valid JSON."


# ---------------------------------------------------------------------------
# Klassifizierung
# ---------------------------------------------------------------------------

def build_classification_prompt(
    title: str,
    source: str,
    text: str,
    category_names: Sequence[str],
    hints: Sequence[str] = (),
) -> str:
    """Prompt für die Einordnung in genau eine Kategorie.

    Args:
        title: Titel des Inhalts.
        source: Quelldomain.
        text: Bereits gekürzter Textausschnitt.
        category_names: Wählbare Kategorien (ohne Fallback).
        hints: Matcher-Hinweise, eine Zeile pro Hinweis.
    """
    categories = "\n".join(f"- {name}" for name in category_names)
    hints_text = ""
    if hints:
        hints_text = (
            "\n\nHints based on domain and content analysis:\n"
            + "\n".join(f"- {h}" for h in hints)
        )

    return (
        "You are a content classifier that ONLY responds with a category name. "
        "No explanations, no markdown, no extra text.\n\n"
        "Classify this content into ONE of these categories:\n"
        f"{categories}\n\n"
        "Content:\n"
        f"Title: {title}\n"
        f"Source: {source}\n"
        f"Text: {text}{hints_text}\n\n"
        "Respond with ONLY the category name exactly as listed above."
    )


# ---------------------------------------------------------------------------
# Politische Analyse
# ---------------------------------------------------------------------------

def _content_block(item: ContentItem, limit: int) -> str:
    return (
        f"Title: {item.title}\n"
        f"Source: {item.source_domain}\n"
        f"Text: {item.raw_content[:limit]}"
    )


def build_bias_prompt(item: ContentItem) -> str:
    return f"""{JSON_ONLY_PREAMBLE}

Analyze the political bias of this content. Respond with a JSON object containing:
- biasScore: number from -1.0 (left-leaning) to +1.0 (right-leaning), 0 is neutral
- biasLabel: "left", "center", or "right"
- confidence: confidence score 0.0-1.0
- reasoning: brief explanation

Example:
Input: "Biden Administration Expands Climate Programs"
Output: {{"biasScore": -0.3, "biasLabel": "left", "confidence": 0.8, "reasoning": "Neutral reporting but positive framing of progressive climate policy"}}

Content to analyze:
{_content_block(item, ANALYSIS_TEXT_CHARS)}

{JSON_ONLY_FOOTER}"""


def build_quality_prompt(item: ContentItem) -> str:
    return f"""{JSON_ONLY_PREAMBLE}

Score the quality of this political content on a scale of 1-10. Consider:
- Factual accuracy and sourcing
- Writing quality and clarity
- Objectivity vs opinion
- Evidence and citations
- Logical reasoning

Example:
Input: "Supreme Court Ruling Expected Next Week"
Output: {{"qualityScore": 7, "reasoning": "Clear reporting with proper attribution, lacks detailed analysis", "factors": ["clear_writing", "proper_sourcing", "lacks_depth"]}}

Content:
{_content_block(item, ANALYSIS_TEXT_CHARS)}

{JSON_ONLY_FOOTER}"""


def build_summary_prompt(item: ContentItem) -> str:
    return f"""{JSON_ONLY_PREAMBLE}

Generate comprehensive summaries for this political content. Respond with JSON:
- executiveSummary: 50-100 words, key points only
- detailedSummary: 200-300 words, comprehensive overview
- keyPoints: array of 5-10 bullet point strings
- implications: 100-200 words on potential impact/significance

Example:
Input: "Senate Passes Infrastructure Bill"
Output: {{"executiveSummary": "Senate approves $1.2T infrastructure package with bipartisan support.", "detailedSummary": "The Senate passed a comprehensive infrastructure bill...", "keyPoints": ["$1.2 trillion total funding", "Bipartisan support achieved"], "implications": "This legislation could significantly impact economic growth..."}}

Content:
{_content_block(item, SUMMARY_TEXT_CHARS)}

{JSON_ONLY_FOOTER}"""
