"""Tests für die Heuristik-Parser (Antworten ohne gültiges JSON)."""

from __future__ import annotations

import pytest

from dailies.classifier.fallback_parsers import (
    FALLBACK_CONFIDENCE,
    BiasLabel,
    extract_quality_score,
    parse_bias,
    parse_quality,
    parse_summary,
    split_sentences,
)


class TestParseBias:
    def test_left_leaning_text(self):
        result = parse_bias("This article shows a clear left-leaning bias")

        assert result.bias_label == BiasLabel.LEFT
        assert result.bias_confidence == FALLBACK_CONFIDENCE == 0.6
        assert result.bias_score < 0
        assert result.fallback is True

    @pytest.mark.parametrize("text, expected", [
        ("A strongly conservative framing throughout", BiasLabel.RIGHT),
        ("Leans right on immigration", BiasLabel.RIGHT),
        ("Mostly liberal sources quoted", BiasLabel.LEFT),
        ("Balanced reporting with multiple perspectives", BiasLabel.CENTER),
        ("", BiasLabel.CENTER),
    ])
    def test_label_keywords(self, text, expected):
        assert parse_bias(text).bias_label == expected

    def test_left_wins_over_right(self):
        assert parse_bias("left and right both criticized").bias_label == BiasLabel.LEFT

    def test_score_is_deterministic(self):
        assert parse_bias("left").bias_score == parse_bias("liberal").bias_score

    def test_none_input_does_not_raise(self):
        result = parse_bias(None, provider="stub")

        assert result.bias_label == BiasLabel.CENTER
        assert result.provider == "stub"

    def test_reasoning_is_truncated(self):
        result = parse_bias("x" * 500)

        assert result.reasoning.endswith("...")
        assert len(result.reasoning) < 250


class TestParseQuality:
    @pytest.mark.parametrize("text, expected", [
        ("I would rate this 7/10", 7),
        ("Quality: 8 out of 10", 8),
        ("Scores 15/10 somehow", 10),
        ("excellent work overall", 7),
        ("solid but poor sourcing", 4),
        ("terrible", 2),
        ("no signal here", 5),
    ])
    def test_extract_quality_score(self, text, expected):
        assert extract_quality_score(text) == expected

    def test_parse_quality_marks_fallback(self):
        result = parse_quality("good article")

        assert result.quality_score == 6
        assert result.confidence == FALLBACK_CONFIDENCE
        assert result.factors == ["fallback_analysis"]

    def test_score_never_below_one(self):
        assert parse_quality("bad, terrible, poor, low quality").quality_score == 1


class TestParseSummary:
    def test_split_sentences_drops_fragments(self):
        sentences = split_sentences("Short. This sentence is long enough! And this one too? Ok.")

        assert sentences == ["This sentence is long enough!", "And this one too?"]

    def test_summary_sections(self):
        text = " ".join(f"Sentence number {i} carries content." for i in range(1, 9))

        result = parse_summary(text)

        assert result.summary_executive.startswith("Sentence number 1")
        assert "Sentence number 2" in result.summary_executive
        assert "Sentence number 3" not in result.summary_executive
        assert len(result.key_points) == 5
        assert "Sentence number 8" in result.implications
        assert result.confidence == FALLBACK_CONFIDENCE

    def test_empty_text(self):
        result = parse_summary("")

        assert result.summary_executive == ""
        assert result.key_points == []
        assert result.fallback is True
