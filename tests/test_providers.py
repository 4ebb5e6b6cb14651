"""Tests für die Provider-Basisklasse, Antwort-Bereinigung, Prompts und Factory."""

from __future__ import annotations

import pytest

from conftest import SlowProvider, StubProvider, create_test_item
from dailies.config import Settings
from dailies.exceptions import ParseFailure, ProviderError
from dailies.providers import build_providers
from dailies.providers.base import FinishReason, clean_label, parse_json_object
from dailies.providers.prompts import (
    build_bias_prompt,
    build_classification_prompt,
    build_summary_prompt,
)


class TestCleanLabel:
    @pytest.mark.parametrize("raw, expected", [
        ("US_Politics_News", "US_Politics_News"),
        ("  Technology.\n", "Technology"),
        ("**Sports**", "Sports"),
        ('"Smart Home"', "Smart Home"),
        ("Category: Technology", "Technology"),
        ("\n\nSports\nBecause the article covers a game.", "Sports"),
        ("", ""),
        ("   \n  ", ""),
    ])
    def test_clean_label(self, raw, expected):
        assert clean_label(raw) == expected


class TestParseJsonObject:
    def test_plain_json(self):
        assert parse_json_object('{"biasScore": 0.1}') == {"biasScore": 0.1}

    def test_markdown_codeblock(self):
        raw = 'Here you go:\n```json\n{"qualityScore": 7}\n```'

        assert parse_json_object(raw) == {"qualityScore": 7}

    def test_surrounding_prose(self):
        raw = 'Sure! {"biasLabel": "center", "biasScore": 0} Hope that helps.'

        assert parse_json_object(raw)["biasLabel"] == "center"

    @pytest.mark.parametrize("raw", ["no json here", "{broken: json", "[1, 2, 3]"])
    def test_failures_raise_parse_failure(self, raw):
        with pytest.raises(ParseFailure) as exc_info:
            parse_json_object(raw)

        assert exc_info.value.raw_text == raw


class TestProviderAdapter:
    @pytest.mark.asyncio
    async def test_classify_cleans_label(self):
        provider = StubProvider(label="**Category: Technology**")

        response = await provider.classify("prompt")

        assert response.raw_label == "Technology"
        assert response.raw_text == "**Category: Technology**"
        assert response.provider_name == "stub"
        assert response.finish_reason == FinishReason.STOP

    @pytest.mark.asyncio
    async def test_analyze_parses_json(self):
        provider = StubProvider(analysis_text='{"qualityScore": 8}')

        response = await provider.analyze("prompt")

        assert response.is_structured
        assert response.data == {"qualityScore": 8}

    @pytest.mark.asyncio
    async def test_analyze_keeps_raw_text_on_invalid_json(self):
        provider = StubProvider(analysis_text="The article is left-leaning.")

        response = await provider.analyze("prompt")

        assert response.data is None
        assert response.raw_text == "The article is left-leaning."

    @pytest.mark.asyncio
    async def test_timeout_becomes_provider_error(self):
        provider = SlowProvider(delay=1.0, timeout_seconds=0.05)

        with pytest.raises(ProviderError) as exc_info:
            await provider.classify("prompt")

        assert exc_info.value.status_code == 408
        assert exc_info.value.provider == "slow"


class TestPrompts:
    def test_classification_prompt(self):
        prompt = build_classification_prompt(
            title="Senate vote",
            source="politico.com",
            text="Body",
            category_names=["US_Politics_News", "Technology"],
            hints=["Content from politico.com is typically US_Politics_News"],
        )

        assert "- US_Politics_News\n- Technology" in prompt
        assert "Hints based on domain and content analysis:" in prompt
        assert "politico.com" in prompt

    def test_classification_prompt_without_hints(self):
        prompt = build_classification_prompt("t", "s", "x", ["Sports"])

        assert "Hints" not in prompt

    def test_analysis_prompts_limit_text(self):
        item = create_test_item(raw_content="z" * 5000)

        assert "z" * 2001 not in build_bias_prompt(item)
        assert "z" * 3000 in build_summary_prompt(item)
        assert "z" * 3001 not in build_summary_prompt(item)

    def test_analysis_prompt_requests_json(self):
        prompt = build_bias_prompt(create_test_item())

        assert "biasScore" in prompt
        assert prompt.rstrip().endswith("Respond only with valid JSON.")


class TestBuildProviders:
    def test_no_keys_no_providers(self, monkeypatch):
        for key in ("ANTHROPIC_API_KEY", "OPENAI_API_KEY", "GROQ_API_KEY"):
            monkeypatch.delenv(key, raising=False)

        assert build_providers(Settings(_env_file=None)) == []

    def test_order_follows_settings(self, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        settings = Settings(
            _env_file=None,
            provider_order="groq,openai,anthropic",
            openai_api_key="sk-test",
            groq_api_key="gsk_test",
        )

        providers = build_providers(settings)

        assert [p.name for p in providers] == ["groq", "openai"]
        assert providers[0].model == settings.groq_model
