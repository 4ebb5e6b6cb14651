"""Tests für Registry, Standard-Processor und regelbasierte Extraktoren."""

from __future__ import annotations

import pytest

from conftest import StubProvider, create_test_item
from dailies.actions import domain_extractors as extractors
from dailies.actions.general import (
    calculate_reading_time,
    extract_keywords,
    generate_summary,
    process_general_content,
)
from dailies.actions.political import PoliticalContentAnalyzer
from dailies.actions.processors import register_default_processors
from dailies.actions.registry import ProcessorRegistry
from dailies.db import seed


@pytest.fixture
def registry() -> ProcessorRegistry:
    analyzer = PoliticalContentAnalyzer([StubProvider()])
    return register_default_processors(ProcessorRegistry(), analyzer)


class TestRegistry:
    def test_all_default_handlers_registered(self, registry):
        assert len(registry) == 21
        assert sorted(registry.by_prefix()) == [
            "diy", "general", "political", "printing", "smarthome", "sports", "tech",
        ]

    def test_seeded_actions_have_handlers(self, registry):
        assert {handler for _, _, handler in seed.ACTIONS} <= registry.names()

    def test_duplicate_registration(self, registry):
        with pytest.raises(ValueError):
            registry.register("general.summarize", registry.get("general.summarize"))

    def test_unknown_handler(self, registry):
        assert registry.get("nope.missing") is None
        assert "nope.missing" not in registry

    @pytest.mark.asyncio
    async def test_sync_extractor_is_awaitable(self, registry):
        handler = registry.get("sports.extractStats")

        result = await handler(create_test_item(raw_content="Final score 3-1 after 90:00."), {})

        assert result["has_scores"] is True

    @pytest.mark.asyncio
    async def test_credibility_handler_uses_domain(self, registry):
        handler = registry.get("political.assessCredibility")

        result = await handler(create_test_item(source_domain="www.reuters.com"), {})

        assert result["tier"] == "high"


class TestGeneralProcessing:
    def test_keywords_skip_stop_words(self):
        keywords = extract_keywords("The printer and the printer with filament. The nozzle is hot.")

        assert keywords[0] == "printer"
        assert "the" not in keywords
        assert "hot" not in keywords

    def test_keywords_empty(self):
        assert extract_keywords("") == []

    @pytest.mark.parametrize("text, minutes", [
        ("", 0),
        ("word", 1),
        ("word " * 250, 1),
        ("word " * 251, 2),
    ])
    def test_reading_time(self, text, minutes):
        assert calculate_reading_time(text) == minutes

    def test_summary_starts_with_first_sentence(self):
        text = (
            "Solar panels are getting cheaper every year. "
            "Installers report record demand for solar panels in cities. "
            "Weather was mild."
        )

        summary = generate_summary(text)

        assert summary.startswith("Solar panels are getting cheaper every year.")
        assert "record demand" in summary

    def test_summary_of_short_text(self):
        assert generate_summary("Short.") == "Short."

    def test_process_general_content(self):
        item = create_test_item(source_domain="www.example.org")

        result = process_general_content(item)

        assert result["source_domain"] == "example.org"
        assert result["reading_time"] == 1
        assert result["processing"]["processor"] == "general"


class TestDomainExtractors:
    def test_tech_trends_sorted_by_mentions(self):
        item = create_test_item(raw_content="Robotics and machine learning. More machine learning.")

        result = extractors.extract_tech_trends(item)

        assert result["top_trend"]["trend"] == "machine learning"
        assert result["top_trend"]["mentions"] == 2

    def test_tools_and_primary_stack(self):
        item = create_test_item(raw_content="We deploy Python and React apps with Docker.")

        result = extractors.extract_tools_and_technologies(item)

        assert result["technologies_found"]["cloud"] == ["docker"]
        assert result["primary_stack"] == ["React", "Python"]

    def test_technical_depth_beginner(self):
        result = extractors.analyze_technical_depth(create_test_item(raw_content="A gentle intro."))

        assert result["technical_depth"] == "beginner"

    def test_print_settings(self):
        item = create_test_item(raw_content="Layer height: 0.2mm, infill 20%, PETG, print time 5 hours.")

        settings = extractors.extract_print_settings(item)["print_settings"]

        assert settings == {
            "layer_height": "0.2mm",
            "infill": "20%",
            "material": "PETG",
            "print_time": "5 hours",
        }

    def test_model_type(self):
        item = create_test_item(title="Wall mount", raw_content="A bracket holder for tools.")

        assert extractors.classify_model_type(item)["model_type"] == "functional"

    def test_file_info(self):
        item = create_test_item(raw_content="Grab https://example.com/files/case.stl today.")

        info = extractors.extract_file_info(item)["file_info"]

        assert info["has_downloads"] is True
        assert info["file_count"] == 1

    def test_teams_and_players(self):
        item = create_test_item(raw_content="The Boston Celtics beat the Heat. Jayson Tatum scored.")

        result = extractors.identify_teams_players(item)

        assert "Boston Celtics" in result["teams"]
        assert "Jayson Tatum" in result["players"]

    def test_electronics_components(self):
        item = create_test_item(raw_content="Wire the ESP32 to a relay, a sensor and an LED.")

        result = extractors.identify_electronics_components(item)

        assert result["components_identified"] == ["esp32", "led", "sensor", "relay"]
        assert result["complexity"] == "intermediate"

    def test_diy_project_details(self):
        item = create_test_item(raw_content="An easy circuit build, about 2 hours with a multimeter.")

        details = extractors.extract_diy_project_details(item)["project_details"]

        assert details["difficulty_level"] == "beginner"
        assert details["estimated_duration"] == "2 hours"
        assert details["tools_required"] == ["multimeter"]
        assert details["project_type"] == "electronics"

    def test_smart_devices_and_automation(self):
        item = create_test_item(
            raw_content="Home Assistant with a Zigbee sensor. When motion is seen, turn on the lights.",
        )

        devices = extractors.extract_smart_devices(item)
        automation = extractors.extract_automation_logic(item)

        assert devices["ecosystem"] == "Home Assistant"
        assert "zigbee" in devices["smart_devices"]
        assert automation["has_automations"] is True
