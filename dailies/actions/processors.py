"""Registrierung aller Standard-Processor in der Registry.

Handler-Signatur: `async (item, config) -> dict`.  Die synchronen
Extraktoren werden dafür in Coroutinen verpackt.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from dailies.actions import domain_extractors as extractors
from dailies.actions.general import (
    calculate_reading_time,
    extract_keywords,
    process_general_content,
)
from dailies.actions.political import PoliticalContentAnalyzer
from dailies.actions.registry import Handler, ProcessorRegistry
from dailies.catalog.models import ContentItem
from dailies.logging_config import get_logger

logger = get_logger("actions")


def _sync(func: Callable[[ContentItem], dict[str, Any]]) -> Handler:
    async def handler(item: ContentItem, config: dict[str, Any]) -> dict[str, Any]:
        return func(item)

    handler.__name__ = func.__name__
    return handler


def _political_handlers(analyzer: PoliticalContentAnalyzer) -> dict[str, Handler]:
    async def analyze_bias(item: ContentItem, config: dict[str, Any]) -> dict[str, Any]:
        return (await analyzer.analyze_bias(item)).model_dump(mode="json")

    async def score_quality(item: ContentItem, config: dict[str, Any]) -> dict[str, Any]:
        return (await analyzer.score_quality(item)).model_dump(mode="json")

    async def generate_summaries(item: ContentItem, config: dict[str, Any]) -> dict[str, Any]:
        return (await analyzer.generate_summaries(item)).model_dump(mode="json")

    async def detect_loaded_language(item: ContentItem, config: dict[str, Any]) -> dict[str, Any]:
        return analyzer.detect_loaded_language(item)

    async def assess_credibility(item: ContentItem, config: dict[str, Any]) -> dict[str, Any]:
        return analyzer.assess_credibility(item.source_domain)

    async def analyze_content(item: ContentItem, config: dict[str, Any]) -> dict[str, Any]:
        return await analyzer.analyze_content(item)

    return {
        "political.analyzeBias": analyze_bias,
        "political.scoreQuality": score_quality,
        "political.detectLoadedLanguage": detect_loaded_language,
        "political.generateSummaries": generate_summaries,
        "political.assessCredibility": assess_credibility,
        "political.analyzeContent": analyze_content,
    }


def _general_handlers() -> dict[str, Handler]:
    async def summarize(item: ContentItem, config: dict[str, Any]) -> dict[str, Any]:
        return process_general_content(item)

    async def keywords(item: ContentItem, config: dict[str, Any]) -> dict[str, Any]:
        return {"keywords": extract_keywords(item.raw_content)}

    async def reading_time(item: ContentItem, config: dict[str, Any]) -> dict[str, Any]:
        return {"reading_time": calculate_reading_time(item.raw_content)}

    return {
        "general.summarize": summarize,
        "general.extractKeywords": keywords,
        "general.calculateReadingTime": reading_time,
    }


DOMAIN_HANDLERS: dict[str, Callable[[ContentItem], dict[str, Any]]] = {
    "tech.extractTrends": extractors.extract_tech_trends,
    "tech.analyzeTechnicalDepth": extractors.analyze_technical_depth,
    "tech.extractToolsTech": extractors.extract_tools_and_technologies,
    "sports.extractStats": extractors.extract_sports_stats,
    "sports.identifyTeamsPlayers": extractors.identify_teams_players,
    "printing.extractSettings": extractors.extract_print_settings,
    "printing.classifyModel": extractors.classify_model_type,
    "printing.extractFileInfo": extractors.extract_file_info,
    "diy.extractProjectDetails": extractors.extract_diy_project_details,
    "diy.identifyComponents": extractors.identify_electronics_components,
    "smarthome.extractDevices": extractors.extract_smart_devices,
    "smarthome.extractAutomation": extractors.extract_automation_logic,
}


def register_default_processors(
    registry: ProcessorRegistry,
    analyzer: PoliticalContentAnalyzer,
) -> ProcessorRegistry:
    """Registriert alle eingebauten Handler und gibt die Registry zurück."""
    handlers: dict[str, Handler] = {
        **_political_handlers(analyzer),
        **_general_handlers(),
        **{name: _sync(func) for name, func in DOMAIN_HANDLERS.items()},
    }
    for name, handler in handlers.items():
        registry.register(name, handler)

    logger.info(
        "%d Processor registriert: %s",
        len(registry),
        {prefix: len(names) for prefix, names in registry.by_prefix().items()},
    )
    return registry
