"""Erzeugt die konfigurierten Provider-Adapter in Settings-Reihenfolge."""

from __future__ import annotations

from dailies.config import ProviderName, Settings
from dailies.exceptions import ProviderUnavailable
from dailies.logging_config import get_logger
from dailies.providers.anthropic_provider import AnthropicProvider
from dailies.providers.base import ProviderAdapter
from dailies.providers.groq_provider import GroqProvider
from dailies.providers.openai_provider import OpenAIProvider

logger = get_logger("providers")

_ADAPTERS: dict[ProviderName, type[ProviderAdapter]] = {
    ProviderName.ANTHROPIC: AnthropicProvider,
    ProviderName.OPENAI: OpenAIProvider,
    ProviderName.GROQ: GroqProvider,
}


def build_providers(settings: Settings) -> list[ProviderAdapter]:
    """Instanziiert alle Provider mit API-Key.

    Provider ohne Key werden übersprungen (ProviderUnavailable), die
    Reihenfolge aus PROVIDER_ORDER bleibt erhalten.  Eine leere Liste ist
    kein Fehler – der Orchestrator meldet dann AllProvidersExhausted.
    """
    providers: list[ProviderAdapter] = []
    for name in settings.provider_sequence:
        adapter_cls = _ADAPTERS[name]
        try:
            provider = adapter_cls(
                api_key=settings.api_key_for(name),
                model=settings.model_for(name),
                timeout_seconds=settings.provider_timeout_seconds,
                max_retries=settings.provider_max_retries,
            )
        except ProviderUnavailable as exc:
            logger.info("Provider %s übersprungen: %s", name.value, exc)
            continue
        providers.append(provider)

    if providers:
        logger.info("Aktive Provider: %s", ", ".join(p.name for p in providers))
    else:
        logger.warning("Kein KI-Provider konfiguriert – Klassifizierung nicht möglich")
    return providers
