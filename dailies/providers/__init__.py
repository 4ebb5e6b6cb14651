"""Provider-Adapter: einheitliche Schnittstelle über Anthropic, OpenAI und Groq."""

from dailies.providers.base import (
    AnalysisResponse,
    FinishReason,
    ProviderAdapter,
    ProviderResponse,
)
from dailies.providers.factory import build_providers

__all__ = [
    "AnalysisResponse",
    "FinishReason",
    "ProviderAdapter",
    "ProviderResponse",
    "build_providers",
]
