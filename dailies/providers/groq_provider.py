"""Provider-Adapter für GroqCloud (AsyncGroq, OpenAI-kompatibles Chat-Format)."""

from __future__ import annotations

from typing import Any

import groq
import httpx

from dailies.exceptions import ProviderError, ProviderUnavailable
from dailies.logging_config import get_logger
from dailies.providers.base import Completion, ProviderAdapter
from dailies.providers.openai_provider import completion_from_chat

logger = get_logger("providers")


class GroqProvider(ProviderAdapter):
    """Adapter für Groq-gehostete Open-Weight-Modelle."""

    name = "groq"

    def __init__(
        self,
        api_key: str | None,
        model: str = "llama-3.3-70b-versatile",
        timeout_seconds: float = 20.0,
        max_retries: int = 0,
    ) -> None:
        """Initialisiert den Adapter.

        Raises:
            ProviderUnavailable: Wenn kein API-Key konfiguriert ist.
        """
        if not api_key:
            raise ProviderUnavailable(
                "GROQ_API_KEY ist nicht konfiguriert",
                provider=self.name,
            )
        super().__init__(model=model, timeout_seconds=timeout_seconds)
        self._client = groq.AsyncGroq(
            api_key=api_key,
            timeout=httpx.Timeout(timeout_seconds, connect=5.0),
            max_retries=max_retries,
        )
        logger.info(
            "GroqProvider initialisiert: model=%s, timeout=%.0fs, retries=%d",
            model, timeout_seconds, max_retries,
        )

    async def close(self) -> None:
        await self._client.close()
        logger.debug("GroqProvider geschlossen")

    async def _complete(
        self,
        prompt: str,
        max_tokens: int,
        temperature: float,
        json_mode: bool,
    ) -> Completion:
        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = await self._client.chat.completions.create(**kwargs)
        except groq.APITimeoutError as exc:
            raise ProviderError(
                f"Groq Timeout: {exc}", provider=self.name, status_code=408,
            ) from exc
        except groq.APIConnectionError as exc:
            raise ProviderError(
                f"Verbindung zur Groq API fehlgeschlagen: {exc}",
                provider=self.name,
            ) from exc
        except groq.RateLimitError as exc:
            raise ProviderError(
                "Groq Rate-Limit erreicht (429)",
                provider=self.name,
                status_code=429,
            ) from exc
        except groq.APIStatusError as exc:
            raise ProviderError(
                f"Groq API Fehler (HTTP {exc.status_code}): {exc.message}",
                provider=self.name,
                status_code=exc.status_code,
            ) from exc

        return completion_from_chat(response, self.name)
