"""Provider-Adapter für die OpenAI Chat Completions API (AsyncOpenAI).

Groq spricht dasselbe Chat-Completions-Format; `completion_from_chat()`
wird daher auch vom Groq-Adapter verwendet.
"""

from __future__ import annotations

import math
from typing import Any

import httpx
import openai

from dailies.exceptions import ProviderError, ProviderResponseError, ProviderUnavailable
from dailies.logging_config import get_logger
from dailies.providers.base import Completion, FinishReason, ProviderAdapter

logger = get_logger("providers")

_FINISH_REASONS: dict[str, FinishReason] = {
    "stop": FinishReason.STOP,
    "length": FinishReason.LENGTH,
    "content_filter": FinishReason.CONTENT_FILTER,
}


def completion_from_chat(response: Any, provider: str) -> Completion:
    """Wandelt eine Chat-Completion-Antwort in ein Completion-Objekt um.

    Liegen Token-Logprobs vor, dient die Wahrscheinlichkeit des ersten
    Tokens als Confidence-Hinweis.

    Raises:
        ProviderResponseError: Wenn die Antwort keinen Text enthält.
    """
    if not response.choices:
        raise ProviderResponseError(
            f"{provider}: Antwort ohne choices", provider=provider,
        )
    choice = response.choices[0]
    text = (choice.message.content or "").strip()
    if not text:
        raise ProviderResponseError(
            f"{provider}: Antwort enthält keinen Textinhalt",
            provider=provider,
            raw_response=str(choice),
        )

    hint: float | None = None
    logprobs = getattr(choice, "logprobs", None)
    if logprobs is not None and getattr(logprobs, "content", None):
        hint = round(math.exp(logprobs.content[0].logprob), 4)

    usage = getattr(response, "usage", None)
    return Completion(
        text=text,
        finish_reason=_FINISH_REASONS.get(choice.finish_reason or "", FinishReason.OTHER),
        output_tokens=getattr(usage, "completion_tokens", 0) or 0,
        confidence_hint=hint,
    )


class OpenAIProvider(ProviderAdapter):
    """Adapter für OpenAI-Modelle."""

    name = "openai"

    def __init__(
        self,
        api_key: str | None,
        model: str = "gpt-4o-mini",
        timeout_seconds: float = 20.0,
        max_retries: int = 0,
    ) -> None:
        """Initialisiert den Adapter.

        Raises:
            ProviderUnavailable: Wenn kein API-Key konfiguriert ist.
        """
        if not api_key:
            raise ProviderUnavailable(
                "OPENAI_API_KEY ist nicht konfiguriert",
                provider=self.name,
            )
        super().__init__(model=model, timeout_seconds=timeout_seconds)
        self._client = openai.AsyncOpenAI(
            api_key=api_key,
            timeout=httpx.Timeout(timeout_seconds, connect=5.0),
            max_retries=max_retries,
        )
        logger.info(
            "OpenAIProvider initialisiert: model=%s, timeout=%.0fs, retries=%d",
            model, timeout_seconds, max_retries,
        )

    async def close(self) -> None:
        await self._client.close()
        logger.debug("OpenAIProvider geschlossen")

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
        else:
            # Logprob des ersten Tokens als Confidence-Hinweis
            kwargs["logprobs"] = True

        try:
            response = await self._client.chat.completions.create(**kwargs)
        except openai.APITimeoutError as exc:
            raise ProviderError(
                f"OpenAI Timeout: {exc}", provider=self.name, status_code=408,
            ) from exc
        except openai.APIConnectionError as exc:
            raise ProviderError(
                f"Verbindung zur OpenAI API fehlgeschlagen: {exc}",
                provider=self.name,
            ) from exc
        except openai.RateLimitError as exc:
            raise ProviderError(
                "OpenAI Rate-Limit erreicht (429)",
                provider=self.name,
                status_code=429,
            ) from exc
        except openai.APIStatusError as exc:
            raise ProviderError(
                f"OpenAI API Fehler (HTTP {exc.status_code}): {exc.message}",
                provider=self.name,
                status_code=exc.status_code,
            ) from exc

        return completion_from_chat(response, self.name)
