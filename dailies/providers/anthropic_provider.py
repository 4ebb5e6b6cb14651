"""Provider-Adapter für die Anthropic Messages API (AsyncAnthropic)."""

from __future__ import annotations

import anthropic
import httpx

from dailies.exceptions import ProviderError, ProviderResponseError, ProviderUnavailable
from dailies.logging_config import get_logger
from dailies.providers.base import Completion, FinishReason, ProviderAdapter

logger = get_logger("providers")

# stop_reason → normalisierter FinishReason
_STOP_REASONS: dict[str, FinishReason] = {
    "end_turn": FinishReason.STOP,
    "stop_sequence": FinishReason.STOP,
    "max_tokens": FinishReason.LENGTH,
    "refusal": FinishReason.CONTENT_FILTER,
}


class AnthropicProvider(ProviderAdapter):
    """Adapter für Claude-Modelle."""

    name = "anthropic"

    def __init__(
        self,
        api_key: str | None,
        model: str = "claude-sonnet-4-5-20250929",
        timeout_seconds: float = 20.0,
        max_retries: int = 0,
    ) -> None:
        """Initialisiert den Adapter.

        Raises:
            ProviderUnavailable: Wenn kein API-Key konfiguriert ist.
        """
        if not api_key:
            raise ProviderUnavailable(
                "ANTHROPIC_API_KEY ist nicht konfiguriert",
                provider=self.name,
            )
        super().__init__(model=model, timeout_seconds=timeout_seconds)
        self._client = anthropic.AsyncAnthropic(
            api_key=api_key,
            timeout=httpx.Timeout(timeout_seconds, connect=5.0),
            max_retries=max_retries,
        )
        logger.info(
            "AnthropicProvider initialisiert: model=%s, timeout=%.0fs, retries=%d",
            model, timeout_seconds, max_retries,
        )

    async def close(self) -> None:
        await self._client.close()
        logger.debug("AnthropicProvider geschlossen")

    async def _complete(
        self,
        prompt: str,
        max_tokens: int,
        temperature: float,
        json_mode: bool,
    ) -> Completion:
        # Kein response_format in der Messages API – JSON wird per Prompt erzwungen
        try:
            message = await self._client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=temperature,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APITimeoutError as exc:
            raise ProviderError(
                f"Anthropic Timeout: {exc}", provider=self.name, status_code=408,
            ) from exc
        except anthropic.APIConnectionError as exc:
            raise ProviderError(
                f"Verbindung zur Anthropic API fehlgeschlagen: {exc}",
                provider=self.name,
            ) from exc
        except anthropic.RateLimitError as exc:
            raise ProviderError(
                "Anthropic Rate-Limit erreicht (429)",
                provider=self.name,
                status_code=429,
            ) from exc
        except anthropic.APIStatusError as exc:
            raise ProviderError(
                f"Anthropic API Fehler (HTTP {exc.status_code}): {exc.message}",
                provider=self.name,
                status_code=exc.status_code,
            ) from exc

        text = ""
        for block in message.content:
            if getattr(block, "text", None):
                text = block.text
                break
        if not text:
            raise ProviderResponseError(
                "Anthropic-Antwort enthält keinen Textinhalt",
                provider=self.name,
                raw_response=str(message.content),
            )

        usage = getattr(message, "usage", None)
        return Completion(
            text=text.strip(),
            finish_reason=_STOP_REASONS.get(message.stop_reason or "", FinishReason.OTHER),
            output_tokens=getattr(usage, "output_tokens", 0) or 0,
        )
