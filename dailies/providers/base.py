"""Einheitliche Schnittstelle über heterogene KI-Backends.

Jeder Adapter implementiert nur `_complete()` (ein einzelner Text-Request
gegen sein SDK) und mappt Vendor-Fehler auf ProviderError.  Die Basisklasse
liefert darauf aufbauend:

- classify(prompt) → ProviderResponse (bereinigtes Label + Metadaten)
- analyze(prompt)  → AnalysisResponse (JSON-Objekt oder None + Rohtext)

Vertrag:
- Jeder Aufruf ist durch den Adapter-eigenen Timeout begrenzt.
- Ist die Antwort kein gültiges JSON, wird der Rohtext trotzdem
  zurückgegeben (data=None) – der Aufrufer nutzt dann die Fallback-Parser.
- Adapter halten keinen geteilten, veränderlichen Zustand.
"""

from __future__ import annotations

import asyncio
import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from dailies.exceptions import ParseFailure, ProviderError
from dailies.logging_config import get_logger

logger = get_logger("providers")

# Token-Budgets: Klassifizierung liefert nur einen Kategorienamen
CLASSIFY_MAX_TOKENS = 50
ANALYZE_MAX_TOKENS = 800

# Niedrige Temperatur für reproduzierbare Labels
CLASSIFY_TEMPERATURE = 0.1
ANALYZE_TEMPERATURE = 0.2


# ---------------------------------------------------------------------------
# Response-Modelle
# ---------------------------------------------------------------------------

class FinishReason(str, Enum):
    """Normalisierter Abbruchgrund über alle Provider hinweg."""
    STOP = "stop"                      # Regulär beendet
    LENGTH = "length"                  # Token-Limit erreicht (abgeschnitten)
    CONTENT_FILTER = "content_filter"  # Vom Provider gefiltert / verweigert
    OTHER = "other"


class ProviderResponse(BaseModel):
    """Antwort eines Providers auf einen Klassifizierungs-Prompt."""

    provider_name: str
    raw_label: str
    raw_text: str = ""
    confidence_hint: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    finish_reason: FinishReason = FinishReason.STOP
    output_tokens: int = 0


class AnalysisResponse(BaseModel):
    """Antwort eines Providers auf einen Analyse-Prompt.

    `data` ist None, wenn die Antwort kein gültiges JSON-Objekt war.
    """

    provider_name: str
    raw_text: str
    data: Optional[dict[str, Any]] = None

    @property
    def is_structured(self) -> bool:
        return self.data is not None


@dataclass(frozen=True)
class Completion:
    """Ergebnis eines einzelnen SDK-Aufrufs (intern, Adapter → Basisklasse)."""

    text: str
    finish_reason: FinishReason = FinishReason.STOP
    output_tokens: int = 0
    confidence_hint: float | None = None


# ---------------------------------------------------------------------------
# Adapter-Basisklasse
# ---------------------------------------------------------------------------

class ProviderAdapter(ABC):
    """Abstrakter Provider-Adapter.

    Verwendung:
        async with AnthropicProvider(api_key="sk-ant-...") as provider:
            response = await provider.classify(prompt)
    """

    name: str = "provider"

    def __init__(self, model: str, timeout_seconds: float = 20.0) -> None:
        self.model = model
        self.timeout_seconds = timeout_seconds

    @abstractmethod
    async def _complete(
        self,
        prompt: str,
        max_tokens: int,
        temperature: float,
        json_mode: bool,
    ) -> Completion:
        """Führt einen einzelnen Request aus.

        Raises:
            ProviderError: Bei Netzwerk- oder API-Fehlern (mit Statuscode).
        """

    async def close(self) -> None:
        """Gibt SDK-Ressourcen frei (Default: nichts zu tun)."""

    async def __aenter__(self) -> "ProviderAdapter":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    # --- Öffentliche Schnittstelle ---

    async def classify(self, prompt: str) -> ProviderResponse:
        """Sendet einen Klassifizierungs-Prompt und liefert das Label.

        Raises:
            ProviderError: Netzwerk-, API- oder Timeout-Fehler.
        """
        completion = await self._guarded_complete(
            prompt, CLASSIFY_MAX_TOKENS, CLASSIFY_TEMPERATURE, json_mode=False,
        )
        label = clean_label(completion.text)

        logger.debug(
            "Klassifizierung via %s: label='%s', finish=%s, tokens=%d",
            self.name, label[:60], completion.finish_reason.value,
            completion.output_tokens,
        )

        return ProviderResponse(
            provider_name=self.name,
            raw_label=label,
            raw_text=completion.text,
            confidence_hint=completion.confidence_hint,
            finish_reason=completion.finish_reason,
            output_tokens=completion.output_tokens,
        )

    async def analyze(
        self,
        prompt: str,
        max_tokens: int = ANALYZE_MAX_TOKENS,
    ) -> AnalysisResponse:
        """Sendet einen Analyse-Prompt und versucht die JSON-Antwort zu parsen.

        Parse-Fehler werden nicht geworfen: data=None, raw_text gesetzt.

        Raises:
            ProviderError: Netzwerk-, API- oder Timeout-Fehler.
        """
        completion = await self._guarded_complete(
            prompt, max_tokens, ANALYZE_TEMPERATURE, json_mode=True,
        )

        data: dict[str, Any] | None = None
        try:
            data = parse_json_object(completion.text)
        except ParseFailure as exc:
            logger.warning(
                "Antwort von %s ist kein gültiges JSON (%s) – Fallback-Parser: '%s'",
                self.name, exc, completion.text[:120],
            )

        return AnalysisResponse(
            provider_name=self.name,
            raw_text=completion.text,
            data=data,
        )

    # --- Intern ---

    async def _guarded_complete(
        self,
        prompt: str,
        max_tokens: int,
        temperature: float,
        json_mode: bool,
    ) -> Completion:
        """`_complete()` mit hartem Timeout als zweite Absicherung zum SDK-Timeout."""
        try:
            return await asyncio.wait_for(
                self._complete(prompt, max_tokens, temperature, json_mode),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            raise ProviderError(
                f"{self.name}: keine Antwort nach {self.timeout_seconds:g}s",
                provider=self.name,
                status_code=408,
            ) from exc


# ---------------------------------------------------------------------------
# Antwort-Bereinigung
# ---------------------------------------------------------------------------

_LABEL_PREFIX = re.compile(r"^(?:category|kategorie|label)\s*:\s*", re.IGNORECASE)


def clean_label(text: str) -> str:
    """Reduziert eine Provider-Antwort auf den Kategorienamen.

    Nimmt die erste nicht-leere Zeile und entfernt Markdown, Anführungszeichen,
    "Category:"-Präfixe und abschließende Satzzeichen.
    """
    for line in text.strip().splitlines():
        candidate = line.strip().strip("*`_#-").strip()
        if candidate:
            break
    else:
        return ""

    candidate = _LABEL_PREFIX.sub("", candidate)
    candidate = candidate.strip().strip("\"'“”`").rstrip(".!").strip()
    return candidate


_CODEBLOCK = re.compile(r"```(?:json)?\s*\n?(.*?)\n?\s*```", re.DOTALL)


def parse_json_object(raw_text: str) -> dict[str, Any]:
    """Parst ein JSON-Objekt aus einer Provider-Antwort.

    Behandelt gängige Abweichungen:
    - JSON in Markdown-Codeblöcken (```json ... ```)
    - Einleitender/abschließender Fließtext um das Objekt

    Raises:
        ParseFailure: Wenn kein JSON-Objekt extrahiert werden kann.
    """
    cleaned = raw_text.strip()

    codeblock_match = _CODEBLOCK.search(cleaned)
    if codeblock_match:
        cleaned = codeblock_match.group(1).strip()

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        # Letzter Versuch: äußerstes {...} aus dem Text schneiden
        start, end = cleaned.find("{"), cleaned.rfind("}")
        if start == -1 or end <= start:
            raise ParseFailure("Kein JSON-Objekt in der Antwort", raw_text=raw_text)
        try:
            data = json.loads(cleaned[start:end + 1])
        except json.JSONDecodeError as exc:
            raise ParseFailure(f"Ungültiges JSON: {exc}", raw_text=raw_text) from exc

    if not isinstance(data, dict):
        raise ParseFailure(
            f"JSON ist kein Objekt sondern {type(data).__name__}",
            raw_text=raw_text,
        )
    return data
