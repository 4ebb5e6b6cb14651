"""Exceptions für Provider, Klassifizierung, Konfiguration und Actions.

Hierarchie:
    DailiesError (Basis)
    ├── ProviderError               – Netzwerk-/API-Fehler eines Providers → nächster Provider
    │   ├── ProviderUnavailable     – Provider nicht konfiguriert (kein API-Key) → überspringen
    │   └── ProviderResponseError   – Antwort ohne verwertbaren Textinhalt
    ├── ParseFailure                – strukturiertes Parsen fehlgeschlagen (lokal abgefangen)
    ├── AllProvidersExhausted       – kein Provider lieferte ein Ergebnis → Review-Queue
    ├── ConfigurationInvalid        – Katalog inkonsistent → Reload wird abgelehnt
    └── ActionFailure (Basis der Action-Fehler, nur im Pipeline-Ergebnis sichtbar)
        ├── ActionNotFound          – Handler nicht registriert
        ├── ActionTimeout           – Deadline überschritten
        └── ActionError             – Handler hat eine Exception geworfen
"""

from __future__ import annotations


class DailiesError(Exception):
    """Basisklasse für alle dailies-Fehler."""


# ---------------------------------------------------------------------------
# Provider
# ---------------------------------------------------------------------------

class ProviderError(DailiesError):
    """Fehler bei der Kommunikation mit einem KI-Provider."""

    def __init__(
        self,
        message: str,
        provider: str = "",
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code

    @property
    def is_rate_limited(self) -> bool:
        """True bei 429 (Rate-Limit) oder 529 (Overloaded)."""
        return self.status_code in (429, 529)


class ProviderUnavailable(ProviderError):
    """Provider ist nicht konfiguriert – wird übersprungen, nicht fatal."""


class ProviderResponseError(ProviderError):
    """Antwort enthält keinen verwertbaren Textinhalt."""

    def __init__(self, message: str, provider: str = "", raw_response: str = "") -> None:
        super().__init__(message, provider=provider)
        self.raw_response = raw_response


class ParseFailure(DailiesError):
    """Strukturiertes Parsen (JSON) fehlgeschlagen.

    Wird nie nach außen gereicht – der Aufrufer fällt auf die
    Heuristik-Parser zurück.
    """

    def __init__(self, message: str, raw_text: str = "") -> None:
        super().__init__(message)
        self.raw_text = raw_text


# ---------------------------------------------------------------------------
# Klassifizierung & Konfiguration
# ---------------------------------------------------------------------------

class AllProvidersExhausted(DailiesError):
    """Kein Provider hat ein Ergebnis geliefert.

    Terminal für einen Klassifizierungsversuch; der Aufrufer markiert
    den Inhalt für die manuelle Review.
    """

    def __init__(self, message: str, last_error: Exception | None = None) -> None:
        super().__init__(message)
        self.last_error = last_error


class ConfigurationInvalid(DailiesError):
    """Katalog (Kategorien, Aliase, Actions) ist inkonsistent."""

    def __init__(self, message: str, problems: list[str] | None = None) -> None:
        self.problems = problems or []
        if self.problems:
            message = f"{message}: {'; '.join(self.problems)}"
        super().__init__(message)


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------

class ActionFailure(DailiesError):
    """Basisklasse für isolierte Action-Fehler."""

    def __init__(self, message: str, action_name: str = "", handler: str = "") -> None:
        super().__init__(message)
        self.action_name = action_name
        self.handler = handler


class ActionNotFound(ActionFailure):
    """Kein Processor für den Handler-Namen registriert."""

    def __init__(self, action_name: str, handler: str) -> None:
        super().__init__(
            f"Processor nicht gefunden: {handler}",
            action_name=action_name,
            handler=handler,
        )


class ActionTimeout(ActionFailure):
    """Action hat die Deadline überschritten."""

    def __init__(self, action_name: str, handler: str, timeout_seconds: float) -> None:
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Action-Timeout nach {timeout_seconds:g} Sekunden",
            action_name=action_name,
            handler=handler,
        )


class ActionError(ActionFailure):
    """Handler hat während der Ausführung eine Exception geworfen."""

    def __init__(self, action_name: str, handler: str, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(
            str(cause) or type(cause).__name__,
            action_name=action_name,
            handler=handler,
        )
