"""Konfigurationsmanagement mit Pydantic Settings.

Lädt Konfiguration aus Environment-Variablen und .env-Datei.
Alle Provider-Keys sind optional – nicht konfigurierte Provider werden
beim Start übersprungen (ProviderUnavailable), der Rest läuft weiter.
"""

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProviderName(str, Enum):
    """Unterstützte KI-Provider."""
    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    GROQ = "groq"


class LogLevel(str, Enum):
    """Erlaubte Log-Level."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class Settings(BaseSettings):
    """Zentrale Konfiguration von dailies.

    Keine Pflichtfelder: ohne API-Keys startet der Dienst, jede
    Klassifizierung endet dann aber mit AllProvidersExhausted und
    landet in der Review-Queue.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        # ENV-Variablen haben Vorrang vor .env-Datei
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Provider-Zugänge ---
    anthropic_api_key: Optional[str] = Field(
        default=None,
        description="API-Key aus der Anthropic Console",
    )
    openai_api_key: Optional[str] = Field(
        default=None,
        description="API-Key aus dem OpenAI Dashboard",
    )
    groq_api_key: Optional[str] = Field(
        default=None,
        description="API-Key aus der GroqCloud Console",
    )

    # --- Modellwahl ---
    anthropic_model: str = Field(
        default="claude-sonnet-4-5-20250929",
        description="Modell für Klassifizierung und Analyse via Anthropic",
    )
    openai_model: str = Field(
        default="gpt-4o-mini",
        description="Modell für Klassifizierung und Analyse via OpenAI",
    )
    groq_model: str = Field(
        default="llama-3.3-70b-versatile",
        description="Modell für Klassifizierung und Analyse via Groq",
    )

    # --- Provider-Reihenfolge & Timeouts ---
    provider_order: str = Field(
        default="anthropic,openai,groq",
        description="Kommagetrennte Reihenfolge der Provider (Fallback-Kette)",
    )
    provider_timeout_seconds: float = Field(
        default=20.0,
        gt=0.0,
        le=120.0,
        description="Request-Timeout pro Provider-Aufruf in Sekunden",
    )
    provider_max_retries: int = Field(
        default=0,
        ge=0,
        le=5,
        description="SDK-interne Retries bei 429/5xx; 0 = bei Fehler sofort nächster Provider",
    )

    # --- Klassifizierung ---
    min_confidence: float = Field(
        default=0.5,
        ge=0.1,
        le=1.0,
        description="Mindest-Confidence; darunter wird needs_manual_review gesetzt",
    )
    use_consensus: bool = Field(
        default=False,
        description="Consensus-Modus (mehrere Provider parallel) statt Fallback-Kette",
    )
    consensus_max_providers: int = Field(
        default=3,
        ge=2,
        description="Maximale Anzahl parallel befragter Provider im Consensus-Modus",
    )
    cache_max_size: int = Field(
        default=1000,
        ge=1,
        description="Maximale Einträge im Klassifizierungs-Cache (älteste zuerst verdrängt)",
    )

    # --- Actions ---
    action_timeout_seconds: float = Field(
        default=30.0,
        gt=0.0,
        description="Deadline pro Action in Sekunden (gilt einheitlich für alle Actions)",
    )

    # --- Worker ---
    worker_queue_size: int = Field(
        default=100,
        ge=1,
        description="Maximale Länge der Verarbeitungs-Queue",
    )

    # --- Logging ---
    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Log-Level für die Anwendung",
    )

    # --- Pfade ---
    data_dir: Path = Field(
        default=Path("./data"),
        description="Verzeichnis für SQLite-DB und Logs",
    )

    @field_validator("provider_order")
    @classmethod
    def validate_provider_order(cls, v: str) -> str:
        """Nur bekannte Provider, keine Duplikate."""
        names = [part.strip().lower() for part in v.split(",") if part.strip()]
        if not names:
            raise ValueError("PROVIDER_ORDER darf nicht leer sein")
        known = {p.value for p in ProviderName}
        unknown = [n for n in names if n not in known]
        if unknown:
            raise ValueError(
                f"Unbekannte Provider in PROVIDER_ORDER: {', '.join(unknown)} "
                f"(erlaubt: {', '.join(sorted(known))})"
            )
        if len(set(names)) != len(names):
            raise ValueError("PROVIDER_ORDER enthält doppelte Einträge")
        return ",".join(names)

    @field_validator("anthropic_api_key")
    @classmethod
    def validate_anthropic_key(cls, v: Optional[str]) -> Optional[str]:
        """Grundlegende Formatprüfung des Anthropic-Keys (falls gesetzt)."""
        if v is not None and not v.startswith("sk-ant-"):
            raise ValueError(
                "ANTHROPIC_API_KEY muss mit 'sk-ant-' beginnen. "
                "Bitte Key aus der Anthropic Console prüfen."
            )
        return v

    @field_validator("groq_api_key")
    @classmethod
    def validate_groq_key(cls, v: Optional[str]) -> Optional[str]:
        """Groq-Keys beginnen mit 'gsk_'."""
        if v is not None and not v.startswith("gsk_"):
            raise ValueError("GROQ_API_KEY muss mit 'gsk_' beginnen.")
        return v

    @property
    def provider_sequence(self) -> list[ProviderName]:
        """Provider-Reihenfolge als Enum-Liste."""
        return [ProviderName(name) for name in self.provider_order.split(",")]

    def api_key_for(self, provider: ProviderName) -> Optional[str]:
        """API-Key für den angegebenen Provider (None = nicht konfiguriert)."""
        return {
            ProviderName.ANTHROPIC: self.anthropic_api_key,
            ProviderName.OPENAI: self.openai_api_key,
            ProviderName.GROQ: self.groq_api_key,
        }[provider]

    def model_for(self, provider: ProviderName) -> str:
        """Modellname für den angegebenen Provider."""
        return {
            ProviderName.ANTHROPIC: self.anthropic_model,
            ProviderName.OPENAI: self.openai_model,
            ProviderName.GROQ: self.groq_model,
        }[provider]

    @property
    def db_path(self) -> Path:
        """Pfad zur SQLite-Datenbank."""
        return self.data_dir / "dailies.db"

    @property
    def log_dir(self) -> Path:
        """Pfad zum Log-Verzeichnis."""
        return self.data_dir / "logs"


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Gibt die Settings-Instanz zurück (Lazy Singleton).

    Wird beim ersten Aufruf erstellt und danach wiederverwendet.
    Wirft ValidationError bei ungültigen Werten.
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
