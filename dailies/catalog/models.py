"""Pydantic-Modelle für Inhalte und Katalog-Konfiguration.

Katalog = Kategorien, Matcher, Aliase, Actions und deren Zuordnung.
Die Katalog-Modelle sind frozen – Änderungen laufen ausschließlich über
einen neuen CatalogSnapshot (siehe snapshot.py).
"""

from __future__ import annotations

import hashlib
from enum import Enum
from typing import Any, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ContentType(str, Enum):
    """Art des erfassten Inhalts."""
    ARTICLE = "article"
    VIDEO = "video"
    POST = "post"
    OTHER = "other"


class ContentStatus(str, Enum):
    """Verarbeitungsstatus eines Inhalts."""
    PENDING = "pending"
    CLASSIFIED = "classified"
    PROCESSED = "processed"
    NEEDS_REVIEW = "needs_review"


class MatcherType(str, Enum):
    """Art eines Matchers (Hinweis für den Prompt, nie harte Regel)."""
    DOMAIN = "domain"
    KEYWORD = "keyword"


def compute_content_hash(title: str, url: str, text: str) -> str:
    """SHA-256 über "title|url|text" – Dedup-Schlüssel für Inhalte."""
    payload = f"{title}|{url}|{text}".encode("utf-8")
    return hashlib.sha256(payload).hexdigest()


# ---------------------------------------------------------------------------
# Inhalt
# ---------------------------------------------------------------------------

class ContentItem(BaseModel):
    """Ein erfasster Inhalt (Artikel, Video, Post).

    Identität und Rohdaten sind nach der Erfassung unveränderlich; die
    Pipeline setzt nur Klassifizierungs- und Statusfelder.
    """

    model_config = ConfigDict(extra="ignore")

    id: Optional[int] = None
    title: str = ""
    raw_content: str = ""
    url: str = ""
    source_domain: str = ""
    content_hash: str = ""
    content_type: ContentType = ContentType.ARTICLE

    # Von der Pipeline gesetzt
    category_id: Optional[int] = None
    confidence: Optional[float] = None
    status: ContentStatus = ContentStatus.PENDING
    metadata: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _fill_derived_fields(self) -> "ContentItem":
        """Content-Hash und Domain ergänzen, falls nicht mitgeliefert."""
        if not self.content_hash:
            self.content_hash = compute_content_hash(self.title, self.url, self.raw_content)
        if not self.source_domain and self.url:
            self.source_domain = urlparse(self.url).netloc.lower()
        return self

    @property
    def clean_domain(self) -> str:
        """Domain ohne "www."-Präfix, lowercase."""
        domain = self.source_domain.lower().strip()
        return domain[4:] if domain.startswith("www.") else domain


# ---------------------------------------------------------------------------
# Katalog
# ---------------------------------------------------------------------------

class Category(BaseModel):
    """Kanonische Kategorie."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    description: str = ""
    priority: int = 50
    is_active: bool = True
    is_fallback: bool = False


class Matcher(BaseModel):
    """Domain- oder Keyword-Muster als Prompt-Hinweis für eine Kategorie."""

    model_config = ConfigDict(frozen=True)

    id: Optional[int] = None
    category_id: int
    pattern: str
    matcher_type: MatcherType = MatcherType.DOMAIN
    is_exclusion: bool = False
    is_active: bool = True


class CategoryAlias(BaseModel):
    """Freitext-Label eines Providers → Kategorie."""

    model_config = ConfigDict(frozen=True)

    id: Optional[int] = None
    alias: str
    category_id: int
    confidence_threshold: float = Field(default=0.70, ge=0.0, le=1.0)


class Action(BaseModel):
    """Benannter Analyseschritt mit symbolischem Handler-Namen."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    service_handler: str
    description: str = ""
    is_active: bool = True


class CategoryAction(BaseModel):
    """Zuordnung Kategorie ↔ Action mit Ausführungsreihenfolge."""

    model_config = ConfigDict(frozen=True)

    category_id: int
    action_id: int
    execution_order: int
    config: dict[str, Any] = Field(default_factory=dict)
    is_active: bool = True


class PlannedAction(BaseModel):
    """Aufgelöster Pipeline-Schritt: Action + Reihenfolge + Konfiguration."""

    model_config = ConfigDict(frozen=True)

    action: Action
    execution_order: int
    config: dict[str, Any] = Field(default_factory=dict)
