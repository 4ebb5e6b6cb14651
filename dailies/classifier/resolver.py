"""Resolver: Wandelt Freitext-Labels der Provider in kanonische Kategorien um.

Auflösung in fester Priorität:
1. Exakter Name (case-insensitive, nur aktive Kategorien)  → 0.95
2. Alias-Tabelle (case-insensitive)                        → 0.90
3. Teilstring in eine der beiden Richtungen                → 0.70
4. Fallback-Kategorie                                      → 0.50

Deterministisch, ohne I/O.  Liest immer den aktuellen Katalog-Snapshot;
ein Reload wirkt ab der nächsten Auflösung.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from dailies.catalog.models import Category
from dailies.catalog.snapshot import CatalogSnapshot, CatalogStore
from dailies.logging_config import get_logger

logger = get_logger("classifier")

# ---------------------------------------------------------------------------
# Konfiguration
# ---------------------------------------------------------------------------

EXACT_CONFIDENCE = 0.95
ALIAS_CONFIDENCE = 0.9
PARTIAL_CONFIDENCE = 0.7
FALLBACK_CONFIDENCE = 0.5
# Alle Provider ausgefallen – Inhalt landet in der Review-Queue
ERROR_FALLBACK_CONFIDENCE = 0.1

_STRIP_CHARS = " \t\r\n\"'`“”"


class MatchType(str, Enum):
    """Wie ein Label auf eine Kategorie abgebildet wurde."""
    EXACT = "exact"
    ALIAS = "alias"
    PARTIAL = "partial"
    FALLBACK = "fallback"
    ERROR_FALLBACK = "error_fallback"


@dataclass(frozen=True)
class CategoryResolution:
    """Ergebnis der Auflösung eines Labels."""

    category: Category
    match_type: MatchType
    confidence: float
    raw_label: str = ""


class CategoryResolver:
    """Löst Provider-Labels gegen den aktuellen Katalog auf.

    Verwendung:
        resolver = CategoryResolver(store)
        resolution = resolver.resolve("US Politics")
        resolution.category.name, resolution.match_type, resolution.confidence
    """

    def __init__(self, store: CatalogStore) -> None:
        self._store = store

    def resolve(
        self,
        raw_label: str,
        provider_confidence: float | None = None,
    ) -> CategoryResolution:
        """Bildet ein Label auf genau eine Kategorie ab (nie None).

        Args:
            raw_label: Label aus der Provider-Antwort.
            provider_confidence: Confidence des Providers.  Aliase mit
                höherer confidence_threshold werden dann übersprungen.
                None = Schwelle nicht prüfen.
        """
        snapshot = self._store.snapshot
        label = (raw_label or "").strip(_STRIP_CHARS)
        label_lower = label.lower()

        if not label_lower:
            return self._fallback(snapshot, raw_label)

        # --- 1. Exakter Name ---
        category = snapshot.find_category_by_name(label_lower)
        if category is not None:
            return CategoryResolution(category, MatchType.EXACT, EXACT_CONFIDENCE, raw_label)

        # --- 2. Alias ---
        alias = snapshot.find_alias(label_lower)
        if alias is not None:
            target = snapshot.get_category(alias.category_id)
            below_threshold = (
                provider_confidence is not None
                and provider_confidence < alias.confidence_threshold
            )
            if target is not None and target.is_active and not below_threshold:
                return CategoryResolution(target, MatchType.ALIAS, ALIAS_CONFIDENCE, raw_label)
            if below_threshold:
                logger.debug(
                    "Alias '%s' übersprungen: Provider-Confidence %.2f < Schwelle %.2f",
                    label, provider_confidence, alias.confidence_threshold,
                )

        # --- 3. Teilstring (Kategorien in Prioritätsreihenfolge) ---
        for category in snapshot.active_categories:
            name_lower = category.name.lower()
            if name_lower in label_lower or label_lower in name_lower:
                return CategoryResolution(
                    category, MatchType.PARTIAL, PARTIAL_CONFIDENCE, raw_label,
                )

        # --- 4. Fallback ---
        logger.info("Label '%s' nicht auflösbar → Fallback-Kategorie", label[:60])
        return self._fallback(snapshot, raw_label)

    def error_fallback(self) -> CategoryResolution:
        """Auflösung für den Fall, dass kein Provider geantwortet hat."""
        return CategoryResolution(
            self._store.snapshot.fallback_category,
            MatchType.ERROR_FALLBACK,
            ERROR_FALLBACK_CONFIDENCE,
        )

    @staticmethod
    def _fallback(snapshot: CatalogSnapshot, raw_label: str) -> CategoryResolution:
        return CategoryResolution(
            snapshot.fallback_category,
            MatchType.FALLBACK,
            FALLBACK_CONFIDENCE,
            raw_label,
        )
