"""Katalog – Inhaltsmodell und Kategorie-/Action-Konfiguration.

Öffentliche API:
- ContentItem, Category, Matcher, CategoryAlias, Action, CategoryAction
- CatalogData: Rohdaten aus dem Persistenz-Layer
- CatalogSnapshot / CatalogStore: validierter Katalog mit atomarem Reload
"""

from dailies.catalog.models import (
    Action,
    Category,
    CategoryAction,
    CategoryAlias,
    ContentItem,
    ContentStatus,
    ContentType,
    Matcher,
    MatcherType,
    PlannedAction,
    compute_content_hash,
)
from dailies.catalog.snapshot import CatalogData, CatalogSnapshot, CatalogStore

__all__ = [
    # Inhalt
    "ContentItem",
    "ContentStatus",
    "ContentType",
    "compute_content_hash",
    # Katalog
    "Action",
    "Category",
    "CategoryAction",
    "CategoryAlias",
    "Matcher",
    "MatcherType",
    "PlannedAction",
    # Snapshot
    "CatalogData",
    "CatalogSnapshot",
    "CatalogStore",
]
