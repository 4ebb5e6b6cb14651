"""Unveränderlicher Katalog-Snapshot mit atomarem Reload.

Kategorien, Matcher, Aliase und Actions werden einmal geladen, beim Aufbau
validiert und danach nur noch gelesen.  Ein Reload baut einen komplett
neuen Snapshot und tauscht die Referenz im CatalogStore in einem Schritt –
laufende Auflösungen sehen nie einen halb aktualisierten Katalog.

Validierung beim Aufbau (→ ConfigurationInvalid):
- genau eine aktive Fallback-Kategorie
- keine doppelten Kategorienamen / Aliase (case-insensitive)
- Matcher, Aliase und Zuordnungen verweisen nur auf existierende Einträge
- execution_order ist pro Kategorie eindeutig
- Handler-Namen sind registriert (falls Registry-Namen übergeben)
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Collection, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType

from dailies.catalog.models import (
    Action,
    Category,
    CategoryAction,
    CategoryAlias,
    Matcher,
    PlannedAction,
)
from dailies.exceptions import ConfigurationInvalid
from dailies.logging_config import get_logger

logger = get_logger("catalog")


@dataclass
class CatalogData:
    """Rohdaten eines Katalogs, wie sie der Persistenz-Layer liefert."""

    categories: list[Category] = field(default_factory=list)
    matchers: list[Matcher] = field(default_factory=list)
    aliases: list[CategoryAlias] = field(default_factory=list)
    actions: list[Action] = field(default_factory=list)
    category_actions: list[CategoryAction] = field(default_factory=list)


class CatalogSnapshot:
    """Validierter, schreibgeschützter Katalog-Zustand.

    Verwendung:
        snapshot = CatalogSnapshot.from_data(data, known_handlers=registry.names())
        snapshot.fallback_category
        snapshot.actions_for_category(category_id)
    """

    def __init__(
        self,
        data: CatalogData,
        known_handlers: Collection[str] | None = None,
    ) -> None:
        problems = _validate(data, known_handlers)
        if problems:
            raise ConfigurationInvalid("Katalog ungültig", problems)

        self.loaded_at = datetime.now(timezone.utc)

        self._categories: Mapping[int, Category] = MappingProxyType(
            {c.id: c for c in data.categories}
        )
        self._active_categories: tuple[Category, ...] = tuple(sorted(
            (c for c in data.categories if c.is_active),
            key=lambda c: (c.priority, c.name.lower()),
        ))
        self._names: Mapping[str, Category] = MappingProxyType(
            {c.name.lower(): c for c in self._active_categories}
        )
        self._fallback = next(c for c in self._active_categories if c.is_fallback)

        self._aliases: Mapping[str, CategoryAlias] = MappingProxyType(
            {a.alias.strip().lower(): a for a in data.aliases}
        )
        self._matchers: tuple[Matcher, ...] = tuple(
            m for m in data.matchers
            if m.is_active and self._is_active_category(m.category_id)
        )

        actions = {a.id: a for a in data.actions}
        plans: dict[int, list[PlannedAction]] = {}
        for ca in data.category_actions:
            action = actions[ca.action_id]
            if not (ca.is_active and action.is_active):
                continue
            plans.setdefault(ca.category_id, []).append(
                PlannedAction(
                    action=action,
                    execution_order=ca.execution_order,
                    config=dict(ca.config),
                )
            )
        self._plans: Mapping[int, tuple[PlannedAction, ...]] = MappingProxyType({
            category_id: tuple(sorted(items, key=lambda p: p.execution_order))
            for category_id, items in plans.items()
        })

    @classmethod
    def from_data(
        cls,
        data: CatalogData,
        known_handlers: Collection[str] | None = None,
    ) -> "CatalogSnapshot":
        return cls(data, known_handlers)

    # --- Kategorien ---

    @property
    def active_categories(self) -> tuple[Category, ...]:
        """Aktive Kategorien, sortiert nach Priorität und Name."""
        return self._active_categories

    @property
    def classifiable_categories(self) -> tuple[Category, ...]:
        """Aktive Kategorien ohne Fallback (für den Prompt)."""
        return tuple(c for c in self._active_categories if not c.is_fallback)

    @property
    def fallback_category(self) -> Category:
        return self._fallback

    def get_category(self, category_id: int) -> Category | None:
        return self._categories.get(category_id)

    def find_category_by_name(self, name: str) -> Category | None:
        """Aktive Kategorie per Name (case-insensitive)."""
        return self._names.get(name.strip().lower())

    def _is_active_category(self, category_id: int) -> bool:
        category = self._categories.get(category_id)
        return category is not None and category.is_active

    # --- Aliase & Matcher ---

    def find_alias(self, label: str) -> CategoryAlias | None:
        """Alias-Lookup (case-insensitive)."""
        return self._aliases.get(label.strip().lower())

    @property
    def alias_count(self) -> int:
        return len(self._aliases)

    @property
    def matchers(self) -> tuple[Matcher, ...]:
        """Aktive Matcher aktiver Kategorien."""
        return self._matchers

    # --- Actions ---

    def actions_for_category(self, category_id: int) -> tuple[PlannedAction, ...]:
        """Aktive Actions einer Kategorie in aufsteigender Reihenfolge."""
        return self._plans.get(category_id, ())

    def stats(self) -> dict[str, int]:
        """Anzahl Einträge pro Typ (für Logging und Health-Check)."""
        return {
            "categories": len(self._active_categories),
            "aliases": len(self._aliases),
            "matchers": len(self._matchers),
            "pipelines": len(self._plans),
            "planned_actions": sum(len(p) for p in self._plans.values()),
        }


def _validate(data: CatalogData, known_handlers: Collection[str] | None) -> list[str]:
    """Sammelt alle Konsistenzprobleme (leere Liste = gültig)."""
    problems: list[str] = []
    category_ids = {c.id for c in data.categories}
    action_by_id = {a.id: a for a in data.actions}

    # Fallback-Kategorie
    fallbacks = [c for c in data.categories if c.is_active and c.is_fallback]
    if not fallbacks:
        problems.append("keine aktive Fallback-Kategorie")
    elif len(fallbacks) > 1:
        names = ", ".join(c.name for c in fallbacks)
        problems.append(f"mehr als eine Fallback-Kategorie ({names})")

    # Kategorienamen eindeutig
    seen_names: set[str] = set()
    for c in data.categories:
        key = c.name.strip().lower()
        if key in seen_names:
            problems.append(f"doppelter Kategoriename '{c.name}'")
        seen_names.add(key)

    # Aliase
    seen_aliases: set[str] = set()
    for a in data.aliases:
        key = a.alias.strip().lower()
        if key in seen_aliases:
            problems.append(f"doppelter Alias '{a.alias}'")
        seen_aliases.add(key)
        if a.category_id not in category_ids:
            problems.append(f"Alias '{a.alias}' verweist auf unbekannte Kategorie {a.category_id}")

    # Matcher
    for m in data.matchers:
        if m.category_id not in category_ids:
            problems.append(
                f"Matcher '{m.pattern}' verweist auf unbekannte Kategorie {m.category_id}"
            )

    # Category-Actions
    orders: dict[int, set[int]] = {}
    for ca in data.category_actions:
        if ca.category_id not in category_ids:
            problems.append(
                f"Action-Zuordnung verweist auf unbekannte Kategorie {ca.category_id}"
            )
            continue
        action = action_by_id.get(ca.action_id)
        if action is None:
            problems.append(f"Action-Zuordnung verweist auf unbekannte Action {ca.action_id}")
            continue
        if not (ca.is_active and action.is_active):
            continue

        used = orders.setdefault(ca.category_id, set())
        if ca.execution_order in used:
            problems.append(
                f"doppelte execution_order {ca.execution_order} in Kategorie {ca.category_id}"
            )
        used.add(ca.execution_order)

        if known_handlers is not None and action.service_handler not in known_handlers:
            problems.append(
                f"Action '{action.name}' nutzt unbekannten Handler '{action.service_handler}'"
            )

    return problems


# ---------------------------------------------------------------------------
# Store mit atomarem Austausch
# ---------------------------------------------------------------------------

CatalogLoader = Callable[[], Awaitable[CatalogData]]


class CatalogStore:
    """Hält den aktuell gültigen Snapshot.

    Ein fehlgeschlagener Reload lässt den bisherigen Snapshot aktiv.
    """

    def __init__(
        self,
        loader: CatalogLoader | None = None,
        known_handlers: Collection[str] | None = None,
    ) -> None:
        self._loader = loader
        self._known_handlers = known_handlers
        self._snapshot: CatalogSnapshot | None = None
        self.version = 0

    @classmethod
    def from_data(
        cls,
        data: CatalogData,
        known_handlers: Collection[str] | None = None,
    ) -> "CatalogStore":
        """Store mit statischem Katalog (ohne Loader, z.B. für Tests)."""
        store = cls(known_handlers=known_handlers)
        store.replace(data)
        return store

    @property
    def is_loaded(self) -> bool:
        return self._snapshot is not None

    @property
    def snapshot(self) -> CatalogSnapshot:
        """Aktueller Snapshot.

        Raises:
            RuntimeError: Wenn noch kein Katalog geladen wurde.
        """
        if self._snapshot is None:
            raise RuntimeError("Katalog nicht geladen – await store.reload() aufrufen")
        return self._snapshot

    def replace(self, data: CatalogData) -> CatalogSnapshot:
        """Validiert `data` und tauscht den Snapshot aus.

        Raises:
            ConfigurationInvalid: Katalog inkonsistent; alter Snapshot bleibt aktiv.
        """
        snapshot = CatalogSnapshot.from_data(data, self._known_handlers)
        self._snapshot = snapshot
        self.version += 1
        logger.info("Katalog v%d aktiv: %s", self.version, snapshot.stats())
        return snapshot

    async def reload(self) -> CatalogSnapshot:
        """Lädt den Katalog über den Loader neu.

        Raises:
            RuntimeError: Kein Loader konfiguriert.
            ConfigurationInvalid: Katalog inkonsistent; alter Snapshot bleibt aktiv.
        """
        if self._loader is None:
            raise RuntimeError("CatalogStore hat keinen Loader")
        data = await self._loader()
        try:
            return self.replace(data)
        except ConfigurationInvalid as exc:
            logger.error("Katalog-Reload abgelehnt: %s", exc)
            raise
