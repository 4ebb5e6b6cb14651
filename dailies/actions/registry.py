"""Processor-Registry: symbolischer Handler-Name → async Funktion.

Wird einmal beim Start befüllt und danach nur gelesen.  Die Handler-Namen
stammen aus der Spalte `actions.service_handler` (z.B. "political.analyzeBias").
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterator
from typing import Any

from dailies.catalog.models import ContentItem
from dailies.logging_config import get_logger

logger = get_logger("actions")

Handler = Callable[[ContentItem, dict[str, Any]], Awaitable[dict[str, Any]]]


class ProcessorRegistry:
    """Zuordnung Handler-Name → Processor-Funktion."""

    def __init__(self) -> None:
        self._handlers: dict[str, Handler] = {}

    def register(self, name: str, handler: Handler) -> None:
        """Registriert einen Handler.

        Raises:
            ValueError: Name bereits vergeben.
        """
        if name in self._handlers:
            raise ValueError(f"Handler bereits registriert: {name}")
        self._handlers[name] = handler
        logger.debug("Processor registriert: %s", name)

    def get(self, name: str) -> Handler | None:
        return self._handlers.get(name)

    def names(self) -> frozenset[str]:
        return frozenset(self._handlers)

    def by_prefix(self) -> dict[str, list[str]]:
        """Handler gruppiert nach Präfix (political, general, ...)."""
        groups: dict[str, list[str]] = {}
        for name in sorted(self._handlers):
            prefix = name.split(".", 1)[0]
            groups.setdefault(prefix, []).append(name)
        return groups

    def __contains__(self, name: object) -> bool:
        return name in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._handlers))
