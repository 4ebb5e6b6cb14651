"""In-Process-Cache für Klassifizierungsergebnisse.

Schlüssel ist der Content-Hash.  Begrenzte Größe mit FIFO-Verdrängung:
beim Überschreiten wird der älteste *eingefügte* Eintrag entfernt –
Lesezugriffe ändern die Reihenfolge nicht (kein LRU).

Der Cache wird dem Orchestrator per Konstruktor übergeben; Lese- und
Schreibzugriffe laufen über einen asyncio.Lock.
"""

from __future__ import annotations

import asyncio
from collections import OrderedDict
from typing import TYPE_CHECKING

from dailies.logging_config import get_logger

if TYPE_CHECKING:
    from dailies.classifier.orchestrator import ClassificationResult

logger = get_logger("classifier")

DEFAULT_MAX_SIZE = 1000


class ClassificationCache:
    """Begrenzter Cache Content-Hash → ClassificationResult."""

    def __init__(self, max_size: int = DEFAULT_MAX_SIZE) -> None:
        if max_size < 1:
            raise ValueError("max_size muss mindestens 1 sein")
        self.max_size = max_size
        self._entries: OrderedDict[str, ClassificationResult] = OrderedDict()
        self._lock = asyncio.Lock()
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    async def get(self, content_hash: str) -> ClassificationResult | None:
        async with self._lock:
            result = self._entries.get(content_hash)
            if result is None:
                self.misses += 1
            else:
                self.hits += 1
            return result

    async def put(self, content_hash: str, result: ClassificationResult) -> None:
        """Speichert ein Ergebnis; verdrängt bei Überlauf den ältesten Eintrag.

        Ein erneutes Einfügen desselben Schlüssels aktualisiert den Wert,
        behält aber die ursprüngliche Einfüge-Position.
        """
        async with self._lock:
            self._entries[content_hash] = result
            while len(self._entries) > self.max_size:
                evicted, _ = self._entries.popitem(last=False)
                self.evictions += 1
                logger.debug("Cache voll – ältester Eintrag verdrängt: %s", evicted[:12])

    async def clear(self) -> None:
        async with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.info("Klassifizierungs-Cache geleert (%d Einträge)", count)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, content_hash: object) -> bool:
        return content_hash in self._entries

    def stats(self) -> dict[str, int]:
        return {
            "size": len(self._entries),
            "max_size": self.max_size,
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
        }
