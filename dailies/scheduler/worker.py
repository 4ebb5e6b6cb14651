"""Queue-Worker für die Hintergrundverarbeitung erfasster Inhalte.

Der Aufrufer übergibt Inhalte per submit() und bekommt sofort die Kontrolle
zurück; der Worker verarbeitet die Queue sequenziell:

    speichern → klassifizieren → Klassifizierung persistieren
    → Action-Pipeline → Ergebnisse in Metadaten → Protokolleintrag

Fehler bei einzelnen Inhalten stoppen den Loop nicht.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING

from dailies.catalog.models import ContentItem, ContentStatus
from dailies.classifier.orchestrator import (
    DEFAULT_MIN_CONFIDENCE,
    ClassificationOrchestrator,
    ClassificationResult,
)
from dailies.exceptions import AllProvidersExhausted
from dailies.logging_config import get_logger

if TYPE_CHECKING:
    from dailies.actions.executor import ActionPipelineExecutor
    from dailies.db.database import Database

logger = get_logger("worker")

STOP_TIMEOUT_SECONDS = 60.0


# ---------------------------------------------------------------------------
# Worker-Status
# ---------------------------------------------------------------------------

class WorkerState(str, Enum):
    """Mögliche Zustände des Workers."""
    STOPPED = "stopped"       # Nicht gestartet oder beendet
    IDLE = "idle"             # Aktiv, wartet auf Inhalte
    PROCESSING = "processing" # Gerade bei der Verarbeitung eines Inhalts


@dataclass
class WorkerStatus:
    """Aktueller Status des Workers (für Health-Check und Logs)."""
    state: WorkerState = WorkerState.STOPPED
    items_processed: int = 0
    items_review: int = 0
    items_errored: int = 0
    current_content_hash: str | None = None
    last_processed_at: datetime | None = None
    last_error: str | None = None


# ---------------------------------------------------------------------------
# Worker
# ---------------------------------------------------------------------------

class ClassificationWorker:
    """Verarbeitet eingereichte Inhalte im Hintergrund.

    Verwendung:
        worker = ClassificationWorker(db, orchestrator, executor)
        worker.start()
        await worker.submit(item)
        ...
        await worker.stop()     # verarbeitet die Queue noch zu Ende
    """

    def __init__(
        self,
        database: Database,
        orchestrator: ClassificationOrchestrator,
        executor: ActionPipelineExecutor,
        queue_size: int = 100,
        use_consensus: bool = False,
        min_confidence: float = DEFAULT_MIN_CONFIDENCE,
    ) -> None:
        self._db = database
        self._orchestrator = orchestrator
        self._executor = executor
        self._use_consensus = use_consensus
        self._min_confidence = min_confidence

        self._queue: asyncio.Queue[ContentItem | None] = asyncio.Queue(maxsize=queue_size)
        self._task: asyncio.Task[None] | None = None

        self.status = WorkerStatus()

    # --- Steuerung ---

    def start(self) -> asyncio.Task[None]:
        """Startet den Worker-Loop als asyncio Background-Task.

        Raises:
            RuntimeError: Wenn der Worker bereits läuft.
        """
        if self.is_running:
            raise RuntimeError("Worker läuft bereits")

        self.status.state = WorkerState.IDLE
        self._task = asyncio.create_task(self._run_loop(), name="classification-worker")
        # Fehler im Task loggen statt stillschweigend verschlucken
        self._task.add_done_callback(self._on_task_done)
        logger.info("Worker gestartet (Queue-Größe %d)", self._queue.maxsize)
        return self._task

    async def stop(self) -> None:
        """Stoppt den Worker, nachdem die bereits eingereichten Inhalte verarbeitet sind."""
        if self._task is None or self._task.done():
            logger.debug("Worker.stop() aufgerufen, aber kein aktiver Task")
            return

        logger.info("Worker wird gestoppt (%d Inhalt(e) in der Queue)...", self._queue.qsize())
        await self._queue.put(None)

        try:
            await asyncio.wait_for(self._task, timeout=STOP_TIMEOUT_SECONDS)
        except asyncio.TimeoutError:
            logger.warning(
                "Worker-Task hat nach %.0fs nicht beendet – wird abgebrochen",
                STOP_TIMEOUT_SECONDS,
            )
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

        self.status.state = WorkerState.STOPPED
        self.status.current_content_hash = None
        logger.info("Worker gestoppt")

    async def submit(self, item: ContentItem) -> None:
        """Reiht einen Inhalt zur Verarbeitung ein (wartet nur bei voller Queue).

        Raises:
            RuntimeError: Wenn der Worker nicht läuft.
        """
        if not self.is_running:
            raise RuntimeError("Worker nicht gestartet – worker.start() aufrufen")
        await self._queue.put(item)
        logger.debug("Inhalt %s eingereiht", item.content_hash[:12])

    async def join(self) -> None:
        """Wartet, bis alle eingereihten Inhalte verarbeitet sind."""
        await self._queue.join()

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    # --- Hauptschleife ---

    async def _run_loop(self) -> None:
        logger.info("Worker-Loop gestartet")
        while True:
            item = await self._queue.get()
            try:
                if item is None:
                    break
                await self._process_safely(item)
            finally:
                self._queue.task_done()
        logger.info("Worker-Loop beendet")

    async def _process_safely(self, item: ContentItem) -> None:
        self.status.state = WorkerState.PROCESSING
        self.status.current_content_hash = item.content_hash
        try:
            await self.process_item(item)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            # Fehler bei einem Inhalt darf den Worker nie stoppen
            self.status.items_errored += 1
            self.status.last_error = f"{item.content_hash[:12]}: {exc}"
            logger.exception("Unerwarteter Fehler bei Inhalt %s: %s", item.content_hash[:12], exc)
        finally:
            self.status.state = WorkerState.IDLE
            self.status.current_content_hash = None
            self.status.last_processed_at = datetime.now(timezone.utc)

    async def process_item(self, item: ContentItem) -> ContentItem:
        """Verarbeitet einen Inhalt vollständig und gibt den gespeicherten Stand zurück."""
        start = time.monotonic()
        stored = await self._db.upsert_content_item(item)
        if stored.id is None:
            raise RuntimeError(f"Inhalt {item.content_hash[:12]} ohne ID gespeichert")
        content_id = stored.id

        classification = await self._classify(stored)

        if classification.needs_manual_review:
            status = ContentStatus.NEEDS_REVIEW
        else:
            status = ContentStatus.CLASSIFIED
        await self._db.update_content_classification(
            content_id,
            category_id=classification.category_id,
            raw_label=classification.raw_label,
            confidence=classification.confidence,
            status=status,
        )
        await self._db.merge_content_metadata(
            content_id, {"classification": classification.to_dict()},
        )
        await self._db.append_processing_log(
            "classification",
            "review" if classification.needs_manual_review else "success",
            content_id=content_id,
            provider=classification.provider_name,
            details=classification.to_dict(),
            processing_time_ms=classification.timing.get("total_ms", 0.0),
        )

        pipeline = await self._executor.execute_actions_for_category(
            stored, classification.category_id,
        )
        await self._db.merge_content_metadata(content_id, {
            "action_results": {
                name: result.to_dict() for name, result in pipeline.results.items()
            },
            "action_metrics": pipeline.metrics,
        })
        await self._db.append_processing_log(
            "action_pipeline",
            "success" if pipeline.errors == 0 else "partial",
            content_id=content_id,
            details={
                "executed": pipeline.executed,
                "total": pipeline.total,
                "errors": pipeline.errors,
                "error_details": pipeline.error_details,
            },
            processing_time_ms=pipeline.metrics.get("total_ms", 0.0),
        )

        if classification.needs_manual_review:
            self.status.items_review += 1
            await self._db.mark_needs_review(
                content_id,
                "; ".join(classification.reasons) or "Confidence unter Schwelle",
            )
        else:
            await self._db.update_content_status(content_id, ContentStatus.PROCESSED)
        self.status.items_processed += 1

        logger.info(
            "Inhalt %d verarbeitet: %s (%s, %.2f), Actions %d/%d in %.0fms",
            content_id,
            classification.category_name,
            classification.match_type.value,
            classification.confidence,
            pipeline.executed,
            pipeline.total,
            (time.monotonic() - start) * 1000,
        )
        return await self._db.get_content_item(content_id) or stored

    async def _classify(self, item: ContentItem) -> ClassificationResult:
        try:
            return await self._orchestrator.classify(
                item,
                use_consensus=self._use_consensus,
                min_confidence=self._min_confidence,
            )
        except AllProvidersExhausted as exc:
            logger.warning(
                "Kein Provider für Inhalt %d verfügbar – Fallback-Kategorie: %s",
                item.id, exc,
            )
            await self._db.append_processing_log(
                "classification",
                "failed",
                content_id=item.id,
                error_message=str(exc),
            )
            return self._orchestrator.error_fallback_result(exc)

    @staticmethod
    def _on_task_done(task: asyncio.Task[None]) -> None:
        """Callback für den asyncio-Task: loggt unerwartete Fehler."""
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "Worker-Task unerwartet beendet: %s: %s",
                type(exc).__name__, exc,
            )
