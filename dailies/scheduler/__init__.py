"""Scheduler – Hintergrundverarbeitung erfasster Inhalte.

Öffentliche API:
- ClassificationWorker: Queue-Worker (klassifizieren → Actions → speichern)
- WorkerState: Zustandsenum (stopped/idle/processing)
- WorkerStatus: Aktueller Status für Health-Check und Logs
"""

from dailies.scheduler.worker import ClassificationWorker, WorkerState, WorkerStatus

__all__ = [
    "ClassificationWorker",
    "WorkerState",
    "WorkerStatus",
]
