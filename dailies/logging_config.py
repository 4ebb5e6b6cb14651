"""Logging für dailies.

Eine Logger-Hierarchie unter "dailies"; jede Komponente bekommt einen
eigenen Sublogger, damit sich Worker-, Provider- und Action-Meldungen in
einer gemeinsamen Datei per grep trennen lassen:

    2025-01-01 12:00:00 | INFO     | dailies.worker | Inhalt 17 verarbeitet: ...

Ausgabe geht immer nach stdout; mit log_dir zusätzlich in eine rotierende
Datei dailies.log.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

ROOT_LOGGER_NAME = "dailies"

COMPONENTS = frozenset({
    "app",          # Start, Shutdown, CLI
    "catalog",      # Snapshot-Aufbau und Reload
    "classifier",   # Orchestrator, Resolver, Cache
    "providers",    # KI-Adapter
    "actions",      # Registry, Executor, Processor
    "db",           # SQLite
    "worker",       # Queue-Verarbeitung
})

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_NAME = "dailies.log"

MAX_BYTES = 5 * 1024 * 1024
BACKUP_COUNT = 3

# Fremd-Logger und ihr Mindest-Level; die SDKs loggen sonst jeden Request
THIRD_PARTY_LEVELS: dict[str, int] = {
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "anthropic": logging.WARNING,
    "openai": logging.WARNING,
    "groq": logging.WARNING,
    "aiosqlite": logging.WARNING,
}


def _console_handler(level: int, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def _file_handler(log_dir: Path, level: int, formatter: logging.Formatter) -> logging.Handler:
    """Rotierende Logdatei.

    Raises:
        OSError: Verzeichnis nicht anlegbar oder Datei nicht beschreibbar.
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_dir / LOG_FILE_NAME,
        maxBytes=MAX_BYTES,
        backupCount=BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(log_level: str = "INFO", log_dir: Path | None = None) -> None:
    """Richtet die dailies-Logger ein; mehrfacher Aufruf ersetzt die Handler.

    Args:
        log_level: DEBUG, INFO, WARNING oder ERROR (unbekannt → INFO).
        log_dir: Verzeichnis der Logdatei, None für reines stdout-Logging.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(_console_handler(level, formatter))

    if log_dir is not None:
        try:
            root.addHandler(_file_handler(log_dir, level, formatter))
        except OSError as e:
            root.warning("Logdatei in %s nicht nutzbar (%s), nur stdout", log_dir, e)

    for name, minimum in THIRD_PARTY_LEVELS.items():
        logging.getLogger(name).setLevel(minimum)


def get_logger(component: str) -> logging.Logger:
    """Logger 'dailies.{component}'.

    Raises:
        ValueError: Unbekannte Komponente (siehe COMPONENTS).
    """
    if component not in COMPONENTS:
        raise ValueError(f"Unbekannte Log-Komponente: {component}")
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{component}")
