"""Einstiegspunkt von dailies.

Lifecycle:
1. startup()        – Logging, Config-Validierung (synchron)
2. build_services() – DB, Katalog, Provider, Processor, Orchestrator, Worker
3. ... Inhalte werden eingereicht und im Hintergrund verarbeitet ...
4. shutdown()       – Worker stoppen, Provider und DB schließen

Kommandozeile:
    python -m dailies                 # JSON-Lines von stdin
    python -m dailies items.jsonl     # JSON-Lines aus Datei
    python -m dailies --health        # nur Health-Check ausgeben
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from dailies import __version__
from dailies.actions import (
    ActionPipelineExecutor,
    PoliticalContentAnalyzer,
    ProcessorRegistry,
    register_default_processors,
)
from dailies.catalog import CatalogStore
from dailies.catalog.models import ContentItem
from dailies.classifier import ClassificationCache, ClassificationOrchestrator
from dailies.config import Settings, get_settings
from dailies.db import Database
from dailies.health import check_all
from dailies.logging_config import get_logger, setup_logging
from dailies.providers import ProviderAdapter, build_providers
from dailies.scheduler import ClassificationWorker

logger = get_logger("app")


@dataclass
class Services:
    """Laufzeit-Objekte einer gestarteten Instanz."""

    settings: Settings
    database: Database
    providers: list[ProviderAdapter]
    catalog: CatalogStore
    registry: ProcessorRegistry
    orchestrator: ClassificationOrchestrator
    executor: ActionPipelineExecutor
    worker: ClassificationWorker


# --- Startup / Shutdown ---

def startup() -> Settings:
    """Initialisiert Logging und prüft die Konfiguration.

    Ohne gültige Config wird der Prozess beendet.
    """
    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"FATAL: Konfigurationsfehler – {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(
        log_level=settings.log_level.value,
        log_dir=settings.log_dir,
    )

    logger.info("=" * 60)
    logger.info("dailies v%s startet", __version__)
    logger.info("=" * 60)
    logger.info("Provider-Reihenfolge: %s", settings.provider_order)
    logger.info(
        "Modus: %s, Mindest-Confidence: %.2f",
        "Consensus" if settings.use_consensus else "Fallback-Kette",
        settings.min_confidence,
    )
    logger.info("Action-Timeout: %.0fs", settings.action_timeout_seconds)
    logger.info("Datenverzeichnis: %s", settings.data_dir)
    return settings


async def build_services(settings: Settings) -> Services:
    """Baut alle Komponenten auf und startet den Worker.

    Raises:
        ConfigurationInvalid: Gespeicherter Katalog ist inkonsistent.
    """
    database = Database(settings.db_path)
    await database.initialize()
    await database.seed_defaults()

    providers = build_providers(settings)

    registry = ProcessorRegistry()
    register_default_processors(registry, PoliticalContentAnalyzer(providers))

    catalog = CatalogStore(loader=database.load_catalog, known_handlers=registry.names())
    await catalog.reload()

    orchestrator = ClassificationOrchestrator(
        providers,
        catalog,
        cache=ClassificationCache(max_size=settings.cache_max_size),
        consensus_max_providers=settings.consensus_max_providers,
    )
    executor = ActionPipelineExecutor(
        registry, catalog, timeout_seconds=settings.action_timeout_seconds,
    )
    worker = ClassificationWorker(
        database,
        orchestrator,
        executor,
        queue_size=settings.worker_queue_size,
        use_consensus=settings.use_consensus,
        min_confidence=settings.min_confidence,
    )
    worker.start()

    return Services(
        settings=settings,
        database=database,
        providers=providers,
        catalog=catalog,
        registry=registry,
        orchestrator=orchestrator,
        executor=executor,
        worker=worker,
    )


async def shutdown(services: Services) -> None:
    """Graceful Shutdown.  Reihenfolge: Worker, Provider, Datenbank."""
    logger.info("Shutdown eingeleitet...")

    await services.worker.stop()

    for provider in services.providers:
        try:
            await provider.close()
        except Exception as exc:
            logger.error("Fehler beim Schließen von Provider %s: %s", provider.name, exc)

    await services.database.close()

    logger.info(
        "dailies beendet: %d verarbeitet, %d Review, %d Fehler",
        services.worker.status.items_processed,
        services.worker.status.items_review,
        services.worker.status.items_errored,
    )


# --- Eingabe ---

def parse_items(lines: Iterable[str]) -> Iterable[ContentItem]:
    """Liest ContentItems aus JSON-Lines; ungültige Zeilen werden geloggt und übersprungen."""
    for number, line in enumerate(lines, start=1):
        line = line.strip()
        if not line:
            continue
        try:
            yield ContentItem.model_validate(json.loads(line))
        except (json.JSONDecodeError, ValidationError) as exc:
            logger.warning("Zeile %d übersprungen: %s", number, exc)


async def async_main(source: Path | None = None) -> int:
    settings = startup()
    services = await build_services(settings)
    submitted = 0
    try:
        stream = source.open(encoding="utf-8") if source else sys.stdin
        try:
            for item in parse_items(stream):
                await services.worker.submit(item)
                submitted += 1
        finally:
            if source:
                stream.close()
        await services.worker.join()
    finally:
        await shutdown(services)

    logger.info("%d Inhalt(e) eingereicht", submitted)
    return 0 if services.worker.status.items_errored == 0 else 1


async def async_health() -> dict[str, Any]:
    settings = startup()
    return await check_all(settings)


# --- Haupteinstiegspunkt ---

def run(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="dailies",
        description="Inhalte klassifizieren und kategoriespezifische Actions ausführen",
    )
    parser.add_argument("source", nargs="?", type=Path, help="JSON-Lines-Datei (Default: stdin)")
    parser.add_argument("--health", action="store_true", help="Health-Check ausgeben und beenden")
    args = parser.parse_args(argv)

    if args.health:
        report = asyncio.run(async_health())
        print(json.dumps(report, indent=2))
        sys.exit(0 if report["status"] != "unhealthy" else 1)

    sys.exit(asyncio.run(async_main(args.source)))


if __name__ == "__main__":
    run()
