"""Action-Pipeline: führt die Actions einer Kategorie nacheinander aus.

Reihenfolge kommt aus dem Katalog-Snapshot (execution_order aufsteigend).
Jede Action läuft mit eigener Deadline; Fehler einer Action landen als
Eintrag im Ergebnis und brechen die Pipeline nicht ab:

- Handler nicht registriert → ActionNotFound
- Deadline überschritten   → ActionTimeout (nur diese Action wird abgebrochen)
- Exception im Handler     → ActionError
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from dailies.actions.registry import ProcessorRegistry
from dailies.catalog.models import ContentItem, PlannedAction
from dailies.catalog.snapshot import CatalogStore
from dailies.exceptions import ActionError, ActionFailure, ActionNotFound, ActionTimeout
from dailies.logging_config import get_logger

logger = get_logger("actions")

DEFAULT_ACTION_TIMEOUT = 30.0


# ---------------------------------------------------------------------------
# Ergebnis-Datenstrukturen
# ---------------------------------------------------------------------------

@dataclass
class ActionExecutionResult:
    """Ergebnis einer einzelnen Action."""

    action_name: str
    processor: str
    success: bool
    action_id: Optional[int] = None
    result: Optional[dict[str, Any]] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    execution_ms: float = 0.0
    total_ms: float = 0.0
    executed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "success": self.success,
            "processor": self.processor,
            "action_id": self.action_id,
            "executed_at": self.executed_at.isoformat(),
            "execution_ms": round(self.execution_ms, 1),
            "total_ms": round(self.total_ms, 1),
        }
        if self.success:
            data["result"] = self.result
        else:
            data["error"] = self.error
            data["error_type"] = self.error_type
        return data


@dataclass
class PipelineResult:
    """Gesamtergebnis der Action-Pipeline einer Kategorie."""

    category_id: int
    results: dict[str, ActionExecutionResult] = field(default_factory=dict)
    executed: int = 0
    total: int = 0
    errors: int = 0
    error_details: list[dict[str, Any]] = field(default_factory=list)
    metrics: dict[str, Any] = field(default_factory=dict)

    @property
    def success_rate(self) -> float:
        return self.executed / self.total if self.total else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "results": {name: r.to_dict() for name, r in self.results.items()},
            "executed": self.executed,
            "total": self.total,
            "errors": self.errors,
            "error_details": list(self.error_details),
            "metrics": dict(self.metrics),
        }


# ---------------------------------------------------------------------------
# Executor
# ---------------------------------------------------------------------------

class ActionPipelineExecutor:
    """Führt kategorie-spezifische Action-Ketten aus.

    Verwendung:
        executor = ActionPipelineExecutor(registry, store, timeout_seconds=30)
        pipeline = await executor.execute_actions_for_category(item, category_id)
    """

    def __init__(
        self,
        registry: ProcessorRegistry,
        catalog_store: CatalogStore,
        timeout_seconds: float = DEFAULT_ACTION_TIMEOUT,
    ) -> None:
        self._registry = registry
        self._store = catalog_store
        self.timeout_seconds = timeout_seconds

    async def execute_actions_for_category(
        self,
        item: ContentItem,
        category_id: int,
    ) -> PipelineResult:
        """Führt alle aktiven Actions der Kategorie in Reihenfolge aus.

        Wirft nie wegen einzelner Actions; deren Fehler stehen im Ergebnis.
        """
        start = time.monotonic()
        plans = self._store.snapshot.actions_for_category(category_id)
        pipeline = PipelineResult(category_id=category_id, total=len(plans))

        if not plans:
            logger.info("Keine Actions für Kategorie %d", category_id)
            pipeline.metrics = _metrics(start, [])
            return pipeline

        logger.info(
            "Action-Pipeline Start: Inhalt %s, Kategorie %d, %d Actions",
            item.id, category_id, len(plans),
        )

        action_times: list[dict[str, Any]] = []
        for plan in plans:
            outcome = await self._run(item, plan)
            pipeline.results[plan.action.name] = outcome
            action_times.append({
                "action": plan.action.name,
                "execution_ms": round(outcome.execution_ms, 1),
                "total_ms": round(outcome.total_ms, 1),
                "failed": not outcome.success,
            })

            if outcome.success:
                pipeline.executed += 1
            else:
                pipeline.errors += 1
                pipeline.error_details.append({
                    "action": plan.action.name,
                    "action_id": plan.action.id,
                    "processor": outcome.processor,
                    "error": outcome.error,
                    "error_type": outcome.error_type,
                })

        pipeline.metrics = _metrics(start, action_times)
        logger.info(
            "Action-Pipeline fertig: Kategorie %d, %d/%d ausgeführt, %d Fehler, %.0fms",
            category_id, pipeline.executed, pipeline.total, pipeline.errors,
            pipeline.metrics["total_ms"],
        )
        return pipeline

    async def test_action(
        self,
        handler_name: str,
        item: ContentItem | None = None,
        config: dict[str, Any] | None = None,
    ) -> ActionExecutionResult:
        """Führt einen einzelnen Handler mit einem Testinhalt aus."""
        probe = item or ContentItem(
            title="Test Content",
            raw_content="This is test content for action validation.",
            url="https://test.com/test",
            source_domain="test.com",
        )
        plan = PlannedAction.model_validate({
            "action": {"id": 0, "name": f"test:{handler_name}", "service_handler": handler_name},
            "execution_order": 0,
            "config": config or {},
        })
        outcome = await self._run(probe, plan)
        logger.info(
            "Action-Test %s: %s", handler_name, "ok" if outcome.success else outcome.error,
        )
        return outcome

    # --- Intern ---

    async def _run(self, item: ContentItem, plan: PlannedAction) -> ActionExecutionResult:
        action = plan.action
        handler_name = action.service_handler
        start = time.monotonic()

        handler = self._registry.get(handler_name)
        if handler is None:
            logger.error(
                "Kein Processor für Action '%s' (%s) registriert", action.name, handler_name,
            )
            return self._failed(plan, ActionNotFound(action.name, handler_name), start, 0.0)

        logger.debug(
            "Action '%s' (%s, Reihenfolge %d)", action.name, handler_name, plan.execution_order,
        )

        exec_start = time.monotonic()
        try:
            result = await asyncio.wait_for(
                handler(item, dict(plan.config)),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.error(
                "Action '%s' abgebrochen: Timeout nach %gs", action.name, self.timeout_seconds,
            )
            failure: ActionFailure = ActionTimeout(action.name, handler_name, self.timeout_seconds)
            return self._failed(plan, failure, start, _elapsed_ms(exec_start))
        except Exception as exc:
            logger.error(
                "Action '%s' fehlgeschlagen: %s: %s", action.name, type(exc).__name__, exc,
            )
            return self._failed(
                plan, ActionError(action.name, handler_name, exc), start, _elapsed_ms(exec_start),
            )

        return ActionExecutionResult(
            action_name=action.name,
            processor=handler_name,
            success=True,
            action_id=action.id,
            result=result,
            execution_ms=_elapsed_ms(exec_start),
            total_ms=_elapsed_ms(start),
        )

    @staticmethod
    def _failed(
        plan: PlannedAction,
        failure: ActionFailure,
        start: float,
        execution_ms: float,
    ) -> ActionExecutionResult:
        return ActionExecutionResult(
            action_name=plan.action.name,
            processor=plan.action.service_handler,
            success=False,
            action_id=plan.action.id,
            error=str(failure),
            error_type=type(failure).__name__,
            execution_ms=execution_ms,
            total_ms=_elapsed_ms(start),
        )


def _metrics(start: float, action_times: list[dict[str, Any]]) -> dict[str, Any]:
    average = (
        sum(a["total_ms"] for a in action_times) / len(action_times)
        if action_times else 0.0
    )
    return {
        "total_ms": _elapsed_ms(start),
        "action_times": action_times,
        "average_action_ms": average,
    }


def _elapsed_ms(start: float) -> float:
    return (time.monotonic() - start) * 1000
