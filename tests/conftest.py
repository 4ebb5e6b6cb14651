"""Gemeinsame Fixtures: Stub-Provider, Testkatalog und Testinhalte."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest
import pytest_asyncio

from dailies.catalog.models import (
    Action,
    Category,
    CategoryAction,
    CategoryAlias,
    ContentItem,
    Matcher,
)
from dailies.catalog.snapshot import CatalogData, CatalogStore
from dailies.db.database import Database
from dailies.exceptions import ProviderError
from dailies.providers.base import Completion, FinishReason, ProviderAdapter

POLITICS_ID = 1
TECH_ID = 2
SPORTS_ID = 3
FALLBACK_ID = 99

POLITICO_TEXT = (
    "The Senate voted on Tuesday to advance the bipartisan infrastructure bill, "
    "sending the legislation to the House. Republican and Democrat leaders in "
    "Congress praised the vote, while the White House said the president would "
    "sign the law. The Department of Transportation and the federal government "
    "will oversee the new policy across the United States."
)


# ---------------------------------------------------------------------------
# Stub-Provider
# ---------------------------------------------------------------------------

class StubProvider(ProviderAdapter):
    """Provider mit fester Antwort, zählt Aufrufe."""

    def __init__(
        self,
        label: str = "US Politics",
        name: str = "stub",
        analysis_text: str = "",
        finish_reason: FinishReason = FinishReason.STOP,
        timeout_seconds: float = 5.0,
    ) -> None:
        super().__init__(model="stub-model", timeout_seconds=timeout_seconds)
        self.name = name
        self.label = label
        self.analysis_text = analysis_text
        self.finish_reason = finish_reason
        self.calls = 0
        self.prompts: list[str] = []

    async def _complete(
        self,
        prompt: str,
        max_tokens: int,
        temperature: float,
        json_mode: bool,
    ) -> Completion:
        self.calls += 1
        self.prompts.append(prompt)
        text = self.analysis_text if json_mode else self.label
        return Completion(text=text, finish_reason=self.finish_reason, output_tokens=5)


class FailingProvider(StubProvider):
    """Provider, der jeden Aufruf mit ProviderError beantwortet."""

    def __init__(self, name: str = "failing", status_code: int = 503) -> None:
        super().__init__(name=name)
        self.status_code = status_code

    async def _complete(
        self,
        prompt: str,
        max_tokens: int,
        temperature: float,
        json_mode: bool,
    ) -> Completion:
        self.calls += 1
        raise ProviderError("Service unavailable", provider=self.name, status_code=self.status_code)


class SlowProvider(StubProvider):
    """Provider, der länger braucht als sein Timeout erlaubt."""

    def __init__(self, delay: float = 1.0, timeout_seconds: float = 0.05) -> None:
        super().__init__(name="slow", timeout_seconds=timeout_seconds)
        self.delay = delay

    async def _complete(
        self,
        prompt: str,
        max_tokens: int,
        temperature: float,
        json_mode: bool,
    ) -> Completion:
        self.calls += 1
        await asyncio.sleep(self.delay)
        return Completion(text=self.label)


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

def create_test_item(**overrides: Any) -> ContentItem:
    """Politico-Artikel mit politischem Text; Felder per Keyword überschreibbar."""
    defaults: dict[str, Any] = {
        "title": "Senate advances infrastructure bill after election-year vote",
        "raw_content": POLITICO_TEXT,
        "url": "https://www.politico.com/news/2024/05/01/congress-election-infrastructure",
        "source_domain": "politico.com",
    }
    defaults.update(overrides)
    return ContentItem(**defaults)


def create_test_catalog(**overrides: Any) -> CatalogData:
    """Kleiner Katalog: Politik, Technologie, Sport und Fallback."""
    defaults: dict[str, Any] = {
        "categories": [
            Category(id=POLITICS_ID, name="US_Politics_News", priority=1),
            Category(id=TECH_ID, name="Technology", priority=2),
            Category(id=SPORTS_ID, name="Sports", priority=3),
            Category(id=FALLBACK_ID, name="Uncategorized", priority=99, is_fallback=True),
        ],
        "matchers": [
            Matcher(id=1, category_id=POLITICS_ID, pattern="politico.com"),
            Matcher(id=2, category_id=TECH_ID, pattern="techcrunch.com"),
        ],
        "aliases": [
            CategoryAlias(id=1, alias="US Politics", category_id=POLITICS_ID, confidence_threshold=0.70),
            CategoryAlias(id=2, alias="Tech", category_id=TECH_ID, confidence_threshold=0.70),
            CategoryAlias(id=3, alias="Strict Sports", category_id=SPORTS_ID, confidence_threshold=0.99),
        ],
        "actions": [],
        "category_actions": [],
    }
    defaults.update(overrides)
    return CatalogData(**defaults)


def create_pipeline_catalog(handlers: list[str], category_id: int = POLITICS_ID) -> CatalogData:
    """Testkatalog mit einer Action-Kette (Reihenfolge = Listenreihenfolge)."""
    actions = [
        Action(id=index, name=f"action_{index}", service_handler=handler)
        for index, handler in enumerate(handlers, start=1)
    ]
    links = [
        CategoryAction(category_id=category_id, action_id=action.id, execution_order=action.id)
        for action in actions
    ]
    return create_test_catalog(actions=actions, category_actions=links)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def politico_item() -> ContentItem:
    return create_test_item()


@pytest.fixture
def catalog_store() -> CatalogStore:
    return CatalogStore.from_data(create_test_catalog())


@pytest_asyncio.fixture
async def database(tmp_path):
    """Frische SQLite-Datenbank pro Test."""
    db = Database(tmp_path / "test.db")
    await db.initialize()
    yield db
    await db.close()
