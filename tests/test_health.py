"""Tests für Health-Checks und die JSON-Lines-Eingabe."""

from __future__ import annotations

import json

import pytest

from dailies.config import ProviderName, Settings
from dailies.health import check_all, check_api_keys_present, check_provider_reachable, check_sqlite_writable
from dailies.main import parse_items


@pytest.fixture
def settings(tmp_path, monkeypatch):
    for key in ("ANTHROPIC_API_KEY", "OPENAI_API_KEY", "GROQ_API_KEY"):
        monkeypatch.delenv(key, raising=False)
    return Settings(_env_file=None, data_dir=tmp_path / "data", openai_api_key="sk-test")


class TestChecks:
    def test_api_keys(self, settings):
        keys = check_api_keys_present(settings)

        assert keys["openai"]["status"] == "ok"
        assert keys["anthropic"]["status"] == "not_configured"
        assert keys["groq"]["status"] == "not_configured"

    def test_sqlite_writable(self, settings):
        result = check_sqlite_writable(settings)

        assert result["status"] == "ok"
        assert not (settings.data_dir / ".write_test").exists()

    def test_sqlite_not_writable(self, tmp_path, settings):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        blocked = settings.model_copy(update={"data_dir": blocker / "data"})

        assert check_sqlite_writable(blocked)["status"] == "error"

    @pytest.mark.asyncio
    async def test_unconfigured_provider_is_not_contacted(self, settings):
        result = await check_provider_reachable(ProviderName.GROQ, settings)

        assert result["status"] == "not_configured"


class TestCheckAll:
    @pytest.mark.asyncio
    async def test_healthy_without_network(self, settings):
        report = await check_all(settings, include_network=False)

        assert report["status"] == "healthy"
        assert report["checks"]["providers"] == {}

    @pytest.mark.asyncio
    async def test_degraded_without_keys(self, settings):
        report = await check_all(
            settings.model_copy(update={"openai_api_key": None}), include_network=False,
        )

        assert report["status"] == "degraded"


class TestParseItems:
    def test_skips_invalid_lines(self):
        lines = [
            json.dumps({"title": "Senate vote", "url": "https://www.politico.com/a"}),
            "",
            "{not json",
            json.dumps({"title": "Bad type", "content_type": "hologram"}),
            json.dumps({"title": "Release notes", "raw_content": "Python 3.13 is out."}),
        ]

        items = list(parse_items(lines))

        assert [i.title for i in items] == ["Senate vote", "Release notes"]
        assert items[0].source_domain == "www.politico.com"
        assert items[0].content_hash
