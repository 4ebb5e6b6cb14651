"""Health-Check-Funktionen für Subsystem-Prüfungen.

Seiteneffekt-frei: Wird von main.py beim Start und von check_all()
für einen Gesamtstatus genutzt.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any

import httpx

from dailies import __version__
from dailies.config import ProviderName, Settings

# Leichtgewichtiger GET-Endpoint je Provider (listet Modelle, kostet nichts)
PROVIDER_ENDPOINTS: dict[ProviderName, str] = {
    ProviderName.ANTHROPIC: "https://api.anthropic.com/v1/models",
    ProviderName.OPENAI: "https://api.openai.com/v1/models",
    ProviderName.GROQ: "https://api.groq.com/openai/v1/models",
}

_KEY_PREFIXES: dict[ProviderName, str] = {
    ProviderName.ANTHROPIC: "sk-ant-",
    ProviderName.OPENAI: "sk-",
    ProviderName.GROQ: "gsk_",
}


def _auth_headers(provider: ProviderName, api_key: str) -> dict[str, str]:
    if provider == ProviderName.ANTHROPIC:
        return {"x-api-key": api_key, "anthropic-version": "2023-06-01"}
    return {"Authorization": f"Bearer {api_key}"}


def check_api_keys_present(settings: Settings) -> dict[str, Any]:
    """Prüft je Provider, ob ein API-Key konfiguriert ist.

    Validiert nur das Vorhandensein, nicht die Gültigkeit
    (das würde einen API-Call kosten).
    """
    result: dict[str, Any] = {}
    for provider in settings.provider_sequence:
        key = settings.api_key_for(provider)
        if key and key.startswith(_KEY_PREFIXES[provider]):
            result[provider.value] = {"status": "ok", "key_prefix": key[:8] + "..."}
        elif key:
            result[provider.value] = {"status": "invalid_format"}
        else:
            result[provider.value] = {"status": "not_configured"}
    return result


async def check_provider_reachable(
    provider: ProviderName,
    settings: Settings,
    timeout: float = 5.0,
) -> dict[str, Any]:
    """Prüft ob die API eines Providers erreichbar ist.

    Kein harter Fehler – fällt ein Provider aus, übernimmt der nächste
    in der Fallback-Kette.
    """
    url = PROVIDER_ENDPOINTS[provider]
    api_key = settings.api_key_for(provider)
    if not api_key:
        return {"status": "not_configured", "url": url}

    try:
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
            response = await client.get(url, headers=_auth_headers(provider, api_key))
            if response.status_code == 200:
                return {"status": "ok", "url": url}
            return {"status": "error", "url": url, "http_status": response.status_code}
    except httpx.RequestError as e:
        return {"status": "unreachable", "url": url, "error": str(e)}


def check_sqlite_writable(settings: Settings) -> dict[str, Any]:
    """Prüft ob das Datenverzeichnis beschreibbar ist."""
    try:
        data_dir = settings.data_dir
        data_dir.mkdir(parents=True, exist_ok=True)
        test_file = data_dir / ".write_test"
        test_file.write_text("ok")
        test_file.unlink()
        return {"status": "ok", "path": str(data_dir)}
    except OSError as e:
        return {"status": "error", "path": str(settings.data_dir), "error": str(e)}


async def check_all(settings: Settings, include_network: bool = True) -> dict[str, Any]:
    """Gesamtstatus aller Subsysteme.

    healthy: DB schreibbar und mindestens ein Provider einsatzbereit.
    degraded: DB schreibbar, aber kein Provider (alles landet in der Review-Queue).
    unhealthy: DB nicht schreibbar.
    """
    database = check_sqlite_writable(settings)
    keys = check_api_keys_present(settings)

    reachability: dict[str, Any] = {}
    if include_network:
        results = await asyncio.gather(*(
            check_provider_reachable(provider, settings)
            for provider in settings.provider_sequence
        ))
        reachability = {
            provider.value: result
            for provider, result in zip(settings.provider_sequence, results)
        }

    def _usable(name: str) -> bool:
        if keys[name]["status"] != "ok":
            return False
        return not include_network or reachability[name]["status"] == "ok"

    any_provider = any(_usable(p.value) for p in settings.provider_sequence)

    if database["status"] != "ok":
        overall = "unhealthy"
    elif any_provider:
        overall = "healthy"
    else:
        overall = "degraded"

    return {
        "status": overall,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": __version__,
        "checks": {
            "database": database,
            "api_keys": keys,
            "providers": reachability,
        },
    }
