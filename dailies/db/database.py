"""SQLite-Persistenz für Katalog, Inhalte und Verarbeitungsprotokoll.

Nutzt aiosqlite für async Zugriff.  Schema-Migrationen erfolgen über
CREATE TABLE IF NOT EXISTS.

Tabellen:
- categories, actions, matchers, category_aliases, category_actions: Katalog
- content_items: erfasste Inhalte mit Klassifizierung und Status
- processing_logs: Protokoll je Verarbeitungsschritt (best-effort)
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import aiosqlite
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from dailies.catalog.models import (
    Action,
    Category,
    CategoryAction,
    CategoryAlias,
    ContentItem,
    ContentStatus,
    Matcher,
)
from dailies.catalog.snapshot import CatalogData
from dailies.db import seed
from dailies.logging_config import get_logger

logger = get_logger("db")


# ---------------------------------------------------------------------------
# Schema-Definitionen
# ---------------------------------------------------------------------------

_SCHEMA_CATEGORIES = """
CREATE TABLE IF NOT EXISTS categories (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE COLLATE NOCASE,
    description TEXT NOT NULL DEFAULT '',
    priority INTEGER NOT NULL DEFAULT 50,
    is_active INTEGER NOT NULL DEFAULT 1,
    is_fallback INTEGER NOT NULL DEFAULT 0,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""

_SCHEMA_ACTIONS = """
CREATE TABLE IF NOT EXISTS actions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE,
    description TEXT NOT NULL DEFAULT '',
    service_handler TEXT NOT NULL,
    is_active INTEGER NOT NULL DEFAULT 1,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""

_SCHEMA_MATCHERS = """
CREATE TABLE IF NOT EXISTS matchers (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    category_id INTEGER NOT NULL REFERENCES categories(id) ON DELETE CASCADE,
    matcher_type TEXT NOT NULL CHECK (matcher_type IN ('domain', 'keyword')),
    pattern TEXT NOT NULL,
    is_exclusion INTEGER NOT NULL DEFAULT 0,
    is_active INTEGER NOT NULL DEFAULT 1
);
"""

_SCHEMA_CATEGORY_ALIASES = """
CREATE TABLE IF NOT EXISTS category_aliases (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    alias TEXT NOT NULL UNIQUE COLLATE NOCASE,
    category_id INTEGER NOT NULL REFERENCES categories(id) ON DELETE CASCADE,
    confidence_threshold REAL NOT NULL DEFAULT 0.70,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""

_SCHEMA_CATEGORY_ACTIONS = """
CREATE TABLE IF NOT EXISTS category_actions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    category_id INTEGER NOT NULL REFERENCES categories(id) ON DELETE CASCADE,
    action_id INTEGER NOT NULL REFERENCES actions(id) ON DELETE CASCADE,
    execution_order INTEGER NOT NULL DEFAULT 1,
    config TEXT NOT NULL DEFAULT '{}',
    is_active INTEGER NOT NULL DEFAULT 1,
    UNIQUE (category_id, action_id)
);
"""

_SCHEMA_CONTENT_ITEMS = """
CREATE TABLE IF NOT EXISTS content_items (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL DEFAULT '',
    raw_content TEXT NOT NULL DEFAULT '',
    url TEXT NOT NULL DEFAULT '',
    source_domain TEXT NOT NULL DEFAULT '',
    content_hash TEXT NOT NULL UNIQUE,
    content_type TEXT NOT NULL DEFAULT 'article',

    -- Klassifizierung
    ai_raw_category TEXT,
    primary_category_id INTEGER REFERENCES categories(id) ON DELETE SET NULL,
    confidence REAL,
    status TEXT NOT NULL DEFAULT 'pending',
    metadata TEXT NOT NULL DEFAULT '{}',

    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""

_SCHEMA_PROCESSING_LOGS = """
CREATE TABLE IF NOT EXISTS processing_logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    content_id INTEGER REFERENCES content_items(id) ON DELETE CASCADE,
    operation TEXT NOT NULL,
    status TEXT NOT NULL,
    provider TEXT,
    details TEXT NOT NULL DEFAULT '{}',
    error_message TEXT,
    processing_time_ms REAL DEFAULT 0.0,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""

_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_ci_status ON content_items(status);",
    "CREATE INDEX IF NOT EXISTS idx_ci_category ON content_items(primary_category_id);",
    "CREATE INDEX IF NOT EXISTS idx_pl_content ON processing_logs(content_id);",
    "CREATE INDEX IF NOT EXISTS idx_ca_category ON category_actions(category_id, execution_order);",
]


def _is_locked(exc: BaseException) -> bool:
    """SQLite meldet parallele Schreibzugriffe als "database is locked"."""
    return isinstance(exc, aiosqlite.OperationalError) and "locked" in str(exc).lower()


# ---------------------------------------------------------------------------
# Database-Klasse
# ---------------------------------------------------------------------------

class Database:
    """Async SQLite-Datenbankzugriff mit Schema-Migration.

    Verwendung:
        db = Database(path)
        await db.initialize()
        ...
        await db.close()

    Oder als Context-Manager:
        async with Database(path) as db:
            ...
    """

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path) if isinstance(db_path, str) else db_path
        self._connection: aiosqlite.Connection | None = None

    async def initialize(self) -> None:
        """Erstellt Verbindung, setzt PRAGMAs und führt Schema-Migration aus."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

        self._connection = await aiosqlite.connect(str(self._db_path))

        # WAL-Modus: Worker schreibt, Reload liest parallel
        await self._connection.execute("PRAGMA journal_mode=WAL")
        await self._connection.execute("PRAGMA foreign_keys=ON")
        self._connection.row_factory = aiosqlite.Row

        await self._migrate()
        logger.info("Datenbank initialisiert: %s", self._db_path)

    async def close(self) -> None:
        """Schließt die Datenbankverbindung."""
        if self._connection:
            await self._connection.close()
            self._connection = None
            logger.info("Datenbankverbindung geschlossen")

    async def __aenter__(self) -> Database:
        await self.initialize()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    @property
    def connection(self) -> aiosqlite.Connection:
        """Gibt die aktive Verbindung zurück.

        Raises:
            RuntimeError: Wenn die Datenbank nicht initialisiert ist.
        """
        if self._connection is None:
            raise RuntimeError(
                "Datenbank nicht initialisiert – "
                "await db.initialize() aufrufen"
            )
        return self._connection

    # --- Schema-Migration ---

    async def _migrate(self) -> None:
        """Erstellt Tabellen und Indizes falls sie nicht existieren (idempotent)."""
        conn = self.connection
        for schema in (
            _SCHEMA_CATEGORIES,
            _SCHEMA_ACTIONS,
            _SCHEMA_MATCHERS,
            _SCHEMA_CATEGORY_ALIASES,
            _SCHEMA_CATEGORY_ACTIONS,
            _SCHEMA_CONTENT_ITEMS,
            _SCHEMA_PROCESSING_LOGS,
        ):
            await conn.execute(schema)
        for idx_sql in _INDEXES:
            await conn.execute(idx_sql)
        await conn.commit()
        logger.debug("Schema-Migration abgeschlossen")

    # --- Katalog ---

    async def load_catalog(self) -> CatalogData:
        """Liest den vollständigen Katalog (auch inaktive Einträge).

        Aktiv-Filter und Validierung übernimmt der CatalogSnapshot.
        """
        conn = self.connection

        cursor = await conn.execute("SELECT * FROM categories ORDER BY priority, name")
        categories = [
            Category(
                id=row["id"],
                name=row["name"],
                description=row["description"],
                priority=row["priority"],
                is_active=bool(row["is_active"]),
                is_fallback=bool(row["is_fallback"]),
            )
            for row in await cursor.fetchall()
        ]

        cursor = await conn.execute("SELECT * FROM matchers ORDER BY id")
        matchers = [
            Matcher(
                id=row["id"],
                category_id=row["category_id"],
                pattern=row["pattern"],
                matcher_type=row["matcher_type"],
                is_exclusion=bool(row["is_exclusion"]),
                is_active=bool(row["is_active"]),
            )
            for row in await cursor.fetchall()
        ]

        cursor = await conn.execute("SELECT * FROM category_aliases ORDER BY id")
        aliases = [
            CategoryAlias(
                id=row["id"],
                alias=row["alias"],
                category_id=row["category_id"],
                confidence_threshold=row["confidence_threshold"],
            )
            for row in await cursor.fetchall()
        ]

        cursor = await conn.execute("SELECT * FROM actions ORDER BY id")
        actions = [
            Action(
                id=row["id"],
                name=row["name"],
                service_handler=row["service_handler"],
                description=row["description"],
                is_active=bool(row["is_active"]),
            )
            for row in await cursor.fetchall()
        ]

        cursor = await conn.execute(
            "SELECT * FROM category_actions ORDER BY category_id, execution_order"
        )
        category_actions = [
            CategoryAction(
                category_id=row["category_id"],
                action_id=row["action_id"],
                execution_order=row["execution_order"],
                config=json.loads(row["config"] or "{}"),
                is_active=bool(row["is_active"]),
            )
            for row in await cursor.fetchall()
        ]

        logger.debug(
            "Katalog gelesen: %d Kategorien, %d Matcher, %d Aliase, %d Actions",
            len(categories), len(matchers), len(aliases), len(actions),
        )
        return CatalogData(
            categories=categories,
            matchers=matchers,
            aliases=aliases,
            actions=actions,
            category_actions=category_actions,
        )

    async def create_alias(
        self,
        alias: str,
        category_id: int,
        confidence_threshold: float = 0.70,
    ) -> bool:
        """Legt einen gelernten Alias an.

        Returns:
            True wenn neu angelegt, False wenn der Alias schon existiert.
        """
        conn = self.connection
        cursor = await conn.execute(
            "INSERT OR IGNORE INTO category_aliases (alias, category_id, confidence_threshold) "
            "VALUES (?, ?, ?)",
            (alias.strip(), category_id, confidence_threshold),
        )
        await conn.commit()
        created = cursor.rowcount > 0
        if created:
            logger.info("Alias angelegt: '%s' → Kategorie %d", alias, category_id)
        return created

    # --- Inhalte ---

    async def upsert_content_item(self, item: ContentItem) -> ContentItem:
        """Speichert einen Inhalt (Dedup über content_hash).

        Existiert der Hash bereits, bleibt der gespeicherte Datensatz
        unverändert und wird zurückgegeben.
        """
        conn = self.connection
        await conn.execute(
            """
            INSERT OR IGNORE INTO content_items (
                title, raw_content, url, source_domain, content_hash,
                content_type, status, metadata
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                item.title,
                item.raw_content,
                item.url,
                item.source_domain,
                item.content_hash,
                item.content_type.value,
                item.status.value,
                json.dumps(item.metadata),
            ),
        )
        await conn.commit()

        stored = await self.get_content_by_hash(item.content_hash)
        if stored is None:
            raise RuntimeError(f"Inhalt {item.content_hash[:12]} nach INSERT nicht lesbar")
        return stored

    async def get_content_item(self, content_id: int) -> Optional[ContentItem]:
        cursor = await self.connection.execute(
            "SELECT * FROM content_items WHERE id = ?", (content_id,),
        )
        row = await cursor.fetchone()
        return _row_to_content(row) if row else None

    async def get_content_by_hash(self, content_hash: str) -> Optional[ContentItem]:
        cursor = await self.connection.execute(
            "SELECT * FROM content_items WHERE content_hash = ?", (content_hash,),
        )
        row = await cursor.fetchone()
        return _row_to_content(row) if row else None

    async def update_content_classification(
        self,
        content_id: int,
        category_id: int,
        raw_label: str,
        confidence: float,
        status: ContentStatus = ContentStatus.CLASSIFIED,
    ) -> None:
        conn = self.connection
        await conn.execute(
            """
            UPDATE content_items
            SET primary_category_id = ?, ai_raw_category = ?, confidence = ?,
                status = ?, updated_at = CURRENT_TIMESTAMP
            WHERE id = ?
            """,
            (category_id, raw_label, confidence, status.value, content_id),
        )
        await conn.commit()

    async def update_content_status(self, content_id: int, status: ContentStatus) -> None:
        conn = self.connection
        await conn.execute(
            "UPDATE content_items SET status = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
            (status.value, content_id),
        )
        await conn.commit()

    async def mark_needs_review(self, content_id: int, reason: str) -> None:
        """Setzt Status needs_review und hinterlegt den Grund in den Metadaten."""
        await self.update_content_status(content_id, ContentStatus.NEEDS_REVIEW)
        await self.merge_content_metadata(content_id, {"review_reason": reason})
        logger.info("Inhalt %d → Review-Queue: %s", content_id, reason)

    async def merge_content_metadata(self, content_id: int, updates: dict[str, Any]) -> None:
        """Ergänzt die JSON-Metadaten eines Inhalts (flaches Update)."""
        conn = self.connection
        cursor = await conn.execute(
            "SELECT metadata FROM content_items WHERE id = ?", (content_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            raise KeyError(f"Inhalt {content_id} existiert nicht")

        metadata = json.loads(row["metadata"] or "{}")
        metadata.update(updates)
        await conn.execute(
            "UPDATE content_items SET metadata = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
            (json.dumps(metadata, default=str), content_id),
        )
        await conn.commit()

    async def get_review_queue(self, limit: int = 50) -> list[ContentItem]:
        cursor = await self.connection.execute(
            "SELECT * FROM content_items WHERE status = ? ORDER BY updated_at DESC LIMIT ?",
            (ContentStatus.NEEDS_REVIEW.value, limit),
        )
        return [_row_to_content(row) for row in await cursor.fetchall()]

    # --- Verarbeitungsprotokoll ---

    async def append_processing_log(
        self,
        operation: str,
        status: str,
        content_id: int | None = None,
        provider: str | None = None,
        details: dict[str, Any] | None = None,
        error_message: str | None = None,
        processing_time_ms: float = 0.0,
    ) -> int | None:
        """Schreibt einen Protokolleintrag (best-effort).

        SQLite-Fehler werden geloggt und nicht weitergereicht; bei
        "database is locked" wird bis zu dreimal wiederholt.

        Returns:
            Zeilen-ID oder None, wenn nicht geschrieben werden konnte.
        """
        try:
            return await self._insert_log(
                operation, status, content_id, provider,
                json.dumps(details or {}, default=str),
                error_message, processing_time_ms,
            )
        except aiosqlite.Error as exc:
            logger.warning(
                "Protokolleintrag '%s' für Inhalt %s nicht geschrieben: %s",
                operation, content_id, exc,
            )
            return None

    @retry(
        retry=retry_if_exception(_is_locked),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
        reraise=True,
    )
    async def _insert_log(
        self,
        operation: str,
        status: str,
        content_id: int | None,
        provider: str | None,
        details_json: str,
        error_message: str | None,
        processing_time_ms: float,
    ) -> int:
        conn = self.connection
        cursor = await conn.execute(
            """
            INSERT INTO processing_logs (
                content_id, operation, status, provider,
                details, error_message, processing_time_ms
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (content_id, operation, status, provider, details_json, error_message, processing_time_ms),
        )
        await conn.commit()
        return cursor.lastrowid or 0

    async def get_processing_logs(
        self,
        content_id: int | None = None,
        limit: int = 100,
    ) -> list[dict[str, Any]]:
        """Protokolleinträge, neueste zuerst."""
        conn = self.connection
        if content_id is None:
            cursor = await conn.execute(
                "SELECT * FROM processing_logs ORDER BY id DESC LIMIT ?", (limit,),
            )
        else:
            cursor = await conn.execute(
                "SELECT * FROM processing_logs WHERE content_id = ? ORDER BY id DESC LIMIT ?",
                (content_id, limit),
            )
        entries = []
        for row in await cursor.fetchall():
            entry = dict(row)
            entry["details"] = json.loads(entry.get("details") or "{}")
            entries.append(entry)
        return entries

    # --- Seed ---

    async def seed_defaults(self) -> bool:
        """Legt den Standard-Katalog an, falls noch keine Kategorien existieren.

        Returns:
            True wenn geseedet wurde, False wenn bereits Daten vorhanden waren.
        """
        conn = self.connection
        cursor = await conn.execute("SELECT COUNT(*) FROM categories")
        row = await cursor.fetchone()
        if row and row[0] > 0:
            logger.debug("Katalog vorhanden – kein Seed")
            return False

        await conn.executemany(
            "INSERT INTO categories (name, description, priority, is_fallback) VALUES (?, ?, ?, ?)",
            [(n, d, p, int(f)) for n, d, p, f in seed.CATEGORIES],
        )
        await conn.executemany(
            "INSERT INTO actions (name, description, service_handler) VALUES (?, ?, ?)",
            seed.ACTIONS,
        )

        category_ids = await self._ids_by_name("categories")
        action_ids = await self._ids_by_name("actions")

        await conn.executemany(
            "INSERT INTO category_actions (category_id, action_id, execution_order) "
            "VALUES (?, ?, ?)",
            [
                (category_ids[category], action_ids[action], order)
                for category, actions in seed.CATEGORY_ACTIONS.items()
                for order, action in enumerate(actions, start=1)
            ],
        )
        await conn.executemany(
            "INSERT INTO matchers (category_id, matcher_type, pattern) VALUES (?, 'domain', ?)",
            [
                (category_ids[category], pattern)
                for category, patterns in seed.DOMAIN_MATCHERS.items()
                for pattern in patterns
            ],
        )
        await conn.executemany(
            "INSERT INTO category_aliases (alias, category_id, confidence_threshold) "
            "VALUES (?, ?, ?)",
            [(alias, category_ids[category], t) for alias, category, t in seed.ALIASES],
        )
        await conn.commit()

        logger.info(
            "Standard-Katalog angelegt: %d Kategorien, %d Actions, %d Aliase",
            len(seed.CATEGORIES), len(seed.ACTIONS), len(seed.ALIASES),
        )
        await self.append_processing_log("seed_defaults", "success", provider="manual_seed")
        return True

    async def _ids_by_name(self, table: str) -> dict[str, int]:
        cursor = await self.connection.execute(f"SELECT id, name FROM {table}")
        return {row["name"]: row["id"] for row in await cursor.fetchall()}


def _row_to_content(row: aiosqlite.Row) -> ContentItem:
    return ContentItem(
        id=row["id"],
        title=row["title"],
        raw_content=row["raw_content"],
        url=row["url"],
        source_domain=row["source_domain"],
        content_hash=row["content_hash"],
        content_type=row["content_type"],
        category_id=row["primary_category_id"],
        confidence=row["confidence"],
        status=row["status"],
        metadata=json.loads(row["metadata"] or "{}"),
    )
