"""Datenbank-Paket: SQLite-Persistenz für Katalog, Inhalte und Protokoll."""

from dailies.db.database import Database

__all__ = [
    "Database",
]
