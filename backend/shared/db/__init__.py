"""SQLite database layer: connection management and store implementation."""

from shared.db.connection import Database
from shared.db.game_store import SqliteGameStore

__all__ = [
    "Database",
    "SqliteGameStore",
]
