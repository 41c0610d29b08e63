"""SQLite-backed game and round store."""

from __future__ import annotations

import asyncio
import json
import sqlite3
from collections import defaultdict
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog

from shared.dal.game_store import GameStore
from shared.dal.models import Game, Round
from shared.exceptions import StorageError

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping, Sequence

    from shared.db.connection import Database

logger = structlog.get_logger()


def _now_iso() -> str:
    return datetime.now(tz=UTC).isoformat()


class SqliteGameStore(GameStore):
    """SQLite implementation of GameStore.

    Stores full game and round payloads as JSON with indexed columns for
    queries. Writes serialize on an asyncio lock and run as a single
    transaction each; sqlite3 errors surface as StorageError after rollback.
    """

    def __init__(self, db: Database) -> None:
        self._db = db
        self._lock = asyncio.Lock()

    async def exists(self, game_id: str) -> bool:
        row = self._query_one("SELECT 1 FROM games WHERE id = ?", (game_id,))
        return row is not None

    async def replace_all(self, games: Sequence[Game]) -> None:
        """Replace the whole store with ``games``. An empty batch leaves the store untouched."""
        rows = self._game_rows(games)
        if not rows:
            logger.warning("no games to save, keeping existing data")
            return
        async with self._lock:
            with self._write("replace all games", count=len(rows)) as conn:
                conn.execute("DELETE FROM rounds")
                conn.execute("DELETE FROM games")
                conn.executemany(
                    "INSERT INTO games (id, created_at, fetched_at, data) VALUES (?, ?, ?, ?)",
                    rows,
                )
        logger.info("replaced all games", count=len(rows))

    async def upsert_games(self, games: Sequence[Game]) -> None:
        """Insert games. Existing games with the same id are deleted, rounds included, first."""
        rows = self._game_rows(games)
        if not rows:
            logger.warning("no games to save")
            return
        game_ids = [row[0] for row in rows]
        async with self._lock:
            with self._write("upsert games", count=len(rows)) as conn:
                conn.executemany("DELETE FROM rounds WHERE game_id = ?", [(gid,) for gid in game_ids])
                conn.executemany("DELETE FROM games WHERE id = ?", [(gid,) for gid in game_ids])
                conn.executemany(
                    "INSERT INTO games (id, created_at, fetched_at, data) VALUES (?, ?, ?, ?)",
                    rows,
                )
        logger.info("upserted games", count=len(rows))

    async def upsert_rounds(self, game_id: str, rounds: Sequence[Round]) -> None:
        if not game_id or not rounds:
            return
        await self.upsert_rounds_bulk({game_id: rounds})

    async def upsert_rounds_bulk(self, rounds_by_game_id: Mapping[str, Sequence[Round]]) -> None:
        """Replace the rounds of each game in the mapping. Keys with no rounds are skipped."""
        batch = {gid: rounds for gid, rounds in rounds_by_game_id.items() if gid and rounds}
        if not batch:
            logger.warning("no rounds to save")
            return
        created_at = _now_iso()
        rows = [
            (gid, seq, created_at, r.model_copy(update={"game_id": gid}).model_dump_json())
            for gid, rounds in batch.items()
            for seq, r in enumerate(rounds)
        ]
        async with self._lock:
            with self._write("upsert rounds", games=len(batch), rounds=len(rows)) as conn:
                conn.executemany("DELETE FROM rounds WHERE game_id = ?", [(gid,) for gid in batch])
                conn.executemany(
                    "INSERT INTO rounds (game_id, seq, created_at, data) VALUES (?, ?, ?, ?)",
                    rows,
                )
        logger.debug("upserted rounds", games=len(batch), rounds=len(rows))

    async def get_game(self, game_id: str) -> Game | None:
        row = self._query_one("SELECT data FROM games WHERE id = ?", (game_id,))
        if row is None:
            return None
        return Game.model_validate(json.loads(row[0]))

    async def get_rounds(self, game_id: str) -> list[Round]:
        rows = self._query_all("SELECT data FROM rounds WHERE game_id = ? ORDER BY seq, id", (game_id,))
        return [Round.model_validate(json.loads(row[0])) for row in rows]

    async def get_all_rounds(self) -> dict[str, list[Round]]:
        rows = self._query_all("SELECT game_id, data FROM rounds ORDER BY game_id, seq, id")
        rounds: dict[str, list[Round]] = defaultdict(list)
        for game_id, data in rows:
            rounds[game_id].append(Round.model_validate(json.loads(data)))
        return dict(rounds)

    async def get_all_games(self) -> list[Game]:
        rows = self._query_all("SELECT data FROM games ORDER BY created_at, id")
        return [Game.model_validate(json.loads(row[0])) for row in rows]

    async def get_all_game_ids(self) -> list[str]:
        rows = self._query_all("SELECT id FROM games ORDER BY created_at, id")
        return [row[0] for row in rows]

    async def get_game_ids_having_rounds(self) -> list[str]:
        rows = self._query_all("SELECT DISTINCT game_id FROM rounds ORDER BY game_id")
        return [row[0] for row in rows]

    async def delete_game(self, game_id: str) -> None:
        async with self._lock:
            with self._write("delete game", game_id=game_id) as conn:
                conn.execute("DELETE FROM rounds WHERE game_id = ?", (game_id,))
                cursor = conn.execute("DELETE FROM games WHERE id = ?", (game_id,))
        if cursor.rowcount == 0:
            logger.debug("delete_game had no effect", game_id=game_id)

    async def delete_games_created_after(self, timestamp: int) -> int:
        """Delete games created strictly after ``timestamp`` (epoch seconds), rounds first."""
        async with self._lock:
            with self._write("delete games created after", timestamp=timestamp) as conn:
                conn.execute(
                    "DELETE FROM rounds WHERE game_id IN (SELECT id FROM games WHERE created_at > ?)",
                    (timestamp,),
                )
                cursor = conn.execute("DELETE FROM games WHERE created_at > ?", (timestamp,))
        deleted = cursor.rowcount
        logger.info("deleted games created after cutoff", timestamp=timestamp, count=deleted)
        return deleted

    @staticmethod
    def _game_rows(games: Sequence[Game]) -> list[tuple[str, int, str, str]]:
        """Serialize games for insertion, skipping (with a warning) games without an id.

        When the same id appears more than once, the last occurrence wins.
        """
        fetched_at = _now_iso()
        rows: dict[str, tuple[str, int, str, str]] = {}
        for game in games:
            if not game.id:
                logger.warning("skipping game with null or empty id")
                continue
            rows[game.id] = (game.id, game.created_at, fetched_at, game.model_dump_json())
        return list(rows.values())

    @contextmanager
    def _write(self, operation: str, **context: object) -> Iterator[sqlite3.Connection]:
        """Run one write transaction, mapping sqlite3 failures to StorageError after rollback."""
        self._connection(operation)
        try:
            with self._db.transaction() as conn:
                yield conn
        except sqlite3.Error as exc:
            logger.exception("storage write failed", operation=operation, **context)
            raise StorageError(f"{operation} failed: {exc}") from exc

    def _query_one(self, sql: str, params: tuple[object, ...] = ()) -> tuple | None:
        try:
            return self._connection("storage read").execute(sql, params).fetchone()
        except sqlite3.Error as exc:
            logger.exception("storage read failed", sql=sql)
            raise StorageError(f"storage read failed: {exc}") from exc

    def _query_all(self, sql: str, params: tuple[object, ...] = ()) -> list[tuple]:
        try:
            return self._connection("storage read").execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            logger.exception("storage read failed", sql=sql)
            raise StorageError(f"storage read failed: {exc}") from exc

    def _connection(self, operation: str) -> sqlite3.Connection:
        try:
            return self._db.connection
        except RuntimeError as exc:
            logger.error("storage unavailable", operation=operation, error=str(exc))
            raise StorageError(f"{operation} failed: {exc}") from exc
