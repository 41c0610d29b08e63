"""Tests for SqliteGameStore."""

from __future__ import annotations

import sqlite3
from typing import TYPE_CHECKING
from unittest.mock import patch

import pytest

from shared.dal.models import Game, GamePlayer, Round
from shared.db.connection import Database
from shared.db.game_store import SqliteGameStore
from shared.exceptions import StorageError

if TYPE_CHECKING:
    from pathlib import Path


def _game(
    game_id: str | None = "g1",
    created_at: int = 1_700_000_000,
    names: tuple[str, ...] = ("a", "b", "c", "d"),
) -> Game:
    return Game(
        id=game_id,
        created_at=created_at,
        players=[GamePlayer(name=n) for n in names],
        points=[[30000, 20], [25000, 5], [25000, -5], [20000, -20]],
    )


def _rounds(*labels: str) -> list[Round]:
    return [Round(round=label, outcome="Draw") for label in labels]


class TestReplaceAll:
    async def test_round_trips_games(self, store: SqliteGameStore) -> None:
        games = [_game("g1", 100), _game("g2", 200)]
        await store.replace_all(games)

        assert await store.get_all_games() == games

    async def test_replaces_previous_games_and_drops_rounds(self, store: SqliteGameStore) -> None:
        await store.replace_all([_game("old")])
        await store.upsert_rounds("old", _rounds("E1"))

        await store.replace_all([_game("new")])

        assert await store.get_all_game_ids() == ["new"]
        assert await store.get_all_rounds() == {}

    async def test_empty_batch_keeps_existing_data(self, store: SqliteGameStore) -> None:
        await store.replace_all([_game("g1")])
        await store.replace_all([])

        assert await store.get_all_game_ids() == ["g1"]

    async def test_skips_games_without_id(self, store: SqliteGameStore) -> None:
        await store.replace_all([_game(None), _game("g1")])

        assert await store.get_all_game_ids() == ["g1"]

    async def test_duplicate_ids_keep_last(self, store: SqliteGameStore) -> None:
        await store.replace_all([_game("g1", 100), _game("g1", 200)])

        games = await store.get_all_games()
        assert len(games) == 1
        assert games[0].created_at == 200


class TestUpsertGames:
    async def test_inserts_alongside_existing(self, store: SqliteGameStore) -> None:
        await store.upsert_games([_game("g1", 100)])
        await store.upsert_games([_game("g2", 200)])

        assert await store.get_all_game_ids() == ["g1", "g2"]

    async def test_existing_game_is_replaced_and_loses_rounds(self, store: SqliteGameStore) -> None:
        await store.upsert_games([_game("g1", names=("a", "b", "c", "d"))])
        await store.upsert_rounds("g1", _rounds("E1", "E2"))

        await store.upsert_games([_game("g1", names=("w", "x", "y", "z"))])

        game = await store.get_game("g1")
        assert game is not None
        assert game.player_names == ["w", "x", "y", "z"]
        assert await store.get_rounds("g1") == []

    async def test_exists(self, store: SqliteGameStore) -> None:
        await store.upsert_games([_game("g1")])

        assert await store.exists("g1")
        assert not await store.exists("missing")


class TestRounds:
    async def test_rounds_keep_order_and_are_stamped(self, store: SqliteGameStore) -> None:
        await store.upsert_games([_game("g1")])
        await store.upsert_rounds("g1", _rounds("E1", "E2", "E3"))

        rounds = await store.get_rounds("g1")
        assert [r.round for r in rounds] == ["E1", "E2", "E3"]
        assert {r.game_id for r in rounds} == {"g1"}

    async def test_upsert_replaces_previous_rounds(self, store: SqliteGameStore) -> None:
        await store.upsert_games([_game("g1")])
        await store.upsert_rounds("g1", _rounds("E1", "E2"))
        await store.upsert_rounds("g1", _rounds("S1"))

        assert [r.round for r in await store.get_rounds("g1")] == ["S1"]

    async def test_empty_rounds_are_a_no_op(self, store: SqliteGameStore) -> None:
        await store.upsert_games([_game("g1")])
        await store.upsert_rounds("g1", _rounds("E1"))
        await store.upsert_rounds("g1", [])

        assert len(await store.get_rounds("g1")) == 1

    async def test_bulk_upsert_skips_empty_entries(self, store: SqliteGameStore) -> None:
        await store.upsert_games([_game("g1", 100), _game("g2", 200)])
        await store.upsert_rounds_bulk({"g1": _rounds("E1"), "g2": []})

        assert await store.get_game_ids_having_rounds() == ["g1"]
        assert list((await store.get_all_rounds()).keys()) == ["g1"]

    async def test_rounds_for_unknown_game_raise_storage_error(self, store: SqliteGameStore) -> None:
        with pytest.raises(StorageError, match="upsert rounds failed"):
            await store.upsert_rounds("missing", _rounds("E1"))

        assert await store.get_all_rounds() == {}


class TestDelete:
    async def test_delete_game_removes_its_rounds(self, store: SqliteGameStore) -> None:
        await store.upsert_games([_game("g1", 100), _game("g2", 200)])
        await store.upsert_rounds_bulk({"g1": _rounds("E1"), "g2": _rounds("E1")})

        await store.delete_game("g1")

        assert await store.get_game("g1") is None
        assert await store.get_all_game_ids() == ["g2"]
        assert await store.get_game_ids_having_rounds() == ["g2"]

    async def test_delete_unknown_game_is_a_no_op(self, store: SqliteGameStore) -> None:
        await store.upsert_games([_game("g1")])
        await store.delete_game("missing")

        assert await store.get_all_game_ids() == ["g1"]

    async def test_delete_created_after_is_strict(self, store: SqliteGameStore) -> None:
        await store.upsert_games([_game("before", 99), _game("at", 100), _game("after", 101)])
        await store.upsert_rounds("after", _rounds("E1"))

        deleted = await store.delete_games_created_after(100)

        assert deleted == 1
        assert await store.get_all_game_ids() == ["before", "at"]
        assert await store.get_all_rounds() == {}


class TestStorageErrors:
    async def test_failed_write_rolls_back(self, store: SqliteGameStore) -> None:
        await store.replace_all([_game("g1")])

        with (
            patch.object(SqliteGameStore, "_game_rows", return_value=[("g2", 1, "now", "{}"), ("g2", 1, "now", "{}")]),
            pytest.raises(StorageError, match="replace all games failed"),
        ):
            await store.replace_all([_game("g2")])

        assert await store.get_all_game_ids() == ["g1"]

    async def test_read_on_closed_database_raises(self, tmp_path: Path) -> None:
        db = Database(tmp_path / "closed.db")
        db.connect()
        store = SqliteGameStore(db)
        db.connection.close()

        with pytest.raises(StorageError, match="storage read failed"):
            await store.get_all_games()

    async def test_failed_commit_leaves_no_partial_write(self, store: SqliteGameStore) -> None:
        def deny_commit(action: int, arg1: str | None, *_: object) -> int:
            if action == sqlite3.SQLITE_TRANSACTION and arg1 == "COMMIT":
                return sqlite3.SQLITE_DENY
            return sqlite3.SQLITE_OK

        conn = store._db.connection
        conn.set_authorizer(deny_commit)
        with pytest.raises(StorageError, match="upsert games failed"):
            await store.upsert_games([_game("g1")])
        conn.set_authorizer(None)

        assert conn.in_transaction is False
        assert await store.get_all_game_ids() == []

        await store.upsert_games([_game("g2")])
        assert await store.get_all_game_ids() == ["g2"]

    async def test_disconnected_database_raises_storage_error(self, tmp_path: Path) -> None:
        db = Database(tmp_path / "closed.db")
        db.connect()
        store = SqliteGameStore(db)
        db.close()

        with pytest.raises(StorageError, match="not connected"):
            await store.get_all_game_ids()
        with pytest.raises(StorageError, match="not connected"):
            await store.exists("g1")
        with pytest.raises(StorageError, match="delete game failed: Database is not connected"):
            await store.delete_game("g1")
