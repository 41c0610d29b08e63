"""StatsService against a real SQLite store."""

from __future__ import annotations

from shared.dal.models import Game, GamePlayer, Round, RoundData
from shared.db.game_store import SqliteGameStore
from stats.service import StatsService


def _game(game_id: str, base: tuple[int, ...]) -> Game:
    return Game(
        id=game_id,
        created_at=1_704_844_800,
        players=[GamePlayer(name=n) for n in ("Alice", "Bob", "Carol", "Dave")],
        points=[[b, 0] for b in base],
    )


class TestPlayerStats:
    async def test_uses_stored_rounds(self, store: SqliteGameStore) -> None:
        game = _game("g1", (40000, 30000, 20000, 10000))
        await store.upsert_games([game])
        await store.upsert_rounds(
            "g1",
            [
                Round(round="E2", outcome="Tsumo", data=RoundData(winner_seat="Player1")),
                Round(round="E3", outcome="Draw"),
            ],
        )

        stats = await StatsService(store).player_stats([game], "Alice")

        assert stats.games_played == 1
        assert stats.rounds_played == 2
        assert stats.yakitori_rate == 0.0
        assert stats.tsumo_rate == 100

    async def test_only_given_games_count(self, store: SqliteGameStore) -> None:
        first = _game("g1", (40000, 30000, 20000, 10000))
        second = _game("g2", (10000, 20000, 30000, 40000))
        await store.upsert_games([first, second])

        stats = await StatsService(store).player_stats([second], "Alice")

        assert stats.games_played == 1
        assert stats.average_rank == 4.0

    async def test_blank_name(self, store: SqliteGameStore) -> None:
        stats = await StatsService(store).player_stats([_game("g1", (1, 2, 3, 4))], " ")
        assert stats.games_played == 0


class TestOverall:
    async def test_ranks_roster(self, store: SqliteGameStore) -> None:
        game = _game("g1", (10000, 40000, 30000, 20000))

        results = await StatsService(store).overall([game], ["Alice", "Bob"])

        assert [s.player_name for s in results.player_rankings] == ["Bob", "Alice"]
