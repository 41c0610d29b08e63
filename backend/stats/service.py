"""Stats facade that pulls round detail from a GameStore."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from stats.overall import compute_overall
from stats.player import compute_stats

if TYPE_CHECKING:
    from collections.abc import Sequence

    from shared.dal.game_store import GameStore
    from shared.dal.models import Game
    from stats.models import OverallResults, PlayerStats

logger = structlog.get_logger()


class StatsService:
    """Compute player statistics and rankings for games held in a store."""

    def __init__(self, store: GameStore) -> None:
        self._store = store

    async def player_stats(self, games: Sequence[Game], player_name: str) -> PlayerStats:
        if not player_name.strip() or not games:
            return compute_stats(games, player_name, {})
        rounds_by_game = await self._store.get_all_rounds()
        stats = compute_stats(games, player_name, rounds_by_game)
        logger.debug("computed player stats", player=player_name, games=stats.games_played, rounds=stats.rounds_played)
        return stats

    async def overall(self, games: Sequence[Game], player_names: Sequence[str]) -> OverallResults:
        return compute_overall(games, player_names)
