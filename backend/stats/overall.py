"""League-style ranking table across a roster of players."""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING, NamedTuple

import structlog

from stats.models import OverallResults, PlayerRankingSummary

if TYPE_CHECKING:
    from collections.abc import Sequence

    from shared.dal.models import Game

logger = structlog.get_logger()


class Standing(NamedTuple):
    seat: int
    rank: int
    total_points: int
    filter_key: str | None


def rank_seats(game: Game, filter_keys: Sequence[str]) -> list[Standing]:
    """Rank every seat of a game by base points, best first.

    Ranks are sequential 1..n with no tie handling: seats with equal base
    points keep seat order, the earlier seat taking the better rank. Each
    seat is tagged with the first filter key its name contains, if any.
    """
    seats = sorted(range(len(game.players)), key=game.base_points, reverse=True)
    standings = []
    for rank, seat in enumerate(seats, start=1):
        name = game.player_names[seat].lower()
        key = next((k for k in filter_keys if k in name), None)
        standings.append(Standing(seat=seat, rank=rank, total_points=game.total_points(seat), filter_key=key))
    return standings


def compute_overall(games: Sequence[Game], player_names: Sequence[str]) -> OverallResults:
    """Build the ranking table for ``player_names`` across ``games``.

    Every requested name gets a summary, even with no games. Points are the
    post-uma totals; the table is ordered by cumulative points, descending.
    """
    if not games or not player_names:
        return OverallResults()

    display_names: dict[str, str] = {}
    for name in player_names:
        display_names.setdefault(name.lower(), name)
    filter_keys = list(display_names)

    games_played: Counter[str] = Counter()
    total_points: Counter[str] = Counter()
    places: dict[str, Counter[int]] = {key: Counter() for key in filter_keys}

    for game in games:
        try:
            standings = rank_seats(game, filter_keys)
        except IndexError:
            logger.warning("skipping game with malformed points", game_id=game.id)
            continue
        for standing in standings:
            if standing.filter_key is None:
                continue
            games_played[standing.filter_key] += 1
            total_points[standing.filter_key] += standing.total_points
            places[standing.filter_key][standing.rank] += 1

    summaries = [
        _summary(display_names[key], games_played[key], total_points[key], places[key]) for key in filter_keys
    ]
    summaries.sort(key=lambda s: s.total_points, reverse=True)
    return OverallResults(player_rankings=summaries)


def _summary(name: str, games_played: int, total_points: int, places: Counter[int]) -> PlayerRankingSummary:
    weighted = sum(rank * places[rank] for rank in (1, 2, 3, 4))
    return PlayerRankingSummary(
        player_name=name,
        total_points=total_points,
        first_places=places[1],
        second_places=places[2],
        third_places=places[3],
        fourth_places=places[4],
        games_played=games_played,
        average_rank=weighted / games_played if games_played > 0 else 0.0,
    )
