"""Per-player statistics over a set of games and their rounds."""

from __future__ import annotations

from dataclasses import dataclass
from functools import reduce
from statistics import fmean
from typing import TYPE_CHECKING

import structlog

from stats.models import PlayerStats
from stats.rounds import RoundTally, tally_rounds

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from shared.dal.models import Game, Round

logger = structlog.get_logger()

WINNING_PLACEMENT = 2  # 1st and 2nd count as a winning game


@dataclass(frozen=True)
class GameResult:
    """One player's outcome in one game."""

    placement: int
    total_points: int
    rounds_played: int
    tally: RoundTally

    @property
    def is_yakitori(self) -> bool:
        return not self.tally.had_win


def placement(game: Game, seat: int) -> int:
    """1 + the number of other seats with strictly more base points. Tied seats share the better rank."""
    base = game.base_points(seat)
    return 1 + sum(1 for other in range(len(game.points)) if other != seat and game.base_points(other) > base)


def find_seat(game: Game, player_name: str) -> int | None:
    """First seat whose name contains ``player_name`` (case-insensitive)."""
    needle = player_name.lower()
    for seat, name in enumerate(game.player_names):
        if needle in name.lower():
            return seat
    return None


def game_result(game: Game, seat: int, rounds: Sequence[Round]) -> GameResult:
    return GameResult(
        placement=placement(game, seat),
        total_points=game.total_points(seat),
        rounds_played=len(rounds),
        tally=tally_rounds(rounds, seat),
    )


def compute_stats(
    games: Sequence[Game],
    player_name: str,
    rounds_by_game: Mapping[str, Sequence[Round]],
) -> PlayerStats:
    """Compute a player's statistics across ``games``.

    The player is matched by case-insensitive substring against seat names.
    A blank name, no games, or no matching game yields zeroed stats. Games
    whose points do not cover the matched seat are skipped with a warning.
    """
    if not player_name.strip() or not games:
        return PlayerStats(player_name=player_name)

    results: list[GameResult] = []
    for game in games:
        seat = find_seat(game, player_name)
        if seat is None:
            continue
        try:
            results.append(game_result(game, seat, rounds_by_game.get(game.id or "", [])))
        except IndexError:
            logger.warning("skipping game with malformed points", game_id=game.id, player=player_name)

    if not results:
        return PlayerStats(player_name=player_name)
    return summarize(player_name, results)


def summarize(player_name: str, results: Sequence[GameResult]) -> PlayerStats:
    """Fold per-game results into a PlayerStats snapshot."""
    games_played = len(results)
    rounds_played = sum(r.rounds_played for r in results)
    tally = reduce(RoundTally.merge, (r.tally for r in results), RoundTally())
    yakitori_games = sum(1 for r in results if r.is_yakitori)
    winning_games = sum(1 for r in results if r.placement <= WINNING_PLACEMENT)
    wins = tally.tsumo_wins + tally.ron_wins

    return PlayerStats(
        player_name=player_name,
        games_played=games_played,
        rounds_played=rounds_played,
        average_rank=fmean(r.placement for r in results),
        average_points=fmean(r.total_points for r in results),
        yakitori_rate=_percent(yakitori_games, games_played),
        deal_in_rate=_percent(tally.deal_ins, rounds_played),
        winning_rate=_percent(winning_games, games_played),
        tsumo_rate_on_oya=_percent(tally.dealer_tsumo_suffered, tally.dealer_rounds),
        mangan_plus_tsumo_rate_on_oya=_percent(tally.dealer_tsumo_mangan, tally.dealer_tsumo_suffered),
        haneman_plus_tsumo_rate_on_oya=_percent(tally.dealer_tsumo_haneman, tally.dealer_tsumo_suffered),
        tsumo_rate=int(_percent(tally.tsumo_wins, wins)),
    )


def _percent(count: int, total: int) -> float:
    return count * 100.0 / total if total > 0 else 0.0
