"""Narrow a game list by creation date and player names before computing stats."""

from __future__ import annotations

from datetime import UTC, date, datetime, time, timedelta
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import Sequence

    from shared.dal.models import Game

logger = structlog.get_logger()


def _as_utc(value: date | datetime) -> datetime:
    """Dates mean midnight; naive datetimes are taken as UTC."""
    if not isinstance(value, datetime):
        value = datetime.combine(value, time.min)
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value


def filter_games(
    games: Sequence[Game],
    min_date: date | datetime | None = None,
    max_date: date | datetime | None = None,
    player_names: Sequence[str] | None = None,
) -> list[Game]:
    """Return the games that pass the date range and player filters.

    ``max_date`` is extended by one day so a plain date includes its whole
    calendar day. Every non-blank player filter must be a (case-insensitive)
    substring of at least one seat's name in the game.
    """
    filtered = list(games)
    if not filtered:
        return []

    if min_date is not None or max_date is not None:
        lower = _as_utc(min_date) if min_date is not None else None
        upper = _as_utc(max_date) + timedelta(days=1) if max_date is not None else None
        filtered = [
            g
            for g in filtered
            if (lower is None or g.created_datetime >= lower) and (upper is None or g.created_datetime <= upper)
        ]
        logger.info("filtered games by date", min_date=min_date, max_date=max_date, remaining=len(filtered))

    needles = [name.strip().lower() for name in player_names or () if name.strip()]
    if needles:
        filtered = [g for g in filtered if _has_all_players(g, needles)]
        logger.info("filtered games by players", players=needles, remaining=len(filtered))

    return filtered


def _has_all_players(game: Game, needles: Sequence[str]) -> bool:
    names = [name.lower() for name in game.player_names]
    return all(any(needle in name for name in names) for needle in needles)
