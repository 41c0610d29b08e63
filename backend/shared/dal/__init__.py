"""Data access layer: store interface and shared persistence models."""

from shared.dal.game_store import GameStore
from shared.dal.models import Game, GamePlayer, GameSettings, Round, RoundData, ScoreInfo, Winner, validate_game

__all__ = [
    "Game",
    "GamePlayer",
    "GameSettings",
    "GameStore",
    "Round",
    "RoundData",
    "ScoreInfo",
    "Winner",
    "validate_game",
]
