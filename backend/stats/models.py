"""Result models produced by the stats engine. Computed on demand, never persisted."""

from pydantic import BaseModel, Field


class PlayerStats(BaseModel, frozen=True):
    """Performance snapshot for one player across a set of games. Rates are percentages."""

    player_name: str
    games_played: int = 0
    rounds_played: int = 0
    average_rank: float = 0.0
    average_points: float = 0.0
    yakitori_rate: float = 0.0  # games without a single win
    deal_in_rate: float = 0.0  # per round played
    winning_rate: float = 0.0  # games finished 1st or 2nd
    tsumo_rate_on_oya: float = 0.0  # our dealer rounds lost to another seat's tsumo
    mangan_plus_tsumo_rate_on_oya: float = 0.0  # share of those tsumo at mangan or more
    haneman_plus_tsumo_rate_on_oya: float = 0.0  # share of those tsumo at haneman or more
    tsumo_rate: int = 0  # share of our wins by tsumo, truncated


class PlayerRankingSummary(BaseModel, frozen=True):
    player_name: str
    total_points: int = 0
    first_places: int = 0
    second_places: int = 0
    third_places: int = 0
    fourth_places: int = 0
    games_played: int = 0
    average_rank: float = 0.0


class OverallResults(BaseModel, frozen=True):
    # sorted by total_points, descending
    player_rankings: list[PlayerRankingSummary] = Field(default_factory=list)
