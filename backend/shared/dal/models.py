"""Persistence models for games and rounds fetched from the score tracker.

Field names match the tracker's JSON payloads so records round-trip through
``model_validate`` / ``model_dump_json`` unchanged.
"""

from datetime import UTC, datetime

from pydantic import BaseModel, Field

from shared.exceptions import RecordValidationError

SEATS_PER_GAME = 4


class GamePlayer(BaseModel, frozen=True):
    name: str | None = None


class GameSettings(BaseModel, frozen=True):
    """Rule settings reported by the tracker. Informational only."""

    chonbo_type: str | None = None
    initial_points: int = 0
    kiriage_mangan: bool = False
    yakitori: bool = False


class Game(BaseModel, frozen=True):
    """A finished game as reported by the tracker."""

    id: str | None = None
    confirmed: bool = False
    created_at: int = 0  # epoch seconds, authoritative ordering key
    honba: int = 0
    players: list[GamePlayer] = Field(default_factory=list)  # seat order
    # per seat: [base placement points, adjustments (uma, chombo, ...)]
    points: list[list[int]] = Field(default_factory=list)
    riichi: int = 0
    round: str | None = None
    settings: GameSettings | None = None

    @property
    def created_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.created_at, tz=UTC)

    @property
    def player_names(self) -> list[str]:
        return [p.name or "" for p in self.players]

    def base_points(self, seat: int) -> int:
        return self.points[seat][0]

    def total_points(self, seat: int) -> int:
        return sum(self.points[seat])


class ScoreInfo(BaseModel, frozen=True):
    han: int = 0
    fu: int | None = None


class Winner(BaseModel, frozen=True):
    seat: str | None = None
    score: ScoreInfo | None = None


class RoundData(BaseModel, frozen=True):
    """Outcome-specific payload. Ron fills loser_seat/winners, Tsumo fills winner_seat/score."""

    riichi: list[str] = Field(default_factory=list)
    score: ScoreInfo | None = None
    winner_seat: str | None = None
    loser_seat: str | None = None
    winners: list[Winner] = Field(default_factory=list)


class Round(BaseModel, frozen=True):
    """A single hand of a game."""

    game_id: str | None = None  # not part of the tracker payload; stamped after receipt
    round: str | None = None  # e.g. "E1", "S2", "E4-1"
    outcome: str | None = None  # "Ron", "Tsumo", "Draw", ...
    points: list[list[int]] = Field(default_factory=list)
    data: RoundData | None = None


def validate_game(game: Game) -> Game:
    """Check the structural invariants the stats engine relies on.

    Raises RecordValidationError for a game with no id, or whose players and
    points do not both cover exactly four seats with at least a base score.
    """
    if not game.id:
        raise RecordValidationError(record_id=None, reason="missing game id")
    if len(game.players) != SEATS_PER_GAME or len(game.points) != SEATS_PER_GAME:
        raise RecordValidationError(
            record_id=game.id,
            reason=f"expected {SEATS_PER_GAME} players and points, got {len(game.players)} and {len(game.points)}",
        )
    if any(not seat_points for seat_points in game.points):
        raise RecordValidationError(record_id=game.id, reason="seat without base points")
    return game
