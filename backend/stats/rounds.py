"""
Per-round classification from one seat's point of view.

Each round maps to an immutable RoundTally; tallies combine with
``RoundTally.merge``, which is associative with ``RoundTally()`` as identity,
so a game (or any set of rounds) is summarized by folding its rounds.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import reduce
from typing import TYPE_CHECKING

from stats.seats import dealer_index, parse_seat

if TYPE_CHECKING:
    from collections.abc import Iterable

    from shared.dal.models import Round, ScoreInfo

OUTCOME_RON = "ron"
OUTCOME_TSUMO = "tsumo"


@dataclass(frozen=True)
class RoundTally:
    """Counters contributed by rounds for a single seat."""

    had_win: bool = False
    deal_ins: int = 0
    dealer_rounds: int = 0  # Ron/Tsumo rounds where the seat was dealer
    tsumo_wins: int = 0
    ron_wins: int = 0
    dealer_tsumo_suffered: int = 0  # another seat won by tsumo on our deal
    dealer_tsumo_mangan: int = 0  # ...for mangan or more
    dealer_tsumo_haneman: int = 0  # ...for haneman or more

    def merge(self, other: RoundTally) -> RoundTally:
        return RoundTally(
            had_win=self.had_win or other.had_win,
            deal_ins=self.deal_ins + other.deal_ins,
            dealer_rounds=self.dealer_rounds + other.dealer_rounds,
            tsumo_wins=self.tsumo_wins + other.tsumo_wins,
            ron_wins=self.ron_wins + other.ron_wins,
            dealer_tsumo_suffered=self.dealer_tsumo_suffered + other.dealer_tsumo_suffered,
            dealer_tsumo_mangan=self.dealer_tsumo_mangan + other.dealer_tsumo_mangan,
            dealer_tsumo_haneman=self.dealer_tsumo_haneman + other.dealer_tsumo_haneman,
        )


def is_mangan(score: ScoreInfo | None) -> bool:
    """Mangan or better: 5+ han, 4 han 40+ fu, or 3 han 70+ fu. Missing fu counts as 0."""
    if score is None:
        return False
    fu = score.fu or 0
    return score.han >= 5 or (score.han == 4 and fu >= 40) or (score.han == 3 and fu >= 70)


def is_haneman(score: ScoreInfo | None) -> bool:
    return score is not None and score.han >= 6


def classify_round(round_: Round, seat: int) -> RoundTally:
    """Tally a single round for ``seat``. Outcomes other than Ron and Tsumo count for nothing."""
    outcome = (round_.outcome or "").lower()
    if outcome == OUTCOME_RON:
        return _classify_ron(round_, seat)
    if outcome == OUTCOME_TSUMO:
        return _classify_tsumo(round_, seat)
    return RoundTally()


def tally_rounds(rounds: Iterable[Round], seat: int) -> RoundTally:
    return reduce(RoundTally.merge, (classify_round(r, seat) for r in rounds), RoundTally())


def _classify_ron(round_: Round, seat: int) -> RoundTally:
    data = round_.data
    won = data is not None and any(parse_seat(w.seat) == seat for w in data.winners)
    dealt_in = data is not None and parse_seat(data.loser_seat) == seat
    return RoundTally(
        had_win=won,
        ron_wins=int(won),
        deal_ins=int(dealt_in),
        dealer_rounds=int(dealer_index(round_.round) == seat),
    )


def _classify_tsumo(round_: Round, seat: int) -> RoundTally:
    data = round_.data
    winner = parse_seat(data.winner_seat) if data is not None else None
    won = winner == seat
    if dealer_index(round_.round) != seat:
        return RoundTally(had_win=won, tsumo_wins=int(won))
    if won:
        return RoundTally(had_win=True, tsumo_wins=1, dealer_rounds=1)

    # Someone else drew their win on our deal; grade how much it cost.
    score = data.score if data is not None else None
    haneman = is_haneman(score)
    return RoundTally(
        dealer_rounds=1,
        dealer_tsumo_suffered=1,
        dealer_tsumo_mangan=int(haneman or is_mangan(score)),
        dealer_tsumo_haneman=int(haneman),
    )
