from __future__ import annotations

from dataclasses import dataclass, field

from django.conf import settings

from ballots.models import Position
from ballots.tally import CandidateTally, PositionTally, tally_positions, tally_sort_key

RESULTS_TIEBREAK_RULE = "lowest_candidate_id"
RESULTS_TIEBREAK_DESCRIPTION = (
    "Candidates with equal vote counts are ranked by candidate id, lowest first. "
    "A tie across the last seat is therefore won by the candidate registered first."
)


@dataclass(frozen=True)
class PositionWinners:
    position_id: int
    name: str
    seats: int
    total_votes: int
    winners: tuple[CandidateTally, ...] = field(default_factory=tuple)
    # Every candidate sharing the vote count of the last seat, when that count
    # also appears outside the winners.
    tied_candidate_ids: tuple[int, ...] = field(default_factory=tuple)
    tiebreak_rule: str = RESULTS_TIEBREAK_RULE

    @property
    def tie_at_cutoff(self) -> bool:
        return bool(self.tied_candidate_ids)


def _cutoff_ties(ranked: list[CandidateTally], seats: int) -> tuple[int, ...]:
    if seats <= 0 or len(ranked) <= seats:
        return ()
    cutoff_count = ranked[seats - 1].vote_count
    if ranked[seats].vote_count != cutoff_count:
        return ()
    return tuple(sorted(c.candidate_id for c in ranked if c.vote_count == cutoff_count))


def winners_for_position(position_tally: PositionTally) -> PositionWinners:
    ranked = sorted(position_tally.candidates, key=tally_sort_key)
    seats = int(position_tally.seats)
    # With no votes at all the first `seats` candidates still fill the seats.
    return PositionWinners(
        position_id=position_tally.position_id,
        name=position_tally.name,
        seats=seats,
        total_votes=position_tally.total_votes,
        winners=tuple(ranked[:seats]),
        tied_candidate_ids=_cutoff_ties(ranked, seats),
    )


def resolve_winners(position_id: int | None = None) -> list[PositionWinners]:
    include_closed = bool(settings.BALLOTS_RESOLVE_CLOSED_POSITIONS)
    results: list[PositionWinners] = []
    for position_tally in tally_positions(position_id):
        if not include_closed and position_tally.status == Position.Status.closed:
            continue
        results.append(winners_for_position(position_tally))
    return results
