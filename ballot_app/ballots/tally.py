"""Per-position vote counts and percentages, recomputed from the vote ledger."""

from __future__ import annotations

from dataclasses import dataclass, field

from django.db import DatabaseError
from django.db.models import Count, F, Q

from ballots.exceptions import StorageFailureError
from ballots.models import Candidate, Position


@dataclass(frozen=True)
class CandidateTally:
    candidate_id: int
    id_number: str
    name: str
    is_active: bool
    vote_count: int
    percentage: float


@dataclass(frozen=True)
class PositionTally:
    position_id: int
    name: str
    seats: int
    status: str
    total_votes: int
    candidates: tuple[CandidateTally, ...] = field(default_factory=tuple)


def tally_sort_key(entry: CandidateTally) -> tuple[int, int]:
    """Vote count descending, then candidate id ascending."""
    return (-entry.vote_count, entry.candidate_id)


def vote_percentage(vote_count: int, total_votes: int) -> float:
    if total_votes <= 0:
        return 0.0
    return vote_count / total_votes * 100


def tally_positions(position_id: int | None = None) -> list[PositionTally]:
    positions_qs = Position.objects.order_by("id")
    if position_id is not None:
        positions_qs = positions_qs.filter(pk=position_id)

    # One aggregate statement over the ledger, so a ballot's votes are counted
    # all together or not at all. Inactive candidates keep their votes.
    candidates_qs = (
        Candidate.objects.filter(position__in=positions_qs)
        .annotate(vote_count=Count("votes", filter=Q(votes__position_id=F("position_id"))))
        .only("id", "id_number", "first_name", "last_name", "position_id", "is_active")
        .order_by("position_id", "id")
    )

    try:
        positions = list(positions_qs)
        candidates = list(candidates_qs)
    except DatabaseError as exc:
        raise StorageFailureError("Results are temporarily unavailable") from exc

    counts_by_position: dict[int, list[Candidate]] = {int(p.id): [] for p in positions}
    for candidate in candidates:
        counts_by_position.setdefault(int(candidate.position_id), []).append(candidate)

    results: list[PositionTally] = []
    for position in positions:
        rows = counts_by_position[int(position.id)]
        total_votes = sum(int(c.vote_count) for c in rows)
        entries = sorted(
            (
                CandidateTally(
                    candidate_id=int(c.id),
                    id_number=c.id_number,
                    name=c.full_name,
                    is_active=bool(c.is_active),
                    vote_count=int(c.vote_count),
                    percentage=vote_percentage(int(c.vote_count), total_votes),
                )
                for c in rows
            ),
            key=tally_sort_key,
        )
        results.append(
            PositionTally(
                position_id=int(position.id),
                name=position.name,
                seats=int(position.seats),
                status=str(position.status),
                total_votes=total_votes,
                candidates=tuple(entries),
            )
        )
    return results
