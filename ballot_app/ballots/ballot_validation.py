from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from ballots.catalog import CatalogSnapshot, VoterRecord
from ballots.exceptions import (
    InvalidCandidateError,
    NotEligibleError,
    PositionClosedError,
    TooManySelectionsError,
)

type Ballot = Mapping[int, Iterable[int]]


@dataclass(frozen=True)
class ValidatedBallot:
    voter_id: int
    # Sorted (position_id, candidate_id) pairs; one Vote row each.
    selections: tuple[tuple[int, int], ...]

    @property
    def position_ids(self) -> frozenset[int]:
        return frozenset(pid for pid, _ in self.selections)


def _as_int(value: object, *, label: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{label} must be an integer")
    try:
        return int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError, OverflowError) as exc:
        raise ValueError(f"{label} must be an integer") from exc


def parse_ballot(raw: object) -> dict[int, frozenset[int]]:
    """Normalize a submitted ballot payload.

    Accepts ``{"<position_id>": [candidate_id, ...]}`` or a flat list of
    ``{"position_id": ..., "candidate_id": ...}`` objects. Raises ValueError for
    malformed input, including a candidate listed twice for a position.
    """
    selections: dict[int, list[int]] = {}

    if isinstance(raw, Mapping):
        for key, candidate_ids in raw.items():
            position_id = _as_int(key, label="position id")
            if not isinstance(candidate_ids, list | tuple):
                raise ValueError("ballot selections must be lists of candidate ids")
            bucket = selections.setdefault(position_id, [])
            bucket.extend(_as_int(cid, label="candidate id") for cid in candidate_ids)
    elif isinstance(raw, list):
        for item in raw:
            if not isinstance(item, Mapping):
                raise ValueError("each vote must be an object")
            position_id = _as_int(item.get("position_id"), label="position id")
            candidate_id = _as_int(item.get("candidate_id"), label="candidate id")
            selections.setdefault(position_id, []).append(candidate_id)
    else:
        raise ValueError("ballot must be an object or a list")

    parsed: dict[int, frozenset[int]] = {}
    for position_id, candidate_ids in selections.items():
        unique = frozenset(candidate_ids)
        if len(unique) != len(candidate_ids):
            raise ValueError("Invalid ballot: duplicate candidates")
        parsed[position_id] = unique
    return parsed


def validate_selections(ballot: Ballot, snapshot: CatalogSnapshot) -> tuple[tuple[int, int], ...]:
    """Check positions, candidates and selection counts; return the flattened pairs."""
    normalized = {int(pid): frozenset(int(cid) for cid in cids) for pid, cids in ballot.items()}

    for position_id in sorted(normalized):
        if position_id not in snapshot.positions:
            raise PositionClosedError(
                f"Position {position_id} is not open for voting",
                position_id=position_id,
            )

    for position_id in sorted(normalized):
        for candidate_id in sorted(normalized[position_id]):
            candidate = snapshot.candidates.get(candidate_id)
            if candidate is None or candidate.position_id != position_id:
                raise InvalidCandidateError(
                    f"Candidate {candidate_id} is not an active candidate for position {position_id}",
                    position_id=position_id,
                    candidate_id=candidate_id,
                )

    for position_id in sorted(normalized):
        seats = snapshot.positions[position_id].seats
        if len(normalized[position_id]) > seats:
            raise TooManySelectionsError(
                f"At most {seats} candidate(s) may be selected for position {position_id}",
                position_id=position_id,
            )

    return tuple(
        (position_id, candidate_id)
        for position_id in sorted(normalized)
        for candidate_id in sorted(normalized[position_id])
    )


def validate_ballot(
    *,
    voter: VoterRecord | None,
    ballot: Ballot,
    snapshot: CatalogSnapshot,
) -> ValidatedBallot:
    if voter is None:
        raise NotEligibleError("Voter not found")
    if not voter.is_active:
        raise NotEligibleError("Voter is not active")
    if voter.has_voted:
        raise NotEligibleError("Voter has already voted")

    # Omitted positions and empty selections are abstentions.
    return ValidatedBallot(
        voter_id=voter.voter_id,
        selections=validate_selections(ballot, snapshot),
    )
