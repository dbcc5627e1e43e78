from __future__ import annotations

import logging
from dataclasses import dataclass

from django.contrib.auth.hashers import make_password
from django.db import DatabaseError

from ballots.ballot_validation import Ballot, validate_ballot
from ballots.catalog import catalog_snapshot, get_voter
from ballots.exceptions import BallotRejectedError, NotEligibleError, StorageFailureError
from ballots.models import Voter
from ballots.tally import CandidateTally, PositionTally, tally_positions
from ballots.vote_ledger import commit_ballot
from ballots.winners import PositionWinners, resolve_winners

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BallotAcceptance:
    voter_id: int
    votes_recorded: int


def authenticate_voter(*, voter_id_number: str, credential: str) -> Voter:
    voter_id_number = str(voter_id_number or "").strip()
    try:
        voter = Voter.objects.filter(id_number=voter_id_number).first() if voter_id_number else None
    except DatabaseError as exc:
        raise StorageFailureError("Voter records are temporarily unavailable") from exc

    if voter is None:
        # Hash anyway so unknown and known voters take comparable time.
        make_password(credential or "")
        raise NotEligibleError("Invalid voter id or credential")
    if not voter.check_credential(str(credential or "")):
        raise NotEligibleError("Invalid voter id or credential")
    return voter


def submit_ballot(*, voter_id_number: str, credential: str, ballot: Ballot) -> BallotAcceptance:
    """Authenticate, validate and commit one voter's ballot.

    Any rejection is raised as a BallotRejectedError subclass and leaves no
    trace in the ledger; callers may retry safely.
    """
    try:
        voter = authenticate_voter(voter_id_number=voter_id_number, credential=credential)
        validated = validate_ballot(
            voter=get_voter(voter.id),
            ballot=ballot,
            snapshot=catalog_snapshot(),
        )
        result = commit_ballot(validated_ballot=validated)
    except StorageFailureError:
        raise
    except BallotRejectedError as exc:
        logger.info(
            "ballot_rejected voter_id_number=%s reason=%s",
            str(voter_id_number or "").strip(),
            exc.reason,
        )
        raise
    except DatabaseError as exc:
        logger.exception("ballot_submission_storage_failure voter_id_number=%s", voter_id_number)
        raise StorageFailureError("The ballot could not be recorded; no votes were stored") from exc

    return BallotAcceptance(voter_id=result.voter_id, votes_recorded=result.votes_recorded)


def voter_ballot_form(*, voter_id_number: str, credential: str) -> dict[str, object]:
    """Authenticate a voter and return what they may vote on.

    Voters who are inactive or have already voted are refused here too, so a
    client never renders a ballot that would be rejected on submit.
    """
    voter = authenticate_voter(voter_id_number=voter_id_number, credential=credential)
    if not voter.is_active:
        raise NotEligibleError("Voter is not active")
    if voter.has_voted:
        raise NotEligibleError("Voter has already voted")

    try:
        snapshot = catalog_snapshot()
    except DatabaseError as exc:
        raise StorageFailureError("The ballot is temporarily unavailable") from exc

    positions: list[dict[str, object]] = []
    for position in sorted(snapshot.positions.values(), key=lambda p: p.position_id):
        positions.append(
            {
                "position_id": position.position_id,
                "name": position.name,
                "seats": position.seats,
                "candidates": [
                    {"candidate_id": c.candidate_id, "name": c.name}
                    for c in snapshot.candidates_for(position.position_id)
                ],
            }
        )

    return {
        "voter": {
            "voter_id": voter.id,
            "id_number": voter.id_number,
            "first_name": voter.first_name,
            "last_name": voter.last_name,
        },
        "positions": positions,
    }


def get_tally(position_id: int | None = None) -> list[PositionTally]:
    return tally_positions(position_id)


def get_winners(position_id: int | None = None) -> list[PositionWinners]:
    return resolve_winners(position_id)


def _candidate_payload(entry: CandidateTally) -> dict[str, object]:
    return {
        "candidate_id": entry.candidate_id,
        "id_number": entry.id_number,
        "name": entry.name,
        "is_active": entry.is_active,
        "vote_count": entry.vote_count,
        "percentage": round(entry.percentage, 2),
    }


def build_tally_payload(tallies: list[PositionTally]) -> list[dict[str, object]]:
    return [
        {
            "position_id": t.position_id,
            "name": t.name,
            "seats": t.seats,
            "status": t.status,
            "total_votes": t.total_votes,
            "candidates": [_candidate_payload(c) for c in t.candidates],
        }
        for t in tallies
    ]


def build_winners_payload(results: list[PositionWinners]) -> list[dict[str, object]]:
    return [
        {
            "position_id": r.position_id,
            "name": r.name,
            "seats": r.seats,
            "total_votes": r.total_votes,
            "winners": [
                {"rank": rank, **_candidate_payload(c)}
                for rank, c in enumerate(r.winners, start=1)
            ],
            "tie_at_cutoff": r.tie_at_cutoff,
            "tied_candidate_ids": list(r.tied_candidate_ids),
            "tiebreak_rule": r.tiebreak_rule,
        }
        for r in results
    ]
