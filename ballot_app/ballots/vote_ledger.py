from __future__ import annotations

import logging
from dataclasses import dataclass

from django.db import DatabaseError, transaction
from django.utils import timezone

from ballots.ballot_validation import ValidatedBallot, validate_selections
from ballots.catalog import load_catalog_snapshot
from ballots.exceptions import BallotConflictError, NotEligibleError, StorageFailureError
from ballots.models import Vote, Voter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommitResult:
    voter_id: int
    votes_recorded: int


def _claim_voter(voter_id: int) -> None:
    """Flip has_voted for an active voter that has not voted yet.

    The conditional UPDATE is the serialization point for concurrent
    submissions by the same voter: only one of them can match the row.
    """
    claimed = Voter.objects.filter(
        pk=voter_id,
        status=Voter.Status.active,
        has_voted=False,
    ).update(has_voted=True, voted_at=timezone.now())
    if claimed == 1:
        return

    current = Voter.objects.filter(pk=voter_id).values("status", "has_voted").first()
    if current is not None and current["has_voted"]:
        raise BallotConflictError("A ballot has already been recorded for this voter")
    raise NotEligibleError("Voter is not eligible to vote")


@transaction.atomic
def _commit(validated_ballot: ValidatedBallot) -> CommitResult:
    voter_id = validated_ballot.voter_id
    _claim_voter(voter_id)

    # Positions may have closed, or candidates been deactivated, after the ballot
    # was validated against the cached catalog.
    fresh = load_catalog_snapshot(position_ids=validated_ballot.position_ids)
    ballot: dict[int, list[int]] = {}
    for position_id, candidate_id in validated_ballot.selections:
        ballot.setdefault(position_id, []).append(candidate_id)
    selections = validate_selections(ballot, fresh)

    Vote.objects.bulk_create(
        [
            Vote(position_id=position_id, voter_id=voter_id, candidate_id=candidate_id)
            for position_id, candidate_id in selections
        ]
    )
    return CommitResult(voter_id=voter_id, votes_recorded=len(selections))


def commit_ballot(*, validated_ballot: ValidatedBallot) -> CommitResult:
    """Record every vote of a validated ballot and mark the voter as having voted.

    Either both happen or neither does. Rejections raised inside the transaction
    (conflict, closed position, deactivated candidate) roll it back and propagate
    unchanged; database errors are reported as StorageFailureError.
    """
    try:
        result = _commit(validated_ballot)
    except DatabaseError as exc:
        logger.exception(
            "ballot_commit_failure voter=%s selections=%d",
            validated_ballot.voter_id,
            len(validated_ballot.selections),
        )
        raise StorageFailureError("The ballot could not be recorded; no votes were stored") from exc

    logger.info(
        "ballot_committed voter=%s votes=%d positions=%d",
        result.voter_id,
        result.votes_recorded,
        len(validated_ballot.position_ids),
    )
    return result


def ledger_vote_count(*, voter_id: int | None = None) -> int:
    qs = Vote.objects.all()
    if voter_id is not None:
        qs = qs.filter(voter_id=voter_id)
    return qs.count()
