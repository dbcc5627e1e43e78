import enum


class RejectionReason(enum.StrEnum):
    not_eligible = "not_eligible"
    position_closed = "position_closed"
    invalid_candidate = "invalid_candidate"
    too_many_selections = "too_many_selections"
    conflict = "conflict"
    storage_failure = "storage_failure"


class BallotError(Exception):
    pass


class BallotRejectedError(BallotError):
    """A ballot submission (or results read) that ended without changing any state.

    ``reason`` is the stable machine-readable code surfaced to API callers.
    """

    reason: RejectionReason = RejectionReason.storage_failure

    def __init__(self, message: str, *, position_id: int | None = None, candidate_id: int | None = None) -> None:
        super().__init__(message)
        self.position_id = position_id
        self.candidate_id = candidate_id


class NotEligibleError(BallotRejectedError):
    reason = RejectionReason.not_eligible


class PositionClosedError(BallotRejectedError):
    reason = RejectionReason.position_closed


class InvalidCandidateError(BallotRejectedError):
    reason = RejectionReason.invalid_candidate


class TooManySelectionsError(BallotRejectedError):
    reason = RejectionReason.too_many_selections


class BallotConflictError(BallotRejectedError):
    """Another submission for the same voter committed first."""

    reason = RejectionReason.conflict


class StorageFailureError(BallotRejectedError):
    reason = RejectionReason.storage_failure
