from __future__ import annotations

from unittest.mock import patch

from django.core.cache import cache
from django.test import TestCase, override_settings

from ballots.ballot_validation import ValidatedBallot, validate_ballot
from ballots.elections_services import (
    authenticate_voter,
    get_tally,
    get_winners,
    submit_ballot,
    voter_ballot_form,
)
from ballots.exceptions import (
    BallotConflictError,
    NotEligibleError,
    PositionClosedError,
    TooManySelectionsError,
)
from ballots.models import Position, Vote, Voter
from ballots.tests.utils_test_data import (
    DEFAULT_CREDENTIAL,
    FAST_PASSWORD_HASHERS,
    create_candidate,
    create_position,
    create_voter,
)
from ballots.vote_ledger import commit_ballot, ledger_vote_count


@override_settings(PASSWORD_HASHERS=FAST_PASSWORD_HASHERS)
class SubmitBallotTests(TestCase):
    def setUp(self) -> None:
        cache.clear()
        self.president = create_position("President", seats=1)
        self.council = create_position("Councilor", seats=2)
        self.p1 = create_candidate(self.president, "p1")
        self.p2 = create_candidate(self.president, "p2")
        self.c1 = create_candidate(self.council, "c1")
        self.c2 = create_candidate(self.council, "c2")
        self.c3 = create_candidate(self.council, "c3")
        self.voter = create_voter("V")

    def _submit(self, ballot, *, credential: str = DEFAULT_CREDENTIAL, voter_id_number: str = "V"):
        return submit_ballot(voter_id_number=voter_id_number, credential=credential, ballot=ballot)

    def test_accepts_once_then_refuses_the_same_voter(self) -> None:
        acceptance = self._submit({self.president.id: [self.p1.id]})

        self.assertEqual(acceptance.voter_id, self.voter.id)
        self.assertEqual(acceptance.votes_recorded, 1)

        with self.assertRaises(NotEligibleError):
            self._submit({self.president.id: [self.p2.id], self.council.id: [self.c1.id]})

        self.assertEqual(
            list(Vote.objects.values_list("voter_id", "position_id", "candidate_id")),
            [(self.voter.id, self.president.id, self.p1.id)],
        )

    def test_repeated_submissions_accept_exactly_one(self) -> None:
        outcomes: list[str] = []
        for candidate in (self.p1, self.p2, self.p1, self.p2, self.p1):
            try:
                self._submit({self.president.id: [candidate.id]})
            except (NotEligibleError, BallotConflictError) as exc:
                outcomes.append(str(exc.reason))
            else:
                outcomes.append("accepted")

        self.assertEqual(outcomes.count("accepted"), 1)
        self.assertEqual(len(outcomes), 5)
        self.assertEqual(ledger_vote_count(voter_id=self.voter.id), 1)

    def test_commit_race_after_validation_is_a_conflict(self) -> None:
        competing_votes = ((self.council.id, self.c3.id),)

        def validate_then_lose_race(**kwargs) -> ValidatedBallot:
            validated = validate_ballot(**kwargs)
            # A concurrent request for the same voter commits in between.
            commit_ballot(
                validated_ballot=ValidatedBallot(voter_id=validated.voter_id, selections=competing_votes)
            )
            return validated

        with patch("ballots.elections_services.validate_ballot", side_effect=validate_then_lose_race):
            with self.assertRaises(BallotConflictError):
                self._submit({self.president.id: [self.p1.id]})

        self.assertEqual(
            list(Vote.objects.values_list("position_id", "candidate_id")),
            list(competing_votes),
        )

    def test_bad_credential_is_not_eligible(self) -> None:
        with self.assertRaises(NotEligibleError):
            self._submit({self.president.id: [self.p1.id]}, credential="wrong")
        with self.assertRaises(NotEligibleError):
            self._submit({self.president.id: [self.p1.id]}, credential="")

        self.voter.refresh_from_db()
        self.assertFalse(self.voter.has_voted)
        self.assertEqual(ledger_vote_count(), 0)

    def test_unknown_voter_is_not_eligible(self) -> None:
        with self.assertRaises(NotEligibleError):
            self._submit({self.president.id: [self.p1.id]}, voter_id_number="nobody")

    def test_inactive_voter_is_not_eligible(self) -> None:
        create_voter("sleeper", status=Voter.Status.inactive)
        with self.assertRaises(NotEligibleError):
            self._submit({self.president.id: [self.p1.id]}, voter_id_number="sleeper")

    def test_too_many_selections_is_never_partially_committed(self) -> None:
        with self.assertLogs("ballots.elections_services", level="INFO") as logs:
            with self.assertRaises(TooManySelectionsError):
                self._submit(
                    {
                        self.president.id: [self.p1.id],
                        self.council.id: [self.c1.id, self.c2.id, self.c3.id],
                    }
                )

        self.assertTrue(any("reason=too_many_selections" in line for line in logs.output))
        self.voter.refresh_from_db()
        self.assertFalse(self.voter.has_voted)
        self.assertEqual(ledger_vote_count(), 0)

    def test_closed_position_is_rejected(self) -> None:
        self.council.status = Position.Status.closed
        self.council.save()

        with self.assertRaises(PositionClosedError):
            self._submit({self.president.id: [self.p1.id], self.council.id: [self.c1.id]})

        self.assertFalse(Vote.objects.filter(position=self.council).exists())
        self.assertEqual(ledger_vote_count(), 0)

    def test_stale_cached_catalog_is_rechecked_at_commit(self) -> None:
        self._submit_warmup()
        # Closed by another process: the local cache still lists it as open.
        Position.objects.filter(pk=self.council.pk).update(status=Position.Status.closed)

        with self.assertRaises(PositionClosedError):
            self._submit({self.council.id: [self.c1.id]})

        self.voter.refresh_from_db()
        self.assertFalse(self.voter.has_voted)
        self.assertFalse(Vote.objects.filter(position=self.council).exists())

    def _submit_warmup(self) -> None:
        voter_ballot_form(voter_id_number="V", credential=DEFAULT_CREDENTIAL)

    def test_full_abstention_is_accepted(self) -> None:
        acceptance = self._submit({})

        self.assertEqual(acceptance.votes_recorded, 0)
        self.voter.refresh_from_db()
        self.assertTrue(self.voter.has_voted)


@override_settings(PASSWORD_HASHERS=FAST_PASSWORD_HASHERS)
class VoterBallotFormTests(TestCase):
    def setUp(self) -> None:
        cache.clear()
        self.president = create_position("President", seats=1)
        self.closed = create_position("Auditor", seats=1, status=Position.Status.closed)
        self.p1 = create_candidate(self.president, "p1", first_name="Pat", last_name="One")
        self.gone = create_candidate(self.president, "p2", is_active=False)
        create_candidate(self.closed, "a1")

    def test_lists_open_positions_with_active_candidates(self) -> None:
        voter = create_voter("V")

        form = voter_ballot_form(voter_id_number="V", credential=DEFAULT_CREDENTIAL)

        self.assertEqual(form["voter"]["voter_id"], voter.id)
        self.assertEqual(
            form["positions"],
            [
                {
                    "position_id": self.president.id,
                    "name": "President",
                    "seats": 1,
                    "candidates": [{"candidate_id": self.p1.id, "name": "Pat One"}],
                }
            ],
        )

    def test_refuses_voters_who_cannot_vote(self) -> None:
        create_voter("voted", has_voted=True)
        create_voter("inactive", status=Voter.Status.inactive)

        for id_number in ("voted", "inactive"):
            with self.subTest(voter=id_number):
                with self.assertRaises(NotEligibleError):
                    voter_ballot_form(voter_id_number=id_number, credential=DEFAULT_CREDENTIAL)

    def test_authenticate_voter_checks_credential(self) -> None:
        voter = create_voter("V", credential="s3cret")

        self.assertEqual(authenticate_voter(voter_id_number=" V ", credential="s3cret"), voter)
        with self.assertRaises(NotEligibleError):
            authenticate_voter(voter_id_number="V", credential="S3CRET")
        with self.assertRaises(NotEligibleError):
            authenticate_voter(voter_id_number="", credential="s3cret")


@override_settings(PASSWORD_HASHERS=FAST_PASSWORD_HASHERS)
class EndToEndTests(TestCase):
    def setUp(self) -> None:
        cache.clear()

    def test_votes_flow_into_tally_and_winners(self) -> None:
        council = create_position("Councilor", seats=2)
        a = create_candidate(council, "A")
        b = create_candidate(council, "B")
        c = create_candidate(council, "C")

        ballots = [[a.id, b.id]] * 3 + [[a.id, c.id]] * 2 + [[c.id]]
        for n, selection in enumerate(ballots):
            create_voter(f"v{n}")
            submit_ballot(voter_id_number=f"v{n}", credential=DEFAULT_CREDENTIAL, ballot={council.id: selection})

        [tally] = get_tally(council.id)
        self.assertEqual(
            [(e.candidate_id, e.vote_count) for e in tally.candidates],
            [(a.id, 5), (b.id, 3), (c.id, 3)],
        )
        self.assertEqual(tally.total_votes, 11)

        [winners] = get_winners(council.id)
        self.assertEqual([w.candidate_id for w in winners.winners], [a.id, b.id])
        self.assertEqual(winners.tied_candidate_ids, (b.id, c.id))
