"""Voter login and ballot submission endpoints."""

import json

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from ballots.ballot_validation import parse_ballot
from ballots.elections_services import submit_ballot, voter_ballot_form
from ballots.exceptions import BallotRejectedError
from ballots.views_elections._helpers import _bad_request, _credentials_from, _json_body, _rejection_response


def _ballot_from(data: dict[str, object]) -> dict[int, frozenset[int]]:
    # "votes" is the flat list of {position_id, candidate_id} pairs older clients send.
    raw = data.get("ballot")
    if raw is None:
        raw = data.get("votes")
    if raw is None:
        raise ValueError("ballot is required")
    if isinstance(raw, str):
        raw = json.loads(raw or "{}")
    return parse_ballot(raw)


@csrf_exempt
@require_POST
def voter_login(request):
    try:
        voter_id_number, credential = _credentials_from(_json_body(request))
    except (ValueError, json.JSONDecodeError) as exc:
        return _bad_request(str(exc))

    try:
        form = voter_ballot_form(voter_id_number=voter_id_number, credential=credential)
    except BallotRejectedError as exc:
        return _rejection_response(exc)

    return JsonResponse({"ok": True, **form})


@csrf_exempt
@require_POST
def ballot_submit(request):
    try:
        data = _json_body(request)
        voter_id_number, credential = _credentials_from(data)
        ballot = _ballot_from(data)
    except (ValueError, json.JSONDecodeError) as exc:
        return _bad_request(str(exc))

    try:
        acceptance = submit_ballot(
            voter_id_number=voter_id_number,
            credential=credential,
            ballot=ballot,
        )
    except BallotRejectedError as exc:
        return _rejection_response(exc)

    return JsonResponse(
        {
            "ok": True,
            "accepted": True,
            "votes_recorded": acceptance.votes_recorded,
        }
    )
