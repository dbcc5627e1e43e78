"""Read-only results endpoints. Both recompute from the vote ledger on every call."""

from django.http import JsonResponse
from django.views.decorators.http import require_GET

from ballots.elections_services import build_tally_payload, build_winners_payload, get_tally, get_winners
from ballots.exceptions import BallotRejectedError
from ballots.views_elections._helpers import _bad_request, _position_filter, _rejection_response
from ballots.winners import RESULTS_TIEBREAK_DESCRIPTION


@require_GET
def election_results(request):
    try:
        position_id = _position_filter(request)
    except ValueError as exc:
        return _bad_request(str(exc))

    try:
        tallies = get_tally(position_id)
    except BallotRejectedError as exc:
        return _rejection_response(exc)

    return JsonResponse({"ok": True, "positions": build_tally_payload(tallies)})


@require_GET
def election_winners(request):
    try:
        position_id = _position_filter(request)
    except ValueError as exc:
        return _bad_request(str(exc))

    try:
        results = get_winners(position_id)
    except BallotRejectedError as exc:
        return _rejection_response(exc)

    return JsonResponse(
        {
            "ok": True,
            "tiebreak": RESULTS_TIEBREAK_DESCRIPTION,
            "positions": build_winners_payload(results),
        }
    )
