"""Shared private helpers used across the election API views."""

import json

from django.http import JsonResponse

from ballots.exceptions import BallotRejectedError, RejectionReason

_REJECTION_STATUS: dict[RejectionReason, int] = {
    RejectionReason.not_eligible: 403,
    RejectionReason.position_closed: 400,
    RejectionReason.invalid_candidate: 400,
    RejectionReason.too_many_selections: 400,
    RejectionReason.conflict: 409,
    RejectionReason.storage_failure: 503,
}


def _json_body(request) -> dict[str, object]:
    """Decode a JSON object body, falling back to form-encoded POST data."""
    if request.content_type and request.content_type.startswith("application/json"):
        raw = request.body.decode("utf-8") if request.body else "{}"
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError("request body must be a JSON object")
        return data
    return {key: request.POST.get(key) for key in request.POST}


def _credentials_from(data: dict[str, object]) -> tuple[str, str]:
    voter_id_number = str(data.get("voter_id_number") or "").strip()
    credential = str(data.get("credential") or "")
    if not voter_id_number:
        raise ValueError("voter_id_number is required")
    if not credential:
        raise ValueError("credential is required")
    return voter_id_number, credential


def _position_filter(request) -> int | None:
    raw = str(request.GET.get("position") or "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError("position must be an integer") from exc


def _bad_request(message: str) -> JsonResponse:
    return JsonResponse({"ok": False, "error": message}, status=400)


def _rejection_response(exc: BallotRejectedError) -> JsonResponse:
    return JsonResponse(
        {"ok": False, "reason": str(exc.reason), "error": str(exc)},
        status=_REJECTION_STATUS.get(exc.reason, 400),
    )
