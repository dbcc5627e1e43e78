"""Read-only view of the election configuration used when validating ballots.

Positions and candidates are maintained by administrators elsewhere; this module
only reads them. The open-position/active-candidate snapshot is served through
Django's cache with a bounded staleness (``BALLOTS_CATALOG_CACHE_SECONDS``) and
is invalidated locally whenever a Position or Candidate row is saved. The vote
ledger never trusts the cached copy: it reloads the rows it needs with
``load_catalog_snapshot`` inside the commit transaction.
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from django.conf import settings
from django.core.cache import cache
from django.utils import timezone

from ballots.models import Candidate, Position, Voter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OpenPosition:
    position_id: int
    name: str
    seats: int


@dataclass(frozen=True)
class ActiveCandidate:
    candidate_id: int
    position_id: int
    name: str


@dataclass(frozen=True)
class VoterRecord:
    voter_id: int
    id_number: str
    is_active: bool
    has_voted: bool


@dataclass(frozen=True)
class CatalogSnapshot:
    positions: dict[int, OpenPosition] = field(default_factory=dict)
    candidates: dict[int, ActiveCandidate] = field(default_factory=dict)
    loaded_at: datetime.datetime | None = None

    def candidates_for(self, position_id: int) -> list[ActiveCandidate]:
        return sorted(
            (c for c in self.candidates.values() if c.position_id == position_id),
            key=lambda c: c.candidate_id,
        )


def _catalog_cache_key() -> str:
    return "ballots_catalog_snapshot"


def invalidate_catalog_cache() -> None:
    cache.delete(_catalog_cache_key())


def load_catalog_snapshot(*, position_ids: Iterable[int] | None = None) -> CatalogSnapshot:
    """Load open positions and their active candidates straight from the database."""
    positions_qs = Position.objects.filter(status=Position.Status.open).only("id", "name", "seats")
    candidates_qs = Candidate.objects.filter(
        is_active=True,
        position__status=Position.Status.open,
    ).only("id", "position_id", "first_name", "last_name")

    if position_ids is not None:
        wanted = {int(pid) for pid in position_ids}
        positions_qs = positions_qs.filter(pk__in=wanted)
        candidates_qs = candidates_qs.filter(position_id__in=wanted)

    positions = {
        int(p.id): OpenPosition(position_id=int(p.id), name=p.name, seats=int(p.seats))
        for p in positions_qs
    }
    candidates = {
        int(c.id): ActiveCandidate(candidate_id=int(c.id), position_id=int(c.position_id), name=c.full_name)
        for c in candidates_qs
    }
    return CatalogSnapshot(positions=positions, candidates=candidates, loaded_at=timezone.now())


def catalog_snapshot() -> CatalogSnapshot:
    key = _catalog_cache_key()
    snapshot = cache.get(key)
    if isinstance(snapshot, CatalogSnapshot):
        return snapshot

    snapshot = load_catalog_snapshot()
    cache.set(key, snapshot, timeout=int(settings.BALLOTS_CATALOG_CACHE_SECONDS))
    logger.debug(
        "catalog_snapshot_loaded positions=%d candidates=%d",
        len(snapshot.positions),
        len(snapshot.candidates),
    )
    return snapshot


def get_open_positions() -> list[OpenPosition]:
    return sorted(catalog_snapshot().positions.values(), key=lambda p: p.position_id)


def get_active_candidates(position_id: int) -> list[ActiveCandidate]:
    return catalog_snapshot().candidates_for(int(position_id))


def get_voter(voter_id: int) -> VoterRecord | None:
    # Eligibility must never come from a cache.
    voter = Voter.objects.filter(pk=voter_id).only("id", "id_number", "status", "has_voted").first()
    if voter is None:
        return None
    return VoterRecord(
        voter_id=int(voter.id),
        id_number=voter.id_number,
        is_active=voter.is_active,
        has_voted=bool(voter.has_voted),
    )
