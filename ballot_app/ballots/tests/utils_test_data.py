from django.contrib.auth.hashers import make_password

from ballots.models import Candidate, Position, Vote, Voter

# Hashing with the production hasher makes every voter fixture slow.
FAST_PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

DEFAULT_CREDENTIAL = "correct horse battery staple"


def create_position(
    name: str = "Councilor",
    *,
    seats: int = 1,
    status: str = Position.Status.open,
) -> Position:
    return Position.objects.create(name=name, seats=seats, status=status)


def create_candidate(
    position: Position,
    id_number: str,
    *,
    first_name: str | None = None,
    last_name: str = "",
    is_active: bool = True,
) -> Candidate:
    return Candidate.objects.create(
        position=position,
        id_number=id_number,
        first_name=first_name if first_name is not None else id_number,
        last_name=last_name,
        is_active=is_active,
    )


def create_voter(
    id_number: str,
    *,
    credential: str = DEFAULT_CREDENTIAL,
    status: str = Voter.Status.active,
    has_voted: bool = False,
) -> Voter:
    return Voter.objects.create(
        id_number=id_number,
        password=make_password(credential),
        first_name=id_number.capitalize(),
        status=status,
        has_voted=has_voted,
    )


def record_votes(position: Position, candidate: Candidate, count: int, *, prefix: str = "") -> None:
    """Insert `count` votes for a candidate, each from a fresh voter that has voted."""
    label = prefix or f"c{candidate.id}"
    for n in range(count):
        voter = Voter.objects.create(
            id_number=f"{label}-voter-{n}",
            password="!",
            status=Voter.Status.active,
            has_voted=True,
        )
        Vote.objects.create(position=position, voter=voter, candidate=candidate)
