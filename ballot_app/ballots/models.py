from django.contrib.auth.hashers import check_password, make_password
from django.core.validators import MinValueValidator
from django.db import models


class Position(models.Model):
    class Status(models.TextChoices):
        open = "open", "Open"
        closed = "closed", "Closed"

    name = models.CharField(max_length=255)
    seats = models.PositiveSmallIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
        help_text="Number of winners, and the maximum number of selections on a ballot.",
    )
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.open)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("id",)
        constraints = [
            models.CheckConstraint(
                condition=models.Q(seats__gte=1),
                name="position_seats_positive",
            ),
        ]

    def __str__(self) -> str:
        return self.name

    @property
    def is_open(self) -> bool:
        return self.status == self.Status.open


class Candidate(models.Model):
    id_number = models.CharField(max_length=64, unique=True)
    first_name = models.CharField(max_length=255)
    last_name = models.CharField(max_length=255)
    position = models.ForeignKey(Position, on_delete=models.PROTECT, related_name="candidates")
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("position_id", "id")

    def __str__(self) -> str:
        return f"{self.full_name} ({self.position_id})"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Voter(models.Model):
    class Status(models.TextChoices):
        active = "active", "Active"
        inactive = "inactive", "Inactive"

    id_number = models.CharField(max_length=64, unique=True)
    password = models.CharField(max_length=128)
    first_name = models.CharField(max_length=255, blank=True, default="")
    last_name = models.CharField(max_length=255, blank=True, default="")
    # Voters are registered inactive and activated by an administrator.
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.inactive)

    # Only the vote ledger flips this, in the same transaction that records the votes.
    has_voted = models.BooleanField(default=False)
    voted_at = models.DateTimeField(blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("id_number", "id")

    def __str__(self) -> str:
        return self.id_number

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_active(self) -> bool:
        return self.status == self.Status.active

    def set_credential(self, raw_credential: str) -> None:
        self.password = make_password(raw_credential)

    def check_credential(self, raw_credential: str) -> bool:
        if not raw_credential or not self.password:
            return False
        return check_password(raw_credential, self.password)


class Vote(models.Model):
    """A single recorded selection. Rows are only ever inserted by the vote ledger."""

    position = models.ForeignKey(Position, on_delete=models.PROTECT, related_name="votes")
    voter = models.ForeignKey(Voter, on_delete=models.PROTECT, related_name="votes")
    candidate = models.ForeignKey(Candidate, on_delete=models.PROTECT, related_name="votes")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("id",)
        constraints = [
            models.UniqueConstraint(
                fields=["voter", "candidate"],
                name="uniq_vote_voter_candidate",
            ),
        ]
        indexes = [
            models.Index(fields=["position", "candidate"], name="vote_pos_cand"),
        ]

    def __str__(self) -> str:
        return f"vote:{self.position_id}:{self.candidate_id}"

    def save(self, *args, **kwargs) -> None:
        if not self._state.adding:
            raise ValueError("Recorded votes are immutable")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Recorded votes cannot be deleted")
