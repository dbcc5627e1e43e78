import json
import logging
from typing import override

from django.core.management.base import BaseCommand, CommandError

from ballots.elections_services import build_tally_payload, build_winners_payload, get_tally, get_winners
from ballots.exceptions import BallotRejectedError
from ballots.winners import RESULTS_TIEBREAK_DESCRIPTION

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Print current vote counts and percentages per position, or the winners with --winners."

    @override
    def add_arguments(self, parser) -> None:
        parser.add_argument(
            "--position",
            type=int,
            default=None,
            help="Only report this position id.",
        )
        parser.add_argument(
            "--winners",
            action="store_true",
            help="Report the winning candidates instead of the full tally.",
        )
        parser.add_argument(
            "--json",
            action="store_true",
            help="Emit machine-readable JSON.",
        )

    @override
    def handle(self, *args, **options) -> None:
        position_id: int | None = options.get("position")
        winners_only: bool = bool(options.get("winners"))
        as_json: bool = bool(options.get("json"))

        try:
            if winners_only:
                payload = build_winners_payload(get_winners(position_id))
            else:
                payload = build_tally_payload(get_tally(position_id))
        except BallotRejectedError as exc:
            logger.error("election_results_failure position=%s reason=%s", position_id, exc.reason)
            raise CommandError(str(exc)) from exc

        if as_json:
            self.stdout.write(json.dumps({"positions": payload}, indent=2, sort_keys=True))
            return

        if not payload:
            self.stdout.write("No positions found.")
            return

        for position in payload:
            self.stdout.write(
                f"{position['name']} (position {position['position_id']}, "
                f"{position['seats']} seat(s), {position['total_votes']} vote(s))"
            )
            if winners_only:
                for winner in position["winners"]:
                    self.stdout.write(
                        f"  {winner['rank']}. {winner['name']}: {winner['vote_count']} vote(s)"
                    )
                if position["tie_at_cutoff"]:
                    tied = ", ".join(str(cid) for cid in position["tied_candidate_ids"])
                    self.stdout.write(f"  Tie at the last seat between candidates {tied}.")
                    self.stdout.write(f"  {RESULTS_TIEBREAK_DESCRIPTION}")
            else:
                for candidate in position["candidates"]:
                    inactive = "" if candidate["is_active"] else " [inactive]"
                    self.stdout.write(
                        f"  {candidate['name']}{inactive}: {candidate['vote_count']} vote(s), "
                        f"{candidate['percentage']:.2f}%"
                    )
