"""Election API views.

All public view functions are re-exported here so that ``ballots.urls`` can
reference ``views_elections.<view_name>``.
"""

from ballots.views_elections.results import election_results, election_winners
from ballots.views_elections.vote import ballot_submit, voter_login

__all__ = [
    "ballot_submit",
    "election_results",
    "election_winners",
    "voter_login",
]
