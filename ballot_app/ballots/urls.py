from django.urls import path

from ballots import views_elections, views_health

urlpatterns = [
    path("api/voters/login", views_elections.voter_login, name="voter-login"),
    path("api/votes", views_elections.ballot_submit, name="ballot-submit"),
    path("api/results", views_elections.election_results, name="election-results"),
    path("api/winners", views_elections.election_winners, name="election-winners"),
    path("healthz", views_health.healthz, name="healthz"),
    path("readyz", views_health.readyz, name="readyz"),
]
