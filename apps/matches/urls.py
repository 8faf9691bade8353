# apps/matches/urls.py
from __future__ import annotations

from django.urls import path

from .views import MatchDetailView

app_name = "matches"

urlpatterns = [
    path("/<str:match_id>", MatchDetailView.as_view(), name="match-detail"),
]
