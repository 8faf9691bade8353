# apps/players/urls.py
# ================================================================================
from __future__ import annotations

from django.urls import include, path

from .views import (
    PlayerHeatmapView,
    PlayerHeroesView,
    PlayerInsightsView,
    PlayerLiveView,
    PlayerMatchesView,
    PlayerMmrView,
    PlayerPeersView,
    PlayerProfileView,
    PlayerRolesView,
    PlayerSessionView,
    PlayerTrendsView,
)

app_name = "players"

player_id_patterns = [
    path("", PlayerProfileView.as_view(), name="player-profile"),
    path("/matches", PlayerMatchesView.as_view(), name="player-matches"),
    path("/heroes", PlayerHeroesView.as_view(), name="player-heroes"),
    path("/roles", PlayerRolesView.as_view(), name="player-roles"),
    path("/peers", PlayerPeersView.as_view(), name="player-peers"),
    path("/trends", PlayerTrendsView.as_view(), name="player-trends"),
    path("/heatmap", PlayerHeatmapView.as_view(), name="player-heatmap"),
    path("/insights", PlayerInsightsView.as_view(), name="player-insights"),
    path("/session", PlayerSessionView.as_view(), name="player-session"),
    path("/mmr", PlayerMmrView.as_view(), name="player-mmr"),
    path("/live", PlayerLiveView.as_view(), name="player-live"),
]

# Steam ids are accepted in either the 32-bit or the 64-bit form.
urlpatterns = [
    path("/<str:steam_id>", include(player_id_patterns)),
]
