# apps/players/views.py
# ======================================================================
"""Asynchronous API views for the 'players' application."""

from __future__ import annotations

from typing import Any

import structlog
from django.http import HttpRequest

from apps.core.conf import CACHE_PREFIXES, CACHE_TTL
from common.parsers_utils import normalize_account_id
from common.views_utils import BaseAppView

from .conf import MAX_MMR_DAYS
from .services.player_stats import PlayerStatsService

log = structlog.get_logger(__name__).bind(component="PlayersViews")


class PlayerView(BaseAppView):
    """Shared parameter parsing: every player route is keyed by the account id."""

    def _get_params(self, request: HttpRequest, **kwargs) -> dict[str, Any]:
        return {"account_id": normalize_account_id(kwargs["steam_id"])}

    @property
    def stats(self) -> PlayerStatsService:
        return PlayerStatsService(self.services)


class PlayerProfileView(PlayerView):
    """GET /api/v1/players/{steam_id} – profile, rank tier and MMR estimate."""

    CACHE_PREFIX = CACHE_PREFIXES["player"]
    CACHE_TTL = CACHE_TTL["player"]

    async def _produce_payload(self, p: dict[str, Any]) -> dict[str, Any]:
        return await self.stats.profile(p["account_id"])


class PlayerMatchesView(PlayerView):
    """GET /api/v1/players/{steam_id}/matches – paged match history, optional `hero_id` filter."""

    CACHE_PREFIX = CACHE_PREFIXES["player_matches"]
    CACHE_TTL = CACHE_TTL["matches"]

    def _get_params(self, request: HttpRequest, **kwargs) -> dict[str, Any]:
        page = self.get_page(request)
        return {
            **super()._get_params(request, **kwargs),
            "page": page.number,
            "limit": page.size,
            "hero_id": self.get_int_param(request, "hero_id", default=None, min_val=1),
        }

    async def _produce_payload(self, p: dict[str, Any]) -> list[dict[str, Any]]:
        return await self.stats.matches(p["account_id"], page=p["page"], limit=p["limit"], hero_id=p["hero_id"])


class PlayerHeroesView(PlayerView):
    """GET /api/v1/players/{steam_id}/heroes – per-hero table with comfort scores."""

    CACHE_PREFIX = CACHE_PREFIXES["player_heroes"]
    CACHE_TTL = CACHE_TTL["heroes"]

    async def _produce_payload(self, p: dict[str, Any]) -> dict[str, Any]:
        return await self.stats.heroes(p["account_id"])


class PlayerRolesView(PlayerView):
    CACHE_PREFIX = CACHE_PREFIXES["player_roles"]
    CACHE_TTL = CACHE_TTL["heroes"]

    async def _produce_payload(self, p: dict[str, Any]) -> dict[str, Any]:
        return await self.stats.roles(p["account_id"])


class PlayerPeersView(PlayerView):
    CACHE_PREFIX = CACHE_PREFIXES["player_peers"]
    CACHE_TTL = CACHE_TTL["peers"]

    async def _produce_payload(self, p: dict[str, Any]):
        return await self.stats.peers(p["account_id"])


class PlayerTrendsView(PlayerView):
    CACHE_PREFIX = CACHE_PREFIXES["player_trends"]
    CACHE_TTL = CACHE_TTL["trends"]

    async def _produce_payload(self, p: dict[str, Any]):
        return await self.stats.trends(p["account_id"])


class PlayerHeatmapView(PlayerView):
    """GET /api/v1/players/{steam_id}/heatmap – 7×24 grid of games by UTC day and hour."""

    CACHE_PREFIX = CACHE_PREFIXES["heatmap"]
    CACHE_TTL = CACHE_TTL["heatmap"]

    async def _produce_payload(self, p: dict[str, Any]):
        return await self.stats.heatmap(p["account_id"])


class PlayerInsightsView(PlayerView):
    CACHE_PREFIX = CACHE_PREFIXES["player_insights"]
    CACHE_TTL = CACHE_TTL["insights"]

    async def _produce_payload(self, p: dict[str, Any]):
        return await self.stats.insights(p["account_id"])


class PlayerSessionView(PlayerView):
    """GET /api/v1/players/{steam_id}/session – today's (or yesterday's) games."""

    CACHE_PREFIX = CACHE_PREFIXES["session"]
    CACHE_TTL = CACHE_TTL["matches"]

    async def _produce_payload(self, p: dict[str, Any]):
        return await self.stats.session(p["account_id"])


class PlayerMmrView(PlayerView):
    CACHE_PREFIX = CACHE_PREFIXES["mmr"]
    CACHE_TTL = CACHE_TTL["trends"]

    def _get_params(self, request: HttpRequest, **kwargs) -> dict[str, Any]:
        return {
            **super()._get_params(request, **kwargs),
            "days": self.get_int_param(request, "days", default=MAX_MMR_DAYS, min_val=1, max_val=MAX_MMR_DAYS),
        }

    async def _produce_payload(self, p: dict[str, Any]) -> dict[str, Any]:
        return await self.stats.mmr(p["account_id"], days=p["days"])


class PlayerLiveView(PlayerView):
    """GET /api/v1/players/{steam_id}/live – in game, online or offline."""

    CACHE_PREFIX = CACHE_PREFIXES["player_live"]
    CACHE_TTL = CACHE_TTL["live"]

    async def _produce_payload(self, p: dict[str, Any]):
        return await self.stats.live(p["account_id"])
