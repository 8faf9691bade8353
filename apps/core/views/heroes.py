# apps/core/views/heroes.py

from __future__ import annotations

from typing import Any

from django.http import HttpRequest

from apps.core.conf import CACHE_PREFIXES, CACHE_TTL
from apps.players.services.player_stats import PlayerStatsService
from common.views_utils import BaseAppView


class HeroCatalogView(BaseAppView):
    """GET /api/v1/heroes – every hero with attribute, roles and icon."""

    CACHE_PREFIX = CACHE_PREFIXES["heroes_data"]
    CACHE_TTL = CACHE_TTL["heroes_data"]

    def _get_params(self, request: HttpRequest, **kwargs) -> dict[str, Any]:
        return {}

    async def _produce_payload(self, p: dict[str, Any]) -> list[dict[str, Any]]:
        return await PlayerStatsService(self.services).hero_catalog()
