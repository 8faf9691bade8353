# apps/matches/views.py
# =====================================================================
"""Async API views for the 'matches' application."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from django.http import HttpRequest

from apps.core.conf import CACHE_PREFIXES, CACHE_TTL, game_mode_name
from common.parsers_utils import parse_match_id
from common.views_utils import BaseAppView

if TYPE_CHECKING:
    from apps.core.schemas import MatchDetail, MatchParticipant

log = structlog.get_logger(__name__).bind(component="MatchViews")


def _participant_row(p: MatchParticipant, radiant_win: bool | None) -> dict[str, Any]:
    row = p.model_dump(mode="json", exclude_none=True)
    for slot in range(6):
        row.pop(f"item_{slot}", None)
    row.update(
        is_radiant=p.is_radiant,
        won=None if radiant_win is None else p.is_radiant == radiant_win,
        kda=round(p.kda, 2),
        items=p.items,
    )
    return row


def serialize_match(match: MatchDetail) -> dict[str, Any]:
    data = match.model_dump(mode="json", exclude_none=True, exclude={"players"})
    data["game_mode_name"] = game_mode_name(match.game_mode)
    data["radiant"] = [_participant_row(p, match.radiant_win) for p in match.players if p.is_radiant]
    data["dire"] = [_participant_row(p, match.radiant_win) for p in match.players if not p.is_radiant]
    return data


class MatchDetailView(BaseAppView):
    """GET /api/v1/matches/{match_id} – full match with both teams' players."""

    CACHE_PREFIX = CACHE_PREFIXES["match"]
    CACHE_TTL = CACHE_TTL["match"]

    def _get_params(self, request: HttpRequest, **kwargs) -> dict[str, Any]:
        return {"match_id": parse_match_id(kwargs["match_id"])}

    async def _produce_payload(self, p: dict[str, Any]) -> dict[str, Any]:
        match = await self.services.client.get_match(p["match_id"])
        return serialize_match(match)
