"""Core configuration, constants, and Pydantic models for the entire project."""

from __future__ import annotations

from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, model_validator

# ─── Constants ──────────────────────────────────────────────────────────────────

OPENDOTA_BASE_URL: Final[str] = "https://api.opendota.com/api"
DEFAULT_TIMEOUT_S: Final[int] = 30

# Free tier: 60 requests per minute
DEFAULT_RATE_LIMIT: Final[int] = 60
DEFAULT_RATE_WINDOW_S: Final[float] = 60.0

DEFAULT_CACHE_CONNECT_TIMEOUT_S: Final[float] = 2.0

# User agents for rotation
USER_AGENTS: Final[tuple[str, ...]] = (
    # Desktop Browsers
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.0 Safari/605.1.15",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:123.0) Gecko/20100101 Firefox/123.0",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
)

# Cache TTLs (seconds)
CACHE_TTL: Final[dict[str, int]] = {
    "player": 60 * 5,
    "matches": 60 * 2,
    "heroes": 60 * 10,
    "peers": 60 * 5,
    "pros": 60 * 60,
    "heroes_data": 60 * 60 * 24,
    "trends": 60 * 15,
    "heatmap": 60 * 15,
    "insights": 60 * 2 + 30,
    "live": 30,
    "match": 60 * 60,
}

# Cache key prefixes
CACHE_PREFIXES: Final[dict[str, str]] = {
    "player": "player:",
    "player_matches": "player:matches:",
    "player_heroes": "player:heroes:",
    "player_peers": "player:peers:",
    "player_roles": "player:roles:",
    "player_trends": "player:trends:",
    "player_insights": "player:insights:",
    "player_live": "player:live:",
    "heatmap": "heatmap:",
    "session": "session:",
    "mmr": "mmr:",
    "match": "match:",
    "heroes_data": "heroes:data:",
    "pros": "pros:",
}

# Fields requested from /players/{id}/matches; the default projection omits GPM and lanes.
MATCH_PROJECTION: Final[tuple[str, ...]] = (
    "hero_id",
    "player_slot",
    "radiant_win",
    "kills",
    "deaths",
    "assists",
    "gold_per_min",
    "xp_per_min",
    "duration",
    "start_time",
    "game_mode",
    "lobby_type",
    "version",
    "lane",
    "lane_role",
    "is_roaming",
    "hero_damage",
    "tower_damage",
    "last_hits",
    "party_size",
)

HERO_ICON_CDN: Final[str] = "https://cdn.cloudflare.steamstatic.com/apps/dota2/images/dota_react/heroes"

GAME_MODES: Final[dict[int, str]] = {
    1: "All Pick",
    2: "Captains Mode",
    3: "Random Draft",
    4: "Single Draft",
    5: "All Random",
    12: "Least Played",
    16: "Captains Draft",
    22: "Ranked All Pick",
    23: "Turbo",
}


def game_mode_name(mode: int | None) -> str:
    if mode is None:
        return "Unknown"
    return GAME_MODES.get(mode, f"Mode {mode}")


# ─── Base Pydantic Models ───────────────────────────────────────────────────────


class UpstreamModel(BaseModel):
    """Base for every record parsed from an OpenDota response."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # OpenDota sends explicit nulls for unparsed stats; let defaults apply.
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class PlayerQuery(BaseModel):
    """Validated query options for the player match-list endpoint."""

    limit: int | None = Field(default=None, ge=1, le=5000)
    offset: int | None = Field(default=None, ge=0)
    hero_id: int | None = Field(default=None, ge=1)
    project: tuple[str, ...] = ()

    model_config = ConfigDict(frozen=True)

    def as_params(self) -> list[tuple[str, str | int]]:
        params: list[tuple[str, str | int]] = []
        if self.limit:
            params.append(("limit", self.limit))
        if self.offset:
            params.append(("offset", self.offset))
        if self.hero_id:
            params.append(("hero_id", self.hero_id))
        params.extend(("project", field) for field in self.project)
        return params
