"""Constants and threshold models for the 'analytics' app."""

from __future__ import annotations

from enum import IntEnum
from typing import Final

from pydantic import BaseModel, ConfigDict

# ─── Roles ─────────────────────────────────────────────────────────────────────


class Role(IntEnum):
    """Lane position, as reported by OpenDota's ``lane_role`` for parsed matches."""

    UNKNOWN = 0
    SAFE_LANE = 1
    MID_LANE = 2
    OFF_LANE = 3
    SOFT_SUPPORT = 4
    HARD_SUPPORT = 5

    @property
    def label(self) -> str:
        return ROLE_NAMES[self]


ROLE_NAMES: Final[dict[Role, str]] = {
    Role.UNKNOWN: "Unknown",
    Role.SAFE_LANE: "Safe Lane",
    Role.MID_LANE: "Mid Lane",
    Role.OFF_LANE: "Off Lane",
    Role.SOFT_SUPPORT: "Soft Support",
    Role.HARD_SUPPORT: "Hard Support",
}

KNOWN_ROLES: Final[tuple[Role, ...]] = tuple(r for r in Role if r is not Role.UNKNOWN)

DAY_NAMES: Final[tuple[str, ...]] = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)

# ─── Comfort score ─────────────────────────────────────────────────────────────
COMFORT_GAMES_PLATEAU: Final[int] = 100
COMFORT_RECENCY_DAYS: Final[int] = 30
COMFORT_WEIGHTS: Final[dict[str, float]] = {
    "games": 0.30,
    "winrate": 0.35,
    "recency": 0.15,
    "consistency": 0.20,
}

# ─── Aggregation ───────────────────────────────────────────────────────────────
TREND_WINDOW: Final[int] = 20
MIN_PEER_GAMES_FOR_RANKING: Final[int] = 5
MIN_HERO_GAMES_FOR_BEST: Final[int] = 5
MMR_PER_GAME: Final[int] = 30
DEFAULT_MMR_ESTIMATE: Final[int] = 2500
TILT_CAP: Final[int] = 3
LIVE_IN_GAME_MINUTES: Final[int] = 5
LIVE_ONLINE_MINUTES: Final[int] = 30
MAX_ROLE_ENRICHMENT_MATCHES: Final[int] = 50

# ─── Match batch sizes requested per view ─────────────────────────────────────
MATCH_BATCH: Final[dict[str, int]] = {
    "heroes": 500,
    "roles": 500,
    "peers": 500,
    "trends": 500,
    "mmr": 500,
    "heatmap": 200,
    "session": 100,
    "insights": 100,
}


# ─── Insight thresholds ────────────────────────────────────────────────────────


class InsightThresholds(BaseModel):
    """Tunables for the insight rules. Defaults reproduce the dashboard's behaviour."""

    min_games_for_hero_stats: int = 5
    min_heroes_in_pool: int = 5
    min_games_for_role_stats: int = 10
    min_games_with_peer: int = 10
    specialist_games: int = 50
    specialist_winrate: float = 55.0
    needs_work_games: int = 20
    needs_work_winrate: float = 45.0
    role_winrate_gap: float = 15.0
    synergy_threshold: float = 10.0
    win_streak: int = 5
    loss_streak: int = 3
    uptrend_margin: float = 5.0
    slump_margin: float = 10.0
    best_time_games: int = 10
    best_time_winrate_bonus: float = 5.0

    model_config = ConfigDict(frozen=True)
