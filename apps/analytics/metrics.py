"""
Pure calculators over batches of match records.

Nothing in here performs I/O. Every percentage returned is clamped to
[0, 100], and every division guards against an empty denominator.
"""

from __future__ import annotations

import math
import statistics
import time
from collections import defaultdict
from dataclasses import dataclass
from typing import TYPE_CHECKING

from apps.analytics.conf import (
    COMFORT_GAMES_PLATEAU,
    COMFORT_RECENCY_DAYS,
    COMFORT_WEIGHTS,
    KNOWN_ROLES,
    Role,
)
from common.time_utils import days_since

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from apps.core.schemas import MatchRecord, PlayerHeroStats

_MAX_ROLE_ENTROPY = math.log2(len(KNOWN_ROLES))


def clamp_pct(value: float) -> float:
    return min(100.0, max(0.0, value))


def kda(kills: int, deaths: int, assists: int) -> float:
    """(kills + assists) / deaths, with zero deaths counted as one."""
    return (kills + assists) / max(deaths, 1)


def winrate(wins: int, games: int) -> float:
    if games <= 0:
        return 0.0
    return clamp_pct(wins / games * 100)


# ─── Heroes ───────────────────────────────────────────────────────────────────


@dataclass(slots=True, frozen=True)
class HeroAggregate:
    hero_id: int
    games: int
    wins: int
    last_played: int

    @property
    def winrate(self) -> float:
        return winrate(self.wins, self.games)


def aggregate_heroes(matches: Iterable[MatchRecord]) -> list[HeroAggregate]:
    """Per-hero games, wins and latest start time, most played first."""
    games: dict[int, int] = defaultdict(int)
    wins: dict[int, int] = defaultdict(int)
    last: dict[int, int] = defaultdict(int)
    for m in matches:
        games[m.hero_id] += 1
        wins[m.hero_id] += m.won
        last[m.hero_id] = max(last[m.hero_id], m.start_time)
    rows = [HeroAggregate(h, games[h], wins[h], last[h]) for h in games]
    rows.sort(key=lambda r: (-r.games, r.hero_id))
    return rows


def _hero_matches(hero_id: int, matches: Iterable[MatchRecord]) -> list[MatchRecord]:
    return [m for m in matches if m.hero_id == hero_id]


def games_subscore(games: int) -> float:
    return min(games / COMFORT_GAMES_PLATEAU, 1.0) * 100


def recency_subscore(last_played: int, now: float) -> float:
    return max(0.0, 100 - days_since(last_played, now) * (100 / COMFORT_RECENCY_DAYS))


def consistency_subscore(kdas: Sequence[float]) -> float:
    if not kdas:
        return 0.0
    return max(0.0, 100 - statistics.pstdev(kdas) * 20)


def comfort_score(hero: PlayerHeroStats, matches: Sequence[MatchRecord], *, now: float | None = None) -> int:
    """
    Weighted 0-100 familiarity score for one hero.

    Games played and winrate come from the lifetime hero table; recency from
    ``last_played``; consistency from the spread of per-match KDA over the
    hero's matches in ``matches``. A hero with no games, or with no matches
    in the batch, scores 0.
    """
    hero_matches = _hero_matches(hero.hero_id, matches)
    if hero.games <= 0 or not hero_matches:
        return 0

    now = time.time() if now is None else now
    score = (
        games_subscore(hero.games) * COMFORT_WEIGHTS["games"]
        + winrate(hero.win, hero.games) * COMFORT_WEIGHTS["winrate"]
        + recency_subscore(hero.last_played, now) * COMFORT_WEIGHTS["recency"]
        + consistency_subscore([m.kda for m in hero_matches]) * COMFORT_WEIGHTS["consistency"]
    )
    return int(clamp_pct(round(score)))


def comfort_label(score: float) -> str:
    if score >= 80:
        return "Master"
    if score >= 60:
        return "Comfort"
    if score >= 40:
        return "Practice"
    return "Learning"


def average_kda(hero_id: int, matches: Iterable[MatchRecord]) -> float:
    hero_matches = _hero_matches(hero_id, matches)
    if not hero_matches:
        return 0.0
    return sum(m.kda for m in hero_matches) / len(hero_matches)


def average_gpm(hero_id: int, matches: Iterable[MatchRecord]) -> int:
    hero_matches = _hero_matches(hero_id, matches)
    if not hero_matches:
        return 0
    return round(sum(m.gold_per_min for m in hero_matches) / len(hero_matches))


# ─── Roles ────────────────────────────────────────────────────────────────────


def detect_role(match: MatchRecord) -> Role:
    """``lane_role`` when present, else the raw lane for cores, else UNKNOWN."""
    if match.lane_role is not None:
        return Role(match.lane_role) if 1 <= match.lane_role <= 5 else Role.UNKNOWN
    if match.lane in (1, 2, 3):
        return Role(match.lane)
    return Role.UNKNOWN


@dataclass(slots=True, frozen=True)
class RoleStats:
    role: Role
    games: int
    wins: int
    winrate: float
    avg_kda: float
    avg_gpm: int
    impact_score: float

    @property
    def name(self) -> str:
        return self.role.label


@dataclass(slots=True, frozen=True)
class RoleBreakdown:
    stats: tuple[RoleStats, ...]
    unknown_count: int
    parsed_count: int
    total_count: int

    @property
    def games_by_role(self) -> dict[Role, int]:
        return {s.role: s.games for s in self.stats}


def impact_score(avg_kda: float, avg_gpm: float) -> float:
    return round(min(avg_kda / 5, 1) * 50 + min(avg_gpm / 600, 1) * 50, 2)


def role_breakdown(matches: Sequence[MatchRecord]) -> RoleBreakdown:
    """
    Per-role totals for every match whose role can be detected.

    Matches with an undetectable role are counted in ``unknown_count`` and
    left out of the stats. ``parsed_count`` counts matches whose role came
    from ``lane_role`` rather than the raw lane.
    """
    games: dict[Role, int] = defaultdict(int)
    wins: dict[Role, int] = defaultdict(int)
    kda_sum: dict[Role, float] = defaultdict(float)
    gpm_sum: dict[Role, int] = defaultdict(int)
    unknown = parsed = 0

    for m in matches:
        role = detect_role(m)
        if role is Role.UNKNOWN:
            unknown += 1
            continue
        if m.lane_role is not None:
            parsed += 1
        games[role] += 1
        wins[role] += m.won
        kda_sum[role] += m.kda
        gpm_sum[role] += m.gold_per_min

    stats = []
    for role in sorted(games, key=lambda r: (-games[r], r)):
        n = games[role]
        avg_k = kda_sum[role] / n
        avg_g = round(gpm_sum[role] / n)
        stats.append(
            RoleStats(
                role=role,
                games=n,
                wins=wins[role],
                winrate=round(winrate(wins[role], n), 1),
                avg_kda=round(avg_k, 2),
                avg_gpm=avg_g,
                impact_score=impact_score(avg_k, avg_g),
            )
        )
    return RoleBreakdown(tuple(stats), unknown, parsed, len(matches))


def versatility_score(games_by_role: Mapping[Role, int] | Iterable[int]) -> int:
    """
    Normalised Shannon entropy of the role distribution, 0-100.

    An even split across all five roles scores 100; a single role scores 0.
    The score depends only on proportions, not on the absolute game count.
    """
    counts = list(games_by_role.values()) if hasattr(games_by_role, "values") else list(games_by_role)
    total = sum(c for c in counts if c > 0)
    if total == 0:
        return 0
    entropy = -sum((c / total) * math.log2(c / total) for c in counts if c > 0)
    return int(clamp_pct(round(entropy / _MAX_ROLE_ENTROPY * 100)))


@dataclass(slots=True, frozen=True)
class RoleRecommendation:
    role: Role
    winrate: float
    games: int

    @property
    def name(self) -> str:
        return self.role.label


def recommend_role(stats: Iterable[RoleStats]) -> RoleRecommendation | None:
    best: RoleStats | None = None
    best_score = -math.inf
    for s in sorted(stats, key=lambda s: s.role):
        if s.games <= 0:
            continue
        wr = s.wins / s.games
        score = 0.5 * min(s.games / 100, 1) + 0.3 * wr + 0.2 * (s.avg_kda / 10)
        if score > best_score:
            best, best_score = s, score
    if best is None:
        return None
    return RoleRecommendation(best.role, round(winrate(best.wins, best.games), 1), best.games)
