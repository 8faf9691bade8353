"""
Player statistics orchestration.

Each public coroutine fetches what one player view needs from OpenDota,
runs it through the analytics calculators and returns a JSON-ready payload.
Caching and stale fallback are the view layer's job; this service only
produces fresh data and lets ``UpstreamError`` propagate.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Any

import structlog

from apps.analytics.aggregation import (
    build_player_snapshot,
    live_status,
    mmr_history,
    overall_winrate,
    peer_synergy,
    performance_trends,
    play_time_heatmap,
    session_summary,
)
from apps.analytics.conf import MATCH_BATCH, MAX_ROLE_ENRICHMENT_MATCHES, MIN_HERO_GAMES_FOR_BEST
from apps.analytics.metrics import (
    average_gpm,
    average_kda,
    comfort_label,
    comfort_score,
    recommend_role,
    role_breakdown,
    versatility_score,
    winrate,
)
from apps.core.conf import CACHE_PREFIXES, CACHE_TTL, MATCH_PROJECTION, game_mode_name
from apps.core.errors import UpstreamError

if TYPE_CHECKING:
    from apps.core.container import Services
    from apps.core.schemas import Hero, MatchRecord

log = structlog.get_logger(__name__).bind(component="PlayerStatsService")


def match_row(m: MatchRecord) -> dict[str, Any]:
    row = m.model_dump(mode="json", exclude_none=True)
    row.update(
        is_radiant=m.is_radiant,
        won=m.won,
        kda=round(m.kda, 2),
        game_mode_name=game_mode_name(m.game_mode),
    )
    return row


class PlayerStatsService:
    def __init__(self, services: Services, *, clock=time.time) -> None:
        self.client = services.client
        self.cache = services.cache
        self.engine = services.insights
        self._clock = clock

    # ------------------------------------------------------------- helpers
    async def _matches(self, account_id: int, batch: str) -> list[MatchRecord]:
        return await self.client.get_player_matches(account_id, limit=MATCH_BATCH[batch], project=MATCH_PROJECTION)

    async def hero_catalog(self) -> list[dict[str, Any]]:
        key = CACHE_PREFIXES["heroes_data"] + "all"
        cached = await self.cache.get(key)
        if cached is not None:
            return cached
        heroes: list[Hero] = await self.client.get_heroes()
        rows = [
            {
                "id": h.id,
                "name": h.name,
                "localized_name": h.localized_name,
                "primary_attr": h.primary_attr,
                "attack_type": h.attack_type,
                "roles": list(h.roles),
                "icon": h.icon_url,
            }
            for h in sorted(heroes, key=lambda h: h.id)
        ]
        await self.cache.set(key, rows, CACHE_TTL["heroes_data"])
        return rows

    async def hero_names(self) -> dict[int, str]:
        """Hero id to display name. An unreachable catalog yields an empty map."""
        try:
            catalog = await self.hero_catalog()
        except UpstreamError as exc:
            log.warning("Hero catalog unavailable, using ids", err=str(exc))
            return {}
        return {row["id"]: row["localized_name"] for row in catalog}

    async def hero_icons(self) -> dict[int, str]:
        try:
            catalog = await self.hero_catalog()
        except UpstreamError:
            return {}
        return {row["id"]: row["icon"] for row in catalog}

    async def is_pro(self, account_id: int) -> bool:
        key = CACHE_PREFIXES["pros"] + "ids"
        ids = await self.cache.get(key)
        if ids is None:
            pros = await self.client.get_pro_players()
            ids = sorted({p.account_id for p in pros})
            await self.cache.set(key, ids, CACHE_TTL["pros"])
        return account_id in set(ids)

    # ------------------------------------------------------------- views
    async def profile(self, account_id: int) -> dict[str, Any]:
        profile = await self.client.get_player_profile(account_id)
        return profile.model_dump(mode="json")

    async def matches(self, account_id: int, *, page: int, limit: int, hero_id: int | None) -> list[dict[str, Any]]:
        rows = await self.client.get_player_matches(
            account_id,
            limit=limit,
            offset=(page - 1) * limit,
            hero_id=hero_id,
            project=MATCH_PROJECTION,
        )
        return [match_row(m) for m in rows]

    async def heroes(self, account_id: int) -> dict[str, Any]:
        hero_stats, matches = await asyncio.gather(
            self.client.get_player_heroes(account_id),
            self._matches(account_id, "heroes"),
        )
        if not hero_stats:
            return {"heroes": [], "most_played": None, "best_winrate": None, "most_comfortable": None}

        names, icons = await self.hero_names(), await self.hero_icons()
        now = self._clock()
        heroes = []
        for hs in hero_stats:
            score = comfort_score(hs, matches, now=now)
            heroes.append(
                {
                    "hero_id": hs.hero_id,
                    "hero_name": names.get(hs.hero_id, f"Hero {hs.hero_id}"),
                    "hero_icon": icons.get(hs.hero_id),
                    "games": hs.games,
                    "wins": hs.win,
                    "losses": hs.games - hs.win,
                    "winrate": round(winrate(hs.win, hs.games), 1),
                    "avg_kda": round(average_kda(hs.hero_id, matches), 2),
                    "avg_gpm": average_gpm(hs.hero_id, matches),
                    "comfort_score": score,
                    "comfort_label": comfort_label(score),
                    "last_played": hs.last_played,
                }
            )
        heroes.sort(key=lambda h: -h["games"])
        experienced = [h for h in heroes if h["games"] >= MIN_HERO_GAMES_FOR_BEST]
        return {
            "heroes": heroes,
            "most_played": heroes[0],
            "best_winrate": max(experienced, key=lambda h: h["winrate"]) if experienced else None,
            "most_comfortable": max(heroes, key=lambda h: h["comfort_score"]),
        }

    async def _enrich_roles(self, matches: list[MatchRecord]) -> list[MatchRecord]:
        """Fill lane data the match list left out, from the full records of the newest parsed matches."""
        parsed = [m for m in matches if m.is_parsed and m.lane_role is None][:MAX_ROLE_ENRICHMENT_MATCHES]

        async def _lane(m: MatchRecord) -> tuple[int, dict[str, Any] | None]:
            try:
                detail = await self.client.get_match(m.match_id)
            except UpstreamError as exc:
                log.debug("Match lane lookup failed", match_id=m.match_id, status=exc.status)
                return m.match_id, None
            player = detail.participant(m.player_slot)
            if player is None:
                return m.match_id, None
            return m.match_id, {
                "lane_role": player.lane_role,
                "lane": player.lane,
                "is_roaming": player.is_roaming,
                "gold_per_min": player.gold_per_min or m.gold_per_min,
            }

        lanes = dict(await asyncio.gather(*(_lane(m) for m in parsed)))
        return [m.model_copy(update=lanes[m.match_id]) if lanes.get(m.match_id) else m for m in matches]

    async def roles(self, account_id: int) -> dict[str, Any]:
        matches = await self._matches(account_id, "roles")
        if not matches:
            return {
                "distribution": [],
                "per_role_stats": [],
                "best_role": None,
                "versatility_score": 0,
                "unknown_count": 0,
                "unknown_note": "",
                "parsed_count": 0,
                "total_count": 0,
            }

        breakdown = role_breakdown(await self._enrich_roles(matches))
        best = recommend_role(breakdown.stats)
        if breakdown.unknown_count:
            note = f"{breakdown.unknown_count} matches couldn't be analyzed (unparsed matches - lane data unavailable)"
        elif breakdown.stats:
            note = f"Role data based on {breakdown.parsed_count} parsed matches"
        else:
            note = ""
        return {
            "distribution": [
                {"role": s.role, "role_name": s.name, "games": s.games, "wins": s.wins} for s in breakdown.stats
            ],
            "per_role_stats": [
                {
                    "role": s.role,
                    "role_name": s.name,
                    "games": s.games,
                    "wins": s.wins,
                    "winrate": s.winrate,
                    "avg_kda": s.avg_kda,
                    "avg_gpm": s.avg_gpm,
                    "impact_score": s.impact_score,
                }
                for s in breakdown.stats
            ],
            "best_role": (
                {"role": best.role, "role_name": best.name, "winrate": best.winrate, "games": best.games}
                if best
                else None
            ),
            "versatility_score": versatility_score(breakdown.games_by_role),
            "unknown_count": breakdown.unknown_count,
            "unknown_note": note,
            "parsed_count": breakdown.parsed_count,
            "total_count": breakdown.total_count,
        }

    async def peers(self, account_id: int):
        peers, matches = await asyncio.gather(
            self.client.get_player_peers(account_id),
            self._matches(account_id, "peers"),
        )
        wr, _ = overall_winrate((), matches)
        return peer_synergy(peers, wr)

    async def trends(self, account_id: int):
        return performance_trends(await self._matches(account_id, "trends"))

    async def heatmap(self, account_id: int):
        return play_time_heatmap(await self._matches(account_id, "heatmap"))

    async def session(self, account_id: int):
        matches = await self._matches(account_id, "session")
        return session_summary(matches, now=self._clock(), hero_names=await self.hero_names())

    async def mmr(self, account_id: int, *, days: int) -> dict[str, Any]:
        try:
            estimate = (await self.client.get_player_profile(account_id)).estimated_mmr
        except UpstreamError as exc:
            log.info("Profile unavailable, using default MMR estimate", account_id=account_id, status=exc.status)
            estimate = None
        matches = await self._matches(account_id, "mmr")
        return {
            "history": mmr_history(matches, estimate, now=self._clock(), days=days),
            "note": "MMR is estimated based on match outcomes. Actual MMR may vary.",
        }

    async def live(self, account_id: int):
        live_games = []
        try:
            if await self.is_pro(account_id):
                live_games = await self.client.get_live_games()
        except UpstreamError as exc:
            log.info("Live game lookup failed", account_id=account_id, status=exc.status)
        recent = await self.client.get_player_recent_matches(account_id)
        return live_status(recent, live_games, account_id, now=self._clock())

    async def insights(self, account_id: int):
        results = await asyncio.gather(
            self.client.get_player_heroes(account_id),
            self.client.get_player_peers(account_id),
            self._matches(account_id, "insights"),
            return_exceptions=True,
        )
        failures = [r for r in results if isinstance(r, BaseException)]
        if len(failures) == len(results):
            raise failures[0]
        for r in failures:
            if not isinstance(r, UpstreamError):
                raise r
            log.warning("Partial insight input", account_id=account_id, status=r.status, path=r.path)
        hero_stats, peers, matches = (r if not isinstance(r, BaseException) else [] for r in results)

        snapshot = build_player_snapshot(
            account_id,
            hero_stats=hero_stats,
            matches=matches,
            peers=peers[:20],
            hero_names=await self.hero_names(),
        )
        return self.engine.evaluate(snapshot)
