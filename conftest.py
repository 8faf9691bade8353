"""Shared fixtures: record factories and a service bundle backed by a scripted OpenDota client."""

import itertools

import pytest

from apps.analytics.insights import InsightEngine
from apps.core.container import Services, reset_services, set_services
from apps.core.errors import UpstreamError
from apps.core.schemas import (
    Hero,
    LiveGame,
    MatchDetail,
    MatchRecord,
    PeerStats,
    PlayerHeroStats,
    PlayerProfile,
    ProPlayer,
)
from apps.core.services.rate_limiter import RateLimiter
from common.cache_utils import CacheStore

# Sunday 2024-01-07 15:00:00 UTC
SUNDAY_3PM = 1_704_639_600


@pytest.fixture
def make_match():
    ids = itertools.count(1)

    def factory(*, won: bool = True, radiant: bool = True, **fields) -> MatchRecord:
        data = {
            "match_id": next(ids),
            "player_slot": 0 if radiant else 128,
            "hero_id": 1,
            "radiant_win": won if radiant else not won,
            "kills": 5,
            "deaths": 5,
            "assists": 5,
            "gold_per_min": 500,
            "xp_per_min": 550,
            "duration": 2400,
            "start_time": SUNDAY_3PM,
        }
        data.update(fields)
        return MatchRecord.model_validate(data)

    return factory


@pytest.fixture
def make_hero_stats():
    def factory(hero_id: int, games: int, wins: int, last_played: int = SUNDAY_3PM) -> PlayerHeroStats:
        return PlayerHeroStats(hero_id=hero_id, games=games, win=wins, last_played=last_played)

    return factory


@pytest.fixture
def make_peer():
    def factory(account_id: int, games: int, wins: int, name: str | None = None) -> PeerStats:
        return PeerStats(account_id=account_id, games=games, win=wins, personaname=name)

    return factory


# ─── Service bundle with a scripted OpenDota client ───────────────────────────


class FakeOpenDota:
    """Scripted stand-in for OpenDotaClient. Set ``failing`` to make named calls raise."""

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.failing: set[str] = set()
        self.profile = PlayerProfile.model_validate(
            {
                "profile": {"account_id": 22202, "personaname": "Shadow"},
                "rank_tier": 55,
                "mmr_estimate": {"estimate": 3200},
            },
        )
        self.matches: list[MatchRecord] = []
        self.recent: list[MatchRecord] = []
        self.hero_stats: list[PlayerHeroStats] = []
        self.peers: list[PeerStats] = []
        self.details: dict[int, MatchDetail] = {}
        self.heroes = [
            Hero(id=1, name="npc_dota_hero_antimage", localized_name="Anti-Mage", primary_attr="agi"),
            Hero(id=2, name="npc_dota_hero_axe", localized_name="Axe", primary_attr="str"),
        ]
        self.live: list[LiveGame] = []
        self.pros: list[ProPlayer] = []

    def _call(self, name: str, value):
        self.calls.append(name)
        if name in self.failing:
            raise UpstreamError(503, "Service Unavailable", path=f"/{name}")
        return value

    async def get_player_profile(self, steam_id):
        return self._call("profile", self.profile)

    async def get_player_matches(self, steam_id, *, limit=None, offset=None, hero_id=None, project=None):
        rows = [m for m in self.matches if hero_id is None or m.hero_id == hero_id]
        start = offset or 0
        return self._call("matches", rows[start : start + limit] if limit else rows[start:])

    async def get_player_recent_matches(self, steam_id):
        return self._call("recent", self.recent)

    async def get_player_heroes(self, steam_id):
        return self._call("hero_stats", self.hero_stats)

    async def get_player_peers(self, steam_id):
        return self._call("peers", self.peers)

    async def get_match(self, match_id):
        detail = self._call("match", self.details.get(int(match_id)))
        if detail is None:
            raise UpstreamError(404, "Not Found", path=f"/matches/{match_id}")
        return detail

    async def get_heroes(self):
        return self._call("heroes", self.heroes)

    async def get_live_games(self):
        return self._call("live", self.live)

    async def get_pro_players(self):
        return self._call("pros", self.pros)

    async def aclose(self) -> None:
        self.calls.append("aclose")


def _unreachable_redis():
    raise OSError("connection refused")


@pytest.fixture
def opendota():
    return FakeOpenDota()


@pytest.fixture
def services(opendota):
    bundle = Services(
        limiter=RateLimiter(60, 60.0),
        cache=CacheStore("redis://unreachable", client_factory=_unreachable_redis),
        client=opendota,
        insights=InsightEngine(),
    )
    set_services(bundle)
    yield bundle
    reset_services()
