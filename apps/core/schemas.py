"""
Typed records parsed from OpenDota responses.

Every model ignores fields it does not name and is frozen once validated.
Win/loss is never stored on a match record; it is derived from the player's
side and the winning side.
"""

from __future__ import annotations

from pydantic import Field

from apps.core.conf import HERO_ICON_CDN, UpstreamModel

RADIANT_SLOT_LIMIT = 128


def _kda(kills: int, deaths: int, assists: int) -> float:
    return (kills + assists) / max(deaths, 1)


# ─── Matches ──────────────────────────────────────────────────────────────────


class MatchRecord(UpstreamModel):
    """One match from a single participant's point of view."""

    match_id: int = Field(ge=0, lt=2**64)
    player_slot: int = Field(ge=0, le=255)
    hero_id: int
    radiant_win: bool | None = None
    kills: int = 0
    deaths: int = 0
    assists: int = 0
    gold_per_min: int = 0
    xp_per_min: int = 0
    duration: int = 0
    start_time: int = 0
    game_mode: int | None = None
    lobby_type: int | None = None
    lane: int | None = None
    lane_role: int | None = None
    is_roaming: bool | None = None
    version: int | None = None
    net_worth: int | None = None
    hero_damage: int | None = None
    tower_damage: int | None = None
    hero_healing: int | None = None
    last_hits: int | None = None
    denies: int | None = None
    party_size: int | None = None
    leaver_status: int | None = None

    @property
    def is_radiant(self) -> bool:
        return self.player_slot < RADIANT_SLOT_LIMIT

    @property
    def won(self) -> bool:
        if self.radiant_win is None:
            return False
        return self.is_radiant == self.radiant_win

    @property
    def kda(self) -> float:
        return _kda(self.kills, self.deaths, self.assists)

    @property
    def is_parsed(self) -> bool:
        return self.version is not None


class MatchParticipant(UpstreamModel):
    account_id: int | None = None
    player_slot: int = Field(ge=0, le=255)
    hero_id: int
    personaname: str | None = None
    kills: int = 0
    deaths: int = 0
    assists: int = 0
    gold_per_min: int = 0
    xp_per_min: int = 0
    net_worth: int | None = None
    hero_damage: int | None = None
    tower_damage: int | None = None
    hero_healing: int | None = None
    last_hits: int | None = None
    denies: int | None = None
    level: int | None = None
    lane: int | None = None
    lane_role: int | None = None
    is_roaming: bool | None = None
    item_0: int | None = None
    item_1: int | None = None
    item_2: int | None = None
    item_3: int | None = None
    item_4: int | None = None
    item_5: int | None = None

    @property
    def is_radiant(self) -> bool:
        return self.player_slot < RADIANT_SLOT_LIMIT

    @property
    def kda(self) -> float:
        return _kda(self.kills, self.deaths, self.assists)

    @property
    def items(self) -> list[int]:
        slots = (self.item_0, self.item_1, self.item_2, self.item_3, self.item_4, self.item_5)
        return [item for item in slots if item]


class MatchDetail(UpstreamModel):
    match_id: int = Field(ge=0, lt=2**64)
    radiant_win: bool | None = None
    duration: int = 0
    start_time: int = 0
    game_mode: int | None = None
    lobby_type: int | None = None
    radiant_score: int | None = None
    dire_score: int | None = None
    version: int | None = None
    players: tuple[MatchParticipant, ...] = ()

    def participant(self, player_slot: int) -> MatchParticipant | None:
        return next((p for p in self.players if p.player_slot == player_slot), None)


# ─── Players ──────────────────────────────────────────────────────────────────


class SteamProfile(UpstreamModel):
    account_id: int
    personaname: str | None = None
    name: str | None = None
    avatar: str | None = None
    avatarmedium: str | None = None
    avatarfull: str | None = None
    profileurl: str | None = None
    loccountrycode: str | None = None
    plus: bool | None = None
    last_login: str | None = None


class MmrEstimate(UpstreamModel):
    estimate: int | None = None


class PlayerProfile(UpstreamModel):
    profile: SteamProfile | None = None
    rank_tier: int | None = None
    leaderboard_rank: int | None = None
    mmr_estimate: MmrEstimate | None = None

    @property
    def account_id(self) -> int | None:
        return self.profile.account_id if self.profile else None

    @property
    def estimated_mmr(self) -> int | None:
        return self.mmr_estimate.estimate if self.mmr_estimate else None


class PlayerHeroStats(UpstreamModel):
    hero_id: int
    last_played: int = 0
    games: int = 0
    win: int = 0
    with_games: int = 0
    with_win: int = 0
    against_games: int = 0
    against_win: int = 0


class PeerStats(UpstreamModel):
    account_id: int
    last_played: int = 0
    win: int = 0
    games: int = 0
    with_win: int = 0
    with_games: int = 0
    against_win: int = 0
    against_games: int = 0
    personaname: str | None = None
    avatarfull: str | None = None


# ─── Catalog & live ───────────────────────────────────────────────────────────


class Hero(UpstreamModel):
    id: int
    name: str
    localized_name: str
    primary_attr: str | None = None
    attack_type: str | None = None
    roles: tuple[str, ...] = ()

    @property
    def short_name(self) -> str:
        return self.name.removeprefix("npc_dota_hero_")

    @property
    def icon_url(self) -> str:
        return f"{HERO_ICON_CDN}/{self.short_name}.png"


class LiveGamePlayer(UpstreamModel):
    account_id: int | None = None
    hero_id: int | None = None
    team: int | None = None


class LiveGame(UpstreamModel):
    match_id: int | None = None
    server_steam_id: int | str | None = None
    activate_time: int | None = None
    game_time: int | None = None
    game_mode: int | None = None
    league_id: int | None = Field(default=None, alias="leagueid")
    average_mmr: int | None = None
    radiant_score: int | None = None
    dire_score: int | None = None
    players: tuple[LiveGamePlayer, ...] = ()

    def has_player(self, account_id: int) -> bool:
        return any(p.account_id == account_id for p in self.players)

    def player(self, account_id: int) -> LiveGamePlayer | None:
        return next((p for p in self.players if p.account_id == account_id), None)


class ProPlayer(UpstreamModel):
    account_id: int
    name: str | None = None
    personaname: str | None = None
    team_id: int | None = None
    team_name: str | None = None
    team_tag: str | None = None
    country_code: str | None = None
    is_pro: bool | None = None
