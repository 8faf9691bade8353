"""
Aggregations behind the player views: form, trends, heatmap, partners,
today's session, estimated MMR walk and live status.

Outcomes are always derived from the player's side and the winning side.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from apps.analytics.conf import (
    DEFAULT_MMR_ESTIMATE,
    LIVE_IN_GAME_MINUTES,
    LIVE_ONLINE_MINUTES,
    MIN_PEER_GAMES_FOR_RANKING,
    MMR_PER_GAME,
    TILT_CAP,
    TREND_WINDOW,
)
from apps.analytics.metrics import RoleStats, aggregate_heroes, kda, role_breakdown, winrate
from apps.core.conf import game_mode_name
from common.time_utils import (
    SECONDS_PER_DAY,
    iso_date,
    previous_utc_midnight_ts,
    utc_day_hour,
    utc_midnight_ts,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from apps.core.schemas import LiveGame, MatchRecord, PeerStats, PlayerHeroStats


def newest_first(matches: Iterable[MatchRecord]) -> list[MatchRecord]:
    return sorted(matches, key=lambda m: m.start_time, reverse=True)


def hero_label(hero_id: int, hero_names: Mapping[int, str] | None) -> str:
    if hero_names and hero_id in hero_names:
        return hero_names[hero_id]
    return f"Hero {hero_id}"


# ─── Recent form ──────────────────────────────────────────────────────────────


@dataclass(slots=True, frozen=True)
class RecentForm:
    current_win_streak: int = 0
    current_loss_streak: int = 0
    last20_winrate: float = 50.0
    last50_winrate: float = 50.0


def recent_form(matches: Iterable[MatchRecord]) -> RecentForm:
    ordered = newest_first(matches)
    if not ordered:
        return RecentForm()

    latest_won = ordered[0].won
    streak = 0
    for m in ordered:
        if m.won != latest_won:
            break
        streak += 1

    def _wr(batch: Sequence[MatchRecord]) -> float:
        return winrate(sum(m.won for m in batch), len(batch))

    return RecentForm(
        current_win_streak=streak if latest_won else 0,
        current_loss_streak=0 if latest_won else streak,
        last20_winrate=_wr(ordered[:20]),
        last50_winrate=_wr(ordered[:50]),
    )


# ─── Trends ───────────────────────────────────────────────────────────────────


@dataclass(slots=True, frozen=True)
class TrendPoint:
    game_number: int
    match_id: int
    date: str
    gpm: int
    xpm: int
    kda: float
    won: bool
    hero_damage: int
    tower_damage: int
    duration: int


@dataclass(slots=True, frozen=True)
class TrendSummary:
    total_games: int = 0
    avg_gpm: int = 0
    avg_kda: float = 0.0
    overall_winrate: float = 0.0
    total_wins: int = 0
    total_losses: int = 0


@dataclass(slots=True, frozen=True)
class StreakSummary:
    longest_win_streak: int = 0
    longest_loss_streak: int = 0
    current_streak: int = 0
    current_streak_type: Literal["win", "loss", "none"] = "none"


@dataclass(slots=True, frozen=True)
class TrendRecords:
    highest_kda: float = 0.0
    highest_gpm: int = 0
    longest_game: int = 0
    shortest_win: int = 0


@dataclass(slots=True, frozen=True)
class PerformanceTrends:
    trends: tuple[TrendPoint, ...] = ()
    rolling_gpm: tuple[int, ...] = ()
    rolling_kda: tuple[float, ...] = ()
    rolling_winrate: tuple[float, ...] = ()
    summary: TrendSummary = field(default_factory=TrendSummary)
    streaks: StreakSummary = field(default_factory=StreakSummary)
    records: TrendRecords = field(default_factory=TrendRecords)


def performance_trends(matches: Iterable[MatchRecord], *, window: int = TREND_WINDOW) -> PerformanceTrends:
    """Chronological per-game series with rolling averages, streaks and records."""
    ordered = sorted(matches, key=lambda m: m.start_time)
    if not ordered:
        return PerformanceTrends()

    points: list[TrendPoint] = []
    wins = 0
    run = 0
    longest = {True: 0, False: 0}
    last_won: bool | None = None
    highest_kda = 0.0
    highest_gpm = longest_game = 0
    shortest_win: int | None = None

    for idx, m in enumerate(ordered, start=1):
        won = m.won
        wins += won
        run = run + 1 if won == last_won else 1
        last_won = won
        longest[won] = max(longest[won], run)

        match_kda = kda(m.kills, m.deaths, m.assists)
        points.append(
            TrendPoint(
                game_number=idx,
                match_id=m.match_id,
                date=iso_date(m.start_time),
                gpm=m.gold_per_min,
                xpm=m.xp_per_min,
                kda=round(match_kda, 2),
                won=won,
                hero_damage=m.hero_damage or 0,
                tower_damage=m.tower_damage or 0,
                duration=m.duration,
            )
        )
        highest_kda = max(highest_kda, match_kda)
        highest_gpm = max(highest_gpm, m.gold_per_min)
        longest_game = max(longest_game, m.duration)
        if won and (shortest_win is None or m.duration < shortest_win):
            shortest_win = m.duration

    rolling_gpm, rolling_kda, rolling_wr = [], [], []
    for i in range(len(ordered)):
        chunk = ordered[max(0, i - window + 1) : i + 1]
        n = len(chunk)
        rolling_gpm.append(round(sum(m.gold_per_min for m in chunk) / n))
        rolling_kda.append(round(sum(m.kda for m in chunk) / n, 2))
        rolling_wr.append(round(sum(m.won for m in chunk) / n * 100, 1))

    total = len(ordered)
    return PerformanceTrends(
        trends=tuple(points),
        rolling_gpm=tuple(rolling_gpm),
        rolling_kda=tuple(rolling_kda),
        rolling_winrate=tuple(rolling_wr),
        summary=TrendSummary(
            total_games=total,
            avg_gpm=round(sum(m.gold_per_min for m in ordered) / total),
            avg_kda=round(sum(m.kda for m in ordered) / total, 2),
            overall_winrate=round(winrate(wins, total), 1),
            total_wins=wins,
            total_losses=total - wins,
        ),
        streaks=StreakSummary(
            longest_win_streak=longest[True],
            longest_loss_streak=longest[False],
            current_streak=run,
            current_streak_type="win" if last_won else "loss",
        ),
        records=TrendRecords(
            highest_kda=round(highest_kda, 2),
            highest_gpm=highest_gpm,
            longest_game=longest_game,
            shortest_win=shortest_win or 0,
        ),
    )


# ─── Heatmap ──────────────────────────────────────────────────────────────────


@dataclass(slots=True, frozen=True)
class HeatmapCell:
    day: int
    hour: int
    games: int
    wins: int
    winrate: float | None


def play_time_heatmap(matches: Iterable[MatchRecord]) -> list[HeatmapCell]:
    """7x24 UTC grid, Sunday first. Empty slots carry ``winrate=None``."""
    games: Counter[tuple[int, int]] = Counter()
    wins: Counter[tuple[int, int]] = Counter()
    for m in matches:
        if not m.start_time:
            continue
        slot = utc_day_hour(m.start_time)
        games[slot] += 1
        wins[slot] += m.won

    return [
        HeatmapCell(
            day=day,
            hour=hour,
            games=games[day, hour],
            wins=wins[day, hour],
            winrate=winrate(wins[day, hour], games[day, hour]) if games[day, hour] else None,
        )
        for day in range(7)
        for hour in range(24)
    ]


# ─── Peers ────────────────────────────────────────────────────────────────────


@dataclass(slots=True, frozen=True)
class PeerSynergy:
    account_id: int
    personaname: str
    avatar: str | None
    games_together: int
    wins_together: int
    winrate_together: float
    synergy_score: float
    last_played: int


@dataclass(slots=True, frozen=True)
class PeerReport:
    peers: tuple[PeerSynergy, ...] = ()
    best_partners: tuple[PeerSynergy, ...] = ()
    worst_partners: tuple[PeerSynergy, ...] = ()
    overall_winrate: float = 50.0


def peer_synergy(peers: Iterable[PeerStats], overall_winrate: float) -> PeerReport:
    """Synergy is the winrate together minus the player's overall winrate."""
    rows = []
    for p in peers:
        wr = round(winrate(p.win, p.games), 1)
        rows.append(
            PeerSynergy(
                account_id=p.account_id,
                personaname=p.personaname or "Anonymous",
                avatar=p.avatarfull,
                games_together=p.games,
                wins_together=p.win,
                winrate_together=wr,
                synergy_score=round(wr - overall_winrate, 1),
                last_played=p.last_played,
            )
        )
    rows.sort(key=lambda r: -r.games_together)

    ranked = [r for r in rows if r.games_together >= MIN_PEER_GAMES_FOR_RANKING]
    best = sorted(ranked, key=lambda r: -r.synergy_score)[:5]
    worst = sorted(ranked, key=lambda r: r.synergy_score)[:5]
    return PeerReport(tuple(rows), tuple(best), tuple(worst), round(overall_winrate, 1))


# ─── Session ──────────────────────────────────────────────────────────────────


@dataclass(slots=True, frozen=True)
class SessionSummary:
    total_matches: int
    wins: int
    losses: int
    winrate: float
    net_mmr: int
    avg_match_duration: int
    tilt_score: int
    peak_hour: int
    best_hero: str | None
    worst_hero: str | None
    last_match_time: int | None = None


def session_summary(
    matches: Iterable[MatchRecord],
    *,
    now: float,
    hero_names: Mapping[int, str] | None = None,
) -> SessionSummary:
    """Today's games (UTC), or yesterday's when nothing was played today."""
    ordered = newest_first(matches)
    today = utc_midnight_ts(now)
    session = [m for m in ordered if m.start_time >= today]
    if not session:
        yesterday = previous_utc_midnight_ts(now)
        session = [m for m in ordered if yesterday <= m.start_time < today]

    if not session:
        return SessionSummary(
            total_matches=0,
            wins=0,
            losses=0,
            winrate=0.0,
            net_mmr=0,
            avg_match_duration=0,
            tilt_score=0,
            peak_hour=utc_day_hour(int(now))[1],
            best_hero=None,
            worst_hero=None,
            last_match_time=ordered[0].start_time if ordered else None,
        )

    wins = sum(m.won for m in session)
    losses = len(session) - wins

    tilt = 0
    for m in session:
        if m.won or tilt >= TILT_CAP:
            break
        tilt += 1

    hours = Counter(utc_day_hour(m.start_time)[1] for m in session)
    peak_hour = max(range(24), key=lambda h: (hours[h], -h))

    per_hero: dict[int, list[bool]] = defaultdict(list)
    for m in session:
        per_hero[m.hero_id].append(m.won)
    hero_wr = {h: sum(r) / len(r) for h, r in per_hero.items()}
    best = max(hero_wr, key=lambda h: hero_wr[h])
    worst = min(hero_wr, key=lambda h: hero_wr[h])

    return SessionSummary(
        total_matches=len(session),
        wins=wins,
        losses=losses,
        winrate=round(winrate(wins, len(session)), 1),
        net_mmr=(wins - losses) * MMR_PER_GAME,
        avg_match_duration=round(sum(m.duration for m in session) / len(session)),
        tilt_score=tilt,
        peak_hour=peak_hour,
        best_hero=hero_label(best, hero_names),
        worst_hero=hero_label(worst, hero_names),
        last_match_time=session[0].start_time,
    )


# ─── MMR ──────────────────────────────────────────────────────────────────────


@dataclass(slots=True, frozen=True)
class MmrPoint:
    timestamp: int
    mmr: int
    change: int
    match_id: int


def mmr_history(
    matches: Iterable[MatchRecord],
    current_estimate: int | None,
    *,
    now: float,
    days: int = 365,
) -> list[MmrPoint]:
    """
    Estimated rating after each match, oldest first.

    Walks back from ``current_estimate`` assuming a fixed gain or loss per
    game. When nothing falls inside ``days`` every match is used; with no
    matches at all a single point at the current estimate is returned.
    """
    current = current_estimate or DEFAULT_MMR_ESTIMATE
    pool = list(matches)
    cutoff = now - days * SECONDS_PER_DAY
    in_period = [m for m in pool if m.start_time >= cutoff] or pool
    if not in_period:
        return [MmrPoint(int(now), current, 0, 0)]

    history: list[MmrPoint] = []
    rating = current
    for m in newest_first(in_period):
        change = MMR_PER_GAME if m.won else -MMR_PER_GAME
        history.append(MmrPoint(m.start_time, rating, change, m.match_id))
        rating = max(0, rating - change)
    history.reverse()
    return history


# ─── Live status ──────────────────────────────────────────────────────────────

type LiveState = Literal["in_game", "online", "offline", "unknown"]


@dataclass(slots=True, frozen=True)
class CurrentMatch:
    match_id: str
    game_mode: str
    duration: int
    hero_id: int | None


@dataclass(slots=True, frozen=True)
class LiveStatus:
    is_live: bool
    status: LiveState
    last_match_end: int | None = None
    minutes_since_last_match: int | None = None
    current_match: CurrentMatch | None = None


def live_status(
    recent_matches: Sequence[MatchRecord],
    live_games: Iterable[LiveGame],
    account_id: int,
    *,
    now: float,
) -> LiveStatus:
    for game in live_games:
        player = game.player(account_id)
        if player is None:
            continue
        started = game.activate_time or int(now)
        return LiveStatus(
            is_live=True,
            status="in_game",
            current_match=CurrentMatch(
                match_id=str(game.match_id) if game.match_id else f"live_{game.league_id}_{started}",
                game_mode=game_mode_name(game.game_mode),
                duration=game.game_time if game.game_time is not None else int(now) - started,
                hero_id=player.hero_id,
            ),
        )

    ordered = newest_first(recent_matches)
    if not ordered:
        return LiveStatus(is_live=False, status="unknown")

    latest = ordered[0]
    ended = latest.start_time + latest.duration
    minutes = int((now - ended) // 60)
    if minutes <= LIVE_IN_GAME_MINUTES:
        return LiveStatus(
            is_live=True,
            status="in_game",
            last_match_end=ended,
            minutes_since_last_match=minutes,
            current_match=CurrentMatch(
                match_id=str(latest.match_id),
                game_mode=game_mode_name(latest.game_mode),
                duration=latest.duration,
                hero_id=latest.hero_id,
            ),
        )
    status: LiveState = "online" if minutes <= LIVE_ONLINE_MINUTES else "offline"
    return LiveStatus(is_live=False, status=status, last_match_end=ended, minutes_since_last_match=minutes)


# ─── Insight snapshot ─────────────────────────────────────────────────────────


@dataclass(slots=True, frozen=True)
class HeroSummary:
    id: int
    name: str
    games: int
    wins: int
    winrate: float


@dataclass(slots=True, frozen=True)
class AggregatedPlayerData:
    account_id: int
    winrate: float
    total_games: int
    heroes: tuple[HeroSummary, ...] = ()
    roles: tuple[RoleStats, ...] = ()
    peers: tuple[PeerSynergy, ...] = ()
    heatmap: tuple[HeatmapCell, ...] = ()
    form: RecentForm = field(default_factory=RecentForm)


def overall_winrate(hero_stats: Sequence[PlayerHeroStats], matches: Sequence[MatchRecord]) -> tuple[float, int]:
    """(winrate, games) from the lifetime hero table, else from the batch, else 50."""
    games = sum(h.games for h in hero_stats)
    if games:
        return winrate(sum(h.win for h in hero_stats), games), games
    if matches:
        return winrate(sum(m.won for m in matches), len(matches)), len(matches)
    return 50.0, 0


def build_player_snapshot(
    account_id: int,
    *,
    hero_stats: Sequence[PlayerHeroStats],
    matches: Sequence[MatchRecord],
    peers: Sequence[PeerStats],
    hero_names: Mapping[int, str] | None = None,
) -> AggregatedPlayerData:
    wr, total = overall_winrate(hero_stats, matches)
    # Without the lifetime hero table, fall back to the batch.
    rows = [(h.hero_id, h.games, h.win) for h in hero_stats] or [
        (a.hero_id, a.games, a.wins) for a in aggregate_heroes(matches)
    ]
    heroes = sorted(
        (
            HeroSummary(
                id=hero_id,
                name=hero_label(hero_id, hero_names),
                games=games,
                wins=wins,
                winrate=winrate(wins, games),
            )
            for hero_id, games, wins in rows
        ),
        key=lambda h: -h.games,
    )
    return AggregatedPlayerData(
        account_id=account_id,
        winrate=wr,
        total_games=total,
        heroes=tuple(heroes),
        roles=role_breakdown(matches).stats,
        peers=peer_synergy(peers, wr).peers,
        heatmap=tuple(c for c in play_time_heatmap(matches) if c.games),
        form=recent_form(matches),
    )
