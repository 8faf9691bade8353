import pytest

from apps.analytics.aggregation import (
    build_player_snapshot,
    hero_label,
    live_status,
    mmr_history,
    overall_winrate,
    peer_synergy,
    performance_trends,
    play_time_heatmap,
    recent_form,
    session_summary,
)
from apps.core.schemas import LiveGame

SUNDAY_3PM = 1_704_639_600
HOUR = 3600
DAY = 86_400


def test_hero_label_falls_back_to_id():
    assert hero_label(1, {1: "Anti-Mage"}) == "Anti-Mage"
    assert hero_label(2, {1: "Anti-Mage"}) == "Hero 2"
    assert hero_label(3, None) == "Hero 3"


# ─── form & trends ────────────────────────────────────────────────────────────


def test_recent_form_counts_latest_streak(make_match):
    matches = [
        make_match(won=False, start_time=SUNDAY_3PM),
        make_match(won=True, start_time=SUNDAY_3PM + HOUR),
        make_match(won=True, start_time=SUNDAY_3PM + 2 * HOUR),
    ]
    form = recent_form(matches)
    assert form.current_win_streak == 2
    assert form.current_loss_streak == 0
    assert form.last20_winrate == pytest.approx(200 / 3)


def test_recent_form_defaults_without_matches():
    form = recent_form([])
    assert (form.last20_winrate, form.last50_winrate) == (50.0, 50.0)


def test_performance_trends_streaks_and_records(make_match):
    outcomes = [True, True, False, False, False, True]
    matches = [
        make_match(won=won, start_time=SUNDAY_3PM + i * HOUR, duration=1800 + i * 60, gold_per_min=400 + i * 10)
        for i, won in enumerate(outcomes)
    ]
    result = performance_trends(reversed(matches))

    assert [p.game_number for p in result.trends] == [1, 2, 3, 4, 5, 6]
    assert [p.won for p in result.trends] == outcomes
    assert result.trends[0].date == "2024-01-07"
    assert result.streaks.longest_win_streak == 2
    assert result.streaks.longest_loss_streak == 3
    assert result.streaks.current_streak == 1
    assert result.streaks.current_streak_type == "win"
    assert result.summary.total_wins == 3
    assert result.summary.total_losses == 3
    assert result.summary.overall_winrate == 50.0
    assert result.records.longest_game == 1800 + 5 * 60
    assert result.records.shortest_win == 1800
    assert result.records.highest_gpm == 450


def test_performance_trends_rolling_window(make_match):
    matches = [make_match(won=i % 2 == 0, start_time=SUNDAY_3PM + i, gold_per_min=100 * (i + 1)) for i in range(4)]
    result = performance_trends(matches, window=2)
    assert result.rolling_gpm == (100, 150, 250, 350)
    assert result.rolling_winrate == (100.0, 50.0, 50.0, 50.0)


def test_performance_trends_without_a_win(make_match):
    result = performance_trends([make_match(won=False), make_match(won=False, start_time=SUNDAY_3PM + 1)])
    assert result.records.shortest_win == 0
    assert result.streaks.current_streak_type == "loss"
    assert result.streaks.current_streak == 2


def test_performance_trends_empty():
    result = performance_trends([])
    assert result.trends == ()
    assert result.streaks.current_streak_type == "none"


# ─── heatmap ──────────────────────────────────────────────────────────────────


def test_heatmap_covers_full_week(make_match):
    matches = [
        make_match(won=True),
        make_match(won=False),
        make_match(won=True, start_time=SUNDAY_3PM + DAY + 2 * HOUR),
        make_match(start_time=0),
    ]
    cells = play_time_heatmap(matches)
    assert len(cells) == 168
    by_slot = {(c.day, c.hour): c for c in cells}
    assert by_slot[0, 15].games == 2
    assert by_slot[0, 15].winrate == 50.0
    assert by_slot[1, 17].wins == 1
    assert by_slot[3, 3].winrate is None
    assert sum(c.games for c in cells) == 3


# ─── peers ────────────────────────────────────────────────────────────────────


def test_peer_synergy_ranks_partners(make_peer):
    peers = [
        make_peer(1, 10, 3, "Ten"),
        make_peer(2, 20, 15, "Twenty"),
        make_peer(3, 3, 3),
    ]
    report = peer_synergy(peers, 50.0)

    assert [p.account_id for p in report.peers] == [2, 1, 3]
    assert report.peers[0].synergy_score == 25.0
    assert report.peers[1].synergy_score == -20.0
    assert report.peers[2].personaname == "Anonymous"
    assert [p.account_id for p in report.best_partners] == [2, 1]
    assert [p.account_id for p in report.worst_partners] == [1, 2]


# ─── session ──────────────────────────────────────────────────────────────────


def test_session_summary_for_today(make_match):
    now = SUNDAY_3PM + 3 * HOUR
    matches = [
        make_match(hero_id=1, won=True, start_time=SUNDAY_3PM, duration=2000),
        make_match(hero_id=2, won=False, start_time=SUNDAY_3PM + HOUR, duration=3000),
        make_match(hero_id=2, won=False, start_time=SUNDAY_3PM + 2 * HOUR, duration=4000),
        make_match(hero_id=3, won=True, start_time=SUNDAY_3PM - 2 * DAY),
    ]
    session = session_summary(matches, now=now, hero_names={1: "Anti-Mage"})

    assert session.total_matches == 3
    assert (session.wins, session.losses) == (1, 2)
    assert session.winrate == 33.3
    assert session.net_mmr == -30
    assert session.avg_match_duration == 3000
    assert session.tilt_score == 2
    assert session.peak_hour == 15
    assert session.best_hero == "Anti-Mage"
    assert session.worst_hero == "Hero 2"
    assert session.last_match_time == SUNDAY_3PM + 2 * HOUR


def test_session_summary_falls_back_to_yesterday(make_match):
    now = SUNDAY_3PM + DAY
    matches = [make_match(won=False, start_time=SUNDAY_3PM + i * 60) for i in range(5)]
    session = session_summary(matches, now=now)
    assert session.total_matches == 5
    assert session.tilt_score == 3
    assert session.winrate == 0.0


def test_session_summary_empty(make_match):
    session = session_summary([make_match(start_time=SUNDAY_3PM - 5 * DAY)], now=SUNDAY_3PM)
    assert session.total_matches == 0
    assert session.best_hero is None
    assert session.last_match_time == SUNDAY_3PM - 5 * DAY


# ─── mmr ──────────────────────────────────────────────────────────────────────


def test_mmr_history_walks_back_from_estimate(make_match):
    matches = [
        make_match(won=True, start_time=SUNDAY_3PM),
        make_match(won=False, start_time=SUNDAY_3PM + HOUR),
        make_match(won=True, start_time=SUNDAY_3PM + 2 * HOUR),
    ]
    history = mmr_history(matches, 3000, now=SUNDAY_3PM + DAY)
    assert [p.timestamp for p in history] == [SUNDAY_3PM, SUNDAY_3PM + HOUR, SUNDAY_3PM + 2 * HOUR]
    assert [p.mmr for p in history] == [3000, 2970, 3000]
    assert [p.change for p in history] == [30, -30, 30]


def test_mmr_history_respects_period(make_match):
    old = make_match(start_time=SUNDAY_3PM - 40 * DAY)
    recent = make_match(start_time=SUNDAY_3PM - DAY)
    history = mmr_history([old, recent], 4000, now=SUNDAY_3PM, days=30)
    assert [p.match_id for p in history] == [recent.match_id]


def test_mmr_history_without_matches_uses_default():
    [point] = mmr_history([], None, now=SUNDAY_3PM)
    assert (point.mmr, point.change, point.match_id) == (2500, 0, 0)


# ─── live ─────────────────────────────────────────────────────────────────────


def test_live_game_means_in_game(make_match):
    game = LiveGame.model_validate(
        {"match_id": 99, "game_mode": 22, "game_time": 600, "players": [{"account_id": 42, "hero_id": 8}]},
    )
    status = live_status([make_match()], [game], 42, now=SUNDAY_3PM)
    assert status.is_live
    assert status.status == "in_game"
    assert status.current_match.match_id == "99"
    assert status.current_match.game_mode == "Ranked All Pick"
    assert status.current_match.hero_id == 8


@pytest.mark.parametrize(
    ("minutes_ago", "expected", "is_live"),
    [(3, "in_game", True), (20, "online", False), (120, "offline", False)],
)
def test_live_status_from_last_match(make_match, minutes_ago, expected, is_live):
    match = make_match(start_time=SUNDAY_3PM, duration=2400)
    now = SUNDAY_3PM + 2400 + minutes_ago * 60
    status = live_status([match], [], 42, now=now)
    assert status.status == expected
    assert status.is_live is is_live
    assert status.minutes_since_last_match == minutes_ago


def test_live_status_unknown_without_history():
    assert live_status([], [], 42, now=SUNDAY_3PM).status == "unknown"


# ─── snapshot ─────────────────────────────────────────────────────────────────


def test_overall_winrate_sources(make_match, make_hero_stats):
    assert overall_winrate([make_hero_stats(1, 10, 6)], []) == (60.0, 10)
    assert overall_winrate([], [make_match(won=True), make_match(won=False)]) == (50.0, 2)
    assert overall_winrate([], []) == (50.0, 0)


def test_build_player_snapshot(make_match, make_hero_stats, make_peer):
    snapshot = build_player_snapshot(
        42,
        hero_stats=[make_hero_stats(2, 5, 1), make_hero_stats(1, 20, 12)],
        matches=[make_match(lane_role=2), make_match(won=False)],
        peers=[make_peer(7, 12, 9)],
        hero_names={1: "Anti-Mage"},
    )
    assert snapshot.winrate == 52.0
    assert snapshot.total_games == 25
    assert [h.name for h in snapshot.heroes] == ["Anti-Mage", "Hero 2"]
    assert [r.games for r in snapshot.roles] == [1]
    assert snapshot.peers[0].synergy_score == 23.0
    assert len(snapshot.heatmap) == 1
    assert snapshot.form.last20_winrate == 50.0


def test_snapshot_heroes_fall_back_to_match_batch(make_match):
    matches = [make_match(hero_id=3), make_match(hero_id=3, won=False), make_match(hero_id=4)]
    snapshot = build_player_snapshot(42, hero_stats=[], matches=matches, peers=[])
    assert [(h.id, h.games, h.wins) for h in snapshot.heroes] == [(3, 2, 1), (4, 1, 1)]
    assert snapshot.total_games == 3
