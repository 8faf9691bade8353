"""
Rule-based insight generator.

Each rule is a plain function that looks at an ``AggregatedPlayerData``
snapshot and returns one ``Insight`` or ``None``. Rules never see each
other's output; the engine runs them in declaration order, and that order is
also the tie-break when the summary picks a "main" insight per category.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Literal

import structlog

from apps.analytics.conf import DAY_NAMES, InsightThresholds

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

    from apps.analytics.aggregation import AggregatedPlayerData

log = structlog.get_logger(__name__).bind(component="InsightEngine")

type Category = Literal["strength", "weakness", "tip", "warning"]
type Confidence = Literal["high", "medium", "low"]
type Rule = Callable[[AggregatedPlayerData, InsightThresholds], "Insight | None"]

CATEGORIES: tuple[Category, ...] = ("strength", "weakness", "tip", "warning")


@dataclass(slots=True, frozen=True)
class Insight:
    category: Category
    title: str
    description: str
    confidence: Confidence
    metric: str | None = None
    action: str | None = None
    data_points: tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class InsightSummary:
    overall_rating: int
    main_strength: str
    main_weakness: str
    quick_tip: str


@dataclass(slots=True, frozen=True)
class InsightReport:
    generated_at: str
    insights: tuple[Insight, ...] = ()
    summary: InsightSummary | None = None


def _pct(value: float) -> str:
    return f"{value:.1f}"


# ─── Hero rules ───────────────────────────────────────────────────────────────


def limited_hero_pool(data: AggregatedPlayerData, t: InsightThresholds) -> Insight | None:
    pool = sum(1 for h in data.heroes if h.games >= t.min_games_for_hero_stats)
    if pool >= t.min_heroes_in_pool:
        return None
    return Insight(
        category="warning",
        title="Limited Hero Pool",
        description=(
            f"You only have {pool} heroes with {t.min_games_for_hero_stats}+ games. "
            "Consider expanding your pool to avoid being countered in draft."
        ),
        action="Try 2-3 new heroes in unranked this week",
        confidence="high",
        data_points=(f"{pool} heroes with {t.min_games_for_hero_stats}+ games",),
    )


def hero_specialist(data: AggregatedPlayerData, t: InsightThresholds) -> Insight | None:
    hero = next(
        (h for h in data.heroes if h.games > t.specialist_games and h.winrate > t.specialist_winrate),
        None,
    )
    if hero is None:
        return None
    return Insight(
        category="strength",
        title=f"{hero.name} Specialist",
        description=f"You have exceptional performance on {hero.name}. This is a reliable pick for climbing.",
        metric=f"{_pct(hero.winrate)}% winrate over {hero.games} games",
        confidence="high",
        data_points=(f"{hero.games} games", f"{_pct(hero.winrate)}% WR"),
    )


def hero_needs_work(data: AggregatedPlayerData, t: InsightThresholds) -> Insight | None:
    hero = next(
        (h for h in data.heroes if h.games >= t.needs_work_games and h.winrate < t.needs_work_winrate),
        None,
    )
    if hero is None:
        return None
    return Insight(
        category="weakness",
        title=f"{hero.name} Needs Work",
        description=(
            f"You play {hero.name} frequently but your winrate is below average. "
            "Consider reviewing replays or taking a break from this hero."
        ),
        metric=f"{_pct(hero.winrate)}% winrate",
        action=f"Watch a pro player's {hero.name} VOD",
        confidence="high",
        data_points=(f"{hero.games} games", f"{_pct(hero.winrate)}% WR"),
    )


# ─── Role rules ───────────────────────────────────────────────────────────────


def role_specialization(data: AggregatedPlayerData, t: InsightThresholds) -> Insight | None:
    if not data.roles:
        return None
    best = max(data.roles, key=lambda r: r.winrate)
    worst = min(data.roles, key=lambda r: r.winrate)
    gap = best.winrate - worst.winrate
    if gap <= t.role_winrate_gap or worst.games < t.min_games_for_role_stats:
        return None
    return Insight(
        category="tip",
        title="Role Specialization Opportunity",
        description=(
            f"Your {best.name} winrate is {gap:.0f}% higher than {worst.name}. "
            "Focusing on your best role could accelerate climbing."
        ),
        metric=f"{_pct(best.winrate)}% vs {_pct(worst.winrate)}%",
        action=f"Queue {best.name} for your next 10 ranked games",
        confidence="medium",
        data_points=(f"Best: {best.name} ({_pct(best.winrate)}%)", f"Worst: {worst.name} ({_pct(worst.winrate)}%)"),
    )


# ─── Peer rules ───────────────────────────────────────────────────────────────


def party_synergy_issue(data: AggregatedPlayerData, t: InsightThresholds) -> Insight | None:
    peer = next(
        (p for p in data.peers if p.games_together >= t.min_games_with_peer and p.synergy_score < -t.synergy_threshold),
        None,
    )
    if peer is None:
        return None
    return Insight(
        category="warning",
        title="Party Synergy Issue",
        description=(
            f"Your winrate drops significantly when playing with {peer.personaname}. "
            "This might be due to playstyle mismatch or role conflicts."
        ),
        metric=f"{_pct(peer.synergy_score)}% synergy",
        action="Consider solo queue or finding a different duo partner",
        confidence="high",
        data_points=(f"{peer.games_together} games together", f"{_pct(peer.winrate_together)}% WR together"),
    )


def strong_duo_partner(data: AggregatedPlayerData, t: InsightThresholds) -> Insight | None:
    peer = next(
        (p for p in data.peers if p.games_together >= t.min_games_with_peer and p.synergy_score > t.synergy_threshold),
        None,
    )
    if peer is None:
        return None
    return Insight(
        category="strength",
        title="Strong Duo Partner",
        description=(
            f"You perform exceptionally well with {peer.personaname}. Prioritize queuing together for ranked games."
        ),
        metric=f"+{_pct(peer.synergy_score)}% synergy",
        confidence="high",
        data_points=(f"{peer.games_together} games", f"{_pct(peer.winrate_together)}% WR"),
    )


# ─── Trend rules ──────────────────────────────────────────────────────────────


def hot_streak(data: AggregatedPlayerData, t: InsightThresholds) -> Insight | None:
    streak = data.form.current_win_streak
    if streak < t.win_streak:
        return None
    return Insight(
        category="tip",
        title="You're on Fire",
        description=(
            f"{streak} wins in a row! Your current form is excellent. "
            "Consider playing ranked while momentum is high."
        ),
        metric=f"{streak} win streak",
        confidence="medium",
        data_points=(f"Current streak: {streak}W",),
    )


def tilt_risk(data: AggregatedPlayerData, t: InsightThresholds) -> Insight | None:
    streak = data.form.current_loss_streak
    if streak < t.loss_streak:
        return None
    return Insight(
        category="warning",
        title="Tilt Risk Detected",
        description=(
            f"You've lost {streak} games in a row. Taking a break can help reset your mental state "
            "and prevent further losses."
        ),
        action="Take a 30-minute break before your next game",
        confidence="high",
        data_points=(f"Current streak: {streak}L",),
    )


def performance_uptrend(data: AggregatedPlayerData, t: InsightThresholds) -> Insight | None:
    recent, overall = data.form.last20_winrate, data.winrate
    if recent <= overall + t.uptrend_margin:
        return None
    return Insight(
        category="strength",
        title="Performance Uptrend",
        description=f"Your recent winrate ({_pct(recent)}%) is higher than your average ({_pct(overall)}%). You're improving!",
        metric=f"+{_pct(recent - overall)}% vs average",
        confidence="medium",
        data_points=(f"Recent: {_pct(recent)}%", f"Overall: {_pct(overall)}%"),
    )


def recent_slump(data: AggregatedPlayerData, t: InsightThresholds) -> Insight | None:
    recent, overall = data.form.last20_winrate, data.winrate
    if recent >= overall - t.slump_margin:
        return None
    return Insight(
        category="weakness",
        title="Recent Slump",
        description="Your recent performance is below your usual level. This could be due to tilt, meta changes, or bad luck.",
        metric=f"{_pct(recent - overall)}% vs average",
        action="Review your last 5 losses to identify patterns",
        confidence="medium",
        data_points=(f"Recent: {_pct(recent)}%", f"Overall: {_pct(overall)}%"),
    )


# ─── Play time rules ──────────────────────────────────────────────────────────


def optimal_play_time(data: AggregatedPlayerData, t: InsightThresholds) -> Insight | None:
    eligible = [c for c in data.heatmap if c.games >= t.best_time_games and c.winrate is not None]
    if not eligible:
        return None
    best = max(eligible, key=lambda c: c.winrate or 0.0)
    if (best.winrate or 0.0) <= data.winrate + t.best_time_winrate_bonus:
        return None
    return Insight(
        category="tip",
        title="Optimal Play Time",
        description=(
            f"You perform best on {DAY_NAMES[best.day]}s around {best.hour}:00. Schedule your ranked games accordingly."
        ),
        metric=f"{_pct(best.winrate or 0.0)}% winrate",
        confidence="medium",
        data_points=(f"{best.games} games at this time", f"{_pct(best.winrate or 0.0)}% WR"),
    )


DEFAULT_RULES: tuple[Rule, ...] = (
    limited_hero_pool,
    hero_specialist,
    hero_needs_work,
    role_specialization,
    party_synergy_issue,
    strong_duo_partner,
    hot_streak,
    tilt_risk,
    performance_uptrend,
    recent_slump,
    optimal_play_time,
)


# ─── Engine ───────────────────────────────────────────────────────────────────


def group_by_category(insights: Iterable[Insight]) -> dict[str, list[Insight]]:
    grouped: dict[str, list[Insight]] = {c: [] for c in CATEGORIES}
    for insight in insights:
        grouped[insight.category].append(insight)
    return grouped


class InsightEngine:
    def __init__(
        self,
        thresholds: InsightThresholds | None = None,
        *,
        rules: Sequence[Rule] = DEFAULT_RULES,
    ) -> None:
        self.thresholds = thresholds or InsightThresholds()
        self.rules = tuple(rules)

    def generate(self, data: AggregatedPlayerData) -> list[Insight]:
        insights = [i for rule in self.rules if (i := rule(data, self.thresholds)) is not None]
        log.debug("Insights generated", account_id=data.account_id, count=len(insights))
        return insights

    @staticmethod
    def summarize(insights: Sequence[Insight], data: AggregatedPlayerData) -> InsightSummary:
        grouped = group_by_category(insights)
        strengths, weaknesses = grouped["strength"], grouped["weakness"]
        tips, warnings = grouped["tip"], grouped["warning"]

        rating = 50 + (data.winrate - 50) * 1.5
        rating += 5 * len(strengths) - 5 * len(weaknesses) - 3 * len(warnings)
        rating = min(100.0, max(0.0, rating))

        if tips and tips[0].action:
            quick_tip = tips[0].action
        elif data.total_games > 0:
            quick_tip = "Keep playing and improving!"
        else:
            quick_tip = "Play more matches to get insights"

        main_weakness = (weaknesses or warnings)[0].title if (weaknesses or warnings) else "No major issues detected"
        return InsightSummary(
            overall_rating=round(rating),
            main_strength=strengths[0].title if strengths else "Consistent player",
            main_weakness=main_weakness,
            quick_tip=quick_tip,
        )

    def evaluate(self, data: AggregatedPlayerData, *, now: datetime | None = None) -> InsightReport:
        insights = self.generate(data)
        generated_at = (now or datetime.now(UTC)).isoformat()
        return InsightReport(
            generated_at=generated_at,
            insights=tuple(insights),
            summary=self.summarize(insights, data),
        )
