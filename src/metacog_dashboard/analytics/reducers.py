"""Reducers collapsing each classified bucket into summary statistics."""

from collections.abc import Sequence
from datetime import timedelta

from metacog_dashboard.analytics.classifier import (
    CellAccumulator,
    GoalAccumulator,
    MuddyPointSample,
    PlanAccumulator,
    StrategyAccumulator,
    TimeSample,
    TrendPoint,
)
from metacog_dashboard.analytics.stats import mean, percentage, round_half_up, round_tenths
from metacog_dashboard.models.report import (
    EfficiencyInsight,
    FollowThrough,
    GoalPerformance,
    GoalStat,
    MuddyPointInsights,
    MuddyPointTheme,
    ReflectionPattern,
    StrategyGoalInsight,
    StrategyStat,
    WeeklyTrend,
)

WEEK = timedelta(days=7)

MIN_GOAL_USES = 2
MIN_STRATEGY_GOAL_DIFFERENCE = 15
MAX_STRATEGY_GOAL_INSIGHTS = 3
MIN_PLAN_COUNT = 2
MAX_REFLECTION_PATTERNS = 5
MIN_TIME_SAMPLES = 5
MIN_MUDDY_POINTS = 3
MIN_THEME_COUNT = 2
MAX_THEME_EXAMPLES = 2
MAX_THEMES = 3

# (keywords, theme) pairs; a muddy point may match several themes
MUDDY_POINT_THEMES: list[tuple[tuple[str, ...], str]] = [
    (("abstract", "theoretical", "concept"), "Abstract concepts"),
    (("formula", "equation", "math", "calculation"), "Mathematical formulas"),
    (("terminology", "term", "definition", "vocabulary"), "Terminology"),
    (("connection", "relationship", "how", "why"), "Connections and relationships"),
    (("application", "apply", "use", "practical"), "Practical applications"),
    (("detail", "specific", "example"), "Specific details"),
]


def reduce_strategies(strategies: dict[str, StrategyAccumulator]) -> list[StrategyStat]:
    """Average accuracy and helpfulness per strategy, best first."""
    stats = [
        StrategyStat(
            strategy=name,
            average_accuracy=round_half_up(acc.total_accuracy / acc.count),
            uses=acc.count,
            helpful_percentage=percentage(acc.helpful, acc.helpful + acc.not_helpful),
        )
        for name, acc in strategies.items()
    ]
    return sorted(stats, key=lambda s: s.average_accuracy, reverse=True)


def reduce_weekly_trends(trend: Sequence[TrendPoint]) -> list[WeeklyTrend]:
    """Group trend points into 7-day buckets counted from the earliest point.

    Args:
        trend: Trend points in any order.

    Returns:
        One entry per non-empty week, ascending, with week numbers starting at 1.
    """
    if not trend:
        return []
    points = sorted(trend, key=lambda p: p.date)
    first_date = points[0].date

    buckets: dict[int, list[TrendPoint]] = {}
    for point in points:
        buckets.setdefault((point.date - first_date) // WEEK, []).append(point)

    weeks = [
        WeeklyTrend(
            week=week_index + 1,
            accuracy=round_half_up(mean(p.accuracy for p in bucket)),
            confidence=round_half_up(mean(p.confidence for p in bucket)),
            calibration_error=round_half_up(mean(p.calibration_error for p in bucket)),
        )
        for week_index, bucket in buckets.items()
    ]
    return sorted(weeks, key=lambda w: w.week)


def reduce_goals(goals: dict[str, GoalAccumulator]) -> list[GoalStat]:
    """Achievement rate per goal; goals nobody rated are left out."""
    stats = []
    for goal, acc in goals.items():
        rate = percentage(acc.achieved, acc.achieved + acc.not_achieved)
        if rate is None:
            continue
        stats.append(GoalStat(
            goal=goal,
            achievement_rate=rate,
            average_accuracy=round_half_up(acc.total_accuracy / acc.count),
            attempts=acc.count,
        ))
    return sorted(stats, key=lambda g: g.achievement_rate, reverse=True)


def goal_performances(goals: dict[str, CellAccumulator]) -> list[GoalPerformance]:
    """Per-goal accuracy for one strategy, dropping goals with too few uses."""
    performances = [
        GoalPerformance(
            goal=goal,
            accuracy=round_half_up(cell.total_accuracy / cell.count),
            uses=cell.count,
        )
        for goal, cell in goals.items()
        if cell.count >= MIN_GOAL_USES
    ]
    return sorted(performances, key=lambda p: p.accuracy, reverse=True)


def reduce_strategy_goal_matrix(
    matrix: dict[str, dict[str, CellAccumulator]],
) -> list[StrategyGoalInsight]:
    """Strategies whose accuracy depends strongly on the goal, largest gap first."""
    insights = []
    for strategy, goals in matrix.items():
        performances = goal_performances(goals)
        if len(performances) < 2:
            continue
        best, worst = performances[0], performances[-1]
        difference = best.accuracy - worst.accuracy
        if difference < MIN_STRATEGY_GOAL_DIFFERENCE:
            continue
        insights.append(StrategyGoalInsight(
            strategy=strategy,
            best_goal=best.goal,
            best_accuracy=best.accuracy,
            worst_goal=worst.goal,
            worst_accuracy=worst.accuracy,
            difference=difference,
            goal_performances=performances,
        ))
    insights.sort(key=lambda i: i.difference, reverse=True)
    return insights[:MAX_STRATEGY_GOAL_INSIGHTS]


def reduce_plan_execution(plans: dict[str, PlanAccumulator]) -> list[ReflectionPattern]:
    """Recurring next-time plans and how often they were followed through."""
    patterns = []
    for tracker in plans.values():
        if tracker.plan_count < MIN_PLAN_COUNT:
            continue
        rate = percentage(tracker.executed_count, tracker.plan_count) or 0
        patterns.append(ReflectionPattern(
            plan=tracker.examples[0],
            count=tracker.plan_count,
            executed_count=tracker.executed_count,
            execution_rate=rate,
            follow_through=FollowThrough.from_rate(rate),
        ))
    patterns.sort(key=lambda p: p.count, reverse=True)
    return patterns[:MAX_REFLECTION_PATTERNS]


def reduce_time_efficiency(samples: Sequence[TimeSample]) -> EfficiencyInsight | None:
    """Compare the fastest quartile of responses with the slowest.

    Only the first and last floor(n/4) samples by time are used; when n is not
    a multiple of 4 the remainder stays in the unused middle.

    Returns:
        None with fewer than 5 samples, or when the fast group averages 0 seconds.
    """
    if len(samples) < MIN_TIME_SAMPLES:
        return None
    by_time = sorted(samples, key=lambda s: s.time_spent)
    quartile_size = len(by_time) // 4
    fast = by_time[:quartile_size]
    slow = by_time[-quartile_size:]

    fast_accuracy = round_half_up(mean(s.accuracy for s in fast))
    slow_accuracy = round_half_up(mean(s.accuracy for s in slow))
    fast_time = round_half_up(mean(s.time_spent for s in fast))
    slow_time = round_half_up(mean(s.time_spent for s in slow))
    if fast_time == 0:
        return None

    accuracy_gain = slow_accuracy - fast_accuracy
    ratio = slow_time / fast_time
    return EfficiencyInsight(
        fast_avg_time=fast_time,
        fast_avg_accuracy=fast_accuracy,
        slow_avg_time=slow_time,
        slow_avg_accuracy=slow_accuracy,
        accuracy_gain=accuracy_gain,
        time_multiplier=round_tenths(ratio),
        efficiency=accuracy_gain / ratio if ratio else 0.0,
    )


def match_themes(text: str) -> list[str]:
    """Themes whose keywords appear anywhere in the text (case-insensitive)."""
    lower_text = text.lower()
    return [
        theme
        for keywords, theme in MUDDY_POINT_THEMES
        if any(keyword in lower_text for keyword in keywords)
    ]


def reduce_muddy_points(samples: Sequence[MuddyPointSample]) -> MuddyPointInsights | None:
    """Most common confusion themes across the learner's muddy points."""
    if len(samples) < MIN_MUDDY_POINTS:
        return None

    matches: dict[str, MuddyPointTheme] = {}
    totals: dict[str, float] = {}
    for sample in samples:
        for theme in match_themes(sample.text):
            entry = matches.setdefault(theme, MuddyPointTheme(theme=theme, count=0, avg_accuracy=0))
            entry.count += 1
            totals[theme] = totals.get(theme, 0.0) + sample.accuracy
            if len(entry.examples) < MAX_THEME_EXAMPLES:
                entry.examples.append(sample.text)

    themes = []
    for theme, entry in matches.items():
        if entry.count < MIN_THEME_COUNT:
            continue
        entry.avg_accuracy = round_half_up(totals[theme] / entry.count)
        themes.append(entry)
    themes.sort(key=lambda t: t.count, reverse=True)

    if not themes:
        return None
    return MuddyPointInsights(total_muddy_points=len(samples), themes=themes[:MAX_THEMES])
