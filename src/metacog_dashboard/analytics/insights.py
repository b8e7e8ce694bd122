"""Threshold rules turning aggregates into human-readable insights."""

from metacog_dashboard.models.report import (
    EfficiencyInsight,
    GoalStat,
    Insight,
    InsightKind,
    MuddyPointInsights,
    ReflectionPattern,
    StrategyGoalInsight,
    StrategyStat,
    WeeklyTrend,
)

CALIBRATION_TOLERANCE = 10
GROWTH_THRESHOLD = 5
GOAL_GAP_THRESHOLD = 20
LOW_GAIN_THRESHOLD = 5
HIGH_GAIN_THRESHOLD = 15
MUDDY_THEME_ACCURACY_THRESHOLD = 70
WEAK_EXECUTION_RATE = 50
RECURRING_PLAN_COUNT = 3


def calibration_insight(average_confidence: int, average_accuracy: int) -> Insight:
    gap = abs(average_confidence - average_accuracy)
    if gap < CALIBRATION_TOLERANCE:
        message = "Great calibration! You're accurately assessing your understanding."
    elif average_confidence > average_accuracy:
        message = (
            f"You tend to be {gap}% overconfident. "
            "Continue practicing to improve your self-assessment."
        )
    else:
        message = (
            f"You tend to be {gap}% underconfident. "
            "Trust yourself more - you know more than you think!"
        )
    return Insight(kind=InsightKind.CALIBRATION, message=message)


def growth_insights(weekly_trends: list[WeeklyTrend]) -> list[Insight]:
    """Compare the first and last week. Fewer than two weeks means no trend."""
    if len(weekly_trends) < 2:
        return []
    first, last = weekly_trends[0], weekly_trends[-1]
    accuracy_change = last.accuracy - first.accuracy
    calibration_change = first.calibration_error - last.calibration_error

    insights = []
    if accuracy_change > GROWTH_THRESHOLD:
        insights.append(Insight(
            kind=InsightKind.GROWTH,
            message=(
                f"Great progress! Your accuracy improved by {accuracy_change}% "
                f"from week {first.week} to week {last.week}."
            ),
        ))
    if calibration_change > GROWTH_THRESHOLD:
        insights.append(Insight(
            kind=InsightKind.GROWTH,
            message=(
                f"Your calibration improved by {calibration_change}% - "
                "you're getting better at self-assessment!"
            ),
        ))
    if not insights:
        insights.append(Insight(
            kind=InsightKind.GROWTH,
            message=(
                f"Keep learning! Your accuracy is at {last.accuracy}% with "
                f"{last.calibration_error}% calibration error."
            ),
        ))
    return insights


def goal_insight(goal_stats: list[GoalStat]) -> Insight | None:
    if len(goal_stats) < 2:
        return None
    best, worst = goal_stats[0], goal_stats[-1]
    if best.achievement_rate - worst.achievement_rate > GOAL_GAP_THRESHOLD:
        return Insight(
            kind=InsightKind.GOALS,
            subject=worst.goal,
            message=(
                f'You achieve "{best.goal}" {best.achievement_rate}% of the time but only '
                f'{worst.achievement_rate}% for "{worst.goal}". Consider spending more '
                f'time planning when your goal is "{worst.goal}".'
            ),
        )
    return Insight(
        kind=InsightKind.GOALS,
        message=(
            "Your goal achievement is consistent across different learning goals. "
            "Keep up the balanced approach!"
        ),
    )


def strategy_insight(strategy_stats: list[StrategyStat]) -> Insight | None:
    if not strategy_stats:
        return None
    top = strategy_stats[0]
    return Insight(
        kind=InsightKind.STRATEGY,
        subject=top.strategy,
        message=(
            f'Your most effective strategy is "{top.strategy}" with '
            f"{top.average_accuracy}% accuracy. Try using it more often!"
        ),
    )


def strategy_goal_messages(insights: list[StrategyGoalInsight]) -> list[Insight]:
    return [
        Insight(
            kind=InsightKind.STRATEGY_GOAL,
            subject=item.strategy,
            message=(
                f'"{item.strategy}" works best for "{item.best_goal}" '
                f"({item.best_accuracy}% accuracy) but is less effective for "
                f'"{item.worst_goal}" ({item.worst_accuracy}% accuracy).'
            ),
        )
        for item in insights
    ]


def reflection_tips(patterns: list[ReflectionPattern]) -> list[Insight]:
    """Nudge for plans made repeatedly but rarely acted on."""
    return [
        Insight(
            kind=InsightKind.REFLECTION,
            subject=pattern.plan,
            message=(
                f"You've planned this {pattern.count} times but only followed through "
                f"{pattern.executed_count} times. Consider why this plan is hard to execute."
            ),
        )
        for pattern in patterns
        if pattern.execution_rate < WEAK_EXECUTION_RATE and pattern.count >= RECURRING_PLAN_COUNT
    ]


def efficiency_message(efficiency: EfficiencyInsight | None) -> Insight | None:
    if efficiency is None:
        return None
    gain = efficiency.accuracy_gain
    multiplier = efficiency.time_multiplier
    if gain < LOW_GAIN_THRESHOLD:
        message = (
            f"You spend {multiplier}x longer on some chunks but only gain {gain}% accuracy. "
            "Consider using more efficient strategies or moving on when you hit "
            "diminishing returns."
        )
    elif gain >= HIGH_GAIN_THRESHOLD:
        message = (
            f"Taking more time pays off! You gain {gain}% accuracy when spending "
            f"{multiplier}x longer. Keep investing time where it matters."
        )
    else:
        message = (
            f"Spending {multiplier}x longer improves accuracy by {gain}%. "
            "This is a reasonable trade-off for important topics."
        )
    return Insight(kind=InsightKind.EFFICIENCY, message=message)


def muddy_point_tips(muddy_points: MuddyPointInsights | None) -> list[Insight]:
    if muddy_points is None:
        return []
    return [
        Insight(
            kind=InsightKind.MUDDY_POINT,
            subject=theme.theme,
            message=(
                'Try using "work an example" or "connect to what I know" strategies '
                "for this type of content."
            ),
        )
        for theme in muddy_points.themes
        if theme.avg_accuracy < MUDDY_THEME_ACCURACY_THRESHOLD
    ]


def synthesize_insights(
    *,
    average_confidence: int,
    average_accuracy: int,
    strategy_stats: list[StrategyStat],
    weekly_trends: list[WeeklyTrend],
    goal_stats: list[GoalStat],
    strategy_goal_insights: list[StrategyGoalInsight],
    reflection_patterns: list[ReflectionPattern],
    efficiency: EfficiencyInsight | None,
    muddy_points: MuddyPointInsights | None,
) -> list[Insight]:
    """Run every rule independently and collect the insights that fire."""
    insights = [calibration_insight(average_confidence, average_accuracy)]
    insights.extend(growth_insights(weekly_trends))
    for single in (goal_insight(goal_stats), strategy_insight(strategy_stats)):
        if single is not None:
            insights.append(single)
    insights.extend(strategy_goal_messages(strategy_goal_insights))
    insights.extend(reflection_tips(reflection_patterns))
    efficiency_insight = efficiency_message(efficiency)
    if efficiency_insight is not None:
        insights.append(efficiency_insight)
    insights.extend(muddy_point_tips(muddy_points))
    return insights
