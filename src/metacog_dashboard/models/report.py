"""Dashboard report models (derived aggregates, recomputed on every load)."""

from enum import StrEnum

from pydantic import Field

from metacog_dashboard.models.session import CamelModel, Session


class StrategyStat(CamelModel):
    strategy: str
    average_accuracy: int
    uses: int
    helpful_percentage: int | None = None


class WeeklyTrend(CamelModel):
    week: int  # 1-indexed, relative to the first response
    accuracy: int
    confidence: int
    calibration_error: int


class GoalStat(CamelModel):
    goal: str
    achievement_rate: int
    average_accuracy: int
    attempts: int


class GoalPerformance(CamelModel):
    goal: str
    accuracy: int
    uses: int


class StrategyGoalInsight(CamelModel):
    """A strategy that works noticeably better for one goal than another."""

    strategy: str
    best_goal: str
    best_accuracy: int
    worst_goal: str
    worst_accuracy: int
    difference: int
    goal_performances: list[GoalPerformance] = Field(default_factory=list)


class FollowThrough(StrEnum):
    """How reliably a recurring plan was acted on."""

    STRONG = "strong"
    MODERATE = "moderate"
    WEAK = "weak"

    @classmethod
    def from_rate(cls, execution_rate: int) -> "FollowThrough":
        if execution_rate >= 70:
            return cls.STRONG
        elif execution_rate >= 40:
            return cls.MODERATE
        else:
            return cls.WEAK


class ReflectionPattern(CamelModel):
    plan: str  # original casing of the first occurrence
    count: int
    executed_count: int
    execution_rate: int
    follow_through: FollowThrough


class EfficiencyInsight(CamelModel):
    """Accuracy of the fastest quartile of responses compared with the slowest."""

    fast_avg_time: int
    fast_avg_accuracy: int
    slow_avg_time: int
    slow_avg_accuracy: int
    accuracy_gain: int
    time_multiplier: float
    efficiency: float


class MuddyPointTheme(CamelModel):
    theme: str
    count: int
    avg_accuracy: int
    examples: list[str] = Field(default_factory=list)


class MuddyPointInsights(CamelModel):
    total_muddy_points: int
    themes: list[MuddyPointTheme] = Field(default_factory=list)


class InsightKind(StrEnum):
    CALIBRATION = "calibration"
    GROWTH = "growth"
    GOALS = "goals"
    STRATEGY = "strategy"
    STRATEGY_GOAL = "strategy_goal"
    REFLECTION = "reflection"
    EFFICIENCY = "efficiency"
    MUDDY_POINT = "muddy_point"


class Insight(CamelModel):
    """A human-readable observation derived from the aggregates."""

    kind: InsightKind
    message: str
    subject: str | None = None  # strategy, goal, plan or theme the insight is about


class DashboardReport(CamelModel):
    """Everything the dashboard view renders for one learner."""

    has_data: bool = False
    total_sessions: int = 0
    completed_sessions: int = 0
    total_chunks: int = 0
    average_accuracy: int = 0
    average_confidence: int = 0
    total_time_minutes: int = 0
    strategy_stats: list[StrategyStat] = Field(default_factory=list)
    recent_sessions: list[Session] = Field(default_factory=list)
    weekly_trends: list[WeeklyTrend] = Field(default_factory=list)
    goal_stats: list[GoalStat] = Field(default_factory=list)
    strategy_goal_insights: list[StrategyGoalInsight] = Field(default_factory=list)
    reflection_patterns: list[ReflectionPattern] = Field(default_factory=list)
    efficiency_insight: EfficiencyInsight | None = None
    muddy_point_insights: MuddyPointInsights | None = None
    insights: list[Insight] = Field(default_factory=list)
