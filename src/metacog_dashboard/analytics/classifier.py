"""Per-response classification: one forward pass that fills every accumulator.

The plan-execution check looks at the response immediately after the current
one, so this pass must run over responses in their original fetch order.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime

from metacog_dashboard.models.response import Response

UNKNOWN = "Unknown"

# Plan phrasings that announce a strategy change, or sticking with the current one
CHANGE_PLAN_KEYWORDS = ("different", "try", "switch")
KEEP_PLAN_KEYWORDS = ("same", "keep", "continue")


@dataclass
class StrategyAccumulator:
    total_accuracy: float = 0.0
    count: int = 0
    helpful: int = 0
    not_helpful: int = 0


@dataclass
class GoalAccumulator:
    total_accuracy: float = 0.0
    count: int = 0
    achieved: int = 0
    not_achieved: int = 0


@dataclass
class CellAccumulator:
    total_accuracy: float = 0.0
    count: int = 0


@dataclass
class PlanAccumulator:
    plan_count: int = 0
    executed_count: int = 0
    examples: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class TrendPoint:
    date: datetime
    accuracy: float
    confidence: float
    calibration_error: float


@dataclass(frozen=True)
class TimeSample:
    time_spent: float
    accuracy: float
    strategy: str


@dataclass(frozen=True)
class MuddyPointSample:
    text: str
    accuracy: float
    strategy: str


@dataclass
class ClassifiedResponses:
    """Accumulators for one aggregation call; never shared between calls."""

    strategies: dict[str, StrategyAccumulator] = field(default_factory=dict)
    trend: list[TrendPoint] = field(default_factory=list)
    goals: dict[str, GoalAccumulator] = field(default_factory=dict)
    strategy_goal_matrix: dict[str, dict[str, CellAccumulator]] = field(default_factory=dict)
    plans: dict[str, PlanAccumulator] = field(default_factory=dict)
    time_samples: list[TimeSample] = field(default_factory=list)
    muddy_points: list[MuddyPointSample] = field(default_factory=list)


def plan_executed(plan: str, current: Response, following: Response) -> bool:
    """Whether the response after a stated plan shows the plan being followed.

    Args:
        plan: Lower-cased plan text.
        current: Response on which the plan was written.
        following: The next response in fetch order.

    Returns:
        True only for change/keep plans whose intent the next strategy matches.
    """
    strategy_changed = following.strategy != current.strategy
    if any(keyword in plan for keyword in CHANGE_PLAN_KEYWORDS):
        return strategy_changed
    if any(keyword in plan for keyword in KEEP_PLAN_KEYWORDS):
        return not strategy_changed
    return False


def classify_responses(responses: Sequence[Response]) -> ClassifiedResponses:
    """Bucket every response into the accumulators the reducers consume."""
    result = ClassifiedResponses()

    for index, response in enumerate(responses):
        strategy_name = response.strategy or UNKNOWN
        goal_type = response.goal or UNKNOWN

        strategy = result.strategies.setdefault(strategy_name, StrategyAccumulator())
        strategy.total_accuracy += response.accuracy
        strategy.count += 1
        if response.strategy_helpful is True:
            strategy.helpful += 1
        elif response.strategy_helpful is False:
            strategy.not_helpful += 1

        if response.created_at is not None:
            result.trend.append(TrendPoint(
                date=response.created_at,
                accuracy=response.accuracy,
                confidence=response.confidence,
                calibration_error=response.calibration_error,
            ))

        goal = result.goals.setdefault(goal_type, GoalAccumulator())
        goal.count += 1
        goal.total_accuracy += response.accuracy
        outcome = response.goal_outcome
        if outcome is True:
            goal.achieved += 1
        elif outcome is False:
            goal.not_achieved += 1

        cell = result.strategy_goal_matrix.setdefault(strategy_name, {}).setdefault(
            goal_type, CellAccumulator()
        )
        cell.total_accuracy += response.accuracy
        cell.count += 1

        adjustment = (response.next_time_adjustment or "").strip()
        if adjustment:
            plan = adjustment.lower()
            tracker = result.plans.setdefault(plan, PlanAccumulator())
            tracker.plan_count += 1
            if not tracker.examples:
                tracker.examples.append(adjustment)
            if index + 1 < len(responses) and plan_executed(
                plan, response, responses[index + 1]
            ):
                tracker.executed_count += 1

        if response.time_spent:
            result.time_samples.append(TimeSample(
                time_spent=response.time_spent,
                accuracy=response.accuracy,
                strategy=strategy_name,
            ))

        muddy_text = (response.muddy_point or "").strip()
        if muddy_text:
            result.muddy_points.append(MuddyPointSample(
                text=muddy_text,
                accuracy=response.accuracy,
                strategy=strategy_name,
            ))

    return result
