"""Learning analytics aggregation: load a learner's history and assemble the report."""

import asyncio
from collections.abc import Sequence

import structlog

from metacog_dashboard.analytics.classifier import classify_responses
from metacog_dashboard.analytics.insights import synthesize_insights
from metacog_dashboard.analytics.reducers import (
    reduce_goals,
    reduce_muddy_points,
    reduce_plan_execution,
    reduce_strategies,
    reduce_strategy_goal_matrix,
    reduce_time_efficiency,
    reduce_weekly_trends,
)
from metacog_dashboard.analytics.stats import round_half_up
from metacog_dashboard.models.report import DashboardReport
from metacog_dashboard.models.response import Response
from metacog_dashboard.models.session import Session
from metacog_dashboard.storage.base import SessionRepository

logger = structlog.get_logger()

RECENT_SESSIONS = 5


def empty_report(total_sessions: int) -> DashboardReport:
    """Report for a learner with no completed sessions."""
    return DashboardReport(has_data=False, total_sessions=total_sessions)


def assemble_report(
    sessions: Sequence[Session],
    responses: Sequence[Response],
    recent_count: int = RECENT_SESSIONS,
) -> DashboardReport:
    """Build the dashboard report from already-loaded data.

    Deterministic: identical inputs give identical reports.

    Args:
        sessions: All of the learner's sessions, newest first.
        responses: Responses of the completed sessions, in fetch order.
        recent_count: How many sessions to list as recent.

    Returns:
        The full report, or the empty report when nothing is completed.
    """
    completed = [s for s in sessions if s.is_completed]
    if not completed:
        return empty_report(len(sessions))

    total_chunks = 0.0
    weighted_accuracy = 0.0
    weighted_confidence = 0.0
    total_seconds = 0.0
    for session in completed:
        stats = session.stats
        total_chunks += stats.chunks_completed
        weighted_accuracy += stats.average_accuracy * stats.chunks_completed
        weighted_confidence += stats.average_confidence * stats.chunks_completed
        total_seconds += stats.total_time_seconds

    average_accuracy = round_half_up(weighted_accuracy / total_chunks) if total_chunks > 0 else 0
    average_confidence = (
        round_half_up(weighted_confidence / total_chunks) if total_chunks > 0 else 0
    )

    classified = classify_responses(responses)
    strategy_stats = reduce_strategies(classified.strategies)
    weekly_trends = reduce_weekly_trends(classified.trend)
    goal_stats = reduce_goals(classified.goals)
    strategy_goal_insights = reduce_strategy_goal_matrix(classified.strategy_goal_matrix)
    reflection_patterns = reduce_plan_execution(classified.plans)
    efficiency = reduce_time_efficiency(classified.time_samples)
    muddy_points = reduce_muddy_points(classified.muddy_points)

    insights = synthesize_insights(
        average_confidence=average_confidence,
        average_accuracy=average_accuracy,
        strategy_stats=strategy_stats,
        weekly_trends=weekly_trends,
        goal_stats=goal_stats,
        strategy_goal_insights=strategy_goal_insights,
        reflection_patterns=reflection_patterns,
        efficiency=efficiency,
        muddy_points=muddy_points,
    )

    return DashboardReport(
        has_data=True,
        total_sessions=len(sessions),
        completed_sessions=len(completed),
        total_chunks=round_half_up(total_chunks),
        average_accuracy=average_accuracy,
        average_confidence=average_confidence,
        total_time_minutes=round_half_up(total_seconds / 60),
        strategy_stats=strategy_stats,
        recent_sessions=list(sessions[:recent_count]),
        weekly_trends=weekly_trends,
        goal_stats=goal_stats,
        strategy_goal_insights=strategy_goal_insights,
        reflection_patterns=reflection_patterns,
        efficiency_insight=efficiency,
        muddy_point_insights=muddy_points,
        insights=insights,
    )


class LearningAnalyticsAggregator:
    """Loads a learner's sessions and responses and reduces them into a report.

    Args:
        repository: Where sessions and responses are read from.
        session_limit: Maximum number of sessions to consider.
        recent_count: How many sessions to list as recent.
    """

    def __init__(
        self,
        repository: SessionRepository,
        session_limit: int = 100,
        recent_count: int = RECENT_SESSIONS,
    ):
        self.repository = repository
        self.session_limit = session_limit
        self.recent_count = recent_count

    async def _fetch_responses(self, session: Session) -> list[Response]:
        """Responses for one session; a failed fetch yields none instead of failing the report."""
        try:
            return await self.repository.list_responses(session.id)
        except Exception as e:
            logger.error("response_fetch_failed", session_id=session.id, error=str(e))
            return []

    async def load_responses(self, sessions: Sequence[Session]) -> list[Response]:
        """Fetch all sessions' responses concurrently, concatenated in session order."""
        batches = await asyncio.gather(*(self._fetch_responses(s) for s in sessions))
        return [response for batch in batches for response in batch]

    async def build_report(self, user_id: str) -> DashboardReport:
        """Build the dashboard report for a learner.

        Raises:
            StorageError: If the session list itself cannot be loaded.
        """
        sessions = await self.repository.list_sessions(user_id, limit=self.session_limit)
        completed = [s for s in sessions if s.is_completed]
        if not completed:
            logger.info("dashboard_empty", user_id=user_id, total_sessions=len(sessions))
            return empty_report(len(sessions))

        responses = await self.load_responses(completed)
        report = assemble_report(sessions, responses, recent_count=self.recent_count)
        logger.info(
            "dashboard_report_built",
            user_id=user_id,
            completed_sessions=report.completed_sessions,
            responses=len(responses),
        )
        return report
