"""REST API routes for the learning dashboard."""

import functools

import structlog
from fastapi import APIRouter, HTTPException, Query

from metacog_dashboard.analytics.aggregator import LearningAnalyticsAggregator
from metacog_dashboard.config import get_settings
from metacog_dashboard.models.report import DashboardReport
from metacog_dashboard.models.session import Session
from metacog_dashboard.storage.base import SessionRepository, StorageError
from metacog_dashboard.storage.json_store import JsonSessionStore

logger = structlog.get_logger()
router = APIRouter(prefix="/api")


@functools.lru_cache
def get_repository() -> SessionRepository:
    """Repository for the configured storage backend."""
    settings = get_settings()
    if settings.storage_backend == "mongo":
        from metacog_dashboard.storage.mongo_store import MongoSessionStore  # noqa: PLC0415

        return MongoSessionStore(settings.mongodb_url, settings.mongodb_db_name)
    return JsonSessionStore(settings.sessions_dir)


def close_repository() -> None:
    """Close the cached repository, if one was ever created."""
    if get_repository.cache_info().currsize:
        get_repository().close()
        get_repository.cache_clear()
        logger.info("repository_closed")


@router.get("/dashboard/{user_id}", response_model=DashboardReport)
async def get_dashboard(user_id: str) -> DashboardReport:
    """Aggregated learning statistics and insights for a learner."""
    settings = get_settings()
    aggregator = LearningAnalyticsAggregator(
        get_repository(),
        session_limit=settings.session_list_limit,
        recent_count=settings.recent_sessions_count,
    )
    try:
        return await aggregator.build_report(user_id)
    except StorageError as e:
        logger.error("dashboard_load_failed", user_id=user_id, error=str(e))
        raise HTTPException(status_code=502, detail="Failed to load dashboard")


@router.get("/sessions", response_model=list[Session])
async def list_sessions(
    user_id: str = Query(default="anonymous", alias="userId"),
    limit: int = 50,
) -> list[Session]:
    """List a learner's sessions, newest first."""
    try:
        return await get_repository().list_sessions(user_id, limit=limit)
    except StorageError as e:
        logger.error("session_list_failed", user_id=user_id, error=str(e))
        raise HTTPException(status_code=502, detail="Failed to fetch sessions")


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}
