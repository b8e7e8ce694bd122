"""Shared builders for sessions and responses."""

from datetime import datetime, timedelta, timezone

import pytest

from metacog_dashboard.models.response import Response
from metacog_dashboard.models.session import Session

BASE_TIME = datetime(2026, 3, 2, 9, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def base_time():
    return BASE_TIME


@pytest.fixture
def make_response():
    def _make(day: float = 0, **fields) -> Response:
        fields.setdefault("createdAt", BASE_TIME + timedelta(days=day))
        fields.setdefault("strategy", "self-explain")
        fields.setdefault("goal", "explain")
        return Response.model_validate(fields)

    return _make


@pytest.fixture
def make_session():
    def _make(
        session_id: str,
        status: str = "completed",
        chunks: int = 0,
        accuracy: float = 0,
        confidence: float = 0,
        seconds: float = 0,
        day: float = 0,
    ) -> Session:
        return Session.model_validate({
            "_id": session_id,
            "userId": "learner-1",
            "status": status,
            "createdAt": BASE_TIME + timedelta(days=day),
            "contentPreview": f"Text for {session_id}",
            "sessionStats": {
                "totalChunks": chunks,
                "chunksCompleted": chunks,
                "averageAccuracy": accuracy,
                "averageConfidence": confidence,
                "totalTimeSeconds": seconds,
            },
        })

    return _make
