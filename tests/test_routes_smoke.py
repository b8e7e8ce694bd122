"""Smoke tests for API routes."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from metacog_dashboard.api.routes import close_repository, get_repository, router
from metacog_dashboard.storage.base import SessionRepository, StorageError
from metacog_dashboard.storage.json_store import JsonSessionStore


@pytest.fixture
def mock_settings(tmp_path):
    settings = MagicMock()
    settings.sessions_dir = tmp_path / "sessions"
    settings.session_list_limit = 100
    settings.recent_sessions_count = 5
    settings.app_secret = None
    return settings


@pytest.fixture
def repository():
    repo = AsyncMock(spec=SessionRepository)
    repo.list_sessions.return_value = []
    repo.list_responses.return_value = []
    return repo


@pytest.fixture
def client(mock_settings, repository):
    app = FastAPI()
    app.include_router(router)
    with patch("metacog_dashboard.api.routes.get_settings", return_value=mock_settings), \
            patch("metacog_dashboard.api.routes.get_repository", return_value=repository):
        with TestClient(app) as c:
            yield c


class TestHealthCheck:
    def test_health_returns_ok(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestDashboard:
    def test_empty_dashboard(self, client):
        response = client.get("/api/dashboard/learner-1")
        assert response.status_code == 200
        data = response.json()
        assert data["hasData"] is False
        assert data["completedSessions"] == 0
        assert data["insights"] == []

    def test_full_dashboard(self, client, repository, make_session, make_response):
        repository.list_sessions.return_value = [
            make_session("s1", chunks=2, accuracy=80, confidence=90, seconds=300),
        ]
        repository.list_responses.return_value = [
            make_response(accuracy=70, confidence=90, strategyHelpful=True),
            make_response(day=1, accuracy=90, confidence=90, strategyHelpful=True),
        ]
        response = client.get("/api/dashboard/learner-1")
        assert response.status_code == 200
        data = response.json()
        assert data["hasData"] is True
        assert data["averageAccuracy"] == 80
        assert data["totalTimeMinutes"] == 5
        assert data["strategyStats"] == [{
            "strategy": "self-explain",
            "averageAccuracy": 80,
            "uses": 2,
            "helpfulPercentage": 100,
        }]
        assert data["recentSessions"][0]["_id"] == "s1"
        assert data["efficiencyInsight"] is None
        repository.list_sessions.assert_awaited_once_with("learner-1", limit=100)

    def test_session_list_failure(self, client, repository):
        repository.list_sessions.side_effect = StorageError("down")
        response = client.get("/api/dashboard/learner-1")
        assert response.status_code == 502
        assert response.json() == {"detail": "Failed to load dashboard"}


class TestSessionsList:
    def test_sessions_list(self, client, repository, make_session):
        repository.list_sessions.return_value = [make_session("s1"), make_session("s2")]
        response = client.get("/api/sessions", params={"userId": "learner-1", "limit": 10})
        assert response.status_code == 200
        assert [s["_id"] for s in response.json()] == ["s1", "s2"]
        repository.list_sessions.assert_awaited_once_with("learner-1", limit=10)

    def test_sessions_failure(self, client, repository):
        repository.list_sessions.side_effect = StorageError("down")
        response = client.get("/api/sessions")
        assert response.status_code == 502


class TestRepositoryLifecycle:
    @pytest.fixture(autouse=True)
    def fresh_cache(self, mock_settings):
        mock_settings.storage_backend = "json"
        get_repository.cache_clear()
        with patch("metacog_dashboard.api.routes.get_settings", return_value=mock_settings):
            yield
        get_repository.cache_clear()

    def test_close_cached_repository(self):
        repo = get_repository()
        assert isinstance(repo, JsonSessionStore)
        with patch.object(JsonSessionStore, "close") as close:
            close_repository()
        close.assert_called_once_with()
        assert get_repository.cache_info().currsize == 0

    def test_close_without_repository_is_noop(self):
        with patch.object(JsonSessionStore, "close") as close:
            close_repository()
        close.assert_not_called()
        assert get_repository.cache_info().currsize == 0
