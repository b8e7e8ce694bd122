"""Session persistence as one JSON file per session (fcntl.flock + atomic write)."""

import asyncio
import fcntl
import json
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import structlog

from metacog_dashboard.models.response import Response
from metacog_dashboard.models.session import Session
from metacog_dashboard.storage.base import (
    SessionRepository,
    StorageError,
    parse_responses,
    parse_sessions,
)

logger = structlog.get_logger()

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _read_document(path: Path) -> dict[str, Any]:
    with open(path, encoding="utf-8") as f:
        fcntl.flock(f, fcntl.LOCK_SH)
        data = json.load(f)
        fcntl.flock(f, fcntl.LOCK_UN)
    if not isinstance(data, dict):
        raise ValueError(f"{path.name} does not hold a JSON object")
    return data


class JsonSessionStore(SessionRepository):
    """Reads ``<sessions_dir>/<session_id>.json`` files.

    Each file holds ``{"session": {...}, "responses": [...]}`` using the same
    camelCase keys as the MongoDB documents.

    Args:
        sessions_dir: Directory holding the session files.
    """

    def __init__(self, sessions_dir: Path):
        self.sessions_dir = sessions_dir

    def session_path(self, session_id: str) -> Path:
        return self.sessions_dir / f"{session_id}.json"

    def _load_sessions(self, user_id: str, limit: int) -> list[Session]:
        if not self.sessions_dir.exists():
            return []
        documents = []
        for path in sorted(self.sessions_dir.glob("*.json")):
            try:
                data = _read_document(path)
            # JSONDecodeError and UnicodeDecodeError are both ValueErrors
            except (OSError, ValueError) as e:
                logger.warning("session_parse_error", path=str(path), error=str(e))
                continue
            doc = data.get("session")
            if not isinstance(doc, dict):
                logger.warning("session_parse_error", path=str(path), error="missing session")
                continue
            if str(doc.get("userId")) == user_id:
                documents.append(doc)
        sessions = parse_sessions(documents)
        sessions.sort(key=lambda s: s.created_at or _EPOCH, reverse=True)
        return sessions[:limit]

    def _load_responses(self, session_id: str) -> list[Response]:
        path = self.session_path(session_id)
        if not path.exists():
            return []
        data = _read_document(path)
        documents = data.get("responses") or []
        if not isinstance(documents, list):
            raise ValueError(f"{path.name} has a non-list 'responses' field")
        responses = parse_responses(documents)
        responses.sort(key=lambda r: r.created_at or _EPOCH)
        return responses

    async def list_sessions(self, user_id: str, limit: int = 100) -> list[Session]:
        try:
            return await asyncio.to_thread(self._load_sessions, user_id, limit)
        except OSError as e:
            raise StorageError(f"Failed to list sessions for {user_id}") from e

    async def list_responses(self, session_id: str) -> list[Response]:
        try:
            return await asyncio.to_thread(self._load_responses, session_id)
        except (OSError, ValueError) as e:
            raise StorageError(f"Failed to read responses for session {session_id}") from e

    def save_session(self, session: dict[str, Any], responses: list[dict[str, Any]]) -> Path:
        """Write a session document and its responses atomically."""
        session_id = str(session["_id"])
        path = self.session_path(session_id)
        self.sessions_dir.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w", dir=self.sessions_dir, delete=False, suffix=".tmp", encoding="utf-8"
        ) as tmp:
            json.dump({"session": session, "responses": responses}, tmp, indent=2, default=str)
        os.replace(tmp.name, path)
        return path
