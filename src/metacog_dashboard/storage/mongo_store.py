"""MongoDB-backed session repository."""

import asyncio
import re

import structlog
from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.errors import PyMongoError

from metacog_dashboard.models.response import Response
from metacog_dashboard.models.session import Session
from metacog_dashboard.storage.base import (
    SessionRepository,
    StorageError,
    parse_responses,
    parse_sessions,
)

logger = structlog.get_logger()


def _sanitize_mongo_error(raw: str) -> str:
    if not raw:
        return raw
    # Hide credentials embedded in connection URLs.
    return re.sub(r"(mongodb(?:\+srv)?://)([^/@\s]+)@", r"\1***:***@", raw)


def _session_key(session_id: str) -> ObjectId | str:
    """Responses reference their session by ObjectId when the id is one."""
    try:
        return ObjectId(session_id)
    except (InvalidId, TypeError):
        return session_id


class MongoSessionStore(SessionRepository):
    """Reads the ``sessions`` and ``responses`` collections.

    pymongo is synchronous, so each query runs in a worker thread.

    Args:
        mongodb_url: Connection URL.
        db_name: Database name.
        client: Optional pre-built client (used by tests).
    """

    def __init__(self, mongodb_url: str, db_name: str, client: MongoClient | None = None):
        self._client = client or MongoClient(mongodb_url, serverSelectionTimeoutMS=5000)
        self._db = self._client[db_name]
        self._sessions = self._db["sessions"]
        self._responses = self._db["responses"]

    def _find_sessions(self, user_id: str, limit: int) -> list[Session]:
        cursor = (
            self._sessions.find({"userId": user_id})
            .sort("createdAt", DESCENDING)
            .limit(limit)
        )
        return parse_sessions(list(cursor))

    def _find_responses(self, session_id: str) -> list[Response]:
        cursor = self._responses.find({"sessionId": _session_key(session_id)}).sort(
            "createdAt", ASCENDING
        )
        return parse_responses(list(cursor))

    async def list_sessions(self, user_id: str, limit: int = 100) -> list[Session]:
        try:
            return await asyncio.to_thread(self._find_sessions, user_id, limit)
        except PyMongoError as e:
            detail = _sanitize_mongo_error(str(e))
            logger.error("mongo_list_sessions_failed", user_id=user_id, error=detail)
            raise StorageError(detail) from e

    async def list_responses(self, session_id: str) -> list[Response]:
        try:
            return await asyncio.to_thread(self._find_responses, session_id)
        except PyMongoError as e:
            raise StorageError(_sanitize_mongo_error(str(e))) from e

    def close(self) -> None:
        self._client.close()
