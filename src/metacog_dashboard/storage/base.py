"""Storage interface the dashboard reads sessions and responses through."""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any

import structlog
from pydantic import ValidationError

from metacog_dashboard.models.response import Response
from metacog_dashboard.models.session import Session

logger = structlog.get_logger()


class StorageError(Exception):
    """A storage backend could not serve a read."""


class SessionRepository(ABC):
    @abstractmethod
    async def list_sessions(self, user_id: str, limit: int = 100) -> list[Session]:
        """Sessions owned by a user, newest first."""

    @abstractmethod
    async def list_responses(self, session_id: str) -> list[Response]:
        """Responses recorded for a session, oldest first."""

    def close(self) -> None:
        """Release connections held by the backend."""


def _document_id(doc: Any) -> str | None:
    if isinstance(doc, dict):
        return str(doc.get("_id"))
    return None


def parse_sessions(documents: Iterable[Any]) -> list[Session]:
    """Validate raw session documents, skipping ones that cannot be read at all."""
    sessions = []
    for doc in documents:
        try:
            sessions.append(Session.model_validate(doc))
        except ValidationError as e:
            logger.warning("session_document_invalid", session_id=_document_id(doc), error=str(e))
    return sessions


def parse_responses(documents: Iterable[Any]) -> list[Response]:
    """Validate raw response documents, skipping ones that cannot be read at all."""
    responses = []
    for doc in documents:
        try:
            responses.append(Response.model_validate(doc))
        except ValidationError as e:
            logger.warning(
                "response_document_invalid", response_id=_document_id(doc), error=str(e)
            )
    return responses
