"""Session data models."""

import math
from datetime import datetime, timezone
from enum import StrEnum
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def coerce_number(value: Any) -> float:
    """Coerce a stored numeric field to float, treating missing or garbage values as 0."""
    if value is None or value == "":
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number):
        return 0.0
    return number


def as_utc(value: datetime | None) -> datetime | None:
    """Make a datetime tz-aware in UTC (naive values are assumed to be UTC)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def coerce_id(value: Any) -> str | None:
    # Mongo ObjectId and similar id types serialize via str()
    if value is None:
        return None
    return str(value)


Number = Annotated[float, BeforeValidator(coerce_number)]
DocumentId = Annotated[str | None, BeforeValidator(coerce_id)]


class CamelModel(BaseModel):
    """Base model reading and writing the camelCase keys used by the storage layer."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class SessionStatus(StrEnum):
    """Session lifecycle states."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class SessionStats(CamelModel):
    """Running totals maintained on a session as chunks are completed."""

    total_chunks: Number = 0
    chunks_completed: Number = 0
    average_accuracy: Number = 0
    average_confidence: Number = 0
    total_time_seconds: Number = 0


class Session(CamelModel):
    """A learning session created from one uploaded text."""

    id: DocumentId = Field(default=None, alias="_id")
    user_id: DocumentId = None
    status: SessionStatus | str = SessionStatus.IN_PROGRESS
    created_at: datetime | None = None
    content_preview: str | None = None
    session_stats: SessionStats | None = None

    @field_validator("created_at")
    @classmethod
    def _normalize_created_at(cls, value: datetime | None) -> datetime | None:
        return as_utc(value)

    @property
    def is_completed(self) -> bool:
        return self.status == SessionStatus.COMPLETED

    @property
    def stats(self) -> SessionStats:
        """Session stats, or zeroed stats when the session never recorded any."""
        return self.session_stats or SessionStats()
