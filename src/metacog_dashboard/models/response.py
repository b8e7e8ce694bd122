"""Per-chunk learner response models."""

from datetime import datetime
from enum import StrEnum
from typing import Annotated, Any

from pydantic import AliasChoices, BeforeValidator, Field, field_validator

from metacog_dashboard.models.session import CamelModel, DocumentId, Number, as_utc


class GoalOutcome(StrEnum):
    """Self-reported outcome of a goal in the Evaluate phase."""

    YES = "yes"
    PARTIAL = "partial"
    NO = "no"


def _coerce_flag(value: Any) -> bool | None:
    # Only real booleans count; anything else means "not rated"
    if isinstance(value, bool):
        return value
    return None


Flag = Annotated[bool | None, BeforeValidator(_coerce_flag)]


class Response(CamelModel):
    """A learner's answer to one chunk, with its LLM grade and reflection fields."""

    id: DocumentId = Field(default=None, alias="_id")
    session_id: DocumentId = None
    chunk_id: DocumentId = None
    accuracy: Number = 0
    confidence: Number = 0
    strategy: str | None = None
    goal: str | None = None
    strategy_helpful: Flag = None
    goal_achieved: bool | str | None = None
    next_time_adjustment: str | None = None
    muddy_point: str | None = None
    time_spent: Number = Field(
        default=0,
        validation_alias=AliasChoices("timeSpent", "timeSpentSeconds", "time_spent"),
        serialization_alias="timeSpent",
    )
    created_at: datetime | None = None

    @field_validator("created_at")
    @classmethod
    def _normalize_created_at(cls, value: datetime | None) -> datetime | None:
        return as_utc(value)

    @property
    def calibration_error(self) -> float:
        """Absolute gap between self-reported confidence and graded accuracy."""
        return abs(self.confidence - self.accuracy)

    @property
    def goal_outcome(self) -> bool | None:
        """Tri-state goal result: True achieved, False missed, None partial or unrated."""
        if isinstance(self.goal_achieved, bool):
            return self.goal_achieved
        if self.goal_achieved is None:
            return None
        value = self.goal_achieved.strip().lower()
        if value == GoalOutcome.YES:
            return True
        if value == GoalOutcome.NO:
            return False
        return None
