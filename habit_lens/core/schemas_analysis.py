"""Pydantic schemas for analysis sessions and saved analyses."""

from datetime import datetime
from enum import Enum
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field


class SessionState(str, Enum):
    """Analysis session lifecycle states."""

    IDLE = "idle"
    COMPOSING = "composing"
    AWAITING_MODEL = "awaiting_model"
    ANSWERED = "answered"
    FAILED = "failed"


class ChatMessage(BaseModel):
    """A single role-tagged message."""

    role: Literal["system", "user", "assistant"]
    content: str


class AnalysisExchange(BaseModel):
    """A persisted (query, response) pair."""

    id: UUID
    user_id: UUID
    template_id: UUID
    query: str
    response: str
    created_at: datetime


class AnalysisTurn(BaseModel):
    """Outcome of one successful submit."""

    query: str
    response: str
    exchange: AnalysisExchange | None = Field(
        default=None, description="Saved record; None when persisting failed"
    )
    warning: str | None = Field(default=None, description="Non-blocking problem, e.g. save failure")


class AnalysisQuery(BaseModel):
    """Request body for submitting a question."""

    query: str = Field(..., description="Question about the tracked data")


class SessionSnapshot(BaseModel):
    """Serializable view of a live analysis session."""

    template_id: UUID
    state: SessionState
    draft: str | None = None
    messages: list[ChatMessage] = Field(default_factory=list)
    last_error: str | None = None
    last_outcome: SessionState | None = Field(default=None, description="answered or failed")
    has_api_key: bool = True
