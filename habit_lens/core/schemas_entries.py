"""Pydantic schemas for tracking entries."""

import datetime as dt
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class EntryCreate(BaseModel):
    """Request body for logging an entry."""

    date: dt.date = Field(..., description="Calendar date the entry is for")
    values: dict[str, Any] = Field(default_factory=dict, description="Raw values keyed by field id")


class EntryUpdate(BaseModel):
    """Partial entry update. Values are merged over the stored mapping."""

    date: dt.date | None = None
    values: dict[str, Any] | None = None


class Entry(BaseModel):
    """A stored entry."""

    id: UUID
    user_id: UUID
    template_id: UUID
    date: dt.date
    values: dict[str, Any] = Field(default_factory=dict)
    created_at: dt.datetime


class RenderedValue(BaseModel):
    """Human-readable form of one stored value."""

    field_id: str
    field: str
    value: Any


class EntryOut(Entry):
    """Entry as returned by the API, with its values rendered."""

    rendered: list[RenderedValue] = Field(default_factory=list)
