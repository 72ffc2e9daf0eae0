"""Pydantic schemas for tracking templates and their fields."""

from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator


class FieldType(str, Enum):
    """Supported field types."""

    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    SELECT = "select"
    RATING = "rating"


class TemplateField(BaseModel):
    """One typed slot within a template."""

    id: str = Field(default_factory=lambda: str(uuid4()), min_length=1, description="Field id, unique within its template")
    name: str = Field(..., description="Display name")
    type: FieldType = Field(..., description="Declared value type")
    options: list[str] | None = Field(default=None, description="Allowed values (select only)")
    required: bool = Field(default=False, description="Reject empty input when set")


class TemplateBase(BaseModel):
    """Shared template attributes."""

    name: str = Field(..., min_length=1, description="Template name")
    goal: str | None = Field(default=None, description="What the user wants to achieve; steers analysis")
    fields: list[TemplateField] = Field(default_factory=list, description="Ordered field definitions")

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Template name must not be empty")
        return value


class TemplateCreate(TemplateBase):
    """Request body for creating a template."""

    pass


class TemplateUpdate(BaseModel):
    """Partial template update. Only supplied attributes are replaced."""

    name: str | None = Field(default=None, min_length=1)
    goal: str | None = None
    fields: list[TemplateField] | None = None


class Template(TemplateBase):
    """A stored template."""

    id: UUID
    user_id: UUID
    created_at: datetime

    def field_by_id(self, field_id: str) -> TemplateField | None:
        for field in self.fields:
            if field.id == field_id:
                return field
        return None
