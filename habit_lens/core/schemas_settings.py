"""Pydantic schemas for per-user settings."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class OpenAIModel(str, Enum):
    """Models a user can pick for analysis."""

    GPT_4O = "gpt-4o"
    O3_MINI = "o3-mini"
    GPT_4 = "gpt-4"
    GPT_4_TURBO = "gpt-4-turbo-preview"
    GPT_35_TURBO = "gpt-3.5-turbo"


MODEL_DISPLAY_NAMES: dict[OpenAIModel, str] = {
    OpenAIModel.GPT_4O: "GPT-4o",
    OpenAIModel.O3_MINI: "O3-Mini",
    OpenAIModel.GPT_4: "GPT-4",
    OpenAIModel.GPT_4_TURBO: "GPT-4 Turbo",
    OpenAIModel.GPT_35_TURBO: "GPT-3.5 Turbo",
}


class UserSettings(BaseModel):
    """Stored settings row. Holds the user's secret key; never returned as-is."""

    user_id: UUID
    openai_api_key: str = ""
    openai_model: OpenAIModel = OpenAIModel.GPT_4O
    updated_at: datetime | None = None

    @property
    def has_api_key(self) -> bool:
        return bool(self.openai_api_key and self.openai_api_key.strip())


class UserSettingsUpdate(BaseModel):
    """Request body for updating settings."""

    openai_api_key: str | None = Field(default=None, description="OpenAI API key; empty string clears it")
    openai_model: OpenAIModel | None = None


class UserSettingsOut(BaseModel):
    """Settings as exposed to the client."""

    user_id: UUID
    openai_model: OpenAIModel
    has_api_key: bool
    updated_at: datetime | None = None

    @classmethod
    def from_settings(cls, settings: UserSettings) -> "UserSettingsOut":
        return cls(
            user_id=settings.user_id,
            openai_model=settings.openai_model,
            has_api_key=settings.has_api_key,
            updated_at=settings.updated_at,
        )


class ModelOption(BaseModel):
    id: OpenAIModel
    name: str
