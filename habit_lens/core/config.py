"""Configuration management for Habit Lens."""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file (only if accessible)
try:
    load_dotenv()
except (PermissionError, OSError):
    # In sandboxed environments, .env might not be accessible
    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Supabase configuration (required)
    SUPABASE_URL: str = Field(..., description="Supabase project URL")
    SUPABASE_SERVICE_ROLE_KEY: str = Field(..., description="Supabase service role key")

    # Environment
    HABIT_LENS_ENV: str = Field(default="dev", description="Environment: dev, staging, prod")

    # Analysis configuration. Users supply their own OpenAI key via user_settings.
    DEFAULT_OPENAI_MODEL: str = Field(
        default="gpt-4o", description="Model assigned to newly created user settings"
    )
    LLM_TIMEOUT_SECONDS: float = Field(
        default=60.0, gt=0, description="Timeout for a single analysis completion call"
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance

    Raises:
        ValidationError: If required environment variables are missing
    """
    return Settings()
