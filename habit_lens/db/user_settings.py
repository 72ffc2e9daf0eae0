"""Read/write per-user settings (OpenAI key and model choice)."""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from habit_lens.core.config import get_settings
from habit_lens.core.errors import PersistenceError
from habit_lens.core.logging import get_logger
from habit_lens.core.schemas_settings import OpenAIModel, UserSettings
from habit_lens.db.supabase_client import execute, get_supabase

logger = get_logger(__name__)

TABLE = "user_settings"


def _default_model() -> OpenAIModel:
    configured = get_settings().DEFAULT_OPENAI_MODEL
    try:
        return OpenAIModel(configured)
    except ValueError:
        logger.warning(f"DEFAULT_OPENAI_MODEL {configured!r} is not selectable, using gpt-4o")
        return OpenAIModel.GPT_4O


def _from_row(row: dict[str, Any]) -> UserSettings:
    return UserSettings(
        user_id=row["user_id"],
        openai_api_key=row.get("openai_api_key") or "",
        openai_model=row.get("openai_model") or _default_model(),
        updated_at=row.get("updated_at"),
    )


def get_user_settings(user_id: UUID) -> UserSettings | None:
    """Get a user's settings row, or None if it was never created."""
    supabase = get_supabase()
    rows = execute(
        supabase.table(TABLE).select("*").eq("user_id", str(user_id)).limit(1),
        "load settings",
    )
    if not rows:
        return None
    return _from_row(rows[0])


def get_or_create_user_settings(user_id: UUID) -> UserSettings:
    """
    Get a user's settings, creating the default row on first access.

    Defaults are an empty API key and the configured default model. A row
    written concurrently by another request is never overwritten.
    """
    settings = get_user_settings(user_id)
    if settings is not None:
        return settings

    supabase = get_supabase()
    data = {
        "user_id": str(user_id),
        "openai_api_key": "",
        "openai_model": _default_model().value,
    }
    rows = execute(
        supabase.table(TABLE).upsert(data, on_conflict="user_id", ignore_duplicates=True),
        "create settings",
    )
    if rows:
        logger.info(f"Created default settings for user {user_id}")
        return _from_row(rows[0])

    # Lost the race; the other request's row wins.
    settings = get_user_settings(user_id)
    if settings is None:
        raise PersistenceError("Failed to create settings")
    return settings


def upsert_user_settings(
    user_id: UUID,
    openai_api_key: str | None = None,
    openai_model: OpenAIModel | None = None,
) -> UserSettings:
    """
    Upsert settings keyed by user id. Attributes left as None keep their
    current value.
    """
    current = get_or_create_user_settings(user_id)

    data = {
        "user_id": str(user_id),
        "openai_api_key": current.openai_api_key if openai_api_key is None else openai_api_key.strip(),
        "openai_model": (openai_model or current.openai_model).value,
        "updated_at": datetime.now(UTC).isoformat(),
    }

    supabase = get_supabase()
    rows = execute(
        supabase.table(TABLE).upsert(data, on_conflict="user_id"),
        "save settings",
    )
    if not rows:
        raise PersistenceError("Failed to save settings")

    logger.info(f"Updated settings for user {user_id} (model={data['openai_model']})")
    return _from_row(rows[0])
