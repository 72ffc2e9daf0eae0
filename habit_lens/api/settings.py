"""API endpoints for per-user settings."""

from fastapi import APIRouter, Depends

from habit_lens.api.analysis import get_session_registry
from habit_lens.core.analysis_session import AnalysisSessionRegistry
from habit_lens.core.auth_middleware import AuthContext, require_auth
from habit_lens.core.schemas_settings import (
    MODEL_DISPLAY_NAMES,
    ModelOption,
    UserSettingsOut,
    UserSettingsUpdate,
)
from habit_lens.db import user_settings as settings_db

router = APIRouter(prefix="/settings")


@router.get("", response_model=UserSettingsOut)
def get_settings(auth: AuthContext = Depends(require_auth)) -> UserSettingsOut:
    """Get the caller's settings, creating defaults on first access."""
    return UserSettingsOut.from_settings(settings_db.get_or_create_user_settings(auth.user_id))


@router.put("", response_model=UserSettingsOut)
def update_settings(
    body: UserSettingsUpdate,
    auth: AuthContext = Depends(require_auth),
    registry: AnalysisSessionRegistry = Depends(get_session_registry),
) -> UserSettingsOut:
    """Save API key and/or model. The live analysis session uses them immediately."""
    settings = settings_db.upsert_user_settings(
        auth.user_id,
        openai_api_key=body.openai_api_key,
        openai_model=body.openai_model,
    )
    registry.refresh_settings(auth.user_id, settings)
    return UserSettingsOut.from_settings(settings)


@router.get("/models", response_model=list[ModelOption])
def list_models() -> list[ModelOption]:
    return [ModelOption(id=model, name=name) for model, name in MODEL_DISPLAY_NAMES.items()]
