"""API endpoints for analysis sessions and saved analyses."""

from uuid import UUID

from fastapi import APIRouter, Depends, Path, Request, status

from habit_lens.core.analysis_session import AnalysisSession, AnalysisSessionRegistry
from habit_lens.core.auth_middleware import AuthContext, require_auth
from habit_lens.core.errors import NotFound
from habit_lens.core.logging import get_logger
from habit_lens.core.schemas_analysis import (
    AnalysisExchange,
    AnalysisQuery,
    AnalysisTurn,
    SessionSnapshot,
)
from habit_lens.db import analyses as analyses_db
from habit_lens.db import templates as templates_db
from habit_lens.db import user_settings as settings_db

logger = get_logger(__name__)

router = APIRouter()


def get_session_registry(request: Request) -> AnalysisSessionRegistry:
    """Registry of live sessions, created with the application."""
    return request.app.state.analysis_sessions


def _activate(registry: AnalysisSessionRegistry, user_id: UUID, template_id: UUID) -> AnalysisSession:
    template = templates_db.require_template(template_id, user_id)
    settings = settings_db.get_or_create_user_settings(user_id)
    return registry.activate(user_id, template, settings)


def _require_session(registry: AnalysisSessionRegistry, user_id: UUID, template_id: UUID) -> AnalysisSession:
    session = registry.get(user_id, template_id)
    if session is None:
        raise NotFound(f"No active analysis session for template {template_id}")
    return session


@router.post("/templates/{template_id}/analysis/session", response_model=SessionSnapshot)
def activate_session(
    template_id: UUID = Path(..., description="Template UUID"),
    auth: AuthContext = Depends(require_auth),
    registry: AnalysisSessionRegistry = Depends(get_session_registry),
) -> SessionSnapshot:
    """Make this template the active one, replacing any other session."""
    return _activate(registry, auth.user_id, template_id).snapshot()


@router.get("/templates/{template_id}/analysis/session", response_model=SessionSnapshot)
def get_session(
    template_id: UUID = Path(..., description="Template UUID"),
    auth: AuthContext = Depends(require_auth),
    registry: AnalysisSessionRegistry = Depends(get_session_registry),
) -> SessionSnapshot:
    return _require_session(registry, auth.user_id, template_id).snapshot()


@router.delete("/templates/{template_id}/analysis/session", status_code=status.HTTP_204_NO_CONTENT)
def close_session(
    template_id: UUID = Path(..., description="Template UUID"),
    auth: AuthContext = Depends(require_auth),
    registry: AnalysisSessionRegistry = Depends(get_session_registry),
) -> None:
    registry.discard(auth.user_id, template_id)


@router.put("/templates/{template_id}/analysis/draft", response_model=SessionSnapshot)
def compose_query(
    body: AnalysisQuery,
    template_id: UUID = Path(..., description="Template UUID"),
    auth: AuthContext = Depends(require_auth),
    registry: AnalysisSessionRegistry = Depends(get_session_registry),
) -> SessionSnapshot:
    """Store the question being typed without sending it."""
    session = _require_session(registry, auth.user_id, template_id)
    session.compose(body.query)
    return session.snapshot()


@router.post("/templates/{template_id}/analysis/query", response_model=AnalysisTurn)
async def submit_query(
    body: AnalysisQuery,
    template_id: UUID = Path(..., description="Template UUID"),
    auth: AuthContext = Depends(require_auth),
    registry: AnalysisSessionRegistry = Depends(get_session_registry),
) -> AnalysisTurn:
    """
    Ask a question about the template's data.

    Activates the template's session when none is live. While a question is
    being answered, further submits on the same session are rejected (409).
    """
    session = registry.get(auth.user_id, template_id)
    if session is None:
        session = _activate(registry, auth.user_id, template_id)

    turn = await session.submit(body.query)
    if turn.warning:
        logger.warning(f"Analysis answered but not saved for template {template_id}")
    return turn


@router.get("/templates/{template_id}/analyses", response_model=list[AnalysisExchange])
def list_analyses(
    template_id: UUID = Path(..., description="Template UUID"),
    auth: AuthContext = Depends(require_auth),
) -> list[AnalysisExchange]:
    """Saved analyses for a template, newest first."""
    return analyses_db.list_analyses(template_id, auth.user_id)


@router.post("/analyses/{analysis_id}/load", response_model=SessionSnapshot)
def load_analysis(
    analysis_id: UUID = Path(..., description="Analysis UUID"),
    auth: AuthContext = Depends(require_auth),
    registry: AnalysisSessionRegistry = Depends(get_session_registry),
) -> SessionSnapshot:
    """Replace the live conversation with a saved query and response."""
    exchange = analyses_db.get_analysis(analysis_id, auth.user_id)
    if exchange is None:
        raise NotFound(f"Analysis {analysis_id} not found")

    session = registry.get(auth.user_id, exchange.template_id)
    if session is None:
        session = _activate(registry, auth.user_id, exchange.template_id)
    session.load_exchange(exchange)
    return session.snapshot()


@router.delete("/analyses/{analysis_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_analysis(
    analysis_id: UUID = Path(..., description="Analysis UUID"),
    auth: AuthContext = Depends(require_auth),
) -> None:
    """Delete a saved analysis. Messages already shown in a session stay."""
    analyses_db.delete_analysis(analysis_id, auth.user_id)
