"""API endpoints for the template catalog."""

from uuid import UUID

from fastapi import APIRouter, Depends, Path, status

from habit_lens.api.analysis import get_session_registry
from habit_lens.core.analysis_session import AnalysisSessionRegistry
from habit_lens.core.auth_middleware import AuthContext, require_auth
from habit_lens.core.logging import get_logger
from habit_lens.core.schemas_templates import Template, TemplateCreate, TemplateUpdate
from habit_lens.db import templates as templates_db

logger = get_logger(__name__)

router = APIRouter(prefix="/templates")


@router.get("", response_model=list[Template])
def list_templates(auth: AuthContext = Depends(require_auth)) -> list[Template]:
    """List the caller's templates, newest first."""
    return templates_db.list_templates(auth.user_id)


@router.post("", response_model=Template, status_code=status.HTTP_201_CREATED)
def create_template(
    body: TemplateCreate,
    auth: AuthContext = Depends(require_auth),
) -> Template:
    """Create a template with an ordered list of fields."""
    return templates_db.create_template(
        auth.user_id,
        name=body.name,
        fields=body.fields,
        goal=body.goal,
    )


@router.get("/{template_id}", response_model=Template)
def get_template(
    template_id: UUID = Path(..., description="Template UUID"),
    auth: AuthContext = Depends(require_auth),
) -> Template:
    return templates_db.require_template(template_id, auth.user_id)


@router.patch("/{template_id}", response_model=Template)
def update_template(
    body: TemplateUpdate,
    template_id: UUID = Path(..., description="Template UUID"),
    auth: AuthContext = Depends(require_auth),
    registry: AnalysisSessionRegistry = Depends(get_session_registry),
) -> Template:
    """
    Update name, goal or fields. Only attributes present in the body change.
    A live analysis session on this template picks up the new definition.
    """
    changes = body.model_dump(exclude_unset=True)
    if body.fields is not None:
        changes["fields"] = body.fields
    template = templates_db.update_template(template_id, auth.user_id, **changes)

    session = registry.get(auth.user_id, template_id)
    if session is not None:
        session.update_template(template)
    return template


@router.delete("/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_template(
    template_id: UUID = Path(..., description="Template UUID"),
    auth: AuthContext = Depends(require_auth),
    registry: AnalysisSessionRegistry = Depends(get_session_registry),
) -> None:
    """Delete a template, its entries and saved analyses, and its live session."""
    templates_db.delete_template(template_id, auth.user_id)
    if registry.discard(auth.user_id, template_id):
        logger.info(f"Cleared active analysis session for deleted template {template_id}")
