"""API endpoints for tracking entries."""

from uuid import UUID

from fastapi import APIRouter, Depends, Path, status

from habit_lens.core.auth_middleware import AuthContext, require_auth
from habit_lens.core.field_codec import render_values
from habit_lens.core.schemas_entries import Entry, EntryCreate, EntryOut, EntryUpdate, RenderedValue
from habit_lens.core.schemas_templates import Template
from habit_lens.db import entries as entries_db
from habit_lens.db import templates as templates_db

router = APIRouter()


def _with_rendering(template: Template, entry: Entry) -> EntryOut:
    rendered = [RenderedValue(**item) for item in render_values(template.fields, entry.values)]
    return EntryOut(**entry.model_dump(), rendered=rendered)


@router.get("/templates/{template_id}/entries", response_model=list[EntryOut])
def list_entries(
    template_id: UUID = Path(..., description="Template UUID"),
    auth: AuthContext = Depends(require_auth),
) -> list[EntryOut]:
    """List a template's entries, latest date first, with rendered values."""
    template = templates_db.require_template(template_id, auth.user_id)
    entries = entries_db.list_entries_by_template(template_id, auth.user_id)
    return [_with_rendering(template, entry) for entry in entries]


@router.post(
    "/templates/{template_id}/entries",
    response_model=EntryOut,
    status_code=status.HTTP_201_CREATED,
)
def create_entry(
    body: EntryCreate,
    template_id: UUID = Path(..., description="Template UUID"),
    auth: AuthContext = Depends(require_auth),
) -> EntryOut:
    """Log an entry. Values are validated against the template's fields."""
    template = templates_db.require_template(template_id, auth.user_id)
    entry = entries_db.create_entry(auth.user_id, template, body.date, body.values)
    return _with_rendering(template, entry)


@router.patch("/entries/{entry_id}", response_model=EntryOut)
def update_entry(
    body: EntryUpdate,
    entry_id: UUID = Path(..., description="Entry UUID"),
    auth: AuthContext = Depends(require_auth),
) -> EntryOut:
    """Change an entry's date and/or merge new values into it."""
    entry = entries_db.update_entry(entry_id, auth.user_id, values=body.values, entry_date=body.date)
    template = templates_db.require_template(entry.template_id, auth.user_id)
    return _with_rendering(template, entry)


@router.delete("/entries/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_entry(
    entry_id: UUID = Path(..., description="Entry UUID"),
    auth: AuthContext = Depends(require_auth),
) -> None:
    entries_db.delete_entry(entry_id, auth.user_id)
