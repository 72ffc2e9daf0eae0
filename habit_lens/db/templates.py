"""Database access layer for tracking templates.

Every query is scoped by ``user_id`` in addition to the row-level security
policies on the table; the policies remain the enforcement boundary.
"""

from typing import Any
from uuid import UUID

from habit_lens.core.errors import NotFound, PersistenceError, ValidationError
from habit_lens.core.logging import get_logger
from habit_lens.core.schemas_templates import Template, TemplateField
from habit_lens.db.supabase_client import execute, get_supabase

logger = get_logger(__name__)

TABLE = "templates"


def _check_fields(fields: list[TemplateField]) -> None:
    seen: set[str] = set()
    for field in fields:
        if field.id in seen:
            raise ValidationError(f"Duplicate field id: {field.id}", field_id=field.id)
        seen.add(field.id)


def _dump_fields(fields: list[TemplateField]) -> list[dict[str, Any]]:
    return [field.model_dump(mode="json") for field in fields]


def _owned(row: dict[str, Any], user_id: UUID) -> bool:
    return str(row.get("user_id")) == str(user_id)


def list_templates(user_id: UUID) -> list[Template]:
    """List a user's templates, newest first."""
    supabase = get_supabase()
    rows = execute(
        supabase.table(TABLE)
        .select("*")
        .eq("user_id", str(user_id))
        .order("created_at", desc=True),
        "list templates",
    )
    return [Template(**row) for row in rows if _owned(row, user_id)]


def get_template(template_id: UUID, user_id: UUID) -> Template | None:
    """Get a template by id, or None if it does not exist for this user."""
    supabase = get_supabase()
    rows = execute(
        supabase.table(TABLE)
        .select("*")
        .eq("id", str(template_id))
        .eq("user_id", str(user_id))
        .limit(1),
        "load template",
    )
    if not rows or not _owned(rows[0], user_id):
        return None
    return Template(**rows[0])


def require_template(template_id: UUID, user_id: UUID) -> Template:
    """Like get_template, but raises NotFound."""
    template = get_template(template_id, user_id)
    if template is None:
        raise NotFound(f"Template {template_id} not found")
    return template


def create_template(
    user_id: UUID,
    name: str,
    fields: list[TemplateField],
    goal: str | None = None,
) -> Template:
    """
    Create a template.

    Args:
        user_id: Owning user
        name: Non-empty template name
        fields: Ordered field definitions (may be empty)
        goal: Optional goal text

    Returns:
        Created template with server-assigned id and created_at
    """
    if not name or not name.strip():
        raise ValidationError("Template name must not be empty")
    _check_fields(fields)

    supabase = get_supabase()
    data = {
        "user_id": str(user_id),
        "name": name,
        "goal": goal,
        "fields": _dump_fields(fields),
    }
    rows = execute(supabase.table(TABLE).insert(data), "create template")
    if not rows:
        raise PersistenceError("Failed to create template")

    template = Template(**rows[0])
    logger.info(f"Created template {template.id} ({len(fields)} fields) for user {user_id}")
    return template


def update_template(template_id: UUID, user_id: UUID, **changes: Any) -> Template:
    """
    Update a template. Only supplied attributes (name, goal, fields) change.

    Raises:
        NotFound: If the template does not belong to the user
        ValidationError: If the new name is blank or field ids collide
    """
    existing = require_template(template_id, user_id)

    update_data: dict[str, Any] = {}
    if "name" in changes and changes["name"] is not None:
        if not changes["name"].strip():
            raise ValidationError("Template name must not be empty")
        update_data["name"] = changes["name"]
    if "goal" in changes:
        update_data["goal"] = changes["goal"]
    if "fields" in changes and changes["fields"] is not None:
        fields: list[TemplateField] = changes["fields"]
        _check_fields(fields)
        _warn_on_type_changes(existing, fields)
        update_data["fields"] = _dump_fields(fields)

    if not update_data:
        return existing

    supabase = get_supabase()
    rows = execute(
        supabase.table(TABLE)
        .update(update_data)
        .eq("id", str(template_id))
        .eq("user_id", str(user_id)),
        "update template",
    )
    if not rows:
        raise NotFound(f"Template {template_id} not found")

    logger.info(f"Updated template {template_id}: {list(update_data.keys())}")
    return Template(**rows[0])


def _warn_on_type_changes(existing: Template, fields: list[TemplateField]) -> None:
    # Stored entries keep their old shape; rendering will read them with the new type.
    for field in fields:
        previous = existing.field_by_id(field.id)
        if previous is not None and previous.type != field.type:
            logger.warning(
                f"Field {field.id} of template {existing.id} changed type "
                f"{previous.type.value} -> {field.type.value}; historical values are not migrated"
            )


def delete_template(template_id: UUID, user_id: UUID) -> None:
    """
    Delete a template together with its entries and saved analyses.

    The schema declares ON DELETE CASCADE as well; the explicit deletes keep
    the behaviour identical against databases created without it.
    """
    require_template(template_id, user_id)

    supabase = get_supabase()
    for child_table in ("analyses", "entries"):
        execute(
            supabase.table(child_table)
            .delete()
            .eq("template_id", str(template_id))
            .eq("user_id", str(user_id)),
            f"delete {child_table} of template",
        )
    execute(
        supabase.table(TABLE)
        .delete()
        .eq("id", str(template_id))
        .eq("user_id", str(user_id)),
        "delete template",
    )
    logger.info(f"Deleted template {template_id} with its entries and analyses")
