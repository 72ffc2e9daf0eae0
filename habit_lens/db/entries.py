"""Database access layer for tracking entries."""

from datetime import date
from typing import Any
from uuid import UUID

from habit_lens.core.errors import NotFound, PersistenceError
from habit_lens.core.field_codec import validate_values
from habit_lens.core.logging import get_logger
from habit_lens.core.schemas_entries import Entry
from habit_lens.core.schemas_templates import Template
from habit_lens.db import templates as templates_db
from habit_lens.db.supabase_client import execute, get_supabase

logger = get_logger(__name__)

TABLE = "entries"


def list_entries_by_template(template_id: UUID, user_id: UUID) -> list[Entry]:
    """List entries for a template, latest date first."""
    supabase = get_supabase()
    rows = execute(
        supabase.table(TABLE)
        .select("*")
        .eq("template_id", str(template_id))
        .eq("user_id", str(user_id))
        .order("date", desc=True)
        .order("created_at", desc=True),
        "list entries",
    )
    return [Entry(**row) for row in rows if str(row.get("user_id")) == str(user_id)]


def get_entry(entry_id: UUID, user_id: UUID) -> Entry | None:
    """Get an entry by id, or None if it does not exist for this user."""
    supabase = get_supabase()
    rows = execute(
        supabase.table(TABLE)
        .select("*")
        .eq("id", str(entry_id))
        .eq("user_id", str(user_id))
        .limit(1),
        "load entry",
    )
    if not rows or str(rows[0].get("user_id")) != str(user_id):
        return None
    return Entry(**rows[0])


def create_entry(
    user_id: UUID,
    template: Template,
    entry_date: date,
    values: dict[str, Any],
) -> Entry:
    """
    Log an entry against a template.

    Args:
        user_id: Owning user
        template: Template the entry conforms to
        entry_date: Calendar date of the entry
        values: Raw values keyed by field id

    Returns:
        Created entry

    Raises:
        ValidationError: If a value violates its field (checked before any write)
    """
    normalised = validate_values(template.fields, values)

    supabase = get_supabase()
    data = {
        "user_id": str(user_id),
        "template_id": str(template.id),
        "date": entry_date.isoformat(),
        "values": normalised,
    }
    rows = execute(supabase.table(TABLE).insert(data), "create entry")
    if not rows:
        raise PersistenceError("Failed to create entry")

    entry = Entry(**rows[0])
    logger.info(f"Created entry {entry.id} for template {template.id} on {entry_date}")
    return entry


def update_entry(
    entry_id: UUID,
    user_id: UUID,
    values: dict[str, Any] | None = None,
    entry_date: date | None = None,
) -> Entry:
    """
    Update an entry. Supplied values are merged over the stored ones and the
    merged mapping is validated against the owning template.

    Raises:
        NotFound: If the entry or its template does not belong to the user
        ValidationError: If the merged values are invalid
    """
    existing = get_entry(entry_id, user_id)
    if existing is None:
        raise NotFound(f"Entry {entry_id} not found")

    update_data: dict[str, Any] = {}
    if values is not None:
        template = templates_db.require_template(existing.template_id, user_id)
        merged = {**existing.values, **values}
        update_data["values"] = validate_values(template.fields, merged)
    if entry_date is not None:
        update_data["date"] = entry_date.isoformat()

    if not update_data:
        return existing

    supabase = get_supabase()
    rows = execute(
        supabase.table(TABLE)
        .update(update_data)
        .eq("id", str(entry_id))
        .eq("user_id", str(user_id)),
        "update entry",
    )
    if not rows:
        raise NotFound(f"Entry {entry_id} not found")

    logger.info(f"Updated entry {entry_id}: {list(update_data.keys())}")
    return Entry(**rows[0])


def delete_entry(entry_id: UUID, user_id: UUID) -> None:
    """Delete an entry owned by the user."""
    supabase = get_supabase()
    rows = execute(
        supabase.table(TABLE)
        .delete()
        .eq("id", str(entry_id))
        .eq("user_id", str(user_id)),
        "delete entry",
    )
    if not rows:
        raise NotFound(f"Entry {entry_id} not found")
    logger.info(f"Deleted entry {entry_id}")
