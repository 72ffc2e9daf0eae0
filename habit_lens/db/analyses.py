"""Database access layer for saved analyses (query/response pairs)."""

from uuid import UUID

from habit_lens.core.errors import NotFound, PersistenceError
from habit_lens.core.logging import get_logger
from habit_lens.core.schemas_analysis import AnalysisExchange
from habit_lens.db.supabase_client import execute, get_supabase

logger = get_logger(__name__)

TABLE = "analyses"


def create_analysis(user_id: UUID, template_id: UUID, query: str, response: str) -> AnalysisExchange:
    """Persist a completed exchange. Records are never updated afterwards."""
    supabase = get_supabase()
    data = {
        "user_id": str(user_id),
        "template_id": str(template_id),
        "query": query,
        "response": response,
    }
    rows = execute(supabase.table(TABLE).insert(data), "save analysis")
    if not rows:
        raise PersistenceError("Failed to save analysis")

    exchange = AnalysisExchange(**rows[0])
    logger.info(f"Saved analysis {exchange.id} for template {template_id}")
    return exchange


def list_analyses(template_id: UUID, user_id: UUID) -> list[AnalysisExchange]:
    """List saved analyses for a template, newest first."""
    supabase = get_supabase()
    rows = execute(
        supabase.table(TABLE)
        .select("*")
        .eq("template_id", str(template_id))
        .eq("user_id", str(user_id))
        .order("created_at", desc=True),
        "list analyses",
    )
    return [AnalysisExchange(**row) for row in rows if str(row.get("user_id")) == str(user_id)]


def get_analysis(analysis_id: UUID, user_id: UUID) -> AnalysisExchange | None:
    supabase = get_supabase()
    rows = execute(
        supabase.table(TABLE)
        .select("*")
        .eq("id", str(analysis_id))
        .eq("user_id", str(user_id))
        .limit(1),
        "load analysis",
    )
    if not rows or str(rows[0].get("user_id")) != str(user_id):
        return None
    return AnalysisExchange(**rows[0])


def delete_analysis(analysis_id: UUID, user_id: UUID) -> None:
    """Delete a saved analysis. Entries and templates are untouched."""
    supabase = get_supabase()
    rows = execute(
        supabase.table(TABLE)
        .delete()
        .eq("id", str(analysis_id))
        .eq("user_id", str(user_id)),
        "delete analysis",
    )
    if not rows:
        raise NotFound(f"Analysis {analysis_id} not found")
    logger.info(f"Deleted analysis {analysis_id}")
