"""Supabase client initialization and query execution."""

from functools import lru_cache
from typing import Any

import httpx
from supabase import Client, PostgrestAPIError, create_client

from habit_lens.core.config import get_settings
from habit_lens.core.errors import PersistenceError, TransportError
from habit_lens.core.logging import get_logger

logger = get_logger(__name__)


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    """
    Get Supabase client instance (cached singleton).

    Returns:
        Supabase client configured with service role key

    Raises:
        RuntimeError: If client initialization fails
    """
    try:
        settings = get_settings()
        client = create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
        return client
    except Exception as e:
        raise RuntimeError(f"Failed to initialize Supabase client: {e}") from e


def execute(query: Any, action: str) -> list[dict[str, Any]]:
    """
    Run a PostgREST query builder and return its rows.

    Args:
        query: Query builder ending just before ``.execute()``
        action: Short description used in logs and error messages

    Returns:
        Returned rows (empty list when none)

    Raises:
        TransportError: If Supabase could not be reached
        PersistenceError: If Supabase rejected the query
    """
    try:
        response = query.execute()
    except httpx.HTTPError as e:
        logger.error(f"Supabase unreachable while trying to {action}: {e}")
        raise TransportError(f"Could not reach the database to {action}") from e
    except PostgrestAPIError as e:
        logger.error(f"Supabase error while trying to {action}: {e}")
        raise PersistenceError(f"Failed to {action}: {e.message}") from e

    return response.data or []
