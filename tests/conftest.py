"""Pytest configuration and fixtures."""

import os
from unittest.mock import patch

import pytest

# Set before application modules are imported so module-level loggers see them
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-key")
os.environ.setdefault("HABIT_LENS_ENV", "test")

from tests.fakes.fake_db import FakeSupabase  # noqa: E402

DB_MODULES = ["templates", "entries", "analyses", "user_settings"]


@pytest.fixture(scope="session", autouse=True)
def setup_test_env():
    """Set up test environment variables."""
    os.environ["SUPABASE_URL"] = "https://test.supabase.co"
    os.environ["SUPABASE_SERVICE_ROLE_KEY"] = "test-key"
    os.environ["HABIT_LENS_ENV"] = "test"


@pytest.fixture
def fake_supabase():
    """In-memory Supabase client patched into every data-layer module."""
    fake = FakeSupabase()
    patchers = [patch(f"habit_lens.db.{name}.get_supabase", return_value=fake) for name in DB_MODULES]
    for patcher in patchers:
        patcher.start()
    yield fake
    for patcher in patchers:
        patcher.stop()
