"""Tests for template database operations with mocked Supabase."""

from unittest.mock import MagicMock, patch
from uuid import uuid4

import httpx
import pytest
from supabase import PostgrestAPIError

from habit_lens.core.errors import NotFound, PersistenceError, TransportError, ValidationError
from habit_lens.core.schemas_templates import FieldType, TemplateField
from habit_lens.db.templates import (
    create_template,
    delete_template,
    get_template,
    list_templates,
    update_template,
)

USER_ID = uuid4()


def _template_row(**overrides):
    row = {
        "id": str(uuid4()),
        "user_id": str(USER_ID),
        "name": "Sleep",
        "goal": None,
        "fields": [{"id": "quality", "name": "Quality", "type": "rating", "required": True}],
        "created_at": "2024-01-01T00:00:00+00:00",
    }
    row.update(overrides)
    return row


def _chain(rows):
    """Query builder mock whose chained calls all return itself."""
    chain = MagicMock()
    chain.execute.return_value = MagicMock(data=rows)
    for method in ("select", "insert", "update", "delete", "eq", "order", "limit"):
        getattr(chain, method).return_value = chain
    return chain


@pytest.fixture
def mock_supabase():
    """Mock Supabase client."""
    with patch("habit_lens.db.templates.get_supabase") as mock:
        yield mock.return_value


class TestListTemplates:
    def test_newest_first_and_scoped_to_user(self, mock_supabase):
        chain = _chain([_template_row(name="B"), _template_row(name="A")])
        mock_supabase.table.return_value = chain

        templates = list_templates(USER_ID)

        assert [t.name for t in templates] == ["B", "A"]
        mock_supabase.table.assert_called_once_with("templates")
        chain.eq.assert_called_once_with("user_id", str(USER_ID))
        chain.order.assert_called_once_with("created_at", desc=True)

    def test_drops_rows_owned_by_someone_else(self, mock_supabase):
        mock_supabase.table.return_value = _chain([_template_row(user_id=str(uuid4()))])

        assert list_templates(USER_ID) == []

    def test_connectivity_failure_raises_transport_error(self, mock_supabase):
        chain = _chain([])
        chain.execute.side_effect = httpx.ConnectError("connection refused")
        mock_supabase.table.return_value = chain

        with pytest.raises(TransportError):
            list_templates(USER_ID)

    def test_api_error_raises_persistence_error(self, mock_supabase):
        chain = _chain([])
        chain.execute.side_effect = PostgrestAPIError({"message": "permission denied", "code": "42501"})
        mock_supabase.table.return_value = chain

        with pytest.raises(PersistenceError):
            list_templates(USER_ID)


class TestCreateTemplate:
    def test_create_with_fields(self, mock_supabase):
        row = _template_row()
        chain = _chain([row])
        mock_supabase.table.return_value = chain
        fields = [TemplateField(id="quality", name="Quality", type=FieldType.RATING, required=True)]

        template = create_template(USER_ID, "Sleep", fields)

        assert str(template.id) == row["id"]
        inserted = chain.insert.call_args[0][0]
        assert inserted["user_id"] == str(USER_ID)
        assert inserted["fields"][0]["type"] == "rating"

    def test_empty_field_list_is_allowed(self, mock_supabase):
        mock_supabase.table.return_value = _chain([_template_row(fields=[])])

        template = create_template(USER_ID, "Empty", [])

        assert template.fields == []

    def test_blank_name_rejected_before_write(self, mock_supabase):
        with pytest.raises(ValidationError):
            create_template(USER_ID, "   ", [])
        mock_supabase.table.assert_not_called()

    def test_duplicate_field_ids_rejected(self, mock_supabase):
        fields = [
            TemplateField(id="a", name="One", type=FieldType.TEXT),
            TemplateField(id="a", name="Two", type=FieldType.NUMBER),
        ]
        with pytest.raises(ValidationError):
            create_template(USER_ID, "Dupes", fields)
        mock_supabase.table.assert_not_called()

    def test_empty_insert_response_raises(self, mock_supabase):
        mock_supabase.table.return_value = _chain([])

        with pytest.raises(PersistenceError):
            create_template(USER_ID, "Sleep", [])


class TestUpdateTemplate:
    def test_replaces_only_supplied_attributes(self, mock_supabase):
        existing = _template_row()
        chain = _chain([existing])
        chain.execute.side_effect = [
            MagicMock(data=[existing]),
            MagicMock(data=[{**existing, "goal": "Sleep 8h"}]),
        ]
        mock_supabase.table.return_value = chain

        template = update_template(existing["id"], USER_ID, goal="Sleep 8h")

        assert template.goal == "Sleep 8h"
        chain.update.assert_called_once_with({"goal": "Sleep 8h"})

    def test_not_owned_raises_not_found(self, mock_supabase):
        mock_supabase.table.return_value = _chain([])

        with pytest.raises(NotFound):
            update_template(uuid4(), USER_ID, name="New")


def test_get_template_missing_returns_none(mock_supabase):
    mock_supabase.table.return_value = _chain([])

    assert get_template(uuid4(), USER_ID) is None


def test_delete_cascades_to_children(mock_supabase):
    existing = _template_row()
    chain = _chain([existing])
    mock_supabase.table.return_value = chain

    delete_template(existing["id"], USER_ID)

    tables = [c.args[0] for c in mock_supabase.table.call_args_list]
    assert tables == ["templates", "analyses", "entries", "templates"]
    assert chain.delete.call_count == 3
