"""Behavioral tests for the entry store against the in-memory Supabase fake."""

from datetime import date
from uuid import uuid4

import pytest

from habit_lens.core.errors import NotFound, ValidationError
from habit_lens.core.field_codec import render, render_values
from habit_lens.core.schemas_templates import FieldType, TemplateField
from habit_lens.db import entries as entries_db
from habit_lens.db import templates as templates_db

USER_ID = uuid4()
OTHER_USER_ID = uuid4()


@pytest.fixture
def sleep_template(fake_supabase):
    fields = [TemplateField(id="quality", name="Quality", type=FieldType.RATING, required=True)]
    return templates_db.create_template(USER_ID, "Sleep", fields)


@pytest.fixture
def workout_template(fake_supabase):
    fields = [
        TemplateField(id="minutes", name="Minutes", type=FieldType.NUMBER, required=True),
        TemplateField(id="kind", name="Kind", type=FieldType.SELECT, options=["run", "swim"]),
        TemplateField(id="notes", name="Notes", type=FieldType.TEXT),
    ]
    return templates_db.create_template(USER_ID, "Workout", fields, goal="Move every day")


class TestSleepScenario:
    def test_listing_order_and_rendering(self, sleep_template):
        entries_db.create_entry(USER_ID, sleep_template, date(2024, 1, 1), {"quality": 5})
        entries_db.create_entry(USER_ID, sleep_template, date(2024, 1, 2), {"quality": 3})
        entries_db.create_entry(USER_ID, sleep_template, date(2024, 1, 3), {"quality": 1})

        entries = entries_db.list_entries_by_template(sleep_template.id, USER_ID)

        assert [e.date for e in entries] == [date(2024, 1, 3), date(2024, 1, 2), date(2024, 1, 1)]
        field = sleep_template.fields[0]
        assert [render(field, e.values["quality"]) for e in entries] == ["Poor", "Average", "Excellent"]


class TestCreateEntry:
    def test_round_trip_rendering_matches_codec(self, workout_template):
        created = entries_db.create_entry(
            USER_ID,
            workout_template,
            date(2024, 3, 1),
            {"minutes": "45", "kind": "run", "notes": "easy pace"},
        )

        listed = entries_db.list_entries_by_template(workout_template.id, USER_ID)

        assert [e.id for e in listed] == [created.id]
        stored = listed[0]
        assert stored.values == {"minutes": 45, "kind": "run", "notes": "easy pace"}
        assert render_values(workout_template.fields, stored.values) == [
            {"field_id": "minutes", "field": "Minutes", "value": 45},
            {"field_id": "kind", "field": "Kind", "value": "run"},
            {"field_id": "notes", "field": "Notes", "value": "easy pace"},
        ]

    def test_missing_required_value_rejected_without_write(self, workout_template, fake_supabase):
        with pytest.raises(ValidationError):
            entries_db.create_entry(USER_ID, workout_template, date(2024, 3, 1), {"kind": "run"})

        assert fake_supabase.rows("entries") == []

    def test_optional_fields_may_be_omitted(self, workout_template):
        entry = entries_db.create_entry(USER_ID, workout_template, date(2024, 3, 1), {"minutes": 20})

        assert entry.values == {"minutes": 20}

    def test_unknown_field_ids_are_stored_but_not_rendered(self, workout_template):
        entry = entries_db.create_entry(
            USER_ID, workout_template, date(2024, 3, 1), {"minutes": 20, "old_field": "x"}
        )

        assert entry.values["old_field"] == "x"
        assert [r["field_id"] for r in render_values(workout_template.fields, entry.values)] == ["minutes"]

    def test_out_of_range_rating_rejected(self, sleep_template):
        with pytest.raises(ValidationError):
            entries_db.create_entry(USER_ID, sleep_template, date(2024, 1, 1), {"quality": 6})


class TestUpdateEntry:
    def test_merges_values_and_revalidates(self, workout_template):
        entry = entries_db.create_entry(
            USER_ID, workout_template, date(2024, 3, 1), {"minutes": 30, "kind": "swim"}
        )

        updated = entries_db.update_entry(entry.id, USER_ID, values={"notes": "cold water"})

        assert updated.values == {"minutes": 30, "kind": "swim", "notes": "cold water"}

    def test_invalid_merge_rejected(self, workout_template):
        entry = entries_db.create_entry(USER_ID, workout_template, date(2024, 3, 1), {"minutes": 30})

        with pytest.raises(ValidationError):
            entries_db.update_entry(entry.id, USER_ID, values={"kind": "bike"})

    def test_change_date_only(self, workout_template):
        entry = entries_db.create_entry(USER_ID, workout_template, date(2024, 3, 1), {"minutes": 30})

        updated = entries_db.update_entry(entry.id, USER_ID, entry_date=date(2024, 3, 2))

        assert updated.date == date(2024, 3, 2)
        assert updated.values == {"minutes": 30}

    def test_other_users_entry_is_not_found(self, workout_template):
        entry = entries_db.create_entry(USER_ID, workout_template, date(2024, 3, 1), {"minutes": 30})

        with pytest.raises(NotFound):
            entries_db.update_entry(entry.id, OTHER_USER_ID, values={"minutes": 1})


def test_delete_entry_is_ownership_checked(workout_template):
    entry = entries_db.create_entry(USER_ID, workout_template, date(2024, 3, 1), {"minutes": 30})

    with pytest.raises(NotFound):
        entries_db.delete_entry(entry.id, OTHER_USER_ID)

    entries_db.delete_entry(entry.id, USER_ID)
    assert entries_db.list_entries_by_template(workout_template.id, USER_ID) == []
