"""Tests for the entry model and its JSON form."""

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from havn.entries import (
    ENTRY_SCHEMA_VERSION,
    Entry,
    as_utc,
    entry_from_dict,
    entry_to_dict,
    is_empty,
    new_entry,
)


class TestIsEmpty:
    @pytest.mark.parametrize("value", [None, "", "   \n", b"", bytearray()])
    def test_empty_values(self, value):
        assert is_empty(value) is True

    @pytest.mark.parametrize("value", ["hi", b"\x00", "calm"])
    def test_non_empty_values(self, value):
        assert is_empty(value) is False


class TestAsUtc:
    def test_none(self):
        assert as_utc(None) is None

    def test_naive_taken_as_utc(self):
        assert as_utc(datetime(2026, 1, 5, 10, 0)) == datetime(2026, 1, 5, 10, 0, tzinfo=timezone.utc)

    def test_aware_converted(self):
        moment = datetime(2026, 1, 5, 10, 0, tzinfo=timezone(timedelta(hours=2)))
        assert as_utc(moment).hour == 8
        assert as_utc(moment).tzinfo == timezone.utc


class TestEntry:
    def test_resolved_day_from_datetime(self):
        entry = Entry(id="a", day=datetime(2026, 1, 5, 14, 0))
        assert entry.resolved_day() == date(2026, 1, 5)

    def test_resolved_day_missing(self):
        assert Entry(id="a", day=None).resolved_day() is None

    def test_resolved_day_garbage(self):
        assert Entry(id="a", day="yesterday-ish").resolved_day() is None

    def test_has_content(self):
        assert Entry(id="a", day=date(2026, 1, 5), text="hello").has_content
        assert Entry(id="b", day=date(2026, 1, 5), photo=b"jpg").has_content
        assert not Entry(id="c", day=date(2026, 1, 5), text="  ").has_content


class TestNewEntry:
    def test_assigns_id_and_timestamps(self):
        now = datetime(2026, 1, 5, 8, 0, tzinfo=timezone.utc)
        entry = new_entry(date(2026, 1, 5), now=now, text="morning")
        assert len(entry.id) == 32
        assert entry.created_at == entry.updated_at == now
        assert entry.text == "morning"
        assert entry.is_starred is False
        assert entry.tags == frozenset()

    def test_ids_are_unique(self):
        assert new_entry(date(2026, 1, 5)).id != new_entry(date(2026, 1, 5)).id


class TestSerialization:
    def _entry(self) -> Entry:
        return Entry(
            id="abc",
            day=date(2026, 1, 5),
            text="Walked 2 miles",
            photo=b"\xff\xd8jpeg",
            is_starred=True,
            created_at=datetime(2026, 1, 5, 8, 0, tzinfo=timezone.utc),
            updated_at=datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc),
            tags=frozenset({"walk", "health"}),
            mood="calm",
            energy="high",
            weather="sunny",
        )

    def test_to_dict_fields(self):
        data = entry_to_dict(self._entry())
        assert data["schema_version"] == ENTRY_SCHEMA_VERSION
        assert data["day"] == "2026-01-05"
        assert data["tags"] == ["health", "walk"]
        assert isinstance(data["photo"], str)

    def test_from_dict_restores_entry(self):
        original = self._entry()
        assert entry_from_dict(entry_to_dict(original)) == original

    def test_from_dict_missing_optionals(self):
        entry = entry_from_dict({"id": "x", "day": "2026-01-05"})
        assert entry.text is None
        assert entry.photo is None
        assert entry.is_starred is False
        assert entry.tags == frozenset()
        assert entry.updated_at is None

    def test_from_dict_missing_day_kept_as_none(self):
        assert entry_from_dict({"id": "x"}).day is None

    def test_from_dict_bad_day_kept_as_none(self):
        assert entry_from_dict({"id": "x", "day": "someday"}).day is None

    def test_from_dict_bad_timestamp_ignored(self):
        assert entry_from_dict({"id": "x", "day": "2026-01-05", "updated_at": "later"}).updated_at is None

    def test_from_dict_requires_id(self):
        with pytest.raises(ValueError, match="no id"):
            entry_from_dict({"day": "2026-01-05"})

    def test_from_dict_timestamp_day_uses_zone(self):
        data = {"id": "x", "day": "2026-01-06T01:00:00+00:00"}
        assert entry_from_dict(data, ZoneInfo("America/New_York")).day == date(2026, 1, 5)
        assert entry_from_dict(data, timezone.utc).day == date(2026, 1, 6)

    def test_from_dict_tag_string_wrapped(self):
        assert entry_from_dict({"id": "x", "day": "2026-01-05", "tags": "work"}).tags == {"work"}

    def test_from_dict_tags_not_a_list(self):
        with pytest.raises(ValueError, match="tags"):
            entry_from_dict({"id": "x", "day": "2026-01-05", "tags": {"work": True}})
