# backend/tests/unit/test_manual_grid.py
"""
Tests for the manual weekly grid: template editing and replay over a window.
"""

from datetime import date

import pytest

from app.services.scheduling import (
    GridFormatError,
    WeeklyGridTemplate,
    WorkshopInfo,
    normalize_day,
    normalize_slot,
    resolve_grid,
)

YOGA = WorkshopInfo(id="W1", title="Sunrise Yoga", duration_minutes=90, capacity=10, slug="yoga")
SOUND = WorkshopInfo(id="W2", title="Sound Bath", duration_minutes=None, slug="sound-bath")
WORKSHOPS = {"W1": YOGA, "yoga": YOGA, "W2": SOUND, "sound-bath": SOUND}


class TestNormalization:
    @pytest.mark.parametrize("raw", ["Monday", "monday", "MON", "mon "])
    def test_normalize_day(self, raw):
        assert normalize_day(raw) == "Monday"

    @pytest.mark.parametrize("raw,expected", [("9:00", "09:00"), ("09:00", "09:00"), ("9", "09:00")])
    def test_normalize_slot(self, raw, expected):
        assert normalize_slot(raw) == expected

    @pytest.mark.parametrize("raw", ["24:00", "9:75", "nine"])
    def test_normalize_slot_rejects_invalid(self, raw):
        with pytest.raises(GridFormatError):
            normalize_slot(raw)

    def test_unknown_day(self):
        with pytest.raises(GridFormatError):
            normalize_day("Someday")


class TestWeeklyGridTemplate:
    def test_from_mapping_drops_empty_cells(self):
        template = WeeklyGridTemplate.from_mapping(
            {"Monday": {"09:00": {"Studio A": "W1", "Studio B": ""}}, "Tuesday": {}}
        )

        assert len(template.cells) == 1
        assert template.to_mapping() == {"Monday": {"09:00": {"Studio A": "W1"}}}

    def test_with_cell_replaces_and_clears(self):
        template = WeeklyGridTemplate.empty().with_cell("mon", "9:00", "Studio A", "W1")
        template = template.with_cell("Monday", "09:00", "Studio A", "W2")

        assert template.to_mapping() == {"Monday": {"09:00": {"Studio A": "W2"}}}

        cleared = template.with_cell("Monday", "09:00", "Studio A", None)
        assert cleared.is_empty

    def test_with_cell_requires_studio(self):
        with pytest.raises(GridFormatError):
            WeeklyGridTemplate.empty().with_cell("Monday", "09:00", "  ", "W1")


class TestResolveGrid:
    def test_each_matching_day_gets_an_occurrence(self):
        template = WeeklyGridTemplate.from_mapping({"Monday": {"09:00": {"Studio A": "W1"}}})

        occurrences = resolve_grid(
            template, date(2025, 10, 1), date(2025, 10, 14), WORKSHOPS, timezone="Asia/Jerusalem"
        )

        assert [o.date for o in occurrences] == ["2025-10-06", "2025-10-13"]
        first = occurrences[0]
        assert first.source == "manual"
        assert first.time == "09:00"
        assert first.duration_minutes == 90
        assert first.title == "Sunrise Yoga"
        assert first.rule_id is None

    def test_slug_references_resolve_to_workshop_id(self):
        template = WeeklyGridTemplate.from_mapping({"Wednesday": {"17:30": {"Dome": "sound-bath"}}})

        occurrences = resolve_grid(
            template, date(2025, 10, 1), date(2025, 10, 1), WORKSHOPS, default_duration=45
        )

        assert len(occurrences) == 1
        assert occurrences[0].workshop_id == "W2"
        assert occurrences[0].duration_minutes == 45

    def test_missing_workshop_and_bad_keys_are_skipped(self):
        template = WeeklyGridTemplate.from_mapping(
            {
                "Monday": {"09:00": {"Studio A": "W1", "Studio B": "gone"}, "late": {"Studio C": "W1"}},
                "Funday": {"10:00": {"Studio A": "W1"}},
            }
        )

        occurrences = resolve_grid(template, date(2025, 10, 6), date(2025, 10, 6), WORKSHOPS)

        assert [(o.studio, o.workshop_id) for o in occurrences] == [("Studio A", "W1")]

    def test_empty_template_yields_nothing(self):
        assert resolve_grid(WeeklyGridTemplate.empty(), date(2025, 10, 1), date(2025, 10, 7), {}) == []
