# backend/tests/services/test_schedule_service.py
"""
Tests for ScheduleService against a real (SQLite) database.
"""

from datetime import date, timedelta

import pytest

from app.core.exceptions import ValidationException
from app.services.schedule_service import ScheduleService, default_window


@pytest.fixture
def service(db):
    return ScheduleService(db)


class TestGetSchedule:
    def test_recurring_and_manual_are_merged(self, service, make_workshop, make_rule):
        yoga = make_workshop(title="Yoga")
        sound = make_workshop(title="Sound Bath", duration_minutes=45)
        make_rule(yoga)
        service.save_grid({"Monday": {"10:00": {"Dome": sound.slug}}})

        result = service.get_schedule(date(2025, 10, 1), date(2025, 10, 7))

        assert [(o.date, o.time, o.source) for o in result.occurrences] == [
            ("2025-10-01", "18:00", "recurring"),
            ("2025-10-06", "10:00", "manual"),
            ("2025-10-06", "18:00", "recurring"),
        ]
        manual = result.occurrences[1]
        assert manual.workshop_id == sound.id
        assert manual.duration_minutes == 45
        assert result.conflicts == ()

    def test_conflicting_sources_are_both_kept(self, service, make_workshop, make_rule):
        yoga = make_workshop()
        make_rule(yoga)
        service.save_grid({"Monday": {"18:00": {"Studio A": yoga.id}}})

        result = service.get_schedule(date(2025, 10, 6), date(2025, 10, 6))

        assert len(result.occurrences) == 2
        assert len(result.conflicts) == 1
        assert result.conflicts[0].studio == "Studio A"

    def test_inactive_and_broken_rules(self, service, make_workshop, make_rule):
        yoga = make_workshop()
        make_rule(yoga, is_active=False)
        broken = make_rule(yoga, rrule="FREQ=NEVER")

        result = service.get_schedule(date(2025, 10, 1), date(2025, 10, 7))

        assert result.occurrences == ()
        assert result.skipped_rule_ids == (broken.id,)

    def test_inactive_workshops_are_left_out(self, service, db, make_workshop, make_rule):
        retired = make_workshop(title="Retired Class")
        make_rule(retired)
        service.save_grid({"Monday": {"10:00": {"Dome": retired.id}}})
        retired.is_active = False
        db.commit()

        result = service.get_schedule(date(2025, 10, 1), date(2025, 10, 7))

        assert result.occurrences == ()
        assert result.skipped_rule_ids == ()

    def test_invalid_windows(self, service):
        with pytest.raises(ValidationException):
            service.get_schedule(date(2025, 10, 7), date(2025, 10, 1))
        with pytest.raises(ValidationException):
            service.get_schedule(date(2025, 1, 1), date(2026, 6, 1))


class TestGrid:
    def test_draft_grid_is_seeded_from_rules(self, service, make_workshop, make_rule):
        yoga = make_workshop()
        make_rule(yoga, start_time="7:30")

        view = service.get_grid()

        assert view.persisted is False
        assert view.grid == {
            "Monday": {"07:30": {"Studio A": yoga.id}},
            "Wednesday": {"07:30": {"Studio A": yoga.id}},
        }
        # A draft is never written
        assert service.grid_repository.get() is None

    def test_save_grid_normalizes_keys(self, service, make_workshop):
        yoga = make_workshop()

        view = service.save_grid({"mon": {"9:00": {"Studio A": yoga.id, "Studio B": None}}})

        assert view.persisted is True
        assert view.grid == {"Monday": {"09:00": {"Studio A": yoga.id}}}
        assert service.get_grid().grid == view.grid

    def test_save_grid_rejects_unknown_workshop(self, service):
        with pytest.raises(ValidationException) as exc_info:
            service.save_grid({"Monday": {"09:00": {"Studio A": "missing"}}})

        assert exc_info.value.code == "UNKNOWN_WORKSHOP"

    def test_save_grid_rejects_malformed_keys(self, service, make_workshop):
        yoga = make_workshop()

        with pytest.raises(ValidationException) as exc_info:
            service.save_grid({"Caturday": {"09:00": {"Studio A": yoga.id}}})

        assert exc_info.value.code == "INVALID_GRID"

    def test_update_cell_sets_and_clears(self, service, make_workshop):
        yoga = make_workshop()

        view = service.update_cell("Tuesday", "08:00", "Studio A", yoga.id)
        assert view.grid == {"Tuesday": {"08:00": {"Studio A": yoga.id}}}

        view = service.update_cell("Tuesday", "08:00", "Studio A", None)
        assert view.grid == {}
        assert view.persisted is True


class TestDefaultWindow:
    def test_window_spans_requested_days(self):
        today = date(2025, 10, 1)

        assert default_window(30, today=today) == (today, today + timedelta(days=29))
        assert default_window(0, today=today) == (today, today)
