# backend/tests/services/test_recurring_rule_service.py
"""
Tests for RecurringRuleService CRUD and pattern normalization.
"""

from datetime import date

import pytest

from app.core.exceptions import NotFoundException, ValidationException
from app.schemas.recurring_rule import RecurringRuleCreate, RecurringRuleUpdate
from app.services.recurring_rule_service import RecurringRuleService


@pytest.fixture
def service(db):
    return RecurringRuleService(db)


def _create(workshop, **fields) -> RecurringRuleCreate:
    data = {
        "workshop_id": workshop.slug,
        "start_time": "9:00",
        "weekdays": ["Mon", "Wed"],
        "effective_from": date(2025, 10, 1),
    }
    data.update(fields)
    return RecurringRuleCreate(**data)


class TestCreateRule:
    def test_weekdays_become_weekly_rrule(self, service, make_workshop):
        workshop = make_workshop()

        rule = service.create_rule(_create(workshop, studio=" Dome ", exceptions=[date(2025, 10, 6)]))

        assert rule.workshop_id == workshop.id
        assert rule.workshop_title == workshop.title
        assert rule.rrule == "FREQ=WEEKLY;BYDAY=MO,WE"
        assert rule.start_time == "09:00"
        assert rule.studio == "Dome"
        assert rule.timezone == "Asia/Jerusalem"
        assert rule.exceptions == ["2025-10-06"]

    def test_raw_rrule_is_accepted(self, service, make_workshop):
        rule = service.create_rule(
            _create(make_workshop(), weekdays=None, rrule="FREQ=WEEKLY;INTERVAL=2;BYDAY=FR")
        )

        assert "BYDAY=FR" in rule.rrule

    def test_unknown_workshop(self, service, make_workshop):
        with pytest.raises(NotFoundException):
            service.create_rule(_create(make_workshop(), workshop_id="nope"))

    @pytest.mark.parametrize(
        "fields,code",
        [
            ({"weekdays": None, "rrule": "FREQ=SOMETIMES"}, "INVALID_RRULE"),
            ({"weekdays": None, "rrule": "FREQ=MONTHLY"}, "INVALID_RRULE"),
            ({"weekdays": None, "rrule": "FREQ=WEEKLY"}, "INVALID_RRULE"),
            ({"weekdays": ["Funday"]}, "INVALID_RRULE"),
            ({"start_time": "25:00"}, "INVALID_START_TIME"),
            ({"timezone": "Mars/Olympus"}, "INVALID_TIMEZONE"),
        ],
    )
    def test_invalid_patterns(self, service, make_workshop, fields, code):
        with pytest.raises(ValidationException) as exc_info:
            service.create_rule(_create(make_workshop(), **fields))

        assert exc_info.value.code == code


class TestUpdateRule:
    def test_partial_update(self, service, make_workshop):
        rule = service.create_rule(_create(make_workshop()))

        updated = service.update_rule(
            rule.id, RecurringRuleUpdate(weekdays=["Fri"], start_time="7:15", is_active=False)
        )

        assert updated.rrule == "FREQ=WEEKLY;BYDAY=FR"
        assert updated.start_time == "07:15"
        assert updated.is_active is False
        assert updated.studio == "Studio A"

    def test_effective_range_checked_against_stored_values(self, service, make_workshop):
        rule = service.create_rule(_create(make_workshop()))

        with pytest.raises(ValidationException):
            service.update_rule(rule.id, RecurringRuleUpdate(effective_to=date(2025, 9, 1)))

    def test_missing_rule(self, service):
        with pytest.raises(NotFoundException):
            service.update_rule("01HZZZZZZZZZZZZZZZZZZZZZZZ", RecurringRuleUpdate(studio="B"))


class TestDeleteRule:
    def test_unused_rule_is_deleted(self, service, make_workshop, make_rule):
        rule = make_rule(make_workshop())

        result = service.delete_rule(rule.id)

        assert result == {"id": rule.id, "deleted": True, "deactivated": False}
        assert service.list_rules() == []

    def test_rule_with_sessions_is_deactivated(self, service, make_workshop, make_rule, make_session):
        workshop = make_workshop()
        rule = make_rule(workshop)
        make_session(workshop, rule_id=rule.id)

        result = service.delete_rule(rule.id)

        assert result["deactivated"] is True
        assert service.get_rule(rule.id).is_active is False

    def test_list_filters_by_workshop(self, service, make_workshop, make_rule):
        yoga, pilates = make_workshop(), make_workshop()
        make_rule(yoga)
        kept = make_rule(pilates)

        assert [r.id for r in service.list_rules(workshop_id=pilates.id)] == [kept.id]
