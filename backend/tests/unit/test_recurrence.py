# backend/tests/unit/test_recurrence.py
"""
Tests for recurring rule expansion.

Run with: pytest backend/tests/unit/test_recurrence.py -v
"""

from datetime import date, datetime, timezone

import pytest

from app.services.scheduling import (
    RuleDefinition,
    RuleParseError,
    build_weekly_rrule,
    expand_rule,
    expand_rules,
    parse_start_time,
    rule_weekdays,
    validate_rrule,
)


def _rule(**overrides):
    fields = {
        "id": "rule-1",
        "workshop_id": "yoga",
        "start_time": "18:00",
        "rrule": "FREQ=WEEKLY;BYDAY=MO,WE",
        "effective_from": date(2025, 10, 1),
        "studio": "Studio A",
        "timezone": "Asia/Jerusalem",
        "duration_minutes": 60,
        "title": "Morning Flow",
    }
    fields.update(overrides)
    return RuleDefinition(**fields)


class TestExpandRule:
    def test_monday_wednesday_rule_over_one_week(self):
        """A Mon/Wed rule from Wed 2025-10-01 yields Wed 1st and Mon 6th at 18:00 local."""
        occurrences = expand_rule(_rule(), date(2025, 10, 1), date(2025, 10, 7))

        assert [(o.date, o.time) for o in occurrences] == [
            ("2025-10-01", "18:00"),
            ("2025-10-06", "18:00"),
        ]
        first = occurrences[0]
        assert first.source == "recurring"
        assert first.rule_id == "rule-1"
        assert first.title == "Morning Flow"
        assert first.end.strftime("%H:%M") == "19:00"
        # Israel is on UTC+3 in early October
        assert first.start_utc == datetime(2025, 10, 1, 15, 0, tzinfo=timezone.utc)

    def test_exception_dates_are_skipped(self):
        rule = _rule(exceptions=frozenset({"2025-10-06"}))

        occurrences = expand_rule(rule, date(2025, 10, 1), date(2025, 10, 7))

        assert [o.date for o in occurrences] == ["2025-10-01"]

    def test_window_is_clipped_to_effective_range(self):
        rule = _rule(effective_from=date(2025, 10, 6), effective_to=date(2025, 10, 8))

        occurrences = expand_rule(rule, date(2025, 10, 1), date(2025, 10, 31))

        assert [o.date for o in occurrences] == ["2025-10-06", "2025-10-08"]

    def test_window_outside_effective_range_is_empty(self):
        rule = _rule(effective_to=date(2025, 10, 31))

        assert expand_rule(rule, date(2025, 11, 1), date(2025, 11, 30)) == []

    def test_dst_change_keeps_wall_clock_time(self):
        """Israel leaves summer time on 2025-10-26; local time stays 18:00, UTC shifts."""
        rule = _rule(rrule="FREQ=WEEKLY;BYDAY=MO")

        occurrences = expand_rule(rule, date(2025, 10, 20), date(2025, 10, 27))

        assert [o.time for o in occurrences] == ["18:00", "18:00"]
        assert occurrences[0].start_utc.hour == 15
        assert occurrences[1].start_utc.hour == 16

    @pytest.mark.parametrize("duration", [0, -15, None])
    def test_non_positive_duration_falls_back_to_default(self, duration):
        occurrences = expand_rule(_rule(duration_minutes=duration), date(2025, 10, 1), date(2025, 10, 1))

        assert occurrences[0].duration_minutes == 60

    def test_inverted_window_is_rejected(self):
        with pytest.raises(ValueError):
            expand_rule(_rule(), date(2025, 10, 7), date(2025, 10, 1))

    def test_unknown_timezone_raises_parse_error(self):
        with pytest.raises(RuleParseError):
            expand_rule(_rule(timezone="Mars/Olympus"), date(2025, 10, 1), date(2025, 10, 7))


class TestExpandRules:
    def test_bad_rule_is_skipped_and_reported(self):
        skipped = []
        rules = [_rule(), _rule(id="broken", rrule="FREQ=SOMETIMES")]

        occurrences = expand_rules(rules, date(2025, 10, 1), date(2025, 10, 7), skipped=skipped)

        assert len(occurrences) == 2
        assert skipped == ["broken"]

    @pytest.mark.parametrize("rrule", ["FREQ=MONTHLY", "FREQ=WEEKLY", "FREQ=MONTHLY;BYMONTHDAY=1"])
    def test_rule_without_weekday_pattern_is_skipped(self, rrule):
        skipped = []
        rules = [_rule(id="r1", rrule=rrule)]

        occurrences = expand_rules(rules, date(2025, 10, 1), date(2025, 10, 31), skipped=skipped)

        assert occurrences == []
        assert skipped == ["r1"]

    def test_rule_without_weekday_pattern_is_skipped_outside_its_range(self):
        skipped = []
        rules = [_rule(id="r1", rrule="FREQ=MONTHLY", effective_to=date(2025, 10, 31))]

        expand_rules(rules, date(2025, 12, 1), date(2025, 12, 31), skipped=skipped)

        assert skipped == ["r1"]


class TestRuleHelpers:
    @pytest.mark.parametrize(
        "value,expected",
        [("9:00", "09:00"), ("18:30", "18:30"), ("07:15:00", "07:15")],
    )
    def test_parse_start_time(self, value, expected):
        assert parse_start_time(value).strftime("%H:%M") == expected

    @pytest.mark.parametrize("value", ["", "25:00", "18:60", "six pm"])
    def test_parse_start_time_rejects_garbage(self, value):
        with pytest.raises(RuleParseError):
            parse_start_time(value)

    def test_build_weekly_rrule_orders_and_dedupes(self):
        assert build_weekly_rrule(["Wed", "monday", "MO"]) == "FREQ=WEEKLY;BYDAY=MO,WE"
        assert build_weekly_rrule([4], interval=2) == "FREQ=WEEKLY;INTERVAL=2;BYDAY=FR"

    def test_build_weekly_rrule_requires_a_day(self):
        with pytest.raises(RuleParseError):
            build_weekly_rrule([])

    def test_validate_rrule_strips_prefix(self):
        assert validate_rrule("RRULE:FREQ=DAILY") == "FREQ=DAILY"

    def test_validate_rrule_rejects_invalid(self):
        with pytest.raises(RuleParseError):
            validate_rrule("FREQ=WEEKLY;BYDAY=XX")

    @pytest.mark.parametrize("value", ["FREQ=MONTHLY", "FREQ=WEEKLY", "FREQ=YEARLY;BYMONTH=1"])
    def test_validate_rrule_requires_weekdays(self, value):
        with pytest.raises(RuleParseError, match="no weekday pattern"):
            validate_rrule(value)

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("FREQ=WEEKLY;BYDAY=MO,WE", (0, 2)),
            ("RRULE:FREQ=WEEKLY;BYDAY=+1SU", (6,)),
            ("FREQ=DAILY", tuple(range(7))),
            ("FREQ=MONTHLY;BYMONTHDAY=1", ()),
        ],
    )
    def test_rule_weekdays(self, value, expected):
        assert rule_weekdays(value) == expected
