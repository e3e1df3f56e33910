# backend/tests/unit/test_compositor.py
"""
Tests for merging recurring and manual occurrences.
"""

from datetime import datetime, timedelta

import pytz

from app.services.scheduling import Occurrence, compose_schedule, find_studio_conflicts

TZ = pytz.timezone("Asia/Jerusalem")


def _occ(source, studio, day, hour, minute=0, minutes=60, workshop_id="W1"):
    start = TZ.localize(datetime(2025, 10, day, hour, minute))
    return Occurrence(
        source=source,
        workshop_id=workshop_id,
        studio=studio,
        start=start,
        end=start + timedelta(minutes=minutes),
        timezone="Asia/Jerusalem",
    )


class TestComposeSchedule:
    def test_sorted_by_start_then_studio(self):
        recurring = [_occ("recurring", "Studio B", 6, 9), _occ("recurring", "Studio A", 7, 8)]
        manual = [_occ("manual", "Studio A", 6, 9), _occ("manual", "Studio C", 6, 7)]

        schedule = compose_schedule(recurring, manual)

        assert [(o.date, o.time, o.studio) for o in schedule] == [
            ("2025-10-06", "07:00", "Studio C"),
            ("2025-10-06", "09:00", "Studio A"),
            ("2025-10-06", "09:00", "Studio B"),
            ("2025-10-07", "08:00", "Studio A"),
        ]

    def test_duplicates_are_kept(self):
        same_slot = [_occ("recurring", "Studio A", 6, 9)]
        schedule = compose_schedule(same_slot, [_occ("manual", "Studio A", 6, 9)])

        assert len(schedule) == 2
        assert {o.source for o in schedule} == {"recurring", "manual"}


class TestStudioConflicts:
    def test_overlap_in_same_studio_is_reported(self):
        occurrences = [
            _occ("recurring", "Studio A", 6, 9),
            _occ("manual", "Studio A", 6, 9, minute=30, workshop_id="W2"),
            _occ("manual", "Studio B", 6, 9),
        ]

        conflicts = find_studio_conflicts(occurrences)

        assert len(conflicts) == 1
        assert conflicts[0].studio == "Studio A"
        assert conflicts[0].sources == frozenset({"recurring", "manual"})
        assert conflicts[0].end - conflicts[0].start == timedelta(minutes=90)

    def test_back_to_back_classes_do_not_conflict(self):
        occurrences = [_occ("recurring", "Studio A", 6, 9), _occ("manual", "Studio A", 6, 10)]

        assert find_studio_conflicts(occurrences) == []
