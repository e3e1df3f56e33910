# backend/tests/tasks/test_scheduling_tasks.py
"""
Tests for the nightly materialization task and its beat schedule.
"""

from datetime import date

from celery.schedules import crontab

from app.core.config import settings
from app.models.session import ClassSession
from app.tasks.beat_schedule import get_beat_schedule
from app.tasks.celery_app import celery_app
from app.tasks.scheduling_tasks import materialize_upcoming_sessions


class TestBeatSchedule:
    def test_testing_environment_has_no_periodic_tasks(self):
        assert get_beat_schedule("testing") == {}

    def test_nightly_materialization_is_scheduled(self):
        schedule = get_beat_schedule("production")

        entry = schedule["materialize-upcoming-sessions"]
        assert entry["task"] == materialize_upcoming_sessions.name
        assert entry["kwargs"] == {"days": settings.materialize_window_days}
        assert entry["options"]["queue"] == "scheduling"
        assert entry["schedule"] == crontab(
            hour=settings.materialize_hour, minute=settings.materialize_minute
        )

    def test_celery_runs_on_resort_time(self):
        assert celery_app.conf.timezone == settings.resort_timezone
        assert celery_app.conf.task_always_eager is True


class TestMaterializeUpcomingSessions:
    def test_task_materializes_window(self, monkeypatch, session_factory, db, make_workshop, make_rule):
        make_rule(make_workshop())
        monkeypatch.setattr("app.tasks.scheduling_tasks.SessionLocal", session_factory)
        monkeypatch.setattr(
            "app.tasks.scheduling_tasks.default_window",
            lambda days=None: (date(2025, 10, 1), date(2025, 10, 7)),
        )

        summary = materialize_upcoming_sessions.apply(kwargs={"days": 7}).get()

        assert summary["created"] == 2
        assert summary["window_start"] == "2025-10-01"
        assert db.query(ClassSession).count() == 2

        again = materialize_upcoming_sessions.apply(kwargs={"days": 7}).get()
        assert (again["created"], again["updated"]) == (0, 2)
