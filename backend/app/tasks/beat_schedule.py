# backend/app/tasks/beat_schedule.py
"""
Celery Beat schedule configuration.

Crontab times are wall-clock times in the resort timezone (the Celery app
timezone).
"""

from typing import Any

from celery.schedules import crontab

from app.core.config import settings


def get_beat_schedule(environment: str = "production") -> dict[str, dict[str, Any]]:
    """
    Get the beat schedule for the specified environment.

    Args:
        environment: The environment name (production, development, testing)

    Returns:
        Mapping of task name to Celery beat configuration dict
    """
    if environment == "testing":
        return {}
    return {
        # Nightly upsert of sessions for the rolling window
        "materialize-upcoming-sessions": {
            "task": "app.tasks.scheduling_tasks.materialize_upcoming_sessions",
            "schedule": crontab(
                hour=settings.materialize_hour, minute=settings.materialize_minute
            ),
            "kwargs": {"days": settings.materialize_window_days},
            "options": {"queue": "scheduling", "priority": 5},
        },
    }
