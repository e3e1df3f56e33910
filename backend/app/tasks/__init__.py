# backend/app/tasks/__init__.py
"""
Celery tasks package for the resort platform.

Run a worker with: celery -A app.tasks worker -B -Q scheduling,celery
"""

from app.tasks.celery_app import BaseTask, celery_app
from app.tasks.scheduling_tasks import materialize_upcoming_sessions

__all__ = [
    "BaseTask",
    "celery_app",
    "materialize_upcoming_sessions",
]
