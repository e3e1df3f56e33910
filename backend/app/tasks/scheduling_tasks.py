# backend/app/tasks/scheduling_tasks.py
"""
Celery tasks for class session materialization.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from app.database import SessionLocal
from app.services.schedule_service import default_window
from app.services.session_materializer import SessionMaterializer
from app.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(
    name="app.tasks.scheduling_tasks.materialize_upcoming_sessions",
    bind=True,
    max_retries=3,
    default_retry_delay=60,
)
def materialize_upcoming_sessions(self: Any, days: Optional[int] = None) -> Dict[str, Any]:
    """
    Materialize sessions from today through the next ``days`` days.

    Safe to re-run: existing sessions keep their booked seats.
    """
    window_start, window_end = default_window(days)
    db = SessionLocal()
    try:
        result = SessionMaterializer(db).materialize_sessions(window_start, window_end)
        summary = result.to_dict()
        logger.info(
            f"Nightly materialization completed: {summary['upserts']} upserts, "
            f"{summary['skipped']} skipped",
            extra={"window_start": summary["window_start"], "window_end": summary["window_end"]},
        )
        return summary
    except Exception as exc:
        logger.exception(
            "Nightly materialization failed",
            extra={"window_start": str(window_start), "window_end": str(window_end)},
        )
        raise self.retry(exc=exc)
    finally:
        db.close()
