# backend/app/services/session_materializer.py
"""
Session Materializer for the resort platform.

Turns computed schedule occurrences into bookable ClassSession rows.

Sessions are upserted by (workshop_id, studio, start):
- absent: created with the workshop's capacity and booked_count 0
- present: only display fields are refreshed (end, title, source,
  rule_id, timezone)

Materialization never writes booked_count, capacity or status of an
existing session, so running the same window again leaves every booking's
effect and every admin edit in place. Each row is written inside its own
SAVEPOINT; a failing row is logged and counted as skipped while the rest
of the batch continues.

Admins may change a session's capacity or cancel it; booked_count only
ever moves through bookings.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import (
    BusinessRuleException,
    ConflictException,
    NotFoundException,
    RepositoryException,
    ValidationException,
)
from ..core.timezone_utils import local_day_bounds_utc
from ..models.session import ClassSession, SessionStatus
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from ..schemas.session import SessionUpdate
from .base import BaseService
from .schedule_service import ScheduleService
from .scheduling import Occurrence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MaterializeResult:
    window_start: date
    window_end: date
    created: int = 0
    updated: int = 0
    skipped: int = 0

    @property
    def upserts(self) -> int:
        return self.created + self.updated

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["window_start"] = self.window_start.isoformat()
        data["window_end"] = self.window_end.isoformat()
        data["upserts"] = self.upserts
        return data


class SessionMaterializer(BaseService):
    """Persists schedule occurrences as sessions."""

    def __init__(
        self,
        db: Session,
        schedule_service: Optional[ScheduleService] = None,
        session_repository=None,
    ):
        super().__init__(db)
        self.schedule_service = schedule_service or ScheduleService(db)
        self.session_repository = session_repository or RepositoryFactory.create_session_repository(db)
        self.workshop_repository = RepositoryFactory.create_workshop_repository(db)

    @BaseService.measure_operation("materialize_sessions")
    def materialize_sessions(self, window_start: date, window_end: date) -> MaterializeResult:
        """
        Upsert a session for every occurrence in [window_start, window_end].

        Args:
            window_start: First calendar day (inclusive)
            window_end: Last calendar day (inclusive)

        Returns:
            MaterializeResult with created/updated/skipped counts

        Raises:
            ValidationException: If the window is invalid
        """
        schedule = self.schedule_service.get_schedule(window_start, window_end)
        capacities = self._capacities_for(schedule.occurrences)

        created = updated = skipped = 0
        with self.transaction():
            for occurrence in schedule.occurrences:
                try:
                    with self.db.begin_nested():
                        if self._upsert(occurrence, capacities):
                            created += 1
                        else:
                            updated += 1
                except (SQLAlchemyError, RepositoryException) as exc:
                    skipped += 1
                    logger.warning(
                        f"Failed to materialize occurrence: {str(exc)}",
                        extra={
                            "workshop_id": occurrence.workshop_id,
                            "studio": occurrence.studio,
                            "start": occurrence.start_utc.isoformat(),
                            "source": occurrence.source,
                        },
                    )

        result = MaterializeResult(
            window_start=window_start,
            window_end=window_end,
            created=created,
            updated=updated,
            skipped=skipped,
        )
        prometheus_metrics.record_materialized_sessions(created, updated, skipped)
        self.log_operation(
            "materialize_sessions",
            window_start=window_start.isoformat(),
            window_end=window_end.isoformat(),
            sessions_created=created,
            sessions_updated=updated,
            sessions_skipped=skipped,
        )
        return result

    def _capacities_for(self, occurrences) -> Dict[str, int]:
        ids = {o.workshop_id for o in occurrences}
        return {
            workshop.id: workshop.capacity or settings.default_session_capacity
            for workshop in self.workshop_repository.get_by_ids(ids)
        }

    def _upsert(self, occurrence: Occurrence, capacities: Dict[str, int]) -> bool:
        """Write one occurrence; returns True when a new session was created."""
        existing = self.session_repository.find_by_slot(
            occurrence.workshop_id, occurrence.studio, occurrence.start_utc
        )
        if existing is None:
            self.session_repository.insert(
                workshop_id=occurrence.workshop_id,
                rule_id=occurrence.rule_id,
                studio=occurrence.studio,
                start=occurrence.start_utc,
                end=occurrence.end_utc,
                timezone=occurrence.timezone,
                title=occurrence.title,
                capacity=capacities.get(
                    occurrence.workshop_id, settings.default_session_capacity
                ),
                booked_count=0,
                status=SessionStatus.SCHEDULED.value,
                source=occurrence.source,
            )
            return True

        existing.end = occurrence.end_utc
        existing.title = occurrence.title
        existing.source = occurrence.source
        existing.rule_id = occurrence.rule_id
        existing.timezone = occurrence.timezone
        self.db.flush()
        return False

    def list_sessions(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        studio: Optional[str] = None,
        workshop_id: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = 500,
    ) -> List[ClassSession]:
        """Sessions starting on the resort-local days [date_from, date_to]."""
        if date_from and date_to and date_from > date_to:
            raise ValidationException("'from' must be on or before 'to'", code="INVALID_WINDOW")
        if status and status not in {s.value for s in SessionStatus}:
            raise ValidationException(f"Unknown session status: {status}", code="INVALID_STATUS")

        start_from = start_before = None
        if date_from:
            start_from, _ = local_day_bounds_utc(date_from, date_from)
        if date_to:
            _, start_before = local_day_bounds_utc(date_to, date_to)
        return self.session_repository.list_sessions(
            start_from=start_from,
            start_before=start_before,
            studio=studio,
            workshop_id=workshop_id,
            status=status,
            limit=limit,
        )

    def get_session(self, session_id: str) -> ClassSession:
        session = self.session_repository.get_by_id(session_id)
        if session is None:
            raise NotFoundException(f"Session {session_id} not found", code="SESSION_NOT_FOUND")
        return session

    @BaseService.measure_operation("update_session")
    def update_session(self, session_id: str, data: SessionUpdate) -> ClassSession:
        """Apply an admin change: a new capacity, cancellation, or both."""
        session = self.get_session(session_id)
        if data.capacity is not None:
            session = self.update_capacity(session_id, data.capacity)
        if data.status == SessionStatus.CANCELLED.value:
            session = self.cancel_session(session_id)
        return session

    def update_capacity(self, session_id: str, capacity: int) -> ClassSession:
        """
        Change how many seats a session offers.

        Raises:
            NotFoundException: If the session does not exist
            BusinessRuleException: If the session is cancelled
            ConflictException: If more seats are already booked than ``capacity``
        """
        if capacity < 1:
            raise ValidationException("Capacity must be at least 1", code="INVALID_CAPACITY")
        self._ensure_not_cancelled(self.get_session(session_id))

        with self.transaction():
            changed = self.session_repository.set_capacity(session_id, capacity)

        session = self.get_session(session_id)
        if not changed:
            self._ensure_not_cancelled(session)
            raise ConflictException(
                f"{session.booked_count} seats are already booked; "
                f"capacity cannot drop to {capacity}",
                code="CAPACITY_BELOW_BOOKED",
                details={
                    "session_id": session_id,
                    "booked_count": session.booked_count,
                    "requested_capacity": capacity,
                },
            )
        self.log_operation(
            "update_session_capacity",
            session_id=session_id,
            capacity=capacity,
            session_status=session.status,
        )
        return session

    def cancel_session(self, session_id: str) -> ClassSession:
        """
        Cancel a session; cancelling twice is a no-op.

        Existing bookings and booked_count are kept for the booking flow to
        settle. Later materialization runs leave the status alone.
        """
        self.get_session(session_id)
        with self.transaction():
            changed = self.session_repository.mark_cancelled(session_id)
        if changed:
            self.log_operation("cancel_session", session_id=session_id)
        return self.get_session(session_id)

    @staticmethod
    def _ensure_not_cancelled(session: ClassSession) -> None:
        if session.status == SessionStatus.CANCELLED.value:
            raise BusinessRuleException(
                "This session has been cancelled", code="SESSION_CANCELLED"
            )
