# backend/app/repositories/session_repository.py
"""
ClassSession Repository for the resort platform.

Besides lookups, this repository owns the only writes to
``sessions.booked_count``. Both directions are single conditional UPDATE
statements so the capacity check and the mutation happen atomically in the
database; callers inspect the returned flag instead of reading first.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import case, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload
from sqlalchemy.orm.util import identity_key

from ..core.exceptions import RepositoryException
from ..models.session import ClassSession, SessionStatus
from .base_repository import BaseRepository


class SessionRepository(BaseRepository[ClassSession]):
    def __init__(self, db: Session):
        super().__init__(db, ClassSession)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(joinedload(ClassSession.workshop))

    def find_by_slot(self, workshop_id: str, studio: str, start: datetime) -> Optional[ClassSession]:
        """Lookup by the natural key used for materialization."""
        try:
            return (
                self.db.query(ClassSession)
                .filter(
                    ClassSession.workshop_id == workshop_id,
                    ClassSession.studio == studio,
                    ClassSession.start == start,
                )
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error finding session by slot: {str(e)}")
            raise RepositoryException(f"Failed to find session: {str(e)}")

    def insert(self, **kwargs) -> ClassSession:
        """
        Add and flush a session without any rollback handling.

        Meant to run inside a caller-owned SAVEPOINT; IntegrityError and other
        SQLAlchemy errors propagate so the caller can roll back just that row.
        """
        session = ClassSession(**kwargs)
        self.db.add(session)
        self.db.flush()
        return session

    def list_sessions(
        self,
        *,
        start_from: Optional[datetime] = None,
        start_before: Optional[datetime] = None,
        studio: Optional[str] = None,
        workshop_id: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = 500,
    ) -> List[ClassSession]:
        query = self._apply_eager_loading(self.db.query(ClassSession))
        if start_from is not None:
            query = query.filter(ClassSession.start >= start_from)
        if start_before is not None:
            query = query.filter(ClassSession.start < start_before)
        if studio:
            query = query.filter(ClassSession.studio == studio)
        if workshop_id:
            query = query.filter(ClassSession.workshop_id == workshop_id)
        if status:
            query = query.filter(ClassSession.status == status)
        return self._execute_query(
            query.order_by(ClassSession.start, ClassSession.studio).limit(limit)
        )

    def reserve_seats(self, session_id: str, seats: int) -> bool:
        """
        Atomically add ``seats`` to booked_count if they fit.

        Flips status to ``full`` when the session reaches capacity. Cancelled
        sessions never accept seats.

        Returns:
            True when the row was updated, False when capacity or status refused it
        """
        new_count = ClassSession.booked_count + seats
        stmt = (
            update(ClassSession)
            .where(
                ClassSession.id == session_id,
                ClassSession.status != SessionStatus.CANCELLED.value,
                new_count <= ClassSession.capacity,
            )
            .values(
                booked_count=new_count,
                status=case(
                    (new_count >= ClassSession.capacity, SessionStatus.FULL.value),
                    else_=ClassSession.status,
                ),
            )
            .execution_options(synchronize_session=False)
        )
        return self._execute_counter_update(stmt, session_id) == 1

    def release_seats(self, session_id: str, seats: int) -> bool:
        """
        Atomically give back ``seats``, never dropping below zero.

        A ``full`` session returns to ``scheduled``; a cancelled one stays cancelled.
        """
        new_count = case(
            (ClassSession.booked_count - seats < 0, 0),
            else_=ClassSession.booked_count - seats,
        )
        stmt = (
            update(ClassSession)
            .where(ClassSession.id == session_id)
            .values(
                booked_count=new_count,
                status=case(
                    (
                        ClassSession.status == SessionStatus.FULL.value,
                        SessionStatus.SCHEDULED.value,
                    ),
                    else_=ClassSession.status,
                ),
            )
            .execution_options(synchronize_session=False)
        )
        return self._execute_counter_update(stmt, session_id) == 1

    def set_capacity(self, session_id: str, capacity: int) -> bool:
        """
        Atomically change capacity if the seats already booked still fit.

        Status is recomputed from the new capacity: ``full`` when no seat is
        left, ``scheduled`` otherwise. Cancelled sessions are left untouched.
        """
        stmt = (
            update(ClassSession)
            .where(
                ClassSession.id == session_id,
                ClassSession.status != SessionStatus.CANCELLED.value,
                ClassSession.booked_count <= capacity,
            )
            .values(
                capacity=capacity,
                status=case(
                    (ClassSession.booked_count >= capacity, SessionStatus.FULL.value),
                    else_=SessionStatus.SCHEDULED.value,
                ),
            )
            .execution_options(synchronize_session=False)
        )
        return self._execute_counter_update(stmt, session_id) == 1

    def mark_cancelled(self, session_id: str) -> bool:
        """Flip a session to ``cancelled``; False when it already was."""
        stmt = (
            update(ClassSession)
            .where(
                ClassSession.id == session_id,
                ClassSession.status != SessionStatus.CANCELLED.value,
            )
            .values(status=SessionStatus.CANCELLED.value)
            .execution_options(synchronize_session=False)
        )
        return self._execute_counter_update(stmt, session_id) == 1

    def _execute_counter_update(self, stmt, session_id: str) -> int:
        try:
            result = self.db.execute(stmt)
        except SQLAlchemyError as e:
            self.logger.error(f"Error updating seat counter for session {session_id}: {str(e)}")
            raise RepositoryException(f"Failed to update session seats: {str(e)}")
        # The UPDATE bypassed the identity map; drop stale counter values
        cached = self.db.identity_map.get(identity_key(ClassSession, session_id))
        if cached is not None:
            self.db.expire(cached, ["booked_count", "capacity", "status"])
        return int(result.rowcount or 0)
