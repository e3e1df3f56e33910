# backend/app/repositories/recurring_rule_repository.py
"""
RecurringRule Repository for the resort platform.
"""

from datetime import date
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload

from ..core.exceptions import RepositoryException
from ..models.recurring_rule import RecurringRule
from ..models.workshop import Workshop
from .base_repository import BaseRepository


class RecurringRuleRepository(BaseRepository[RecurringRule]):
    def __init__(self, db: Session):
        super().__init__(db, RecurringRule)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(joinedload(RecurringRule.workshop))

    def list_rules(self, workshop_id: Optional[str] = None) -> List[RecurringRule]:
        query = self._apply_eager_loading(self.db.query(RecurringRule))
        if workshop_id:
            query = query.filter(RecurringRule.workshop_id == workshop_id)
        return self._execute_query(query.order_by(RecurringRule.created_at, RecurringRule.id))

    def list_active(
        self, window_start: Optional[date] = None, window_end: Optional[date] = None
    ) -> List[RecurringRule]:
        """
        Active rules of active workshops, optionally limited to those whose
        effective range touches the window.
        """
        try:
            query = (
                self._apply_eager_loading(self.db.query(RecurringRule))
                .join(Workshop, RecurringRule.workshop_id == Workshop.id)
                .filter(RecurringRule.is_active.is_(True), Workshop.is_active.is_(True))
            )
            if window_end is not None:
                query = query.filter(RecurringRule.effective_from <= window_end)
            if window_start is not None:
                query = query.filter(
                    or_(
                        RecurringRule.effective_to.is_(None),
                        RecurringRule.effective_to >= window_start,
                    )
                )
            return query.order_by(RecurringRule.id).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing active recurring rules: {str(e)}")
            raise RepositoryException(f"Failed to list recurring rules: {str(e)}")
