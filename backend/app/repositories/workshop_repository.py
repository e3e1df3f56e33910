# backend/app/repositories/workshop_repository.py
"""
Workshop Repository for the resort platform.

Read access to the class catalog used by the scheduling engine.
"""

from typing import Iterable, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.workshop import Workshop
from .base_repository import BaseRepository


class WorkshopRepository(BaseRepository[Workshop]):
    def __init__(self, db: Session):
        super().__init__(db, Workshop)

    def get_by_ids(self, ids: Iterable[str]) -> List[Workshop]:
        id_list = [i for i in set(ids) if i]
        if not id_list:
            return []
        try:
            return self.db.query(Workshop).filter(Workshop.id.in_(id_list)).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading workshops {id_list}: {str(e)}")
            raise RepositoryException(f"Failed to load workshops: {str(e)}")

    def get_by_keys(self, keys: Iterable[str], active_only: bool = False) -> List[Workshop]:
        """Load workshops referenced either by id or by slug."""
        key_list = [k for k in set(keys) if k]
        if not key_list:
            return []
        try:
            query = self.db.query(Workshop).filter(
                (Workshop.id.in_(key_list)) | (Workshop.slug.in_(key_list))
            )
            if active_only:
                query = query.filter(Workshop.is_active.is_(True))
            return query.all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading workshops by key: {str(e)}")
            raise RepositoryException(f"Failed to load workshops: {str(e)}")
