# backend/app/repositories/factory.py
"""
Repository Factory for the resort platform.

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from .base_repository import BaseRepository

# Avoid circular imports
if TYPE_CHECKING:
    from .booking_repository import BookingRepository
    from .recurring_rule_repository import RecurringRuleRepository
    from .retreat_repository import RetreatRepository
    from .room_type_repository import RoomTypeRepository
    from .session_repository import SessionRepository
    from .weekly_grid_repository import WeeklyGridRepository
    from .workshop_repository import WorkshopRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Centralizes repository creation to ensure consistent initialization
    and makes it easy to swap implementations if needed.
    """

    @staticmethod
    def create_base_repository(db: Session, model) -> BaseRepository:
        """Create a generic base repository for any model."""
        return BaseRepository(db, model)

    @staticmethod
    def create_workshop_repository(db: Session) -> "WorkshopRepository":
        from .workshop_repository import WorkshopRepository

        return WorkshopRepository(db)

    @staticmethod
    def create_recurring_rule_repository(db: Session) -> "RecurringRuleRepository":
        from .recurring_rule_repository import RecurringRuleRepository

        return RecurringRuleRepository(db)

    @staticmethod
    def create_weekly_grid_repository(db: Session) -> "WeeklyGridRepository":
        from .weekly_grid_repository import WeeklyGridRepository

        return WeeklyGridRepository(db)

    @staticmethod
    def create_session_repository(db: Session) -> "SessionRepository":
        from .session_repository import SessionRepository

        return SessionRepository(db)

    @staticmethod
    def create_room_type_repository(db: Session) -> "RoomTypeRepository":
        from .room_type_repository import RoomTypeRepository

        return RoomTypeRepository(db)

    @staticmethod
    def create_retreat_repository(db: Session) -> "RetreatRepository":
        from .retreat_repository import RetreatRepository

        return RetreatRepository(db)

    @staticmethod
    def create_booking_repository(db: Session) -> "BookingRepository":
        from .booking_repository import BookingRepository

        return BookingRepository(db)
