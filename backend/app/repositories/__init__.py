# backend/app/repositories/__init__.py
"""
Repository layer for the resort platform.

Repositories own every query and every write; services never touch the
session directly except to commit or roll back.

Key Components:
- BaseRepository: Generic CRUD shared by all repositories
- RepositoryFactory: Creates repository instances for services
- SessionRepository / RetreatRepository: Seat counters via conditional UPDATEs
- BookingRepository: Room overlap counts and guarded status transitions
- WeeklyGridRepository: Stores the manual weekly grid as JSON

Usage:
    from app.repositories import RepositoryFactory

    repository = RepositoryFactory.create_session_repository(db)
    if not repository.reserve_seats(session_id, 2):
        ...
"""

from .base_repository import BaseRepository, IRepository
from .booking_repository import BookingRepository
from .factory import RepositoryFactory
from .recurring_rule_repository import RecurringRuleRepository
from .retreat_repository import RetreatRepository
from .room_type_repository import RoomTypeRepository
from .session_repository import SessionRepository
from .weekly_grid_repository import WeeklyGridRepository
from .workshop_repository import WorkshopRepository

__all__ = [
    "BaseRepository",
    "IRepository",
    "RepositoryFactory",
    "BookingRepository",
    "RecurringRuleRepository",
    "RetreatRepository",
    "RoomTypeRepository",
    "SessionRepository",
    "WeeklyGridRepository",
    "WorkshopRepository",
]
