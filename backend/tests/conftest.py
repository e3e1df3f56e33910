# backend/tests/conftest.py
"""
Pytest configuration for the resort backend.

Every test gets its own SQLite database file, created from the models,
with SAVEPOINT support switched on so the session materializer can roll
back single rows. Redis is never contacted: the inventory lock falls back
to "acquired" exactly as it does when Redis is down.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Callable
from unittest.mock import Mock

from fastapi.testclient import TestClient
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from app.api.dependencies import get_db
from app.database import Base, enable_sqlite_savepoints
import app.models  # noqa: F401
from app.models.recurring_rule import RecurringRule
from app.models.retreat import Retreat
from app.models.room_type import RoomType
from app.models.session import ClassSession, OccurrenceSource, SessionStatus
from app.models.treatment import Treatment
from app.models.workshop import Workshop


@pytest.fixture(autouse=True)
def _no_redis(monkeypatch):
    monkeypatch.setattr("app.core.inventory_lock._get_sync_redis", lambda: None)


@pytest.fixture
def engine(tmp_path):
    test_engine = create_engine(
        f"sqlite+pysqlite:///{tmp_path / 'resort.db'}",
        future=True,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_savepoints(test_engine)
    Base.metadata.create_all(test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory) -> Session:
    """Database session for one test."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    """TestClient whose requests each get a fresh session on the test database."""
    from app.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def notifier() -> Mock:
    """Stand-in for the guest notification sender."""
    return Mock()


# ============================================================================
# Factories
# ============================================================================


def _persist(db: Session, obj: Any) -> Any:
    db.add(obj)
    db.commit()
    return obj


@pytest.fixture
def make_workshop(db) -> Callable[..., Workshop]:
    counter = {"n": 0}

    def _make(**overrides: Any) -> Workshop:
        counter["n"] += 1
        fields = {
            "slug": f"workshop-{counter['n']}",
            "title": f"Workshop {counter['n']}",
            "duration_minutes": 60,
            "capacity": 12,
            "price": Decimal("40.00"),
            "is_active": True,
        }
        fields.update(overrides)
        return _persist(db, Workshop(**fields))

    return _make


@pytest.fixture
def make_rule(db) -> Callable[..., RecurringRule]:
    def _make(workshop: Workshop, **overrides: Any) -> RecurringRule:
        fields = {
            "workshop_id": workshop.id,
            "studio": "Studio A",
            "timezone": "Asia/Jerusalem",
            "start_time": "18:00",
            "duration_minutes": 60,
            "rrule": "FREQ=WEEKLY;BYDAY=MO,WE",
            "effective_from": date(2025, 10, 1),
            "effective_to": None,
            "exceptions": [],
            "is_active": True,
        }
        fields.update(overrides)
        return _persist(db, RecurringRule(**fields))

    return _make


@pytest.fixture
def make_session(db) -> Callable[..., ClassSession]:
    def _make(workshop: Workshop, **overrides: Any) -> ClassSession:
        start = overrides.pop("start", datetime(2025, 10, 6, 15, 0, tzinfo=timezone.utc))
        fields = {
            "workshop_id": workshop.id,
            "studio": "Studio A",
            "start": start,
            "end": start + timedelta(minutes=60),
            "timezone": "Asia/Jerusalem",
            "title": workshop.title,
            "capacity": 1,
            "booked_count": 0,
            "status": SessionStatus.SCHEDULED.value,
            "source": OccurrenceSource.RECURRING.value,
        }
        fields.update(overrides)
        return _persist(db, ClassSession(**fields))

    return _make


@pytest.fixture
def make_room_type(db) -> Callable[..., RoomType]:
    counter = {"n": 0}

    def _make(**overrides: Any) -> RoomType:
        counter["n"] += 1
        fields = {
            "slug": f"room-{counter['n']}",
            "title": f"Room {counter['n']}",
            "max_guests": 2,
            "price_base": Decimal("100.00"),
            "currency": "USD",
            "stock": 2,
            "active": True,
        }
        fields.update(overrides)
        return _persist(db, RoomType(**fields))

    return _make


@pytest.fixture
def make_retreat(db) -> Callable[..., Retreat]:
    def _make(**overrides: Any) -> Retreat:
        fields = {
            "name": "Silent Week",
            "type": "meditation",
            "start_date": date(2025, 11, 10),
            "end_date": date(2025, 11, 14),
            "capacity": 10,
            "price": Decimal("900.00"),
            "is_closed": False,
            "sold_out": False,
            "is_active": True,
        }
        fields.update(overrides)
        return _persist(db, Retreat(**fields))

    return _make


@pytest.fixture
def make_treatment(db) -> Callable[..., Treatment]:
    def _make(**overrides: Any) -> Treatment:
        fields = {
            "title": "Deep Tissue Massage",
            "duration_minutes": 50,
            "price": Decimal("85.00"),
            "is_active": True,
        }
        fields.update(overrides)
        return _persist(db, Treatment(**fields))

    return _make
