# backend/tests/repositories/test_weekly_grid_repository.py
"""
Tests for WeeklyGridRepository.

Saving replaces the grid wholesale and leaves transaction control to the
calling service.
"""

from unittest.mock import Mock

import pytest
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import RepositoryException
from app.repositories.weekly_grid_repository import WeeklyGridRepository
from app.services.scheduling.manual_grid import WeeklyGridTemplate


def test_save_then_get_returns_the_same_cells(db, make_workshop):
    yoga = make_workshop(slug="yoga")
    repository = WeeklyGridRepository(db)
    grid = WeeklyGridTemplate.empty().with_cell("Monday", "07:30", "Studio A", yoga.id)

    repository.save("default", grid)
    db.commit()

    stored = repository.get("default")
    assert stored is not None
    assert stored.to_mapping() == grid.to_mapping()


def test_get_unknown_key_is_none(db):
    assert WeeklyGridRepository(db).get("never-saved") is None


def test_failed_save_raises_without_rolling_back_the_caller():
    session = Mock(spec=Session)
    session.get.return_value = None
    session.flush.side_effect = SQLAlchemyError("disk full")
    repository = WeeklyGridRepository(session)

    with pytest.raises(RepositoryException):
        repository.save("default", WeeklyGridTemplate.empty())

    session.rollback.assert_not_called()
    session.commit.assert_not_called()
