# backend/app/services/schedule_service.py
"""
Schedule Service for the resort platform.

Builds the read-only class schedule for a date window by feeding the pure
scheduling engine with rules, the manual grid and workshop details loaded
through repositories. Also owns admin edits of the manual weekly grid.

Nothing here writes sessions; see SessionMaterializer for that.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import ValidationException
from ..core.timezone_utils import get_resort_today
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .scheduling import (
    DAY_NAMES,
    DEFAULT_WEEK_KEY,
    GridFormatError,
    Occurrence,
    RuleDefinition,
    StudioConflict,
    WeeklyGridTemplate,
    WorkshopInfo,
    compose_schedule,
    expand_rules,
    find_studio_conflicts,
    normalize_day,
    normalize_slot,
    resolve_grid,
    rule_weekdays,
)

logger = logging.getLogger(__name__)

MAX_SCHEDULE_WINDOW_DAYS = 366


@dataclass(frozen=True)
class ScheduleResult:
    window_start: date
    window_end: date
    occurrences: Tuple[Occurrence, ...]
    conflicts: Tuple[StudioConflict, ...] = ()
    skipped_rule_ids: Tuple[str, ...] = ()


@dataclass(frozen=True)
class GridView:
    """A weekly grid as shown to admins; ``persisted`` is False for a seeded draft."""

    week_key: str
    grid: Dict[str, Dict[str, Dict[str, str]]] = field(default_factory=dict)
    persisted: bool = True


class ScheduleService(BaseService):
    """
    Service layer for schedule reads and manual grid edits.
    """

    def __init__(
        self,
        db: Session,
        rule_repository=None,
        grid_repository=None,
        workshop_repository=None,
    ):
        super().__init__(db)
        self.rule_repository = rule_repository or RepositoryFactory.create_recurring_rule_repository(db)
        self.grid_repository = grid_repository or RepositoryFactory.create_weekly_grid_repository(db)
        self.workshop_repository = (
            workshop_repository or RepositoryFactory.create_workshop_repository(db)
        )

    @staticmethod
    def validate_window(window_start: date, window_end: date) -> None:
        if window_start > window_end:
            raise ValidationException(
                "'from' must be on or before 'to'",
                code="INVALID_WINDOW",
                details={"from": window_start.isoformat(), "to": window_end.isoformat()},
            )
        if (window_end - window_start).days >= MAX_SCHEDULE_WINDOW_DAYS:
            raise ValidationException(
                f"Schedule window cannot exceed {MAX_SCHEDULE_WINDOW_DAYS} days",
                code="INVALID_WINDOW",
            )

    @BaseService.measure_operation("get_schedule")
    def get_schedule(
        self,
        window_start: date,
        window_end: date,
        week_key: str = DEFAULT_WEEK_KEY,
    ) -> ScheduleResult:
        """
        Compute every class occurrence in [window_start, window_end].

        Args:
            window_start: First calendar day (inclusive)
            window_end: Last calendar day (inclusive)
            week_key: Which manual grid to replay

        Returns:
            ScheduleResult with occurrences sorted by (start, studio) and any
            studio double-bookings between them

        Raises:
            ValidationException: If the window is inverted or too long
        """
        self.validate_window(window_start, window_end)

        rules = [
            RuleDefinition.from_model(rule)
            for rule in self.rule_repository.list_active(window_start, window_end)
        ]
        skipped: List[str] = []
        recurring = expand_rules(rules, window_start, window_end, skipped=skipped)

        template = self.grid_repository.get(week_key) or WeeklyGridTemplate.empty(week_key)
        manual = resolve_grid(
            template,
            window_start,
            window_end,
            self._workshop_lookup(
                (cell.workshop_id for cell in template.cells), active_only=True
            ),
            timezone=settings.resort_timezone,
            default_duration=settings.default_class_duration_minutes,
        )

        occurrences = compose_schedule(recurring, manual)
        conflicts = find_studio_conflicts(occurrences)
        if conflicts:
            logger.warning(
                f"Schedule has {len(conflicts)} studio conflict(s)",
                extra={
                    "window_start": window_start.isoformat(),
                    "window_end": window_end.isoformat(),
                    "studios": sorted({c.studio for c in conflicts}),
                },
            )

        return ScheduleResult(
            window_start=window_start,
            window_end=window_end,
            occurrences=tuple(occurrences),
            conflicts=tuple(conflicts),
            skipped_rule_ids=tuple(skipped),
        )

    def _workshop_lookup(self, keys, active_only: bool = False) -> Dict[str, WorkshopInfo]:
        """
        Workshop details keyed by both id and slug.

        Grid edits may reference inactive workshops; schedule resolution may not.
        """
        lookup: Dict[str, WorkshopInfo] = {}
        for workshop in self.workshop_repository.get_by_keys(list(keys), active_only=active_only):
            info = WorkshopInfo.from_model(workshop)
            lookup[info.id] = info
            if info.slug:
                lookup[info.slug] = info
        return lookup

    # Manual grid administration

    def get_grid(self, week_key: str = DEFAULT_WEEK_KEY) -> GridView:
        """
        Return the stored grid, or a draft seeded from active recurring rules.

        The draft is never persisted; saving it is an explicit admin action.
        """
        template = self.grid_repository.get(week_key)
        if template is not None:
            return GridView(week_key=week_key, grid=template.to_mapping(), persisted=True)
        return GridView(week_key=week_key, grid=self._seed_from_rules(), persisted=False)

    def _seed_from_rules(self) -> Dict[str, Dict[str, Dict[str, str]]]:
        template = WeeklyGridTemplate.empty()
        for rule in self.rule_repository.list_active():
            try:
                slot = normalize_slot(rule.start_time[:5])
            except GridFormatError:
                continue
            for weekday in rule_weekdays(rule.rrule):
                template = template.with_cell(
                    DAY_NAMES[weekday], slot, rule.studio or settings.default_studio, rule.workshop_id
                )
        return template.to_mapping()

    @BaseService.measure_operation("save_grid")
    def save_grid(
        self,
        grid: Mapping[str, Any],
        week_key: str = DEFAULT_WEEK_KEY,
        updated_by: Optional[str] = None,
    ) -> GridView:
        """
        Replace the weekly grid wholesale.

        Keys are normalized ("mon" -> "Monday", "9:00" -> "09:00") and every
        filled cell must reference an existing workshop.

        Raises:
            ValidationException: On malformed keys or unknown workshops
        """
        template = WeeklyGridTemplate.empty(week_key)
        try:
            for day, slots in (grid or {}).items():
                if not isinstance(slots, Mapping):
                    raise GridFormatError(f"Day {day!r} must map time slots to studios")
                for slot, studios in slots.items():
                    if not isinstance(studios, Mapping):
                        raise GridFormatError(f"Slot {day} {slot} must map studios to workshops")
                    for studio, workshop_id in studios.items():
                        template = template.with_cell(day, slot, studio, workshop_id)
        except GridFormatError as exc:
            raise ValidationException(str(exc), code="INVALID_GRID") from exc

        self._ensure_workshops_exist(template)

        with self.transaction():
            saved = self.grid_repository.save(week_key, template, updated_by=updated_by)

        self.log_operation("save_grid", week_key=week_key, cells=len(saved.cells))
        return GridView(week_key=week_key, grid=saved.to_mapping(), persisted=True)

    @BaseService.measure_operation("update_grid_cell")
    def update_cell(
        self,
        day: str,
        slot: str,
        studio: str,
        workshop_id: Optional[str],
        week_key: str = DEFAULT_WEEK_KEY,
        updated_by: Optional[str] = None,
    ) -> GridView:
        """Set or clear (empty workshop_id) a single grid cell."""
        current = self.grid_repository.get(week_key) or WeeklyGridTemplate.empty(week_key)
        try:
            updated = current.with_cell(day, slot, studio, workshop_id)
        except GridFormatError as exc:
            raise ValidationException(str(exc), code="INVALID_GRID") from exc

        if workshop_id:
            self._ensure_workshops_exist(
                WeeklyGridTemplate.empty(week_key).with_cell(day, slot, studio, workshop_id)
            )

        with self.transaction():
            saved = self.grid_repository.save(week_key, updated, updated_by=updated_by)

        self.log_operation(
            "update_grid_cell",
            week_key=week_key,
            day=normalize_day(day),
            slot=normalize_slot(slot),
            studio=studio,
            workshop_id=workshop_id or None,
        )
        return GridView(week_key=week_key, grid=saved.to_mapping(), persisted=True)

    def _ensure_workshops_exist(self, template: WeeklyGridTemplate) -> None:
        referenced = {cell.workshop_id for cell in template.cells}
        if not referenced:
            return
        known = self._workshop_lookup(referenced)
        missing = sorted(ref for ref in referenced if ref not in known)
        if missing:
            raise ValidationException(
                "Grid references unknown workshops",
                code="UNKNOWN_WORKSHOP",
                details={"workshop_ids": missing},
            )


def default_window(days: Optional[int] = None, today: Optional[date] = None) -> Tuple[date, date]:
    """(today, today + days - 1) on the resort calendar."""
    first = today or get_resort_today()
    span = days if days is not None else settings.materialize_window_days
    return first, first + timedelta(days=max(span, 1) - 1)
