# backend/app/services/scheduling/manual_grid.py
"""
Manual weekly grid.

The admin grid is a standing weekly template:

    {"Monday": {"09:00": {"Studio A": "<workshop id>", "Studio B": ""}}}

``WeeklyGridTemplate`` is the immutable in-memory form. Edits return a new
template; the repository persists whole templates. ``resolve_grid`` replays
the template over every calendar day of a window.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
import logging
import re
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

import pytz

from app.models.session import OccurrenceSource

from .occurrence import DEFAULT_DURATION_MINUTES, Occurrence, WorkshopInfo

logger = logging.getLogger(__name__)

DEFAULT_WEEK_KEY = "default"

DAY_NAMES: Tuple[str, ...] = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)
_DAY_LOOKUP = {
    **{name.lower(): name for name in DAY_NAMES},
    **{name[:3].lower(): name for name in DAY_NAMES},
}
_SLOT_PATTERN = re.compile(r"^(\d{1,2})(?::(\d{2}))?$")


class GridFormatError(ValueError):
    """A grid key or value has an unusable shape."""


def normalize_day(value: str) -> str:
    """Return the canonical day name ("Monday") for "monday", "MON", "Mon"."""
    name = _DAY_LOOKUP.get((value or "").strip().lower())
    if name is None:
        raise GridFormatError(f"Unknown day: {value!r}")
    return name


def normalize_slot(value: str) -> str:
    """Return a zero-padded "HH:MM" slot key for "9:00", "09:00" or "9"."""
    match = _SLOT_PATTERN.match(str(value or "").strip())
    if not match:
        raise GridFormatError(f"Invalid time slot: {value!r}")
    hour, minute = int(match.group(1)), int(match.group(2) or 0)
    if hour > 23 or minute > 59:
        raise GridFormatError(f"Invalid time slot: {value!r}")
    return f"{hour:02d}:{minute:02d}"


@dataclass(frozen=True)
class GridCell:
    day: str
    slot: str
    studio: str
    workshop_id: str


@dataclass(frozen=True)
class WeeklyGridTemplate:
    """
    Immutable weekly grid.

    Only filled cells are kept. Day and slot keys are stored exactly as they
    arrived so a malformed key can be reported (and skipped) when the grid is
    resolved rather than silently rewritten.
    """

    week_key: str = DEFAULT_WEEK_KEY
    cells: Tuple[GridCell, ...] = ()

    @classmethod
    def empty(cls, week_key: str = DEFAULT_WEEK_KEY) -> "WeeklyGridTemplate":
        return cls(week_key=week_key, cells=())

    @classmethod
    def from_mapping(
        cls, grid: Optional[Mapping[str, Any]], week_key: str = DEFAULT_WEEK_KEY
    ) -> "WeeklyGridTemplate":
        cells: List[GridCell] = []
        for day, slots in (grid or {}).items():
            if not isinstance(slots, Mapping):
                continue
            for slot, studios in slots.items():
                if not isinstance(studios, Mapping):
                    continue
                for studio, value in studios.items():
                    workshop_id = str(value).strip() if value is not None else ""
                    if workshop_id:
                        cells.append(GridCell(str(day), str(slot), str(studio), workshop_id))
        return cls(week_key=week_key, cells=tuple(cells))

    def to_mapping(self) -> Dict[str, Dict[str, Dict[str, str]]]:
        grid: Dict[str, Dict[str, Dict[str, str]]] = {}
        for cell in self.cells:
            grid.setdefault(cell.day, {}).setdefault(cell.slot, {})[cell.studio] = cell.workshop_id
        return grid

    def with_cell(
        self, day: str, slot: str, studio: str, workshop_id: Optional[str]
    ) -> "WeeklyGridTemplate":
        """
        Return a new template with one cell set (or cleared when workshop_id is empty).

        Raises:
            GridFormatError: If day or slot is malformed
        """
        day_key = normalize_day(day)
        slot_key = normalize_slot(slot)
        studio_key = (studio or "").strip()
        if not studio_key:
            raise GridFormatError("Studio is required")

        kept = tuple(
            cell
            for cell in self.cells
            if not (
                _same_day(cell.day, day_key)
                and _same_slot(cell.slot, slot_key)
                and cell.studio == studio_key
            )
        )
        value = (workshop_id or "").strip()
        if value:
            kept = kept + (GridCell(day_key, slot_key, studio_key, value),)
        return WeeklyGridTemplate(week_key=self.week_key, cells=kept)

    def cells_for_day(self, day_name: str) -> Iterator[GridCell]:
        for cell in self.cells:
            if _same_day(cell.day, day_name):
                yield cell

    @property
    def is_empty(self) -> bool:
        return not self.cells


def _same_day(raw: str, canonical: str) -> bool:
    try:
        return normalize_day(raw) == canonical
    except GridFormatError:
        return False


def _same_slot(raw: str, canonical: str) -> bool:
    try:
        return normalize_slot(raw) == canonical
    except GridFormatError:
        return False


def _iter_days(window_start: date, window_end: date) -> Iterator[date]:
    current = window_start
    while current <= window_end:
        yield current
        current += timedelta(days=1)


def resolve_grid(
    template: WeeklyGridTemplate,
    window_start: date,
    window_end: date,
    workshops: Mapping[str, WorkshopInfo],
    *,
    timezone: str = "Asia/Jerusalem",
    default_duration: int = DEFAULT_DURATION_MINUTES,
) -> List[Occurrence]:
    """
    Replay the weekly template over each calendar day in the window.

    Args:
        template: Grid to replay
        window_start: First calendar day (inclusive)
        window_end: Last calendar day (inclusive)
        workshops: Workshop lookup keyed by id (slug keys are accepted too)
        timezone: Wall-clock zone for the slot times
        default_duration: Minutes used when a workshop has no duration

    Returns:
        One ``source=manual`` occurrence per filled cell per matching day.
        Cells that point at unknown workshops or carry malformed keys are
        logged and skipped.
    """
    if window_start > window_end:
        raise ValueError("window_start must be on or before window_end")
    if template.is_empty:
        return []

    tz = pytz.timezone(timezone)
    reported: set[Tuple[str, str, str]] = set()

    def _skip(cell: GridCell, reason: str) -> None:
        key = (cell.day, cell.slot, cell.studio)
        if key in reported:
            return
        reported.add(key)
        logger.warning(
            f"Skipping manual grid cell {cell.day} {cell.slot} {cell.studio}: {reason}",
            extra={"week_key": template.week_key, "workshop_id": cell.workshop_id},
        )

    occurrences: List[Occurrence] = []
    for current in _iter_days(window_start, window_end):
        day_name = DAY_NAMES[current.weekday()]
        for cell in template.cells_for_day(day_name):
            try:
                slot = normalize_slot(cell.slot)
            except GridFormatError as exc:
                _skip(cell, str(exc))
                continue

            workshop = workshops.get(cell.workshop_id)
            if workshop is None:
                _skip(cell, "workshop not found")
                continue

            duration = workshop.duration_minutes
            if not duration or duration <= 0:
                duration = default_duration

            hour, minute = (int(part) for part in slot.split(":"))
            local_naive = datetime(current.year, current.month, current.day, hour, minute)
            start = tz.normalize(tz.localize(local_naive))
            end = tz.normalize(start + timedelta(minutes=duration))
            occurrences.append(
                Occurrence(
                    source=OccurrenceSource.MANUAL.value,
                    workshop_id=workshop.id,
                    studio=cell.studio,
                    start=start,
                    end=end,
                    timezone=timezone,
                    title=workshop.title,
                )
            )

    # Malformed day keys never match a weekday; surface them once
    for cell in template.cells:
        try:
            normalize_day(cell.day)
        except GridFormatError as exc:
            _skip(cell, str(exc))

    return occurrences
