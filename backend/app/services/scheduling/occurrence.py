# backend/app/services/scheduling/occurrence.py
"""
Value types shared by the scheduling engine.

Everything here is immutable. The expander, the grid resolver and the
compositor only ever build new values, which keeps them pure and safe to
share across requests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, FrozenSet, Optional

DEFAULT_DURATION_MINUTES = 60
UNASSIGNED_STUDIO = "Unassigned"


@dataclass(frozen=True)
class Occurrence:
    """
    One computed instance of a class at a concrete time in a studio.

    ``start`` and ``end`` are timezone-aware and expressed in the wall-clock
    zone the occurrence was generated in, so ``date``/``time`` read the way
    the front desk sees them.
    """

    source: str
    workshop_id: str
    studio: str
    start: datetime
    end: datetime
    timezone: str
    title: str = ""
    rule_id: Optional[str] = None

    def __post_init__(self) -> None:
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise ValueError("Occurrence start/end must be timezone-aware")
        if self.end <= self.start:
            raise ValueError("Occurrence end must be after start")

    @property
    def date(self) -> str:
        return self.start.strftime("%Y-%m-%d")

    @property
    def time(self) -> str:
        return self.start.strftime("%H:%M")

    @property
    def start_utc(self) -> datetime:
        return self.start.astimezone(timezone.utc)

    @property
    def end_utc(self) -> datetime:
        return self.end.astimezone(timezone.utc)

    @property
    def duration_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "date": self.date,
            "time": self.time,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "duration_minutes": self.duration_minutes,
            "studio": self.studio,
            "workshop_id": self.workshop_id,
            "rule_id": self.rule_id,
            "title": self.title,
            "timezone": self.timezone,
        }


@dataclass(frozen=True)
class WorkshopInfo:
    """The catalog fields the scheduling engine needs from a workshop."""

    id: str
    title: str
    duration_minutes: Optional[int] = None
    capacity: Optional[int] = None
    slug: Optional[str] = None

    @classmethod
    def from_model(cls, workshop: Any) -> "WorkshopInfo":
        return cls(
            id=workshop.id,
            title=workshop.title,
            duration_minutes=workshop.duration_minutes,
            capacity=workshop.capacity,
            slug=workshop.slug,
        )


@dataclass(frozen=True)
class RuleDefinition:
    """Detached, immutable copy of a RecurringRule row."""

    id: Optional[str]
    workshop_id: str
    start_time: str
    rrule: str
    effective_from: date
    effective_to: Optional[date] = None
    studio: str = "Studio A"
    timezone: str = "Asia/Jerusalem"
    duration_minutes: int = DEFAULT_DURATION_MINUTES
    exceptions: FrozenSet[str] = field(default_factory=frozenset)
    title: str = ""

    @classmethod
    def from_model(cls, rule: Any) -> "RuleDefinition":
        workshop = getattr(rule, "workshop", None)
        return cls(
            id=rule.id,
            workshop_id=rule.workshop_id,
            start_time=rule.start_time,
            rrule=rule.rrule,
            effective_from=rule.effective_from,
            effective_to=rule.effective_to,
            studio=rule.studio,
            timezone=rule.timezone,
            duration_minutes=rule.duration_minutes,
            exceptions=frozenset(str(d) for d in (rule.exceptions or [])),
            title=workshop.title if workshop is not None else "",
        )


@dataclass(frozen=True)
class StudioConflict:
    """Two or more occurrences that claim the same studio at overlapping times."""

    studio: str
    occurrences: tuple[Occurrence, ...]

    @property
    def start(self) -> datetime:
        return min(o.start_utc for o in self.occurrences)

    @property
    def end(self) -> datetime:
        return max(o.end_utc for o in self.occurrences)

    @property
    def sources(self) -> FrozenSet[str]:
        return frozenset(o.source for o in self.occurrences)
