# backend/app/services/scheduling/__init__.py
"""
Pure scheduling engine.

- recurrence: expand recurring rules into occurrences
- manual_grid: replay the admin weekly grid into occurrences
- compositor: merge both into one ordered schedule and detect studio clashes

Nothing in this package touches the database; ScheduleService feeds it
detached values loaded through repositories.
"""

from app.services.scheduling.compositor import compose_schedule, find_studio_conflicts
from app.services.scheduling.manual_grid import (
    DAY_NAMES,
    DEFAULT_WEEK_KEY,
    GridCell,
    GridFormatError,
    WeeklyGridTemplate,
    normalize_day,
    normalize_slot,
    resolve_grid,
)
from app.services.scheduling.occurrence import (
    DEFAULT_DURATION_MINUTES,
    Occurrence,
    RuleDefinition,
    StudioConflict,
    WorkshopInfo,
)
from app.services.scheduling.recurrence import (
    RuleParseError,
    build_weekly_rrule,
    expand_rule,
    expand_rules,
    parse_start_time,
    rule_weekdays,
    validate_rrule,
)

__all__ = [
    "DAY_NAMES",
    "DEFAULT_DURATION_MINUTES",
    "DEFAULT_WEEK_KEY",
    "GridCell",
    "GridFormatError",
    "Occurrence",
    "RuleDefinition",
    "RuleParseError",
    "StudioConflict",
    "WeeklyGridTemplate",
    "WorkshopInfo",
    "build_weekly_rrule",
    "compose_schedule",
    "expand_rule",
    "expand_rules",
    "find_studio_conflicts",
    "normalize_day",
    "normalize_slot",
    "parse_start_time",
    "resolve_grid",
    "rule_weekdays",
    "validate_rrule",
]
