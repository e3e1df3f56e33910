# backend/app/services/scheduling/recurrence.py
"""
Recurring rule expansion.

Turns a rule such as "Yoga, Studio A, 18:00 for 60 minutes, every Monday
and Wednesday from 2025-10-01 to 2025-10-31" into concrete occurrences for
a date window.

Rules carry an RFC 5545 RRULE string (``FREQ=WEEKLY;BYDAY=MO,WE``) which is
parsed with python-dateutil. Expansion happens on naive wall-clock times in
the rule's own timezone and each start is localized afterwards, so a class
at 18:00 stays at 18:00 across DST changes.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
import logging
import re
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from dateutil.rrule import rrulestr
import pytz

from app.models.session import OccurrenceSource

from .occurrence import DEFAULT_DURATION_MINUTES, UNASSIGNED_STUDIO, Occurrence, RuleDefinition

logger = logging.getLogger(__name__)

_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")

# Accepted spellings for weekdays, mapped to RRULE BYDAY codes
_WEEKDAY_CODES = ("MO", "TU", "WE", "TH", "FR", "SA", "SU")
_WEEKDAY_ALIASES = {
    **{code.lower(): code for code in _WEEKDAY_CODES},
    "mon": "MO",
    "monday": "MO",
    "tue": "TU",
    "tues": "TU",
    "tuesday": "TU",
    "wed": "WE",
    "wednesday": "WE",
    "thu": "TH",
    "thur": "TH",
    "thurs": "TH",
    "thursday": "TH",
    "fri": "FR",
    "friday": "FR",
    "sat": "SA",
    "saturday": "SA",
    "sun": "SU",
    "sunday": "SU",
}


class RuleParseError(ValueError):
    """A recurring rule cannot be expanded."""


def parse_start_time(value: str) -> time:
    """
    Parse a time-of-day string.

    Args:
        value: "HH:MM" (seconds allowed, single-digit hour allowed)

    Returns:
        The parsed time

    Raises:
        RuleParseError: If the value is not a valid time of day
    """
    match = _TIME_PATTERN.match((value or "").strip())
    if not match:
        raise RuleParseError(f"Invalid start time: {value!r}")
    hour, minute, second = int(match.group(1)), int(match.group(2)), int(match.group(3) or 0)
    if hour > 23 or minute > 59 or second > 59:
        raise RuleParseError(f"Invalid start time: {value!r}")
    return time(hour, minute, second)


def normalize_weekday(value: Union[str, int]) -> str:
    """Map "Mon", "monday", "MO" or 0 (Monday) to the RRULE code "MO"."""
    if isinstance(value, int):
        if 0 <= value <= 6:
            return _WEEKDAY_CODES[value]
        raise RuleParseError(f"Invalid weekday index: {value}")
    code = _WEEKDAY_ALIASES.get(str(value).strip().lower())
    if code is None:
        raise RuleParseError(f"Invalid weekday: {value!r}")
    return code


def build_weekly_rrule(weekdays: Iterable[Union[str, int]], interval: int = 1) -> str:
    """
    Build a weekly RRULE string from a weekday list.

    Weekdays are de-duplicated and emitted Monday first so the same set
    always yields the same string.
    """
    codes = {normalize_weekday(day) for day in weekdays}
    if not codes:
        raise RuleParseError("At least one weekday is required")
    ordered = [code for code in _WEEKDAY_CODES if code in codes]
    parts = ["FREQ=WEEKLY"]
    if interval and interval > 1:
        parts.append(f"INTERVAL={interval}")
    parts.append(f"BYDAY={','.join(ordered)}")
    return ";".join(parts)


def _strip_rrule_prefix(value: str) -> str:
    text = (value or "").strip()
    if text.upper().startswith("RRULE:"):
        text = text[len("RRULE:") :]
    return text


def validate_rrule(value: str) -> str:
    """
    Check that an RRULE string parses.

    Returns:
        The normalized rule body (no ``RRULE:`` prefix)

    Raises:
        RuleParseError: If dateutil rejects the string or it names no weekday
    """
    body = _strip_rrule_prefix(value)
    if not body:
        raise RuleParseError("Empty recurrence rule")
    try:
        rrulestr(body, dtstart=datetime(2000, 1, 3), ignoretz=True)
    except (ValueError, TypeError) as exc:
        raise RuleParseError(f"Invalid recurrence rule {value!r}: {exc}") from exc
    if not rule_weekdays(body):
        raise RuleParseError(f"Recurrence rule {value!r} has no weekday pattern")
    return body


def rule_weekdays(value: str) -> Tuple[int, ...]:
    """
    Weekday indexes (Monday=0) a simple weekly or daily RRULE fires on.

    Ordinal prefixes such as ``+1MO`` are dropped. Frequencies other than
    WEEKLY/DAILY yield an empty tuple.
    """
    parts: Dict[str, str] = {}
    for item in _strip_rrule_prefix(value).split(";"):
        key, _, raw = item.partition("=")
        if key:
            parts[key.strip().upper()] = raw.strip().upper()
    freq = parts.get("FREQ")
    if freq == "DAILY" and "BYDAY" not in parts:
        return tuple(range(7))
    if freq not in ("WEEKLY", "DAILY"):
        return ()
    found = set()
    for token in parts.get("BYDAY", "").split(","):
        code = token.lstrip("+-0123456789")
        if code in _WEEKDAY_CODES:
            found.add(_WEEKDAY_CODES.index(code))
    return tuple(sorted(found))


def _parse_exception_dates(rule: RuleDefinition) -> set[date]:
    parsed: set[date] = set()
    for raw in rule.exceptions:
        try:
            parsed.add(date.fromisoformat(str(raw)[:10]))
        except ValueError:
            logger.warning(
                "Ignoring malformed exception date on recurring rule",
                extra={"rule_id": rule.id, "value": raw},
            )
    return parsed


def expand_rule(rule: RuleDefinition, window_start: date, window_end: date) -> List[Occurrence]:
    """
    Expand one rule into occurrences for [window_start, window_end] (inclusive dates).

    Args:
        rule: Rule to expand
        window_start: First calendar day of the window
        window_end: Last calendar day of the window

    Returns:
        Occurrences tagged ``source=recurring``; empty when the rule's
        effective range and the window do not intersect

    Raises:
        ValueError: If window_start is after window_end
        RuleParseError: If the rule cannot be interpreted
    """
    if window_start > window_end:
        raise ValueError("window_start must be on or before window_end")

    try:
        tz = pytz.timezone(rule.timezone)
    except pytz.UnknownTimeZoneError as exc:
        raise RuleParseError(f"Unknown timezone: {rule.timezone!r}") from exc

    start_time = parse_start_time(rule.start_time)

    dtstart = datetime.combine(rule.effective_from, start_time)
    try:
        recurrence = rrulestr(_strip_rrule_prefix(rule.rrule), dtstart=dtstart, ignoretz=True)
    except (ValueError, TypeError) as exc:
        raise RuleParseError(f"Invalid recurrence rule {rule.rrule!r}: {exc}") from exc
    if not rule_weekdays(rule.rrule):
        raise RuleParseError(f"Recurrence rule {rule.rrule!r} has no weekday pattern")

    first_day = max(window_start, rule.effective_from)
    last_day = window_end if rule.effective_to is None else min(window_end, rule.effective_to)
    if first_day > last_day:
        return []

    duration = rule.duration_minutes
    if not duration or duration <= 0:
        logger.warning(
            "Recurring rule has non-positive duration, using default",
            extra={"rule_id": rule.id, "duration_minutes": duration},
        )
        duration = DEFAULT_DURATION_MINUTES

    skipped_days = _parse_exception_dates(rule)
    lower = datetime.combine(first_day, time.min)
    upper = datetime.combine(last_day, time.max)

    occurrences: List[Occurrence] = []
    for local_naive in recurrence.between(lower, upper, inc=True):
        if local_naive.date() in skipped_days:
            continue
        start = tz.normalize(tz.localize(local_naive))
        end = tz.normalize(start + timedelta(minutes=duration))
        occurrences.append(
            Occurrence(
                source=OccurrenceSource.RECURRING.value,
                workshop_id=rule.workshop_id,
                studio=rule.studio or UNASSIGNED_STUDIO,
                start=start,
                end=end,
                timezone=rule.timezone,
                title=rule.title,
                rule_id=rule.id,
            )
        )
    return occurrences


def expand_rules(
    rules: Sequence[RuleDefinition],
    window_start: date,
    window_end: date,
    *,
    skipped: Optional[List[str]] = None,
) -> List[Occurrence]:
    """
    Expand many rules; a rule that fails to parse is logged and skipped.

    Args:
        rules: Rules to expand
        window_start: First calendar day of the window
        window_end: Last calendar day of the window
        skipped: Optional list that receives the ids of skipped rules

    Returns:
        Concatenated occurrences, in rule order
    """
    if window_start > window_end:
        raise ValueError("window_start must be on or before window_end")

    occurrences: List[Occurrence] = []
    for rule in rules:
        try:
            occurrences.extend(expand_rule(rule, window_start, window_end))
        except (RuleParseError, ValueError) as exc:
            logger.warning(
                f"Skipping recurring rule {rule.id}: {exc}",
                extra={"rule_id": rule.id, "rrule": rule.rrule, "error": str(exc)},
            )
            if skipped is not None:
                skipped.append(str(rule.id))
    return occurrences
