# backend/app/services/recurring_rule_service.py
"""
Recurring Rule Service for the resort platform.

Admin CRUD for recurring class rules. Every write normalizes the pattern
(weekdays -> RRULE, "9:00" -> "09:00") and checks it parses, so the
expander only ever sees rules it can read. Rules already referenced by
sessions are deactivated instead of deleted.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import pytz
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import NotFoundException, ValidationException
from ..models.recurring_rule import RecurringRule
from ..models.session import ClassSession
from ..repositories.factory import RepositoryFactory
from ..schemas.recurring_rule import RecurringRuleCreate, RecurringRuleUpdate
from .base import BaseService
from .scheduling import RuleParseError, build_weekly_rrule, parse_start_time, validate_rrule

logger = logging.getLogger(__name__)


class RecurringRuleService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.repository = RepositoryFactory.create_recurring_rule_repository(db)
        self.workshop_repository = RepositoryFactory.create_workshop_repository(db)
        self.session_repository = RepositoryFactory.create_base_repository(db, ClassSession)

    def list_rules(self, workshop_id: Optional[str] = None) -> List[RecurringRule]:
        return self.repository.list_rules(workshop_id=workshop_id)

    def get_rule(self, rule_id: str) -> RecurringRule:
        rule = self.repository.get_by_id(rule_id)
        if rule is None:
            raise NotFoundException(f"Recurring rule {rule_id} not found", code="RULE_NOT_FOUND")
        return rule

    @BaseService.measure_operation("create_recurring_rule")
    def create_rule(self, data: RecurringRuleCreate) -> RecurringRule:
        """
        Create a rule for an existing workshop.

        Raises:
            NotFoundException: If the workshop does not exist
            ValidationException: If the pattern, time or timezone is invalid
        """
        workshops = self.workshop_repository.get_by_keys([data.workshop_id])
        if not workshops:
            raise NotFoundException(
                f"Workshop {data.workshop_id} not found", code="WORKSHOP_NOT_FOUND"
            )

        fields: Dict[str, Any] = {
            "workshop_id": workshops[0].id,
            "studio": data.studio.strip(),
            "timezone": self._check_timezone(data.timezone or settings.resort_timezone),
            "start_time": self._normalize_time(data.start_time),
            "duration_minutes": data.duration_minutes,
            "rrule": self._normalize_pattern(data.rrule, data.weekdays, data.interval),
            "effective_from": data.effective_from,
            "effective_to": data.effective_to,
            "exceptions": sorted({d.isoformat() for d in data.exceptions}),
            "is_active": data.is_active,
        }
        with self.transaction():
            rule = self.repository.create(**fields)

        self.log_operation("create_recurring_rule", rule_id=rule.id, rrule=rule.rrule)
        return self.get_rule(rule.id)

    @BaseService.measure_operation("update_recurring_rule")
    def update_rule(self, rule_id: str, data: RecurringRuleUpdate) -> RecurringRule:
        rule = self.get_rule(rule_id)
        changes = data.model_dump(exclude_unset=True)

        updates: Dict[str, Any] = {}
        if "studio" in changes and data.studio:
            updates["studio"] = data.studio.strip()
        if "timezone" in changes and data.timezone:
            updates["timezone"] = self._check_timezone(data.timezone)
        if "start_time" in changes and data.start_time:
            updates["start_time"] = self._normalize_time(data.start_time)
        if "duration_minutes" in changes and data.duration_minutes:
            updates["duration_minutes"] = data.duration_minutes
        if data.rrule or data.weekdays:
            updates["rrule"] = self._normalize_pattern(data.rrule, data.weekdays, data.interval or 1)
        if "effective_from" in changes and data.effective_from:
            updates["effective_from"] = data.effective_from
        if "effective_to" in changes:
            updates["effective_to"] = data.effective_to
        if "exceptions" in changes and data.exceptions is not None:
            updates["exceptions"] = sorted({d.isoformat() for d in data.exceptions})
        if "is_active" in changes and data.is_active is not None:
            updates["is_active"] = data.is_active

        effective_from = updates.get("effective_from", rule.effective_from)
        effective_to = updates.get("effective_to", rule.effective_to)
        if effective_to is not None and effective_to < effective_from:
            raise ValidationException(
                "effective_to must be on or after effective_from", code="INVALID_EFFECTIVE_RANGE"
            )

        if updates:
            with self.transaction():
                self.repository.update(rule_id, **updates)
            self.log_operation("update_recurring_rule", rule_id=rule_id, fields=sorted(updates))
        return self.get_rule(rule_id)

    @BaseService.measure_operation("delete_recurring_rule")
    def delete_rule(self, rule_id: str) -> Dict[str, Any]:
        """Delete a rule, or deactivate it when sessions already point at it."""
        self.get_rule(rule_id)
        with self.transaction():
            if self.session_repository.exists(rule_id=rule_id):
                self.repository.update(rule_id, is_active=False)
                result = {"id": rule_id, "deleted": False, "deactivated": True}
            else:
                self.repository.delete(rule_id)
                result = {"id": rule_id, "deleted": True, "deactivated": False}
        self.log_operation("delete_recurring_rule", **result)
        return result

    @staticmethod
    def _normalize_pattern(
        rrule: Optional[str], weekdays: Optional[List[str]], interval: int
    ) -> str:
        try:
            if weekdays:
                return build_weekly_rrule(weekdays, interval=interval)
            return validate_rrule(rrule or "")
        except RuleParseError as exc:
            raise ValidationException(str(exc), code="INVALID_RRULE") from exc

    @staticmethod
    def _normalize_time(value: str) -> str:
        try:
            parsed = parse_start_time(value)
        except RuleParseError as exc:
            raise ValidationException(str(exc), code="INVALID_START_TIME") from exc
        return parsed.strftime("%H:%M")

    @staticmethod
    def _check_timezone(name: str) -> str:
        try:
            pytz.timezone(name)
        except pytz.UnknownTimeZoneError as exc:
            raise ValidationException(
                f"Unknown timezone: {name}", code="INVALID_TIMEZONE"
            ) from exc
        return name
