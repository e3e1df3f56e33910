# backend/app/routes/v1/recurring_rules.py
"""
Recurring rule routes - API v1

Admin endpoints for the weekly class rules the schedule is expanded from.

Endpoints:
    GET / - List rules (optionally for one workshop)
    POST / - Create a rule
    GET /{rule_id} - Get one rule
    PATCH /{rule_id} - Update a rule
    DELETE /{rule_id} - Delete a rule (deactivated instead when sessions use it)
"""

import asyncio
import logging
from typing import List, NoReturn, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Path, Query, status

from ...api.dependencies import get_recurring_rule_service
from ...core.exceptions import DomainException
from ...schemas.recurring_rule import (
    RecurringRuleCreate,
    RecurringRuleDeleteResponse,
    RecurringRuleResponse,
    RecurringRuleUpdate,
)
from ...services.recurring_rule_service import RecurringRuleService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["recurring-rules-v1"])

ULID_PATH_PATTERN = r"^[0-9A-HJKMNP-TV-Z]{26}$"


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.get("", response_model=List[RecurringRuleResponse])
async def list_recurring_rules(
    workshop_id: Optional[str] = Query(None, max_length=26),
    rule_service: RecurringRuleService = Depends(get_recurring_rule_service),
) -> List[RecurringRuleResponse]:
    rules = await asyncio.to_thread(rule_service.list_rules, workshop_id)
    return [RecurringRuleResponse.model_validate(rule) for rule in rules]


@router.post("", response_model=RecurringRuleResponse, status_code=status.HTTP_201_CREATED)
async def create_recurring_rule(
    rule_data: RecurringRuleCreate = Body(...),
    rule_service: RecurringRuleService = Depends(get_recurring_rule_service),
) -> RecurringRuleResponse:
    """Create a rule from an RRULE string or a weekday list."""
    try:
        rule = await asyncio.to_thread(rule_service.create_rule, rule_data)
        return RecurringRuleResponse.model_validate(rule)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/{rule_id}", response_model=RecurringRuleResponse)
async def get_recurring_rule(
    rule_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    rule_service: RecurringRuleService = Depends(get_recurring_rule_service),
) -> RecurringRuleResponse:
    try:
        rule = await asyncio.to_thread(rule_service.get_rule, rule_id)
        return RecurringRuleResponse.model_validate(rule)
    except DomainException as e:
        handle_domain_exception(e)


@router.patch("/{rule_id}", response_model=RecurringRuleResponse)
async def update_recurring_rule(
    rule_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    rule_data: RecurringRuleUpdate = Body(...),
    rule_service: RecurringRuleService = Depends(get_recurring_rule_service),
) -> RecurringRuleResponse:
    try:
        rule = await asyncio.to_thread(rule_service.update_rule, rule_id, rule_data)
        return RecurringRuleResponse.model_validate(rule)
    except DomainException as e:
        handle_domain_exception(e)


@router.delete("/{rule_id}", response_model=RecurringRuleDeleteResponse)
async def delete_recurring_rule(
    rule_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    rule_service: RecurringRuleService = Depends(get_recurring_rule_service),
) -> RecurringRuleDeleteResponse:
    try:
        result = await asyncio.to_thread(rule_service.delete_rule, rule_id)
        return RecurringRuleDeleteResponse(**result)
    except DomainException as e:
        handle_domain_exception(e)
