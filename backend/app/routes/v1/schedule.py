# backend/app/routes/v1/schedule.py
"""
Schedule routes - API v1

Versioned schedule endpoints under /api/v1/schedule.
All business logic delegated to ScheduleService.

Endpoints:
    GET / - Computed occurrences for a date window (read-only)
    GET /grid - Manual weekly grid (draft seeded from rules when none is saved)
    PUT /grid - Replace the manual weekly grid
    PATCH /grid/cell - Set or clear one grid cell
"""

import asyncio
from datetime import date
import logging
from typing import NoReturn

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status

from ...api.dependencies import get_schedule_service
from ...core.exceptions import DomainException
from ...schemas.schedule import (
    GridCellUpdate,
    OccurrenceResponse,
    ScheduleResponse,
    StudioConflictResponse,
    WeeklyGridResponse,
    WeeklyGridUpdate,
)
from ...services.schedule_service import GridView, ScheduleResult, ScheduleService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["schedule-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _schedule_response(result: ScheduleResult) -> ScheduleResponse:
    return ScheduleResponse(
        window_from=result.window_start,
        window_to=result.window_end,
        count=len(result.occurrences),
        occurrences=[OccurrenceResponse(**o.to_dict()) for o in result.occurrences],
        conflicts=[
            StudioConflictResponse(
                studio=c.studio,
                start=c.start,
                end=c.end,
                sources=sorted(c.sources),
                occurrences=[OccurrenceResponse(**o.to_dict()) for o in c.occurrences],
            )
            for c in result.conflicts
        ],
        skipped_rule_ids=list(result.skipped_rule_ids),
    )


def _grid_response(view: GridView) -> WeeklyGridResponse:
    return WeeklyGridResponse(week_key=view.week_key, grid=view.grid, persisted=view.persisted)


@router.get("", response_model=ScheduleResponse)
async def get_schedule(
    window_from: date = Query(..., alias="from", description="First day, YYYY-MM-DD"),
    window_to: date = Query(..., alias="to", description="Last day (inclusive)"),
    week_key: str = Query("default", max_length=32),
    schedule_service: ScheduleService = Depends(get_schedule_service),
) -> ScheduleResponse:
    """Every class occurrence in the window, recurring and manual, sorted by start then studio."""
    try:
        result = await asyncio.to_thread(
            schedule_service.get_schedule, window_from, window_to, week_key
        )
        return _schedule_response(result)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/grid", response_model=WeeklyGridResponse)
async def get_grid(
    week_key: str = Query("default", max_length=32),
    schedule_service: ScheduleService = Depends(get_schedule_service),
) -> WeeklyGridResponse:
    try:
        view = await asyncio.to_thread(schedule_service.get_grid, week_key)
        return _grid_response(view)
    except DomainException as e:
        handle_domain_exception(e)


@router.put("/grid", response_model=WeeklyGridResponse)
async def replace_grid(
    payload: WeeklyGridUpdate = Body(...),
    schedule_service: ScheduleService = Depends(get_schedule_service),
) -> WeeklyGridResponse:
    """Replace the whole weekly grid; empty cells are dropped."""
    try:
        view = await asyncio.to_thread(
            schedule_service.save_grid,
            payload.grid,
            week_key=payload.week_key,
            updated_by=payload.updated_by,
        )
        return _grid_response(view)
    except DomainException as e:
        handle_domain_exception(e)


@router.patch("/grid/cell", response_model=WeeklyGridResponse)
async def update_grid_cell(
    payload: GridCellUpdate = Body(...),
    schedule_service: ScheduleService = Depends(get_schedule_service),
) -> WeeklyGridResponse:
    try:
        view = await asyncio.to_thread(
            schedule_service.update_cell,
            payload.day,
            payload.slot,
            payload.studio,
            payload.workshop_id,
            week_key=payload.week_key,
            updated_by=payload.updated_by,
        )
        return _grid_response(view)
    except DomainException as e:
        handle_domain_exception(e)
