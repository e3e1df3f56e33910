# backend/app/routes/v1/availability.py
"""
Availability routes - API v1

Endpoints:
    GET /rooms - Free room units for a stay
    GET /retreats/calendar - Retreats per day for a date range
"""

import asyncio
from datetime import date
import logging
from typing import NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...api.dependencies import get_availability_service
from ...core.exceptions import DomainException
from ...schemas.availability import RetreatCalendarResponse, RoomAvailabilityResponse
from ...services.availability_service import AvailabilityService, availability_to_dict

logger = logging.getLogger(__name__)

router = APIRouter(tags=["availability-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.get("/rooms", response_model=RoomAvailabilityResponse)
async def check_room_availability(
    check_in: date = Query(...),
    check_out: date = Query(...),
    guests: int = Query(..., ge=1, le=50),
    rooms: int = Query(1, ge=1, le=20),
    room_type: Optional[str] = Query(None, max_length=120),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> RoomAvailabilityResponse:
    """
    Free units per room type over [check_in, check_out).

    ``room_type`` accepts a slug or an id. A closed retreat in the range
    closes the resort and nothing is reported available.
    """
    try:
        result = await asyncio.to_thread(
            availability_service.check_room_availability,
            check_in,
            check_out,
            guests,
            rooms,
            room_type,
        )
        return RoomAvailabilityResponse(**availability_to_dict(result))
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/retreats/calendar", response_model=RetreatCalendarResponse)
async def get_retreat_calendar(
    window_from: date = Query(..., alias="from"),
    window_to: date = Query(..., alias="to"),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> RetreatCalendarResponse:
    try:
        calendar = await asyncio.to_thread(
            availability_service.get_retreat_calendar, window_from, window_to
        )
        return RetreatCalendarResponse(
            window_from=calendar["from"], window_to=calendar["to"], days=calendar["days"]
        )
    except DomainException as e:
        handle_domain_exception(e)
