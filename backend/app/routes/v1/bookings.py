# backend/app/routes/v1/bookings.py
"""
Booking routes - API v1

Versioned booking endpoints under /api/v1/bookings.
All business logic delegated to BookingService.

Endpoints:
    POST / - Create a booking (room, workshop, retreat or treatment)
    GET /lookup - Find a booking by number and guest email
    GET /{booking_id} - Get booking details
    POST /{booking_id}/confirm - Confirm a pending booking
    POST /{booking_id}/cancel - Cancel a booking and release its capacity
"""

import asyncio
import logging
from typing import NoReturn, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Path, Query, status

from ...api.dependencies import get_booking_service
from ...core.exceptions import DomainException
from ...schemas.booking import BookingCancel, BookingCreate, BookingResponse
from ...services.booking_service import BookingService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["bookings-v1"])

ULID_PATH_PATTERN = r"^[0-9A-HJKMNP-TV-Z]{26}$"


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.post(
    "",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"description": "Target room type, session, retreat or treatment not found"},
        409: {"description": "No capacity left, or the resort is closed"},
        422: {"description": "Invalid booking request"},
    },
)
async def create_booking(
    booking_data: BookingCreate = Body(...),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """
    Create a booking.

    The capacity check and the write happen together: a 409 means the
    item was taken (or closed) and availability should be re-checked
    before retrying.
    """
    try:
        booking = await asyncio.to_thread(booking_service.create_booking, booking_data)
        return BookingResponse.model_validate(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/lookup", response_model=BookingResponse)
async def lookup_booking(
    booking_number: str = Query(..., min_length=1, max_length=32),
    email: str = Query(..., min_length=3, max_length=320),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Find a booking by its number and the guest email it was made with."""
    try:
        booking = await asyncio.to_thread(
            booking_service.find_booking_by_reference, booking_number, email
        )
        return BookingResponse.model_validate(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.get(
    "/{booking_id}",
    response_model=BookingResponse,
    responses={404: {"description": "Booking not found"}},
)
async def get_booking(
    booking_id: str = Path(..., description="Booking ULID", pattern=ULID_PATH_PATTERN),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(booking_service.get_booking, booking_id)
        return BookingResponse.model_validate(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/{booking_id}/confirm",
    response_model=BookingResponse,
    responses={
        404: {"description": "Booking not found"},
        422: {"description": "Booking was cancelled"},
    },
)
async def confirm_booking(
    booking_id: str = Path(..., description="Booking ULID", pattern=ULID_PATH_PATTERN),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(booking_service.confirm_booking, booking_id)
        return BookingResponse.model_validate(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/{booking_id}/cancel",
    response_model=BookingResponse,
    responses={404: {"description": "Booking not found"}},
)
async def cancel_booking(
    booking_id: str = Path(..., description="Booking ULID", pattern=ULID_PATH_PATTERN),
    cancel_data: Optional[BookingCancel] = Body(None),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Cancel a booking; seats or retreat places are given back. Repeating it is a no-op."""
    reason = cancel_data.reason if cancel_data else None
    try:
        booking = await asyncio.to_thread(booking_service.cancel_booking, booking_id, reason)
        return BookingResponse.model_validate(booking)
    except DomainException as e:
        handle_domain_exception(e)
