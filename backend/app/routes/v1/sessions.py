# backend/app/routes/v1/sessions.py
"""
Class session routes - API v1

Versioned session endpoints under /api/v1/sessions.

Endpoints:
    POST /materialize - Upsert sessions for a window
    GET / - List materialized sessions
    GET /{session_id}/availability - Seats left in one session
    PATCH /{session_id} - Change capacity or cancel a session
"""

import asyncio
from datetime import date
import logging
from typing import NoReturn, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Path, Query, status

from ...api.dependencies import get_availability_service, get_session_materializer
from ...core.constants import DEFAULT_QUERY_LIMIT, MAX_QUERY_LIMIT
from ...core.exceptions import DomainException
from ...schemas.session import (
    MaterializeRequest,
    MaterializeResponse,
    SessionAvailabilityResponse,
    SessionListResponse,
    SessionResponse,
    SessionUpdate,
)
from ...services.availability_service import AvailabilityService
from ...services.schedule_service import default_window
from ...services.session_materializer import SessionMaterializer

logger = logging.getLogger(__name__)

router = APIRouter(tags=["sessions-v1"])

ULID_PATH_PATTERN = r"^[0-9A-HJKMNP-TV-Z]{26}$"


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.post("/materialize", response_model=MaterializeResponse)
async def materialize_sessions(
    payload: Optional[MaterializeRequest] = Body(None),
    materializer: SessionMaterializer = Depends(get_session_materializer),
) -> MaterializeResponse:
    """
    Upsert a session for every scheduled occurrence in the window.

    Re-running the same window only refreshes display fields; seats already
    booked are kept.
    """
    window_start, window_end = default_window()
    if payload is not None:
        window_start = payload.window_from or window_start
        window_end = payload.window_to or window_end
    try:
        result = await asyncio.to_thread(
            materializer.materialize_sessions, window_start, window_end
        )
        return MaterializeResponse(
            window_from=result.window_start,
            window_to=result.window_end,
            upserts=result.upserts,
            created=result.created,
            updated=result.updated,
            skipped=result.skipped,
        )
    except DomainException as e:
        handle_domain_exception(e)


@router.get("", response_model=SessionListResponse)
async def list_sessions(
    window_from: Optional[date] = Query(None, alias="from"),
    window_to: Optional[date] = Query(None, alias="to"),
    studio: Optional[str] = Query(None, max_length=100),
    workshop_id: Optional[str] = Query(None, max_length=26),
    status_filter: Optional[str] = Query(None, alias="status"),
    limit: int = Query(DEFAULT_QUERY_LIMIT, ge=1, le=MAX_QUERY_LIMIT),
    materializer: SessionMaterializer = Depends(get_session_materializer),
) -> SessionListResponse:
    try:
        sessions = await asyncio.to_thread(
            materializer.list_sessions,
            window_from,
            window_to,
            studio,
            workshop_id,
            status_filter,
            limit,
        )
        return SessionListResponse(
            count=len(sessions),
            sessions=[SessionResponse.model_validate(s) for s in sessions],
        )
    except DomainException as e:
        handle_domain_exception(e)


@router.get(
    "/{session_id}/availability",
    response_model=SessionAvailabilityResponse,
    responses={404: {"description": "Session not found"}},
)
async def get_session_availability(
    session_id: str = Path(
        ...,
        description="Session ULID",
        pattern=ULID_PATH_PATTERN,
        examples=["01HF4G12ABCDEF3456789XYZAB"],
    ),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> SessionAvailabilityResponse:
    try:
        result = await asyncio.to_thread(
            availability_service.check_session_availability, session_id
        )
        return SessionAvailabilityResponse(**result.__dict__)
    except DomainException as e:
        handle_domain_exception(e)


@router.patch(
    "/{session_id}",
    response_model=SessionResponse,
    responses={
        404: {"description": "Session not found"},
        409: {"description": "More seats already booked than the new capacity"},
        422: {"description": "Session is cancelled"},
    },
)
async def update_session(
    session_id: str = Path(..., description="Session ULID", pattern=ULID_PATH_PATTERN),
    payload: SessionUpdate = Body(...),
    materializer: SessionMaterializer = Depends(get_session_materializer),
) -> SessionResponse:
    """Change a session's capacity or cancel it. Booked seats are never edited here."""
    try:
        session = await asyncio.to_thread(materializer.update_session, session_id, payload)
        return SessionResponse.model_validate(session)
    except DomainException as e:
        handle_domain_exception(e)
