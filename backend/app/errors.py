# backend/app/errors.py
"""
Problem-details rendering for every error the API returns.

Routes turn DomainExceptions into HTTPExceptions whose detail is
``{"message", "code", "details"}``; the handlers here flatten that into a
problem document with a top-level ``code`` so clients can branch on
CAPACITY_CONFLICT or RESORT_CLOSED without parsing messages.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.exceptions import RepositoryException, is_db_pool_exhaustion

logger = logging.getLogger(__name__)

PROBLEM_MEDIA_TYPE = "application/problem+json"

_TITLES = {
    400: "Bad Request",
    404: "Not Found",
    409: "Conflict",
    422: "Unprocessable Entity",
    500: "Internal Server Error",
    503: "Service Unavailable",
}


def problem_response(
    request: Request,
    status: int,
    *,
    detail: Optional[str] = None,
    code: Optional[str] = None,
    errors: Optional[Any] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    body: Dict[str, Any] = {
        "type": "about:blank",
        "title": _TITLES.get(status, "Error"),
        "status": status,
        "detail": detail or "",
        "instance": request.url.path,
    }
    if code:
        body["code"] = code
    if errors is not None:
        body["errors"] = jsonable_encoder(errors)
    return JSONResponse(body, status_code=status, media_type=PROBLEM_MEDIA_TYPE, headers=headers)


def _split_detail(detail: Any) -> Tuple[Optional[str], Optional[str], Optional[Any]]:
    """(message, code, details) from an HTTPException detail of any shape."""
    if isinstance(detail, dict):
        code = detail.get("code")
        message = detail.get("message") or detail.get("detail")
        return (
            message if isinstance(message, str) else None,
            code if isinstance(code, str) else None,
            detail.get("details") or detail.get("errors"),
        )
    if detail is None:
        return None, None, None
    return str(detail), None, None


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message, code, errors = _split_detail(exc.detail)
        return problem_response(
            request,
            exc.status_code,
            detail=message,
            code=code,
            errors=errors,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    @app.exception_handler(ValidationError)
    async def validation_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        return problem_response(
            request,
            422,
            detail="Request validation failed",
            code="validation_error",
            errors=exc.errors(),
        )

    @app.exception_handler(RepositoryException)
    @app.exception_handler(SQLAlchemyError)
    async def store_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            f"Data store failure on {request.url.path}: {str(exc)}",
            extra={"error_type": type(exc).__name__},
        )
        if is_db_pool_exhaustion(exc):
            return problem_response(
                request,
                503,
                detail="Service temporarily overloaded. Please retry.",
                code="service_unavailable",
                headers={"Retry-After": "2"},
            )
        return problem_response(
            request, 500, detail="Internal Server Error", code="internal_server_error"
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.url.path}")
        return problem_response(
            request, 500, detail="Internal Server Error", code="internal_server_error"
        )
