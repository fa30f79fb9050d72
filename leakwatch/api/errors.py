"""
Translation of domain errors into HTTP responses.

Services raise LeakWatchError subclasses; this module is the only place
that turns them into status codes.
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from leakwatch.api.schemas.base import ErrorResponse
from leakwatch.config import get_logger
from leakwatch.services.exceptions import (
    Forbidden,
    InvalidTransition,
    LeakWatchError,
    NotFound,
    Unauthenticated,
    ValidationError,
)

logger = get_logger(__name__)

STATUS_BY_ERROR: dict[type[LeakWatchError], int] = {
    Unauthenticated: status.HTTP_401_UNAUTHORIZED,
    Forbidden: status.HTTP_403_FORBIDDEN,
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFound: status.HTTP_404_NOT_FOUND,
    InvalidTransition: status.HTTP_409_CONFLICT,
}

ERROR_CODES: dict[type[LeakWatchError], str] = {
    Unauthenticated: "unauthenticated",
    Forbidden: "forbidden",
    ValidationError: "validation_error",
    NotFound: "not_found",
    InvalidTransition: "invalid_transition",
}


def _status_for(exc: LeakWatchError) -> tuple[int, str]:
    for error_type in type(exc).__mro__:
        if error_type in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[error_type], ERROR_CODES[error_type]
    return status.HTTP_500_INTERNAL_SERVER_ERROR, "internal_error"


async def handle_domain_error(request: Request, exc: LeakWatchError) -> JSONResponse:
    """Render a domain error as JSON with the matching status code."""
    status_code, code = _status_for(exc)
    body = ErrorResponse(
        detail=exc.message,
        error=code,
        fields=exc.fields if isinstance(exc, ValidationError) else [],
    )
    headers: dict[str, str] | None = None

    if isinstance(exc, Unauthenticated):
        headers = {"WWW-Authenticate": "Bearer"}

    logger.info(
        "Request rejected",
        path=request.url.path,
        method=request.method,
        status_code=status_code,
        error=code,
        detail=exc.message,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(), headers=headers)


def _field_name(location: tuple) -> str:
    parts = [str(part) for part in location if part not in ("body", "query", "path")]
    return ".".join(parts) or "body"


async def handle_request_validation_error(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Report malformed request bodies and parameters as 400 with field names."""
    fields = sorted({_field_name(tuple(error.get("loc", ()))) for error in exc.errors()})
    logger.info(
        "Request validation failed",
        path=request.url.path,
        method=request.method,
        fields=fields,
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse(
            detail=f"Invalid request: {', '.join(fields)}",
            error="validation_error",
            fields=fields,
        ).model_dump(),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the domain and request validation error handlers on an app."""
    app.add_exception_handler(LeakWatchError, handle_domain_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
