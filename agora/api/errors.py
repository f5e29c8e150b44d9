"""
Translation of domain exceptions into HTTP error responses.

Every error body follows ``ErrorResponse``: ``detail``, ``error_type`` and,
for validation failures, ``errors``.
"""

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from agora.api.models import ErrorResponse, FieldErrorItem
from agora.errors import (
    AgoraError,
    InvalidArgumentError,
    NotFoundError,
    StoreError,
    UnauthenticatedError,
    UnauthorizedError,
    ValidationError,
)

logger = structlog.get_logger(__name__)

# Most specific class first; the first isinstance match wins.
_STATUS_BY_ERROR: tuple[tuple[type[AgoraError], int], ...] = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (InvalidArgumentError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (UnauthenticatedError, status.HTTP_401_UNAUTHORIZED),
    (UnauthorizedError, status.HTTP_403_FORBIDDEN),
    (StoreError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def status_for(exc: AgoraError) -> int:
    for error_class, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_class):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _error_body(detail: str, error_type: str, errors: list[FieldErrorItem] | None = None) -> dict:
    return ErrorResponse(detail=detail, error_type=error_type, errors=errors).model_dump()


async def agora_error_handler(request: Request, exc: AgoraError) -> JSONResponse:
    code = status_for(exc)

    if code >= 500:
        logger.error(
            "Store failure",
            path=request.url.path,
            error=str(exc.__cause__ or exc),
        )
        return JSONResponse(
            status_code=code,
            content=_error_body("Internal server error", exc.error_type),
        )

    errors = None
    if isinstance(exc, ValidationError):
        errors = [FieldErrorItem(**e.to_dict()) for e in exc.errors]

    logger.info(
        "Request rejected",
        path=request.url.path,
        status_code=code,
        error_type=exc.error_type,
    )
    return JSONResponse(
        status_code=code,
        content=_error_body(str(exc), exc.error_type, errors),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        FieldErrorItem(
            field=".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            message=err.get("msg", "Invalid value"),
        )
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body("Validation failed", ValidationError.error_type, errors),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    error_type = "unauthenticated" if exc.status_code == 401 else "http"
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(str(exc.detail), error_type),
        headers=getattr(exc, "headers", None),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the domain, request-shape and HTTP error handlers to ``app``."""
    app.add_exception_handler(AgoraError, agora_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
