"""
FastAPI application for the feedback board.

``create_app`` is the uvicorn factory (``agora serve``). Middleware order,
outermost first: CORS, request timeout, request context/logging.
"""

import time
import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from agora import __version__
from agora.api.dependencies import cleanup_dependencies
from agora.api.errors import register_exception_handlers
from agora.api.middleware.timeout import TimeoutMiddleware
from agora.api.routes import feedback, health, users
from agora.config.settings import get_settings
from agora.observability.logging import bind_context, clear_context

logger = structlog.get_logger(__name__)

_DESCRIPTION = """
Feedback board: submit items, vote, comment and track their status.

## Authentication

Feedback routes require `Authorization: Bearer <session token>`.
The leaderboard and `/health` are public.
"""

_TAGS = [
    {"name": "health", "description": "Service health checks"},
    {"name": "feedback", "description": "Feedback items, votes and comments"},
    {"name": "users", "description": "Reputation leaderboard"},
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Agora API starting", version=__version__)
    if not get_settings().sessions_configured:
        logger.warning("SESSION_SECRET is not set; authenticated routes will return 401")

    yield

    await cleanup_dependencies()
    logger.info("Agora API stopped")


async def request_context(request: Request, call_next):
    """Tag every log line of a request with its id and log the outcome."""
    request_id = (
        request.headers.get("X-Request-ID")
        or request.headers.get("X-Correlation-ID")
        or uuid.uuid4().hex
    )
    bind_context(request_id=request_id)
    started = time.perf_counter()

    try:
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        logger.info(
            "HTTP request",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return response
    finally:
        clear_context()


async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled exception", path=request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "error_type": "internal"},
    )


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="Agora Feedback API",
        description=_DESCRIPTION,
        version=__version__,
        lifespan=lifespan,
        openapi_tags=_TAGS,
    )

    # Starlette runs the last-added middleware first
    app.middleware("http")(request_context)
    if settings.request_timeout_seconds > 0:
        app.add_middleware(TimeoutMiddleware, timeout_seconds=settings.request_timeout_seconds)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.add_exception_handler(Exception, unhandled_error)

    app.include_router(health.router, tags=["health"])
    app.include_router(feedback.router, tags=["feedback"])
    app.include_router(users.router, tags=["users"])

    @app.get("/", include_in_schema=False)
    async def root():
        return {"service": "Agora Feedback API", "version": __version__, "docs": "/docs"}

    return app
