"""
Per-request deadline.

A stalled store call would otherwise hold a worker for as long as the
pool's command timeout allows. Expiry cancels the handler (and with it
the awaiting asyncpg call, whose transaction rolls back) and answers 504.
``/health`` is exempt so health checks report a slow database instead of timing
out themselves.
"""

import asyncio

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = structlog.get_logger(__name__)

EXEMPT_PATHS = ("/health",)


class TimeoutMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, timeout_seconds: float = 30.0):
        super().__init__(app)
        self.timeout_seconds = timeout_seconds

    async def dispatch(self, request: Request, call_next):
        if request.url.path.startswith(EXEMPT_PATHS):
            return await call_next(request)

        try:
            async with asyncio.timeout(self.timeout_seconds):
                return await call_next(request)
        except TimeoutError:
            logger.warning(
                "Request deadline exceeded",
                method=request.method,
                path=request.url.path,
                timeout_seconds=self.timeout_seconds,
            )
            return JSONResponse(
                status_code=504,
                content={
                    "detail": f"Request exceeded {self.timeout_seconds}s deadline",
                    "error_type": "timeout",
                },
            )
