"""API middleware: CORS, request logging, and error handling.

Starlette middleware is a stack (last added, first executed).  ``main.py``
adds ``ErrorHandlingMiddleware`` first and ``RequestLoggingMiddleware``
second, so a request flows::

    Client -> RequestLogging -> ErrorHandling -> route handler

and the request log sees the final status code, including the one the
error handler chose.
"""

from __future__ import annotations

import math
import time

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from src.api.schemas import ErrorResponse
from src.utils.errors import InvalidAudioError, RateLimitError, TraxscoutError
from src.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

# Error type -> HTTP status.  Anything else is a 500.
_STATUS_BY_ERROR: dict[type[TraxscoutError], int] = {
    InvalidAudioError: 400,
    RateLimitError: 429,
}


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add CORS middleware.  Defaults to ``["*"]``; restrict it in production."""
    origins = allowed_origins or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


# ---------------------------------------------------------------------------
# Request Logging
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with method, path, status code, and duration."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start = time.perf_counter()
        response: Response | None = None

        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            status_code = response.status_code if response else 500
            _logger.info(
                "http_request",
                method=request.method,
                path=str(request.url.path),
                status=status_code,
                duration_ms=duration_ms,
            )


# ---------------------------------------------------------------------------
# Error Handling
# ---------------------------------------------------------------------------


def _status_for(exc: TraxscoutError) -> int:
    for error_type, status in _STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return status
    return 500


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Convert ``TraxscoutError`` subclasses into JSON :class:`ErrorResponse` bodies.

    Stack traces stay in server logs; the client sees only the error type
    and message.  Rate-limit denials carry a ``Retry-After`` header in
    whole seconds.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except TraxscoutError as exc:
            status_code = _status_for(exc)
            log = _logger.warning if status_code < 500 else _logger.error
            log(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                path=str(request.url.path),
                status=status_code,
            )

            headers: dict[str, str] = {}
            if isinstance(exc, RateLimitError):
                headers["Retry-After"] = str(max(1, math.ceil(exc.retry_after_ms / 1000)))

            body = ErrorResponse(error=type(exc).__name__, detail=exc.message)
            return JSONResponse(
                status_code=status_code,
                content=body.model_dump(),
                headers=headers,
            )
