"""API middleware — CORS, request logging, and error handling.

Provides helper functions and middleware classes to configure cross-origin
resource sharing, structured request logging (via structlog), and automatic
conversion of ``ChronicleError`` subclasses into JSON ``ErrorResponse``
bodies.

# ─── MIDDLEWARE EXECUTION ORDER ────────────────────────────────────────
#
# Starlette middleware is a stack (LIFO — last added, first executed):
#
#   In main.py:
#     app.add_middleware(BearerAuthMiddleware)       # added 1st → inner
#     app.add_middleware(RequestLoggingMiddleware)   # added 2nd → outer
#     configure_cors(app)                            # added last → outermost
#
#   Request flow:
#     Client → CORS → RequestLogging → BearerAuth → route handler
#
# ChronicleError is converted by an exception handler registered with
# ``register_error_handlers`` rather than by a middleware, so the status
# code each error class declares reaches RequestLoggingMiddleware intact.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import time

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from town_chronicle.api.schemas import ErrorResponse
from town_chronicle.utils.errors import ChronicleError
from town_chronicle.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add CORS middleware to the FastAPI application.

    Parameters
    ----------
    app:
        The FastAPI application instance.
    allowed_origins:
        Explicit list of allowed origins.  Defaults to ``["*"]`` for
        development; override with specific origins in production.
    """
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


async def _chronicle_error_handler(request: Request, exc: ChronicleError) -> JSONResponse:
    """Convert a ChronicleError into a sanitized JSON error body.

    Stack traces are logged server-side only — never leaked to the client.
    """
    log = _logger.error if exc.status_code >= 500 else _logger.warning
    log(
        "application_error",
        error_type=type(exc).__name__,
        message=exc.message,
        provider=exc.provider_name,
        path=str(request.url.path),
        status=exc.status_code,
    )
    body = ErrorResponse(error=type(exc).__name__, detail=exc.message)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


def register_error_handlers(app: FastAPI) -> None:
    """Map every ChronicleError subclass to its declared HTTP status."""
    app.add_exception_handler(ChronicleError, _chronicle_error_handler)
