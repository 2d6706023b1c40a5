"""Bearer-token identity middleware for the Town Chronicle API.

# ─── HOW THE AUTH MIDDLEWARE WORKS ───────────────────────────────────
#
# BearerAuthMiddleware reads the ``Authorization: Bearer <token>`` header
# on every request and stores the caller's id on ``request.state.user_id``.
#
#   - No header            → user_id = None (anonymous; routes decide
#                            whether that is enough).
#   - Valid token          → user_id = the id carried by the token.
#   - Invalid/expired token → 401 JSON response, route never runs.
#
# Design decisions:
#   - Identity only.  Ownership and privacy rules live in TownService,
#     so the CLI and the API enforce the same permissions.
#   - Dev mode: if AUTH_SECRET is empty, the bearer value is taken as the
#     raw user id so local development needs no token minting.
#   - Uses BaseHTTPMiddleware (Starlette) — no new dependencies.
#
# Layer position: after CORS, before route handlers.
# ─────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from town_chronicle.api.auth_utils import validate_user_token
from town_chronicle.api.schemas import ErrorResponse

_BEARER_PREFIX = "bearer "


class BearerAuthMiddleware(BaseHTTPMiddleware):
    """Resolves the caller's identity from a bearer token.

    Constructor injection: the secret and TTL are passed in from main.py so
    the middleware doesn't read config globals directly.
    """

    def __init__(self, app: object, secret: str, ttl_hours: int = 168) -> None:
        super().__init__(app)
        self._secret = secret
        self._ttl_hours = ttl_hours

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        """Attach ``request.state.user_id`` or reject a bad token."""
        request.state.user_id = None

        header = request.headers.get("authorization", "")
        if not header:
            return await call_next(request)

        if not header.lower().startswith(_BEARER_PREFIX):
            return self._unauthorized("Authorization header must use the Bearer scheme")
        token = header[len(_BEARER_PREFIX):].strip()

        # Dev mode: no secret configured — the token is the user id.
        if not self._secret:
            if not token:
                return self._unauthorized("Empty bearer token")
            request.state.user_id = token
            return await call_next(request)

        user_id = validate_user_token(token, self._secret, self._ttl_hours)
        if user_id is None:
            return self._unauthorized("Invalid or expired token")
        request.state.user_id = user_id
        return await call_next(request)

    @staticmethod
    def _unauthorized(detail: str) -> JSONResponse:
        body = ErrorResponse(error="AuthenticationError", detail=detail)
        return JSONResponse(status_code=401, content=body.model_dump())


def current_user_id(request: Request) -> str | None:
    """The caller's id as resolved by BearerAuthMiddleware, or None."""
    return getattr(request.state, "user_id", None)
