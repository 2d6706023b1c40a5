"""Town Chronicle API layer — routes, schemas, auth, and middleware."""

from town_chronicle.api.auth_middleware import BearerAuthMiddleware, current_user_id
from town_chronicle.api.auth_utils import create_user_token, validate_user_token
from town_chronicle.api.middleware import (
    RequestLoggingMiddleware,
    configure_cors,
    register_error_handlers,
)
from town_chronicle.api.routes import health_router, stories_router, towns_router
from town_chronicle.api.schemas import (
    CreateStoryRequest,
    CreateStoryResponse,
    CreateTownRequest,
    DeleteResponse,
    ErrorResponse,
    HealthResponse,
    SharedTownResponse,
    StoryListResponse,
    StoryResponse,
    TownListResponse,
    TownResponse,
    UpdateTownRequest,
)

__all__ = [
    "BearerAuthMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "create_user_token",
    "current_user_id",
    "health_router",
    "register_error_handlers",
    "stories_router",
    "towns_router",
    "validate_user_token",
    "CreateStoryRequest",
    "CreateStoryResponse",
    "CreateTownRequest",
    "DeleteResponse",
    "ErrorResponse",
    "HealthResponse",
    "SharedTownResponse",
    "StoryListResponse",
    "StoryResponse",
    "TownListResponse",
    "TownResponse",
    "UpdateTownRequest",
]
