"""REST API routes for Town Chronicle.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: API (FastAPI route handlers).
# Pattern: Routes access services via ``request.app.state.town_service``.
#          No ``Depends()`` for singleton services; direct ``getattr``.
#          The caller's identity comes from ``request.state.user_id``,
#          set by BearerAuthMiddleware.
#
# Endpoints (order matters — literal routes before path parameters):
#   POST   /api/v1/towns                         — Create town
#   GET    /api/v1/towns/my-towns                — Caller's towns
#   GET    /api/v1/towns/share/{share_id}        — Shared town + stories
#   PUT    /api/v1/towns/{town_id}               — Update settings (owner)
#   DELETE /api/v1/towns/{town_id}               — Delete town (owner)
#   POST   /api/v1/towns/{town_id}/regenerate    — Recompute (owner)
#   POST   /api/v1/stories                       — Add story
#   GET    /api/v1/stories/town/{town_id}/location/{location}
#                                                — Stories at a location
#   DELETE /api/v1/stories/{story_id}            — Delete story (owner)
#   GET    /api/v1/health                        — Liveness
#
# Errors: route handlers let ChronicleError propagate; the handler
# registered in middleware.py maps it to status + ErrorResponse.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request, status

from town_chronicle import __version__
from town_chronicle.api.auth_middleware import current_user_id
from town_chronicle.api.schemas import (
    CreateStoryRequest,
    CreateStoryResponse,
    CreateTownRequest,
    DeleteResponse,
    HealthResponse,
    SharedTownResponse,
    StoryListResponse,
    StoryResponse,
    TownListResponse,
    TownResponse,
    UpdateTownRequest,
)
from town_chronicle.models.town import Location, Town
from town_chronicle.services.crest_generator import crest_rarity
from town_chronicle.services.town_service import TownService

towns_router = APIRouter(prefix="/api/v1/towns", tags=["towns"])
stories_router = APIRouter(prefix="/api/v1/stories", tags=["stories"])
health_router = APIRouter(prefix="/api/v1", tags=["health"])


# ── Service accessor ──────────────────────────────────────────────────
def _get_town_service(request: Request) -> TownService:
    """Retrieve TownService from app state; raise 503 if unavailable."""
    svc = getattr(request.app.state, "town_service", None)
    if svc is None:
        raise HTTPException(status_code=503, detail="Town service unavailable")
    return svc


def _town_to_response(svc: TownService, town: Town) -> TownResponse:
    return TownResponse.from_town(town, crest_rarity(town.crest, svc.lexicon))


# ── Towns ─────────────────────────────────────────────────────────────
@towns_router.post("", response_model=TownResponse, status_code=status.HTTP_201_CREATED)
async def create_town(request: Request, body: CreateTownRequest) -> TownResponse:
    """Create an empty town owned by the caller."""
    svc = _get_town_service(request)
    town = await svc.create_town(current_user_id(request), body.name)
    return _town_to_response(svc, town)


@towns_router.get("/my-towns", response_model=TownListResponse)
async def list_my_towns(request: Request) -> TownListResponse:
    """The caller's towns, most recently active first."""
    svc = _get_town_service(request)
    towns = await svc.list_my_towns(current_user_id(request))
    return TownListResponse(
        towns=[_town_to_response(svc, t) for t in towns],
        total=len(towns),
    )


@towns_router.get("/share/{share_id}", response_model=SharedTownResponse)
async def get_shared_town(request: Request, share_id: str) -> SharedTownResponse:
    """Resolve a share link to the town and all of its stories."""
    svc = _get_town_service(request)
    viewer = current_user_id(request)
    town, stories = await svc.get_shared_town(share_id, viewer)
    return SharedTownResponse(
        town=_town_to_response(svc, town),
        stories=[StoryResponse.from_story(s) for s in stories],
        is_owner=town.is_owned_by(viewer),
    )


@towns_router.put("/{town_id}", response_model=TownResponse)
async def update_town(request: Request, town_id: str, body: UpdateTownRequest) -> TownResponse:
    """Change a town's name or visibility settings."""
    svc = _get_town_service(request)
    town = await svc.update_town(
        town_id,
        current_user_id(request),
        name=body.name,
        is_public=body.is_public,
        allow_guest_entries=body.allow_guest_entries,
    )
    return _town_to_response(svc, town)


@towns_router.delete("/{town_id}", response_model=DeleteResponse)
async def delete_town(request: Request, town_id: str) -> DeleteResponse:
    """Delete a town together with all of its stories."""
    svc = _get_town_service(request)
    await svc.delete_town(town_id, current_user_id(request))
    return DeleteResponse(deleted=True)


@towns_router.post("/{town_id}/regenerate", response_model=TownResponse)
async def regenerate_town(request: Request, town_id: str) -> TownResponse:
    """Re-derive the town's stats, crest and motto from its stories."""
    svc = _get_town_service(request)
    town = await svc.regenerate_town(town_id, current_user_id(request))
    return _town_to_response(svc, town)


# ── Stories ───────────────────────────────────────────────────────────
@stories_router.post("", response_model=CreateStoryResponse, status_code=status.HTTP_201_CREATED)
async def create_story(request: Request, body: CreateStoryRequest) -> CreateStoryResponse:
    """Add a story to a town; the town is recomputed before responding."""
    svc = _get_town_service(request)
    story = await svc.add_story(
        author=body.author,
        content=body.content,
        location=body.location,
        user_id=current_user_id(request),
        town_id=body.town_id,
        share_id=body.share_id,
    )
    town, _ = await svc.get_town_with_stories(story.town_id)
    return CreateStoryResponse(
        story=StoryResponse.from_story(story),
        town=_town_to_response(svc, town),
    )


@stories_router.get("/town/{town_id}/location/{location}", response_model=StoryListResponse)
async def list_location_stories(request: Request, town_id: str, location: Location) -> StoryListResponse:
    """Stories pinned to one location, newest first."""
    svc = _get_town_service(request)
    stories = await svc.list_location_stories(town_id, location, current_user_id(request))
    return StoryListResponse(
        town_id=town_id,
        location=location,
        stories=[StoryResponse.from_story(s) for s in stories],
        total=len(stories),
    )


@stories_router.delete("/{story_id}", response_model=DeleteResponse)
async def delete_story(request: Request, story_id: str) -> DeleteResponse:
    """Delete a story (town owner only); returns the recomputed town."""
    svc = _get_town_service(request)
    town = await svc.delete_story(story_id, current_user_id(request))
    return DeleteResponse(deleted=True, town=_town_to_response(svc, town))


# ── Health ────────────────────────────────────────────────────────────
@health_router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    """Liveness check reporting the active persistence provider."""
    store = getattr(request.app.state, "town_store", None)
    return HealthResponse(
        status="healthy",
        version=__version__,
        providers={"town_store": store.get_provider_name() if store else None},
    )
