"""Request and response schemas for the Town Chronicle API.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: API (Pydantic v2 schemas for request validation and response
#        serialization).
# Pattern: All schemas use ``frozen=True`` for immutability, matching
#          the domain models.
#
# These schemas define the contract between the frontend and
# TownService.  They are separate from the domain models in
# town_chronicle/models/town.py — domain models represent stored state,
# while API schemas represent the HTTP request/response interface.
# Derived fields (crest, motto, themes, stats) never appear in a
# request schema; clients cannot set them.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from town_chronicle.models.town import Location, Rarity, Story, Theme, ThemeCount, Town, TownStats


# ─── Request schemas ──────────────────────────────────────────────────

class CreateTownRequest(BaseModel):
    """Request body for creating a town."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, max_length=100, description="Display name of the town.")


class UpdateTownRequest(BaseModel):
    """Owner-editable town settings.  Omitted fields are left unchanged."""

    model_config = ConfigDict(frozen=True)

    name: str | None = Field(default=None, min_length=1, max_length=100)
    is_public: bool | None = None
    allow_guest_entries: bool | None = None


class CreateStoryRequest(BaseModel):
    """Request body for adding a story, addressed by town id or share id."""

    model_config = ConfigDict(frozen=True)

    author: str = Field(min_length=1, max_length=50)
    content: str = Field(min_length=1, max_length=500)
    location: Location
    town_id: str | None = None
    share_id: str | None = None

    @model_validator(mode="after")
    def _require_town_reference(self) -> CreateStoryRequest:
        if not self.town_id and not self.share_id:
            raise ValueError("Either town_id or share_id is required")
        return self


# ─── Response schemas ─────────────────────────────────────────────────

class StoryResponse(BaseModel):
    """A story as returned by the API."""

    model_config = ConfigDict(frozen=True)

    story_id: str
    town_id: str
    author: str
    content: str
    location: Location
    themes: list[Theme] = Field(default_factory=list)
    sentiment: int = 0
    is_guest: bool = False
    created_at: datetime

    @classmethod
    def from_story(cls, story: Story) -> StoryResponse:
        return cls(
            story_id=story.story_id,
            town_id=story.town_id,
            author=story.author,
            content=story.content,
            location=story.location,
            themes=list(story.themes),
            sentiment=story.sentiment,
            is_guest=story.is_guest,
            created_at=story.created_at,
        )


class TownResponse(BaseModel):
    """A town with its derived presentation state."""

    model_config = ConfigDict(frozen=True)

    town_id: str
    name: str
    owner_id: str
    share_id: str
    crest: str
    crest_rarity: Rarity | None = Field(
        default=None,
        description="Rarity of the current crest, when it is in the catalog.",
    )
    motto: str
    is_public: bool
    allow_guest_entries: bool
    stats: TownStats
    themes: list[ThemeCount] = Field(default_factory=list)
    created_at: datetime
    last_activity: datetime

    @classmethod
    def from_town(cls, town: Town, crest_rarity: Rarity | None = None) -> TownResponse:
        return cls(
            town_id=town.town_id,
            name=town.name,
            owner_id=town.owner_id,
            share_id=town.share_id,
            crest=town.crest,
            crest_rarity=crest_rarity,
            motto=town.motto,
            is_public=town.is_public,
            allow_guest_entries=town.allow_guest_entries,
            stats=town.stats,
            themes=list(town.themes),
            created_at=town.created_at,
            last_activity=town.last_activity,
        )


class SharedTownResponse(BaseModel):
    """A share-link read: the town plus all of its stories, newest first."""

    model_config = ConfigDict(frozen=True)

    town: TownResponse
    stories: list[StoryResponse] = Field(default_factory=list)
    is_owner: bool = False


class TownListResponse(BaseModel):
    """The caller's towns, most recently active first."""

    model_config = ConfigDict(frozen=True)

    towns: list[TownResponse] = Field(default_factory=list)
    total: int = 0


class CreateStoryResponse(BaseModel):
    """The created story and the town state recomputed after it."""

    model_config = ConfigDict(frozen=True)

    story: StoryResponse
    town: TownResponse


class StoryListResponse(BaseModel):
    """Stories at one location of one town."""

    model_config = ConfigDict(frozen=True)

    town_id: str
    location: Location
    stories: list[StoryResponse] = Field(default_factory=list)
    total: int = 0


class DeleteResponse(BaseModel):
    """Acknowledgement of a delete, with the recomputed town when one remains."""

    model_config = ConfigDict(frozen=True)

    deleted: bool = True
    town: TownResponse | None = None


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
