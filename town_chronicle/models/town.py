"""Town Chronicle domain models — towns, stories, and their derived state.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Models (bottom of the dependency graph — no imports from upper layers).
#
# These frozen Pydantic v2 models represent the two persisted records
# (Town, Story) and the value objects the derivation pipeline produces
# (DerivedStats, DerivedTownState).
#
# Key design decisions:
#   - **Immutable state**: All models use ``frozen=True``.  A town's
#     derived fields are replaced via ``model_copy(update={...})`` after
#     each recomputation, never patched in place.
#   - **Stored derivations**: ``Story.themes`` and ``Story.sentiment`` are
#     computed once from ``content`` at creation time and stored.  Stories
#     cannot be edited, so they never go stale.
#   - **Derived vs. accumulated**: every ``TownStats`` counter except
#     ``total_visitors`` is derived from the current story set.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


# ─── Enumerations ────────────────────────────────────────────────────
# All inherit from (str, Enum) for automatic JSON serialization as strings.
# Member order is the declaration order used by theme extraction and by
# the motto tie-break.
class Theme(str, Enum):
    """Thematic tags a story can carry."""

    COOKING = "cooking"
    CRAFTS = "crafts"
    NATURE = "nature"
    FESTIVAL = "festival"
    SEASONS = "seasons"
    MYSTERY = "mystery"
    COMMUNITY = "community"
    ANIMALS = "animals"


class Location(str, Enum):
    """The six fixed places in every town."""

    TOWN_SQUARE = "town-square"
    BAKERY = "bakery"
    LIBRARY = "library"
    PARK = "park"
    WORKSHOP = "workshop"
    THEATER = "theater"

    @property
    def display_name(self) -> str:
        return self.value.replace("-", " ").title()


class Rarity(str, Enum):
    """Crest rarity tiers, ordered common < uncommon < rare < legendary."""

    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    LEGENDARY = "legendary"


# ─── Value objects ───────────────────────────────────────────────────

class ThemeCount(BaseModel):
    """One histogram bucket: how many stories carry ``name``."""

    model_config = ConfigDict(frozen=True)

    name: Theme
    count: int = Field(ge=0)


class TownStats(BaseModel):
    """Counters shown on a town's page."""

    model_config = ConfigDict(frozen=True)

    total_stories: int = Field(default=0, ge=0)
    total_visitors: int = Field(default=0, ge=0)
    locations_with_stories: int = Field(default=0, ge=0)
    contributors: int = Field(default=0, ge=0)


class DerivedStats(BaseModel):
    """Output of the stats recomputer — everything in TownStats but visitors."""

    model_config = ConfigDict(frozen=True)

    total_stories: int = Field(default=0, ge=0)
    locations_with_stories: int = Field(default=0, ge=0)
    contributors: int = Field(default=0, ge=0)
    themes: list[ThemeCount] = Field(default_factory=list)


class DerivedTownState(BaseModel):
    """One full recomputation cycle's result, written back onto the town."""

    model_config = ConfigDict(frozen=True)

    stats: DerivedStats
    crest: str
    motto: str


# ─── Story ───────────────────────────────────────────────────────────

class Story(BaseModel):
    """A single authored entry pinned to one town location."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    story_id: str = Field(description="Opaque unique identifier.")
    town_id: str = Field(description="Owning town; stories are cascade-deleted with it.")
    author: str = Field(min_length=1, max_length=50)
    content: str = Field(min_length=1, max_length=500)
    location: Location
    themes: list[Theme] = Field(
        default_factory=list,
        description="Derived from content at creation, never recomputed.",
    )
    sentiment: int = Field(default=0, description="Derived from content at creation.")
    is_guest: bool = Field(default=False)
    user_id: str | None = Field(
        default=None,
        description="Authenticated writer, or None for anonymous guests.",
    )
    created_at: datetime


# ─── Town ────────────────────────────────────────────────────────────

class Town(BaseModel):
    """A town and its presentation state.

    ``crest``, ``motto``, ``themes`` and every stat except
    ``total_visitors`` are derived from the town's current stories and
    replaced wholesale after each story mutation.
    """

    model_config = ConfigDict(frozen=True)

    town_id: str
    name: str = Field(min_length=1, max_length=100)
    owner_id: str
    share_id: str = Field(description="Public share handle; assigned once, never changed.")
    # Stored verbatim: catalog patterns carry significant leading whitespace.
    crest: str = ""
    motto: str = "A town waiting to be discovered"
    is_public: bool = True
    allow_guest_entries: bool = True
    stats: TownStats = Field(default_factory=TownStats)
    themes: list[ThemeCount] = Field(default_factory=list)
    created_at: datetime
    last_activity: datetime

    def is_owned_by(self, user_id: str | None) -> bool:
        return user_id is not None and user_id == self.owner_id
