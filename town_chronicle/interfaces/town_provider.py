"""Abstract base class for town and story persistence providers.

# ─── ADAPTER PATTERN ─────────────────────────────────────────────────
#
# TownService talks to storage only through ITownProvider.  Concrete
# implementations:
#   - SQLiteTownProvider   (providers/town/sqlite_town_provider.py) — API server
#   - JsonFileTownProvider (providers/town/json_file_town_provider.py) — offline CLI
#
# All operations are async so network-backed stores can be slotted in
# without touching the service layer.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from town_chronicle.models.town import Location, Story, ThemeCount, Town, TownStats


class ITownProvider(ABC):
    """Contract for town/story persistence.

    Providers store what they are given; they never derive crest, motto or
    stats themselves.  Failures surface as ``StorageError``.
    """

    # ── Lifecycle ──────────────────────────────────────────────────────

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables/files if they don't exist.  Called at startup."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""

    # ── Towns ──────────────────────────────────────────────────────────

    @abstractmethod
    async def create_town(self, town: Town) -> Town:
        """Persist a new town.  ``share_id`` must be unique across towns."""

    @abstractmethod
    async def get_town(self, town_id: str) -> Town | None:
        """Retrieve a town by id, or None."""

    @abstractmethod
    async def get_town_by_share_id(self, share_id: str) -> Town | None:
        """Retrieve a town by its public share id, or None."""

    @abstractmethod
    async def list_towns_by_owner(self, owner_id: str) -> list[Town]:
        """All towns owned by ``owner_id``, most recent activity first."""

    @abstractmethod
    async def update_town(
        self,
        town_id: str,
        *,
        name: str | None = None,
        is_public: bool | None = None,
        allow_guest_entries: bool | None = None,
        last_activity: datetime | None = None,
    ) -> Town | None:
        """Overwrite the given owner-editable fields.  None leaves a field as is.

        Derived fields (crest, motto, themes, stats) change only through
        ``persist_derived_fields``.

        Returns the updated town, or None if it doesn't exist.
        """

    @abstractmethod
    async def delete_town(self, town_id: str) -> bool:
        """Delete a town and every story in it.  True if the town existed."""

    @abstractmethod
    async def increment_visitors(self, town_id: str) -> None:
        """Add one to ``stats.total_visitors``."""

    @abstractmethod
    async def persist_derived_fields(
        self,
        town_id: str,
        *,
        stats: TownStats,
        themes: list[ThemeCount],
        crest: str,
        motto: str,
        last_activity: datetime,
    ) -> Town | None:
        """Replace the derived town fields wholesale.

        ``stats.total_visitors`` is ignored; the stored visitor count is kept.
        Returns the updated town, or None if it doesn't exist.
        """

    # ── Stories ────────────────────────────────────────────────────────

    @abstractmethod
    async def create_story(self, story: Story) -> Story:
        """Persist a new story.  Its derived fields are already populated."""

    @abstractmethod
    async def get_story(self, story_id: str) -> Story | None:
        """Retrieve a story by id, or None."""

    @abstractmethod
    async def delete_story(self, story_id: str) -> bool:
        """Delete a story.  True if it existed."""

    @abstractmethod
    async def find_stories_by_town(
        self,
        town_id: str,
        location: Location | None = None,
    ) -> list[Story]:
        """Stories of a town, newest first.

        With ``location`` None this must be the complete current set: it is
        the sole input to every derivation.
        """
