"""Town Chronicle orchestrator — town lifecycle, story mutations, recomputation.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Services (business logic orchestration).
# Depends on: ITownProvider, the lexicon, and the pure derivation modules
#             (text_analysis, town_stats, crest_generator, motto_generator).
#
# TownService is the single owner of the "mutate then recompute" cycle:
#
#   1. VALIDATE   — trim author/content/name, enforce length limits.
#   2. AUTHORIZE  — owner-only operations, guest-entry and privacy rules.
#   3. MUTATE     — create or delete the story through the provider.
#   4. RECOMPUTE  — fetch the town's COMPLETE story set and derive stats,
#                   themes, crest and motto from scratch.
#   5. PERSIST    — write the derived fields back in one call.
#
# Both the HTTP API and the offline CLI call this service, so the
# derivation logic exists exactly once.
#
# Concurrency: no lock guards the fetch-derive-persist window.  Two
# simultaneous mutations on one town may each derive from a stale story
# set; the later write wins on the town record while both story writes
# persist.  The next mutation or a regenerate repairs the town.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import base64
import binascii
import json
import random
import secrets
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from uuid import uuid4

import structlog
from pydantic import ValidationError

from town_chronicle.config.lexicon import Lexicon, get_lexicon
from town_chronicle.interfaces.town_provider import ITownProvider
from town_chronicle.models.town import (
    DerivedTownState,
    Location,
    Story,
    Town,
    TownStats,
)
from town_chronicle.services.crest_generator import generate_crest
from town_chronicle.services.motto_generator import generate_motto
from town_chronicle.services.text_analysis import analyze_sentiment, extract_themes
from town_chronicle.services.town_stats import recompute_stats
from town_chronicle.utils.errors import (
    AuthenticationError,
    InvalidInputError,
    PermissionDeniedError,
    StoryNotFoundError,
    TownNotFoundError,
)

logger = structlog.get_logger(logger_name=__name__)

# ── Constants ─────────────────────────────────────────────────────────
_MAX_AUTHOR_CHARS = 50
_MAX_CONTENT_CHARS = 500
_MAX_TOWN_NAME_CHARS = 100


def derive_town_state(
    stories: Sequence[Story],
    rng: random.Random | None = None,
    lexicon: Lexicon | None = None,
) -> DerivedTownState:
    """Run one full derivation cycle over a town's complete story set."""
    return DerivedTownState(
        stats=recompute_stats(stories, lexicon),
        crest=generate_crest(stories, rng=rng, lexicon=lexicon),
        motto=generate_motto(stories, rng=rng, lexicon=lexicon),
    )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _require_text(value: str | None, field: str, max_chars: int) -> str:
    text = (value or "").strip()
    if not text:
        raise InvalidInputError(f"{field} is required")
    if len(text) > max_chars:
        raise InvalidInputError(f"{field} must be at most {max_chars} characters")
    return text


class TownService:
    """Coordinates town/story persistence with the derivation pipeline.

    All dependencies are constructor-injected.  ``rng`` and ``clock`` exist
    so tests can pin randomness and time; production uses an unseeded
    ``random.Random`` and UTC wall-clock time.
    """

    def __init__(
        self,
        town_store: ITownProvider,
        lexicon: Lexicon | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = town_store
        self._lexicon = lexicon or get_lexicon()
        self._rng = rng or random.Random()
        self._clock = clock

    @property
    def lexicon(self) -> Lexicon:
        return self._lexicon

    # ── Towns ──────────────────────────────────────────────────────────

    async def create_town(self, owner_id: str | None, name: str) -> Town:
        """Create an empty town owned by ``owner_id`` with a fresh share id."""
        owner = self._require_user(owner_id)
        clean_name = _require_text(name, "Town name", _MAX_TOWN_NAME_CHARS)
        now = self._clock()
        empty = derive_town_state([], rng=self._rng, lexicon=self._lexicon)

        town = Town(
            town_id=uuid4().hex,
            name=clean_name,
            owner_id=owner,
            share_id=secrets.token_urlsafe(9),
            crest=empty.crest,
            motto=empty.motto,
            created_at=now,
            last_activity=now,
        )
        return await self._store.create_town(town)

    async def list_my_towns(self, owner_id: str | None) -> list[Town]:
        return await self._store.list_towns_by_owner(self._require_user(owner_id))

    async def get_town_with_stories(self, town_id: str) -> tuple[Town, list[Story]]:
        """Load a town and its stories without privacy checks or visit counting."""
        town = await self._store.get_town(town_id)
        if town is None:
            raise TownNotFoundError()
        return town, await self._store.find_stories_by_town(town_id)

    async def get_shared_town(
        self,
        share_id: str,
        viewer_id: str | None = None,
    ) -> tuple[Town, list[Story]]:
        """Resolve a share link.  Non-owner reads count as a visit.

        Raises PermissionDeniedError for a private town viewed by anyone
        other than its owner.
        """
        town = await self._store.get_town_by_share_id(share_id)
        if town is None:
            raise TownNotFoundError()
        is_owner = town.is_owned_by(viewer_id)
        if not town.is_public and not is_owner:
            raise PermissionDeniedError("This town is private")

        stories = await self._store.find_stories_by_town(town.town_id)
        if not is_owner:
            await self._store.increment_visitors(town.town_id)
            town = await self._store.get_town(town.town_id) or town
        return town, stories

    async def update_town(
        self,
        town_id: str,
        owner_id: str | None,
        *,
        name: str | None = None,
        is_public: bool | None = None,
        allow_guest_entries: bool | None = None,
    ) -> Town:
        """Change owner-editable settings and bump ``last_activity``."""
        await self._get_owned_town(town_id, owner_id)
        clean_name = _require_text(name, "Town name", _MAX_TOWN_NAME_CHARS) if name is not None else None
        updated = await self._store.update_town(
            town_id,
            name=clean_name,
            is_public=is_public,
            allow_guest_entries=allow_guest_entries,
            last_activity=self._clock(),
        )
        if updated is None:
            raise TownNotFoundError()
        return updated

    async def delete_town(self, town_id: str, owner_id: str | None) -> None:
        """Delete a town and, with it, every story it holds."""
        await self._get_owned_town(town_id, owner_id)
        await self._store.delete_town(town_id)

    async def regenerate_town(self, town_id: str, owner_id: str | None) -> Town:
        """Re-roll crest and motto (and refresh stats) from the current stories."""
        await self._get_owned_town(town_id, owner_id)
        return await self.recompute_town(town_id)

    # ── Stories ────────────────────────────────────────────────────────

    async def add_story(
        self,
        *,
        author: str,
        content: str,
        location: Location | str,
        user_id: str | None = None,
        town_id: str | None = None,
        share_id: str | None = None,
    ) -> Story:
        """Add a story by town id or share id, then recompute the town.

        Anyone who isn't the town's owner writes as a guest, and guests are
        refused when the town disallows guest entries.
        """
        clean_author = _require_text(author, "Author", _MAX_AUTHOR_CHARS)
        clean_content = _require_text(content, "Content", _MAX_CONTENT_CHARS)
        place = self._parse_location(location)

        town: Town | None = None
        if town_id:
            town = await self._store.get_town(town_id)
        elif share_id:
            town = await self._store.get_town_by_share_id(share_id)
        if town is None:
            raise TownNotFoundError()

        is_guest = not town.is_owned_by(user_id)
        if is_guest and not town.allow_guest_entries:
            raise PermissionDeniedError("Guest entries not allowed for this town")

        story = Story(
            story_id=uuid4().hex,
            town_id=town.town_id,
            author=clean_author,
            content=clean_content,
            location=place,
            themes=extract_themes(clean_content, self._lexicon),
            sentiment=analyze_sentiment(clean_content, self._lexicon),
            is_guest=is_guest,
            user_id=user_id,
            created_at=self._clock(),
        )
        story = await self._store.create_story(story)
        logger.info(
            "story_created",
            story_id=story.story_id,
            town_id=town.town_id,
            location=place.value,
            themes=[t.value for t in story.themes],
            sentiment=story.sentiment,
            is_guest=is_guest,
        )

        await self.recompute_town(town.town_id)
        return story

    async def list_location_stories(
        self,
        town_id: str,
        location: Location | str,
        viewer_id: str | None = None,
    ) -> list[Story]:
        """Stories at one location, newest first.  Private towns: owner only."""
        place = self._parse_location(location)
        town = await self._store.get_town(town_id)
        if town is None:
            raise TownNotFoundError()
        if not town.is_public and not town.is_owned_by(viewer_id):
            raise PermissionDeniedError("This town is private")
        return await self._store.find_stories_by_town(town_id, place)

    async def delete_story(self, story_id: str, user_id: str | None) -> Town:
        """Delete a story (town owner only), then recompute its town."""
        caller = self._require_user(user_id)
        story = await self._store.get_story(story_id)
        if story is None:
            raise StoryNotFoundError()
        town = await self._store.get_town(story.town_id)
        if town is None:
            raise TownNotFoundError()
        if not town.is_owned_by(caller):
            raise PermissionDeniedError("Unauthorized to delete this story")

        await self._store.delete_story(story_id)
        logger.info("story_deleted", story_id=story_id, town_id=town.town_id)
        return await self.recompute_town(town.town_id)

    # ── Recomputation ──────────────────────────────────────────────────

    async def recompute_town(self, town_id: str) -> Town:
        """Derive every story-dependent town field from the full story set."""
        stories = await self._store.find_stories_by_town(town_id)
        derived = derive_town_state(stories, rng=self._rng, lexicon=self._lexicon)

        town = await self._store.persist_derived_fields(
            town_id,
            stats=TownStats(
                total_stories=derived.stats.total_stories,
                locations_with_stories=derived.stats.locations_with_stories,
                contributors=derived.stats.contributors,
            ),
            themes=derived.stats.themes,
            crest=derived.crest,
            motto=derived.motto,
            last_activity=self._clock(),
        )
        if town is None:
            raise TownNotFoundError()

        logger.info(
            "town_recomputed",
            town_id=town_id,
            total_stories=derived.stats.total_stories,
            motto=derived.motto,
        )
        return town

    # ── Offline transfer ───────────────────────────────────────────────

    async def export_town(self, town_id: str) -> str:
        """Encode a town and its stories as a URL-safe base64 string."""
        town = await self._store.get_town(town_id)
        if town is None:
            raise TownNotFoundError()
        stories = await self._store.find_stories_by_town(town_id)
        payload = {
            "town": town.model_dump(mode="json"),
            "stories": [s.model_dump(mode="json") for s in stories],
        }
        return base64.urlsafe_b64encode(json.dumps(payload).encode("utf-8")).decode("ascii")

    async def import_town(self, encoded: str, owner_id: str | None) -> Town:
        """Recreate an exported town as a new town owned by ``owner_id``.

        Ids and the share id are regenerated and the visitor count starts
        over.  Stories keep their stored themes and sentiment; the town's
        derived fields are recomputed from them.
        """
        owner = self._require_user(owner_id)
        try:
            payload = json.loads(base64.urlsafe_b64decode(encoded.strip().encode("ascii")))
            source = Town.model_validate(payload["town"])
            stories = [Story.model_validate(s) for s in payload.get("stories", [])]
        except (binascii.Error, UnicodeError, ValueError, KeyError, TypeError, ValidationError) as exc:
            raise InvalidInputError(f"Not a valid town export: {exc}") from exc

        now = self._clock()
        town = await self._store.create_town(Town(
            town_id=uuid4().hex,
            name=source.name,
            owner_id=owner,
            share_id=secrets.token_urlsafe(9),
            crest=source.crest,
            motto=source.motto,
            is_public=source.is_public,
            allow_guest_entries=source.allow_guest_entries,
            created_at=source.created_at,
            last_activity=now,
        ))
        # Oldest first so the provider sees the original insertion order.
        for story in sorted(stories, key=lambda s: s.created_at):
            await self._store.create_story(
                story.model_copy(update={"story_id": uuid4().hex, "town_id": town.town_id})
            )

        logger.info("town_imported", town_id=town.town_id, stories=len(stories))
        return await self.recompute_town(town.town_id)

    # ── Private helpers ────────────────────────────────────────────────

    @staticmethod
    def _require_user(user_id: str | None) -> str:
        if not user_id:
            raise AuthenticationError()
        return user_id

    @staticmethod
    def _parse_location(location: Location | str) -> Location:
        try:
            return Location(location)
        except ValueError as exc:
            allowed = ", ".join(loc.value for loc in Location)
            raise InvalidInputError(f"Unknown location {location!r}; expected one of: {allowed}") from exc

    async def _get_owned_town(self, town_id: str, owner_id: str | None) -> Town:
        owner = self._require_user(owner_id)
        town = await self._store.get_town(town_id)
        if town is None:
            raise TownNotFoundError()
        if not town.is_owned_by(owner):
            raise PermissionDeniedError("Only the town owner can do that")
        return town
