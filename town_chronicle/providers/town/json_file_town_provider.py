"""JSON-document town and story persistence for offline use.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Providers (concrete adapter implementing ITownProvider).
# Used by the offline CLI, where a single user keeps their chronicle in
# one file (``data/local_town.json`` by default, ``LOCAL_TOWN_PATH``).
#
# The whole document is held in memory after ``initialize()`` and written
# back atomically (temp file + rename) after every mutation.  File writes
# run in a worker thread so the event loop is never blocked.
#
# Document layout:
#   {"towns": {town_id: Town}, "stories": {story_id: Story}}
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
import json
import os
from datetime import datetime
from pathlib import Path
from typing import Any

import structlog
from pydantic import ValidationError

from town_chronicle.interfaces.town_provider import ITownProvider
from town_chronicle.models.town import Location, Story, ThemeCount, Town, TownStats
from town_chronicle.utils.errors import StorageError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_PATH = Path("data/local_town.json")


class JsonFileTownProvider(ITownProvider):
    """Single-file town/story persistence for the offline chronicle."""

    def __init__(self, path: str | Path = _DEFAULT_PATH) -> None:
        self._path = Path(path)
        self._towns: dict[str, Town] = {}
        self._stories: dict[str, Story] = {}

    async def initialize(self) -> None:
        """Load the document if it exists; otherwise start empty."""
        if not self._path.exists():
            logger.info("local_town_file_missing", path=str(self._path))
            return
        try:
            raw = await asyncio.to_thread(self._path.read_text, encoding="utf-8")
            doc = json.loads(raw) if raw.strip() else {}
            self._towns = {
                tid: Town.model_validate(t) for tid, t in doc.get("towns", {}).items()
            }
            self._stories = {
                sid: Story.model_validate(s) for sid, s in doc.get("stories", {}).items()
            }
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            raise StorageError(
                f"Cannot load {self._path}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info(
            "local_town_file_loaded",
            path=str(self._path),
            towns=len(self._towns),
            stories=len(self._stories),
        )

    def get_provider_name(self) -> str:
        return "json_file_town"

    # ── Towns ──────────────────────────────────────────────────────────

    async def create_town(self, town: Town) -> Town:
        if any(t.share_id == town.share_id for t in self._towns.values()):
            raise StorageError(
                f"Duplicate share id {town.share_id}",
                provider_name=self.get_provider_name(),
            )
        self._towns[town.town_id] = town
        await self._flush()
        return town

    async def get_town(self, town_id: str) -> Town | None:
        return self._towns.get(town_id)

    async def get_town_by_share_id(self, share_id: str) -> Town | None:
        for town in self._towns.values():
            if town.share_id == share_id:
                return town
        return None

    async def list_towns_by_owner(self, owner_id: str) -> list[Town]:
        owned = [t for t in self._towns.values() if t.owner_id == owner_id]
        return sorted(owned, key=lambda t: t.last_activity, reverse=True)

    async def update_town(
        self,
        town_id: str,
        *,
        name: str | None = None,
        is_public: bool | None = None,
        allow_guest_entries: bool | None = None,
        last_activity: datetime | None = None,
    ) -> Town | None:
        town = self._towns.get(town_id)
        if town is None:
            return None
        changes = {
            key: value
            for key, value in (
                ("name", name),
                ("is_public", is_public),
                ("allow_guest_entries", allow_guest_entries),
                ("last_activity", last_activity),
            )
            if value is not None
        }
        if changes:
            town = town.model_copy(update=changes)
            self._towns[town_id] = town
            await self._flush()
        return town

    async def delete_town(self, town_id: str) -> bool:
        if self._towns.pop(town_id, None) is None:
            return False
        self._stories = {
            sid: s for sid, s in self._stories.items() if s.town_id != town_id
        }
        await self._flush()
        return True

    async def increment_visitors(self, town_id: str) -> None:
        town = self._towns.get(town_id)
        if town is None:
            return
        stats = town.stats.model_copy(update={"total_visitors": town.stats.total_visitors + 1})
        self._towns[town_id] = town.model_copy(update={"stats": stats})
        await self._flush()

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
        town = self._towns.get(town_id)
        if town is None:
            return None
        merged = stats.model_copy(update={"total_visitors": town.stats.total_visitors})
        town = town.model_copy(update={
            "stats": merged,
            "themes": list(themes),
            "crest": crest,
            "motto": motto,
            "last_activity": last_activity,
        })
        self._towns[town_id] = town
        await self._flush()
        return town

    # ── Stories ────────────────────────────────────────────────────────

    async def create_story(self, story: Story) -> Story:
        self._stories[story.story_id] = story
        await self._flush()
        return story

    async def get_story(self, story_id: str) -> Story | None:
        return self._stories.get(story_id)

    async def delete_story(self, story_id: str) -> bool:
        if self._stories.pop(story_id, None) is None:
            return False
        await self._flush()
        return True

    async def find_stories_by_town(
        self,
        town_id: str,
        location: Location | None = None,
    ) -> list[Story]:
        matches = [
            s for s in self._stories.values()
            if s.town_id == town_id and (location is None or s.location == location)
        ]
        # Insertion order breaks created_at ties; reversed() keeps newest first.
        return sorted(reversed(matches), key=lambda s: s.created_at, reverse=True)

    # ── Private helpers ────────────────────────────────────────────────

    async def _flush(self) -> None:
        doc: dict[str, Any] = {
            "towns": {tid: t.model_dump(mode="json") for tid, t in self._towns.items()},
            "stories": {sid: s.model_dump(mode="json") for sid, s in self._stories.items()},
        }
        try:
            await asyncio.to_thread(self._write, json.dumps(doc, indent=2, ensure_ascii=False))
        except OSError as exc:
            raise StorageError(
                f"Cannot write {self._path}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    def _write(self, text: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(text, encoding="utf-8")
        os.replace(tmp, self._path)
