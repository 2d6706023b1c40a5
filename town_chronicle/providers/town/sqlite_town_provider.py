"""SQLite-backed town and story persistence provider.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Providers (concrete adapter implementing ITownProvider).
# Database: ``data/towns.db`` by default (``TOWN_DB_PATH``).
#
# Uses ``aiosqlite`` for async I/O and ``PRAGMA journal_mode=WAL`` for
# concurrent read safety.  Stories reference towns with ON DELETE CASCADE;
# foreign keys are switched on per connection because SQLite defaults
# them off.
#
# Story themes are stored as a JSON array in a TEXT column.  Timestamps
# are ISO-8601 strings in UTC.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import json
import sqlite3
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from town_chronicle.interfaces.town_provider import ITownProvider
from town_chronicle.models.town import Location, Story, ThemeCount, Town, TownStats
from town_chronicle.utils.errors import StorageError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/towns.db")

# ── Schema DDL ────────────────────────────────────────────────────────

_CREATE_TOWNS_TABLE = """\
CREATE TABLE IF NOT EXISTS towns (
    town_id                 TEXT    PRIMARY KEY,
    name                    TEXT    NOT NULL,
    owner_id                TEXT    NOT NULL,
    share_id                TEXT    NOT NULL UNIQUE,
    crest                   TEXT    NOT NULL DEFAULT '',
    motto                   TEXT    NOT NULL,
    is_public               INTEGER NOT NULL DEFAULT 1,
    allow_guest_entries     INTEGER NOT NULL DEFAULT 1,
    total_stories           INTEGER NOT NULL DEFAULT 0,
    total_visitors          INTEGER NOT NULL DEFAULT 0,
    locations_with_stories  INTEGER NOT NULL DEFAULT 0,
    contributors            INTEGER NOT NULL DEFAULT 0,
    themes                  TEXT    NOT NULL DEFAULT '[]',
    created_at              TEXT    NOT NULL,
    last_activity           TEXT    NOT NULL
);
"""

_CREATE_STORIES_TABLE = """\
CREATE TABLE IF NOT EXISTS stories (
    story_id    TEXT    PRIMARY KEY,
    town_id     TEXT    NOT NULL REFERENCES towns(town_id) ON DELETE CASCADE,
    author      TEXT    NOT NULL,
    content     TEXT    NOT NULL,
    location    TEXT    NOT NULL,
    themes      TEXT    NOT NULL DEFAULT '[]',
    sentiment   INTEGER NOT NULL DEFAULT 0,
    is_guest    INTEGER NOT NULL DEFAULT 0,
    user_id     TEXT,
    created_at  TEXT    NOT NULL
);
"""

_CREATE_INDICES = [
    "CREATE INDEX IF NOT EXISTS idx_towns_owner ON towns(owner_id, last_activity);",
    "CREATE INDEX IF NOT EXISTS idx_stories_town_location ON stories(town_id, location);",
    "CREATE INDEX IF NOT EXISTS idx_stories_town_created ON stories(town_id, created_at);",
]

# ── DML ───────────────────────────────────────────────────────────────

_INSERT_TOWN = """\
INSERT INTO towns (town_id, name, owner_id, share_id, crest, motto, is_public,
                   allow_guest_entries, total_stories, total_visitors,
                   locations_with_stories, contributors, themes, created_at, last_activity)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
"""

_INSERT_STORY = """\
INSERT INTO stories (story_id, town_id, author, content, location, themes,
                     sentiment, is_guest, user_id, created_at)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
"""

_UPDATE_DERIVED = """\
UPDATE towns
SET total_stories = ?, locations_with_stories = ?, contributors = ?,
    themes = ?, crest = ?, motto = ?, last_activity = ?
WHERE town_id = ?;
"""

_INCREMENT_VISITORS = """\
UPDATE towns SET total_visitors = total_visitors + 1 WHERE town_id = ?;
"""


class SQLiteTownProvider(ITownProvider):
    """SQLite-backed town/story persistence for the API server."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[aiosqlite.Connection]:
        """Open a connection with Row access and foreign keys enabled."""
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                db.row_factory = aiosqlite.Row
                await db.execute("PRAGMA foreign_keys=ON;")
                yield db
        except sqlite3.Error as exc:
            raise StorageError(str(exc), provider_name=self.get_provider_name()) from exc

    async def initialize(self) -> None:
        """Create tables and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with self._connect() as db:
            await db.execute("PRAGMA journal_mode=WAL;")
            await db.execute(_CREATE_TOWNS_TABLE)
            await db.execute(_CREATE_STORIES_TABLE)
            for idx_sql in _CREATE_INDICES:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("town_db_initialized", path=str(self._db_path))

    def get_provider_name(self) -> str:
        return "sqlite_town"

    # ── Towns ──────────────────────────────────────────────────────────

    async def create_town(self, town: Town) -> Town:
        async with self._connect() as db:
            await db.execute(_INSERT_TOWN, (
                town.town_id,
                town.name,
                town.owner_id,
                town.share_id,
                town.crest,
                town.motto,
                int(town.is_public),
                int(town.allow_guest_entries),
                town.stats.total_stories,
                town.stats.total_visitors,
                town.stats.locations_with_stories,
                town.stats.contributors,
                _dump_themes(town.themes),
                town.created_at.isoformat(),
                town.last_activity.isoformat(),
            ))
            await db.commit()
        logger.info("town_created", town_id=town.town_id, share_id=town.share_id)
        return town

    async def get_town(self, town_id: str) -> Town | None:
        return await self._fetch_town("SELECT * FROM towns WHERE town_id = ?;", town_id)

    async def get_town_by_share_id(self, share_id: str) -> Town | None:
        return await self._fetch_town("SELECT * FROM towns WHERE share_id = ?;", share_id)

    async def list_towns_by_owner(self, owner_id: str) -> list[Town]:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT * FROM towns WHERE owner_id = ? ORDER BY last_activity DESC;",
                (owner_id,),
            )
            rows = await cursor.fetchall()
        return [self._row_to_town(dict(row)) for row in rows]

    async def update_town(
        self,
        town_id: str,
        *,
        name: str | None = None,
        is_public: bool | None = None,
        allow_guest_entries: bool | None = None,
        last_activity: datetime | None = None,
    ) -> Town | None:
        # Build the SET clause from the fields that were supplied.
        assignments: list[str] = []
        params: list[Any] = []
        for column, value in (
            ("name", name),
            ("is_public", None if is_public is None else int(is_public)),
            ("allow_guest_entries", None if allow_guest_entries is None else int(allow_guest_entries)),
            ("last_activity", last_activity.isoformat() if last_activity else None),
        ):
            if value is not None:
                assignments.append(f"{column} = ?")
                params.append(value)

        if assignments:
            params.append(town_id)
            async with self._connect() as db:
                await db.execute(
                    f"UPDATE towns SET {', '.join(assignments)} WHERE town_id = ?;",
                    params,
                )
                await db.commit()
        return await self.get_town(town_id)

    async def delete_town(self, town_id: str) -> bool:
        async with self._connect() as db:
            # Explicit delete keeps the cascade independent of the FK pragma.
            await db.execute("DELETE FROM stories WHERE town_id = ?;", (town_id,))
            cursor = await db.execute("DELETE FROM towns WHERE town_id = ?;", (town_id,))
            await db.commit()
            deleted = cursor.rowcount > 0
        if deleted:
            logger.info("town_deleted", town_id=town_id)
        return deleted

    async def increment_visitors(self, town_id: str) -> None:
        async with self._connect() as db:
            await db.execute(_INCREMENT_VISITORS, (town_id,))
            await db.commit()

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
        async with self._connect() as db:
            await db.execute(_UPDATE_DERIVED, (
                stats.total_stories,
                stats.locations_with_stories,
                stats.contributors,
                _dump_themes(themes),
                crest,
                motto,
                last_activity.isoformat(),
                town_id,
            ))
            await db.commit()
        return await self.get_town(town_id)

    # ── Stories ────────────────────────────────────────────────────────

    async def create_story(self, story: Story) -> Story:
        async with self._connect() as db:
            await db.execute(_INSERT_STORY, (
                story.story_id,
                story.town_id,
                story.author,
                story.content,
                story.location.value,
                json.dumps([t.value for t in story.themes]),
                story.sentiment,
                int(story.is_guest),
                story.user_id,
                story.created_at.isoformat(),
            ))
            await db.commit()
        return story

    async def get_story(self, story_id: str) -> Story | None:
        async with self._connect() as db:
            cursor = await db.execute("SELECT * FROM stories WHERE story_id = ?;", (story_id,))
            row = await cursor.fetchone()
        return self._row_to_story(dict(row)) if row else None

    async def delete_story(self, story_id: str) -> bool:
        async with self._connect() as db:
            cursor = await db.execute("DELETE FROM stories WHERE story_id = ?;", (story_id,))
            await db.commit()
            return cursor.rowcount > 0

    async def find_stories_by_town(
        self,
        town_id: str,
        location: Location | None = None,
    ) -> list[Story]:
        conditions = ["town_id = ?"]
        params: list[Any] = [town_id]
        if location is not None:
            conditions.append("location = ?")
            params.append(location.value)

        query = f"""\
            SELECT * FROM stories
            WHERE {' AND '.join(conditions)}
            ORDER BY created_at DESC, rowid DESC;
        """
        async with self._connect() as db:
            cursor = await db.execute(query, params)
            rows = await cursor.fetchall()
        return [self._row_to_story(dict(row)) for row in rows]

    # ── Private helpers ────────────────────────────────────────────────

    async def _fetch_town(self, query: str, key: str) -> Town | None:
        async with self._connect() as db:
            cursor = await db.execute(query, (key,))
            row = await cursor.fetchone()
        return self._row_to_town(dict(row)) if row else None

    @staticmethod
    def _row_to_town(row: dict[str, Any]) -> Town:
        return Town(
            town_id=row["town_id"],
            name=row["name"],
            owner_id=row["owner_id"],
            share_id=row["share_id"],
            crest=row["crest"],
            motto=row["motto"],
            is_public=bool(row["is_public"]),
            allow_guest_entries=bool(row["allow_guest_entries"]),
            stats=TownStats(
                total_stories=row["total_stories"],
                total_visitors=row["total_visitors"],
                locations_with_stories=row["locations_with_stories"],
                contributors=row["contributors"],
            ),
            themes=[ThemeCount(**t) for t in json.loads(row["themes"] or "[]")],
            created_at=datetime.fromisoformat(row["created_at"]),
            last_activity=datetime.fromisoformat(row["last_activity"]),
        )

    @staticmethod
    def _row_to_story(row: dict[str, Any]) -> Story:
        return Story(
            story_id=row["story_id"],
            town_id=row["town_id"],
            author=row["author"],
            content=row["content"],
            location=Location(row["location"]),
            themes=json.loads(row["themes"] or "[]"),
            sentiment=row["sentiment"],
            is_guest=bool(row["is_guest"]),
            user_id=row.get("user_id"),
            created_at=datetime.fromisoformat(row["created_at"]),
        )


def _dump_themes(themes: list[ThemeCount]) -> str:
    return json.dumps([{"name": t.name.value, "count": t.count} for t in themes])
