"""Shared pytest fixtures for the Town Chronicle test suite."""

from __future__ import annotations

import itertools
import random
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from town_chronicle.config.lexicon import Lexicon, get_lexicon
from town_chronicle.models.town import Location, Story, Theme, Town

_BASE_TIME = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def lexicon() -> Lexicon:
    """The lexicon shipped with the package."""
    return get_lexicon()


@pytest.fixture
def rng() -> random.Random:
    """A seeded RNG so a failing random pick is reproducible."""
    return random.Random(1234)


@pytest.fixture
def make_story() -> Callable[..., Story]:
    """Factory for stories with stored themes/sentiment set directly.

    Each call gets a fresh id and a ``created_at`` one minute after the
    previous call's.
    """
    counter = itertools.count(1)

    def _make(
        *,
        themes: list[Theme] | None = None,
        sentiment: int = 0,
        author: str = "Ada",
        location: Location = Location.TOWN_SQUARE,
        content: str = "A quiet afternoon.",
        town_id: str = "town-1",
        is_guest: bool = False,
        user_id: str | None = None,
    ) -> Story:
        n = next(counter)
        return Story(
            story_id=f"story-{n}",
            town_id=town_id,
            author=author,
            content=content,
            location=location,
            themes=themes or [],
            sentiment=sentiment,
            is_guest=is_guest,
            user_id=user_id,
            created_at=_BASE_TIME + timedelta(minutes=n),
        )

    return _make


@pytest.fixture
def make_town() -> Callable[..., Town]:
    """Factory for towns with sensible defaults."""
    counter = itertools.count(1)

    def _make(
        *,
        town_id: str | None = None,
        name: str = "Willowmere",
        owner_id: str = "owner-1",
        share_id: str | None = None,
        is_public: bool = True,
        allow_guest_entries: bool = True,
        crest: str = "",
    ) -> Town:
        n = next(counter)
        return Town(
            town_id=town_id or f"town-{n}",
            name=name,
            owner_id=owner_id,
            share_id=share_id or f"share-{n}",
            is_public=is_public,
            allow_guest_entries=allow_guest_entries,
            crest=crest,
            created_at=_BASE_TIME,
            last_activity=_BASE_TIME + timedelta(minutes=n),
        )

    return _make
