"""Unit tests for the Town Chronicle domain models."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from town_chronicle.models.town import Location, Rarity, Story, Theme, ThemeCount, Town, TownStats
from town_chronicle.services.crest_generator import crest_rarity

_NOW = datetime(2025, 6, 15, tzinfo=timezone.utc)


def _story(**overrides) -> Story:
    fields = {
        "story_id": "s1",
        "town_id": "t1",
        "author": "Ada",
        "content": "I love to bake bread",
        "location": Location.BAKERY,
        "created_at": _NOW,
    }
    fields.update(overrides)
    return Story(**fields)


class TestEnums:
    def test_location_values(self):
        assert [loc.value for loc in Location] == [
            "town-square", "bakery", "library", "park", "workshop", "theater",
        ]

    def test_location_display_name(self):
        assert Location.TOWN_SQUARE.display_name == "Town Square"

    def test_theme_is_string(self):
        assert Theme("cooking") is Theme.COOKING
        assert Theme.COOKING == "cooking"


class TestStory:
    def test_strips_whitespace(self):
        story = _story(author="  Ada  ", content="  hello  ")
        assert story.author == "Ada"
        assert story.content == "hello"

    def test_rejects_blank_author(self):
        with pytest.raises(ValidationError):
            _story(author="   ")

    def test_rejects_long_content(self):
        with pytest.raises(ValidationError):
            _story(content="x" * 501)

    def test_accepts_max_lengths(self):
        story = _story(author="a" * 50, content="c" * 500)
        assert len(story.content) == 500

    def test_frozen(self):
        story = _story()
        with pytest.raises(ValidationError):
            story.content = "edited"

    def test_location_from_string(self):
        assert _story(location="park").location == Location.PARK


class TestTown:
    def _town(self, **overrides) -> Town:
        fields = {
            "town_id": "t1",
            "name": "Willowmere",
            "owner_id": "u1",
            "share_id": "abc",
            "created_at": _NOW,
            "last_activity": _NOW,
        }
        fields.update(overrides)
        return Town(**fields)

    def test_defaults(self):
        town = self._town()
        assert town.motto == "A town waiting to be discovered"
        assert town.is_public is True
        assert town.allow_guest_entries is True
        assert town.stats == TownStats()
        assert town.themes == []

    def test_is_owned_by(self):
        town = self._town()
        assert town.is_owned_by("u1")
        assert not town.is_owned_by("u2")
        assert not town.is_owned_by(None)

    def test_name_length(self):
        with pytest.raises(ValidationError):
            self._town(name="n" * 101)

    def test_json_round_trip(self):
        town = self._town(themes=[ThemeCount(name=Theme.NATURE, count=2)])
        assert Town.model_validate(town.model_dump(mode="json")) == town

    def test_negative_counts_rejected(self):
        with pytest.raises(ValidationError):
            ThemeCount(name=Theme.NATURE, count=-1)

    def test_crest_pattern_kept_verbatim(self, lexicon):
        for crest in lexicon.crests:
            assert self._town(crest=crest.pattern).crest == crest.pattern

    def test_stored_crest_resolves_rarity(self, lexicon):
        arcane = next(c for c in lexicon.crests if c.name == "arcane")
        town = self._town(crest=arcane.pattern)
        assert crest_rarity(town.crest, lexicon) == Rarity.LEGENDARY
