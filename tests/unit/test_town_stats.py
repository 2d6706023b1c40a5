"""Unit tests for the theme histogram and derived town statistics."""

from __future__ import annotations

from town_chronicle.models.town import Location, Theme, ThemeCount
from town_chronicle.services.town_stats import count_themes, recompute_stats


class TestCountThemes:
    def test_empty(self, lexicon):
        assert count_themes([], lexicon) == {}

    def test_counts_per_story(self, make_story, lexicon):
        stories = [
            make_story(themes=[Theme.NATURE, Theme.ANIMALS]),
            make_story(themes=[Theme.NATURE]),
        ]
        assert count_themes(stories, lexicon) == {Theme.NATURE: 2, Theme.ANIMALS: 1}

    def test_declaration_order_not_frequency(self, make_story, lexicon):
        stories = [
            make_story(themes=[Theme.ANIMALS]),
            make_story(themes=[Theme.ANIMALS]),
            make_story(themes=[Theme.COOKING]),
        ]
        assert list(count_themes(stories, lexicon)) == [Theme.COOKING, Theme.ANIMALS]


class TestRecomputeStats:
    def test_empty(self, lexicon):
        stats = recompute_stats([], lexicon)
        assert stats.total_stories == 0
        assert stats.locations_with_stories == 0
        assert stats.contributors == 0
        assert stats.themes == []

    def test_distinct_locations_and_authors(self, make_story, lexicon):
        stories = [
            make_story(location=Location.BAKERY, author="Al"),
            make_story(location=Location.BAKERY, author="Al"),
            make_story(location=Location.PARK, author="Bo"),
        ]
        stats = recompute_stats(stories, lexicon)
        assert stats.total_stories == 3
        assert stats.locations_with_stories == 2
        assert stats.contributors == 2

    def test_contributors_are_author_strings(self, make_story, lexicon):
        stories = [
            make_story(author="Al", user_id="u1"),
            make_story(author="Al", is_guest=True),
        ]
        assert recompute_stats(stories, lexicon).contributors == 1

    def test_themes_histogram(self, make_story, lexicon):
        stories = [
            make_story(themes=[Theme.COOKING]),
            make_story(themes=[Theme.COOKING, Theme.SEASONS]),
        ]
        assert recompute_stats(stories, lexicon).themes == [
            ThemeCount(name=Theme.COOKING, count=2),
            ThemeCount(name=Theme.SEASONS, count=1),
        ]
