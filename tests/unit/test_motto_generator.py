"""Unit tests for motto selection and the dominant-theme tie-break."""

from __future__ import annotations

from town_chronicle.models.town import Theme
from town_chronicle.services.motto_generator import dominant_theme, generate_motto


# ─── Dominant Theme ───────────────────────────────────────────────

class TestDominantTheme:
    def test_no_stories(self, lexicon):
        assert dominant_theme([], lexicon) is None

    def test_no_themes(self, make_story, lexicon):
        assert dominant_theme([make_story()], lexicon) is None

    def test_most_frequent_wins(self, make_story, lexicon):
        stories = [
            make_story(themes=[Theme.COOKING]),
            make_story(themes=[Theme.NATURE]),
            make_story(themes=[Theme.NATURE]),
        ]
        assert dominant_theme(stories, lexicon) == Theme.NATURE

    def test_tie_goes_to_first_declared(self, make_story, lexicon):
        stories = [
            make_story(themes=[Theme.COMMUNITY]),
            make_story(themes=[Theme.CRAFTS]),
        ]
        assert dominant_theme(stories, lexicon) == Theme.CRAFTS


# ─── Motto Selection ──────────────────────────────────────────────

class TestGenerateMotto:
    def test_empty_town(self, lexicon):
        assert generate_motto([], lexicon=lexicon) == "A town waiting to be discovered"

    def test_joyful_town(self, make_story, lexicon, rng):
        stories = [make_story(sentiment=2), make_story(sentiment=3)]
        assert generate_motto(stories, rng=rng, lexicon=lexicon) in lexicon.joyful_mottos

    def test_mysterious_town(self, make_story, lexicon, rng):
        stories = [make_story(sentiment=-2), make_story(sentiment=-3)]
        assert generate_motto(stories, rng=rng, lexicon=lexicon) in lexicon.mysterious_mottos

    def test_threshold_is_strict_above(self, make_story, lexicon, rng):
        stories = [make_story(sentiment=1, themes=[Theme.COOKING])]
        assert generate_motto(stories, rng=rng, lexicon=lexicon) in lexicon.mottos_for(Theme.COOKING)

    def test_threshold_is_strict_below(self, make_story, lexicon, rng):
        stories = [make_story(sentiment=-1, themes=[Theme.NATURE])]
        assert generate_motto(stories, rng=rng, lexicon=lexicon) in lexicon.mottos_for(Theme.NATURE)

    def test_sentiment_beats_theme(self, make_story, lexicon, rng):
        stories = [make_story(sentiment=5, themes=[Theme.COOKING])]
        assert generate_motto(stories, rng=rng, lexicon=lexicon) in lexicon.joyful_mottos

    def test_dominant_theme_motto(self, make_story, lexicon, rng):
        stories = [
            make_story(themes=[Theme.FESTIVAL]),
            make_story(themes=[Theme.FESTIVAL, Theme.COMMUNITY]),
        ]
        assert generate_motto(stories, rng=rng, lexicon=lexicon) in lexicon.mottos_for(Theme.FESTIVAL)

    def test_theme_without_mottos_falls_back(self, make_story, lexicon, rng):
        stories = [make_story(themes=[Theme.MYSTERY])]
        assert generate_motto(stories, rng=rng, lexicon=lexicon) == "A town woven from stories"

    def test_no_themes_falls_back(self, make_story, lexicon, rng):
        assert generate_motto([make_story()], rng=rng, lexicon=lexicon) == "A town woven from stories"

    def test_average_not_sum(self, make_story, lexicon, rng):
        # Sum is 2 but the average (2/3) is not above the joyful threshold.
        stories = [make_story(sentiment=2), make_story(), make_story()]
        assert generate_motto(stories, rng=rng, lexicon=lexicon) == "A town woven from stories"
