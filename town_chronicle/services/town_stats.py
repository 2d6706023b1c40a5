"""Aggregate statistics derived from a town's full story collection.

Always fed the complete current story set, never a single changed story,
so the result is a replacement for the town's stored counters rather than
a delta.  ``total_visitors`` is not touched here; it accumulates
independently from share-link reads.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence

from town_chronicle.config.lexicon import Lexicon, get_lexicon
from town_chronicle.models.town import DerivedStats, Story, Theme, ThemeCount


def count_themes(stories: Sequence[Story], lexicon: Lexicon | None = None) -> dict[Theme, int]:
    """Theme histogram over all stories, keyed in lexicon declaration order.

    Themes absent from every story are omitted.
    """
    lex = lexicon or get_lexicon()
    counts: Counter[Theme] = Counter()
    for story in stories:
        counts.update(story.themes)

    ordered = {theme: counts[theme] for theme in lex.theme_order if counts[theme]}
    # Themes a custom lexicon no longer declares keep first-seen order at the end.
    for theme, count in counts.items():
        if theme not in ordered:
            ordered[theme] = count
    return ordered


def recompute_stats(stories: Sequence[Story], lexicon: Lexicon | None = None) -> DerivedStats:
    """Derive story count, distinct locations, distinct authors and themes.

    Contributors are distinct ``author`` strings, not distinct users: a
    guest who signs with a registered user's name counts as that user.
    """
    histogram = count_themes(stories, lexicon)
    return DerivedStats(
        total_stories=len(stories),
        locations_with_stories=len({s.location for s in stories}),
        contributors=len({s.author for s in stories}),
        themes=[ThemeCount(name=theme, count=count) for theme, count in histogram.items()],
    )
