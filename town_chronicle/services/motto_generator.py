"""Motto selection from average story sentiment and the dominant theme."""

from __future__ import annotations

import random
from collections.abc import Sequence

from town_chronicle.config.lexicon import Lexicon, get_lexicon
from town_chronicle.models.town import Story, Theme
from town_chronicle.services.town_stats import count_themes

_rng = random.Random()


def dominant_theme(stories: Sequence[Story], lexicon: Lexicon | None = None) -> Theme | None:
    """Most frequent theme; ties go to the theme declared first in the lexicon."""
    best: Theme | None = None
    best_count = 0
    for theme, count in count_themes(stories, lexicon).items():
        if count > best_count:
            best, best_count = theme, count
    return best


def generate_motto(
    stories: Sequence[Story],
    rng: random.Random | None = None,
    lexicon: Lexicon | None = None,
) -> str:
    """Pick a motto.

    Strongly positive towns (average sentiment above the joyful threshold)
    get a joyful motto, strongly negative ones a mysterious motto.  Neutral
    towns get a motto for their dominant theme when that theme has any,
    and the fallback otherwise.
    """
    lex = lexicon or get_lexicon()
    if not stories:
        return lex.empty_motto

    pick = (rng or _rng).choice
    average = sum(s.sentiment for s in stories) / len(stories)

    if average > lex.joyful_threshold:
        return pick(lex.joyful_mottos)
    if average < lex.mysterious_threshold:
        return pick(lex.mysterious_mottos)

    theme = dominant_theme(stories, lex)
    if theme is not None:
        mottos = lex.mottos_for(theme)
        if mottos:
            return pick(mottos)

    return lex.fallback_motto
