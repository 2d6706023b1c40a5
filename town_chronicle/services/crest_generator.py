"""Crest selection — pick an ASCII-art crest from the lexicon catalog.

# ─── SELECTION RULES ──────────────────────────────────────────────────
#
#   1. No stories                → the default (theme-less) pattern.
#   2. Build a theme histogram over every story.
#   3. A pattern is unlocked when it has no themes, or one of its themes
#      reaches its ``min_theme_count`` and the town has ``min_stories``.
#      (The legendary mystery crest needs mystery >= 2 and 5+ stories.)
#   4. Nothing unlocked          → the default pattern.
#   5. Otherwise draw one slot uniformly from a list where each unlocked
#      pattern appears ``weight(rarity)`` times
#      (common 1, uncommon 2, rare 3, legendary 4).
#
# Selection is random: rarer crests are favoured, never guaranteed.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import random
from collections.abc import Sequence

from town_chronicle.config.lexicon import CrestPattern, Lexicon, get_lexicon
from town_chronicle.models.town import Rarity, Story, Theme
from town_chronicle.services.town_stats import count_themes

_rng = random.Random()


def _is_unlocked(
    crest: CrestPattern,
    histogram: dict[Theme, int],
    story_count: int,
) -> bool:
    if crest.is_default:
        return True
    if story_count < crest.min_stories:
        return False
    return any(histogram.get(theme, 0) >= crest.min_theme_count for theme in crest.themes)


def unlocked_crests(stories: Sequence[Story], lexicon: Lexicon | None = None) -> list[CrestPattern]:
    """Catalog entries the given stories currently qualify for, in catalog order."""
    lex = lexicon or get_lexicon()
    if not stories:
        return [lex.default_crest]
    histogram = count_themes(stories, lex)
    return [c for c in lex.crests if _is_unlocked(c, histogram, len(stories))]


def generate_crest(
    stories: Sequence[Story],
    rng: random.Random | None = None,
    lexicon: Lexicon | None = None,
) -> str:
    """Return the pattern text of a rarity-weighted random unlocked crest."""
    lex = lexicon or get_lexicon()
    if not stories:
        return lex.default_crest.pattern

    eligible = unlocked_crests(stories, lex)
    if not eligible:
        return lex.default_crest.pattern

    slots: list[CrestPattern] = []
    for crest in eligible:
        slots.extend([crest] * lex.weight_for(crest.rarity))

    return (rng or _rng).choice(slots).pattern


def crest_rarity(pattern: str, lexicon: Lexicon | None = None) -> Rarity:
    """Rarity of a stored crest; COMMON for text not in the catalog."""
    crest = (lexicon or get_lexicon()).find_crest(pattern)
    return crest.rarity if crest else Rarity.COMMON
