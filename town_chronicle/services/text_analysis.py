"""Keyword-based theme extraction and sentiment scoring for story text.

Both functions are pure and total: any string (empty, unicode, markup)
yields a result, never an exception.  They run once per story at creation
time and their output is stored on the Story.

The two matchers differ on purpose:

- **Themes** use plain substring containment, so "bakery" matches the
  ``bake`` keyword and "catalog" matches ``cat``.
- **Sentiment** uses exact token equality after splitting on runs of
  ASCII non-word characters, so "sadness" does not count as ``sad`` while
  "happyé" still yields the token ``happy``.
"""

from __future__ import annotations

import re

from town_chronicle.config.lexicon import Lexicon, get_lexicon
from town_chronicle.models.town import Theme

_NON_WORD = re.compile(r"\W+", re.ASCII)


def extract_themes(content: str, lexicon: Lexicon | None = None) -> list[Theme]:
    """Return every theme with at least one keyword inside ``content``.

    Themes come back in lexicon declaration order, without duplicates.
    """
    lex = lexicon or get_lexicon()
    text = (content or "").lower()
    return [
        entry.theme
        for entry in lex.theme_keywords
        if any(keyword in text for keyword in entry.keywords)
    ]


def analyze_sentiment(content: str, lexicon: Lexicon | None = None) -> int:
    """Net count of positive minus negative tokens.  No length normalization."""
    lex = lexicon or get_lexicon()
    score = 0
    for token in _NON_WORD.split((content or "").lower()):
        if not token:
            continue
        if token in lex.positive_words:
            score += 1
        if token in lex.negative_words:
            score -= 1
    return score
