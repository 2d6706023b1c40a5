"""Lexicon — the fixed word lists and catalogs behind town derivation.

# ─── PURPOSE ──────────────────────────────────────────────────────────
#
# Theme keywords, sentiment words, the crest catalog and the motto lists
# are data, not code.  They live in ``lexicon.yaml`` next to this module
# and are parsed once per process into a frozen ``Lexicon``.  Every
# collection on the model is a tuple or frozenset, so nothing can be
# mutated after load.  A different YAML file (e.g. a localized one) can be
# pointed to with the ``LEXICON_PATH`` setting without code changes.
#
# All accessor methods are pure lookups.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from town_chronicle.models.town import Rarity, Theme
from town_chronicle.utils.errors import ConfigurationError

_DEFAULT_LEXICON_PATH = Path(__file__).resolve().parent / "lexicon.yaml"


class ThemeKeywords(BaseModel):
    """One theme category and the substrings that signal it."""

    model_config = ConfigDict(frozen=True)

    theme: Theme
    keywords: tuple[str, ...] = Field(min_length=1)


class ThemeMottos(BaseModel):
    """Mottos offered when ``theme`` dominates a neutral town."""

    model_config = ConfigDict(frozen=True)

    theme: Theme
    mottos: tuple[str, ...] = Field(min_length=1)


class CrestPattern(BaseModel):
    """A crest catalog entry.

    A pattern with no ``themes`` is universally eligible.  Otherwise it is
    eligible when at least one of its themes appears in at least
    ``min_theme_count`` stories and the town has at least ``min_stories``
    stories.  Only the legendary entry sets non-default gates today.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    pattern: str
    rarity: Rarity
    unlock_condition: str
    themes: tuple[Theme, ...] = ()
    min_theme_count: int = Field(default=1, ge=1)
    min_stories: int = Field(default=0, ge=0)

    @property
    def is_default(self) -> bool:
        return not self.themes


class Lexicon(BaseModel):
    """Immutable, process-wide lookup tables for the derivation pipeline."""

    model_config = ConfigDict(frozen=True)

    theme_keywords: tuple[ThemeKeywords, ...]
    positive_words: frozenset[str]
    negative_words: frozenset[str]
    rarity_weights: tuple[tuple[Rarity, int], ...]
    crests: tuple[CrestPattern, ...] = Field(min_length=1)
    empty_motto: str
    fallback_motto: str
    joyful_threshold: float = 1
    mysterious_threshold: float = -1
    joyful_mottos: tuple[str, ...] = Field(min_length=1)
    mysterious_mottos: tuple[str, ...] = Field(min_length=1)
    theme_mottos: tuple[ThemeMottos, ...] = ()

    @model_validator(mode="after")
    def _check_catalog(self) -> Lexicon:
        if not self.crests[0].is_default:
            raise ValueError("crest entry 0 must be the theme-less default pattern")
        weighted = {rarity for rarity, _ in self.rarity_weights}
        missing = {c.rarity for c in self.crests} - weighted
        if missing:
            raise ValueError(f"no weight for rarities: {sorted(r.value for r in missing)}")
        return self

    # ── Accessors ──────────────────────────────────────────────────────

    @property
    def default_crest(self) -> CrestPattern:
        return self.crests[0]

    @property
    def theme_order(self) -> tuple[Theme, ...]:
        """Themes in declaration order."""
        return tuple(entry.theme for entry in self.theme_keywords)

    def weight_for(self, rarity: Rarity) -> int:
        for tier, weight in self.rarity_weights:
            if tier == rarity:
                return weight
        return 1

    def mottos_for(self, theme: Theme) -> tuple[str, ...]:
        """Mottos for a dominant theme; empty when the theme has none."""
        for entry in self.theme_mottos:
            if entry.theme == theme:
                return entry.mottos
        return ()

    def find_crest(self, pattern: str) -> CrestPattern | None:
        for crest in self.crests:
            if crest.pattern == pattern:
                return crest
        return None


def _from_document(doc: dict) -> Lexicon:
    """Map the YAML document layout onto the Lexicon model."""
    mottos = doc.get("mottos", {})
    sentiment = doc.get("sentiment", {})
    return Lexicon(
        theme_keywords=tuple(doc.get("themes", [])),
        positive_words=frozenset(w.lower() for w in sentiment.get("positive", [])),
        negative_words=frozenset(w.lower() for w in sentiment.get("negative", [])),
        rarity_weights=tuple(doc.get("rarity_weights", {}).items()),
        crests=tuple(doc.get("crests", [])),
        empty_motto=mottos.get("empty", ""),
        fallback_motto=mottos.get("fallback", ""),
        joyful_threshold=mottos.get("joyful_threshold", 1),
        mysterious_threshold=mottos.get("mysterious_threshold", -1),
        joyful_mottos=tuple(mottos.get("joyful", [])),
        mysterious_mottos=tuple(mottos.get("mysterious", [])),
        theme_mottos=tuple(mottos.get("themes", [])),
    )


def load_lexicon(path: str | Path | None = None) -> Lexicon:
    """Parse a lexicon YAML file.

    Raises
    ------
    ConfigurationError
        If the file is missing, is not valid YAML, or fails validation.
    """
    lexicon_path = Path(path) if path else _DEFAULT_LEXICON_PATH
    try:
        with open(lexicon_path, encoding="utf-8") as f:
            doc = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Cannot read lexicon {lexicon_path}: {exc}") from exc

    try:
        return _from_document(doc)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid lexicon {lexicon_path}: {exc}") from exc


@lru_cache(maxsize=None)
def get_lexicon(path: str | None = None) -> Lexicon:
    """Return the process-wide lexicon, loading it on first call."""
    return load_lexicon(path)
