"""Configuration module — exports Settings, load_config, the lexicon loader, and a settings singleton."""

from town_chronicle.config.lexicon import CrestPattern, Lexicon, get_lexicon, load_lexicon
from town_chronicle.config.loader import load_config
from town_chronicle.config.settings import Settings

settings = Settings()

__all__ = [
    "CrestPattern",
    "Lexicon",
    "Settings",
    "get_lexicon",
    "load_config",
    "load_lexicon",
    "settings",
]
