"""Town Chronicle domain models — re-exports all public model classes."""

from __future__ import annotations

from town_chronicle.models.town import (
    DerivedStats,
    DerivedTownState,
    Location,
    Rarity,
    Story,
    Theme,
    ThemeCount,
    Town,
    TownStats,
)

__all__ = [
    "DerivedStats",
    "DerivedTownState",
    "Location",
    "Rarity",
    "Story",
    "Theme",
    "ThemeCount",
    "Town",
    "TownStats",
]
