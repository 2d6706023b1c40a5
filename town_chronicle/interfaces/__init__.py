"""Public interface definitions for persistence providers.

CONCRETE PROVIDER MAP:
    Interface       →  Concrete implementations (in town_chronicle/providers/)
    ─────────────────────────────────────────────────────────────────────
    ITownProvider   →  SQLiteTownProvider, JsonFileTownProvider
"""

from town_chronicle.interfaces.town_provider import ITownProvider

__all__ = ["ITownProvider"]
