"""Town/story persistence providers.

SQLiteTownProvider backs the API server (data/towns.db).
JsonFileTownProvider backs the offline CLI (data/local_town.json).
"""

from town_chronicle.providers.town.json_file_town_provider import JsonFileTownProvider
from town_chronicle.providers.town.sqlite_town_provider import SQLiteTownProvider

__all__ = ["JsonFileTownProvider", "SQLiteTownProvider"]
