"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# Two sources, in priority order:
#
#   1. **Environment variables** — e.g. AUTH_SECRET=change-me
#   2. **.env file** — key=value lines in the project root .env file
#
# Field ``town_db_path`` maps to env var ``TOWN_DB_PATH`` (pydantic-settings
# uppercases and matches).  Defaults apply when neither source sets a value.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Town Chronicle application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Storage ===
    town_db_path: str = "data/towns.db"  # SQLite database for the API server
    local_town_path: str = "data/local_town.json"  # JSON document for offline mode

    # === Lexicon ===
    # Empty string = use the lexicon.yaml shipped inside the package.
    lexicon_path: str = ""

    # === Authentication ===
    # Empty secret = development mode: bearer tokens are taken as raw user ids.
    auth_secret: str = ""
    auth_token_ttl_hours: int = 168

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"
    cors_allowed_origins: str = "*"  # comma-separated

    def get_cors_origins(self) -> list[str]:
        """Split the comma-separated origin list, dropping blanks."""
        return [o.strip() for o in self.cors_allowed_origins.split(",") if o.strip()]
