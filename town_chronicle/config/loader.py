"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ──────────────────────────────────────────
#
# Configuration is loaded in layers (later layers override earlier):
#
#   1. config/config.yaml  — Static defaults checked into a deployment
#   2. .env file           — Local developer overrides (not committed)
#   3. Environment vars    — Set at deploy time
#
# load_config() reads the YAML file first, then deep-merges the
# environment-based values on top.
# ──────────────────────────────────────────────────────────────────────
"""

from pathlib import Path

import yaml

from town_chronicle.config.settings import Settings


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Environment variables (via Settings) override YAML values where keys overlap.

    Args:
        path: Path to the YAML configuration file.  A missing file is not an
              error; the environment alone is enough to run.
        settings: Pre-built settings; a fresh ``Settings()`` when omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    settings = settings or Settings()
    env_overrides = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
            "cors_allowed_origins": settings.get_cors_origins(),
        },
        "storage": {
            "town_db_path": settings.town_db_path,
            "local_town_path": settings.local_town_path,
        },
        "auth": {
            "enabled": bool(settings.auth_secret),
            "token_ttl_hours": settings.auth_token_ttl_hours,
        },
        "lexicon": {
            "path": settings.lexicon_path or None,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
