"""Town Chronicle FastAPI application entry point.

Wires together the persistence provider, the lexicon, TownService, and the
routes via dependency injection.  Loads configuration from ``.env`` and
``config/config.yaml`` and configures structured logging.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI

from town_chronicle import __version__
from town_chronicle.api.auth_middleware import BearerAuthMiddleware
from town_chronicle.api.middleware import (
    RequestLoggingMiddleware,
    configure_cors,
    register_error_handlers,
)
from town_chronicle.api.routes import health_router, stories_router, towns_router
from town_chronicle.config.lexicon import get_lexicon
from town_chronicle.config.loader import load_config
from town_chronicle.config.settings import Settings
from town_chronicle.providers.town.sqlite_town_provider import SQLiteTownProvider
from town_chronicle.services.town_service import TownService
from town_chronicle.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Component wiring
# ---------------------------------------------------------------------------


def _build_all(app_settings: Settings) -> dict[str, Any]:
    """Construct the provider and service instances for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    lexicon = get_lexicon(app_settings.lexicon_path or None)
    town_store = SQLiteTownProvider(db_path=app_settings.town_db_path)
    town_service = TownService(town_store=town_store, lexicon=lexicon)
    return {
        "lexicon": lexicon,
        "town_store": town_store,
        "town_service": town_service,
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise the store on startup.

    Components handed to ``create_app`` (tests, embedding apps) win over a
    fresh ``_build_all``.
    """
    components = getattr(application.state, "town_components", None) or _build_all(settings)

    for key, value in components.items():
        setattr(application.state, key, value)

    town_store = components["town_store"]
    await town_store.initialize()

    _logger.info(
        "app_startup",
        version=__version__,
        environment=settings.app_env,
        town_store=town_store.get_provider_name(),
    )

    yield

    _logger.info("app_shutdown")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app(
    components: dict[str, Any] | None = None,
    app_settings: Settings | None = None,
) -> FastAPI:
    """Build and configure the FastAPI application.

    Parameters
    ----------
    components:
        Optional dict of pre-built components (``town_store``,
        ``town_service``).  When omitted, the lifespan builds them from
        settings.
    app_settings:
        Settings used for auth and CORS; the module-level settings when
        omitted.
    """
    active = app_settings or settings
    application = FastAPI(
        title="Town Chronicle API",
        version=__version__,
        description=(
            "Collaborative town storytelling: write stories at a town's "
            "locations and watch its crest, motto and themes evolve."
        ),
        lifespan=_lifespan,
    )

    if components:
        application.state.town_components = components

    # -- Error mapping --
    register_error_handlers(application)

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(
        BearerAuthMiddleware,
        secret=active.auth_secret,
        ttl_hours=active.auth_token_ttl_hours,
    )
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application, allowed_origins=active.get_cors_origins())

    # -- API routes --
    application.include_router(towns_router)
    application.include_router(stories_router)
    application.include_router(health_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "town_chronicle.main:app",
        host=config["app"]["host"],
        port=config["app"]["port"],
        reload=(settings.app_env == "development"),
    )
