"""structlog configuration shared by the API server and the offline CLI.

One processor chain (contextvars, level, ISO timestamp, stack info) ends in
either a ConsoleRenderer or a JSONRenderer.  JSON is chosen when
``json_output`` is set or ``APP_ENV=production``.

The server logs to stdout.  The ``town-chronicle`` CLI passes
``stream=sys.stderr`` so that town listings, exports and tokens on stdout
can be piped untouched.  Standard-library loggers (uvicorn, aiosqlite) are
routed through the same renderer.
"""

import logging
import os
import sys

import structlog


def configure_logging(
    log_level: str = "INFO",
    json_output: bool = False,
    stream=None,  # noqa: ANN001
) -> structlog.BoundLogger:
    """Install the shared processor chain and return a root BoundLogger.

    ``stream`` defaults to stdout.  ``json_output`` forces JSON even outside
    production.  Safe to call more than once; the last call wins.
    """
    app_env = os.environ.get("APP_ENV", "development")
    use_json = json_output or app_env == "production"
    out = stream or sys.stdout

    # Order matters: contextvars first, then level/timestamps, then exceptions.
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if use_json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=out.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(log_level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=out),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *shared_processors,
            renderer,
        ],
    )

    handler = logging.StreamHandler(out)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level.upper())

    return structlog.get_logger()


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a named structlog logger, configuring defaults on first use."""
    if not structlog.is_configured():
        configure_logging()

    return structlog.get_logger(logger_name=name)
