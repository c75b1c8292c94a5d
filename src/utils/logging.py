"""Structured logging for the personalization service, built on structlog.

One shared processor chain (context vars, level, stack info, ISO
timestamps) feeds a single final renderer:

- ``ConsoleRenderer`` with colours while developing,
- ``JSONRenderer`` when ``APP_ENV=production`` or ``json_output=True``.

Stdlib ``logging`` is routed through the same chain so uvicorn and
aiosqlite records look like our own events.  Event names are snake_case
(``tier_fetch_failed``, ``panel_state_changed``) with context passed as
keyword arguments, never interpolated into the message.
"""

import logging
import os
import sys

import structlog


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]


def _select_renderer(json_output: bool) -> structlog.types.Processor:
    app_env = os.environ.get("APP_ENV", "development")
    if json_output or app_env == "production":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=True)


def configure_logging(log_level: str = "INFO", json_output: bool = False) -> structlog.BoundLogger:
    """Configure structlog and bridge the stdlib root logger into it.

    Args:
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR).
        json_output: Force JSON rendering regardless of ``APP_ENV``.

    Returns:
        The root structlog BoundLogger.
    """
    shared = _shared_processors()
    renderer = _select_renderer(json_output)

    structlog.configure(
        processors=[*shared, renderer],
        # Drops records below log_level before any processor runs.
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(log_level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *shared,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level.upper())

    return structlog.get_logger()


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a structlog logger bound with ``logger_name``.

    Falls back to :func:`configure_logging` defaults when nothing has
    configured structlog yet (scripts, tests).
    """
    if not structlog.is_configured():
        configure_logging()

    return structlog.get_logger(logger_name=name)
