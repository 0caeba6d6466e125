"""structlog configuration for querycache.

Our own events (``query_cache_hit``, ``mongo_connected``, ...) go through
structlog.  pymongo logs through the standard library under the ``pymongo``
logger tree (``pymongo.command``, ``pymongo.serverSelection``,
``pymongo.connection``, ``pymongo.topology``); those records are rendered by
the same processor chain and filtered by their own level, so per-command
driver chatter stays off unless asked for.

JSON output is used in production (``APP_ENV=production``) or when forced;
development gets the coloured console renderer.
"""

import logging
import os
import sys

import structlog

DRIVER_LOGGER = "pymongo"


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]


def _renderer(use_json: bool) -> structlog.types.Processor:
    if use_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def _level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {name!r}")
    return level


def configure_logging(
    log_level: str = "INFO",
    json_output: bool = False,
    driver_log_level: str = "WARNING",
) -> structlog.BoundLogger:
    """Configure structlog and route pymongo's stdlib logging through it.

    Args:
        log_level: Level for querycache's own events.
        json_output: Force JSON rendering regardless of ``APP_ENV``.
        driver_log_level: Level for the ``pymongo`` logger tree.  DEBUG logs
            every command sent to the server.

    Returns:
        A configured structlog BoundLogger.

    Raises:
        ValueError: If either level name is not a logging level.
    """
    use_json = json_output or os.environ.get("APP_ENV", "development") == "production"
    level = _level(log_level)
    renderer = _renderer(use_json)
    shared = _shared_processors()

    structlog.configure(
        processors=[*shared, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=[structlog.stdlib.add_logger_name, *shared],
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # The driver tree is filtered independently of the root logger.
    logging.getLogger(DRIVER_LOGGER).setLevel(_level(driver_log_level))

    return structlog.get_logger()


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a structlog logger bound to *name*, configuring defaults if needed."""
    if not structlog.is_configured():
        configure_logging()
    return structlog.get_logger(logger_name=name)
