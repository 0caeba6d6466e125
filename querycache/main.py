"""Application wiring for querycache.

``bootstrap`` reads configuration, configures logging and builds the
connection manager; ``open_cached_collection`` turns a collection name into a
:class:`CachedCollection` on a live connection.  Both are thin: all caching
behaviour lives in :mod:`querycache.services.query_cache`.
"""

from __future__ import annotations

from typing import Any

import structlog

from querycache.config.loader import load_config
from querycache.config.settings import Settings
from querycache.providers.mongo.cached_collection import CachedCollection
from querycache.providers.mongo.connection import MongoConnectionManager
from querycache.utils.errors import ConfigurationError
from querycache.utils.logging import configure_logging, get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


def _build_connection_manager(config: dict[str, Any]) -> MongoConnectionManager:
    manager = MongoConnectionManager()
    if config.get("mongo"):
        manager.set_config(config["mongo"])
    return manager


def bootstrap(
    custom_settings: Settings | None = None,
    config_path: str = "config/config.yaml",
) -> dict[str, Any]:
    """Load config, configure logging and build the shared components.

    Returns
    -------
    dict
        ``config`` (merged dict), ``settings``, ``connections``
        (MongoConnectionManager) and ``cache_collection`` (default cache
        collection name).
    """
    app_settings = custom_settings or Settings()
    config = load_config(config_path, settings=app_settings)
    configure_logging(
        config["logging"]["level"],
        json_output=config["app"]["env"] == "production",
        driver_log_level=config["logging"]["driver_level"],
    )

    components = {
        "config": config,
        "settings": app_settings,
        "connections": _build_connection_manager(config),
        "cache_collection": config["cache"]["collection"],
    }
    _logger.info("querycache_bootstrapped", cache_collection=components["cache_collection"],
                 app_env=config["app"]["env"])
    return components


async def open_cached_collection(
    components: dict[str, Any],
    collection_name: str,
    db_name: str | None = None,
) -> CachedCollection:
    """Connect (or reuse a connection) and wrap *collection_name* with the cache.

    Raises
    ------
    ConfigurationError
        No database name was given or configured.
    """
    db_name = db_name or (components["config"].get("mongo") or {}).get("dbName")
    if not db_name:
        raise ConfigurationError("No database name given and none configured")
    database = await components["connections"].get_db(db_name)
    return CachedCollection.from_database(
        database, collection_name, default_cache_collection=components["cache_collection"]
    )
