"""MongoDB connection management.

Holds one :class:`AsyncMongoClient` per database name.  Connection attempts
are memoized as tasks, so concurrent ``get_db`` calls for the same database
share a single connection attempt.  A failed attempt is forgotten and the
next call tries again.

Configuration is a plain mapping (see :class:`~querycache.models.connection.MongoConfig`)
set once with :meth:`MongoConnectionManager.set_config`, or passed in full to
:meth:`MongoConnectionManager.get_db`.
"""

from __future__ import annotations

import asyncio
import copy
from collections.abc import Callable, Iterable, Mapping
from typing import Any
from urllib.parse import quote_plus

import structlog
from bson import ObjectId
from pydantic import ValidationError
from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import PyMongoError

from querycache.models.connection import MongoConfig
from querycache.utils.errors import ConfigurationError, MongoConnectionError
from querycache.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


def build_connection_string(config: MongoConfig | Mapping[str, Any]) -> str:
    """Build a ``mongodb://`` URI from *config*.

    Format: ``mongodb://[user[:pass]@][host[:port],...,/]dbName[?replicaSet=name]``.
    Credentials are percent-escaped.

    >>> build_connection_string({"dbName": "reports", "hosts": ["db1:27017"]})
    'mongodb://db1:27017/reports'
    """
    if not isinstance(config, MongoConfig):
        config = MongoConfig.model_validate(dict(config))

    uri = "mongodb://"
    if config.user:
        uri += quote_plus(config.user)
        if config.password:
            uri += ":" + quote_plus(config.password)
        uri += "@"

    if config.hosts:
        uri += ",".join(
            f"{h.host}:{h.port}" if h.port else h.host for h in config.hosts
        )
        uri += "/"

    if config.db_name:
        uri += config.db_name

    if config.replica_set:
        uri += "?replicaSet=" + config.replica_set

    return uri


def object_id(value: str | ObjectId | None = None) -> ObjectId:
    """Return an :class:`ObjectId` for *value* (a new one when ``None``).

    Raises ``bson.errors.InvalidId`` for malformed ids.
    """
    return ObjectId(value)


def object_ids(values: Iterable[str | ObjectId]) -> list[ObjectId]:
    """Return an :class:`ObjectId` for each of *values*, preserving order."""
    return [object_id(v) for v in values]


class MongoConnectionManager:
    """Per-database registry of MongoDB connections.

    Parameters
    ----------
    client_factory:
        Builds a client from a URI and keyword options.  Defaults to
        :class:`AsyncMongoClient`; tests pass a fake.
    """

    def __init__(
        self,
        client_factory: Callable[..., AsyncMongoClient] = AsyncMongoClient,
    ) -> None:
        self._client_factory = client_factory
        self._config: dict[str, Any] | None = None
        self._connections: dict[str, asyncio.Task[AsyncDatabase]] = {}

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def set_config(self, config: Mapping[str, Any]) -> None:
        """Store the default connection config used by ``get_db(name)``.

        Raises
        ------
        ConfigurationError
            If *config* is empty or not a mapping.
        """
        if not config or not isinstance(config, Mapping):
            raise ConfigurationError("Empty or invalid DB config passed to set_config()")
        self._config = copy.deepcopy(dict(config))

    @property
    def has_config(self) -> bool:
        return self._config is not None

    def _resolve_config(self, name_or_config: str | Mapping[str, Any]) -> MongoConfig:
        if isinstance(name_or_config, str):
            if self._config is None:
                raise ConfigurationError("No DB config has been set; call set_config() first")
            raw = {k: v for k, v in self._config.items() if k not in ("db_name", "dbName")}
            raw["dbName"] = name_or_config
        elif isinstance(name_or_config, Mapping):
            raw = dict(name_or_config)
        else:
            raise ConfigurationError("Missing or invalid parameter provided to get_db()")

        try:
            config = MongoConfig.model_validate(raw)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid DB config: {exc}") from exc
        if not config.db_name:
            raise ConfigurationError("DB config must include a dbName")
        return config

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------

    async def get_db(self, name_or_config: str | Mapping[str, Any]) -> AsyncDatabase:
        """Return a connected database, reusing an existing connection.

        Parameters
        ----------
        name_or_config:
            A database name (combined with the stored config) or a full
            config mapping containing ``dbName``.

        Raises
        ------
        ConfigurationError
            No usable configuration.
        MongoConnectionError
            The server could not be reached.
        """
        config = self._resolve_config(name_or_config)
        db_name = config.db_name

        task = self._connections.get(db_name)
        if task is None or (task.done() and (task.cancelled() or task.exception() is not None)):
            task = asyncio.ensure_future(self._connect(config))
            self._connections[db_name] = task
        return await task

    async def _connect(self, config: MongoConfig) -> AsyncDatabase:
        uri = build_connection_string(config)
        try:
            client = self._client_factory(uri, connectTimeoutMS=config.connect_timeout_ms)
        except PyMongoError as exc:
            raise MongoConnectionError(
                f"Could not create client for database {config.db_name!r}: {exc}"
            ) from exc
        try:
            await client.admin.command("ping")
        except PyMongoError as exc:
            await client.close()
            raise MongoConnectionError(
                f"Could not connect to database {config.db_name!r}: {exc}"
            ) from exc
        _logger.info("mongo_connected", db_name=config.db_name,
                     hosts=[h.host for h in config.hosts])
        return client.get_database(config.db_name)

    async def close(self, db_name: str) -> None:
        """Close and forget the connection for *db_name* (no-op if unknown)."""
        task = self._connections.pop(db_name, None)
        if task is None:
            return
        try:
            database = await task
        except asyncio.CancelledError:
            if not task.cancelled():
                raise
            return
        except Exception as exc:
            # Never connected; nothing to close.
            _logger.debug("mongo_close_skipped", db_name=db_name, error=str(exc))
            return
        await database.client.close()
        _logger.info("mongo_closed", db_name=db_name)

    async def close_all(self) -> None:
        """Close every open connection."""
        await asyncio.gather(*(self.close(name) for name in list(self._connections)))

    def connected_databases(self) -> list[str]:
        """Names of databases with a connection attempt on record."""
        return list(self._connections)
