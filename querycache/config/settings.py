"""Application settings loaded from environment variables via pydantic-settings.

Values come from, in priority order:

  1. Environment variables, e.g. ``MONGO_HOSTS=db1:27017,db2:27017``
  2. A ``.env`` file in the working directory
  3. The defaults below

Field ``mongo_hosts`` maps to env var ``MONGO_HOSTS`` and so on; the names are
matched case-insensitively.
"""

from typing import Any

from pydantic_settings import BaseSettings, SettingsConfigDict

from querycache.models.cache import DEFAULT_CACHE_COLLECTION


class Settings(BaseSettings):
    """querycache settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === MongoDB ===
    # Comma-separated host[:port] seed list; empty = let the driver default.
    mongo_hosts: str = ""
    mongo_user: str = ""
    mongo_password: str = ""
    mongo_db_name: str = ""
    mongo_replica_set: str = ""
    mongo_connect_timeout_ms: int = 1000

    # === Query cache ===
    # Used when a cached call does not name its cache collection.
    query_cache_collection: str = DEFAULT_CACHE_COLLECTION

    # === App Config ===
    app_env: str = "development"
    log_level: str = "INFO"
    mongo_log_level: str = "WARNING"

    def mongo_config(self) -> dict[str, Any]:
        """Return the connection config mapping for ``MongoConnectionManager.set_config``.

        Empty settings are left out so they do not override YAML values.
        """
        config: dict[str, Any] = {}
        if "mongo_connect_timeout_ms" in self.model_fields_set:
            config["connectTimeoutMS"] = self.mongo_connect_timeout_ms
        if self.mongo_hosts:
            config["hosts"] = [h.strip() for h in self.mongo_hosts.split(",") if h.strip()]
        if self.mongo_user:
            config["user"] = self.mongo_user
        if self.mongo_password:
            config["pass"] = self.mongo_password
        if self.mongo_db_name:
            config["dbName"] = self.mongo_db_name
        if self.mongo_replica_set:
            config["replicaSet"] = self.mongo_replica_set
        return config
