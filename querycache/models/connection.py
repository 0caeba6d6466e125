"""Connection configuration models for MongoDB.

The config mirrors the plain dict accepted by
:meth:`MongoConnectionManager.set_config`, so both the Python field names
(``db_name``, ``replica_set``) and the camelCase keys used in YAML / JSON
config files (``dbName``, ``replicaSet``, ``pass``) are accepted.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class HostConfig(BaseModel):
    """One ``host[:port]`` entry of a replica-set seed list."""

    model_config = ConfigDict(frozen=True)

    host: str
    port: int | None = None

    @classmethod
    def parse(cls, value: str) -> HostConfig:
        """Parse ``"host"`` or ``"host:port"`` into a HostConfig."""
        host, sep, port = value.strip().rpartition(":")
        if not sep:
            return cls(host=value.strip())
        return cls(host=host, port=int(port))


class MongoConfig(BaseModel):
    """Everything needed to build a connection string and client options."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    db_name: str | None = Field(default=None, alias="dbName")
    hosts: list[HostConfig] = Field(default_factory=list)
    user: str | None = None
    password: str | None = Field(default=None, alias="pass")
    replica_set: str | None = Field(default=None, alias="replicaSet")
    connect_timeout_ms: int = Field(default=1000, alias="connectTimeoutMS")

    @field_validator("hosts", mode="before")
    @classmethod
    def _parse_host_strings(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            value = [h for h in value.split(",") if h.strip()]
        return [HostConfig.parse(h) if isinstance(h, str) else h for h in value]

    @field_validator("connect_timeout_ms", mode="before")
    @classmethod
    def _default_timeout(cls, value: Any) -> Any:
        return 1000 if value in (None, 0, "") else value
