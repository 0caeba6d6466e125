"""YAML configuration loader with environment variable overrides.

Configuration is loaded in layers (later layers override earlier):

  1. config/config.yaml  -- static defaults checked into the repo
  2. .env file           -- local developer overrides (not committed)
  3. Environment vars    -- set at deploy time

The resulting dict has three sections::

    {"mongo": {...}, "cache": {"collection": ...}, "logging": {"level": ...}}

``config["mongo"]`` is passed straight to ``MongoConnectionManager.set_config``.
"""

from pathlib import Path

import yaml

from querycache.config.settings import Settings


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Args:
        path: Path to the YAML configuration file.  A missing file is
              treated as empty.
        settings: Settings to merge on top; read from the environment when
                  not given.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    settings = settings or Settings()
    env_overrides: dict = {"mongo": settings.mongo_config()}
    # Scalar settings only override YAML when explicitly set (env or .env).
    explicit = settings.model_fields_set
    if "app_env" in explicit:
        env_overrides["app"] = {"env": settings.app_env}
    if "query_cache_collection" in explicit:
        env_overrides["cache"] = {"collection": settings.query_cache_collection}
    if "log_level" in explicit:
        env_overrides.setdefault("logging", {})["level"] = settings.log_level
    if "mongo_log_level" in explicit:
        env_overrides.setdefault("logging", {})["driver_level"] = settings.mongo_log_level

    _deep_merge(yaml_config, env_overrides)
    yaml_config.setdefault("app", {}).setdefault("env", settings.app_env)
    yaml_config.setdefault("cache", {}).setdefault("collection", settings.query_cache_collection)
    yaml_config.setdefault("logging", {}).setdefault("level", settings.log_level)
    yaml_config["logging"].setdefault("driver_level", settings.mongo_log_level)
    return yaml_config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
