from __future__ import annotations

import os
from typing import Literal, Optional

import yaml
from pydantic import BaseModel


class RedisConfig(BaseModel):
    """Configuration for the Redis storage backend."""

    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: Optional[str] = None


class PersistenceConfig(BaseModel):
    """Storage backend and envelope defaults."""

    backend: Literal["memory", "sqlite", "redis"] = "memory"
    sqlite_path: str = "formflow.db"
    key_prefix: str = "formflow:"
    ttl: int = 0
    version: int = 1
    redis: RedisConfig = RedisConfig()


class FormFlowConfig(BaseModel):
    """Top-level configuration model."""

    environment: Literal["development", "production"] = "development"
    persistence: PersistenceConfig = PersistenceConfig()


def load_config(path: Optional[str] = None) -> FormFlowConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to FORMFLOW_CONFIG env
            variable or 'formflow.yaml' in the current directory.
    """

    config_path = path or os.getenv("FORMFLOW_CONFIG", "formflow.yaml")
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = FormFlowConfig(**data)
    else:
        config = FormFlowConfig()

    env_name = os.getenv("FORMFLOW_ENV")
    if env_name in ("development", "production"):
        config.environment = env_name
    env_storage = os.getenv("FORMFLOW_STORAGE")
    if env_storage:
        config.persistence.backend = env_storage.lower()
    env_sqlite = os.getenv("FORMFLOW_SQLITE_PATH")
    if env_sqlite:
        config.persistence.sqlite_path = env_sqlite
    return config
