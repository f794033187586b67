"""Persistence layer for formflow state."""

from __future__ import annotations

import os
from typing import Optional

from ..config import FormFlowConfig, load_config
from .base import StorageAdapter, maybe_await
from .envelope import (
    MigrateFn,
    PersistedRecord,
    TimestampedData,
    VersionedData,
    is_expired,
    migrate_data,
    unwrap_if_not_expired,
    wrap_with_timestamp,
    wrap_with_version,
)
from .memory import (
    CallableStorageAdapter,
    MemoryStorageAdapter,
    create_adapter,
    create_memory_adapter,
)
from .sqlite import SQLiteStorageAdapter
from .wrapper import PersistedFlow, with_persistence

_adapter_instance: StorageAdapter | None = None


def get_adapter(
    backend: Optional[str] = None, config: Optional[FormFlowConfig] = None
) -> StorageAdapter:
    """Factory function to obtain the configured storage adapter.

    The backend is taken from ``backend``, the ``FORMFLOW_STORAGE``
    environment variable or the loaded configuration. The adapter is cached
    when resolved purely from configuration so repeated calls share state.
    """

    global _adapter_instance
    if _adapter_instance is not None and backend is None and config is None:
        return _adapter_instance

    config = config or load_config()
    backend = (
        backend or os.getenv("FORMFLOW_STORAGE") or config.persistence.backend
    ).lower()

    if backend == "memory":
        adapter: StorageAdapter = MemoryStorageAdapter()
    elif backend == "sqlite":
        adapter = SQLiteStorageAdapter(config.persistence.sqlite_path)
    elif backend == "redis":
        from .redis import RedisStorageAdapter

        redis_conf = config.persistence.redis
        adapter = RedisStorageAdapter(
            host=redis_conf.host,
            port=redis_conf.port,
            db=redis_conf.db,
            password=redis_conf.password,
        )
    else:
        raise ValueError(f"Unsupported storage backend: {backend}")

    _adapter_instance = adapter
    return adapter


def storage_key(flow_id: str, config: Optional[FormFlowConfig] = None) -> str:
    config = config or load_config()
    return f"{config.persistence.key_prefix}{flow_id}"


def with_configured_persistence(
    flow, config: Optional[FormFlowConfig] = None, **overrides
) -> PersistedFlow:
    """Wrap ``flow`` using the adapter, key prefix, TTL and version from config.

    Keyword arguments override the configured values.
    """
    config = config or load_config()
    options = {
        "adapter": get_adapter(config=config),
        "key": storage_key(flow.id, config),
        "ttl": config.persistence.ttl,
        "version": config.persistence.version,
    }
    options.update(overrides)
    return with_persistence(flow, **options)


__all__ = [
    "CallableStorageAdapter",
    "MemoryStorageAdapter",
    "MigrateFn",
    "PersistedFlow",
    "PersistedRecord",
    "SQLiteStorageAdapter",
    "StorageAdapter",
    "TimestampedData",
    "VersionedData",
    "create_adapter",
    "create_memory_adapter",
    "get_adapter",
    "is_expired",
    "maybe_await",
    "migrate_data",
    "storage_key",
    "unwrap_if_not_expired",
    "with_configured_persistence",
    "with_persistence",
    "wrap_with_timestamp",
    "wrap_with_version",
]
