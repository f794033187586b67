"""Versioned, timestamped envelope written to storage."""

from __future__ import annotations

import time
from typing import Any, Callable, Dict, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")

MigrateFn = Callable[[Any, int], Optional[Dict[str, Any]]]


def now_ms() -> int:
    return int(time.time() * 1000)


class PersistedRecord(BaseModel):
    """Wire format: ``{"version": int, "timestamp": int, "data": {...}}``."""

    version: int
    timestamp: int
    data: Dict[str, Any] = Field(default_factory=dict)

    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_json(cls, raw: str) -> "PersistedRecord":
        return cls.model_validate_json(raw)


class VersionedData(BaseModel):
    version: int
    data: Any = None


class TimestampedData(BaseModel):
    timestamp: int
    data: Any = None


def is_expired(timestamp: int, ttl: int, now: Optional[int] = None) -> bool:
    """``ttl <= 0`` never expires; otherwise expired once ``now > timestamp + ttl``."""
    if ttl <= 0:
        return False
    current = now_ms() if now is None else now
    return current > timestamp + ttl


def wrap_with_timestamp(data: Any, now: Optional[int] = None) -> TimestampedData:
    return TimestampedData(timestamp=now_ms() if now is None else now, data=data)


def unwrap_if_not_expired(timestamped: TimestampedData, ttl: int, now: Optional[int] = None) -> Any:
    if is_expired(timestamped.timestamp, ttl, now):
        return None
    return timestamped.data


def wrap_with_version(data: Any, version: int) -> VersionedData:
    return VersionedData(version=version, data=data)


def migrate_data(raw: Any, current_version: int, migrate: Optional[MigrateFn] = None) -> Any:
    """Return the data of a versioned payload in ``current_version`` shape.

    ``None`` when ``raw`` is not versioned data or the versions differ and no
    migration is available. Errors raised by ``migrate`` propagate.
    """
    if isinstance(raw, VersionedData):
        versioned = raw
    elif isinstance(raw, dict) and isinstance(raw.get("version"), int):
        versioned = VersionedData(version=raw["version"], data=raw.get("data"))
    else:
        return None

    if versioned.version == current_version:
        return versioned.data
    if migrate is not None:
        return migrate(versioned.data, versioned.version)
    return None
