"""Redis implementation of the storage adapter."""

from __future__ import annotations

from typing import Any, Optional

try:
    import redis.asyncio as redis
except ImportError:
    redis = None

from .base import StorageAdapter


class RedisStorageAdapter(StorageAdapter):
    """Store flow records as Redis string values."""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        db: int = 0,
        password: Optional[str] = None,
        client: Optional[Any] = None,
    ) -> None:
        if redis is None and client is None:
            raise ImportError("redis package is required for RedisStorageAdapter")

        self.host = host
        self.port = port
        self.db = db
        self.password = password
        self._redis: Optional[Any] = client

    async def connect(self) -> None:
        """Connect to Redis."""
        self._redis = redis.Redis(
            host=self.host,
            port=self.port,
            db=self.db,
            password=self.password,
            decode_responses=True,
        )
        await self._redis.ping()

    async def disconnect(self) -> None:
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    async def get_item(self, key: str) -> Optional[str]:
        if not self._redis:
            await self.connect()
        value = await self._redis.get(key)
        if isinstance(value, bytes):
            value = value.decode()
        return value

    async def set_item(self, key: str, value: str) -> None:
        if not self._redis:
            await self.connect()
        await self._redis.set(key, value)

    async def remove_item(self, key: str) -> None:
        if not self._redis:
            await self.connect()
        await self._redis.delete(key)
