"""In-memory and callable-backed storage adapters."""

from __future__ import annotations

from typing import Awaitable, Callable, Dict, Optional, Union

from .base import StorageAdapter


class MemoryStorageAdapter(StorageAdapter):
    """Store records in local memory.

    Useful for tests or when no durable backend is configured. Data is not
    persisted across process restarts.
    """

    def __init__(self) -> None:
        self._items: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._items)


class CallableStorageAdapter(StorageAdapter):
    """Adapter delegating to three user supplied functions."""

    def __init__(
        self,
        get_item: Callable[[str], Union[Optional[str], Awaitable[Optional[str]]]],
        set_item: Callable[[str, str], Union[None, Awaitable[None]]],
        remove_item: Callable[[str], Union[None, Awaitable[None]]],
    ) -> None:
        self._get_item = get_item
        self._set_item = set_item
        self._remove_item = remove_item

    def get_item(self, key: str):
        return self._get_item(key)

    def set_item(self, key: str, value: str):
        return self._set_item(key, value)

    def remove_item(self, key: str):
        return self._remove_item(key)


def create_adapter(get_item, set_item, remove_item) -> CallableStorageAdapter:
    return CallableStorageAdapter(get_item, set_item, remove_item)


def create_memory_adapter() -> MemoryStorageAdapter:
    return MemoryStorageAdapter()
