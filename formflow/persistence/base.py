"""Storage adapter capability for persisted flow records."""

from __future__ import annotations

import inspect
from typing import Any, Awaitable, Optional, Protocol, Union


class StorageAdapter(Protocol):
    """Key/value store holding one string per key.

    Implementations may be synchronous or return awaitables; callers go
    through ``maybe_await`` so both work transparently.
    """

    def get_item(self, key: str) -> Union[Optional[str], Awaitable[Optional[str]]]:
        """Return the stored string or ``None``."""

    def set_item(self, key: str, value: str) -> Union[None, Awaitable[None]]:
        """Store ``value`` under ``key``."""

    def remove_item(self, key: str) -> Union[None, Awaitable[None]]:
        """Delete ``key`` if present."""


async def maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value
