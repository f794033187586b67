"""Helpers for live, asynchronous field checks.

These sit beside the state machine rather than inside it: the UI uses them to
debounce remote checks, retry transient failures and abandon stale requests.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Generic, Optional, Set, Tuple, TypeVar

from ..errors import ValidationCancelledError
from ..utils.retry import BackoffStrategy, schedule_retry

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _call(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    result = fn(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result


class Debounced(Generic[T]):
    """Callable wrapper running only the last call made within ``delay`` seconds.

    Each call returns a future. Superseded calls fail with
    ``ValidationCancelledError``.
    """

    def __init__(self, fn: Callable[..., Any], delay: float) -> None:
        self._fn = fn
        self._delay = delay
        self._timer: Optional[asyncio.TimerHandle] = None
        self._future: Optional[asyncio.Future] = None
        self._call_args: Optional[Tuple[tuple, dict]] = None
        self._tasks: Set[asyncio.Task] = set()

    def __call__(self, *args: Any, **kwargs: Any) -> "asyncio.Future[T]":
        loop = asyncio.get_running_loop()
        self._supersede("superseded by a newer call")
        self._call_args = (args, kwargs)
        self._future = loop.create_future()
        self._timer = loop.call_later(self._delay, self._fire)
        return self._future

    @property
    def pending(self) -> bool:
        return self._future is not None and not self._future.done()

    def cancel(self) -> None:
        """Drop the pending call, failing its future."""
        self._supersede("debounced call cancelled")

    async def flush(self) -> Optional[T]:
        """Run the pending call immediately and return its result."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if not self.pending or self._call_args is None:
            return None
        future, (args, kwargs) = self._future, self._call_args
        self._call_args = None
        await self._run(future, args, kwargs)
        return future.result()

    def _supersede(self, reason: str) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._future is not None and not self._future.done():
            self._future.set_exception(ValidationCancelledError(reason=reason))
        self._call_args = None

    def _fire(self) -> None:
        self._timer = None
        if self._future is None or self._call_args is None:
            return
        args, kwargs = self._call_args
        self._call_args = None
        task = asyncio.ensure_future(self._run(self._future, args, kwargs))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, future: asyncio.Future, args: tuple, kwargs: dict) -> None:
        try:
            result = await _call(self._fn, *args, **kwargs)
        except Exception as exc:
            if not future.done():
                future.set_exception(exc)
            return
        if not future.done():
            future.set_result(result)


def debounce(fn: Callable[..., Any], delay: float) -> Debounced[Any]:
    return Debounced(fn, delay)


async def with_retry(
    fn: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    delay: float = 1.0,
    backoff: BackoffStrategy = "exponential",
    on_retry: Optional[Callable[[int, Exception], None]] = None,
) -> T:
    """Await ``fn`` until it succeeds or ``max_attempts`` is exhausted.

    Cancellation is never retried.
    """
    attempt = 1
    while True:
        try:
            return await fn()
        except ValidationCancelledError:
            raise
        except Exception as exc:
            if attempt >= max_attempts:
                raise
            logger.debug(f"Validation attempt {attempt} failed: {exc}; retrying")
            if on_retry is not None:
                on_retry(attempt, exc)
            await schedule_retry(attempt, delay, backoff)
            attempt += 1


class AbortableValidation(Generic[T]):
    """Validation task that can be abandoned from the outside.

    The validation function receives ``signal``, an ``asyncio.Event`` set on
    abort, so long running checks can stop cooperatively.
    """

    def __init__(self, fn: Callable[[asyncio.Event], Awaitable[T]], step: Optional[str] = None):
        self.signal = asyncio.Event()
        self.step = step
        self._reason: Optional[str] = None
        self._task: asyncio.Task = asyncio.ensure_future(fn(self.signal))

    @property
    def aborted(self) -> bool:
        return self.signal.is_set()

    def abort(self, reason: Optional[str] = None) -> None:
        if self._task.done():
            return
        self._reason = reason
        self.signal.set()
        self._task.cancel()

    async def result(self) -> T:
        try:
            return await self._task
        except asyncio.CancelledError:
            if self.signal.is_set():
                raise ValidationCancelledError(self.step, self._reason) from None
            raise

    def __await__(self):
        return self.result().__await__()


def create_abortable_validation(
    fn: Callable[[asyncio.Event], Awaitable[T]], step: Optional[str] = None
) -> AbortableValidation[T]:
    return AbortableValidation(fn, step)


class ValidationCache:
    """TTL cache for async field check outcomes. TTLs are in milliseconds."""

    def __init__(self, default_ttl: int = 60000, clock: Optional[Callable[[], int]] = None):
        self.default_ttl = default_ttl
        self._clock = clock or (lambda: int(time.time() * 1000))
        self._entries: Dict[str, Tuple[bool, int]] = {}

    async def get(self, key: str) -> Optional[bool]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires = entry
        if self._clock() > expires:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: bool, ttl: Optional[int] = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        self._entries[key] = (value, self._clock() + ttl)

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()


def create_validation_cache(
    default_ttl: int = 60000, clock: Optional[Callable[[], int]] = None
) -> ValidationCache:
    return ValidationCache(default_ttl, clock)


def create_cache_key(step_id: str, field_path: str, value: Any) -> str:
    return f"{step_id}:{field_path}:{json.dumps(value, sort_keys=True, default=str)}"
