"""Persistence decorator adding hydrate/persist/clear to a flow definition."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Union

from pydantic import ValidationError

from ..machine.path import has_step_data
from ..machine.state import FlowState
from .base import StorageAdapter, maybe_await
from .envelope import MigrateFn, PersistedRecord, is_expired, now_ms

if TYPE_CHECKING:
    from ..definition import FlowDefinition

logger = logging.getLogger(__name__)


class PersistedFlow:
    """A ``FlowDefinition`` bound to a storage key.

    Every attribute of the wrapped flow stays available. Storage problems
    (malformed records, expiry, unmigratable versions) are reported as "no
    saved state" and the record is removed; they are never raised.

    Args:
        flow: The flow definition to decorate.
        adapter: Storage backend, sync or async.
        key: Storage key holding the record.
        ttl: Lifetime in milliseconds; ``<= 0`` never expires.
        version: Version written to and expected from the record.
        migrate: ``migrate(old_data, old_version)`` returning data in the
            current shape, or ``None`` to discard it.
        durable: Whether durable storage is available in this context, or a
            zero-argument callable answering that question per call.
        clock: Returns the current time in epoch milliseconds.
    """

    def __init__(
        self,
        flow: "FlowDefinition",
        adapter: StorageAdapter,
        key: str,
        ttl: int = 0,
        version: int = 1,
        migrate: Optional[MigrateFn] = None,
        durable: Union[bool, Callable[[], bool]] = True,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self.flow = flow
        self.adapter = adapter
        self.key = key
        self.ttl = ttl
        self.version = version
        self.migrate = migrate
        self._durable = durable
        self._clock = clock or now_ms

    def __getattr__(self, name: str) -> Any:
        if name == "flow":
            raise AttributeError(name)
        return getattr(self.flow, name)

    @property
    def durable(self) -> bool:
        if callable(self._durable):
            return bool(self._durable())
        return bool(self._durable)

    async def persist(self, state: FlowState) -> None:
        if not self.durable:
            return
        record = PersistedRecord(
            version=self.version,
            timestamp=self._clock(),
            data={step: value for step, value in state.data.items() if value is not None},
        )
        await maybe_await(self.adapter.set_item(self.key, record.to_json()))

    async def hydrate(self) -> Optional[FlowState]:
        if not self.durable:
            return None

        raw = await maybe_await(self.adapter.get_item(self.key))
        if not raw:
            return None

        try:
            record = PersistedRecord.from_json(raw)
        except ValidationError as exc:
            logger.warning(f"Discarding malformed record under key {self.key}: {exc}")
            await self._remove()
            return None

        if is_expired(record.timestamp, self.ttl, self._clock()):
            logger.info(f"Stored flow state under key {self.key} expired")
            await self._remove()
            return None

        data = self._upgrade(record)
        if data is None:
            await self._remove()
            return None

        return self.reconstruct(data)

    async def clear(self) -> None:
        if not self.durable:
            return
        await self._remove()

    def reconstruct(self, data: Dict[str, Any]) -> FlowState:
        """Rebuild a state from collected data alone.

        Every step with data counts as completed and the user resumes at the
        last step of the recomputed path.
        """
        path = tuple(self.flow.calculate_path(data))
        completed = frozenset(step for step in data if has_step_data(data, step))
        current = path[-1] if path else self.flow.initial
        return FlowState(
            current_step=current,
            data=data,
            completed_steps=completed,
            path=path,
            history=path,
            status="idle",
        )

    def _upgrade(self, record: PersistedRecord) -> Optional[Dict[str, Any]]:
        if record.version == self.version:
            return record.data
        if self.migrate is None:
            logger.info(
                f"Discarding record version {record.version}, expected {self.version}"
            )
            return None
        try:
            migrated = self.migrate(record.data, record.version)
        except Exception as e:
            logger.error(f"Migration from version {record.version} failed: {e}")
            return None
        if migrated is not None and not isinstance(migrated, dict):
            logger.error(f"Migration returned {type(migrated).__name__}, expected dict")
            return None
        return migrated

    async def _remove(self) -> None:
        await maybe_await(self.adapter.remove_item(self.key))


def with_persistence(
    flow: "FlowDefinition",
    *,
    adapter: StorageAdapter,
    key: str,
    ttl: int = 0,
    version: int = 1,
    migrate: Optional[MigrateFn] = None,
    durable: Union[bool, Callable[[], bool]] = True,
    clock: Optional[Callable[[], int]] = None,
) -> PersistedFlow:
    return PersistedFlow(flow, adapter, key, ttl, version, migrate, durable, clock)
