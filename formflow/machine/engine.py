"""Flow state machine driving a single user through a flow."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, Mapping, Optional, Protocol, Sequence, Tuple, Union

from ..errors import ValidationCancelledError
from ..logger import FlowLogger, is_development
from ..middleware import FlowMiddleware, call_hook, compose_middleware
from ..validation.validator import ValidationResult
from .path import calculate_full_path, calculate_path
from .state import (
    Back,
    Command,
    CommitStep,
    FlowState,
    GoTo,
    Navigate,
    Reset,
    Revert,
    SetData,
    SetStatus,
    reduce,
)
from .transitions import can_navigate_to_step, get_next_step, get_previous_step

if TYPE_CHECKING:
    from ..definition import FlowDefinition
    from ..persistence.wrapper import PersistedFlow

logger = logging.getLogger(__name__)


class FormController(Protocol):
    """Externally owned form values for the step being displayed."""

    def get_values(self) -> Any:
        """Return the live values of the form."""

    def reset(self, values: Any) -> None:
        """Replace the form values."""


class DictFormController:
    """In-memory form controller for headless use and tests."""

    def __init__(self, values: Optional[Mapping[str, Any]] = None) -> None:
        self.values: Any = dict(values or {})

    def get_values(self) -> Any:
        if isinstance(self.values, Mapping):
            return dict(self.values)
        return self.values

    def reset(self, values: Any) -> None:
        self.values = dict(values) if isinstance(values, Mapping) else values

    def update(self, **fields: Any) -> None:
        self.values = {**self.get_values(), **fields}


class FlowMachine:
    """Reducer-backed state machine exposing next/back/go_to/set_data/reset.

    All state changes are applied through ``reduce`` so each operation commits
    one immutable snapshot. ``next()`` calls are serialized with a lock.

    Args:
        flow: The flow definition, or a ``PersistedFlow`` wrapping one.
        form: Form controller supplying live values; defaults to an in-memory one.
        middleware: Lifecycle hooks, or a sequence of them to compose.
        optimistic: Move to the next step before validation finishes.
        initial_data: Data to seed a fresh state with.
        initial_state: A full state to start from, e.g. from ``hydrate()``.
        logger: Flow logger; defaults to the flow's logger.
        debug: Log unhandled flow exceptions; defaults to development mode.
    """

    def __init__(
        self,
        flow: Union["FlowDefinition", "PersistedFlow"],
        *,
        form: Optional[FormController] = None,
        middleware: Union[FlowMiddleware, Sequence[FlowMiddleware], None] = None,
        optimistic: bool = False,
        initial_data: Optional[Mapping[str, Any]] = None,
        initial_state: Optional[FlowState] = None,
        logger: Optional[FlowLogger] = None,
        debug: Optional[bool] = None,
    ) -> None:
        self.persistence: Optional["PersistedFlow"] = None
        if hasattr(flow, "hydrate") and hasattr(flow, "persist"):
            self.persistence = flow
            flow = flow.flow
        self.flow: "FlowDefinition" = flow
        self.form: FormController = form or DictFormController()
        if isinstance(middleware, (list, tuple)):
            middleware = compose_middleware(middleware)
        self.middleware: FlowMiddleware = middleware or FlowMiddleware()
        self.optimistic = optimistic
        self.logger = logger or flow.logger
        self.debug = is_development() if debug is None else debug
        self.last_errors: Optional[ValidationResult] = None
        self._lock = asyncio.Lock()

        if initial_state is None:
            initial_state = reduce(flow, flow.get_initial_state(), Reset(data=initial_data))
        self._state = initial_state
        self.form.reset(self._stored_values(self._state.current_step))

    @classmethod
    async def restore(cls, persisted: "PersistedFlow", **kwargs: Any) -> "FlowMachine":
        """Build a machine from the persisted record, or a fresh state if none."""
        state = await persisted.hydrate()
        return cls(persisted, initial_state=state, **kwargs)

    # ------------------------------------------------------------------
    # Read-only views
    @property
    def state(self) -> FlowState:
        return self._state

    @property
    def current_step(self) -> str:
        return self._state.current_step

    @property
    def status(self) -> str:
        return self._state.status

    @property
    def data(self) -> Dict[str, Any]:
        return self._state.data

    @property
    def is_complete(self) -> bool:
        return self._state.is_complete

    @property
    def can_go_back(self) -> bool:
        return get_previous_step(self._state.current_step, self._state.path) is not None

    @property
    def can_go_next(self) -> bool:
        state = self._state
        return (
            get_next_step(state.current_step, state.path) is not None
            or state.current_step not in state.completed_steps
        )

    def can_go_to(self, step: str) -> bool:
        return can_navigate_to_step(step, self._state.completed_steps, self._state.path)

    @property
    def full_path(self) -> list:
        return calculate_full_path(self.flow, self._state.data, self.logger)

    @property
    def progress(self) -> Tuple[int, int]:
        """Position of the current step and length of the projected flow."""
        full = self.full_path
        if self._state.current_step in full:
            return full.index(self._state.current_step) + 1, len(full)
        return len(full), len(full)

    # ------------------------------------------------------------------
    # Operations
    async def next(self, values: Any = None) -> bool:
        """Validate the current step and advance.

        Returns ``False`` on validation failure, cancellation or a flow
        exception; nothing is raised to the caller.
        """
        async with self._lock:
            return await self._next(values)

    async def _next(self, values: Any) -> bool:
        entry = self._state
        from_step = entry.current_step
        form_values = self.form.get_values() if values is None else values
        provisional: Optional[str] = None
        moved = False

        try:
            schema = self.flow.get_step_schema(from_step)
            if self.optimistic:
                provisional_data = {**entry.data, from_step: form_values}
                provisional = get_next_step(
                    from_step, calculate_path(self.flow, provisional_data, self.logger)
                )
            if provisional is not None:
                self._dispatch(Navigate(step=provisional, status="validating"))
                self.form.reset(self._stored_values(provisional))
                moved = True
            else:
                self._dispatch(SetStatus(status="validating"))

            result = await schema.safe_parse(form_values)
            if not result.success:
                self.last_errors = result
                self._revert(entry, form_values, moved, "error")
                return False
            self.last_errors = None

            committed = reduce(self.flow, self._state, CommitStep(step=from_step, value=result.data))
            await call_hook(self.middleware.on_step_complete, from_step, result.data)
            await call_hook(self.middleware.on_step_exit, from_step, committed.data)
            self._state = committed

            if committed.status == "submitting":
                if moved:
                    self.form.reset(form_values)
                await call_hook(self.middleware.on_complete, dict(committed.data))
                self._dispatch(SetStatus(status="complete"))
                return True

            if committed.current_step != provisional:
                self.form.reset(self._stored_values(committed.current_step))
            await call_hook(self.middleware.on_navigate, from_step, committed.current_step)
            await call_hook(self.middleware.on_step_enter, committed.current_step, committed.data)
            return True
        except ValidationCancelledError as exc:
            logger.debug(f"Validation for step {from_step} cancelled: {exc.reason}")
            self._revert(entry, form_values, moved, "idle")
            return False
        except Exception as exc:
            self._revert(entry, form_values, moved, "error")
            await self._handle_error(exc, from_step)
            return False

    def back(self) -> None:
        self._move(Back())

    def go_to(self, step: str) -> None:
        """Jump to ``step`` when navigation allows it; otherwise do nothing."""
        self._move(GoTo(step=step))

    def set_data(self, step: str, value: Any) -> FlowState:
        """Merge ``value`` into ``step``'s data, re-deriving path and completion."""
        return self._dispatch(SetData(step=step, value=value))

    def reset(self, initial_data: Optional[Mapping[str, Any]] = None) -> FlowState:
        state = self._dispatch(Reset(data=dict(initial_data) if initial_data else None))
        self.last_errors = None
        self.form.reset(self._stored_values(state.current_step))
        return state

    async def save(self) -> None:
        if self.persistence is None:
            raise ValueError("FlowMachine has no persistence attached")
        await self.persistence.persist(self._state)

    # ------------------------------------------------------------------
    def _dispatch(self, command: Command) -> FlowState:
        self._state = reduce(self.flow, self._state, command)
        return self._state

    def _stored_values(self, step: str) -> Any:
        stored = self._state.data.get(step)
        return {} if stored is None else stored

    def _move(self, command: Command) -> None:
        before = self._state
        after = self._dispatch(command)
        if after is before:
            return
        self.form.reset(self._stored_values(after.current_step))
        self._notify(self.middleware.on_navigate, before.current_step, after.current_step)
        self._notify(self.middleware.on_step_enter, after.current_step, after.data)

    def _revert(self, entry: FlowState, form_values: Any, moved: bool, status: str) -> None:
        self._dispatch(Revert(step=entry.current_step, history=entry.history, status=status))
        if moved:
            self.form.reset(form_values)

    def _notify(self, hook: Optional[Callable[..., Any]], *args: Any) -> None:
        """Run a hook from a synchronous operation."""
        if hook is None:
            return
        result = hook(*args)
        if inspect.isawaitable(result):
            if hasattr(result, "close"):
                result.close()
            self.logger.warn(
                "[formflow] Async hook ignored during synchronous navigation",
                {"hook": getattr(hook, "__name__", repr(hook))},
            )

    async def _handle_error(self, error: Exception, step: str) -> None:
        if self.middleware.on_error is not None:
            await call_hook(self.middleware.on_error, error, step)
            return
        if self.debug:
            self.logger.error(
                "[formflow] Unhandled error while advancing",
                {"step": step, "error": repr(error)},
            )
