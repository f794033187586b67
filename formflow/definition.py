"""Static flow graph: transitions, steps and structural validation."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, ClassVar, Dict, List, Literal, Mapping, Optional, Tuple, Union

from pydantic import BaseModel

from .errors import FlowDefinitionError, InvalidStepError
from .logger import FlowLogger, default_logger
from .machine.path import calculate_full_path, calculate_path
from .machine.state import FlowState
from .validation.validator import Validator, as_validator

TransitionFn = Callable[[Any, Mapping[str, Any]], Optional[str]]


class Transition:
    """Base class of the transition variants.

    ``resolve`` returns the next step id or ``None`` for the end of the flow.
    ``targets`` lists the destinations known without evaluating data.
    """

    requires_data: ClassVar[bool] = False

    @property
    def targets(self) -> Tuple[str, ...]:
        return ()

    @property
    def static_target(self) -> Optional[str]:
        return None

    @property
    def targets_known(self) -> bool:
        return True

    def resolve(self, step_data: Any, all_data: Mapping[str, Any]) -> Optional[str]:
        raise NotImplementedError


@dataclass(frozen=True)
class Static(Transition):
    target: str

    @property
    def targets(self) -> Tuple[str, ...]:
        return (self.target,)

    @property
    def static_target(self) -> Optional[str]:
        return self.target

    def resolve(self, step_data: Any, all_data: Mapping[str, Any]) -> Optional[str]:
        return self.target


@dataclass(frozen=True)
class Terminal(Transition):
    def resolve(self, step_data: Any, all_data: Mapping[str, Any]) -> Optional[str]:
        return None


@dataclass(frozen=True)
class Dynamic(Transition):
    """Branch chosen by ``fn(step_data, all_data)``.

    ``declared`` lists the step ids ``fn`` may return. Leave it ``None`` when
    unknown; reachability checks then cannot see past this step.
    """

    fn: TransitionFn
    declared: Optional[Tuple[str, ...]] = None

    requires_data: ClassVar[bool] = True

    @property
    def targets(self) -> Tuple[str, ...]:
        return self.declared or ()

    @property
    def targets_known(self) -> bool:
        return self.declared is not None

    def resolve(self, step_data: Any, all_data: Mapping[str, Any]) -> Optional[str]:
        return self.fn(step_data, all_data)


TransitionLike = Union[Transition, str, None, TransitionFn]


def as_transition(value: TransitionLike) -> Transition:
    if isinstance(value, Transition):
        return value
    if value is None:
        return Terminal()
    if isinstance(value, str):
        return Static(value)
    if callable(value):
        return Dynamic(value)
    raise TypeError(f"Unsupported transition: {value!r}")


def define_transition(fn: TransitionFn, targets: Optional[List[str]] = None) -> Dynamic:
    """Build a dynamic transition, optionally declaring its possible targets."""
    return Dynamic(fn, tuple(targets) if targets is not None else None)


@dataclass
class StepDefinition:
    """One step: the schema validating its data and its outgoing transition."""

    schema: Optional[Validator] = None
    next: Transition = field(default_factory=Terminal)

    def __post_init__(self) -> None:
        self.schema = as_validator(self.schema)
        self.next = as_transition(self.next)


def _as_step(value: Union[StepDefinition, Mapping[str, Any]]) -> StepDefinition:
    if isinstance(value, StepDefinition):
        return value
    return StepDefinition(schema=value.get("schema"), next=value.get("next"))


class FlowValidationError(BaseModel):
    """Single structural problem found in a flow definition."""

    type: Literal[
        "missing_step",
        "invalid_next",
        "infinite_loop",
        "missing_schema",
        "unreachable_step",
    ]
    message: str
    step: Optional[str] = None
    path: Optional[List[str]] = None
    details: Optional[Dict[str, Any]] = None


FATAL_ERROR_TYPES = frozenset({"missing_step", "invalid_next", "missing_schema"})


class FlowDefinition:
    """Validated step graph with the path helpers bound to it."""

    def __init__(
        self,
        id: str,
        steps: Mapping[str, Union[StepDefinition, Mapping[str, Any]]],
        initial: str,
        logger: Optional[FlowLogger] = None,
    ) -> None:
        self.id = id
        self.initial = initial
        self.logger = logger or default_logger
        self._steps: Dict[str, StepDefinition] = {
            step_id: _as_step(step) for step_id, step in steps.items()
        }

    @property
    def steps(self) -> Mapping[str, StepDefinition]:
        return MappingProxyType(self._steps)

    @property
    def step_ids(self) -> List[str]:
        return list(self._steps)

    def __contains__(self, step_id: object) -> bool:
        return step_id in self._steps

    def get_step(self, step_id: str) -> Optional[StepDefinition]:
        return self._steps.get(step_id)

    def get_step_schema(self, step_id: str) -> Validator:
        step = self._steps.get(step_id)
        if step is None:
            raise InvalidStepError(step_id, self.step_ids)
        return step.schema

    def get_initial_state(self) -> FlowState:
        return FlowState.initial(self.initial)

    def calculate_path(self, data: Mapping[str, Any]) -> List[str]:
        return calculate_path(self, data, self.logger)

    def calculate_full_path(self, data: Mapping[str, Any]) -> List[str]:
        return calculate_full_path(self, data, self.logger)

    def validate(self) -> List[FlowValidationError]:
        return validate_flow_definition(self)

    def assert_valid(self) -> None:
        assert_valid_flow(self)

    @property
    def warnings(self) -> List[str]:
        return get_flow_warnings(self)

    def __repr__(self) -> str:
        return f"FlowDefinition(id={self.id!r}, initial={self.initial!r}, steps={self.step_ids!r})"


def _find_static_cycle(flow: FlowDefinition) -> Optional[List[str]]:
    """Follow static edges from the initial step and return the first cycle."""
    walked: List[str] = []
    current: Optional[str] = flow.initial
    while current is not None and current in flow:
        if current in walked:
            return walked[walked.index(current):] + [current]
        walked.append(current)
        current = flow.get_step(current).next.static_target
    return None


def validate_flow_definition(flow: FlowDefinition) -> List[FlowValidationError]:
    """Return every structural problem of ``flow`` without raising."""
    errors: List[FlowValidationError] = []
    step_ids = flow.step_ids

    if flow.initial not in flow:
        errors.append(
            FlowValidationError(
                type="missing_step",
                message=f'Initial step "{flow.initial}" not found in steps definition',
                step=flow.initial,
                details={"available_steps": step_ids},
            )
        )

    for step_id, step in flow.steps.items():
        for target in step.next.targets:
            if target not in flow:
                errors.append(
                    FlowValidationError(
                        type="invalid_next",
                        message=f'Step "{step_id}" references non-existent next step "{target}"',
                        step=step_id,
                        details={"invalid_next": target, "available_steps": step_ids},
                    )
                )

    cycle = _find_static_cycle(flow)
    if cycle:
        errors.append(
            FlowValidationError(
                type="infinite_loop",
                message=f"Infinite loop detected: {' -> '.join(cycle)}",
                path=cycle,
            )
        )

    for step_id, step in flow.steps.items():
        if step.schema is None:
            errors.append(
                FlowValidationError(
                    type="missing_schema",
                    message=f'Step "{step_id}" is missing a schema definition',
                    step=step_id,
                )
            )

    if flow.initial in flow:
        reachable, conclusive = _reachable_steps(flow)
        if conclusive:
            for step_id in step_ids:
                if step_id not in reachable:
                    errors.append(
                        FlowValidationError(
                            type="unreachable_step",
                            message=(
                                f'Step "{step_id}" is unreachable from initial step '
                                f'"{flow.initial}"'
                            ),
                            step=step_id,
                            details={"reachable_steps": sorted(reachable)},
                        )
                    )

    return errors


def _reachable_steps(flow: FlowDefinition) -> Tuple[set, bool]:
    """Breadth-first walk over static edges and declared dynamic targets.

    The second element is ``False`` when a reachable dynamic transition does
    not declare its targets.
    """
    reachable = set()
    conclusive = True
    queue = deque([flow.initial])
    while queue:
        current = queue.popleft()
        if current in reachable or current not in flow:
            continue
        reachable.add(current)
        transition = flow.get_step(current).next
        if not transition.targets_known:
            conclusive = False
        queue.extend(transition.targets)
    return reachable, conclusive


def assert_valid_flow(flow: FlowDefinition) -> None:
    """Raise ``FlowDefinitionError`` listing every problem found in ``flow``."""
    errors = validate_flow_definition(flow)
    if errors:
        raise FlowDefinitionError(_summarize(errors), errors)


def _summarize(errors: List[FlowValidationError]) -> str:
    plural = "s" if len(errors) > 1 else ""
    lines = [f"Flow definition validation failed ({len(errors)} error{plural}):"]
    for error in errors:
        lines.append(f"  - [{error.type}] {error.message}")
    return "\n".join(lines)


def get_flow_warnings(flow: FlowDefinition) -> List[str]:
    warnings: List[str] = []
    for step_id, step in flow.steps.items():
        if isinstance(step.next, Terminal):
            warnings.append(
                f'Step "{step_id}" has no next step defined. This is a terminal step.'
            )
    for step_id, step in flow.steps.items():
        if step.next.requires_data:
            warnings.append(
                f'Step "{step_id}" uses a dynamic next function. '
                "Ensure all possible return values are valid step names."
            )
    if flow.initial in flow:
        reachable, conclusive = _reachable_steps(flow)
        unverified = [step_id for step_id in flow.step_ids if step_id not in reachable]
        if not conclusive and unverified:
            warnings.append(
                f"Reachability of steps {', '.join(unverified)} could not be verified: "
                "a dynamic next function declares no targets."
            )
    if len(flow.step_ids) == 1:
        warnings.append("Flow has only one step. Consider if this is intentional.")
    return warnings


def create_flow(
    id: str,
    steps: Mapping[str, Union[StepDefinition, Mapping[str, Any]]],
    initial: str,
    *,
    logger: Optional[FlowLogger] = None,
) -> FlowDefinition:
    """Build a ``FlowDefinition``, rejecting structurally broken graphs.

    Missing initial step, dangling references and missing schemas raise
    ``FlowDefinitionError``. A static cycle is only logged; use
    ``assert_valid()`` to reject it together with unreachable steps.
    """
    flow = FlowDefinition(id, steps, initial, logger)
    errors = validate_flow_definition(flow)

    fatal = [e for e in errors if e.type in FATAL_ERROR_TYPES]
    if fatal:
        raise FlowDefinitionError(f'Flow "{id}": ' + fatal[0].message, fatal)

    for error in errors:
        if error.type == "infinite_loop":
            flow.logger.warn(
                "[formflow] Potential circular reference in flow definition",
                {"flow_id": id, "path": error.path},
            )
    return flow
