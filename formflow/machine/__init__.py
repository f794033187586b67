"""Path calculation, transition resolution and the flow state machine."""

from .engine import DictFormController, FlowMachine, FormController
from .path import calculate_full_path, calculate_path, has_step_data
from .state import (
    Back,
    Command,
    CommitStep,
    FlowState,
    FlowStatus,
    GoTo,
    Navigate,
    Reset,
    Revert,
    SetData,
    SetStatus,
    reduce,
)
from .transitions import (
    can_navigate_to_step,
    get_frontier_step,
    get_next_step,
    get_previous_step,
    resolve_transition,
)

__all__ = [
    "Back",
    "Command",
    "CommitStep",
    "DictFormController",
    "FlowMachine",
    "FlowState",
    "FlowStatus",
    "FormController",
    "GoTo",
    "Navigate",
    "Reset",
    "Revert",
    "SetData",
    "SetStatus",
    "calculate_full_path",
    "calculate_path",
    "can_navigate_to_step",
    "get_frontier_step",
    "get_next_step",
    "get_previous_step",
    "has_step_data",
    "reduce",
    "resolve_transition",
]
