"""formflow: declarative multi-step form orchestration."""

from .definition import (
    Dynamic,
    FlowDefinition,
    FlowValidationError,
    StepDefinition,
    Static,
    Terminal,
    Transition,
    assert_valid_flow,
    create_flow,
    define_transition,
    get_flow_warnings,
    validate_flow_definition,
)
from .errors import (
    FlowDefinitionError,
    FormFlowError,
    FormFlowErrorCode,
    InvalidStepError,
    ValidationCancelledError,
    is_form_flow_error,
)
from .logger import FlowLogger, LoggingFlowLogger, SilentFlowLogger, default_logger, silent_logger
from .machine import (
    DictFormController,
    FlowMachine,
    FlowState,
    calculate_full_path,
    calculate_path,
    can_navigate_to_step,
    get_next_step,
    get_previous_step,
    reduce,
    resolve_transition,
)
from .middleware import FlowMiddleware, compose_middleware
from .persistence import PersistedFlow, get_adapter, with_persistence
from .validation import PydanticValidator, ValidationResult, Validator, create_validator

__version__ = "0.1.0"
__all__ = [
    "DictFormController",
    "Dynamic",
    "FlowDefinition",
    "FlowDefinitionError",
    "FlowLogger",
    "FlowMachine",
    "FlowMiddleware",
    "FlowState",
    "FlowValidationError",
    "FormFlowError",
    "FormFlowErrorCode",
    "InvalidStepError",
    "LoggingFlowLogger",
    "PersistedFlow",
    "PydanticValidator",
    "SilentFlowLogger",
    "Static",
    "StepDefinition",
    "Terminal",
    "Transition",
    "ValidationCancelledError",
    "ValidationResult",
    "Validator",
    "assert_valid_flow",
    "calculate_full_path",
    "calculate_path",
    "can_navigate_to_step",
    "compose_middleware",
    "create_flow",
    "create_validator",
    "default_logger",
    "define_transition",
    "get_adapter",
    "get_flow_warnings",
    "get_next_step",
    "get_previous_step",
    "is_form_flow_error",
    "reduce",
    "resolve_transition",
    "silent_logger",
    "validate_flow_definition",
    "with_persistence",
]
