"""Validation capability and async validation helpers."""

from .asynchronous import (
    AbortableValidation,
    Debounced,
    ValidationCache,
    create_abortable_validation,
    create_cache_key,
    create_validation_cache,
    debounce,
    with_retry,
)
from .validator import (
    CallableValidator,
    PydanticValidator,
    ValidationResult,
    Validator,
    as_validator,
    create_validator,
    validate_step,
    validate_step_sync,
)

__all__ = [
    "AbortableValidation",
    "CallableValidator",
    "Debounced",
    "PydanticValidator",
    "ValidationCache",
    "ValidationResult",
    "Validator",
    "as_validator",
    "create_abortable_validation",
    "create_cache_key",
    "create_validation_cache",
    "create_validator",
    "debounce",
    "validate_step",
    "validate_step_sync",
    "with_retry",
]
