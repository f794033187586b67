"""Error taxonomy for formflow."""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence


class FormFlowErrorCode(str, Enum):
    VALIDATION_FAILED = "VALIDATION_FAILED"
    INVALID_STEP = "INVALID_STEP"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    MISSING_DATA = "MISSING_DATA"
    FLOW_DEFINITION_INVALID = "FLOW_DEFINITION_INVALID"
    ASYNC_VALIDATION_CANCELLED = "ASYNC_VALIDATION_CANCELLED"
    STEP_NOT_COMPLETED = "STEP_NOT_COMPLETED"
    NAVIGATION_BLOCKED = "NAVIGATION_BLOCKED"


class FormFlowError(Exception):
    """Base error carrying a code, structured details and suggestions."""

    def __init__(
        self,
        code: FormFlowErrorCode,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}
        self.suggestions = suggestions or []

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the error for logging or transmission."""
        return {
            "name": type(self).__name__,
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
            "suggestions": self.suggestions,
        }

    def __str__(self) -> str:
        text = f"{type(self).__name__} [{self.code.value}]: {self.message}"
        if self.details:
            text += f"\nDetails: {json.dumps(self.details, indent=2, default=str)}"
        if self.suggestions:
            text += "\n\nSuggestions:\n" + "\n".join(f"  - {s}" for s in self.suggestions)
        return text


class FlowDefinitionError(FormFlowError):
    """Structural problem in a flow graph."""

    def __init__(self, message: str, validation_errors: Sequence[Any] = ()) -> None:
        self.validation_errors = list(validation_errors)
        super().__init__(
            FormFlowErrorCode.FLOW_DEFINITION_INVALID,
            message,
            {
                "validation_errors": [
                    e.model_dump(exclude_none=True) if hasattr(e, "model_dump") else e
                    for e in self.validation_errors
                ]
            },
            [
                "Review the flow definition structure",
                "Ensure all steps have valid schemas",
                "Check that all next step references are correct",
            ],
        )


class InvalidStepError(FormFlowError):
    def __init__(self, step: str, available_steps: Sequence[str]) -> None:
        super().__init__(
            FormFlowErrorCode.INVALID_STEP,
            f'Step "{step}" does not exist in flow definition',
            {"step": step, "available_steps": list(available_steps)},
            [
                f"Available steps: {', '.join(available_steps)}",
                "Check the flow definition for typos",
            ],
        )
        self.step = step


class ValidationCancelledError(FormFlowError):
    """Raised when an in-flight validation is superseded or aborted.

    Callers should ignore the stale result instead of reporting a failure.
    """

    def __init__(self, step: Optional[str] = None, reason: Optional[str] = None) -> None:
        target = f' for step "{step}"' if step else ""
        suffix = f": {reason}" if reason else ""
        super().__init__(
            FormFlowErrorCode.ASYNC_VALIDATION_CANCELLED,
            f"Async validation{target} was cancelled{suffix}",
            {"step": step, "reason": reason},
            ["Consider debouncing user input before validating"],
        )
        self.step = step
        self.reason = reason


def is_form_flow_error(error: object) -> bool:
    return isinstance(error, FormFlowError)
