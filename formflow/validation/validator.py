"""Validator capability and adapters.

The engine only depends on the ``Validator`` protocol. ``PydanticValidator``
adapts any pydantic model (or type understood by ``TypeAdapter``) and
``create_validator`` wraps plain callables, sync or async.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Union, runtime_checkable

from pydantic import TypeAdapter, ValidationError


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one step's data."""

    success: bool
    data: Any = None
    errors: Optional[Exception] = None

    @property
    def field_errors(self) -> Dict[str, List[str]]:
        """Map dotted field paths to error messages."""
        if self.errors is None:
            return {}
        if isinstance(self.errors, ValidationError):
            result: Dict[str, List[str]] = {}
            for err in self.errors.errors():
                loc = ".".join(str(part) for part in err.get("loc", ())) or "__root__"
                result.setdefault(loc, []).append(err.get("msg", ""))
            return result
        return {"__root__": [str(self.errors)]}


@runtime_checkable
class Validator(Protocol):
    async def parse(self, data: Any) -> Any:
        """Validate ``data`` and return the parsed output, raising on failure."""

    async def safe_parse(self, data: Any) -> ValidationResult:
        """Validate ``data`` and report the outcome instead of raising."""


class PydanticValidator:
    """Validate step data with a pydantic ``TypeAdapter``.

    Parsed output is dumped in JSON mode (dicts, lists, strings, numbers) so
    it can be merged into flow data and stored without changing on reload.
    """

    def __init__(self, schema: Any) -> None:
        self.schema = schema
        self._adapter = TypeAdapter(schema)

    def parse_sync(self, data: Any) -> Any:
        validated = self._adapter.validate_python(data)
        return self._adapter.dump_python(validated, mode="json")

    def safe_parse_sync(self, data: Any) -> ValidationResult:
        try:
            return ValidationResult(success=True, data=self.parse_sync(data))
        except ValidationError as exc:
            return ValidationResult(success=False, errors=exc)

    async def parse(self, data: Any) -> Any:
        return self.parse_sync(data)

    async def safe_parse(self, data: Any) -> ValidationResult:
        return self.safe_parse_sync(data)

    def __repr__(self) -> str:
        return f"PydanticValidator({getattr(self.schema, '__name__', self.schema)!r})"


ValidateFn = Callable[[Any], Union[Any, Awaitable[Any]]]


class CallableValidator:
    """Validator built from user supplied functions.

    ``ValueError`` (which includes pydantic's ``ValidationError``) raised by a
    validate function is a validation failure. Any other exception propagates
    so the state machine can treat it as a flow exception.
    """

    def __init__(self, validate: ValidateFn, validate_sync: Optional[Callable[[Any], Any]] = None):
        self._validate = validate
        self._validate_sync = validate_sync

    async def parse(self, data: Any) -> Any:
        result = self._validate(data)
        if inspect.isawaitable(result):
            result = await result
        return result

    async def safe_parse(self, data: Any) -> ValidationResult:
        try:
            return ValidationResult(success=True, data=await self.parse(data))
        except ValueError as exc:
            return ValidationResult(success=False, errors=exc)

    @property
    def supports_sync(self) -> bool:
        return self._validate_sync is not None

    def parse_sync(self, data: Any) -> Any:
        if self._validate_sync is None:
            raise TypeError("validator has no synchronous implementation")
        return self._validate_sync(data)

    def safe_parse_sync(self, data: Any) -> ValidationResult:
        try:
            return ValidationResult(success=True, data=self.parse_sync(data))
        except ValueError as exc:
            return ValidationResult(success=False, errors=exc)


def create_validator(
    validate: ValidateFn, validate_sync: Optional[Callable[[Any], Any]] = None
) -> CallableValidator:
    return CallableValidator(validate, validate_sync)


def as_validator(schema: Any) -> Optional[Validator]:
    """Coerce ``schema`` into a ``Validator``.

    Objects already exposing ``safe_parse`` are returned untouched, ``None``
    stays ``None`` and anything else is handed to ``PydanticValidator``.
    """
    if schema is None:
        return None
    if hasattr(schema, "safe_parse") and hasattr(schema, "parse"):
        return schema
    return PydanticValidator(schema)


async def validate_step(schema: Any, data: Any) -> ValidationResult:
    """Validate ``data`` against a step schema asynchronously."""
    validator = as_validator(schema)
    if validator is None:
        raise TypeError("step has no schema to validate against")
    return await validator.safe_parse(data)


def validate_step_sync(schema: Any, data: Any) -> ValidationResult:
    validator = as_validator(schema)
    safe_parse_sync = getattr(validator, "safe_parse_sync", None)
    if safe_parse_sync is None:
        raise TypeError(f"{validator!r} does not support synchronous validation")
    return safe_parse_sync(data)
