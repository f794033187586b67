"""Logger capability used by the flow engine for diagnostics."""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional, Protocol


class FlowLogger(Protocol):
    """Minimal logging surface consumed by formflow."""

    def warn(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        """Log a warning."""

    def error(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        """Log an error."""


def is_development() -> bool:
    """Return ``True`` unless ``FORMFLOW_ENV`` is set to ``production``."""
    return os.getenv("FORMFLOW_ENV", "development").lower() != "production"


class LoggingFlowLogger:
    """Route flow diagnostics to the standard ``logging`` module.

    Warnings are only emitted in development; errors are always emitted.
    """

    def __init__(
        self, logger: Optional[logging.Logger] = None, development: Optional[bool] = None
    ) -> None:
        self._logger = logger or logging.getLogger("formflow")
        self.development = is_development() if development is None else development

    def warn(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        if not self.development:
            return
        self._logger.warning(_format(message, context))

    def error(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        self._logger.error(_format(message, context))


class SilentFlowLogger:
    def warn(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        pass

    def error(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        pass


def _format(message: str, context: Optional[Dict[str, Any]]) -> str:
    if not context:
        return message
    return f"{message} {context}"


default_logger: FlowLogger = LoggingFlowLogger()
silent_logger: FlowLogger = SilentFlowLogger()
