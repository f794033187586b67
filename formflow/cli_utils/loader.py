"""Utility functions to locate flow definitions for the CLI."""

from __future__ import annotations

import importlib
import json
from typing import Any, Dict, Optional

from formflow.definition import FlowDefinition


def _load_flow(target: str) -> FlowDefinition:
    """Import ``package.module:attribute`` and return the flow it names.

    The attribute may be a ``FlowDefinition``, a ``PersistedFlow`` or a
    zero-argument callable returning either.
    """
    module_name, _, attr = target.partition(":")
    if not module_name or not attr:
        raise ValueError(f"Expected MODULE:ATTRIBUTE, got {target!r}")

    module = importlib.import_module(module_name)
    obj: Any = module
    for part in attr.split("."):
        obj = getattr(obj, part)

    if callable(obj) and not isinstance(obj, FlowDefinition) and not hasattr(obj, "flow"):
        obj = obj()
    obj = getattr(obj, "flow", obj)
    if not isinstance(obj, FlowDefinition):
        raise TypeError(f"{target} is not a flow definition")
    return obj


def _parse_data(raw: Optional[str]) -> Dict[str, Any]:
    if not raw:
        return {}
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("flow data must be a JSON object keyed by step id")
    return data
