"""
Shared helpers for CLI commands.
"""

from __future__ import annotations

import json
from typing import Any

from ..context import MedicContext, create_context
from ..core.formatters import format_timestamp, system_clock
from ..models import MedicModel, OperationResult


def get_utc_timestamp() -> str:
    return format_timestamp(system_clock())


def open_context() -> MedicContext:
    """Build the context from settings and run the start-up sweep."""
    ctx = create_context()
    ctx.init()
    return ctx


def to_plain(value: Any) -> Any:
    """Recursively turn models into JSON-ready dicts."""
    if isinstance(value, MedicModel):
        return value.to_dict()
    if isinstance(value, dict):
        return {str(k): to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(v) for v in value]
    return value


def result_response(result: OperationResult) -> dict:
    """
    Map an OperationResult to a command response.

    Failed results carry an ``error`` key so the CLI exits non-zero.
    """
    response = result.to_dict()
    if not result.success:
        response["error"] = (result.code or "error").lower()
    response["query_timestamp"] = get_utc_timestamp()
    return response


def parse_value(text: str) -> Any:
    """Interpret a CLI value as JSON when possible, else as a plain string."""
    try:
        return json.loads(text)
    except ValueError:
        return text
