"""
JSON utilities for LLM responses and record serialization.
"""

import json
from dataclasses import asdict, is_dataclass
from datetime import datetime
from enum import Enum
from typing import Any


def clean_json_response(response: str) -> str:
    """Strip code fences from an LLM response.

    Args:
        response: Raw LLM response

    Returns:
        Cleaned JSON string
    """
    response = response.strip()

    for fence in ('```json', '```'):
        if response.startswith(fence):
            response = response[len(fence):]
            break

    if response.endswith('```'):
        response = response[:-3]

    return response.strip()


def parse_json_response(response: str, default: Any = None) -> Any:
    """Parse an LLM response as JSON, returning ``default`` when it is not valid JSON."""
    try:
        return json.loads(clean_json_response(response))
    except (json.JSONDecodeError, TypeError):
        return default


def to_jsonable(value: Any) -> Any:
    """Convert dataclasses, enums and datetimes into JSON-compatible values."""
    if is_dataclass(value) and not isinstance(value, type):
        return {key: to_jsonable(item) for key, item in asdict(value).items()}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(key): to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [to_jsonable(item) for item in value]
    return value


def dumps(value: Any, **kwargs) -> str:
    """Serialize ``value`` to a JSON string via :func:`to_jsonable`."""
    return json.dumps(to_jsonable(value), **kwargs)
