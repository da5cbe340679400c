"""
Serialization helpers for result objects.

Results are nested dataclasses holding dates, enums, tuples and dicts.
`to_serializable` converts them into plain JSON-compatible structures so
the UI layer can consume them without knowing the Python types.
"""

import json
import math
from dataclasses import fields, is_dataclass
from datetime import date
from enum import Enum
from typing import Any


def to_serializable(obj: Any) -> Any:
    """
    Recursively convert a result object into JSON-compatible data.

    Dataclasses become dicts (a `result_type` class attribute is emitted as
    `type`), dates become ISO strings, enums their values, and non-finite
    floats become None.
    """
    if is_dataclass(obj) and not isinstance(obj, type):
        data: dict[str, Any] = {}
        result_type = getattr(type(obj), "result_type", None)
        if result_type is not None:
            data["type"] = result_type
        for field in fields(obj):
            data[field.name] = to_serializable(getattr(obj, field.name))
        return data
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, dict):
        return {str(to_serializable(k)): to_serializable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_serializable(item) for item in obj]
    if isinstance(obj, float) and not math.isfinite(obj):
        return None
    return obj


def to_json(obj: Any, indent: int | None = None) -> str:
    """Serialize a result object to a JSON string with stable key order."""
    return json.dumps(to_serializable(obj), indent=indent, sort_keys=True)
