"""JSON-friendly conversion of models and results."""

import dataclasses
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any


def to_json_data(value: Any) -> Any:
    """
    Recursively convert dataclasses, enums, decimals and datetimes.

    Decimals become strings so money keeps its exact cents on the wire.
    """
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            field.name: to_json_data(getattr(value, field.name))
            for field in dataclasses.fields(value)
        }
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {
            (key.value if isinstance(key, Enum) else key): to_json_data(item)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_json_data(item) for item in value]
    return value
