"""
JSON encoding utilities for settings documents and webhook logging.
Handles datetimes, UUIDs, Decimals and Enums nested anywhere in the payload.
"""
import json
import uuid
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Any


class ApplicationJSONEncoder(json.JSONEncoder):
    """JSON encoder aware of the value types Supabase and pydantic hand us."""

    def default(self, obj):
        if isinstance(obj, uuid.UUID):
            return str(obj)
        elif isinstance(obj, (datetime, date)):
            return obj.isoformat()
        elif isinstance(obj, Decimal):
            return float(obj)
        elif isinstance(obj, Enum):
            return obj.value
        return super().default(obj)


def safe_json_dumps(obj: Any, **kwargs) -> str:
    """
    Serialize to JSON without raising.
    Values the encoder does not know are rendered with str().
    """
    try:
        return json.dumps(obj, cls=ApplicationJSONEncoder, **kwargs)
    except (TypeError, ValueError):
        return json.dumps(obj, default=str, **kwargs)


def safe_json_loads(json_str: str, **kwargs) -> Any:
    """
    JSON deserialization with a uniform error type.
    """
    try:
        return json.loads(json_str, **kwargs)
    except (json.JSONDecodeError, TypeError) as e:
        raise ValueError(f"Invalid JSON: {str(e)}")
