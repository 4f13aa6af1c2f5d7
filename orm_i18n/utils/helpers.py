"""
Small shared helpers
"""
from datetime import datetime, timezone
from typing import Any, List


def to_list(value: Any) -> List[Any]:
    """None -> [], list -> itself, anything else -> [value]"""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
