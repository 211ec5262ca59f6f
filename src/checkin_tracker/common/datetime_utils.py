from __future__ import annotations

from datetime import datetime
from typing import Any, Optional


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Normalize timestamps coming from rows or change-log JSON.

    The driver returns ``datetime`` for DATETIME columns, while JSON_OBJECT in
    triggers serializes them as ``'2025-03-01 10:15:00.000000'`` strings.
    """

    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        return datetime.fromisoformat(value)
    raise TypeError(f"Unsupported timestamp value type: {type(value)!r}")
