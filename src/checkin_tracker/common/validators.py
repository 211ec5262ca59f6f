from __future__ import annotations

from typing import Any, Optional

from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} must not be empty")
    return value.strip()


def require_positive_int(value: Any, field_name: str) -> int:
    # bool is an int subclass; True must not pass as a quantity of 1.
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a positive integer")
    if isinstance(value, str):
        value = value.strip()
        if not value.isdigit():
            raise ValidationError(f"{field_name} must be a positive integer")
        value = int(value)
    if not isinstance(value, int) or value < 1:
        raise ValidationError(f"{field_name} must be a positive integer")
    return value


def optional_filter(value: Optional[str]) -> Optional[str]:
    """Blank filter values mean "no filter"."""
    if value is None:
        return None
    value = value.strip()
    return value or None
