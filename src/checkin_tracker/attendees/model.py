from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Tuple

from ..core.exceptions import ValidationError

logger = logging.getLogger(__name__)


def parse_ages(raw: Any) -> Tuple[int, ...]:
    """Normalize the stored ``ages`` value.

    Rows carry a JSON list, a bare number, a numeric string or nothing;
    anything that is not a finite integer is dropped, as is malformed JSON.
    """

    if raw is None:
        return ()
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8")
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return ()
        if text.startswith("["):
            try:
                raw = json.loads(text)
            except ValueError:
                return ()
        else:
            try:
                return (int(text),)
            except ValueError:
                return ()
    if isinstance(raw, bool):
        return ()
    if isinstance(raw, (int, float)):
        return (int(raw),)
    if not isinstance(raw, (list, tuple)):
        return ()

    ages = []
    for item in raw:
        try:
            ages.append(int(item))
        except (TypeError, ValueError):
            continue
    return tuple(ages)


@dataclass(frozen=True)
class Attendee:
    """Domain entity: a registered party that visits stations."""

    attendee_id: str
    name: str
    record_number: str
    governorate: str
    district: str
    area: str
    phone: Optional[str] = None
    quantity: int = 1
    ages: Tuple[int, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if self.quantity < 1:
            raise ValidationError("Attendee quantity must be at least 1")
        if self.ages and len(self.ages) != self.quantity:
            raise ValidationError("Number of ages must match the attendee quantity")

    @property
    def max_checkin_quantity(self) -> int:
        return max(1, self.quantity)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Attendee":
        """Build from a stored row.

        Stored ages that do not match the quantity are dropped rather than
        rejected; the length check only guards new registrations.
        """

        quantity = max(1, int(row.get("quantity") or 1))
        ages = parse_ages(row.get("ages"))
        if ages and len(ages) != quantity:
            logger.debug("attendee %s: ignoring %d ages for quantity %d", row["id"], len(ages), quantity)
            ages = ()
        return cls(
            attendee_id=str(row["id"]),
            name=row.get("name") or "",
            record_number=str(row.get("record_number") or ""),
            governorate=row.get("governorate") or "",
            district=row.get("district") or "",
            area=row.get("area") or "",
            phone=row.get("phone"),
            quantity=quantity,
            ages=ages,
        )


@dataclass(frozen=True)
class LocationOptions:
    """Distinct location values offered as roster filters."""

    governorates: Tuple[str, ...]
    districts: Tuple[str, ...]
    areas: Tuple[str, ...]
