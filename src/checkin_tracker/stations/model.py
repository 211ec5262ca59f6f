from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping


@dataclass(frozen=True)
class Station:
    """Domain entity: a checkpoint (field) an attendee may pass."""

    station_id: str
    name: str
    is_enabled: bool = True
    is_main: bool = False
    sort_order: int = 0

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Station":
        return cls(
            station_id=str(row["id"]),
            name=row.get("name") or "",
            is_enabled=bool(row.get("is_enabled", True)),
            is_main=bool(row.get("is_main", False)),
            sort_order=int(row.get("sort_order") or 0),
        )
