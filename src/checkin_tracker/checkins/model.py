from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, NamedTuple, Optional

from ..common.datetime_utils import parse_timestamp
from ..core.constants import DEFAULT_CHECKIN_QUANTITY
from ..core.enums import ChangeType, TransitionAction


class StatusKey(NamedTuple):
    attendee_id: str
    station_id: str

    def __str__(self) -> str:
        return f"{self.attendee_id}:{self.station_id}"


@dataclass(frozen=True)
class CheckInStatus:
    """Check-in state of one attendee at one station.

    ``checked_at is None`` is the unchecked state; its quantity is only a
    display default.
    """

    checked_at: Optional[datetime] = None
    quantity: int = DEFAULT_CHECKIN_QUANTITY

    @property
    def is_checked(self) -> bool:
        return self.checked_at is not None

    @property
    def display_quantity(self) -> int:
        return self.quantity if self.is_checked else 0

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "CheckInStatus":
        return cls(
            checked_at=parse_timestamp(row.get("checked_at")),
            quantity=int(row.get("quantity") or DEFAULT_CHECKIN_QUANTITY),
        )


UNCHECKED = CheckInStatus()


@dataclass(frozen=True)
class StatusRow:
    """A persisted ``attendee_field_status`` row."""

    attendee_id: str
    station_id: str
    status: CheckInStatus

    @property
    def key(self) -> StatusKey:
        return StatusKey(self.attendee_id, self.station_id)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "StatusRow":
        return cls(
            attendee_id=str(row["attendee_id"]),
            station_id=str(row["field_id"]),
            status=CheckInStatus.from_row(row),
        )


@dataclass(frozen=True)
class ChangeEvent:
    """One row change observed on the change feed."""

    table: str
    change_type: ChangeType
    new: Optional[Mapping[str, Any]] = None
    old: Optional[Mapping[str, Any]] = None
    seq: int = 0

    @property
    def row(self) -> Optional[Mapping[str, Any]]:
        return self.new if self.new is not None else self.old

    def to_status_row(self) -> Optional[StatusRow]:
        """Project the event onto a (key, status) pair.

        Deletes read as "unchecked"; the default quantity is restored.
        """

        row = self.row
        if not row:
            return None
        attendee_id = str(row["attendee_id"])
        station_id = str(row["field_id"])
        if self.change_type is ChangeType.DELETE:
            return StatusRow(attendee_id, station_id, UNCHECKED)
        return StatusRow(attendee_id, station_id, CheckInStatus.from_row(row))


@dataclass(frozen=True)
class TransitionResult:
    key: StatusKey
    action: TransitionAction
    previous: CheckInStatus
    current: CheckInStatus
