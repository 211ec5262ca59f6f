from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, Protocol, Sequence

from .model import StatusRow


@dataclass(frozen=True)
class StationTally:
    accounts: int
    people: int


class CheckInRepository(Protocol):
    async def upsert_checkin(self, *, attendee_id: str, station_id: str, checked_at: datetime, quantity: int) -> None:
        """Insert or overwrite the row keyed by (attendee_id, station_id)."""
        raise NotImplementedError

    async def clear_checkin(self, *, attendee_id: str, station_id: str) -> None:
        """Remove the row; a missing row is not an error."""
        raise NotImplementedError

    async def list_for_attendees(self, attendee_ids: Iterable[str]) -> Sequence[StatusRow]:
        raise NotImplementedError

    async def tally_by_station(self) -> Dict[str, StationTally]:
        """Checked accounts and summed quantity per station id."""
        raise NotImplementedError
