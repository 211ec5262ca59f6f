from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol, Sequence, Tuple

from ..core.enums import CheckFilter, SortDirection, SortKey
from .model import Attendee, LocationOptions


@dataclass(frozen=True)
class AttendeeQuery:
    """Row-store query: AND of all active filters, OR across text patterns."""

    patterns: Tuple[str, ...] = ()
    governorate: Optional[str] = None
    district: Optional[str] = None
    area: Optional[str] = None
    station_id: Optional[str] = None
    check_filter: CheckFilter = CheckFilter.ANY
    sort_key: SortKey = SortKey.NAME
    sort_direction: SortDirection = SortDirection.ASC
    offset: int = 0
    limit: int = 50


@dataclass(frozen=True)
class AttendeePage:
    rows: Sequence[Attendee] = field(default_factory=tuple)
    total: int = 0


@dataclass(frozen=True)
class RegistrationTotals:
    accounts: int
    people: int


class AttendeeRepository(Protocol):
    async def query(self, query: AttendeeQuery) -> AttendeePage:
        raise NotImplementedError

    async def get_by_id(self, attendee_id: str) -> Optional[Attendee]:
        raise NotImplementedError

    async def location_options(self) -> LocationOptions:
        raise NotImplementedError

    async def totals(self) -> RegistrationTotals:
        raise NotImplementedError
