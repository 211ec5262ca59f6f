from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Union

from checkin_tracker.attendees.model import Attendee, LocationOptions
from checkin_tracker.attendees.mysql_attendee_repository import SORT_COLUMNS, sort_ids
from checkin_tracker.attendees.repository import AttendeePage, AttendeeQuery, RegistrationTotals
from checkin_tracker.checkins.model import ChangeEvent, CheckInStatus, StatusKey, StatusRow
from checkin_tracker.checkins.repository import StationTally
from checkin_tracker.core.enums import ChangeType, CheckFilter, Role
from checkin_tracker.core.exceptions import StoreError, SubscriptionError
from checkin_tracker.stations.model import Station


def make_attendee(attendee_id: str, name: str = "", **kwargs) -> Attendee:
    values = dict(
        record_number=f"R{attendee_id}",
        governorate="Beirut",
        district="Beirut",
        area="Hamra",
        phone=None,
        quantity=1,
    )
    values.update(kwargs)
    return Attendee(attendee_id=attendee_id, name=name or f"Attendee {attendee_id}", **values)


def status_event(attendee_id: str, station_id: str, *, checked_at: Optional[datetime], quantity: int = 1,
                 change_type: ChangeType = ChangeType.UPDATE, seq: int = 0) -> ChangeEvent:
    row = {"attendee_id": attendee_id, "field_id": station_id, "checked_at": checked_at, "quantity": quantity}
    if change_type is ChangeType.DELETE:
        return ChangeEvent(table="attendee_field_status", change_type=change_type, old=row, seq=seq)
    return ChangeEvent(table="attendee_field_status", change_type=change_type, new=row, seq=seq)


def station_event(station: Station, change_type: ChangeType = ChangeType.UPDATE) -> ChangeEvent:
    row = {
        "id": station.station_id,
        "name": station.name,
        "is_enabled": int(station.is_enabled),
        "is_main": int(station.is_main),
        "sort_order": station.sort_order,
    }
    if change_type is ChangeType.DELETE:
        return ChangeEvent(table="fields", change_type=change_type, old=row)
    return ChangeEvent(table="fields", change_type=change_type, new=row)


async def wait_until(predicate, timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.005)


class InMemoryStations:
    def __init__(self, stations: Iterable[Station] = ()):
        self.stations: Dict[str, Station] = {s.station_id: s for s in stations}
        self.fail_loads = 0

    async def list_enabled(self) -> List[Station]:
        if self.fail_loads:
            self.fail_loads -= 1
            raise StoreError("stations unavailable")
        return [s for s in self.stations.values() if s.is_enabled]

    async def get_by_id(self, station_id: str) -> Optional[Station]:
        return self.stations.get(station_id)


class InMemoryCheckIns:
    def __init__(self):
        self.rows: Dict[StatusKey, CheckInStatus] = {}
        self.writes: List[tuple] = []
        self.fail_writes = 0
        self.fail_reads = 0
        self.hold_writes: Optional[asyncio.Event] = None

    def put(self, attendee_id: str, station_id: str, *, checked_at: datetime, quantity: int = 1) -> None:
        self.rows[StatusKey(attendee_id, station_id)] = CheckInStatus(checked_at=checked_at, quantity=quantity)

    async def _write(self, entry: tuple) -> None:
        self.writes.append(entry)
        if self.hold_writes is not None:
            await self.hold_writes.wait()
        if self.fail_writes:
            self.fail_writes -= 1
            raise StoreError("lock wait timeout")

    async def upsert_checkin(self, *, attendee_id: str, station_id: str, checked_at: datetime, quantity: int) -> None:
        await self._write(("upsert", attendee_id, station_id, quantity))
        self.rows[StatusKey(attendee_id, station_id)] = CheckInStatus(checked_at=checked_at, quantity=quantity)

    async def clear_checkin(self, *, attendee_id: str, station_id: str) -> None:
        await self._write(("clear", attendee_id, station_id))
        self.rows.pop(StatusKey(attendee_id, station_id), None)

    async def list_for_attendees(self, attendee_ids: Iterable[str]) -> List[StatusRow]:
        if self.fail_reads:
            self.fail_reads -= 1
            raise StoreError("connection lost")
        ids = set(attendee_ids)
        return [StatusRow(k.attendee_id, k.station_id, v) for k, v in self.rows.items() if k.attendee_id in ids]

    async def tally_by_station(self) -> Dict[str, StationTally]:
        tallies: Dict[str, StationTally] = {}
        for key, status in self.rows.items():
            current = tallies.get(key.station_id, StationTally(0, 0))
            tallies[key.station_id] = StationTally(current.accounts + 1, current.people + status.quantity)
        return tallies


class InMemoryAttendees:
    def __init__(self, attendees: Iterable[Attendee] = (), checkins: Optional[InMemoryCheckIns] = None):
        self.attendees: Dict[str, Attendee] = {a.attendee_id: a for a in attendees}
        self.checkins = checkins or InMemoryCheckIns()
        self.queries: List[AttendeeQuery] = []
        self.fail_queries = 0
        self.hold_next: Optional[asyncio.Event] = None

    def _matches(self, a: Attendee, q: AttendeeQuery) -> bool:
        if q.patterns:
            haystacks = [a.name.lower(), a.record_number.lower(), (a.phone or "").lower()]
            if not any(p.lower() in h for p in q.patterns for h in haystacks):
                return False
        for attr in ("governorate", "district", "area"):
            wanted = getattr(q, attr)
            if wanted is not None and getattr(a, attr) != wanted:
                return False
        if q.station_id and q.check_filter is not CheckFilter.ANY:
            checked = StatusKey(a.attendee_id, q.station_id) in self.checkins.rows
            if checked != (q.check_filter is CheckFilter.CHECKED):
                return False
        return True

    async def query(self, query: AttendeeQuery) -> AttendeePage:
        self.queries.append(query)
        hold, self.hold_next = self.hold_next, None
        if hold is not None:
            await hold.wait()
        if self.fail_queries:
            self.fail_queries -= 1
            raise StoreError("query timeout")

        column = SORT_COLUMNS[query.sort_key].split(".", 1)[1]
        matching = [a for a in self.attendees.values() if self._matches(a, query)]
        keyed = [{"id": a.attendee_id, "sort_value": getattr(a, column)} for a in matching]
        ids = sort_ids(keyed, query.sort_key, query.sort_direction)
        page = ids[query.offset:query.offset + query.limit]
        return AttendeePage(rows=tuple(self.attendees[i] for i in page), total=len(ids))

    async def get_by_id(self, attendee_id: str) -> Optional[Attendee]:
        return self.attendees.get(attendee_id)

    async def location_options(self) -> LocationOptions:
        values = list(self.attendees.values())
        return LocationOptions(
            governorates=tuple(sorted({a.governorate for a in values})),
            districts=tuple(sorted({a.district for a in values})),
            areas=tuple(sorted({a.area for a in values})),
        )

    async def totals(self) -> RegistrationTotals:
        values = list(self.attendees.values())
        return RegistrationTotals(accounts=len(values), people=sum(a.quantity for a in values))


@dataclass
class InMemoryRoles:
    roles: Dict[str, Role] = field(default_factory=dict)

    async def role_for(self, actor_id: str) -> Optional[Role]:
        return self.roles.get(actor_id)


_CLOSED = object()


class QueueSubscription:
    def __init__(self):
        self._queue: asyncio.Queue = asyncio.Queue()
        self.closed = False

    def push(self, event: ChangeEvent) -> None:
        self._queue.put_nowait(event)

    def fail(self, error: Union[str, Exception] = "socket closed") -> None:
        if isinstance(error, str):
            error = SubscriptionError(error)
        self._queue.put_nowait(error)

    def __aiter__(self):
        return self

    async def __anext__(self) -> ChangeEvent:
        if self.closed:
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        if isinstance(item, Exception):
            raise item
        return item

    async def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._queue.put_nowait(_CLOSED)


class FakeChangeFeed:
    def __init__(self):
        self.subscriptions: List[QueueSubscription] = []
        self.fail_next = 0
        self.hang_next = 0

    @property
    def current(self) -> QueueSubscription:
        return self.subscriptions[-1]

    async def subscribe(self, tables) -> QueueSubscription:
        if self.hang_next:
            self.hang_next -= 1
            await asyncio.sleep(3600)
        if self.fail_next:
            self.fail_next -= 1
            raise SubscriptionError("realtime endpoint unreachable")
        subscription = QueueSubscription()
        self.subscriptions.append(subscription)
        return subscription
