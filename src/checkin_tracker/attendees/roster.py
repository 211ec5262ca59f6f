"""Paged, filtered attendee list joined with live check-in state."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, List, Mapping, Optional, Sequence, Set, Tuple

from ..checkins.engine import CheckInTransitionEngine
from ..checkins.policy import CheckInPolicy
from ..checkins.repository import CheckInRepository
from ..checkins.store import CheckInStatusStore
from ..common.validators import optional_filter
from ..core.constants import PAGE_SIZE
from ..core.enums import CheckFilter, Role, SortDirection, SortKey
from ..core.exceptions import LoadError, StoreError, ValidationError
from ..search import generate_search_patterns
from ..stations.catalog import StationCatalog
from .model import Attendee, LocationOptions
from .repository import AttendeePage, AttendeeQuery, AttendeeRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RosterCriteria:
    query: str = ""
    governorate: Optional[str] = None
    district: Optional[str] = None
    area: Optional[str] = None
    station_id: Optional[str] = None
    check_filter: CheckFilter = CheckFilter.ANY
    sort_key: SortKey = SortKey.NAME
    sort_direction: SortDirection = SortDirection.ASC

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> "RosterCriteria":
        try:
            check_filter = CheckFilter(params.get("check") or CheckFilter.ANY.value)
            sort_key = SortKey(params.get("sort") or SortKey.NAME.value)
            direction = SortDirection(params.get("direction") or SortDirection.ASC.value)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc

        station_id = optional_filter(params.get("station"))
        if check_filter is not CheckFilter.ANY and not station_id:
            raise ValidationError("A station is required for the checked filter")

        return cls(
            query=(params.get("q") or "").strip(),
            governorate=optional_filter(params.get("governorate")),
            district=optional_filter(params.get("district")),
            area=optional_filter(params.get("area")),
            station_id=station_id,
            check_filter=check_filter,
            sort_key=sort_key,
            sort_direction=direction,
        )

    def to_query(self, *, offset: int, limit: int) -> AttendeeQuery:
        patterns: Tuple[str, ...] = ()
        if self.query:
            patterns = tuple(generate_search_patterns(self.query))
            logger.debug("search %r expanded to %d patterns", self.query, len(patterns))
        return AttendeeQuery(
            patterns=patterns,
            governorate=self.governorate,
            district=self.district,
            area=self.area,
            station_id=self.station_id,
            check_filter=self.check_filter,
            sort_key=self.sort_key,
            sort_direction=self.sort_direction,
            offset=offset,
            limit=limit,
        )


@dataclass(frozen=True)
class StationCell:
    station_id: str
    station_name: str
    is_main: bool
    checked: bool
    quantity: int
    checked_at: Optional[datetime]
    gated: bool
    role_restricted: bool
    in_flight: bool

    @property
    def disabled(self) -> bool:
        return self.gated or self.role_restricted


@dataclass(frozen=True)
class RosterRow:
    attendee: Attendee
    cells: Tuple[StationCell, ...]


class AttendeeRoster:
    """Owns the displayed window of attendees for one console.

    Changing criteria resets to the first page and cancels any load still in
    flight, so a stale response never overwrites a fresher one.
    """

    def __init__(
        self,
        attendees: AttendeeRepository,
        checkins: CheckInRepository,
        store: CheckInStatusStore,
        catalog: StationCatalog,
        *,
        engine: Optional[CheckInTransitionEngine] = None,
        page_size: int = PAGE_SIZE,
    ):
        self._attendees = attendees
        self._checkins = checkins
        self._store = store
        self._catalog = catalog
        self._engine = engine
        self._policy = CheckInPolicy(store)
        self._page_size = int(page_size)

        self.criteria = RosterCriteria()
        self.rows: List[Attendee] = []
        self.total = 0
        self.error: Optional[LoadError] = None
        self._pending: Optional[asyncio.Task] = None
        self._failed: Optional[Tuple[int, bool]] = None
        self._held: Set[str] = set()

    @property
    def has_more(self) -> bool:
        return len(self.rows) < self.total

    @property
    def loading(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def get(self, attendee_id: str) -> Optional[Attendee]:
        for attendee in self.rows:
            if attendee.attendee_id == attendee_id:
                return attendee
        return None

    async def apply(self, criteria: RosterCriteria) -> Optional[List[Attendee]]:
        self.criteria = criteria
        self.rows = []
        self.total = 0
        return await self._load(offset=0, append=False)

    async def update(self, **changes: Any) -> Optional[List[Attendee]]:
        return await self.apply(replace(self.criteria, **changes))

    async def load_more(self) -> Optional[List[Attendee]]:
        if not self.has_more:
            return []
        return await self._load(offset=len(self.rows), append=True)

    async def retry(self) -> Optional[List[Attendee]]:
        if self._failed is None:
            return await self._load(offset=0, append=False)
        offset, append = self._failed
        return await self._load(offset=offset, append=append)

    def cancel(self) -> None:
        task, self._pending = self._pending, None
        if task is not None and not task.done():
            logger.debug("cancelling in-flight roster load")
            task.cancel()

    def close(self) -> None:
        """Cancel loading and stop holding the displayed attendees."""
        self.cancel()
        self._store.release(self._held)
        self._held = set()

    async def _load(self, *, offset: int, append: bool) -> Optional[List[Attendee]]:
        self.cancel()
        query = self.criteria.to_query(offset=offset, limit=self._page_size)
        task = asyncio.create_task(self._fetch(query))
        self._pending = task
        try:
            page, statuses = await task
        except asyncio.CancelledError:
            if self._pending is not task:
                logger.debug("stale roster load discarded (offset=%d)", offset)
                return None
            raise
        except LoadError as exc:
            if self._pending is task:
                self.error = exc
                self._failed = (offset, append)
                self._pending = None
            raise
        if self._pending is not task:
            return None
        self._pending = None

        ids = [a.attendee_id for a in page.rows]
        self._hold(ids, append=append)
        self._store.replace_attendees(ids, statuses)
        self.rows = (self.rows + list(page.rows)) if append else list(page.rows)
        self.total = page.total
        self.error = None
        self._failed = None
        return list(page.rows)

    def _hold(self, ids: Sequence[str], *, append: bool) -> None:
        wanted = set(ids)
        if not append:
            gone = self._held - wanted
            self._store.release(gone)
            self._held -= gone
        added = wanted - self._held
        self._store.track(added)
        self._held |= added

    async def _fetch(self, query: AttendeeQuery) -> Tuple[AttendeePage, Sequence]:
        try:
            page = await self._attendees.query(query)
            statuses = await self._checkins.list_for_attendees([a.attendee_id for a in page.rows])
        except StoreError as exc:
            logger.warning("roster load failed (offset=%d): %s", query.offset, exc)
            raise LoadError("Could not load attendees") from exc
        return page, statuses

    async def location_options(self) -> LocationOptions:
        try:
            return await self._attendees.location_options()
        except StoreError as exc:
            raise LoadError("Could not load location filters") from exc

    def view(self, role: Role) -> List[RosterRow]:
        return [self.row_for(attendee, role) for attendee in self.rows]

    def row_for(self, attendee: Attendee, role: Role) -> RosterRow:
        main = self._catalog.main_station
        cells = []
        for station in self._catalog.stations:
            status = self._store.get(attendee.attendee_id, station.station_id)
            access = self._policy.access(
                attendee_id=attendee.attendee_id, station=station, main_station=main, role=role
            )
            busy = self._engine.is_busy(attendee.attendee_id, station.station_id) if self._engine else False
            cells.append(
                StationCell(
                    station_id=station.station_id,
                    station_name=station.name,
                    is_main=station.is_main,
                    checked=status.is_checked,
                    quantity=status.display_quantity,
                    checked_at=status.checked_at,
                    gated=access.gated,
                    role_restricted=access.role_restricted,
                    in_flight=busy,
                )
            )
        return RosterRow(attendee=attendee, cells=tuple(cells))
