from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from ..attendees.model import Attendee
from ..attendees.repository import AttendeeRepository
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, LoadError, NotFoundError, StoreError
from ..stations.catalog import StationCatalog
from ..stations.model import Station
from .engine import CheckInTransitionEngine
from .model import TransitionResult
from .permissions import RoleDirectory
from .repository import CheckInRepository
from .store import CheckInStatusStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransitionTarget:
    attendee: Attendee
    station: Station
    main_station: Optional[Station]
    role: Role


class CheckInService:
    """Resolves ids from a request into the engine's inputs."""

    def __init__(
        self,
        engine: CheckInTransitionEngine,
        store: CheckInStatusStore,
        catalog: StationCatalog,
        attendees: AttendeeRepository,
        checkins: CheckInRepository,
        roles: RoleDirectory,
    ):
        self._engine = engine
        self._store = store
        self._catalog = catalog
        self._attendees = attendees
        self._checkins = checkins
        self._roles = roles

    async def role_for(self, actor_id: str) -> Role:
        try:
            role = await self._roles.role_for(actor_id)
        except StoreError as exc:
            raise LoadError("Could not load operator role") from exc
        if role is None:
            raise AuthorizationError("Unknown operator")
        return role

    async def check_in(self, *, actor_id: str, attendee_id: str, station_id: str, quantity: Any = None) -> TransitionResult:
        t = await self._resolve(actor_id, attendee_id, station_id)
        return await self._engine.check_in(
            attendee=t.attendee, station=t.station, main_station=t.main_station, role=t.role, quantity=quantity
        )

    async def uncheck(self, *, actor_id: str, attendee_id: str, station_id: str) -> TransitionResult:
        t = await self._resolve(actor_id, attendee_id, station_id)
        return await self._engine.uncheck(
            attendee=t.attendee, station=t.station, main_station=t.main_station, role=t.role
        )

    async def toggle(self, *, actor_id: str, attendee_id: str, station_id: str, quantity: Any = None) -> TransitionResult:
        t = await self._resolve(actor_id, attendee_id, station_id)
        return await self._engine.toggle(
            attendee=t.attendee, station=t.station, main_station=t.main_station, role=t.role, quantity=quantity
        )

    async def _resolve(self, actor_id: str, attendee_id: str, station_id: str) -> TransitionTarget:
        role = await self.role_for(actor_id)
        if not self._catalog.loaded:
            await self._catalog.reload()
        station = self._catalog.get(station_id)
        if station is None:
            raise NotFoundError("Station not found or disabled")

        try:
            attendee = await self._attendees.get_by_id(attendee_id)
            if attendee is None:
                raise NotFoundError("Attendee not found")
            # Gating reads the store; make sure this attendee's rows are in it.
            if not self._store.is_tracked(attendee_id):
                rows = await self._checkins.list_for_attendees([attendee_id])
                self._store.replace_attendees([attendee_id], rows)
        except StoreError as exc:
            raise LoadError("Could not load attendee") from exc

        return TransitionTarget(attendee=attendee, station=station, main_station=self._catalog.main_station, role=role)
