from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from ..attendees.model import Attendee
from ..common.validators import require_positive_int
from ..core.constants import DEFAULT_CHECKIN_QUANTITY
from ..core.enums import Role
from ..core.exceptions import QuantityExceededError, RoleRestrictedError, StationGatedError
from ..stations.model import Station
from .permissions import can_modify
from .store import CheckInStatusStore


@dataclass(frozen=True)
class StationAccess:
    """Derived, never stored: recomputed from the store on every decision."""

    gated: bool
    role_restricted: bool

    @property
    def disabled(self) -> bool:
        return self.gated or self.role_restricted


class CheckInPolicy:
    """Business rules for who may move a check-in, and with what quantity."""

    def __init__(self, store: CheckInStatusStore):
        self._store = store

    def access(self, *, attendee_id: str, station: Station, main_station: Optional[Station], role: Role) -> StationAccess:
        main_checked = True
        if main_station is not None:
            main_checked = self._store.is_checked(attendee_id, main_station.station_id)
        gated = not role.is_super_admin and not station.is_main and not main_checked
        return StationAccess(gated=gated, role_restricted=not can_modify(role, station.name))

    def authorize(self, *, attendee: Attendee, station: Station, main_station: Optional[Station], role: Role) -> None:
        """Raise on the first failing rule: gating first, then role."""

        access = self.access(attendee_id=attendee.attendee_id, station=station, main_station=main_station, role=role)
        if access.gated:
            raise StationGatedError(
                f"'{station.name}' is locked until '{main_station.name}' is checked for {attendee.name}"
            )
        if access.role_restricted:
            raise RoleRestrictedError(f"Role '{role.value}' may not modify '{station.name}'")

    def checkin_quantity(self, *, attendee: Attendee, role: Role, requested: Any = None) -> int:
        if requested is None:
            requested = DEFAULT_CHECKIN_QUANTITY
        quantity = require_positive_int(requested, "Quantity")
        if not role.is_super_admin and quantity > attendee.max_checkin_quantity:
            raise QuantityExceededError(
                f"Quantity {quantity} exceeds the {attendee.max_checkin_quantity} registered for {attendee.name}"
            )
        return quantity
