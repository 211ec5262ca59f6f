from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Operator role used for station permissions."""

    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"
    SHABEBIK = "shabebik"
    OPTIC_ET_VISION = "optic_et_vision"
    MEDICAL = "medical"
    DENTAL = "dental"

    @property
    def is_super_admin(self) -> bool:
        return self is Role.SUPER_ADMIN


class ChangeType(str, Enum):
    """Row change kinds delivered by the change feed."""

    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class ChannelState(str, Enum):
    """Connection state of the realtime subscription."""

    CONNECTING = "CONNECTING"
    SUBSCRIBED = "SUBSCRIBED"
    CHANNEL_ERROR = "CHANNEL_ERROR"
    TIMED_OUT = "TIMED_OUT"
    CLOSED = "CLOSED"


class TransitionAction(str, Enum):
    CHECK_IN = "check_in"
    UNCHECK = "uncheck"
    NOOP = "noop"


class CheckFilter(str, Enum):
    """Roster filter on one station's checked state."""

    ANY = "any"
    CHECKED = "checked"
    NOT_CHECKED = "not_checked"


class SortKey(str, Enum):
    NAME = "name"
    RECORD_NUMBER = "recordNumber"
    GOVERNORATE = "governorate"
    DISTRICT = "district"
    AREA = "area"
    QUANTITY = "quantity"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"
