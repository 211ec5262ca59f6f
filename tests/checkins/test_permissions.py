from __future__ import annotations

import pytest

from checkin_tracker.checkins.permissions import can_modify, role_display_name
from checkin_tracker.checkins.policy import CheckInPolicy
from checkin_tracker.core.enums import Role

from fakes import status_event


@pytest.mark.parametrize(
    "role, station_name, allowed",
    [
        (Role.ADMIN, "Dental Clinic", True),
        (Role.SUPER_ADMIN, "anything", True),
        (Role.MEDICAL, "Medical Checkup", True),
        (Role.MEDICAL, "MEDICAL", True),
        (Role.MEDICAL, "Dental Clinic", False),
        (Role.DENTAL, "عيادة أسنان", True),
        (Role.OPTIC_ET_VISION, "Vision test", True),
        (Role.OPTIC_ET_VISION, "Optic et Vision", True),
        (Role.SHABEBIK, "Shabebik Registration", True),
        (Role.SHABEBIK, "Medical Checkup", False),
        (Role.DENTAL, "", False),
    ],
)
def test_can_modify(role, station_name, allowed):
    assert can_modify(role, station_name) is allowed


def test_role_display_names():
    assert role_display_name(Role.SUPER_ADMIN) == "Super Admin"
    assert role_display_name(Role.MEDICAL, arabic=True) == "طبي"


def test_access_is_derived_from_store(store, stations, main_station, now):
    policy = CheckInPolicy(store)
    medical = stations[2]

    access = policy.access(attendee_id="a-1", station=medical, main_station=main_station, role=Role.MEDICAL)
    assert access.gated and not access.role_restricted and access.disabled

    store.apply_event(status_event("a-1", "registration", checked_at=now))
    access = policy.access(attendee_id="a-1", station=medical, main_station=main_station, role=Role.MEDICAL)
    assert not access.gated and not access.disabled

    main_access = policy.access(attendee_id="a-1", station=main_station, main_station=main_station, role=Role.MEDICAL)
    assert not main_access.gated and main_access.role_restricted


def test_main_station_is_never_gated(store, main_station):
    policy = CheckInPolicy(store)
    access = policy.access(attendee_id="a-9", station=main_station, main_station=main_station, role=Role.ADMIN)
    assert not access.disabled


def test_default_quantity_is_one(store, family):
    assert CheckInPolicy(store).checkin_quantity(attendee=family, role=Role.ADMIN) == 1
    assert CheckInPolicy(store).checkin_quantity(attendee=family, role=Role.ADMIN, requested="2") == 2
