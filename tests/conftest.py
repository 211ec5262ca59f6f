from __future__ import annotations

from datetime import datetime

import pytest

from checkin_tracker.checkins.store import CheckInStatusStore
from checkin_tracker.stations.catalog import StationCatalog
from checkin_tracker.stations.model import Station

from fakes import InMemoryAttendees, InMemoryCheckIns, InMemoryStations, make_attendee

NOW = datetime(2025, 3, 1, 10, 15, 0)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def stations():
    return [
        Station("registration", "Shabebik Registration", is_main=True, sort_order=0),
        Station("optics", "Optic et Vision", sort_order=1),
        Station("medical", "Medical Checkup", sort_order=2),
        Station("dental", "Dental Clinic", sort_order=3),
    ]


@pytest.fixture
def main_station(stations):
    return stations[0]


@pytest.fixture
def store():
    return CheckInStatusStore()


@pytest.fixture
def checkins_repo():
    return InMemoryCheckIns()


@pytest.fixture
def stations_repo(stations):
    return InMemoryStations(stations)


@pytest.fixture
def catalog(stations_repo):
    return StationCatalog(stations_repo)


@pytest.fixture
def family():
    return make_attendee("a-1", "Rami Haddad", record_number="12/345", phone="03463479", quantity=3)


@pytest.fixture
def attendees_repo(family, checkins_repo):
    return InMemoryAttendees([family], checkins_repo)
