from __future__ import annotations

import asyncio
from datetime import datetime

import pytest

from checkin_tracker.attendees.roster import AttendeeRoster, RosterCriteria
from checkin_tracker.checkins.engine import CheckInTransitionEngine
from checkin_tracker.core.enums import CheckFilter, Role, SortDirection, SortKey
from checkin_tracker.core.exceptions import LoadError, ValidationError

from fakes import InMemoryAttendees, make_attendee, wait_until

T1 = datetime(2025, 3, 1, 9, 0)


@pytest.fixture
def crowd(checkins_repo):
    people = [make_attendee(f"p-{i:03d}", f"Guest {i}", governorate="North" if i % 2 else "South") for i in range(120)]
    return InMemoryAttendees(people, checkins_repo)


def roster_for(repo, checkins_repo, store, catalog, **kwargs) -> AttendeeRoster:
    return AttendeeRoster(repo, checkins_repo, store, catalog, **kwargs)


@pytest.mark.asyncio
async def test_pagination_and_load_more(crowd, checkins_repo, store, catalog):
    roster = roster_for(crowd, checkins_repo, store, catalog)

    first = await roster.apply(RosterCriteria())
    assert len(first) == 50
    assert roster.total == 120 and roster.has_more

    await roster.load_more()
    assert len(roster.rows) == 100
    await roster.load_more()
    assert len(roster.rows) == 120
    assert not roster.has_more
    assert await roster.load_more() == []

    assert [q.offset for q in crowd.queries] == [0, 50, 100]


@pytest.mark.asyncio
async def test_natural_sort(checkins_repo, store, catalog):
    repo = InMemoryAttendees(
        [make_attendee("1", "A10"), make_attendee("2", "A2"), make_attendee("3", "a1", quantity=4)],
        checkins_repo,
    )
    roster = roster_for(repo, checkins_repo, store, catalog)

    await roster.apply(RosterCriteria())
    assert [a.name for a in roster.rows] == ["a1", "A2", "A10"]

    await roster.update(sort_direction=SortDirection.DESC)
    assert [a.name for a in roster.rows] == ["A10", "A2", "a1"]

    await roster.update(sort_key=SortKey.QUANTITY)
    assert roster.rows[0].name == "a1"


@pytest.mark.asyncio
async def test_search_matches_phone_without_leading_zero(attendees_repo, checkins_repo, store, catalog):
    roster = roster_for(attendees_repo, checkins_repo, store, catalog)

    await roster.apply(RosterCriteria(query="3463479"))

    assert [a.attendee_id for a in roster.rows] == ["a-1"]
    assert len(attendees_repo.queries[-1].patterns) <= 100


@pytest.mark.asyncio
async def test_filters_are_conjunctive(crowd, checkins_repo, store, catalog):
    checkins_repo.put("p-001", "medical", checked_at=T1)
    checkins_repo.put("p-002", "medical", checked_at=T1)
    roster = roster_for(crowd, checkins_repo, store, catalog)

    await roster.apply(RosterCriteria(governorate="North", station_id="medical", check_filter=CheckFilter.CHECKED))
    assert [a.attendee_id for a in roster.rows] == ["p-001"]

    await roster.apply(RosterCriteria(station_id="medical", check_filter=CheckFilter.NOT_CHECKED))
    assert roster.total == 118


@pytest.mark.asyncio
async def test_changing_criteria_resets_to_first_page(crowd, checkins_repo, store, catalog):
    roster = roster_for(crowd, checkins_repo, store, catalog)
    await roster.apply(RosterCriteria())
    await roster.load_more()

    await roster.update(governorate="South")

    assert len(roster.rows) == 50
    assert roster.total == 60
    assert crowd.queries[-1].offset == 0


@pytest.mark.asyncio
async def test_new_criteria_cancel_stale_load(crowd, checkins_repo, store, catalog):
    roster = roster_for(crowd, checkins_repo, store, catalog)
    crowd.hold_next = asyncio.Event()

    stale = asyncio.create_task(roster.apply(RosterCriteria(governorate="North")))
    await wait_until(lambda: len(crowd.queries) == 1)
    assert roster.loading

    await roster.apply(RosterCriteria(governorate="South"))

    assert await stale is None
    assert {a.governorate for a in roster.rows} == {"South"}
    assert roster.total == 60


@pytest.mark.asyncio
async def test_load_failure_then_retry(crowd, checkins_repo, store, catalog):
    roster = roster_for(crowd, checkins_repo, store, catalog)
    crowd.fail_queries = 1

    with pytest.raises(LoadError):
        await roster.apply(RosterCriteria())
    assert roster.error is not None
    assert roster.rows == []

    await roster.retry()
    assert roster.error is None
    assert len(roster.rows) == 50


@pytest.mark.asyncio
async def test_load_more_failure_retries_same_page(crowd, checkins_repo, store, catalog):
    roster = roster_for(crowd, checkins_repo, store, catalog)
    await roster.apply(RosterCriteria())
    crowd.fail_queries = 1

    with pytest.raises(LoadError):
        await roster.load_more()
    assert len(roster.rows) == 50

    await roster.retry()
    assert len(roster.rows) == 100


@pytest.mark.asyncio
async def test_page_statuses_loaded_into_store(attendees_repo, checkins_repo, store, catalog):
    checkins_repo.put("a-1", "registration", checked_at=T1, quantity=2)
    roster = roster_for(attendees_repo, checkins_repo, store, catalog)

    await roster.apply(RosterCriteria())

    assert store.is_tracked("a-1")
    assert store.get("a-1", "registration").quantity == 2


@pytest.mark.asyncio
async def test_station_cells(attendees_repo, checkins_repo, store, catalog, family):
    await catalog.reload()
    checkins_repo.put("a-1", "registration", checked_at=T1, quantity=2)
    engine = CheckInTransitionEngine(store, checkins_repo)
    roster = roster_for(attendees_repo, checkins_repo, store, catalog, engine=engine)
    await roster.apply(RosterCriteria())

    [row] = roster.view(Role.MEDICAL)
    cells = {c.station_id: c for c in row.cells}

    assert [c.station_id for c in row.cells] == ["registration", "optics", "medical", "dental"]
    assert cells["registration"].checked and cells["registration"].quantity == 2
    assert cells["registration"].role_restricted
    assert not cells["medical"].disabled
    assert cells["dental"].disabled and not cells["dental"].gated
    assert cells["optics"].quantity == 0
    assert not any(c.in_flight for c in row.cells)


@pytest.mark.asyncio
async def test_unchecked_main_gates_every_other_cell(attendees_repo, checkins_repo, store, catalog):
    await catalog.reload()
    roster = roster_for(attendees_repo, checkins_repo, store, catalog)
    await roster.apply(RosterCriteria())

    [row] = roster.view(Role.ADMIN)
    assert [c.gated for c in row.cells] == [False, True, True, True]
    assert not any(c.disabled for c in roster.view(Role.SUPER_ADMIN)[0].cells)


def test_criteria_from_params():
    criteria = RosterCriteria.from_params({
        "q": " 0346 ", "governorate": "", "station": "medical", "check": "checked",
        "sort": "recordNumber", "direction": "desc",
    })
    assert criteria.query == "0346"
    assert criteria.governorate is None
    assert criteria.check_filter is CheckFilter.CHECKED
    assert criteria.sort_key is SortKey.RECORD_NUMBER
    assert criteria.sort_direction is SortDirection.DESC


@pytest.mark.parametrize(
    "params",
    [{"sort": "age"}, {"direction": "sideways"}, {"check": "checked"}, {"check": "maybe", "station": "x"}],
)
def test_invalid_criteria(params):
    with pytest.raises(ValidationError):
        RosterCriteria.from_params(params)


@pytest.mark.asyncio
async def test_location_options(crowd, checkins_repo, store, catalog):
    roster = roster_for(crowd, checkins_repo, store, catalog)
    options = await roster.location_options()
    assert options.governorates == ("North", "South")


@pytest.mark.asyncio
async def test_reset_releases_attendees_no_longer_shown(crowd, checkins_repo, store, catalog):
    roster = roster_for(crowd, checkins_repo, store, catalog)

    await roster.apply(RosterCriteria())
    await roster.load_more()
    assert len(store.tracked_attendees()) == 100

    await roster.update(governorate="North")

    assert set(store.tracked_attendees()) == {a.attendee_id for a in roster.rows}
    assert len(store.tracked_attendees()) == 50


@pytest.mark.asyncio
async def test_shared_attendees_stay_tracked_until_last_roster_closes(attendees_repo, checkins_repo, store, catalog):
    checkins_repo.put("a-1", "registration", checked_at=T1)
    first = roster_for(attendees_repo, checkins_repo, store, catalog)
    second = roster_for(attendees_repo, checkins_repo, store, catalog)
    await first.apply(RosterCriteria())
    await second.apply(RosterCriteria())

    first.close()
    assert store.is_tracked("a-1")
    assert store.is_checked("a-1", "registration")

    second.close()
    assert store.tracked_attendees() == []
