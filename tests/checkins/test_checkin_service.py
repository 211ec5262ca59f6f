from __future__ import annotations

import pytest

from checkin_tracker.checkins.engine import CheckInTransitionEngine
from checkin_tracker.checkins.service import CheckInService
from checkin_tracker.core.enums import Role, TransitionAction
from checkin_tracker.core.exceptions import AuthorizationError, LoadError, NotFoundError, StationGatedError

from fakes import InMemoryRoles


@pytest.fixture
def service(store, catalog, attendees_repo, checkins_repo, now):
    engine = CheckInTransitionEngine(store, checkins_repo, clock=lambda: now)
    roles = InMemoryRoles({"op-admin": Role.ADMIN, "op-medic": Role.MEDICAL})
    return CheckInService(engine, store, catalog, attendees_repo, checkins_repo, roles)


@pytest.mark.asyncio
async def test_unknown_operator_rejected(service):
    with pytest.raises(AuthorizationError):
        await service.check_in(actor_id="nobody", attendee_id="a-1", station_id="registration")


@pytest.mark.asyncio
async def test_unknown_attendee_and_station(service):
    with pytest.raises(NotFoundError):
        await service.check_in(actor_id="op-admin", attendee_id="missing", station_id="registration")
    with pytest.raises(NotFoundError):
        await service.check_in(actor_id="op-admin", attendee_id="a-1", station_id="missing")


@pytest.mark.asyncio
async def test_loads_untracked_attendee_before_gating(service, store, checkins_repo, now):
    # Main station checked in the row store but never loaded locally.
    checkins_repo.put("a-1", "registration", checked_at=now)

    result = await service.check_in(actor_id="op-medic", attendee_id="a-1", station_id="medical")

    assert result.action is TransitionAction.CHECK_IN
    assert store.is_checked("a-1", "registration")
    assert store.is_checked("a-1", "medical")


@pytest.mark.asyncio
async def test_gating_through_service(service):
    with pytest.raises(StationGatedError):
        await service.toggle(actor_id="op-medic", attendee_id="a-1", station_id="medical")


@pytest.mark.asyncio
async def test_store_failure_on_lookup_is_load_error(service, checkins_repo):
    checkins_repo.fail_reads = 1
    with pytest.raises(LoadError):
        await service.check_in(actor_id="op-admin", attendee_id="a-1", station_id="registration")


@pytest.mark.asyncio
async def test_uncheck_through_service(service, store):
    await service.check_in(actor_id="op-admin", attendee_id="a-1", station_id="registration", quantity=2)
    result = await service.uncheck(actor_id="op-admin", attendee_id="a-1", station_id="registration")

    assert result.action is TransitionAction.UNCHECK
    assert result.previous.quantity == 2
    assert not store.is_checked("a-1", "registration")
