"""Check / uncheck transitions for (attendee, station, operator).

Execution order for an accepted transition:

1. apply the target state to the local store (the operator sees it at once);
2. write it to the row store, retrying transient failures with backoff;
3. on final failure restore the pre-transition value and raise.

Success needs no further local work: the change feed echoes the committed
row back through the reconciler, which either re-applies the same value or,
if another operator won a race on the key, replaces it.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional, Set

from ..attendees.model import Attendee
from ..common.datetime_utils import now_local
from ..common.retry import RetryPolicy, retry_async
from ..core.enums import Role, TransitionAction
from ..core.exceptions import AuthorizationError, StoreError, TransitionFailedError, TransitionInProgressError
from ..stations.model import Station
from .model import UNCHECKED, CheckInStatus, StatusKey, TransitionResult
from .policy import CheckInPolicy
from .repository import CheckInRepository
from .store import CheckInStatusStore

logger = logging.getLogger(__name__)


class CheckInTransitionEngine:
    def __init__(
        self,
        store: CheckInStatusStore,
        checkins: CheckInRepository,
        *,
        policy: Optional[CheckInPolicy] = None,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], datetime] = now_local,
    ):
        self._store = store
        self._checkins = checkins
        self._policy = policy or CheckInPolicy(store)
        self._retry = retry_policy or RetryPolicy()
        self._sleep = sleep
        self._clock = clock
        self._in_flight: Set[StatusKey] = set()

    def is_busy(self, attendee_id: str, station_id: str) -> bool:
        return StatusKey(attendee_id, station_id) in self._in_flight

    async def check_in(
        self,
        *,
        attendee: Attendee,
        station: Station,
        main_station: Optional[Station],
        role: Role,
        quantity: Any = None,
        now: Optional[datetime] = None,
    ) -> TransitionResult:
        key = StatusKey(attendee.attendee_id, station.station_id)
        self._guard(key)
        try:
            self._policy.authorize(attendee=attendee, station=station, main_station=main_station, role=role)
            qty = self._policy.checkin_quantity(attendee=attendee, role=role, requested=quantity)
        except AuthorizationError as exc:
            logger.info("check-in %s rejected: %s", key, exc)
            raise

        target = CheckInStatus(checked_at=now or self._clock(), quantity=qty)

        async def write() -> None:
            await self._checkins.upsert_checkin(
                attendee_id=key.attendee_id,
                station_id=key.station_id,
                checked_at=target.checked_at,
                quantity=target.quantity,
            )

        return await self._execute(key, TransitionAction.CHECK_IN, target, write)

    async def uncheck(
        self,
        *,
        attendee: Attendee,
        station: Station,
        main_station: Optional[Station],
        role: Role,
    ) -> TransitionResult:
        key = StatusKey(attendee.attendee_id, station.station_id)
        self._guard(key)
        try:
            self._policy.authorize(attendee=attendee, station=station, main_station=main_station, role=role)
        except AuthorizationError as exc:
            logger.info("uncheck %s rejected: %s", key, exc)
            raise

        current = self._store.get(*key)
        if not current.is_checked:
            return TransitionResult(key=key, action=TransitionAction.NOOP, previous=current, current=current)

        async def write() -> None:
            await self._checkins.clear_checkin(attendee_id=key.attendee_id, station_id=key.station_id)

        return await self._execute(key, TransitionAction.UNCHECK, UNCHECKED, write)

    async def toggle(
        self,
        *,
        attendee: Attendee,
        station: Station,
        main_station: Optional[Station],
        role: Role,
        quantity: Any = None,
        now: Optional[datetime] = None,
    ) -> TransitionResult:
        """Uncheck when currently checked, otherwise check in."""

        if self._store.is_checked(attendee.attendee_id, station.station_id):
            return await self.uncheck(attendee=attendee, station=station, main_station=main_station, role=role)
        return await self.check_in(
            attendee=attendee, station=station, main_station=main_station, role=role, quantity=quantity, now=now
        )

    def _guard(self, key: StatusKey) -> None:
        if key in self._in_flight:
            raise TransitionInProgressError(f"A change for {key} is already being saved")

    async def _execute(
        self,
        key: StatusKey,
        action: TransitionAction,
        target: CheckInStatus,
        write: Callable[[], Awaitable[None]],
    ) -> TransitionResult:
        previous = self._store.get(*key)
        snapshot = self._store.apply_optimistic(key, target)
        self._in_flight.add(key)
        try:
            await retry_async(write, policy=self._retry, sleep=self._sleep, describe=f"{action.value} {key}")
        except StoreError as exc:
            self._store.rollback(snapshot)
            logger.warning("%s %s rolled back: %s", action.value, key, exc)
            raise TransitionFailedError(f"Could not save {action.value} for {key}: {exc}") from exc
        except BaseException:
            self._store.rollback(snapshot)
            raise
        finally:
            self._in_flight.discard(key)

        logger.info("%s %s saved (quantity=%d)", action.value, key, target.quantity)
        return TransitionResult(key=key, action=action, previous=previous, current=target)
