"""Keeps the check-in store and station catalog in step with the row store.

One subscription covers both observed tables. While the channel is down the
reconciler reconnects with backoff and, in the meantime, polls with a full
refresh so the operator never works from a frozen view.
"""
from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Callable, List, Optional

from ..checkins.model import ChangeEvent
from ..checkins.repository import CheckInRepository
from ..checkins.store import CheckInStatusStore
from ..common.retry import RetryPolicy
from ..core.constants import (
    CHECKIN_STATUS_TABLE,
    FALLBACK_POLL_SECONDS,
    RECONNECT_MAX_DELAY_SECONDS,
    STATION_TABLE,
    SUBSCRIBE_TIMEOUT_SECONDS,
)
from ..core.enums import ChannelState
from ..core.exceptions import LoadError, StoreError, SubscriptionError
from ..stations.catalog import StationCatalog
from .feed import ChangeFeed, Subscription

logger = logging.getLogger(__name__)

StateListener = Callable[[ChannelState], None]

OBSERVED_TABLES = (CHECKIN_STATUS_TABLE, STATION_TABLE)


class RealtimeReconciler:
    def __init__(
        self,
        store: CheckInStatusStore,
        catalog: StationCatalog,
        feed: ChangeFeed,
        checkins: CheckInRepository,
        *,
        subscribe_timeout: float = SUBSCRIBE_TIMEOUT_SECONDS,
        fallback_interval: float = FALLBACK_POLL_SECONDS,
        reconnect_policy: Optional[RetryPolicy] = None,
    ):
        self._store = store
        self._catalog = catalog
        self._feed = feed
        self._checkins = checkins
        self._subscribe_timeout = subscribe_timeout
        self._fallback_interval = fallback_interval
        self._reconnect = reconnect_policy or RetryPolicy(max_delay=RECONNECT_MAX_DELAY_SECONDS)
        self._state = ChannelState.CLOSED
        self._listeners: List[StateListener] = []
        self._subscription: Optional[Subscription] = None
        self._run_task: Optional[asyncio.Task] = None
        self._fallback_task: Optional[asyncio.Task] = None
        self._stopping = False
        self.events_applied = 0

    # -- state -------------------------------------------------------------

    @property
    def state(self) -> ChannelState:
        return self._state

    @property
    def degraded(self) -> bool:
        """True while changes are only picked up by fallback polling."""
        return self._state in (ChannelState.CHANNEL_ERROR, ChannelState.TIMED_OUT)

    @property
    def polling(self) -> bool:
        return self._fallback_task is not None and not self._fallback_task.done()

    def add_state_listener(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def _set_state(self, state: ChannelState) -> None:
        if state is self._state:
            return
        logger.info("realtime channel %s -> %s", self._state.value, state.value)
        self._state = state
        for listener in self._listeners:
            listener(state)

    # -- lifecycle -----------------------------------------------------------

    def start(self) -> asyncio.Task:
        if self._run_task is None or self._run_task.done():
            self._stopping = False
            self._run_task = asyncio.create_task(self.run())
        return self._run_task

    async def stop(self) -> None:
        self._stopping = True
        if self._subscription is not None:
            await self._subscription.close()
        if self._run_task is not None and not self._run_task.done():
            self._run_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._run_task
        self._run_task = None
        await self._stop_fallback()
        self._set_state(ChannelState.CLOSED)

    async def run(self) -> None:
        failures = 0
        while not self._stopping:
            self._set_state(ChannelState.CONNECTING)
            try:
                subscription = await asyncio.wait_for(
                    self._feed.subscribe(OBSERVED_TABLES), timeout=self._subscribe_timeout
                )
            except asyncio.TimeoutError:
                logger.warning("realtime subscribe timed out after %.1fs", self._subscribe_timeout)
                self._set_state(ChannelState.TIMED_OUT)
            except SubscriptionError as exc:
                logger.warning("realtime subscribe failed: %s", exc)
                self._set_state(ChannelState.CHANNEL_ERROR)
            except Exception:
                logger.exception("realtime subscribe crashed")
                self._set_state(ChannelState.CHANNEL_ERROR)
            else:
                failures = 0
                await self._consume(subscription)

            if self._stopping:
                break
            self._start_fallback()
            failures += 1
            delay = self._reconnect.delay_for(failures)
            logger.info("realtime reconnect in %.2fs", delay)
            await asyncio.sleep(delay)

    async def _consume(self, subscription: Subscription) -> None:
        self._subscription = subscription
        self._set_state(ChannelState.SUBSCRIBED)
        await self._stop_fallback()
        try:
            await self._catch_up()
            async for event in subscription:
                self._apply_logged(event)
            if not self._stopping:
                logger.warning("realtime channel ended unexpectedly")
                self._set_state(ChannelState.CHANNEL_ERROR)
        except SubscriptionError as exc:
            logger.warning("realtime channel error: %s", exc)
            self._set_state(ChannelState.CHANNEL_ERROR)
        except Exception:
            logger.exception("realtime channel crashed")
            self._set_state(ChannelState.CHANNEL_ERROR)
        finally:
            self._subscription = None
            await subscription.close()

    async def _catch_up(self) -> None:
        try:
            await self.refresh()
        except LoadError as exc:
            logger.warning("catch-up refresh failed: %s", exc)
        except Exception:
            logger.exception("catch-up refresh crashed")

    # -- fallback polling ----------------------------------------------------

    def _start_fallback(self) -> None:
        if self.polling or self._stopping:
            return
        logger.info("fallback polling every %.1fs", self._fallback_interval)
        self._fallback_task = asyncio.create_task(self._poll_loop())

    async def _stop_fallback(self) -> None:
        task, self._fallback_task = self._fallback_task, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _poll_loop(self) -> None:
        while True:
            await asyncio.sleep(self._fallback_interval)
            try:
                await self.refresh()
            except LoadError as exc:
                logger.warning("fallback refresh failed: %s", exc)
            except Exception:
                logger.exception("fallback refresh crashed")

    # -- applying changes ----------------------------------------------------

    def apply(self, event: ChangeEvent) -> None:
        if event.table == CHECKIN_STATUS_TABLE:
            self._store.apply_event(event)
        elif event.table == STATION_TABLE:
            self._catalog.apply_event(event)
        else:
            logger.debug("ignoring change on %s", event.table)
            return
        self.events_applied += 1

    def _apply_logged(self, event: ChangeEvent) -> None:
        try:
            self.apply(event)
        except Exception:
            logger.exception("skipping unreadable change %s on %s", event.seq, event.table)

    async def refresh(self) -> None:
        """Reload stations and the statuses of every tracked attendee."""

        await self._catalog.reload()
        attendee_ids = self._store.tracked_attendees()
        try:
            rows = await self._checkins.list_for_attendees(attendee_ids)
        except StoreError as exc:
            raise LoadError("Could not refresh check-in statuses") from exc
        self._store.replace_attendees(attendee_ids, rows)
        logger.debug("refreshed %d attendees", len(attendee_ids))
