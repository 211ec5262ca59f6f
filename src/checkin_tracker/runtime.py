"""The console's single logical thread.

Store, engine, roster and reconciler only ever run on one asyncio loop,
hosted by a dedicated thread. Flask handler threads hand coroutines to it
and block on the result.
"""
from __future__ import annotations

import asyncio
import logging
import threading
from typing import Awaitable, Dict, Optional, TypeVar

from .attendees.roster import AttendeeRoster
from .container import Container
from .core.constants import RUNTIME_CALL_TIMEOUT_SECONDS
from .core.exceptions import LoadError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ConsoleRuntime:
    def __init__(self, container: Container, *, call_timeout: float = RUNTIME_CALL_TIMEOUT_SECONDS):
        self.container = container
        self._call_timeout = call_timeout
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._rosters: Dict[str, AttendeeRoster] = {}
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, *, realtime: bool = True) -> None:
        if self.running:
            return
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run_loop, name="checkin-runtime", daemon=True)
        self._thread.start()
        self.call(self._startup(realtime))

    def _run_loop(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    async def _startup(self, realtime: bool) -> None:
        try:
            await self.container.catalog.reload()
        except LoadError as exc:
            # The reconciler's catch-up load retries this once subscribed.
            logger.warning("initial station load failed: %s", exc)
        if realtime:
            self.container.reconciler.start()

    def call(self, coro: Awaitable[T], *, timeout: Optional[float] = None) -> T:
        if self._loop is None:
            raise RuntimeError("Console runtime is not started")
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        return future.result(timeout or self._call_timeout)

    def roster_for(self, actor_id: str) -> AttendeeRoster:
        """One roster per operator session."""

        with self._lock:
            roster = self._rosters.get(actor_id)
            if roster is None:
                roster = self.container.new_roster()
                self._rosters[actor_id] = roster
            return roster

    def stop(self) -> None:
        if not self.running:
            return
        self.call(self._shutdown())
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=self._call_timeout)
        self._loop.close()
        self._thread = None
        self._loop = None

    async def _shutdown(self) -> None:
        for roster in self._rosters.values():
            roster.close()
        self._rosters.clear()
        await self.container.reconciler.stop()
        self.container.store.untrack_all()
        logger.info("console runtime stopped")
