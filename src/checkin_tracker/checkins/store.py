"""In-memory projection of per-(attendee, station) check-in state.

Two writers share this object: the transition engine (optimistic values) and
the realtime reconciler (authoritative values from the change feed). Both run
on the runtime's single event loop, so no locking is needed; the last write
to a key wins.

Unchecked state is never stored. A key that is absent reads as
``UNCHECKED`` (``checked_at=None, quantity=1``).
"""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional

from .model import UNCHECKED, ChangeEvent, CheckInStatus, StatusKey, StatusRow

logger = logging.getLogger(__name__)

Listener = Callable[[StatusKey, CheckInStatus], None]


@dataclass(frozen=True)
class Snapshot:
    """Token returned by ``apply_optimistic``; restores the key on rollback."""

    key: StatusKey
    previous: Optional[CheckInStatus]
    applied: Optional[CheckInStatus]


class CheckInStatusStore:
    def __init__(self):
        self._entries: Dict[StatusKey, CheckInStatus] = {}
        self._tracked: Counter = Counter()
        self._listeners: List[Listener] = []
        self.version = 0

    # -- reads -------------------------------------------------------------

    def get(self, attendee_id: str, station_id: str) -> CheckInStatus:
        return self._entries.get(StatusKey(attendee_id, station_id), UNCHECKED)

    def is_checked(self, attendee_id: str, station_id: str) -> bool:
        return self.get(attendee_id, station_id).is_checked

    def statuses_for(self, attendee_id: str) -> Dict[str, CheckInStatus]:
        return {k.station_id: v for k, v in self._entries.items() if k.attendee_id == attendee_id}

    def tracked_attendees(self) -> List[str]:
        return sorted(self._tracked)

    def is_tracked(self, attendee_id: str) -> bool:
        return attendee_id in self._tracked

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: StatusKey) -> bool:
        return key in self._entries

    # -- writes ------------------------------------------------------------

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def _raw(self, key: StatusKey) -> Optional[CheckInStatus]:
        return self._entries.get(key)

    def _put(self, key: StatusKey, value: Optional[CheckInStatus]) -> None:
        if value is None or not value.is_checked:
            self._entries.pop(key, None)
        else:
            self._entries[key] = value
        self.version += 1
        current = self._entries.get(key, UNCHECKED)
        for listener in self._listeners:
            listener(key, current)

    def apply_event(self, event: ChangeEvent) -> Optional[StatusKey]:
        """Fold an authoritative change into the projection.

        Unconditional overwrite: applying the same event twice is a no-op
        in effect.
        """

        row = event.to_status_row()
        if row is None:
            return None
        self._put(row.key, row.status)
        return row.key

    def apply_optimistic(self, key: StatusKey, value: CheckInStatus) -> Snapshot:
        previous = self._raw(key)
        self._put(key, value)
        return Snapshot(key=key, previous=previous, applied=self._raw(key))

    def rollback(self, snapshot: Snapshot) -> bool:
        """Restore the pre-transition value.

        Skipped when the key no longer holds the optimistic value: an
        authoritative event arrived in between and stays.
        """

        if self._raw(snapshot.key) != snapshot.applied:
            logger.info("rollback of %s skipped: superseded by a newer value", snapshot.key)
            return False
        self._put(snapshot.key, snapshot.previous)
        return True

    def track(self, attendee_ids: Iterable[str]) -> None:
        """Add one holder per attendee. Held attendees are reloaded on refresh."""
        self._tracked.update(attendee_ids)

    def release(self, attendee_ids: Iterable[str]) -> None:
        """Drop one holder per attendee; the last release forgets its entries."""

        dropped = set()
        for attendee_id in attendee_ids:
            if self._tracked[attendee_id] > 1:
                self._tracked[attendee_id] -= 1
            else:
                self._tracked.pop(attendee_id, None)
                dropped.add(attendee_id)
        if not dropped:
            return
        # Eviction, not a state change: listeners are not told.
        for key in [k for k in self._entries if k.attendee_id in dropped]:
            del self._entries[key]
        logger.debug("released %d attendees", len(dropped))

    def untrack_all(self) -> None:
        self._tracked.clear()

    def replace_attendees(self, attendee_ids: Iterable[str], rows: Iterable[StatusRow]) -> None:
        """Replace every entry of the given attendees with ``rows``."""

        ids = set(attendee_ids)
        incoming = {row.key: row.status for row in rows if row.attendee_id in ids}
        stale = [k for k in self._entries if k.attendee_id in ids and k not in incoming]
        for key in stale:
            self._put(key, None)
        for key, status in incoming.items():
            if self._raw(key) != status:
                self._put(key, status)
