"""Change feed over the ``change_log`` table.

Triggers on the observed tables append one row per insert, update or delete
(see ``database/schema.sql``). A subscription remembers the highest ``seq``
present when it opened and tails forward from there.
"""
from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Awaitable, Callable, Deque, List, Sequence, Tuple

from ..checkins.model import ChangeEvent
from ..core.constants import FEED_BATCH_SIZE, FEED_POLL_SECONDS
from ..core.enums import ChangeType
from ..core.exceptions import StoreError, SubscriptionError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, load_json, run_db
from .feed import ChangeFeed, Subscription

logger = logging.getLogger(__name__)


def event_from_row(row: dict) -> ChangeEvent:
    return ChangeEvent(
        table=row["table_name"],
        change_type=ChangeType(row["change_type"]),
        new=load_json(row.get("new_row")),
        old=load_json(row.get("old_row")),
        seq=int(row["seq"]),
    )


def events_from_rows(rows: Sequence[dict]) -> Tuple[int, List[ChangeEvent]]:
    """Decode a batch, skipping rows that do not decode.

    Returns the highest ``seq`` seen so a bad row is never read twice.
    """

    last_seq = 0
    events = []
    for row in rows:
        last_seq = max(last_seq, int(row["seq"]))
        try:
            events.append(event_from_row(row))
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("skipping malformed change_log row %s: %s", row["seq"], exc)
    return last_seq, events


class MySQLSubscription(Subscription):
    def __init__(
        self,
        conn_factory: DatabaseConnection,
        tables: Sequence[str],
        start_seq: int,
        *,
        poll_interval: float = FEED_POLL_SECONDS,
        batch_size: int = FEED_BATCH_SIZE,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._conn_factory = conn_factory
        self._tables = tuple(tables)
        self.last_seq = start_seq
        self._poll_interval = poll_interval
        self._batch_size = batch_size
        self._sleep = sleep
        self._buffer: Deque[ChangeEvent] = deque()
        self._closed = False

    def __aiter__(self):
        return self

    async def __anext__(self) -> ChangeEvent:
        while True:
            if self._closed:
                raise StopAsyncIteration
            if self._buffer:
                return self._buffer.popleft()
            try:
                rows = await run_db(self._fetch_batch, self.last_seq)
            except StoreError as exc:
                raise SubscriptionError(f"change feed read failed: {exc}") from exc
            if rows:
                last_seq, events = events_from_rows(rows)
                self.last_seq = max(self.last_seq, last_seq)
                self._buffer.extend(events)
                continue
            await self._sleep(self._poll_interval)

    async def close(self) -> None:
        self._closed = True
        self._buffer.clear()

    def _fetch_batch(self, after_seq: int) -> List[dict]:
        placeholders, params = in_clause(self._tables)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT seq, table_name, change_type, new_row, old_row
                FROM change_log
                WHERE seq > %s AND table_name IN {placeholders}
                ORDER BY seq ASC
                LIMIT %s
                """,
                (after_seq, *params, self._batch_size),
            )
            return fetchall(cur)


class MySQLChangeFeed(ChangeFeed):
    def __init__(
        self,
        conn_factory: DatabaseConnection,
        *,
        poll_interval: float = FEED_POLL_SECONDS,
        batch_size: int = FEED_BATCH_SIZE,
    ):
        self._conn_factory = conn_factory
        self._poll_interval = poll_interval
        self._batch_size = batch_size

    async def subscribe(self, tables: Sequence[str]) -> MySQLSubscription:
        try:
            start_seq = await run_db(self._head_seq)
        except StoreError as exc:
            raise SubscriptionError(f"could not open change feed: {exc}") from exc
        logger.debug("change feed opened at seq %d for %s", start_seq, ", ".join(tables))
        return MySQLSubscription(
            self._conn_factory,
            tables,
            start_seq,
            poll_interval=self._poll_interval,
            batch_size=self._batch_size,
        )

    def _head_seq(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COALESCE(MAX(seq), 0) AS head FROM change_log")
            row = fetchone(cur) or {}
            return int(row.get("head") or 0)
