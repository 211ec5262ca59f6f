from __future__ import annotations

from datetime import datetime
from typing import Dict, Iterable, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, in_clause, run_db
from .model import StatusRow
from .repository import CheckInRepository, StationTally


class MySQLCheckInRepository(CheckInRepository):
    def __init__(self, conn_factory: DatabaseConnection, *, event_id: Optional[str] = None):
        self._conn_factory = conn_factory
        self._event_id = event_id

    async def upsert_checkin(self, *, attendee_id: str, station_id: str, checked_at: datetime, quantity: int) -> None:
        await run_db(self._upsert, attendee_id, station_id, checked_at, quantity)

    async def clear_checkin(self, *, attendee_id: str, station_id: str) -> None:
        await run_db(self._clear, attendee_id, station_id)

    async def list_for_attendees(self, attendee_ids: Iterable[str]) -> Sequence[StatusRow]:
        ids = list(attendee_ids)
        if not ids:
            return []
        return await run_db(self._list_for_attendees, ids)

    async def tally_by_station(self) -> Dict[str, StationTally]:
        return await run_db(self._tally_by_station)

    def _upsert(self, attendee_id: str, station_id: str, checked_at: datetime, quantity: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendee_field_status(attendee_id, field_id, checked_at, quantity)
                VALUES(%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE checked_at=VALUES(checked_at), quantity=VALUES(quantity)
                """,
                (attendee_id, station_id, checked_at, int(quantity)),
            )

    def _clear(self, attendee_id: str, station_id: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM attendee_field_status WHERE attendee_id=%s AND field_id=%s",
                (attendee_id, station_id),
            )

    def _list_for_attendees(self, ids: list) -> Sequence[StatusRow]:
        placeholders, params = in_clause(ids)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT attendee_id, field_id, checked_at, quantity
                FROM attendee_field_status
                WHERE attendee_id IN {placeholders}
                """,
                params,
            )
            return [StatusRow.from_row(r) for r in fetchall(cur)]

    def _tally_by_station(self) -> Dict[str, StationTally]:
        with db_cursor(self._conn_factory) as (_, cur):
            scope, params = "", ()
            if self._event_id:
                scope, params = " AND a.event_id=%s", (self._event_id,)
            cur.execute(
                f"""
                SELECT s.field_id, COUNT(*) AS accounts, COALESCE(SUM(s.quantity), 0) AS people
                FROM attendee_field_status s
                JOIN attendees a ON a.id=s.attendee_id
                WHERE s.checked_at IS NOT NULL{scope}
                GROUP BY s.field_id
                """,
                params,
            )
            return {
                str(r["field_id"]): StationTally(accounts=int(r["accounts"]), people=int(r["people"]))
                for r in fetchall(cur)
            }
