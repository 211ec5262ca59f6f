from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, run_db
from .model import Station
from .repository import StationRepository


class MySQLStationRepository(StationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    async def list_enabled(self) -> Sequence[Station]:
        return await run_db(self._list_enabled)

    async def get_by_id(self, station_id: str) -> Optional[Station]:
        return await run_db(self._get_by_id, station_id)

    def _list_enabled(self) -> Sequence[Station]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id, name, is_enabled, is_main, sort_order
                FROM fields
                WHERE is_enabled=1
                ORDER BY sort_order ASC
                """
            )
            return [Station.from_row(r) for r in fetchall(cur)]

    def _get_by_id(self, station_id: str) -> Optional[Station]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT id, name, is_enabled, is_main, sort_order FROM fields WHERE id=%s",
                (station_id,),
            )
            row = fetchone(cur)
            return Station.from_row(row) if row else None
