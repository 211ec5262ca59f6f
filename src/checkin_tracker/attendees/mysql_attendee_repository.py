from __future__ import annotations

from typing import Any, List, Optional, Sequence, Tuple

from ..common.collation import natural_key
from ..core.enums import CheckFilter, SortDirection, SortKey
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, escape_like, fetchall, fetchone, in_clause, run_db
from .model import Attendee, LocationOptions
from .repository import AttendeePage, AttendeeQuery, AttendeeRepository, RegistrationTotals

_COLUMNS = "a.id, a.name, a.record_number, a.governorate, a.district, a.area, a.phone, a.quantity, a.ages"

SORT_COLUMNS = {
    SortKey.NAME: "a.name",
    SortKey.RECORD_NUMBER: "a.record_number",
    SortKey.GOVERNORATE: "a.governorate",
    SortKey.DISTRICT: "a.district",
    SortKey.AREA: "a.area",
    SortKey.QUANTITY: "a.quantity",
}

SEARCH_COLUMNS = ("a.name", "a.record_number", "a.phone")


def build_where(query: AttendeeQuery, *, event_id: Optional[str] = None) -> Tuple[str, List[Any]]:
    clauses: List[str] = []
    params: List[Any] = []

    if event_id:
        clauses.append("a.event_id=%s")
        params.append(event_id)

    if query.patterns:
        ors = []
        for pattern in query.patterns:
            like = f"%{escape_like(pattern.lower())}%"
            for column in SEARCH_COLUMNS:
                ors.append(f"LOWER({column}) LIKE %s")
                params.append(like)
        clauses.append("(" + " OR ".join(ors) + ")")

    for column, value in (
        ("a.governorate", query.governorate),
        ("a.district", query.district),
        ("a.area", query.area),
    ):
        if value is not None:
            clauses.append(f"{column}=%s")
            params.append(value)

    if query.station_id and query.check_filter is not CheckFilter.ANY:
        exists = (
            "EXISTS (SELECT 1 FROM attendee_field_status s "
            "WHERE s.attendee_id=a.id AND s.field_id=%s AND s.checked_at IS NOT NULL)"
        )
        clauses.append(exists if query.check_filter is CheckFilter.CHECKED else f"NOT {exists}")
        params.append(query.station_id)

    where = " AND ".join(clauses) if clauses else "1=1"
    return where, params


def sort_ids(rows: Sequence[dict], sort_key: SortKey, direction: SortDirection) -> List[str]:
    """Order matching ids with numeric-aware text comparison."""

    if sort_key is SortKey.QUANTITY:
        def key(r):
            return (int(r["sort_value"] or 0), natural_key(r["id"]))
    else:
        def key(r):
            return (natural_key(r["sort_value"]), natural_key(r["id"]))

    ordered = sorted(rows, key=key, reverse=direction is SortDirection.DESC)
    return [str(r["id"]) for r in ordered]


class MySQLAttendeeRepository(AttendeeRepository):
    def __init__(self, conn_factory: DatabaseConnection, *, event_id: Optional[str] = None):
        self._conn_factory = conn_factory
        self._event_id = event_id

    def _scope(self) -> Tuple[str, tuple]:
        if self._event_id:
            return " WHERE event_id=%s", (self._event_id,)
        return "", ()

    async def query(self, query: AttendeeQuery) -> AttendeePage:
        return await run_db(self._query, query)

    async def get_by_id(self, attendee_id: str) -> Optional[Attendee]:
        return await run_db(self._get_by_id, attendee_id)

    async def location_options(self) -> LocationOptions:
        return await run_db(self._location_options)

    async def totals(self) -> RegistrationTotals:
        return await run_db(self._totals)

    def _query(self, query: AttendeeQuery) -> AttendeePage:
        where, params = build_where(query, event_id=self._event_id)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT a.id, {SORT_COLUMNS[query.sort_key]} AS sort_value FROM attendees a WHERE {where}",
                tuple(params),
            )
            ids = sort_ids(fetchall(cur), query.sort_key, query.sort_direction)
            page_ids = ids[query.offset:query.offset + query.limit]
            if not page_ids:
                return AttendeePage(rows=(), total=len(ids))

            placeholders, id_params = in_clause(page_ids)
            cur.execute(f"SELECT {_COLUMNS} FROM attendees a WHERE a.id IN {placeholders}", id_params)
            by_id = {str(r["id"]): Attendee.from_row(r) for r in fetchall(cur)}
            rows = tuple(by_id[i] for i in page_ids if i in by_id)
            return AttendeePage(rows=rows, total=len(ids))

    def _get_by_id(self, attendee_id: str) -> Optional[Attendee]:
        sql = f"SELECT {_COLUMNS} FROM attendees a WHERE a.id=%s"
        params: tuple = (attendee_id,)
        if self._event_id:
            sql += " AND a.event_id=%s"
            params += (self._event_id,)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            row = fetchone(cur)
            return Attendee.from_row(row) if row else None

    def _location_options(self) -> LocationOptions:
        with db_cursor(self._conn_factory) as (_, cur):
            scope, params = self._scope()
            cur.execute(f"SELECT governorate, district, area FROM attendees{scope}", params)
            rows = fetchall(cur)

        def distinct(column: str) -> tuple:
            values = {r[column] for r in rows if r.get(column)}
            return tuple(sorted(values, key=natural_key))

        return LocationOptions(
            governorates=distinct("governorate"),
            districts=distinct("district"),
            areas=distinct("area"),
        )

    def _totals(self) -> RegistrationTotals:
        with db_cursor(self._conn_factory) as (_, cur):
            scope, params = self._scope()
            cur.execute(
                f"SELECT COUNT(*) AS accounts, COALESCE(SUM(quantity), 0) AS people FROM attendees{scope}", params
            )
            row = fetchone(cur) or {}
            return RegistrationTotals(accounts=int(row.get("accounts") or 0), people=int(row.get("people") or 0))
