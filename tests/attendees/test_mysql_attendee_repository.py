from __future__ import annotations

import pytest

from checkin_tracker.attendees.model import Attendee, parse_ages
from checkin_tracker.attendees.mysql_attendee_repository import MySQLAttendeeRepository
from checkin_tracker.attendees.roster import AttendeeRoster, RosterCriteria
from checkin_tracker.core.exceptions import ValidationError


def stored(attendee_id, name, *, event_id="ev-1", quantity=1, ages=None):
    return {
        "id": attendee_id,
        "name": name,
        "record_number": f"R{attendee_id}",
        "governorate": "Beirut",
        "district": "Beirut",
        "area": "Hamra",
        "phone": None,
        "quantity": quantity,
        "ages": ages,
        "event_id": event_id,
    }


class ScriptedCursor:
    """Answers the handful of statements the attendee repository issues."""

    def __init__(self, rows, executed):
        self._rows = rows
        self._executed = executed
        self._result = []

    def execute(self, sql, params=()):
        self._executed.append((sql, tuple(params)))
        params = list(params)
        if "AS sort_value" in sql:
            event_id = params[0] if "a.event_id=%s" in sql else None
            self._result = [
                {"id": r["id"], "sort_value": r["name"]}
                for r in self._rows
                if event_id is None or r["event_id"] == event_id
            ]
        elif "a.id IN" in sql:
            self._result = [r for r in self._rows if r["id"] in params]
        elif "a.id=%s" in sql:
            attendee_id = params[0]
            event_id = params[1] if len(params) > 1 else None
            self._result = [
                r for r in self._rows
                if r["id"] == attendee_id and (event_id is None or r["event_id"] == event_id)
            ]
        else:
            self._result = []

    def fetchone(self):
        return self._result[0] if self._result else None

    def fetchall(self):
        return list(self._result)

    def close(self):
        pass


class ScriptedConnection:
    def __init__(self, rows):
        self.rows = rows
        self.executed = []

    def connect(self):
        return self

    def cursor(self, dictionary=True):
        return ScriptedCursor(self.rows, self.executed)

    def commit(self):
        pass

    def rollback(self):
        pass

    def close(self):
        pass


def test_stored_rows_with_unexpected_ages_still_load():
    single_age = Attendee.from_row(stored("a-1", "Family", quantity=3, ages=45))
    assert single_age.quantity == 3
    assert single_age.ages == ()

    broken_json = Attendee.from_row(stored("a-2", "Pair", quantity=2, ages="[34,"))
    assert broken_json.ages == ()

    matching = Attendee.from_row(stored("a-3", "Duo", quantity=2, ages="[34, 7]"))
    assert matching.ages == (34, 7)


def test_new_attendee_still_checks_ages_against_quantity():
    with pytest.raises(ValidationError):
        Attendee("a-1", "Family", "R1", "Beirut", "Beirut", "Hamra", quantity=3, ages=(45,))


def test_parse_ages_ignores_unusable_values():
    assert parse_ages(b"[1, 2]") == (1, 2)
    assert parse_ages("[1, \"x\", 3]") == (1, 3)
    assert parse_ages("not a number") == ()
    assert parse_ages({"age": 4}) == ()


@pytest.mark.asyncio
async def test_roster_page_survives_a_malformed_row(checkins_repo, store, catalog):
    conn = ScriptedConnection([
        stored("a-1", "Alpha", quantity=3, ages=45),
        stored("a-2", "Beta", quantity=2, ages="[34,"),
        stored("a-3", "Gamma"),
    ])
    roster = AttendeeRoster(MySQLAttendeeRepository(conn, event_id="ev-1"), checkins_repo, store, catalog)

    rows = await roster.apply(RosterCriteria())

    assert [a.name for a in rows] == ["Alpha", "Beta", "Gamma"]
    assert roster.error is None


@pytest.mark.asyncio
async def test_get_by_id_is_scoped_to_the_event():
    conn = ScriptedConnection([stored("a-1", "Here"), stored("x-1", "Elsewhere", event_id="ev-2")])
    repo = MySQLAttendeeRepository(conn, event_id="ev-1")

    assert (await repo.get_by_id("a-1")).name == "Here"
    assert await repo.get_by_id("x-1") is None

    sql, params = conn.executed[-1]
    assert "a.event_id=%s" in sql
    assert params == ("x-1", "ev-1")


@pytest.mark.asyncio
async def test_get_by_id_without_event_scope():
    conn = ScriptedConnection([stored("x-1", "Elsewhere", event_id="ev-2")])

    assert (await MySQLAttendeeRepository(conn).get_by_id("x-1")).name == "Elsewhere"
    assert "event_id" not in conn.executed[-1][0]
