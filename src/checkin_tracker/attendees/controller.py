from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import current_actor, json_api, login_required
from ..core.enums import Role
from ..runtime import ConsoleRuntime
from .roster import AttendeeRoster, RosterCriteria, RosterRow


def row_json(row: RosterRow) -> dict:
    a = row.attendee
    return {
        "id": a.attendee_id,
        "name": a.name,
        "record_number": a.record_number,
        "governorate": a.governorate,
        "district": a.district,
        "area": a.area,
        "phone": a.phone,
        "quantity": a.quantity,
        "ages": list(a.ages),
        "stations": [
            {
                "station_id": c.station_id,
                "name": c.station_name,
                "is_main": c.is_main,
                "checked": c.checked,
                "quantity": c.quantity,
                "checked_at": c.checked_at.isoformat() if c.checked_at else None,
                "disabled": c.disabled,
                "gated": c.gated,
                "role_restricted": c.role_restricted,
                "in_flight": c.in_flight,
            }
            for c in row.cells
        ],
    }


def page_json(roster: AttendeeRoster, rows) -> dict:
    return {
        "success": True,
        "rows": [row_json(r) for r in rows],
        "total": roster.total,
        "loaded": len(roster.rows),
        "has_more": roster.has_more,
    }


def register(app: Flask, runtime: ConsoleRuntime) -> None:
    container = runtime.container

    def run_roster(action):
        """Run ``action(roster)`` on the runtime and render the whole window."""

        actor_id = current_actor()
        roster = runtime.roster_for(actor_id)

        async def go():
            role: Role = await container.checkin_service.role_for(actor_id)
            if not container.catalog.loaded:
                await container.catalog.reload()
            await action(roster)
            return roster.view(role)

        rows = runtime.call(go())
        return jsonify(page_json(roster, rows))

    @app.route("/api/attendees", methods=["GET"], endpoint="api_attendees")
    @login_required
    @json_api
    def list_attendees():
        criteria = RosterCriteria.from_params(request.args)
        return run_roster(lambda roster: roster.apply(criteria))

    @app.route("/api/attendees/more", methods=["POST"], endpoint="api_attendees_more")
    @login_required
    @json_api
    def load_more():
        return run_roster(lambda roster: roster.load_more())

    @app.route("/api/attendees/retry", methods=["POST"], endpoint="api_attendees_retry")
    @login_required
    @json_api
    def retry():
        return run_roster(lambda roster: roster.retry())

    @app.route("/api/attendees/locations", methods=["GET"], endpoint="api_attendee_locations")
    @login_required
    @json_api
    def locations():
        roster = runtime.roster_for(current_actor())
        options = runtime.call(roster.location_options())
        return jsonify({
            "success": True,
            "governorates": list(options.governorates),
            "districts": list(options.districts),
            "areas": list(options.areas),
        })
