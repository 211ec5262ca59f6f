from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import current_actor, json_api, login_required
from ..runtime import ConsoleRuntime
from .model import CheckInStatus, TransitionResult


def status_json(status: CheckInStatus) -> dict:
    return {
        "checked": status.is_checked,
        "quantity": status.display_quantity,
        "checked_at": status.checked_at.isoformat() if status.checked_at else None,
    }


def result_json(result: TransitionResult) -> dict:
    return {
        "success": True,
        "attendee_id": result.key.attendee_id,
        "station_id": result.key.station_id,
        "action": result.action.value,
        "previous": status_json(result.previous),
        "current": status_json(result.current),
    }


def register(app: Flask, runtime: ConsoleRuntime) -> None:
    service = runtime.container.checkin_service

    def requested_quantity():
        data = request.get_json(silent=True) or {}
        return data.get("quantity")

    @app.route("/api/checkins/<attendee_id>/<station_id>", methods=["POST"], endpoint="api_check_in")
    @login_required
    @json_api
    def check_in(attendee_id: str, station_id: str):
        result = runtime.call(
            service.check_in(
                actor_id=current_actor(),
                attendee_id=attendee_id,
                station_id=station_id,
                quantity=requested_quantity(),
            )
        )
        return jsonify(result_json(result))

    @app.route("/api/checkins/<attendee_id>/<station_id>", methods=["DELETE"], endpoint="api_uncheck")
    @login_required
    @json_api
    def uncheck(attendee_id: str, station_id: str):
        result = runtime.call(
            service.uncheck(actor_id=current_actor(), attendee_id=attendee_id, station_id=station_id)
        )
        return jsonify(result_json(result))

    @app.route("/api/checkins/<attendee_id>/<station_id>/toggle", methods=["POST"], endpoint="api_toggle")
    @login_required
    @json_api
    def toggle(attendee_id: str, station_id: str):
        result = runtime.call(
            service.toggle(
                actor_id=current_actor(),
                attendee_id=attendee_id,
                station_id=station_id,
                quantity=requested_quantity(),
            )
        )
        return jsonify(result_json(result))
