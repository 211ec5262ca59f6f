from __future__ import annotations

from flask import Flask, jsonify

from ..checkins.permissions import role_display_name
from ..common.http import current_actor, json_api, login_required
from ..runtime import ConsoleRuntime


def register(app: Flask, runtime: ConsoleRuntime) -> None:
    container = runtime.container
    reconciler = container.reconciler

    @app.route("/api/realtime/status", methods=["GET"], endpoint="api_realtime_status")
    @login_required
    @json_api
    def status():
        role = runtime.call(container.checkin_service.role_for(current_actor()))
        return jsonify({
            "success": True,
            "state": reconciler.state.value,
            "degraded": reconciler.degraded,
            "polling": reconciler.polling,
            "role": role.value,
            "role_name": role_display_name(role),
            "role_name_ar": role_display_name(role, arabic=True),
        })

    @app.route("/api/realtime/refresh", methods=["POST"], endpoint="api_realtime_refresh")
    @login_required
    @json_api
    def refresh():
        runtime.call(reconciler.refresh())
        return jsonify({"success": True, "state": reconciler.state.value})
