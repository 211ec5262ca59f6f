from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import json_api, login_required
from ..runtime import ConsoleRuntime
from .service import StationStat


def stat_json(stat: StationStat) -> dict:
    return {
        "station_id": stat.station_id,
        "name": stat.name,
        "is_main": stat.is_main,
        "accounts": stat.accounts,
        "people": stat.people,
    }


def register(app: Flask, runtime: ConsoleRuntime) -> None:
    service = runtime.container.stats_service

    @app.route("/api/stats", methods=["GET"], endpoint="api_stats")
    @login_required
    @json_api
    def stats():
        result = runtime.call(service.station_statistics())
        return jsonify({
            "success": True,
            "registered_accounts": result.registered_accounts,
            "registered_people": result.registered_people,
            "total_visits": result.total_visits,
            "people_served": result.people_served,
            "main_station_people": result.main_station_people,
            "completion_rate": round(result.completion_rate, 1),
            "attendance_rate": round(result.attendance_rate, 1),
            "stations": [stat_json(s) for s in result.stations],
            "top_station": stat_json(result.top_station) if result.top_station else None,
        })
