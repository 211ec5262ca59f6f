from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import json_api, login_required
from ..runtime import ConsoleRuntime
from .model import Station


def station_json(station: Station) -> dict:
    return {
        "id": station.station_id,
        "name": station.name,
        "is_main": station.is_main,
        "sort_order": station.sort_order,
    }


def register(app: Flask, runtime: ConsoleRuntime) -> None:
    catalog = runtime.container.catalog

    @app.route("/api/stations", methods=["GET"], endpoint="api_stations")
    @login_required
    @json_api
    def list_stations():
        async def load():
            if not catalog.loaded:
                await catalog.reload()
            return catalog.stations, catalog.main_station

        stations, main = runtime.call(load())
        return jsonify({
            "success": True,
            "stations": [station_json(s) for s in stations],
            "main_station_id": main.station_id if main else None,
        })
