from __future__ import annotations

import atexit
import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from .attendees.controller import register as register_attendees
from .checkins.controller import register as register_checkins
from .common.http import error_response
from .common.logging import setup_logging
from .config import get_settings_module
from .container import Container, build_container
from .database.bootstrap import apply_schema, list_tables, seed_demo_data
from .realtime.controller import register as register_realtime
from .runtime import ConsoleRuntime
from .stations.controller import register as register_stations
from .stats.controller import register as register_stats

logger = logging.getLogger(__name__)


def create_app(*, container: Optional[Container] = None, realtime: bool = True) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    setup_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    event_id = getattr(settings, "EVENT_ID", None)
    if not event_id:
        raise RuntimeError("EVENT_ID is not configured")
    app.config["EVENT_ID"] = event_id

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s event=%s",
            settings_module, db_config.get("user"), db_config.get("host"),
            db_config.get("port", 3306), db_config.get("database"), event_id,
        )
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config)
            if app.config["DEBUG"]:
                seed_demo_data(db_config, event_id=event_id)
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        container = build_container(db_config=db_config, settings=settings)

    runtime = ConsoleRuntime(container)
    runtime.start(realtime=realtime)
    atexit.register(runtime.stop)
    app.extensions["checkin_runtime"] = runtime

    register_stations(app, runtime)
    register_attendees(app, runtime)
    register_checkins(app, runtime)
    register_realtime(app, runtime)
    register_stats(app, runtime)

    app.register_error_handler(Exception, error_response)

    return app
