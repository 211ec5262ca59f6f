import os


def get_settings_module() -> str:
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "checkin_tracker.config.production"

    if env in {"test", "testing"}:
        return "checkin_tracker.config.testing"

    return "checkin_tracker.config.development"
