from __future__ import annotations

from dataclasses import dataclass
from types import ModuleType
from typing import Optional

from .attendees.mysql_attendee_repository import MySQLAttendeeRepository
from .attendees.repository import AttendeeRepository
from .attendees.roster import AttendeeRoster
from .checkins.engine import CheckInTransitionEngine
from .checkins.mysql_checkin_repository import MySQLCheckInRepository
from .checkins.mysql_role_directory import MySQLRoleDirectory
from .checkins.permissions import RoleDirectory
from .checkins.repository import CheckInRepository
from .checkins.service import CheckInService
from .checkins.store import CheckInStatusStore
from .common.retry import RetryPolicy
from .core import constants
from .database.connection import DBConfig, DatabaseConnection
from .realtime.feed import ChangeFeed
from .realtime.mysql_feed import MySQLChangeFeed
from .realtime.reconciler import RealtimeReconciler
from .stations.catalog import StationCatalog
from .stations.mysql_station_repository import MySQLStationRepository
from .stations.repository import StationRepository
from .stats.service import StationStatsService


@dataclass(frozen=True)
class Container:
    attendees_repo: AttendeeRepository
    stations_repo: StationRepository
    checkins_repo: CheckInRepository
    role_directory: RoleDirectory
    feed: ChangeFeed

    store: CheckInStatusStore
    catalog: StationCatalog
    engine: CheckInTransitionEngine
    reconciler: RealtimeReconciler
    checkin_service: CheckInService
    stats_service: StationStatsService

    page_size: int = constants.PAGE_SIZE

    def new_roster(self) -> AttendeeRoster:
        return AttendeeRoster(
            self.attendees_repo,
            self.checkins_repo,
            self.store,
            self.catalog,
            engine=self.engine,
            page_size=self.page_size,
        )


def _setting(settings: Optional[ModuleType], name: str):
    return getattr(settings, name, getattr(constants, name))


def wire(
    *,
    attendees_repo: AttendeeRepository,
    stations_repo: StationRepository,
    checkins_repo: CheckInRepository,
    role_directory: RoleDirectory,
    feed: ChangeFeed,
    settings: Optional[ModuleType] = None,
) -> Container:
    """Assemble the console services around the given adapters."""

    store = CheckInStatusStore()
    catalog = StationCatalog(stations_repo)
    write_policy = RetryPolicy(
        max_retries=int(_setting(settings, "WRITE_MAX_RETRIES")),
        base_delay=float(_setting(settings, "WRITE_RETRY_BASE_DELAY")),
        backoff_factor=float(_setting(settings, "WRITE_RETRY_BACKOFF")),
    )
    reconnect_policy = RetryPolicy(
        base_delay=float(_setting(settings, "WRITE_RETRY_BASE_DELAY")),
        backoff_factor=float(_setting(settings, "WRITE_RETRY_BACKOFF")),
        max_delay=float(_setting(settings, "RECONNECT_MAX_DELAY_SECONDS")),
    )
    engine = CheckInTransitionEngine(store, checkins_repo, retry_policy=write_policy)
    reconciler = RealtimeReconciler(
        store,
        catalog,
        feed,
        checkins_repo,
        subscribe_timeout=float(_setting(settings, "SUBSCRIBE_TIMEOUT_SECONDS")),
        fallback_interval=float(_setting(settings, "FALLBACK_POLL_SECONDS")),
        reconnect_policy=reconnect_policy,
    )
    checkin_service = CheckInService(engine, store, catalog, attendees_repo, checkins_repo, role_directory)
    stats_service = StationStatsService(attendees_repo, checkins_repo, catalog)

    return Container(
        attendees_repo=attendees_repo,
        stations_repo=stations_repo,
        checkins_repo=checkins_repo,
        role_directory=role_directory,
        feed=feed,
        store=store,
        catalog=catalog,
        engine=engine,
        reconciler=reconciler,
        checkin_service=checkin_service,
        stats_service=stats_service,
        page_size=int(_setting(settings, "PAGE_SIZE")),
    )


def build_container(*, db_config: dict, settings: Optional[ModuleType] = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    event_id = getattr(settings, "EVENT_ID", None)

    return wire(
        attendees_repo=MySQLAttendeeRepository(conn, event_id=event_id),
        stations_repo=MySQLStationRepository(conn),
        checkins_repo=MySQLCheckInRepository(conn, event_id=event_id),
        role_directory=MySQLRoleDirectory(conn),
        feed=MySQLChangeFeed(conn, poll_interval=float(_setting(settings, "FEED_POLL_SECONDS"))),
        settings=settings,
    )
