from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from ..attendees.repository import AttendeeRepository
from ..checkins.repository import CheckInRepository, StationTally
from ..core.exceptions import LoadError, StoreError
from ..stations.catalog import StationCatalog

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StationStat:
    station_id: str
    name: str
    is_main: bool
    accounts: int
    people: int


@dataclass(frozen=True)
class StationStatistics:
    registered_accounts: int
    registered_people: int
    stations: Tuple[StationStat, ...]
    top_station: Optional[StationStat]

    @property
    def total_visits(self) -> int:
        return sum(s.accounts for s in self.stations)

    @property
    def people_served(self) -> int:
        """Quantity handed out across every station."""
        return sum(s.people for s in self.stations)

    @property
    def main_station_people(self) -> int:
        return next((s.people for s in self.stations if s.is_main), 0)

    @property
    def completion_rate(self) -> float:
        """Percentage of possible account visits (accounts x stations) made."""
        possible = self.registered_accounts * len(self.stations)
        if possible <= 0:
            return 0.0
        return self.total_visits * 100.0 / possible

    @property
    def attendance_rate(self) -> float:
        """People through the main station as a percentage of people registered."""
        if self.registered_people <= 0:
            return 0.0
        return self.main_station_people * 100.0 / self.registered_people


class StationStatsService:
    def __init__(self, attendees: AttendeeRepository, checkins: CheckInRepository, catalog: StationCatalog):
        self._attendees = attendees
        self._checkins = checkins
        self._catalog = catalog

    async def station_statistics(self) -> StationStatistics:
        if not self._catalog.loaded:
            await self._catalog.reload()
        try:
            totals = await self._attendees.totals()
            tallies = await self._checkins.tally_by_station()
        except StoreError as exc:
            logger.warning("statistics load failed: %s", exc)
            raise LoadError("Could not load statistics") from exc

        empty = StationTally(accounts=0, people=0)
        stats = []
        for station in self._catalog.stations:
            tally = tallies.get(station.station_id, empty)
            stats.append(
                StationStat(
                    station_id=station.station_id,
                    name=station.name,
                    is_main=station.is_main,
                    accounts=tally.accounts,
                    people=tally.people,
                )
            )

        return StationStatistics(
            registered_accounts=totals.accounts,
            registered_people=totals.people,
            stations=tuple(stats),
            top_station=top_station(stats),
        )


def top_station(stats) -> Optional[StationStat]:
    """Busiest non-main station by people; earliest in display order on ties."""

    best = None
    for stat in stats:
        if stat.is_main or stat.people <= 0:
            continue
        if best is None or stat.people > best.people:
            best = stat
    return best
