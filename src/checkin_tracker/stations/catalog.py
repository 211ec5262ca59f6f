from __future__ import annotations

import logging
from typing import Dict, List, Optional

from ..core.enums import ChangeType
from ..core.exceptions import LoadError, StoreError
from ..checkins.model import ChangeEvent
from .model import Station
from .repository import StationRepository

logger = logging.getLogger(__name__)


class StationCatalog:
    """Ordered list of enabled stations plus the gating (main) station.

    Loaded from the row store and kept current from change events. At most
    one station is flagged main; the catalog only reads that flag.
    """

    def __init__(self, stations: StationRepository):
        self._repo = stations
        self._by_id: Dict[str, Station] = {}
        self.loaded = False

    @property
    def stations(self) -> List[Station]:
        return sorted(self._by_id.values(), key=lambda s: (s.sort_order, s.name, s.station_id))

    @property
    def main_station(self) -> Optional[Station]:
        for station in self.stations:
            if station.is_main:
                return station
        return None

    def get(self, station_id: str) -> Optional[Station]:
        return self._by_id.get(station_id)

    async def reload(self) -> List[Station]:
        try:
            rows = await self._repo.list_enabled()
        except StoreError as exc:
            logger.warning("station catalog load failed: %s", exc)
            raise LoadError("Could not load stations") from exc
        self._by_id = {s.station_id: s for s in rows if s.is_enabled}
        self.loaded = True
        logger.debug("station catalog loaded (%d enabled)", len(self._by_id))
        return self.stations

    def apply_event(self, event: ChangeEvent) -> None:
        row = event.row
        if not row:
            return
        station_id = str(row["id"])
        if event.change_type is ChangeType.DELETE:
            self._by_id.pop(station_id, None)
            return
        station = Station.from_row(event.new or row)
        if station.is_enabled:
            self._by_id[station_id] = station
        else:
            self._by_id.pop(station_id, None)
