from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Station


class StationRepository(Protocol):
    async def list_enabled(self) -> Sequence[Station]:
        """Enabled stations ordered by ``sort_order``."""
        raise NotImplementedError

    async def get_by_id(self, station_id: str) -> Optional[Station]:
        raise NotImplementedError
