from __future__ import annotations

from typing import AsyncIterator, Protocol, Sequence

from ..checkins.model import ChangeEvent


class Subscription(Protocol):
    """An open channel: an ordered stream of change events.

    Iteration raises ``SubscriptionError`` when the channel fails and stops
    once ``close()`` has been called.
    """

    def __aiter__(self) -> AsyncIterator[ChangeEvent]:
        raise NotImplementedError

    async def close(self) -> None:
        raise NotImplementedError


class ChangeFeed(Protocol):
    async def subscribe(self, tables: Sequence[str]) -> Subscription:
        """Open a channel delivering changes to ``tables`` from now on.

        Raises ``SubscriptionError`` when the channel cannot be established.
        """
        raise NotImplementedError
