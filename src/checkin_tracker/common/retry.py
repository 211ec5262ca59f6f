from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Tuple, Type, TypeVar

from ..core.constants import (
    WRITE_MAX_RETRIES,
    WRITE_RETRY_BACKOFF,
    WRITE_RETRY_BASE_DELAY,
    WRITE_RETRY_MAX_DELAY,
)
from ..core.exceptions import StoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = WRITE_MAX_RETRIES
    base_delay: float = WRITE_RETRY_BASE_DELAY
    backoff_factor: float = WRITE_RETRY_BACKOFF
    max_delay: float = WRITE_RETRY_MAX_DELAY

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def delay_for(self, retry_number: int) -> float:
        """Delay before the given retry (1-based)."""
        if retry_number < 1:
            return 0.0
        delay = self.base_delay * (self.backoff_factor ** (retry_number - 1))
        return min(delay, self.max_delay)


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    *,
    policy: RetryPolicy,
    retry_on: Tuple[Type[BaseException], ...] = (StoreError,),
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    describe: str = "operation",
) -> T:
    """Run ``operation`` with bounded exponential backoff.

    Only exceptions listed in ``retry_on`` are retried; anything else
    propagates on the first occurrence. The last retryable error is re-raised
    once ``policy.max_retries`` retries are spent.
    """

    attempt = 0
    while True:
        try:
            return await operation()
        except retry_on as exc:
            attempt += 1
            if attempt > policy.max_retries:
                logger.warning("%s failed after %d attempts: %s", describe, attempt, exc)
                raise
            delay = policy.delay_for(attempt)
            logger.info("%s failed (attempt %d/%d), retrying in %.2fs: %s",
                        describe, attempt, policy.max_attempts, delay, exc)
            await sleep(delay)
