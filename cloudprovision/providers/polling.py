"""
Deadline and backoff primitives for provider poll loops.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Iterator, Optional

from .errors import ProvisioningCancelledError, ProvisioningTimeoutError


@dataclass(frozen=True)
class BackoffPolicy:
    """Exponential backoff: initial delay multiplied by factor, capped."""

    initial_delay: float = 5.0
    max_delay: float = 60.0
    factor: float = 2.0

    def delays(self) -> Iterator[float]:
        delay = self.initial_delay
        while True:
            yield min(delay, self.max_delay)
            delay = min(delay * self.factor, self.max_delay)


class Deadline:
    """
    Overall time budget and cancellation signal for one operation.

    ``sleep`` waits on the cancel event rather than the clock alone, so a
    cancellation is noticed as soon as it happens instead of after the
    current poll interval.
    """

    def __init__(
        self,
        timeout: float,
        cancel_event: Optional[asyncio.Event] = None,
        operation: str = "operation",
        resource_id: Optional[str] = None,
        vendor: Optional[str] = None,
    ):
        self.timeout = timeout
        self.cancel_event = cancel_event
        self.operation = operation
        self.resource_id = resource_id
        self.vendor = vendor
        self._expires_at = time.monotonic() + timeout

    @property
    def remaining(self) -> float:
        return max(0.0, self._expires_at - time.monotonic())

    @property
    def expired(self) -> bool:
        return time.monotonic() >= self._expires_at

    @property
    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def check(self, last_state: Optional[str] = None) -> None:
        """Raise if the operation was cancelled or ran out of time."""
        if self.cancelled:
            raise ProvisioningCancelledError(
                f"{self.operation} cancelled by caller",
                vendor=self.vendor,
                resource_id=self.resource_id,
            )
        if self.expired:
            raise ProvisioningTimeoutError(
                f"{self.operation} did not finish within {self.timeout:g} seconds",
                vendor=self.vendor,
                resource_id=self.resource_id,
                last_state=last_state,
            )

    async def sleep(self, delay: float, last_state: Optional[str] = None) -> None:
        """Sleep for ``delay`` or until the deadline, whichever comes first."""
        self.check(last_state)
        wait = min(delay, self.remaining)

        if self.cancel_event is None:
            await asyncio.sleep(wait)
        else:
            try:
                await asyncio.wait_for(self.cancel_event.wait(), timeout=wait)
            except asyncio.TimeoutError:
                pass

        self.check(last_state)
