"""Calls to the provider's booking and cancellation endpoints."""

from __future__ import annotations

import asyncio
import logging
import random
from datetime import datetime, timezone
from typing import Optional, Protocol

from .config import GatewaySettings
from .domain import confirmation_message
from .exceptions import ExternalCancellationFailed
from .models import Booking

logger = logging.getLogger(__name__)


class BookingGateway(Protocol):
    async def confirm(self, booking: Booking) -> str:
        """Confirm ``booking`` with the provider and return its confirmation text."""
        ...

    async def cancel(self, booking: Booking) -> None:
        """Cancel ``booking`` with the provider; raise on refusal."""
        ...


class SimulatedBookingGateway:
    """Stand-in for the provider booking API.

    Confirmation always succeeds after ``confirm_latency`` seconds.
    Cancellation fails with probability ``cancel_failure_rate``.
    """

    def __init__(
        self,
        confirm_latency: float = 1.0,
        cancel_latency: float = 0.5,
        cancel_failure_rate: float = 0.05,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.confirm_latency = confirm_latency
        self.cancel_latency = cancel_latency
        self.cancel_failure_rate = cancel_failure_rate
        self._rng = rng or random.Random()

    @classmethod
    def from_settings(cls, settings: GatewaySettings) -> "SimulatedBookingGateway":
        return cls(
            confirm_latency=settings.confirm_latency,
            cancel_latency=settings.cancel_latency,
            cancel_failure_rate=settings.cancel_failure_rate,
        )

    async def confirm(self, booking: Booking) -> str:
        logger.info("Calling external booking API for provider %s", booking.api_provider)
        await asyncio.sleep(self.confirm_latency)
        return confirmation_message(
            booking.api_provider, booking.booking_reference, datetime.now(timezone.utc)
        )

    async def cancel(self, booking: Booking) -> None:
        logger.info("Calling external cancellation API for provider %s", booking.api_provider)
        await asyncio.sleep(self.cancel_latency)
        if self._rng.random() < self.cancel_failure_rate:
            raise ExternalCancellationFailed(
                f"Provider {booking.api_provider} rejected cancellation of {booking.booking_reference}"
            )


async def call_with_timeout(coro, timeout: float, error: type[Exception], action: str):
    """Await ``coro`` for at most ``timeout`` seconds, raising ``error`` otherwise."""

    try:
        return await asyncio.wait_for(coro, timeout)
    except asyncio.TimeoutError as exc:
        raise error(f"External {action} call timed out after {timeout:g}s") from exc
