"""Booking rules that do not depend on storage or transport."""

from __future__ import annotations

import uuid
from datetime import date, datetime, time, timezone
from typing import Optional

from .airports import country_for_airport
from .exceptions import InvalidStatusTransition
from .models import BookingStatus


BOOKING_REFERENCE_PREFIX = "BK"

ALLOWED_TRANSITIONS: dict[BookingStatus, set[BookingStatus]] = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED, BookingStatus.FAILED},
    BookingStatus.CONFIRMED: {BookingStatus.CANCELLED},
    BookingStatus.CANCELLED: set(),
    BookingStatus.FAILED: set(),
}

CANCELLABLE_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})


def generate_booking_reference() -> str:
    """Return a new reference of the form ``BK`` + 8 uppercase hex digits."""

    return BOOKING_REFERENCE_PREFIX + uuid.uuid4().hex[:8].upper()


def ensure_transition(current: str, new: str) -> None:
    """Raise InvalidStatusTransition unless ``current -> new`` is allowed."""

    try:
        current_status = BookingStatus(current)
        new_status = BookingStatus(new)
    except ValueError:
        raise InvalidStatusTransition(str(current), str(new)) from None

    if new_status not in ALLOWED_TRANSITIONS[current_status]:
        raise InvalidStatusTransition(current_status.value, new_status.value)


def is_round_trip(return_date: Optional[date]) -> bool:
    return return_date is not None


def can_be_cancelled(status: str) -> bool:
    return status in CANCELLABLE_STATUSES


def is_past_departure(
    departure_date: Optional[date],
    departure_time: Optional[time],
    now: Optional[datetime] = None,
) -> bool:
    """Whether the scheduled departure lies before ``now``.

    Departure date and time are airport-local wall clock values, so they are
    compared with the naive local ``now``.
    """
    if departure_date is None:
        return False
    now = now or datetime.now()
    today = now.date()
    if departure_date < today:
        return True
    if departure_date == today and departure_time is not None:
        return departure_time < now.time()
    return False


def is_international_flight(origin: Optional[str], destination: Optional[str]) -> Optional[bool]:
    """Compare the countries of both airports; ``None`` when either is unknown."""

    origin_country = country_for_airport(origin)
    destination_country = country_for_airport(destination)
    if origin_country is None or destination_country is None:
        return None
    return origin_country != destination_country


def confirmation_message(api_provider: str, booking_reference: str, at: datetime) -> str:
    return f"Booking confirmed by {api_provider} API at {at.isoformat()}. PNR: {booking_reference}"


def failure_message(error: BaseException) -> str:
    return f"Booking failed: {error}"


def append_cancellation(booking_response: Optional[str], at: datetime) -> str:
    line = f"Cancelled at: {at.isoformat()}"
    if not booking_response:
        return line
    return f"{booking_response}\n{line}"


def ensure_timezone(dt: datetime) -> datetime:
    """Attach UTC to timestamps read back from backends that drop the offset."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt
