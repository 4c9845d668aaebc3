"""Booking engine: creation, cancellation, status changes and lookups."""

from __future__ import annotations

import logging
import math
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from . import repository
from .domain import (
    append_cancellation,
    can_be_cancelled,
    ensure_timezone,
    ensure_transition,
    failure_message,
    generate_booking_reference,
    is_international_flight,
    is_past_departure,
    is_round_trip,
)
from .exceptions import (
    BookingException,
    BookingNotCancellable,
    BookingNotFound,
    BookingValidationError,
    DepartureAlreadyPassed,
    DuplicateBooking,
    ExternalBookingFailed,
    ExternalCancellationFailed,
    FlightNotFound,
    ProviderError,
)
from .gateway import BookingGateway, call_with_timeout
from .models import Booking, BookingStatus
from .schemas import BookingPage, BookingRequest, BookingResponse, BookingStatistics, FlightSearchRequest
from .search import FlightSearchService

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
REFERENCE_ATTEMPTS = 5


def build_booking(
    request: BookingRequest,
    booking_reference: str,
    status: BookingStatus = BookingStatus.PENDING,
) -> Booking:
    """Create an unsaved booking entity from a request.

    ``booking_timestamp`` is stamped here and never touched again.
    """
    return Booking(
        booking_reference=booking_reference,
        flight_number=request.flight_number,
        origin_location_code=request.origin_location_code,
        destination_location_code=request.destination_location_code,
        departure_date=request.departure_date,
        departure_time=request.departure_time,
        return_date=request.return_date,
        return_time=request.return_time,
        passenger_name=request.passenger_name,
        passenger_email=request.passenger_email,
        passenger_phone=request.passenger_phone,
        api_provider=request.api_provider,
        total_amount=request.total_amount,
        currency=request.currency,
        status=status.value,
        booking_timestamp=datetime.now(timezone.utc),
    )


def availability_probe(request: BookingRequest) -> FlightSearchRequest:
    """One adult, one way, same route and day as the booking."""

    return FlightSearchRequest(
        origin_location_code=request.origin_location_code,
        destination_location_code=request.destination_location_code,
        departure_date=request.departure_date,
        adults=1,
        children=0,
        infants=0,
        api_provider=request.api_provider,
    )


def to_booking_response(booking: Booking, now: Optional[datetime] = None) -> BookingResponse:
    status = BookingStatus(booking.status)
    return BookingResponse(
        id=booking.id,
        booking_reference=booking.booking_reference,
        flight_number=booking.flight_number,
        origin_location_code=booking.origin_location_code,
        destination_location_code=booking.destination_location_code,
        departure_date=booking.departure_date,
        departure_time=booking.departure_time,
        return_date=booking.return_date,
        return_time=booking.return_time,
        passenger_name=booking.passenger_name,
        passenger_email=booking.passenger_email,
        passenger_phone=booking.passenger_phone,
        api_provider=booking.api_provider,
        status=status,
        booking_timestamp=ensure_timezone(booking.booking_timestamp),
        total_amount=booking.total_amount,
        currency=booking.currency,
        booking_response=booking.booking_response,
        round_trip=is_round_trip(booking.return_date),
        confirmed=status is BookingStatus.CONFIRMED,
        cancelled=status is BookingStatus.CANCELLED,
        pending=status is BookingStatus.PENDING,
        failed=status is BookingStatus.FAILED,
        can_be_cancelled=can_be_cancelled(status),
        international_flight=is_international_flight(
            booking.origin_location_code, booking.destination_location_code
        ),
        past_departure=is_past_departure(booking.departure_date, booking.departure_time, now),
    )


class BookingService:
    """Owns every write to the bookings table.

    ``gateway`` stands in for the provider's booking endpoints and
    ``search_service`` is used for the availability check. Each public
    coroutine runs inside the caller's session and commits its own work.
    """

    def __init__(
        self,
        search_service: FlightSearchService,
        gateway: BookingGateway,
        call_timeout: float = 5.0,
    ) -> None:
        self._search = search_service
        self._gateway = gateway
        self._call_timeout = call_timeout

    # --- writes ---------------------------------------------------------------

    async def create_booking(self, db: AsyncSession, request: BookingRequest) -> BookingResponse:
        logger.info(
            "Creating booking for flight %s from %s to %s",
            request.flight_number,
            request.origin_location_code,
            request.destination_location_code,
        )
        try:
            booking = await self._create(db, request)
        except Exception as exc:
            await db.rollback()
            if isinstance(exc, BookingException):
                logger.warning("Booking for flight %s rejected: %s", request.flight_number, exc)
            else:
                logger.exception("Failed to create booking for flight %s", request.flight_number)
            await self._record_failure(db, request, exc)
            raise

        logger.info("Booking created successfully: %s", booking.booking_reference)
        return to_booking_response(booking)

    async def cancel_booking(self, db: AsyncSession, booking_reference: str) -> BookingResponse:
        logger.info("Cancelling booking %s", booking_reference)

        booking = await repository.get_booking_by_reference(db, booking_reference, for_update=True)
        if booking is None:
            raise BookingNotFound(booking_reference)
        if not can_be_cancelled(booking.status):
            raise BookingNotCancellable(booking_reference, booking.status)
        if is_past_departure(booking.departure_date, booking.departure_time):
            raise DepartureAlreadyPassed(booking_reference)

        try:
            await call_with_timeout(
                self._gateway.cancel(booking),
                self._call_timeout,
                ExternalCancellationFailed,
                "cancellation",
            )
        except ExternalCancellationFailed:
            await db.rollback()
            logger.error("External cancellation failed for booking %s", booking_reference)
            raise
        except Exception as exc:
            await db.rollback()
            logger.exception("External cancellation failed for booking %s", booking_reference)
            raise ExternalCancellationFailed(f"Cancellation call failed: {exc}") from exc

        booking.status = BookingStatus.CANCELLED.value
        booking.booking_response = append_cancellation(booking.booking_response, datetime.now(timezone.utc))
        await db.commit()
        await db.refresh(booking)

        logger.info("Booking cancelled successfully: %s", booking_reference)
        return to_booking_response(booking)

    async def update_booking_status(
        self, db: AsyncSession, booking_reference: str, new_status: BookingStatus
    ) -> BookingResponse:
        logger.info("Updating booking %s status to %s", booking_reference, new_status.value)

        booking = await repository.get_booking_by_reference(db, booking_reference, for_update=True)
        if booking is None:
            raise BookingNotFound(booking_reference)

        previous = booking.status
        ensure_transition(previous, new_status)

        booking.status = new_status.value
        await db.commit()
        await db.refresh(booking)

        logger.info("Booking %s status updated: %s -> %s", booking_reference, previous, new_status.value)
        return to_booking_response(booking)

    # --- reads ----------------------------------------------------------------

    async def get_booking_by_reference(
        self, db: AsyncSession, booking_reference: str
    ) -> Optional[BookingResponse]:
        logger.info("Retrieving booking by reference %s", booking_reference)
        booking = await repository.get_booking_by_reference(db, booking_reference)
        return to_booking_response(booking) if booking is not None else None

    async def get_booking_by_id(self, db: AsyncSession, booking_id: int) -> Optional[BookingResponse]:
        logger.info("Retrieving booking by id %s", booking_id)
        booking = await repository.get_booking(db, booking_id)
        return to_booking_response(booking) if booking is not None else None

    async def get_bookings_by_email(self, db: AsyncSession, email: str) -> list[BookingResponse]:
        logger.info("Retrieving bookings for email %s", email)
        bookings = await repository.list_bookings_by_email(db, email)
        return [to_booking_response(b) for b in bookings]

    async def get_bookings_by_email_and_name(
        self, db: AsyncSession, email: str, name: str
    ) -> list[BookingResponse]:
        logger.info("Retrieving bookings for email %s and name %s", email, name)
        bookings = await repository.list_bookings_by_email(db, email, name=name)
        return [to_booking_response(b) for b in bookings]

    async def get_bookings_by_status(self, db: AsyncSession, status: BookingStatus) -> list[BookingResponse]:
        bookings = await repository.list_bookings_by_status(db, status)
        return [to_booking_response(b) for b in bookings]

    async def get_bookings_departing_between(
        self, db: AsyncSession, start: date, end: date
    ) -> list[BookingResponse]:
        if end < start:
            raise BookingValidationError("End of the date range must not precede its start")
        bookings = await repository.list_bookings_departing_between(db, start, end)
        return [to_booking_response(b) for b in bookings]

    async def get_all_bookings(
        self, db: AsyncSession, page: int = 0, size: int = DEFAULT_PAGE_SIZE
    ) -> BookingPage:
        page = max(page, 0)
        size = min(max(size, 1), MAX_PAGE_SIZE)
        logger.info("Retrieving bookings page=%d size=%d", page, size)

        bookings, total = await repository.page_bookings(db, page, size)
        return BookingPage(
            items=[to_booking_response(b) for b in bookings],
            page=page,
            size=size,
            total_elements=total,
            total_pages=math.ceil(total / size) if total else 0,
        )

    async def get_statistics(self, db: AsyncSession) -> BookingStatistics:
        counts = await repository.count_bookings_by_status(db)
        by_status = {status.value: counts.get(status.value, 0) for status in BookingStatus}
        return BookingStatistics(total_bookings=sum(counts.values()), by_status=by_status)

    # --- helpers --------------------------------------------------------------

    async def _create(self, db: AsyncSession, request: BookingRequest) -> Booking:
        self._validate_request(request)
        await self._check_availability(request)
        await self._check_duplicate(db, request)

        booking = build_booking(request, await self._new_reference(db))

        try:
            confirmation = await call_with_timeout(
                self._gateway.confirm(booking),
                self._call_timeout,
                ExternalBookingFailed,
                "booking",
            )
        except BookingException:
            raise
        except Exception as exc:
            raise ExternalBookingFailed(f"Booking call failed: {exc}") from exc

        booking.status = BookingStatus.CONFIRMED.value
        booking.booking_response = confirmation

        db.add(booking)
        try:
            await db.commit()
        except IntegrityError as exc:
            # a concurrent request booked the same trip first
            await db.rollback()
            raise DuplicateBooking(
                request.passenger_email, request.flight_number, request.departure_date
            ) from exc
        await db.refresh(booking)
        return booking

    @staticmethod
    def _validate_request(request: BookingRequest) -> None:
        if request.departure_date < date.today():
            raise BookingValidationError("Departure date must not be in the past")
        if request.return_date is not None and request.return_date < request.departure_date:
            raise BookingValidationError("Return date must not precede the departure date")
        if request.total_amount <= 0:
            raise BookingValidationError("Total amount must be greater than zero")

    async def _check_availability(self, request: BookingRequest) -> None:
        try:
            result = await self._search.fetch_offers(availability_probe(request))
        except ProviderError as exc:
            # advisory: an unreachable provider does not block the booking
            logger.warning("Could not validate availability of flight %s: %s", request.flight_number, exc)
            return

        if not any(offer.flight_number == request.flight_number for offer in result.flight_offers):
            raise FlightNotFound(request.flight_number)

    async def _check_duplicate(self, db: AsyncSession, request: BookingRequest) -> None:
        existing = await repository.find_active_bookings(
            db, request.passenger_email, request.flight_number, request.departure_date
        )
        if existing:
            raise DuplicateBooking(request.passenger_email, request.flight_number, request.departure_date)

    async def _new_reference(self, db: AsyncSession) -> str:
        for _ in range(REFERENCE_ATTEMPTS):
            reference = generate_booking_reference()
            if not await repository.reference_exists(db, reference):
                return reference
        raise RuntimeError("Could not generate an unused booking reference")

    async def _record_failure(self, db: AsyncSession, request: BookingRequest, error: BaseException) -> None:
        """Persist a FAILED booking so every attempt leaves a trace."""

        try:
            reference = await self._new_reference(db)
            failed = build_booking(request, reference, status=BookingStatus.FAILED)
            failed.booking_response = failure_message(error)
            db.add(failed)
            await db.commit()
        except (SQLAlchemyError, OSError, RuntimeError):
            await db.rollback()
            logger.exception("Could not record failed booking for flight %s", request.flight_number)
            return
        logger.info("Recorded failed booking %s", reference)
