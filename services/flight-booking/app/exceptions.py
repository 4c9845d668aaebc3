"""Errors raised by the booking engine and its collaborators."""

from __future__ import annotations

from datetime import date


class BookingException(Exception):
    """A booking request conflicts with a business rule."""


class BookingValidationError(BookingException):
    pass


class DuplicateBooking(BookingException):
    def __init__(self, passenger_email: str, flight_number: str, departure_date: date) -> None:
        self.passenger_email = passenger_email
        self.flight_number = flight_number
        self.departure_date = departure_date
        super().__init__(
            f"An active booking already exists for {passenger_email} "
            f"on flight {flight_number} departing {departure_date.isoformat()}"
        )


class FlightNotFound(BookingException):
    def __init__(self, flight_number: str) -> None:
        self.flight_number = flight_number
        super().__init__(f"Flight {flight_number} is not offered by the provider")


class BookingNotCancellable(BookingException):
    def __init__(self, booking_reference: str, status: str) -> None:
        self.booking_reference = booking_reference
        self.status = status
        super().__init__(f"Booking {booking_reference} cannot be cancelled in status {status}")


class DepartureAlreadyPassed(BookingException):
    def __init__(self, booking_reference: str) -> None:
        self.booking_reference = booking_reference
        super().__init__(f"Flight for booking {booking_reference} has already departed")


class InvalidStatusTransition(BookingException):
    def __init__(self, current: str, new: str) -> None:
        self.current = current
        self.new = new
        super().__init__(f"Cannot transition booking from {current} to {new}")


class ExternalBookingFailed(BookingException):
    """The provider did not confirm the booking."""


class ExternalCancellationFailed(BookingException):
    """The provider rejected or did not answer a cancellation."""


class BookingNotFound(Exception):
    def __init__(self, booking_reference: str) -> None:
        self.booking_reference = booking_reference
        super().__init__(f"Booking not found: {booking_reference}")


class ProviderError(Exception):
    """The flight-data provider could not be reached or returned garbage."""
