"""SQLAlchemy models for the flight-booking service."""

from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum

from sqlalchemy import Date, DateTime, Index, Integer, Numeric, String, Text, Time, text
from sqlalchemy.orm import Mapped, mapped_column

from .db import Base


class BookingStatus(str, Enum):  # type: ignore[misc]
    """Lifecycle states of a booking."""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    FAILED = "FAILED"


_ACTIVE_STATUS_CLAUSE = "status IN ('PENDING', 'CONFIRMED')"


class Booking(Base):
    """One reservation attempt, successful or not."""

    __tablename__ = "bookings"
    __table_args__ = (
        # at most one live booking per passenger, flight and day
        Index(
            "uq_bookings_active_passenger_flight",
            "passenger_email",
            "flight_number",
            "departure_date",
            unique=True,
            postgresql_where=text(_ACTIVE_STATUS_CLAUSE),
            sqlite_where=text(_ACTIVE_STATUS_CLAUSE),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    booking_reference: Mapped[str] = mapped_column(String(20), nullable=False, unique=True, index=True)

    flight_number: Mapped[str] = mapped_column(String(10), nullable=False)
    origin_location_code: Mapped[str] = mapped_column(String(3), nullable=False)
    destination_location_code: Mapped[str] = mapped_column(String(3), nullable=False)
    departure_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    departure_time: Mapped[time] = mapped_column(Time, nullable=False)
    return_date: Mapped[date | None] = mapped_column(Date)
    return_time: Mapped[time | None] = mapped_column(Time)

    passenger_name: Mapped[str] = mapped_column(String(100), nullable=False)
    passenger_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    passenger_phone: Mapped[str] = mapped_column(String(20), nullable=False)

    api_provider: Mapped[str] = mapped_column(String(50), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    status: Mapped[str] = mapped_column(
        String(16), nullable=False, index=True, default=BookingStatus.PENDING.value
    )
    booking_timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    booking_response: Mapped[str | None] = mapped_column(Text)


class FlightSearch(Base):
    """Audit record of a single provider search."""

    __tablename__ = "flight_searches"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    origin_location_code: Mapped[str] = mapped_column(String(3), nullable=False)
    destination_location_code: Mapped[str] = mapped_column(String(3), nullable=False)
    departure_date: Mapped[date] = mapped_column(Date, nullable=False)
    return_date: Mapped[date | None] = mapped_column(Date)
    adults: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    children: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    infants: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    api_provider: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    search_timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    search_response: Mapped[str | None] = mapped_column(Text)
