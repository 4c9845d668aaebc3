"""Queries against the bookings and flight_searches tables."""

from __future__ import annotations

from datetime import date
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Booking, BookingStatus, FlightSearch


async def get_booking(db: AsyncSession, booking_id: int) -> Optional[Booking]:
    return await db.get(Booking, booking_id)


async def get_booking_by_reference(
    db: AsyncSession, booking_reference: str, *, for_update: bool = False
) -> Optional[Booking]:
    stmt = select(Booking).where(Booking.booking_reference == booking_reference)
    if for_update:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def reference_exists(db: AsyncSession, booking_reference: str) -> bool:
    result = await db.execute(
        select(Booking.id).where(Booking.booking_reference == booking_reference)
    )
    return result.first() is not None


async def list_bookings_by_email(
    db: AsyncSession, email: str, name: Optional[str] = None
) -> list[Booking]:
    stmt = select(Booking).where(Booking.passenger_email == email)
    if name is not None:
        stmt = stmt.where(Booking.passenger_name == name)
    result = await db.execute(stmt.order_by(Booking.booking_timestamp.desc(), Booking.id.desc()))
    return list(result.scalars().all())


async def list_bookings_by_status(db: AsyncSession, status: BookingStatus) -> list[Booking]:
    stmt = (
        select(Booking)
        .where(Booking.status == status.value)
        .order_by(Booking.booking_timestamp.desc(), Booking.id.desc())
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def list_bookings_departing_between(db: AsyncSession, start: date, end: date) -> list[Booking]:
    stmt = (
        select(Booking)
        .where(Booking.departure_date >= start, Booking.departure_date <= end)
        .order_by(Booking.departure_date.asc(), Booking.departure_time.asc())
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def find_active_bookings(
    db: AsyncSession, email: str, flight_number: str, departure_date: date
) -> list[Booking]:
    """Bookings that would make a new booking for the same trip a duplicate."""

    stmt = select(Booking).where(
        Booking.passenger_email == email,
        Booking.flight_number == flight_number,
        Booking.departure_date == departure_date,
        Booking.status.in_([BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value]),
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def page_bookings(db: AsyncSession, page: int, size: int) -> tuple[list[Booking], int]:
    total = await db.scalar(select(func.count()).select_from(Booking))
    stmt = (
        select(Booking)
        .order_by(Booking.booking_timestamp.desc(), Booking.id.desc())
        .offset(page * size)
        .limit(size)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all()), int(total or 0)


async def count_bookings_by_status(db: AsyncSession) -> dict[str, int]:
    result = await db.execute(select(Booking.status, func.count()).group_by(Booking.status))
    return {status: count for status, count in result.all()}


async def list_searches_by_provider(
    db: AsyncSession, api_provider: str, limit: Optional[int] = None
) -> list[FlightSearch]:
    stmt = (
        select(FlightSearch)
        .where(FlightSearch.api_provider == api_provider)
        .order_by(FlightSearch.search_timestamp.desc(), FlightSearch.id.desc())
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def count_searches_by_provider(db: AsyncSession, api_provider: str) -> int:
    total = await db.scalar(
        select(func.count()).select_from(FlightSearch).where(FlightSearch.api_provider == api_provider)
    )
    return int(total or 0)
