"""Shared fixtures for the flight-booking tests."""

from __future__ import annotations

import os
import sys
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

SERVICE_ROOT = Path(__file__).resolve().parents[1]
if str(SERVICE_ROOT) not in sys.path:
    sys.path.append(str(SERVICE_ROOT))

# app.db builds its engine at import time
os.environ.setdefault("DB_DSN", "sqlite+aiosqlite:///:memory:")

from app.db import Base  # noqa: E402
from app import models  # noqa: E402,F401
from app.gateway import SimulatedBookingGateway  # noqa: E402
from app.schemas import BookingRequest, FlightOffer, FlightSearchResponse  # noqa: E402
from app.search import FlightSearchService  # noqa: E402
from app.service import BookingService  # noqa: E402


@pytest_asyncio.fixture()
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'bookings.sqlite'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    await engine.dispose()


@pytest_asyncio.fixture()
async def db(session_factory):
    async with session_factory() as session:
        yield session


def offers_response(*flight_numbers: str) -> FlightSearchResponse:
    return FlightSearchResponse(
        api_provider="AMADEUS",
        status="SUCCESS",
        message=f"Flight search completed - {len(flight_numbers)} offers found",
        search_timestamp=datetime.now(timezone.utc),
        flight_offers=[FlightOffer(id=str(i), flight_number=n) for i, n in enumerate(flight_numbers, 1)],
    )


@pytest.fixture()
def search_service():
    """Search orchestrator double that offers KE123 unless told otherwise."""
    search = AsyncMock(spec=FlightSearchService)
    search.fetch_offers.return_value = offers_response("KE123", "OZ202")
    return search


@pytest.fixture()
def gateway():
    return SimulatedBookingGateway(confirm_latency=0, cancel_latency=0, cancel_failure_rate=0)


@pytest.fixture()
def booking_service(search_service, gateway):
    return BookingService(search_service, gateway, call_timeout=1.0)


@pytest.fixture()
def make_booking_request():
    """Factory for valid booking requests departing a week from today."""

    def _factory(**overrides) -> BookingRequest:
        fields = {
            "flight_number": "KE123",
            "origin_location_code": "ICN",
            "destination_location_code": "LAX",
            "departure_date": date.today() + timedelta(days=7),
            "departure_time": time(14, 30),
            "passenger_name": "Test Passenger",
            "passenger_email": "test@example.com",
            "passenger_phone": "010-1234-5678",
            "api_provider": "AMADEUS",
            "total_amount": Decimal("1200.50"),
            "currency": "USD",
        }
        fields.update(overrides)
        return BookingRequest(**fields)

    return _factory
