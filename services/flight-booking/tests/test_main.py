"""Integration tests for the flight-booking FastAPI service."""

from __future__ import annotations

import importlib
import sys
from datetime import date, timedelta
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from asgi_lifespan import LifespanManager
from httpx import ASGITransport, AsyncClient

SERVICE_ROOT = Path(__file__).resolve().parents[1]
if str(SERVICE_ROOT) not in sys.path:
    sys.path.append(str(SERVICE_ROOT))

pytestmark = pytest.mark.asyncio


@pytest.fixture()
def app_context(monkeypatch, tmp_path):
    db_path = tmp_path / "bookings.sqlite"
    monkeypatch.setenv("DB_DSN", f"sqlite+aiosqlite:///{db_path}")
    monkeypatch.setenv("BOOKING_CONFIRM_LATENCY", "0")
    monkeypatch.setenv("BOOKING_CANCEL_LATENCY", "0")
    monkeypatch.setenv("BOOKING_CANCEL_FAILURE_RATE", "0")

    for module in [name for name in sys.modules if name == "app" or name.startswith("app.")]:
        del sys.modules[module]

    app_main = importlib.import_module("app.main")
    app_db = importlib.import_module("app.db")
    app_provider = importlib.import_module("app.provider")
    app_schemas = importlib.import_module("app.schemas")
    app_search = importlib.import_module("app.search")

    provider = AsyncMock(spec=app_provider.ProviderClient)
    provider.search_offers.return_value = [
        app_schemas.FlightOffer(id="1", flight_number="KE123"),
        app_schemas.FlightOffer(id="2", flight_number="OZ202"),
    ]
    search_service = app_search.FlightSearchService(provider, app_db.SessionLocal)
    app_main.app.dependency_overrides[app_main.get_search_service] = lambda: search_service

    yield app_main.app, provider

    app_main.app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def client(app_context):
    app, _ = app_context
    async with LifespanManager(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://testserver") as client:
            yield client


def _booking_payload(**overrides):
    payload = {
        "flight_number": "KE123",
        "origin_location_code": "ICN",
        "destination_location_code": "LAX",
        "departure_date": (date.today() + timedelta(days=7)).isoformat(),
        "departure_time": "14:30:00",
        "passenger_name": "Test Passenger",
        "passenger_email": "test@example.com",
        "passenger_phone": "010-1234-5678",
        "api_provider": "AMADEUS",
        "total_amount": "1200.50",
        "currency": "USD",
    }
    payload.update(overrides)
    return payload


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


async def test_create_and_fetch_booking(client):
    response = await client.post("/api/bookings", json=_booking_payload())
    assert response.status_code == 201
    created = response.json()
    assert created["status"] == "CONFIRMED"
    assert created["booking_reference"].startswith("BK")
    assert created["international_flight"] is True
    assert created["can_be_cancelled"] is True

    by_reference = await client.get(f"/api/bookings/reference/{created['booking_reference']}")
    assert by_reference.status_code == 200
    assert by_reference.json()["id"] == created["id"]

    by_id = await client.get(f"/api/bookings/{created['id']}")
    assert by_id.status_code == 200
    assert by_id.json()["booking_reference"] == created["booking_reference"]

    by_email = await client.get("/api/bookings/email/test@example.com")
    assert [b["id"] for b in by_email.json()] == [created["id"]]

    by_name = await client.get(
        "/api/bookings/search", params={"email": "test@example.com", "name": "Test Passenger"}
    )
    assert [b["id"] for b in by_name.json()] == [created["id"]]


async def test_invalid_payload_never_reaches_provider(app_context, client):
    _, provider = app_context

    same_route = await client.post("/api/bookings", json=_booking_payload(destination_location_code="ICN"))
    bad_email = await client.post("/api/bookings", json=_booking_payload(passenger_email="not-an-email"))
    bad_amount = await client.post("/api/bookings", json=_booking_payload(total_amount="0"))
    departure = _booking_payload()["departure_date"]
    same_day_return = await client.post(
        "/api/bookings", json=_booking_payload(return_date=departure, return_time="20:00:00")
    )
    return_without_time = await client.post(
        "/api/bookings",
        json=_booking_payload(return_date=(date.today() + timedelta(days=10)).isoformat()),
    )
    three_decimals = await client.post("/api/bookings", json=_booking_payload(total_amount="10.123"))

    for response in (same_route, bad_email, bad_amount, same_day_return, return_without_time, three_decimals):
        assert response.status_code == 422
    provider.search_offers.assert_not_awaited()


async def test_business_rule_failures_map_to_http_errors(app_context, client):
    _, provider = app_context

    past = await client.post(
        "/api/bookings",
        json=_booking_payload(departure_date=(date.today() - timedelta(days=1)).isoformat()),
    )
    assert past.status_code == 400

    unknown = await client.post("/api/bookings", json=_booking_payload(flight_number="ZZ999"))
    assert unknown.status_code == 409
    assert "ZZ999" in unknown.json()["detail"]

    first = await client.post("/api/bookings", json=_booking_payload())
    assert first.status_code == 201
    duplicate = await client.post("/api/bookings", json=_booking_payload())
    assert duplicate.status_code == 409

    stats = (await client.get("/api/bookings/statistics")).json()
    assert stats["by_status"]["FAILED"] == 3
    assert stats["by_status"]["CONFIRMED"] == 1
    assert stats["total_bookings"] == 4


async def test_missing_bookings_return_404(client):
    assert (await client.get("/api/bookings/reference/BK00000000")).status_code == 404
    assert (await client.get("/api/bookings/999")).status_code == 404
    assert (await client.put("/api/bookings/BK00000000/cancel")).status_code == 404
    assert (
        await client.put("/api/bookings/BK00000000/status", params={"status": "CONFIRMED"})
    ).status_code == 404


async def test_cancel_and_status_updates(client):
    created = (await client.post("/api/bookings", json=_booking_payload())).json()
    reference = created["booking_reference"]

    cancelled = await client.put(f"/api/bookings/{reference}/cancel")
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "CANCELLED"
    assert "Cancelled at: " in cancelled.json()["booking_response"]

    again = await client.put(f"/api/bookings/{reference}/cancel")
    assert again.status_code == 409

    reopen = await client.put(f"/api/bookings/{reference}/status", params={"status": "CONFIRMED"})
    assert reopen.status_code == 409

    unknown_status = await client.put(f"/api/bookings/{reference}/status", params={"status": "SHIPPED"})
    assert unknown_status.status_code == 422


async def test_listing_and_departure_range(client):
    week = date.today() + timedelta(days=7)
    await client.post("/api/bookings", json=_booking_payload())
    await client.post("/api/bookings", json=_booking_payload(flight_number="OZ202"))

    page = (await client.get("/api/bookings", params={"page": 0, "size": 1})).json()
    assert page["total_elements"] == 2
    assert page["total_pages"] == 2
    assert len(page["items"]) == 1

    confirmed = (await client.get("/api/bookings/status/CONFIRMED")).json()
    assert len(confirmed) == 2

    in_range = await client.get(
        "/api/bookings/departures", params={"start": week.isoformat(), "end": week.isoformat()}
    )
    assert len(in_range.json()) == 2

    reversed_range = await client.get(
        "/api/bookings/departures",
        params={"start": week.isoformat(), "end": (week - timedelta(days=1)).isoformat()},
    )
    assert reversed_range.status_code == 400


async def test_flight_search_and_history(app_context, client):
    _, provider = app_context
    payload = {
        "origin_location_code": "ICN",
        "destination_location_code": "NRT",
        "departure_date": (date.today() + timedelta(days=30)).isoformat(),
        "adults": 2,
    }

    found = await client.post("/api/flights/search", json=payload)
    assert found.status_code == 200
    assert found.json()["status"] == "SUCCESS"
    assert len(found.json()["flight_offers"]) == 2

    provider_error = importlib.import_module("app.exceptions").ProviderError
    provider.search_offers.side_effect = provider_error("provider down")
    failed = await client.post("/api/flights/search", json=payload)
    assert failed.status_code == 200
    assert failed.json()["status"] == "ERROR"

    too_many = await client.post("/api/flights/search", json={**payload, "adults": 8, "children": 2})
    assert too_many.status_code == 422

    history = (await client.get("/api/flights/search-history/AMADEUS")).json()
    assert history["total_searches"] == 2
    assert [s["succeeded"] for s in history["searches"]] == [False, True]


async def test_simple_search_uses_query_parameters(app_context, client):
    _, provider = app_context

    found = await client.get(
        "/api/flights/search-simple", params={"origin": "GMP", "destination": "CJU", "apiProvider": "AMADEUS"}
    )
    assert found.status_code == 200
    assert found.json()["status"] == "SUCCESS"

    sent = provider.search_offers.await_args.args[0]
    assert (sent.origin_location_code, sent.destination_location_code) == ("GMP", "CJU")
    assert sent.departure_date == date.today() + timedelta(days=30)
    assert sent.adults == 1 and sent.return_date is None

    defaults = await client.get("/api/flights/search-simple")
    assert defaults.json()["origin_location_code"] == "ICN"
    assert defaults.json()["destination_location_code"] == "LAX"

    same_route = await client.get("/api/flights/search-simple", params={"origin": "ICN", "destination": "ICN"})
    assert same_route.status_code == 422
