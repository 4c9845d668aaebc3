"""FastAPI application exposing the flight search and booking API."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Awaitable, Dict, List, TypeVar

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from .config import get_settings
from .db import SessionLocal, init_db
from .exceptions import (
    BookingException,
    BookingNotFound,
    BookingValidationError,
    ExternalBookingFailed,
    ExternalCancellationFailed,
)
from .gateway import SimulatedBookingGateway
from .models import BookingStatus
from .provider import ProviderClient
from .schemas import (
    BookingPage,
    BookingRequest,
    BookingResponse,
    BookingStatistics,
    FlightSearchRequest,
    FlightSearchResponse,
    SearchHistoryResponse,
)
from .search import FlightSearchService
from .service import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, BookingService

settings = get_settings()

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger("flight_booking")

app = FastAPI(title="Flight Booking", version="0.1.0")

T = TypeVar("T")

SIMPLE_SEARCH_DAYS_AHEAD = 30


async def get_db():
    async with SessionLocal() as session:
        yield session


def get_search_service() -> FlightSearchService:
    return FlightSearchService(ProviderClient(settings.provider), SessionLocal)


def get_booking_service(
    search_service: FlightSearchService = Depends(get_search_service),
) -> BookingService:
    return BookingService(
        search_service,
        SimulatedBookingGateway.from_settings(settings.gateway),
        call_timeout=settings.gateway.call_timeout,
    )


@app.on_event("startup")
async def on_startup() -> None:
    await init_db()


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "An unexpected error occurred. Please try again later."},
    )


@app.get("/health")
async def health() -> Dict[str, str]:
    return {"status": "ok"}


def _status_code_for(exc: Exception) -> int:
    if isinstance(exc, BookingNotFound):
        return 404
    if isinstance(exc, BookingValidationError):
        return 400
    if isinstance(exc, (ExternalBookingFailed, ExternalCancellationFailed)):
        return 502
    return 409


def _handle_booking_error(exc: Exception) -> HTTPException:
    """Convert engine errors into HTTP errors carrying the engine's message."""
    return HTTPException(status_code=_status_code_for(exc), detail=str(exc))


async def _run(call: Awaitable[T]) -> T:
    try:
        return await call
    except (BookingException, BookingNotFound) as exc:
        raise _handle_booking_error(exc) from exc


# --- bookings -------------------------------------------------------------------


@app.post("/api/bookings", response_model=BookingResponse, status_code=201)
async def create_booking(
    payload: BookingRequest,
    db: AsyncSession = Depends(get_db),
    bookings: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    return await _run(bookings.create_booking(db, payload))


@app.get("/api/bookings", response_model=BookingPage)
async def list_bookings(
    page: int = Query(0, ge=0),
    size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
    bookings: BookingService = Depends(get_booking_service),
) -> BookingPage:
    return await bookings.get_all_bookings(db, page=page, size=size)


@app.get("/api/bookings/statistics", response_model=BookingStatistics)
async def booking_statistics(
    db: AsyncSession = Depends(get_db),
    bookings: BookingService = Depends(get_booking_service),
) -> BookingStatistics:
    return await bookings.get_statistics(db)


@app.get("/api/bookings/search", response_model=List[BookingResponse])
async def find_bookings_by_email_and_name(
    email: str = Query(...),
    name: str = Query(...),
    db: AsyncSession = Depends(get_db),
    bookings: BookingService = Depends(get_booking_service),
) -> List[BookingResponse]:
    return await bookings.get_bookings_by_email_and_name(db, email, name)


@app.get("/api/bookings/email/{email}", response_model=List[BookingResponse])
async def find_bookings_by_email(
    email: str,
    db: AsyncSession = Depends(get_db),
    bookings: BookingService = Depends(get_booking_service),
) -> List[BookingResponse]:
    return await bookings.get_bookings_by_email(db, email)


@app.get("/api/bookings/status/{status}", response_model=List[BookingResponse])
async def find_bookings_by_status(
    status: BookingStatus,
    db: AsyncSession = Depends(get_db),
    bookings: BookingService = Depends(get_booking_service),
) -> List[BookingResponse]:
    return await bookings.get_bookings_by_status(db, status)


@app.get("/api/bookings/departures", response_model=List[BookingResponse])
async def find_bookings_departing_between(
    start: date = Query(...),
    end: date = Query(...),
    db: AsyncSession = Depends(get_db),
    bookings: BookingService = Depends(get_booking_service),
) -> List[BookingResponse]:
    return await _run(bookings.get_bookings_departing_between(db, start, end))


@app.get("/api/bookings/reference/{booking_reference}", response_model=BookingResponse)
async def get_booking_by_reference(
    booking_reference: str,
    db: AsyncSession = Depends(get_db),
    bookings: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    booking = await bookings.get_booking_by_reference(db, booking_reference)
    if booking is None:
        raise HTTPException(status_code=404, detail="Booking not found")
    return booking


@app.get("/api/bookings/{booking_id}", response_model=BookingResponse)
async def get_booking_by_id(
    booking_id: int,
    db: AsyncSession = Depends(get_db),
    bookings: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    booking = await bookings.get_booking_by_id(db, booking_id)
    if booking is None:
        raise HTTPException(status_code=404, detail="Booking not found")
    return booking


@app.put("/api/bookings/{booking_reference}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_reference: str,
    db: AsyncSession = Depends(get_db),
    bookings: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    return await _run(bookings.cancel_booking(db, booking_reference))


@app.put("/api/bookings/{booking_reference}/status", response_model=BookingResponse)
async def update_booking_status(
    booking_reference: str,
    status: BookingStatus = Query(...),
    db: AsyncSession = Depends(get_db),
    bookings: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    return await _run(bookings.update_booking_status(db, booking_reference, status))


# --- flights --------------------------------------------------------------------


@app.post("/api/flights/search", response_model=FlightSearchResponse)
async def search_flights(
    payload: FlightSearchRequest,
    flights: FlightSearchService = Depends(get_search_service),
) -> FlightSearchResponse:
    return await flights.search(payload)


@app.get("/api/flights/search-simple", response_model=FlightSearchResponse)
async def search_flights_simple(
    origin: str = Query("ICN"),
    destination: str = Query("LAX"),
    api_provider: str = Query("AMADEUS", alias="apiProvider"),
    flights: FlightSearchService = Depends(get_search_service),
) -> FlightSearchResponse:
    """Query-string search: one adult, one way, departing 30 days from today."""

    try:
        payload = FlightSearchRequest(
            origin_location_code=origin,
            destination_location_code=destination,
            departure_date=date.today() + timedelta(days=SIMPLE_SEARCH_DAYS_AHEAD),
            api_provider=api_provider,
        )
    except ValidationError as exc:
        raise HTTPException(
            status_code=422,
            detail=exc.errors(include_url=False, include_context=False, include_input=False),
        ) from exc
    return await flights.search(payload)


@app.get("/api/flights/search-history/{api_provider}", response_model=SearchHistoryResponse)
async def search_history(
    api_provider: str,
    flights: FlightSearchService = Depends(get_search_service),
) -> SearchHistoryResponse:
    return await flights.history(api_provider)
