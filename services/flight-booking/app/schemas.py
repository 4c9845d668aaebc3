"""Pydantic schemas for the flight-booking service."""

from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, model_validator

from .models import BookingStatus


AIRPORT_CODE_PATTERN = r"^[A-Z]{3}$"
CURRENCY_PATTERN = r"^[A-Z]{3}$"
FLIGHT_NUMBER_PATTERN = r"^[A-Z0-9]{2,10}$"
PHONE_PATTERN = r"^[0-9+()\s-]+$"

MAX_PASSENGERS = 9


class BookingRequest(BaseModel):
    flight_number: str = Field(..., description="Marketing flight number, e.g. KE123", pattern=FLIGHT_NUMBER_PATTERN)
    origin_location_code: str = Field(..., description="Origin IATA airport code", pattern=AIRPORT_CODE_PATTERN)
    destination_location_code: str = Field(
        ..., description="Destination IATA airport code", pattern=AIRPORT_CODE_PATTERN
    )
    departure_date: date
    departure_time: time
    return_date: Optional[date] = None
    return_time: Optional[time] = None
    passenger_name: str = Field(..., min_length=2, max_length=100)
    passenger_email: EmailStr
    passenger_phone: str = Field(..., max_length=20, pattern=PHONE_PATTERN)
    api_provider: str = Field(..., min_length=1, max_length=50)
    total_amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    currency: str = Field("USD", pattern=CURRENCY_PATTERN)

    @model_validator(mode="after")
    def _check_itinerary(self) -> "BookingRequest":
        if self.origin_location_code == self.destination_location_code:
            raise ValueError("Origin and destination must differ")
        if self.return_date is not None:
            if self.return_date <= self.departure_date:
                raise ValueError("Return date must be after the departure date")
            if self.return_time is None:
                raise ValueError("Return time is required for a round trip")
        return self

    @property
    def is_round_trip(self) -> bool:
        return self.return_date is not None


class BookingResponse(BaseModel):
    id: int
    booking_reference: str
    flight_number: str
    origin_location_code: str
    destination_location_code: str
    departure_date: date
    departure_time: time
    return_date: Optional[date] = None
    return_time: Optional[time] = None
    passenger_name: str
    passenger_email: str
    passenger_phone: str
    api_provider: str
    status: BookingStatus
    booking_timestamp: datetime
    total_amount: Decimal
    currency: str
    booking_response: Optional[str] = None

    round_trip: bool
    confirmed: bool
    cancelled: bool
    pending: bool
    failed: bool
    can_be_cancelled: bool
    international_flight: Optional[bool] = Field(
        None, description="None when the country of either airport is unknown"
    )
    past_departure: bool


class BookingPage(BaseModel):
    items: List[BookingResponse]
    page: int
    size: int
    total_elements: int
    total_pages: int


class BookingStatistics(BaseModel):
    total_bookings: int
    by_status: Dict[str, int]


class FlightSearchRequest(BaseModel):
    origin_location_code: str = Field(..., pattern=AIRPORT_CODE_PATTERN)
    destination_location_code: str = Field(..., pattern=AIRPORT_CODE_PATTERN)
    departure_date: date
    return_date: Optional[date] = None
    adults: int = Field(1, ge=1, le=9)
    children: int = Field(0, ge=0, le=8)
    infants: int = Field(0, ge=0, le=2)
    api_provider: str = Field("AMADEUS", min_length=1, max_length=50)

    @model_validator(mode="after")
    def _check_route(self) -> "FlightSearchRequest":
        if self.origin_location_code == self.destination_location_code:
            raise ValueError("Origin and destination must differ")
        if self.return_date is not None and self.return_date <= self.departure_date:
            raise ValueError("Return date must be after the departure date")
        if self.total_passengers > MAX_PASSENGERS:
            raise ValueError(f"At most {MAX_PASSENGERS} passengers per search")
        return self

    @property
    def is_round_trip(self) -> bool:
        return self.return_date is not None

    @property
    def total_passengers(self) -> int:
        return self.adults + self.children + self.infants


class Price(BaseModel):
    currency: str = "USD"
    total: Decimal = Decimal("0.00")
    base: Decimal = Decimal("0.00")
    taxes: Decimal = Decimal("0.00")


class FlightOffer(BaseModel):
    id: Optional[str] = None
    airline: str = "Unknown"
    flight_number: str = "Unknown"
    origin_location_code: Optional[str] = None
    destination_location_code: Optional[str] = None
    departure_date: Optional[str] = None
    departure_time: Optional[str] = None
    arrival_date: Optional[str] = None
    arrival_time: Optional[str] = None
    duration: Optional[str] = None
    cabin_class: str = "ECONOMY"
    price: Price = Field(default_factory=Price)
    available_seats: int = 9


class FlightSearchResponse(BaseModel):
    api_provider: str
    status: Literal["SUCCESS", "ERROR"]
    message: str
    search_timestamp: datetime
    origin_location_code: Optional[str] = None
    destination_location_code: Optional[str] = None
    departure_date: Optional[date] = None
    return_date: Optional[date] = None
    flight_offers: List[FlightOffer] = []


class FlightSearchSummary(BaseModel):
    id: int
    origin_location_code: str
    destination_location_code: str
    departure_date: date
    return_date: Optional[date]
    total_passengers: int
    api_provider: str
    search_timestamp: datetime
    round_trip: bool
    international_flight: Optional[bool]
    succeeded: bool


class SearchHistoryResponse(BaseModel):
    api_provider: str
    status: Literal["SUCCESS", "ERROR"]
    message: str
    total_searches: int
    searches: List[FlightSearchSummary] = []
    search_timestamp: datetime
