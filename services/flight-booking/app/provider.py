"""Client for the Amadeus-style flight offer search API."""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, List, Mapping, Optional, TypeVar

import httpx

from .config import ProviderSettings
from .exceptions import ProviderError
from .schemas import FlightOffer, FlightSearchRequest, Price

logger = logging.getLogger(__name__)

T = TypeVar("T")

CENT = Decimal("0.01")
BASE_FARE_SHARE = Decimal("0.8")
TAX_SHARE = Decimal("0.2")
DEFAULT_AVAILABLE_SEATS = 9
DEFAULT_CABIN_CLASS = "ECONOMY"
UNKNOWN = "Unknown"


class ProviderClient:
    """Fetches and normalizes flight offers.

    A bearer token is requested for every search; nothing is cached between
    calls. ``transport`` lets tests plug in ``httpx.MockTransport``.
    """

    def __init__(
        self,
        settings: ProviderSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._settings = settings
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._settings.timeout, transport=self._transport)

    async def get_access_token(self, client: httpx.AsyncClient) -> str:
        form = {
            "grant_type": "client_credentials",
            "client_id": self._settings.client_id,
            "client_secret": self._settings.client_secret,
        }
        try:
            response = await client.post(self._settings.auth_url, data=form)
            response.raise_for_status()
            token = response.json().get("access_token")
        except httpx.HTTPError as exc:
            raise ProviderError(f"Token request failed: {exc}") from exc
        except (ValueError, AttributeError) as exc:
            raise ProviderError("Token endpoint returned an unreadable body") from exc

        if not token:
            raise ProviderError("Token endpoint did not return an access token")
        logger.info("Obtained provider access token")
        return token

    async def search_offers(self, request: FlightSearchRequest) -> List[FlightOffer]:
        params: dict[str, Any] = {
            "originLocationCode": request.origin_location_code,
            "destinationLocationCode": request.destination_location_code,
            "departureDate": request.departure_date.isoformat(),
            "adults": request.adults,
            "children": request.children,
            "infants": request.infants,
            "max": self._settings.max_results,
        }
        if request.return_date is not None:
            params["returnDate"] = request.return_date.isoformat()

        async with self._client() as client:
            token = await self.get_access_token(client)
            try:
                response = await client.get(
                    self._settings.flight_offers_url,
                    params=params,
                    headers={"Authorization": f"Bearer {token}"},
                )
                response.raise_for_status()
                payload = response.json()
            except httpx.HTTPError as exc:
                raise ProviderError(f"Flight offer search failed: {exc}") from exc
            except ValueError as exc:
                raise ProviderError("Flight offer search returned a non-JSON body") from exc

        try:
            offers = parse_flight_offers(payload)
        except ProviderError:
            raise
        except Exception as exc:
            raise ProviderError(f"Flight offer search returned an unusable body: {exc}") from exc

        logger.info(
            "Provider returned %d offers for %s -> %s",
            len(offers),
            request.origin_location_code,
            request.destination_location_code,
        )
        return offers


def parse_flight_offers(payload: Any) -> List[FlightOffer]:
    """Turn a raw search response into offers, dropping unusable entries."""

    if not isinstance(payload, Mapping):
        raise ProviderError("Flight offer search response is not an object")
    data = payload.get("data")
    if data is None and payload.get("errors"):
        raise ProviderError(f"Provider reported errors: {payload['errors']}")
    if data is None:
        return []
    if not isinstance(data, list):
        raise ProviderError("Flight offer search response has no offer list")

    offers: List[FlightOffer] = []
    for raw in data:
        offer = convert_offer(raw)
        if offer is not None:
            offers.append(offer)
    return offers


def convert_offer(raw: Any) -> Optional[FlightOffer]:
    """Normalize one offer; each field falls back to its default on its own."""

    if not isinstance(raw, Mapping) or _segment(raw, 0) is None:
        logger.warning("Dropping flight offer without itinerary segments")
        return None

    return FlightOffer(
        id=_extract("id", lambda: _as_str(raw.get("id")), None),
        airline=_extract("airline", lambda: _as_str(_segment(raw, 0)["carrierCode"]), UNKNOWN),
        flight_number=_extract("flight number", lambda: _flight_number(raw), UNKNOWN),
        origin_location_code=_extract(
            "origin", lambda: _as_str(_segment(raw, 0)["departure"]["iataCode"]), None
        ),
        destination_location_code=_extract(
            "destination", lambda: _as_str(_segment(raw, -1)["arrival"]["iataCode"]), None
        ),
        departure_date=_extract("departure date", lambda: _date_part(_segment(raw, 0)["departure"]["at"]), None),
        departure_time=_extract("departure time", lambda: _time_part(_segment(raw, 0)["departure"]["at"]), None),
        arrival_date=_extract("arrival date", lambda: _date_part(_segment(raw, -1)["arrival"]["at"]), None),
        arrival_time=_extract("arrival time", lambda: _time_part(_segment(raw, -1)["arrival"]["at"]), None),
        duration=_extract("duration", lambda: _as_str(raw["itineraries"][0]["duration"]), None),
        cabin_class=_extract(
            "cabin class",
            lambda: _as_str(raw["travelerPricings"][0]["fareDetailsBySegment"][0]["cabin"]),
            DEFAULT_CABIN_CLASS,
        ),
        price=_extract("price", lambda: _price(raw), Price()),
        available_seats=_extract("available seats", lambda: _seats(raw), DEFAULT_AVAILABLE_SEATS),
    )


def _extract(field: str, getter: Callable[[], Optional[T]], default: T) -> T:
    try:
        value = getter()
    except (KeyError, IndexError, TypeError, ValueError, OverflowError, InvalidOperation) as exc:
        logger.debug("Could not extract %s from offer: %r", field, exc)
        return default
    if value is None:
        return default
    return value


def _segment(raw: Mapping[str, Any], index: int) -> Optional[Mapping[str, Any]]:
    try:
        segment = raw["itineraries"][0]["segments"][index]
    except (KeyError, IndexError, TypeError):
        return None
    return segment if isinstance(segment, Mapping) else None


def _as_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise TypeError(f"expected a string, got {type(value).__name__}")
    return value


def _flight_number(raw: Mapping[str, Any]) -> str:
    segment = _segment(raw, 0)
    carrier = _as_str(segment["carrierCode"]) or ""
    number = _as_str(segment["number"])
    if not number:
        raise ValueError("segment has no flight number")
    return f"{carrier}{number}"


def _date_part(timestamp: Any) -> str:
    value = _as_str(timestamp)
    if value is None or len(value) < 10:
        raise ValueError(f"unexpected timestamp {timestamp!r}")
    return value[:10]


def _time_part(timestamp: Any) -> str:
    value = _as_str(timestamp)
    if value is None or len(value) < 16:
        raise ValueError(f"unexpected timestamp {timestamp!r}")
    return value[11:16]


def _money(value: Any) -> Decimal:
    return Decimal(str(value)).quantize(CENT)


def _price(raw: Mapping[str, Any]) -> Price:
    source = raw.get("price")
    if not isinstance(source, Mapping):
        source = raw["travelerPricings"][0]["price"]

    total = _money(source["total"])
    currency = _as_str(source.get("currency")) or "USD"
    if source.get("base") is not None:
        base = _money(source["base"])
        taxes = total - base
    else:
        # provider sent only a total; the split is an approximation
        base = (total * BASE_FARE_SHARE).quantize(CENT)
        taxes = (total * TAX_SHARE).quantize(CENT)
    return Price(currency=currency, total=total, base=base, taxes=taxes)


def _seats(raw: Mapping[str, Any]) -> Optional[int]:
    seats = raw.get("numberOfBookableSeats")
    if seats is None:
        return None
    if isinstance(seats, bool):
        raise TypeError("seat count is a boolean")
    return int(seats)
