"""Flight search orchestration: provider call plus search history."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from . import repository
from .domain import ensure_timezone, is_international_flight, is_round_trip
from .exceptions import ProviderError
from .models import FlightSearch
from .provider import ProviderClient
from .schemas import FlightSearchRequest, FlightSearchResponse, FlightSearchSummary, SearchHistoryResponse

logger = logging.getLogger(__name__)

ERROR_PREFIX = "ERROR: "
HISTORY_LIMIT = 20


class FlightSearchService:
    """Runs provider searches and keeps an audit record of every attempt.

    Search records are written through their own session so that a failed
    audit write never disturbs the caller's transaction.
    """

    def __init__(
        self,
        provider: ProviderClient,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        self._provider = provider
        self._session_factory = session_factory

    async def search(self, request: FlightSearchRequest) -> FlightSearchResponse:
        """Search offers, degrading provider failures to an ERROR response."""

        try:
            return await self.fetch_offers(request)
        except ProviderError as exc:
            return FlightSearchResponse(
                api_provider=request.api_provider,
                status="ERROR",
                message=f"Flight search failed: {exc}",
                search_timestamp=datetime.now(timezone.utc),
                origin_location_code=request.origin_location_code,
                destination_location_code=request.destination_location_code,
                departure_date=request.departure_date,
                return_date=request.return_date,
                flight_offers=[],
            )

    async def fetch_offers(self, request: FlightSearchRequest) -> FlightSearchResponse:
        """Search offers; any provider failure is recorded and raised as ProviderError."""

        logger.info(
            "Searching flights %s -> %s on %s via %s",
            request.origin_location_code,
            request.destination_location_code,
            request.departure_date,
            request.api_provider,
        )
        try:
            offers = await self._provider.search_offers(request)
        except ProviderError as exc:
            logger.error("Flight search failed: %s", exc)
            await self._record(request, f"{ERROR_PREFIX}{exc}")
            raise
        except Exception as exc:
            logger.exception("Flight search failed unexpectedly")
            error = ProviderError(f"Unexpected provider failure: {exc!r}")
            await self._record(request, f"{ERROR_PREFIX}{error}")
            raise error from exc

        response = FlightSearchResponse(
            api_provider=request.api_provider,
            status="SUCCESS",
            message=f"Flight search completed - {len(offers)} offers found",
            search_timestamp=datetime.now(timezone.utc),
            origin_location_code=request.origin_location_code,
            destination_location_code=request.destination_location_code,
            departure_date=request.departure_date,
            return_date=request.return_date,
            flight_offers=offers,
        )
        await self._record(request, response.model_dump_json())
        return response

    async def history(self, api_provider: str) -> SearchHistoryResponse:
        logger.info("Loading search history for provider %s", api_provider)
        async with self._session_factory() as session:
            total = await repository.count_searches_by_provider(session, api_provider)
            recent = await repository.list_searches_by_provider(session, api_provider, limit=HISTORY_LIMIT)

        return SearchHistoryResponse(
            api_provider=api_provider,
            status="SUCCESS",
            message=f"Search history loaded - {total} records",
            total_searches=total,
            searches=[_to_summary(record) for record in recent],
            search_timestamp=datetime.now(timezone.utc),
        )

    async def _record(self, request: FlightSearchRequest, serialized: str) -> None:
        record = FlightSearch(
            origin_location_code=request.origin_location_code,
            destination_location_code=request.destination_location_code,
            departure_date=request.departure_date,
            return_date=request.return_date,
            adults=request.adults,
            children=request.children,
            infants=request.infants,
            api_provider=request.api_provider,
            search_timestamp=datetime.now(timezone.utc),
            search_response=serialized,
        )
        try:
            async with self._session_factory() as session:
                session.add(record)
                await session.commit()
        except (SQLAlchemyError, OSError):
            logger.exception(
                "Failed to store search record for %s -> %s",
                request.origin_location_code,
                request.destination_location_code,
            )
            return
        logger.info("Stored search record id=%s", record.id)


def _to_summary(record: FlightSearch) -> FlightSearchSummary:
    return FlightSearchSummary(
        id=record.id,
        origin_location_code=record.origin_location_code,
        destination_location_code=record.destination_location_code,
        departure_date=record.departure_date,
        return_date=record.return_date,
        total_passengers=record.adults + record.children + record.infants,
        api_provider=record.api_provider,
        search_timestamp=ensure_timezone(record.search_timestamp),
        round_trip=is_round_trip(record.return_date),
        international_flight=is_international_flight(
            record.origin_location_code, record.destination_location_code
        ),
        succeeded=not (record.search_response or "").startswith(ERROR_PREFIX),
    )
