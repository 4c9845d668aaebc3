"""Runtime configuration for the flight-booking service."""

from __future__ import annotations

import os
from dataclasses import dataclass


DEFAULT_DB_USER = "airport"
DEFAULT_DB_PASSWORD = "airport"
DEFAULT_DB_HOST = "localhost"
DEFAULT_DB_PORT = "5432"
DEFAULT_DB_NAME = "flight_booking"

DEFAULT_AMADEUS_BASE_URL = "https://test.api.amadeus.com"
DEFAULT_AMADEUS_TIMEOUT = "10"
DEFAULT_AMADEUS_MAX_RESULTS = "10"

DEFAULT_CONFIRM_LATENCY = "1.0"
DEFAULT_CANCEL_LATENCY = "0.5"
DEFAULT_CANCEL_FAILURE_RATE = "0.05"
DEFAULT_EXTERNAL_CALL_TIMEOUT = "5"

DEFAULT_LOG_LEVEL = "INFO"


def _build_default_dsn() -> str:
    user = os.getenv("DB_USER", DEFAULT_DB_USER)
    password = os.getenv("DB_PASSWORD", DEFAULT_DB_PASSWORD)
    host = os.getenv("DB_HOST", DEFAULT_DB_HOST)
    port = os.getenv("DB_PORT", DEFAULT_DB_PORT)
    name = os.getenv("DB_NAME", DEFAULT_DB_NAME)
    return f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{name}"


def get_database_dsn() -> str:
    """Return the database DSN configured via environment or defaults."""

    return os.getenv("DB_DSN", _build_default_dsn())


@dataclass(frozen=True)
class ProviderSettings:
    client_id: str
    client_secret: str
    base_url: str
    auth_url: str
    timeout: float
    max_results: int

    @property
    def flight_offers_url(self) -> str:
        return f"{self.base_url}/v2/shopping/flight-offers"


@dataclass(frozen=True)
class GatewaySettings:
    confirm_latency: float
    cancel_latency: float
    cancel_failure_rate: float
    call_timeout: float


@dataclass(frozen=True)
class Settings:
    database_dsn: str
    provider: ProviderSettings
    gateway: GatewaySettings
    log_level: str


def get_settings() -> Settings:
    """Read the current settings from the environment."""

    base_url = os.getenv("AMADEUS_BASE_URL", DEFAULT_AMADEUS_BASE_URL).rstrip("/")
    provider = ProviderSettings(
        client_id=os.getenv("AMADEUS_CLIENT_ID", ""),
        client_secret=os.getenv("AMADEUS_CLIENT_SECRET", ""),
        base_url=base_url,
        auth_url=os.getenv("AMADEUS_AUTH_URL", f"{base_url}/v1/security/oauth2/token"),
        timeout=float(os.getenv("AMADEUS_TIMEOUT", DEFAULT_AMADEUS_TIMEOUT)),
        max_results=int(os.getenv("AMADEUS_MAX_RESULTS", DEFAULT_AMADEUS_MAX_RESULTS)),
    )
    gateway = GatewaySettings(
        confirm_latency=float(os.getenv("BOOKING_CONFIRM_LATENCY", DEFAULT_CONFIRM_LATENCY)),
        cancel_latency=float(os.getenv("BOOKING_CANCEL_LATENCY", DEFAULT_CANCEL_LATENCY)),
        cancel_failure_rate=float(
            os.getenv("BOOKING_CANCEL_FAILURE_RATE", DEFAULT_CANCEL_FAILURE_RATE)
        ),
        call_timeout=float(os.getenv("EXTERNAL_CALL_TIMEOUT", DEFAULT_EXTERNAL_CALL_TIMEOUT)),
    )
    return Settings(
        database_dsn=get_database_dsn(),
        provider=provider,
        gateway=gateway,
        log_level=os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
    )
