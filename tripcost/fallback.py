"""Live price → estimate fallback chains.

A failed live lookup is never surfaced to the caller: the chain degrades to
a heuristic estimate and records ``source="estimated"`` instead.

Accommodation follows three named states::

    TRY_LIVE ──ok──────────────▶ DONE (source=api)
        │
        └─fail/empty/timeout──▶ ESTIMATE ──▶ DONE (source=estimated)
"""

from __future__ import annotations

import logging
import random
from enum import Enum
from typing import Optional, Protocol

import requests

from .aviasales_fetcher import AviasalesFetcherError
from .cache import Cache, make_key
from .hotels_fetcher import HotelFetcherError
from .models import (
    AccommodationEstimate,
    FlightClass,
    FlightPrice,
    PriceSource,
    TransportRequest,
    TransportType,
)
from .pricing import FLIGHT_ROUNDING, round_half_up, round_to
from .transport import TransportCalculator

HOTEL_CACHE_PREFIX = "tp_hotels"
FLIGHT_CACHE_PREFIX = "tp_flights"

# (minimum flight price, nightly accommodation) – first match wins
HOTEL_PRICE_STEPS = (
    (3000, 550),
    (2000, 400),
    (1200, 280),
    (600, 200),
)
HOTEL_PRICE_FLOOR = 150
HOTEL_JITTER = 0.15
DAILY_EXPENSE_RATIO = 0.7

LIVE_ERRORS = (
    HotelFetcherError,
    AviasalesFetcherError,
    requests.RequestException,
)

logger = logging.getLogger(__name__)


class FallbackState(str, Enum):
    TRY_LIVE = "try_live"
    ESTIMATE = "estimate"
    DONE = "done"


class HotelPriceClient(Protocol):
    def average_nightly_price(self, city_code: str) -> Optional[int]:
        ...


class FlightPriceClient(Protocol):
    def cheapest_price(
        self, origin: str, destination: str, departure_at: str | None = None
    ) -> Optional[int]:
        ...


def hotel_base_price(flight_price: float) -> int:
    """Step-function nightly price for a destination reached by *flight_price*."""
    for threshold, nightly in HOTEL_PRICE_STEPS:
        if flight_price >= threshold:
            return nightly
    return HOTEL_PRICE_FLOOR


def estimate_hotel_price_from_flight(
    flight_price: float, rng: random.Random | None = None
) -> int:
    """Estimate a nightly hotel price from the flight price to the destination.

    Destinations with pricier flights tend to have pricier stays.  A small
    jitter keeps similar flights from producing identical estimates; the
    result never leaves ±15% of :func:`hotel_base_price`.
    """
    rng = rng or random
    base = hotel_base_price(flight_price)
    variation = base * HOTEL_JITTER * (rng.random() - 0.5)
    estimate = round_half_up(base + variation)
    logger.debug("Hotel estimate from flight %s: %s/night", flight_price, estimate)
    return estimate


def estimate_daily_expenses(accommodation: float) -> int:
    """Food, local transport and extras: 70% of the nightly accommodation."""
    return round_half_up(accommodation * DAILY_EXPENSE_RATIO)


class AccommodationEstimator:
    """Nightly accommodation for a destination, live when possible."""

    def __init__(
        self,
        client: Optional[HotelPriceClient] = None,
        cache: Optional[Cache] = None,
        *,
        rng: random.Random | None = None,
        retries: int = 1,
    ) -> None:
        if retries < 1:
            raise ValueError("retries must be >= 1")
        self.client = client
        self.cache = cache
        self.rng = rng or random.Random()
        self.retries = retries

    # ──────────────────────────────────────────────────────────

    def get_accommodation_price(
        self, destination_code: str | None, flight_price: float
    ) -> AccommodationEstimate:
        key = None
        if destination_code and self.cache is not None:
            key = make_key(HOTEL_CACHE_PREFIX, destination_code.upper())
            entry = self.cache.get(key)
            if entry is not None:
                logger.info(
                    "Hotel cache hit: %s = %s/night (%s)",
                    destination_code,
                    entry.value["accommodation"],
                    entry.source.value,
                )
                return self._finish(entry.value["accommodation"], entry.source)

        state = FallbackState.TRY_LIVE
        accommodation: Optional[int] = None
        source = PriceSource.ESTIMATED

        while state is not FallbackState.DONE:
            if state is FallbackState.TRY_LIVE:
                accommodation = self._try_live(destination_code)
                if accommodation is not None:
                    source = PriceSource.API
                    state = FallbackState.DONE
                else:
                    logger.warning(
                        "No live hotel price for %s, estimating from flight price %s",
                        destination_code or "<unknown>",
                        flight_price,
                    )
                    state = FallbackState.ESTIMATE
            elif state is FallbackState.ESTIMATE:
                accommodation = estimate_hotel_price_from_flight(flight_price, self.rng)
                source = PriceSource.ESTIMATED
                state = FallbackState.DONE

        if key is not None:
            self.cache.put(key, {"accommodation": accommodation}, source)
            logger.info(
                "Cached %s = %s/night (%s)", key, accommodation, source.value
            )
        return self._finish(accommodation, source)

    def _try_live(self, destination_code: str | None) -> Optional[int]:
        if not destination_code or self.client is None:
            return None
        for attempt in range(1, self.retries + 1):
            try:
                price = self.client.average_nightly_price(destination_code)
            except LIVE_ERRORS as exc:
                logger.warning(
                    "Hotel lookup for %s failed (attempt %d/%d): %s",
                    destination_code,
                    attempt,
                    self.retries,
                    exc,
                )
                continue
            if price is None or price <= 0:
                return None
            return price
        return None

    @staticmethod
    def _finish(accommodation: int, source: PriceSource) -> AccommodationEstimate:
        return AccommodationEstimate(
            accommodation=accommodation,
            daily_expenses=estimate_daily_expenses(accommodation),
            source=source,
        )


class FlightPriceResolver:
    """API fare → distance-based estimate → generic-distance estimate."""

    def __init__(
        self,
        client: Optional[FlightPriceClient] = None,
        calculator: TransportCalculator | None = None,
        cache: Optional[Cache] = None,
    ) -> None:
        self.client = client
        self.calculator = calculator or TransportCalculator()
        self.cache = cache

    def resolve(
        self,
        request: TransportRequest,
        origin_code: str | None = None,
        destination_code: str | None = None,
    ) -> FlightPrice:
        if self._live_eligible(request, origin_code, destination_code):
            live = self._live_price(request, origin_code, destination_code)
            if live is not None:
                return live

        quote = self.calculator.calculate(request)
        return FlightPrice(
            amount=quote.total_cost,
            source=PriceSource.ESTIMATED,
            distance_km=quote.distance_km,
        )

    def _live_eligible(
        self,
        request: TransportRequest,
        origin_code: str | None,
        destination_code: str | None,
    ) -> bool:
        # live fares are economy one-way quotes
        return (
            self.client is not None
            and bool(origin_code and destination_code)
            and request.mode is TransportType.FLIGHT
            and request.flight_class is FlightClass.ECONOMY
        )

    def _live_price(
        self, request: TransportRequest, origin_code: str, destination_code: str
    ) -> Optional[FlightPrice]:
        departure = request.travel_date.isoformat()
        key = make_key(
            FLIGHT_CACHE_PREFIX,
            origin_code.upper(),
            destination_code.upper(),
            departure,
        )
        per_person: Optional[int] = None
        if self.cache is not None:
            entry = self.cache.get(key)
            if entry is not None:
                per_person = entry.value["price"]

        if per_person is None:
            try:
                per_person = self.client.cheapest_price(
                    origin_code, destination_code, departure
                )
            except LIVE_ERRORS as exc:
                logger.warning(
                    "Flight lookup %s-%s failed: %s", origin_code, destination_code, exc
                )
                return None
            if per_person is None or per_person <= 0:
                return None
            if self.cache is not None:
                self.cache.put(key, {"price": per_person}, PriceSource.API)

        return FlightPrice(
            amount=round_to(per_person * request.passenger_count, FLIGHT_ROUNDING),
            source=PriceSource.API,
        )


__all__ = [
    "AccommodationEstimator",
    "FallbackState",
    "FlightPriceResolver",
    "estimate_daily_expenses",
    "estimate_hotel_price_from_flight",
    "hotel_base_price",
]
