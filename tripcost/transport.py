from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Optional

from . import pricing
from .cache import Cache, make_key
from .geo import (
    GENERIC_DISTANCE_KM,
    CityTable,
    UnresolvedLocationError,
    default_city_table,
    resolve_distance,
)
from .models import (
    CostBreakdown,
    PriceSource,
    TransportQuote,
    TransportRequest,
    TransportType,
)
from .seasonality import is_high_season, season_bucket

CACHE_PREFIX = "transport"

# Share of the off-season base cost reported as the seasonal adjustment
SEASONAL_ADJUSTMENT = {
    TransportType.FLIGHT: 0.6,
    TransportType.BUS: 0.3,
    TransportType.CAR: 0.0,
}

logger = logging.getLogger(__name__)


def quote_to_dict(quote: TransportQuote) -> dict:
    return asdict(quote)


def quote_from_dict(data: dict) -> TransportQuote:
    return TransportQuote(
        distance_km=data["distance_km"],
        total_cost=data["total_cost"],
        cost_per_person=data["cost_per_person"],
        is_high_season=data["is_high_season"],
        breakdown=CostBreakdown(**data["breakdown"]),
        distance_resolved=data.get("distance_resolved", True),
    )


class TransportCalculator:
    """Distance → season → fare rules, with an optional quote cache."""

    def __init__(
        self, table: CityTable | None = None, cache: Optional[Cache] = None
    ) -> None:
        self.table = table if table is not None else default_city_table()
        self.cache = cache

    # ──────────────────────────────────────────────────────────

    def cache_key(self, request: TransportRequest) -> str:
        if request.mode is TransportType.FLIGHT:
            travel_class = request.flight_class
        elif request.mode is TransportType.BUS:
            travel_class = request.bus_class
        else:
            travel_class = None
        return make_key(
            CACHE_PREFIX,
            request.origin_city,
            request.destination_city,
            request.mode,
            travel_class,
            request.passenger_count,
            season_bucket(request.travel_date),
        )

    def calculate(self, request: TransportRequest) -> TransportQuote:
        key = None
        if self.cache is not None:
            key = self.cache_key(request)
            entry = self.cache.get(key)
            if entry is not None:
                logger.debug("Transport cache hit: %s", key)
                return quote_from_dict(entry.value)

        quote = self._compute(request)

        if self.cache is not None:
            self.cache.put(key, quote_to_dict(quote), PriceSource.ESTIMATED)
        return quote

    def _compute(self, request: TransportRequest) -> TransportQuote:
        try:
            distance = resolve_distance(
                request.origin_city, request.destination_city, self.table
            )
            resolved = True
        except UnresolvedLocationError as exc:
            logger.info(
                "%s; using generic distance of %.0f km",
                exc,
                GENERIC_DISTANCE_KM,
            )
            distance = GENERIC_DISTANCE_KM
            resolved = False

        high_season = is_high_season(request.travel_date)
        cost, base_cost, class_multiplier = self._price(request, distance, high_season)
        seasonal_adjustment = (
            base_cost * SEASONAL_ADJUSTMENT[request.mode] if high_season else 0.0
        )

        return TransportQuote(
            distance_km=float(pricing.round_half_up(distance)) if resolved else distance,
            total_cost=cost,
            cost_per_person=pricing.round_half_up(cost / request.passenger_count),
            is_high_season=high_season,
            breakdown=CostBreakdown(
                base_cost=base_cost,
                seasonal_adjustment=seasonal_adjustment,
                class_multiplier=class_multiplier,
                total_cost=cost,
            ),
            distance_resolved=resolved,
        )

    @staticmethod
    def _price(
        request: TransportRequest, distance: float, high_season: bool
    ) -> tuple[int, int, float]:
        """Return ``(cost, off_season_cost, class_multiplier)``."""
        n = request.passenger_count
        if request.mode is TransportType.FLIGHT:
            fc = request.flight_class
            return (
                pricing.price_flight(distance, fc, n, high_season),
                pricing.price_flight(distance, fc, n, False),
                pricing.flight_class_multiplier(fc),
            )
        if request.mode is TransportType.BUS:
            bc = request.bus_class
            return (
                pricing.price_bus(distance, bc, n, high_season),
                pricing.price_bus(distance, bc, n, False),
                pricing.bus_class_multiplier(bc),
            )
        return (
            pricing.price_car(distance, n, high_season),
            pricing.price_car(distance, n, False),
            1.0,
        )


def calculate_transport_cost(
    request: TransportRequest,
    *,
    table: CityTable | None = None,
    cache: Optional[Cache] = None,
) -> TransportQuote:
    """Price a trip between two cities for the requested mode and class."""
    return TransportCalculator(table=table, cache=cache).calculate(request)


__all__ = [
    "TransportCalculator",
    "calculate_transport_cost",
    "quote_from_dict",
    "quote_to_dict",
]
