from __future__ import annotations

import logging
import tempfile
from dataclasses import dataclass, replace
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Dict, Optional, Tuple, Union

import pandas as pd

from .fallback import AccommodationEstimator, FlightPriceResolver
from .models import (
    BudgetLevel,
    BudgetRecommendation,
    BudgetTier,
    BusClass,
    FlightClass,
    InvalidInputError,
    PriceSource,
    TransportQuote,
    TransportType,
    TripParams,
    parse_date,
)
from .pricing import round_half_up
from .transport import TransportCalculator

logger = logging.getLogger(__name__)

# Cost-of-living index per destination, São Paulo = 100
COST_INDEXES: Dict[str, float] = {
    "São Paulo": 100,
    "Rio de Janeiro": 95,
    "Brasília": 90,
    "Belo Horizonte": 75,
    "Salvador": 70,
    "Fortaleza": 65,
    "Recife": 68,
    "Porto Alegre": 85,
    "Curitiba": 82,
    "Florianópolis": 88,
    "Natal": 67,
    "João Pessoa": 66,
    "Maceió": 69,
    "São Luís": 64,
    "Manaus": 72,
    "Belém": 68,
    "Foz do Iguaçu": 73,
    "Gramado": 90,
}
DEFAULT_COST_INDEX = 70.0

# Reference prices at index 100
REFERENCE_PRICES: Dict[str, float] = {
    "meal_inexpensive": 25,
    "meal_mid": 60,
    "meal_expensive": 120,
    "local_transport": 4.5,
    "taxi_per_km": 2.5,
    "hotel_budget": 120,
    "hotel_mid": 280,
    "hotel_luxury": 550,
    "attraction": 40,
}
CENT = Decimal("0.01")

# Fare uplift per tier when flights are priced by tier (bags, then executive)
TIER_FARE_MULTIPLIERS: Dict[BudgetLevel, float] = {
    BudgetLevel.ECONOMY: 1.0,
    BudgetLevel.MEDIUM: 1.3,
    BudgetLevel.COMFORT: 1.8,
}


@dataclass(slots=True, frozen=True)
class CostProfile:
    index: float
    meal_inexpensive: float
    meal_mid: float
    meal_expensive: float
    local_transport: float
    taxi_per_km: float
    hotel_budget: float
    hotel_mid: float
    hotel_luxury: float
    attraction: float


def cost_index_for(city: str) -> float:
    return float(COST_INDEXES.get(city, DEFAULT_COST_INDEX))


def cost_profile(index: float) -> CostProfile:
    """Scale the reference prices by a cost-of-living *index*."""
    if index <= 0:
        raise InvalidInputError(f"cost index must be > 0 (got {index})")
    scale = Decimal(str(index)) / 100
    scaled = {
        name: float(
            (Decimal(str(price)) * scale).quantize(CENT, rounding=ROUND_HALF_UP)
        )
        for name, price in REFERENCE_PRICES.items()
    }
    return CostProfile(index=index, **scaled)


def trip_days(start: date | str, end: date | str) -> int:
    """Number of days between two calendar dates, at least one."""
    start_d = parse_date(start, "start_date")
    end_d = parse_date(end, "end_date")
    if end_d < start_d:
        raise InvalidInputError(f"end_date {end_d} is before start_date {start_d}")
    return max((end_d - start_d).days, 1)


# ────────────────────────────────────────────────────────────────
# Tier rules: (accommodation, food, local transport, activities) per day
# ────────────────────────────────────────────────────────────────

DailyCosts = Tuple[float, float, float, float]


def _economy(p: CostProfile) -> DailyCosts:
    return (
        p.hotel_budget,
        p.meal_inexpensive * 3,
        p.local_transport * 4,
        p.attraction * 2,
    )


def _medium(p: CostProfile) -> DailyCosts:
    return (
        p.hotel_mid,
        p.meal_mid * 3,
        p.local_transport * 2 + p.taxi_per_km * 10,
        p.attraction * 3,
    )


def _comfort(p: CostProfile) -> DailyCosts:
    return (
        p.hotel_luxury,
        p.meal_expensive * 3,
        p.taxi_per_km * 20,
        p.attraction * 4 * 1.5,
    )


TIER_RULES: Dict[BudgetLevel, Callable[[CostProfile], DailyCosts]] = {
    BudgetLevel.ECONOMY: _economy,
    BudgetLevel.MEDIUM: _medium,
    BudgetLevel.COMFORT: _comfort,
}


def build_tier(
    level: BudgetLevel, profile: CostProfile, quote: TransportQuote, days: int
) -> BudgetTier:
    accommodation, food, local, activities = TIER_RULES[level](profile)
    daily_total = accommodation + food + local + activities
    return BudgetTier(
        level=level,
        daily_accommodation=round(accommodation, 2),
        daily_food=round(food, 2),
        daily_local_transport=round(local, 2),
        daily_activities=round(activities, 2),
        transport_quote=quote,
        trip_days=days,
        total_estimate=round_half_up(daily_total * days + quote.total_cost),
        daily_average=round_half_up(daily_total),
    )


def scale_quote(
    quote: TransportQuote, factor: float, passengers: int
) -> TransportQuote:
    """Return *quote* with its fare multiplied by *factor*."""
    if factor == 1.0:
        return quote
    total = round_half_up(quote.total_cost * factor)
    return replace(
        quote,
        total_cost=total,
        cost_per_person=round_half_up(total / passengers),
        breakdown=replace(
            quote.breakdown,
            class_multiplier=quote.breakdown.class_multiplier * factor,
            total_cost=total,
        ),
    )


class BudgetComposer:
    """Economy / medium / comfort budgets for one trip."""

    def __init__(
        self,
        calculator: TransportCalculator | None = None,
        accommodation: AccommodationEstimator | None = None,
        flights: FlightPriceResolver | None = None,
    ) -> None:
        self.calculator = calculator or TransportCalculator()
        self.accommodation = accommodation
        self.flights = flights

    def compose_budget(self, params: TripParams) -> BudgetRecommendation:
        days = trip_days(params.start_date, params.end_date)
        logger.info(
            "Composing budget %s → %s, %d day(s), %d passenger(s), %s",
            params.origin_city,
            params.destination_city,
            days,
            params.passenger_count,
            params.mode.value,
        )

        shared_quote = self.calculator.calculate(params.transport_request())
        comfort_quote = shared_quote
        if params.tiered_transport and params.mode is not TransportType.CAR:
            comfort_quote = self.calculator.calculate(
                params.transport_request(
                    flight_class=FlightClass.BUSINESS, bus_class=BusClass.SLEEPER
                )
            )

        index, source = self._destination_index(params)
        profile = cost_profile(index)

        quotes = {
            BudgetLevel.ECONOMY: shared_quote,
            BudgetLevel.MEDIUM: shared_quote,
            BudgetLevel.COMFORT: comfort_quote,
        }
        if params.tier_fare_multipliers and params.mode is TransportType.FLIGHT:
            quotes = {
                level: scale_quote(shared_quote, factor, params.passenger_count)
                for level, factor in TIER_FARE_MULTIPLIERS.items()
            }
        tiers = {
            level: build_tier(level, profile, quotes[level], days)
            for level in BudgetLevel
        }
        return BudgetRecommendation(
            economy=tiers[BudgetLevel.ECONOMY],
            medium=tiers[BudgetLevel.MEDIUM],
            comfort=tiers[BudgetLevel.COMFORT],
            accommodation_source=source,
        )

    def _destination_index(
        self, params: TripParams
    ) -> Tuple[float, Optional[PriceSource]]:
        """Cost index for the destination.

        With an accommodation estimator and a destination code, the index is
        rescaled so the mid-range hotel matches the nightly estimate.
        """
        if self.accommodation is None or not params.destination_code:
            return cost_index_for(params.destination_city), None

        flight_price = self._reference_flight_price(params)
        estimate = self.accommodation.get_accommodation_price(
            params.destination_code, flight_price
        )
        index = estimate.accommodation / REFERENCE_PRICES["hotel_mid"] * 100
        logger.info(
            "Destination index for %s from %s accommodation %s: %.1f",
            params.destination_code,
            estimate.source.value,
            estimate.accommodation,
            index,
        )
        return index, estimate.source

    def _reference_flight_price(self, params: TripParams) -> int:
        """Economy one-passenger fare used to estimate stays."""
        request = TripParams(
            origin_city=params.origin_city,
            destination_city=params.destination_city,
            start_date=params.start_date,
            end_date=params.end_date,
        ).transport_request()
        if self.flights is not None:
            return self.flights.resolve(
                request, params.origin_code, params.destination_code
            ).amount
        return self.calculator.calculate(request).total_cost


def compose_budget(
    params: TripParams, *, composer: BudgetComposer | None = None
) -> BudgetRecommendation:
    """Compose the three budget tiers for *params*."""
    return (composer or BudgetComposer()).compose_budget(params)


def recommendation_frame(
    rec: BudgetRecommendation, *, output: Optional[str] = None
) -> Union[pd.DataFrame, str]:
    """Tabulate a recommendation, one row per tier.

    Parameters
    ----------
    rec:
        The recommendation to tabulate.
    output:
        ``None``  – return the ``pandas.DataFrame`` (default).
        ``"csv"`` – write it to a temporary CSV and return the path.
    """
    rows = []
    for tier in rec.tiers:
        rows.append(
            {
                "level": tier.level.value,
                "daily_accommodation": tier.daily_accommodation,
                "daily_food": tier.daily_food,
                "daily_local_transport": tier.daily_local_transport,
                "daily_activities": tier.daily_activities,
                "daily_average": tier.daily_average,
                "trip_days": tier.trip_days,
                "transport": tier.transport_quote.total_cost,
                "total_estimate": tier.total_estimate,
            }
        )
    df = pd.DataFrame(rows)
    if output == "csv":
        tmp = tempfile.NamedTemporaryFile(delete=False, suffix=".csv")
        tmp.close()
        df.to_csv(tmp.name, index=False)
        return tmp.name
    return df


__all__ = [
    "BudgetComposer",
    "COST_INDEXES",
    "CostProfile",
    "DEFAULT_COST_INDEX",
    "TIER_FARE_MULTIPLIERS",
    "compose_budget",
    "cost_index_for",
    "cost_profile",
    "recommendation_frame",
    "scale_quote",
    "trip_days",
]
