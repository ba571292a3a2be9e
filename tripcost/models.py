"""Data models used throughout the project."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional


class InvalidInputError(ValueError):
    """Caller supplied input that violates the pricing contract."""


class TransportType(str, Enum):
    FLIGHT = "flight"
    BUS = "bus"
    CAR = "car"


class FlightClass(str, Enum):
    ECONOMY = "economy"
    BUSINESS = "business"


class BusClass(str, Enum):
    CONVENTIONAL = "conventional"
    SLEEPER = "sleeper"


class BudgetLevel(str, Enum):
    ECONOMY = "economy"
    MEDIUM = "medium"
    COMFORT = "comfort"


class PriceSource(str, Enum):
    API = "api"
    ESTIMATED = "estimated"


def coerce_enum(enum_cls, value, name: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise InvalidInputError(
            f"{name} must be one of: {allowed} (got {value!r})"
        ) from None


def parse_date(value: date | str, name: str = "date") -> date:
    """Return *value* as a calendar date, accepting ISO ``YYYY-MM-DD``."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise InvalidInputError(f"{name} is not a valid date: {value!r}") from None


def check_passengers(count: int) -> int:
    if isinstance(count, bool) or not isinstance(count, int):
        raise InvalidInputError(f"passenger count must be an integer: {count!r}")
    if count < 1:
        raise InvalidInputError(f"passenger count must be >= 1 (got {count})")
    return count


@dataclass(slots=True, frozen=True)
class CityLocation:
    name: str
    latitude: float
    longitude: float
    region: str


@dataclass(slots=True, frozen=True)
class TransportRequest:
    origin_city: str
    destination_city: str
    mode: TransportType
    travel_date: date
    passenger_count: int = 1
    flight_class: FlightClass = FlightClass.ECONOMY
    bus_class: BusClass = BusClass.CONVENTIONAL

    def __post_init__(self) -> None:
        # frozen dataclass: normalise through object.__setattr__
        object.__setattr__(
            self, "mode", coerce_enum(TransportType, self.mode, "mode")
        )
        object.__setattr__(
            self,
            "flight_class",
            coerce_enum(
                FlightClass, self.flight_class or FlightClass.ECONOMY, "flight_class"
            ),
        )
        object.__setattr__(
            self,
            "bus_class",
            coerce_enum(
                BusClass, self.bus_class or BusClass.CONVENTIONAL, "bus_class"
            ),
        )
        object.__setattr__(
            self, "travel_date", parse_date(self.travel_date, "travel_date")
        )
        check_passengers(self.passenger_count)
        if not self.origin_city or not self.destination_city:
            raise InvalidInputError("origin and destination are required")


@dataclass(slots=True, frozen=True)
class CostBreakdown:
    base_cost: float
    seasonal_adjustment: float
    class_multiplier: float
    total_cost: int


@dataclass(slots=True, frozen=True)
class TransportQuote:
    distance_km: float
    total_cost: int
    cost_per_person: int
    is_high_season: bool
    breakdown: CostBreakdown
    distance_resolved: bool = True


@dataclass(slots=True, frozen=True)
class CacheEntry:
    key: str
    value: Any
    cached_at: datetime
    source: PriceSource


@dataclass(slots=True, frozen=True)
class AccommodationEstimate:
    accommodation: int
    daily_expenses: int
    source: PriceSource


@dataclass(slots=True, frozen=True)
class FlightOffer:
    origin: str
    destination: str
    depart_date: date
    price: int


@dataclass(slots=True, frozen=True)
class FlightPrice:
    amount: int
    source: PriceSource
    distance_km: Optional[float] = None


@dataclass(slots=True, frozen=True)
class TripParams:
    origin_city: str
    destination_city: str
    start_date: date
    end_date: date
    mode: TransportType = TransportType.FLIGHT
    passenger_count: int = 1
    flight_class: FlightClass = FlightClass.ECONOMY
    bus_class: BusClass = BusClass.CONVENTIONAL
    destination_code: Optional[str] = None
    origin_code: Optional[str] = None
    tiered_transport: bool = False
    tier_fare_multipliers: bool = False

    def __post_init__(self) -> None:
        if self.tiered_transport and self.tier_fare_multipliers:
            raise InvalidInputError(
                "tiered_transport and tier_fare_multipliers are exclusive"
            )
        start = parse_date(self.start_date, "start_date")
        end = parse_date(self.end_date, "end_date")
        if end < start:
            raise InvalidInputError(
                f"end_date {end} is before start_date {start}"
            )
        object.__setattr__(self, "start_date", start)
        object.__setattr__(self, "end_date", end)
        object.__setattr__(
            self, "mode", coerce_enum(TransportType, self.mode, "mode")
        )
        for name in ("destination_code", "origin_code"):
            code = getattr(self, name)
            if code:
                object.__setattr__(self, name, code.strip().upper())
        check_passengers(self.passenger_count)

    def transport_request(
        self,
        flight_class: FlightClass | None = None,
        bus_class: BusClass | None = None,
    ) -> TransportRequest:
        return TransportRequest(
            origin_city=self.origin_city,
            destination_city=self.destination_city,
            mode=self.mode,
            travel_date=self.start_date,
            passenger_count=self.passenger_count,
            flight_class=flight_class or self.flight_class,
            bus_class=bus_class or self.bus_class,
        )


@dataclass(slots=True, frozen=True)
class BudgetTier:
    level: BudgetLevel
    daily_accommodation: float
    daily_food: float
    daily_local_transport: float
    daily_activities: float
    transport_quote: TransportQuote
    trip_days: int
    total_estimate: int
    daily_average: int


@dataclass(slots=True, frozen=True)
class BudgetRecommendation:
    economy: BudgetTier
    medium: BudgetTier
    comfort: BudgetTier
    accommodation_source: Optional[PriceSource] = None

    @property
    def tiers(self) -> tuple[BudgetTier, BudgetTier, BudgetTier]:
        return (self.economy, self.medium, self.comfort)
