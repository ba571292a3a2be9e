"""Fare rules for flights, buses and own-car trips.

Every rule works in the configured currency (BRL by default) and returns a
total for all passengers, rounded to a "clean" denomination: 50 for flights
and cars, 10 for buses.  The order of the adjustments matters for the final
rounding and must not be changed.
"""

from __future__ import annotations

import math

from .models import (
    BusClass,
    FlightClass,
    InvalidInputError,
    check_passengers,
    coerce_enum,
)

# ── Flight ──────────────────────────────────────────────────────
FLIGHT_RATE_PER_KM = 0.40
FLIGHT_BUSINESS_MULTIPLIER = 2.5
FLIGHT_SHORT_HAUL_KM = 500
FLIGHT_SHORT_HAUL_SURCHARGE = 200
FLIGHT_LONG_HAUL_KM = 2000
FLIGHT_LONG_HAUL_FACTOR = 0.85
FLIGHT_HIGH_SEASON_FACTOR = 1.6
FLIGHT_GROUP_DISCOUNT_STEP = 0.05
FLIGHT_GROUP_DISCOUNT_MAX_EXTRA = 4
FLIGHT_ROUNDING = 50

# ── Bus ─────────────────────────────────────────────────────────
BUS_RATE_PER_KM = 0.15
BUS_SLEEPER_MULTIPLIER = 1.8
BUS_SHORT_TRIP_KM = 200
BUS_SHORT_TRIP_SURCHARGE = 50
BUS_HIGH_SEASON_FACTOR = 1.3
BUS_GROUP_MIN_PASSENGERS = 4
BUS_GROUP_FACTOR = 0.95
BUS_ROUNDING = 10

# ── Own car (round trip) ────────────────────────────────────────
CAR_KM_PER_LITRE = 10
CAR_FUEL_PRICE = 6.00
CAR_TOLL_PER_KM = 0.08
CAR_WEAR_PER_KM = 0.30
CAR_COMFORT_MIN_PASSENGERS = 4
CAR_COMFORT_FACTOR = 1.1
CAR_ROUNDING = 50


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves towards +infinity."""
    return int(math.floor(value + 0.5))


def round_to(value: float, step: int) -> int:
    """Round *value* to the nearest multiple of *step* (halves go up).

    Already rounded values are returned unchanged.
    """
    return round_half_up(value / step) * step


def _check_distance(distance_km: float) -> float:
    if distance_km is None or math.isnan(distance_km) or math.isinf(distance_km):
        raise InvalidInputError(f"distance must be a finite number: {distance_km!r}")
    if distance_km < 0:
        raise InvalidInputError(f"distance must be >= 0 (got {distance_km})")
    return distance_km


def flight_class_multiplier(flight_class: FlightClass | str) -> float:
    if coerce_enum(FlightClass, flight_class, "flight_class") is FlightClass.BUSINESS:
        return FLIGHT_BUSINESS_MULTIPLIER
    return 1.0


def bus_class_multiplier(bus_class: BusClass | str) -> float:
    if coerce_enum(BusClass, bus_class, "bus_class") is BusClass.SLEEPER:
        return BUS_SLEEPER_MULTIPLIER
    return 1.0


def price_flight(
    distance_km: float,
    flight_class: FlightClass | str,
    passengers: int,
    high_season: bool,
) -> int:
    _check_distance(distance_km)
    check_passengers(passengers)

    price_per_km = FLIGHT_RATE_PER_KM * flight_class_multiplier(flight_class)
    base = distance_km * price_per_km

    if distance_km < FLIGHT_SHORT_HAUL_KM:
        base += FLIGHT_SHORT_HAUL_SURCHARGE
    if distance_km > FLIGHT_LONG_HAUL_KM:
        base *= FLIGHT_LONG_HAUL_FACTOR
    if high_season:
        base *= FLIGHT_HIGH_SEASON_FACTOR

    # 5% off per extra passenger, at most four of them
    if passengers > 1:
        discount = (
            min(passengers - 1, FLIGHT_GROUP_DISCOUNT_MAX_EXTRA)
            * FLIGHT_GROUP_DISCOUNT_STEP
        )
        base *= 1 - discount

    return round_to(base * passengers, FLIGHT_ROUNDING)


def price_bus(
    distance_km: float,
    bus_class: BusClass | str,
    passengers: int,
    high_season: bool,
) -> int:
    _check_distance(distance_km)
    check_passengers(passengers)

    price_per_km = BUS_RATE_PER_KM * bus_class_multiplier(bus_class)
    base = distance_km * price_per_km

    if distance_km < BUS_SHORT_TRIP_KM:
        base += BUS_SHORT_TRIP_SURCHARGE
    if high_season:
        base *= BUS_HIGH_SEASON_FACTOR
    if passengers >= BUS_GROUP_MIN_PASSENGERS:
        base *= BUS_GROUP_FACTOR

    return round_to(base * passengers, BUS_ROUNDING)


def price_car(distance_km: float, passengers: int, high_season: bool = False) -> int:
    """Operating cost of driving there and back in one's own car.

    The total does not grow with passengers; above three people a comfort
    surcharge covers extra stops.  *high_season* is accepted for symmetry
    with the other rules and has no effect.
    """
    _check_distance(distance_km)
    check_passengers(passengers)

    round_trip_km = distance_km * 2
    fuel = (round_trip_km / CAR_KM_PER_LITRE) * CAR_FUEL_PRICE
    tolls = round_trip_km * CAR_TOLL_PER_KM
    wear = round_trip_km * CAR_WEAR_PER_KM

    total = fuel + tolls + wear
    if passengers >= CAR_COMFORT_MIN_PASSENGERS:
        total *= CAR_COMFORT_FACTOR

    return round_to(total, CAR_ROUNDING)


__all__ = [
    "bus_class_multiplier",
    "flight_class_multiplier",
    "price_bus",
    "price_car",
    "price_flight",
    "round_half_up",
    "round_to",
]
