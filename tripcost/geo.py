"""City coordinates and great-circle distances."""

from __future__ import annotations

import json
import logging
import math
import pathlib
from functools import lru_cache
from types import MappingProxyType
from typing import Iterator, Mapping

from .models import CityLocation

DATA_FILE = pathlib.Path(__file__).resolve().parent / "data" / "cities.json"

EARTH_RADIUS_KM = 6371.0
# Used by the transport calculator when a city is missing from the table
GENERIC_DISTANCE_KM = 2000.0

logger = logging.getLogger(__name__)


class UnresolvedLocationError(LookupError):
    """City name is not present in the coordinate table."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown city: {name!r}")
        self.name = name


class CityTable(Mapping[str, CityLocation]):
    """Immutable name → :class:`CityLocation` lookup."""

    def __init__(self, cities: Mapping[str, CityLocation], version: int = 0) -> None:
        self._cities = MappingProxyType(dict(cities))
        self.version = version

    def __getitem__(self, name: str) -> CityLocation:
        return self._cities[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._cities)

    def __len__(self) -> int:
        return len(self._cities)

    def locate(self, name: str) -> CityLocation:
        """Exact-match lookup; raise :class:`UnresolvedLocationError` if absent."""
        try:
            return self._cities[name]
        except KeyError:
            raise UnresolvedLocationError(name) from None

    def names(self) -> list[str]:
        return sorted(self._cities)


def load_city_table(path: str | pathlib.Path | None = None) -> CityTable:
    """Load a city dataset from JSON (``{"version": n, "cities": [...]}``)."""
    path = pathlib.Path(path) if path else DATA_FILE
    with open(path, "r", encoding="utf-8") as fh:
        payload = json.load(fh)

    cities: dict[str, CityLocation] = {}
    for item in payload.get("cities", []):
        loc = CityLocation(
            name=item["name"],
            latitude=float(item["latitude"]),
            longitude=float(item["longitude"]),
            region=item.get("region", ""),
        )
        if loc.name in cities:
            raise ValueError(f"Duplicate city in {path}: {loc.name}")
        cities[loc.name] = loc

    version = int(payload.get("version", 0))
    logger.info("Loaded %d cities from %s (v%s)", len(cities), path, version)
    return CityTable(cities, version=version)


@lru_cache(maxsize=1)
def default_city_table() -> CityTable:
    """Return the packaged city table, loaded once per process."""
    return load_city_table()


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    d_lat = (lat2 - lat1) * math.pi / 180
    d_lon = (lon2 - lon1) * math.pi / 180
    a = (
        math.sin(d_lat / 2) * math.sin(d_lat / 2)
        + math.cos(lat1 * math.pi / 180)
        * math.cos(lat2 * math.pi / 180)
        * math.sin(d_lon / 2)
        * math.sin(d_lon / 2)
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def resolve_distance(
    city_a: str, city_b: str, table: CityTable | None = None
) -> float:
    """Great-circle distance in km between two named cities.

    Raises :class:`UnresolvedLocationError` when either name is unknown;
    callers decide whether to fall back to :data:`GENERIC_DISTANCE_KM`.
    """
    table = table if table is not None else default_city_table()
    a = table.locate(city_a)
    b = table.locate(city_b)
    return haversine_km(a.latitude, a.longitude, b.latitude, b.longitude)


def available_cities(table: CityTable | None = None) -> list[str]:
    table = table if table is not None else default_city_table()
    return table.names()


__all__ = [
    "CityTable",
    "EARTH_RADIUS_KM",
    "GENERIC_DISTANCE_KM",
    "UnresolvedLocationError",
    "available_cities",
    "default_city_table",
    "haversine_km",
    "load_city_table",
    "resolve_distance",
]
