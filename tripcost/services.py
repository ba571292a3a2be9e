"""Wire the estimation components from :class:`~tripcost.config.Settings`."""

from __future__ import annotations

from datetime import timedelta

from .aviasales_fetcher import AviasalesFetcher
from .budget import BudgetComposer
from .cache import SQLiteCache
from .config import Settings, get_settings
from .fallback import AccommodationEstimator, FlightPriceResolver
from .hotels_fetcher import HotellookFetcher
from .transport import TransportCalculator


def build_cache(cfg: Settings | None = None) -> SQLiteCache:
    cfg = cfg or get_settings()
    return SQLiteCache(cfg.db_path, ttl=timedelta(hours=cfg.cache_ttl_h))


def build_accommodation_estimator(
    cfg: Settings | None = None, cache: SQLiteCache | None = None, *, live: bool = True
) -> AccommodationEstimator:
    cfg = cfg or get_settings()
    client = None
    if live and cfg.tp_token:
        client = HotellookFetcher(
            cfg.tp_token, currency=cfg.currency, timeout=cfg.http_timeout_s
        )
    return AccommodationEstimator(
        client, cache if cache is not None else build_cache(cfg), retries=cfg.live_retries
    )


def build_composer(cfg: Settings | None = None, *, live: bool = True) -> BudgetComposer:
    cfg = cfg or get_settings()
    cache = build_cache(cfg)
    calculator = TransportCalculator(cache=cache)
    flight_client = None
    if live and cfg.tp_token:
        flight_client = AviasalesFetcher(
            cfg.tp_token, timeout=cfg.http_timeout_s
        )
    return BudgetComposer(
        calculator=calculator,
        accommodation=build_accommodation_estimator(cfg, cache, live=live),
        flights=FlightPriceResolver(flight_client, calculator, cache),
    )


__all__ = ["build_accommodation_estimator", "build_cache", "build_composer"]
