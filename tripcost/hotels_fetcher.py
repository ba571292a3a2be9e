from __future__ import annotations

import datetime as dt
import logging
import os
from typing import Optional

import pandas as pd
import requests
from dotenv import load_dotenv

from .pricing import round_half_up

load_dotenv()

logger = logging.getLogger(__name__)

# Quotes outside this range are treated as junk
MIN_VALID_PRICE = 0
MAX_VALID_PRICE = 10_000

DEFAULT_CHECK_IN_DAYS = 30
DEFAULT_NIGHTS = 2


class HotelFetcherError(RuntimeError):
    """Failed to talk to the Hotellook API."""


class HotellookFetcher:
    """
    Client for the Hotellook cache API (Travelpayouts hotels data).
    """

    def __init__(
        self,
        token: str | None = None,
        base_url: str = "https://engine.hotellook.com/api/v2",
        *,
        currency: str = "BRL",
        timeout: float = 15,
    ) -> None:
        self.token = token or os.getenv("TP_TOKEN", "")
        self.base_url = base_url.rstrip("/")
        self.currency = currency
        self.timeout = timeout

    # ──────────────────────────────────────────────────────────

    def search_prices(
        self,
        city_code: str,
        check_in: dt.date,
        check_out: dt.date,
        *,
        limit: int = 50,
    ) -> list[float]:
        """Return raw stay prices (whole stay, not per night) for a city."""
        url = (
            f"{self.base_url}/cache.json?"
            f"location={city_code}&checkIn={check_in.isoformat()}"
            f"&checkOut={check_out.isoformat()}&currency={self.currency.lower()}"
            f"&limit={limit}&token={self.token}"
        )

        logger.info(
            "Querying hotel prices for %s (%s – %s)", city_code, check_in, check_out
        )
        resp = requests.get(
            url, timeout=self.timeout, headers={"Accept-Encoding": "gzip"}
        )
        if resp.status_code != 200:
            raise HotelFetcherError(
                f"HTTP {resp.status_code} – {resp.text[:120]}"
            )

        try:
            data = resp.json()
        except ValueError as exc:
            raise HotelFetcherError(f"Malformed response: {exc}") from exc
        if not isinstance(data, list):
            raise HotelFetcherError(f"Unexpected payload type: {type(data).__name__}")

        prices = [self._to_price(item) for item in data]
        return [p for p in prices if p is not None]

    def average_nightly_price(
        self,
        city_code: str,
        check_in: Optional[dt.date] = None,
        check_out: Optional[dt.date] = None,
    ) -> Optional[int]:
        """Interquartile mean of stay prices divided by the number of nights.

        Returns ``None`` when the API has no usable prices for *city_code*.
        """
        today = dt.date.today()
        check_in = check_in or today + dt.timedelta(days=DEFAULT_CHECK_IN_DAYS)
        check_out = check_out or check_in + dt.timedelta(days=DEFAULT_NIGHTS)
        nights = max((check_out - check_in).days, 1)

        prices = self.search_prices(city_code, check_in, check_out)
        if not prices:
            logger.warning("No valid hotel prices for %s", city_code)
            return None

        series = pd.Series(prices, dtype="float64").sort_values(ignore_index=True)
        q1 = int(len(series) * 0.25)
        q3 = int(len(series) * 0.75)
        trimmed = series.iloc[q1:q3]
        if trimmed.empty:
            trimmed = series

        per_night = round_half_up(trimmed.mean() / nights)
        logger.info(
            "Average hotel price for %s: %s/night (%d prices)",
            city_code,
            per_night,
            len(series),
        )
        return per_night

    @staticmethod
    def _to_price(item: dict) -> Optional[float]:
        """Map one hotel record to its stay price; ``None`` if unusable."""
        if not isinstance(item, dict):
            return None
        raw = item.get("priceAvg") or item.get("minPriceTotal")
        try:
            price = float(raw)
        except (TypeError, ValueError):
            return None
        if not MIN_VALID_PRICE < price < MAX_VALID_PRICE:
            return None
        return price


__all__ = ["HotelFetcherError", "HotellookFetcher"]
