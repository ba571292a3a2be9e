from __future__ import annotations

import datetime as dt
import logging
import os
from decimal import Decimal, InvalidOperation
from typing import Optional

import requests
from dotenv import load_dotenv

from .models import FlightOffer
from .pricing import round_half_up

load_dotenv()

logger = logging.getLogger(__name__)


class AviasalesFetcherError(RuntimeError):
    """Failed to talk to the Travelpayouts flight API."""


class AviasalesFetcher:
    """
    One-way fare lookups against Flight Data API v3 (the */aviasales/v3* path).
    """

    def __init__(
        self,
        token: str | None = None,
        base_url: str = "https://api.travelpayouts.com/aviasales/v3",
        *,
        timeout: float = 15,
    ) -> None:
        self.token = token or os.getenv("TP_TOKEN", "")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    # ──────────────────────────────────────────────────────────

    def search_prices(
        self,
        origin: str,
        destination: str,
        departure_at: str | None = None,
        *,
        currency: str = "brl",
        limit: int = 30,
    ) -> list[FlightOffer]:
        """Return one-way offers for a route, cheapest first."""
        url = (
            f"{self.base_url}/prices_for_dates?"
            f"origin={origin}&destination={destination}&currency={currency.lower()}"
            f"&token={self.token}"
        )
        if departure_at:
            url += f"&departure_at={departure_at}"
        url += f"&limit={limit}&one_way=true&sorting=price"

        resp = requests.get(
            url, timeout=self.timeout, headers={"Accept-Encoding": "gzip"}
        )
        if resp.status_code != 200:
            raise AviasalesFetcherError(
                f"HTTP {resp.status_code} – {resp.text[:120]}"
            )

        try:
            data = resp.json()
        except ValueError as exc:
            raise AviasalesFetcherError(f"Malformed response: {exc}") from exc
        if not isinstance(data, dict) or not data.get("success"):
            error = data.get("error") if isinstance(data, dict) else data
            raise AviasalesFetcherError(f"API error: {error}")

        offers = [self._to_offer(item) for item in data.get("data", [])]
        return [off for off in offers if off]

    def cheapest_price(
        self,
        origin: str,
        destination: str,
        departure_at: str | None = None,
        *,
        currency: str = "brl",
    ) -> Optional[int]:
        """Lowest one-way fare per passenger, or ``None`` if there are no offers."""
        offers = self.search_prices(
            origin, destination, departure_at, currency=currency
        )
        if not offers:
            logger.warning("No flight offers for %s-%s", origin, destination)
            return None
        best = min(offers, key=lambda off: off.price)
        logger.info(
            "Cheapest %s-%s fare: %s on %s (%d offers)",
            best.origin,
            best.destination,
            best.price,
            best.depart_date,
            len(offers),
        )
        return best.price

    @staticmethod
    def _to_offer(item: dict) -> FlightOffer | None:
        """Map a JSON record onto a :class:`FlightOffer`; ``None`` if unusable."""
        try:
            price = Decimal(str(item["price"]))
        except (KeyError, InvalidOperation):
            return None
        if not price.is_finite() or price <= 0:
            return None

        dep_raw = item.get("departure_at") or item.get("depart_date")
        if not dep_raw:
            return None
        try:
            depart = dt.date.fromisoformat(dep_raw[:10])
        except ValueError:
            return None

        return FlightOffer(
            origin=item.get("origin", ""),
            destination=item.get("destination", ""),
            depart_date=depart,
            price=round_half_up(float(price)),
        )


__all__ = ["AviasalesFetcher", "AviasalesFetcherError"]
