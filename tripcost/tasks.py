"""tasks.py – APScheduler schedule.

• every ``warm_interval_h`` – refresh cached accommodation prices
• once a day at 02:00 UTC – drop expired cache entries
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

from apscheduler.schedulers.blocking import BlockingScheduler

from . import services
from .cli import setup_logging
from .config import Settings, get_settings
from .models import PriceSource

logger = logging.getLogger(__name__)

settings = get_settings()
sched = BlockingScheduler(timezone="UTC")

# Flight price used for the estimate when no live hotel price is found
WARM_REFERENCE_FLIGHT_PRICE = 1200


def warm_accommodation(cfg: Optional[Settings] = None) -> Dict[str, PriceSource]:
    """Look up every configured destination so later budgets hit the cache."""
    cfg = cfg or settings
    estimator = services.build_accommodation_estimator(cfg)
    warmed: Dict[str, PriceSource] = {}
    for code in cfg.warm_destinations:
        estimate = estimator.get_accommodation_price(code, WARM_REFERENCE_FLIGHT_PRICE)
        warmed[code] = estimate.source
    logger.info("Warmed %d destination(s): %s", len(warmed), warmed)
    return warmed


def prune_expired(cfg: Optional[Settings] = None) -> int:
    removed = services.build_cache(cfg or settings).prune()
    logger.info("Pruned %d expired cache entries", removed)
    return removed


@sched.scheduled_job("interval", hours=settings.warm_interval_h)
def warm_job() -> None:
    """Refresh accommodation prices for the warm destinations."""
    warm_accommodation()


@sched.scheduled_job("cron", hour=2, minute=0)
def prune_job() -> None:
    """Delete cache entries past their TTL."""
    prune_expired()


if __name__ == "__main__":
    setup_logging()
    sched.start()
