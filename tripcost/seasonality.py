from __future__ import annotations

from datetime import date

from .models import parse_date

# Brazilian high season:
#   Dec 15-31 and all of January (summer holidays)
#   February up to the 20th (approximates Carnival)
#   all of July (winter holidays)
DECEMBER_START_DAY = 15
FEBRUARY_LAST_DAY = 20


def is_high_season(day: date | str) -> bool:
    """Return ``True`` if *day* falls in a high-demand travel period.

    Only the calendar month and day are considered; datetimes are reduced
    to their date and ISO strings are parsed without timezone handling.
    """
    d = parse_date(day, "travel_date")
    if d.month == 12 and d.day >= DECEMBER_START_DAY:
        return True
    if d.month == 1:
        return True
    if d.month == 2 and d.day <= FEBRUARY_LAST_DAY:
        return True
    if d.month == 7:
        return True
    return False


def season_bucket(day: date | str) -> str:
    """Cache bucket label: prices only differ between the two seasons."""
    return "high" if is_high_season(day) else "low"


__all__ = ["is_high_season", "season_bucket"]
