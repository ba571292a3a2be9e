from datetime import date, datetime

import pytest

from tripcost.models import InvalidInputError
from tripcost.seasonality import is_high_season, season_bucket


@pytest.mark.parametrize(
    "day,expected",
    [
        ("2025-12-14", False),
        ("2025-12-15", True),
        ("2025-12-31", True),
        ("2026-01-01", True),
        ("2026-01-31", True),
        ("2026-02-20", True),
        ("2026-02-21", False),
        ("2026-03-01", False),
        ("2026-06-30", False),
        ("2026-07-01", True),
        ("2026-07-31", True),
        ("2026-08-01", False),
        ("2026-11-10", False),
    ],
)
def test_season_boundaries(day, expected):
    assert is_high_season(day) is expected


def test_accepts_dates_and_datetimes():
    assert is_high_season(date(2024, 7, 10))
    assert not is_high_season(datetime(2024, 3, 10, 23, 59))


def test_season_bucket():
    assert season_bucket(date(2024, 1, 5)) == "high"
    assert season_bucket(date(2024, 5, 5)) == "low"


def test_bad_date():
    with pytest.raises(InvalidInputError):
        is_high_season("not-a-date")
