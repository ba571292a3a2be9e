from datetime import date
from unittest.mock import Mock, patch

import pytest

from tripcost.aviasales_fetcher import AviasalesFetcher, AviasalesFetcherError


def make_payload():
    return {
        "success": True,
        "data": [
            {
                "origin": "SAO",
                "destination": "RIO",
                "departure_at": "2025-05-10T08:00:00-03:00",
                "price": 420,
                "airline": "G3",
                "link": "/search/SAO1005RIO1",
            },
            {
                "origin": "SAO",
                "destination": "RIO",
                "departure_at": "2025-05-11T19:30:00-03:00",
                "price": 389.6,
                "airline": "LA",
            },
        ],
    }


def make_incomplete_payload():
    return {
        "success": True,
        "data": [
            {"origin": "SAO", "destination": "RIO", "price": 300},  # no date
            {
                "origin": "SAO",
                "destination": "RIO",
                "departure_at": "2025-05-10",
                "price": "NaN",
            },
            {
                "origin": "SAO",
                "destination": "RIO",
                "departure_at": "2025-05-10",
                "price": -5,
            },
            {
                "origin": "SAO",
                "destination": "RIO",
                "departure_at": "bad-date",
                "price": 300,
            },
            {"origin": "SAO", "destination": "RIO", "departure_at": "2025-05-10"},
            {
                "origin": "SAO",
                "destination": "RIO",
                "depart_date": "2025-05-11",
                "price": 510,
            },
        ],
    }


@patch("requests.get")
def test_search_prices(mock_get):
    mock_resp = Mock(status_code=200)
    mock_resp.json.return_value = make_payload()
    mock_get.return_value = mock_resp

    offers = AviasalesFetcher("tok").search_prices("SAO", "RIO", "2025-05-10")
    assert len(offers) == 2
    assert offers[0].price == 420
    assert offers[0].depart_date == date(2025, 5, 10)
    assert offers[1].price == 390
    assert offers[1].origin == "SAO"

    url = mock_get.call_args[0][0]
    assert "prices_for_dates?origin=SAO&destination=RIO" in url
    assert "departure_at=2025-05-10" in url
    assert "one_way=true" in url
    assert "sorting=price" in url
    assert "token=tok" in url


@patch("requests.get")
def test_skip_incomplete_rows(mock_get):
    mock_resp = Mock(status_code=200)
    mock_resp.json.return_value = make_incomplete_payload()
    mock_get.return_value = mock_resp

    offers = AviasalesFetcher("tok").search_prices("SAO", "RIO")
    assert len(offers) == 1
    assert offers[0].price == 510
    assert offers[0].depart_date == date(2025, 5, 11)


@patch("requests.get")
def test_cheapest_price(mock_get):
    mock_resp = Mock(status_code=200)
    mock_resp.json.return_value = make_payload()
    mock_get.return_value = mock_resp

    assert AviasalesFetcher("tok").cheapest_price("SAO", "RIO") == 390


@patch("requests.get")
def test_cheapest_price_without_offers(mock_get):
    mock_resp = Mock(status_code=200)
    mock_resp.json.return_value = {"success": True, "data": []}
    mock_get.return_value = mock_resp

    assert AviasalesFetcher("tok").cheapest_price("SAO", "RIO") is None


@patch("requests.get")
def test_api_error(mock_get):
    mock_resp = Mock(status_code=200)
    mock_resp.json.return_value = {"success": False, "error": "bad token"}
    mock_get.return_value = mock_resp

    with pytest.raises(AviasalesFetcherError, match="bad token"):
        AviasalesFetcher("tok").search_prices("SAO", "RIO")


@patch("requests.get")
def test_http_error(mock_get):
    mock_get.return_value = Mock(status_code=500, text="oops")
    with pytest.raises(AviasalesFetcherError):
        AviasalesFetcher("tok").search_prices("SAO", "RIO")
