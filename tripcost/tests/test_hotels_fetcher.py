from datetime import date
from unittest.mock import Mock, patch

import pytest

from tripcost.hotels_fetcher import HotelFetcherError, HotellookFetcher


def make_payload():
    return [
        {"hotelName": "A", "priceAvg": 300},
        {"hotelName": "B", "priceAvg": 100},
        {"hotelName": "C", "minPriceTotal": 400},
        {"hotelName": "D", "priceAvg": 200},
        {"hotelName": "junk-zero", "priceAvg": 0},
        {"hotelName": "junk-huge", "priceAvg": 25000},
        {"hotelName": "junk-text", "priceAvg": "n/a"},
        {"hotelName": "no-price"},
        "not-a-dict",
    ]


@patch("requests.get")
def test_search_prices_filters_junk(mock_get):
    mock_resp = Mock(status_code=200)
    mock_resp.json.return_value = make_payload()
    mock_get.return_value = mock_resp

    fetcher = HotellookFetcher("tok", currency="BRL")
    prices = fetcher.search_prices("RIO", date(2025, 5, 1), date(2025, 5, 3))
    assert sorted(prices) == [100, 200, 300, 400]

    url = mock_get.call_args[0][0]
    assert url.startswith("https://engine.hotellook.com/api/v2/cache.json?")
    assert "location=RIO" in url
    assert "checkIn=2025-05-01" in url
    assert "checkOut=2025-05-03" in url
    assert "currency=brl" in url
    assert "token=tok" in url


@patch("requests.get")
def test_average_nightly_price_uses_interquartile_mean(mock_get):
    mock_resp = Mock(status_code=200)
    mock_resp.json.return_value = make_payload()
    mock_get.return_value = mock_resp

    fetcher = HotellookFetcher("tok")
    # middle half of [100, 200, 300, 400] averages 250 for two nights
    price = fetcher.average_nightly_price("RIO", date(2025, 5, 1), date(2025, 5, 3))
    assert price == 125


@patch("requests.get")
def test_average_single_price(mock_get):
    mock_resp = Mock(status_code=200)
    mock_resp.json.return_value = [{"priceAvg": 500}]
    mock_get.return_value = mock_resp

    assert HotellookFetcher("tok").average_nightly_price("SSA") == 250


@patch("requests.get")
def test_average_none_without_prices(mock_get):
    mock_resp = Mock(status_code=200)
    mock_resp.json.return_value = []
    mock_get.return_value = mock_resp

    assert HotellookFetcher("tok").average_nightly_price("SSA") is None


@patch("requests.get")
def test_http_error_raises(mock_get):
    mock_get.return_value = Mock(status_code=401, text="Unauthorized")
    with pytest.raises(HotelFetcherError):
        HotellookFetcher("bad").average_nightly_price("RIO")


@patch("requests.get")
def test_unexpected_payload_raises(mock_get):
    mock_resp = Mock(status_code=200)
    mock_resp.json.return_value = {"status": "error"}
    mock_get.return_value = mock_resp
    with pytest.raises(HotelFetcherError):
        HotellookFetcher("tok").average_nightly_price("RIO")


@patch("requests.get")
def test_malformed_json_raises(mock_get):
    mock_resp = Mock(status_code=200)
    mock_resp.json.side_effect = ValueError("no json")
    mock_get.return_value = mock_resp
    with pytest.raises(HotelFetcherError):
        HotellookFetcher("tok").average_nightly_price("RIO")
