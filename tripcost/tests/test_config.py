import pytest
from pydantic import ValidationError

from tripcost.config import Settings, get_settings


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("TP_TOKEN", "abc")
    monkeypatch.setenv("TRIPCOST_CURRENCY", "usd")
    monkeypatch.setenv("TRIPCOST_LIVE_RETRIES", "3")
    monkeypatch.setenv("TRIPCOST_WARM_DESTINATIONS", '["rio", "SSA"]')
    get_settings.cache_clear()

    cfg = get_settings()
    assert isinstance(cfg, Settings)
    assert cfg.tp_token == "abc"
    assert cfg.currency == "USD"
    assert cfg.live_retries == 3
    assert cfg.warm_destinations == ["RIO", "SSA"]
    get_settings.cache_clear()


def test_defaults(monkeypatch):
    for name in (
        "TRIPCOST_CURRENCY",
        "TRIPCOST_CACHE_TTL_H",
        "TRIPCOST_LIVE_RETRIES",
        "TRIPCOST_WARM_DESTINATIONS",
    ):
        monkeypatch.delenv(name, raising=False)
    cfg = Settings()
    assert cfg.currency == "BRL"
    assert cfg.cache_ttl_h == 24
    assert cfg.live_retries == 1
    assert cfg.warm_destinations == []


def test_comma_separated_destinations(monkeypatch):
    monkeypatch.setenv("TRIPCOST_WARM_DESTINATIONS", "rio, gru,,FLN")
    assert Settings().warm_destinations == ["RIO", "GRU", "FLN"]


@pytest.mark.parametrize(
    "name,value",
    [
        ("TRIPCOST_CURRENCY", "REAL"),
        ("TRIPCOST_LIVE_RETRIES", "0"),
        ("TRIPCOST_LIVE_RETRIES", "6"),
        ("TRIPCOST_CACHE_TTL_H", "0"),
        ("TRIPCOST_HTTP_TIMEOUT_S", "-1"),
    ],
)
def test_invalid_values(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ValidationError):
        Settings()
