from __future__ import annotations

import json
from functools import lru_cache
from typing import Annotated, List

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode

from .db import DB_FILE

load_dotenv()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    tp_token: str = Field("", alias="TP_TOKEN")
    currency: str = Field("BRL", alias="TRIPCOST_CURRENCY")
    cache_ttl_h: int = Field(24, alias="TRIPCOST_CACHE_TTL_H")
    http_timeout_s: float = Field(15.0, alias="TRIPCOST_HTTP_TIMEOUT_S")
    live_retries: int = Field(1, alias="TRIPCOST_LIVE_RETRIES")
    db_path: str = Field(DB_FILE, alias="TRIPCOST_DB")
    warm_destinations: Annotated[List[str], NoDecode] = Field(
        default_factory=list, alias="TRIPCOST_WARM_DESTINATIONS"
    )
    warm_interval_h: int = Field(6, alias="TRIPCOST_WARM_INTERVAL_H")

    @field_validator("currency")
    @classmethod
    def _currency_code(cls, v: str) -> str:
        if not v or len(v.strip()) != 3:
            raise ValueError("TRIPCOST_CURRENCY must be a 3-letter code")
        return v.strip().upper()

    @field_validator("cache_ttl_h", "warm_interval_h")
    @classmethod
    def _hours_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("interval in hours must be greater than 0")
        return v

    @field_validator("http_timeout_s")
    @classmethod
    def _timeout_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("TRIPCOST_HTTP_TIMEOUT_S must be greater than 0")
        return v

    @field_validator("live_retries")
    @classmethod
    def _retries_bounded(cls, v: int) -> int:
        if not 1 <= v <= 5:
            raise ValueError("TRIPCOST_LIVE_RETRIES must be between 1 and 5")
        return v

    @field_validator("warm_destinations", mode="before")
    @classmethod
    def _split_destinations(cls, v):
        if isinstance(v, str) and v.strip().startswith("["):
            v = json.loads(v)
        if isinstance(v, str):
            v = v.split(",")
        return [str(d).strip().upper() for d in v if str(d).strip()]


@lru_cache()
def get_settings() -> Settings:
    """Return application settings loaded from the environment."""
    return Settings()  # type: ignore[call-arg]


__all__ = ["Settings", "get_settings"]
