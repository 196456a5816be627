from __future__ import annotations

from functools import cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    ecb_feed_url: str = "https://www.ecb.europa.eu/stats/eurofxref/eurofxref-daily.xml"
    feed_timeout_seconds: float = 10.0
    feed_retry_attempts: int = 0
    feed_max_age_days: int | None = None

    rate_service_host: str = "127.0.0.1"
    rate_service_port: int = 9092
    rate_service_url: str = "http://127.0.0.1:9092"
    rate_call_timeout_seconds: float = 5.0
    rate_startup_policy: Literal["fail", "degraded"] = "fail"

    catalog_host: str = "127.0.0.1"
    catalog_port: int = 9090
    catalog_db_url: str = "sqlite://"
    catalog_base_currency: str = "EUR"

    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


@cache
def config() -> AppSettings:
    return AppSettings()
