from __future__ import annotations

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: str = Field(default="logs/journal.log", description="Log file path")

    db_path: str = Field(default="data/journal.db", description="SQLite key-value store path")
    default_initial_balance: float = Field(default=10000.0, description="Initial balance for a fresh journal")
    benchmark_monthly_growth: float = Field(default=0.10, description="Synthetic benchmark growth per month")

    price_api_base_url: str = Field(default="https://api.coingecko.com/api/v3", description="Price lookup API base URL")
    price_requests_per_minute: int = Field(default=30, description="Price lookup requests per minute")
    price_timeout: float = Field(default=10.0, description="Price lookup timeout in seconds")
    max_retries: int = Field(default=3, description="Maximum retry attempts for price lookups")
    retry_delay: float = Field(default=1.0, description="Base retry delay in seconds")

    host: str = Field(default="127.0.0.1", description="HTTP bind host")
    port: int = Field(default=5000, description="HTTP bind port")

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "env_prefix": "JOURNAL_", "extra": "ignore"}


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    global _settings
    _settings = Settings()
    return _settings
