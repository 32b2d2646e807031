from pathlib import Path

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[2]
ENV_FILE = BASE_DIR / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=ENV_FILE, env_file_encoding="utf-8", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    alpha_vantage_api_key: str | None = None
    twelve_data_api_key: str | None = None
    finnhub_api_key: str | None = None
    polygon_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("POLYGON_API_KEY", "MASSIVE_API_KEY"),
    )
    yahoo_finance_enabled: bool = False

    market_data_provider_timeout_seconds: float = 8.0
    market_data_cache_ttl_seconds: float = 30.0
    market_data_cache_max_entries: int = 1024
    market_data_history_days: int = 30

    cors_allow_origins: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    @field_validator("market_data_provider_timeout_seconds")
    @classmethod
    def _validate_provider_timeout(cls, value: float) -> float:
        if value < 1 or value > 30:
            raise ValueError("MARKET_DATA_PROVIDER_TIMEOUT_SECONDS must be between 1 and 30")
        return value

    @field_validator("market_data_cache_ttl_seconds")
    @classmethod
    def _validate_cache_ttl(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("MARKET_DATA_CACHE_TTL_SECONDS must be > 0")
        return value

    @field_validator("market_data_cache_max_entries", "market_data_history_days")
    @classmethod
    def _validate_positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("value must be >= 1")
        return value

    @field_validator(
        "alpha_vantage_api_key",
        "twelve_data_api_key",
        "finnhub_api_key",
        "polygon_api_key",
    )
    @classmethod
    def _blank_key_is_missing(cls, value: str | None) -> str | None:
        normalized = (value or "").strip()
        return normalized or None


settings = Settings()
