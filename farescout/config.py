from __future__ import annotations

from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class ConfigurationError(RuntimeError):
    """Required configuration is missing at request time."""


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    rapidapi_key: Optional[str] = Field(None, alias="RAPIDAPI_KEY")
    google_flights_host: str = Field(
        "google-flights2.p.rapidapi.com", alias="GOOGLE_FLIGHTS_HOST"
    )
    flights_sky_host: str = Field(
        "flights-sky.p.rapidapi.com", alias="FLIGHTS_SKY_HOST"
    )
    upstream_timeout_s: float = Field(30.0, alias="UPSTREAM_TIMEOUT_S")

    batch_size: int = Field(10, alias="SEARCH_BATCH_SIZE")
    batch_delay_ms: int = Field(50, alias="SEARCH_BATCH_DELAY_MS")

    lookahead_days: int = Field(60, alias="LOOKAHEAD_DAYS")
    min_days_ahead: int = Field(0, alias="MIN_DAYS_AHEAD")
    mix_match_lookahead_days: int = Field(30, alias="MIX_MATCH_LOOKAHEAD_DAYS")
    mix_match_min_days_ahead: int = Field(3, alias="MIX_MATCH_MIN_DAYS_AHEAD")
    mix_match_legs_per_direction: int = Field(
        3, alias="MIX_MATCH_LEGS_PER_DIRECTION"
    )

    price_history_db: Optional[str] = Field(None, alias="PRICE_HISTORY_DB")

    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_file: Optional[str] = Field(None, alias="LOG_FILE")

    @field_validator("rapidapi_key")
    @classmethod
    def _blank_key_is_missing(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v

    @field_validator("batch_size", "mix_match_legs_per_direction")
    @classmethod
    def _positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be greater than 0")
        return v

    @field_validator(
        "batch_delay_ms",
        "lookahead_days",
        "min_days_ahead",
        "mix_match_lookahead_days",
        "mix_match_min_days_ahead",
    )
    @classmethod
    def _non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("must not be negative")
        return v

    @property
    def batch_delay_s(self) -> float:
        return self.batch_delay_ms / 1000.0

    def require_api_key(self) -> str:
        if not self.rapidapi_key:
            raise ConfigurationError(
                "RapidAPI key not configured. Please add RAPIDAPI_KEY to "
                "your environment variables and redeploy."
            )
        return self.rapidapi_key


@lru_cache()
def get_settings() -> Settings:
    """Return application settings loaded from the environment."""
    return Settings()  # type: ignore[call-arg]


__all__ = ["Settings", "ConfigurationError", "get_settings"]
