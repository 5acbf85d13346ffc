"""Application configuration."""
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class Settings(BaseSettings):
    """Application settings."""

    # App
    app_env: str = "development"
    log_level: str = "INFO"
    json_logs: bool = False

    # Record store (Redis 미설정 시 인메모리 저장소 사용)
    redis_url: Optional[str] = Field(
        default=None,
        description="Redis connection URL for the tournament record store (optional)",
    )
    redis_key_prefix: str = Field(
        default="tournament:record:",
        description="Key prefix for persisted tournament records",
    )

    # Tournament defaults (셋업 폼 초기값)
    default_player_count: int = Field(default=9, ge=2)
    default_tournament_duration: float = Field(
        default=4.0,
        gt=0,
        description="Default tournament duration in hours",
    )
    default_buy_in_amount: int = Field(default=100, ge=0)
    default_allow_rebuy: bool = True
    default_allow_addon: bool = True
    default_chipset: str = Field(
        default="25,100,500,1000,5000",
        description="Comma separated chip denominations",
    )
    default_starting_chips: int = Field(default=10000, gt=0)

    # Timer
    timer_tick_seconds: float = Field(
        default=1.0,
        gt=0,
        description="Seconds between countdown ticks",
    )
    countdown_warning_seconds: int = Field(
        default=5,
        ge=0,
        description="Final seconds of a level that trigger the countdown sound",
    )

    # Share links
    share_base_url: str = "http://localhost:3000"
    share_id_length: int = Field(default=8, ge=4, le=32)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and validate the log level name."""
        level = v.upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(VALID_LOG_LEVELS)}")
        return level

    @field_validator("default_chipset")
    @classmethod
    def validate_default_chipset(cls, v: str) -> str:
        """Default chipset must contain at least one positive denomination."""
        values = []
        for token in v.split(","):
            token = token.strip()
            if token.isdigit() and int(token) > 0:
                values.append(token)
        if not values:
            raise ValueError("default_chipset must contain at least one positive integer")
        return ",".join(values)

    @field_validator("share_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Production always logs JSON."""
        if self.app_env == "production" and not self.json_logs:
            object.__setattr__(self, "json_logs", True)
        return self

    model_config = {
        "env_file": ".env",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
