"""Application configuration and settings management."""

from typing import Any, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="SHIP_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Dynamic Shipping Engine API"
    api_prefix: str = "/api"
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    # Distance provider
    distance_matrix_url: str = Field(
        default="https://maps.googleapis.com/maps/api/distancematrix/json",
        description="Distance matrix endpoint returning road distance and duration between coordinates.",
    )
    maps_api_key: Optional[str] = Field(
        default=None,
        description="API credential for the distance matrix service.",
    )
    provider_timeout_seconds: float = Field(default=10.0, gt=0.0)
    provider_connect_timeout_seconds: float = Field(default=5.0, gt=0.0)

    # Pricing behaviour
    distance_cache_window_minutes: int = Field(
        default=60,
        ge=0,
        description="Recent calculations younger than this are reused instead of calling the provider.",
    )
    record_retention_hours: int = Field(
        default=24,
        ge=1,
        description="Lifetime of calculation records; enforced by the store's TTL policy.",
    )
    local_timezone: str = Field(
        default="Asia/Kolkata",
        description="IANA time zone in which vendor peak-hour windows are expressed.",
    )
    default_total_weight_kg: float = Field(default=1.0, gt=0.0)
    currency_symbol: str = "₹"
    estimator_max_workers: int = Field(default=8, ge=1)

    # Supabase configuration
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL (e.g., https://xxx.supabase.co).",
    )
    supabase_key: Optional[str] = Field(
        default=None,
        description="Supabase service role key for backend operations.",
    )
    configs_table: str = "shipping_configs"
    calculations_table: str = "shipping_calculations"

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()

    @field_validator("distance_matrix_url", mode="before")
    @classmethod
    def _strip_trailing_slash(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().rstrip("/")
        return value


settings = Settings()
