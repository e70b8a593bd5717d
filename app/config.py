"""
Application configuration using Pydantic Settings.
"""

import os
from functools import lru_cache

from pydantic_settings import BaseSettings

from app.calculations.decimal_math import RoundingMode


def get_env_file() -> str:
    """Determine which env file to use based on environment."""
    env = os.getenv("APP_ENV", "development")
    if env == "production":
        return ".env.production"
    return ".env.development"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App settings
    app_name: str = "TVM Calculation Engine"
    debug: bool = False
    log_level: str = "INFO"
    app_env: str = "development"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Serialization of results
    output_decimal_places: int = 2
    rate_decimal_places: int = 10
    default_rounding: str = "HALF_UP"

    # IRR search bounds
    irr_max_iterations: int = 100
    irr_tolerance: str = "1e-10"

    @property
    def rounding_mode(self) -> RoundingMode:
        return RoundingMode.parse(self.default_rounding)

    class Config:
        env_file = get_env_file()
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
