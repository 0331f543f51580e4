"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    fdc_api_key: str | None = None
    fdc_base_url: str = "https://api.nal.usda.gov/fdc/v1"
    fdc_data_types: str = "Branded,Foundation,SR Legacy"
    off_base_url: str = "https://world.openfoodfacts.org/api/v2"
    off_user_agent: str = "NutritionSearch/0.1 (food search service)"
    cnf_data_dir: str = "cnf-fcen-csv"
    cnf_encoding: str = "latin-1"
    provider_timeout_seconds: float = 5.0
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def is_configured(value: str | None) -> bool:
    """Return True when a credential value is present and non-blank."""
    return value is not None and value.strip() != ""


def parse_data_types(raw: str | None) -> list[str]:
    """Parse a comma-separated FDC data type filter."""
    if raw is None:
        return []
    return [chunk.strip() for chunk in raw.split(",") if chunk.strip()]
