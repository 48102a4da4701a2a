"""Typed settings configuration - single source of truth."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Local storage
    database_url: str = "sqlite+aiosqlite:///./tripbook.db"

    # ERP backend (a URL saved from the app wins over this one)
    erp_base_url: str | None = None
    erp_health_timeout_s: float = 8.0

    # Place search
    place_search_url: str = "https://nominatim.openstreetmap.org/search"
    place_search_limit: int = 5
    place_search_min_chars: int = 3
    place_search_debounce_ms: int = 600
    place_search_user_agent: str = "tripbook/0.1"

    # Defaults for new and imported trips
    default_accent_color: str = "#1A4D4C"
    imported_trip_title: str = "Viaje Importado"
    imported_trip_owner: str = "Otro técnico"

    # Sync payload
    evidence_source: str = "app_movil"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
