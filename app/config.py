from functools import lru_cache
from typing import List

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    app_name: str = Field(default="Old Thai Barber")
    cors_origins: List[AnyHttpUrl] = Field(
        default_factory=lambda: [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ]
    )
    gateway_base_url: AnyHttpUrl | None = Field(
        default=None
    )
    gateway_api_key: str | None = Field(
        default=None
    )
    gateway_timeout: float = Field(
        default=10.0
    )
    use_mock_data: bool = Field(
        default=True
    )
    storage_bucket: str = Field(
        default="gallery"
    )
    # Prefix for mock-storage URLs; empty keeps them relative to the site.
    site_url: str = Field(
        default=""
    )
    session_secret: str = Field(
        default="change-me-later"
    )
    admin_email: str = Field(
        default="admin@oldthaibarber.com"
    )
    admin_password: str = Field(
        default="barber-admin"
    )

    model_config = SettingsConfigDict(env_prefix="BARBER_", case_sensitive=False)

    @field_validator("cors_origins", mode="before")
    def _split_origins(cls, value):
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings()
