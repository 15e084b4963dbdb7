"""
Configuration - Environment Variables Management

Settings are read from the environment (and an optional ``.env`` file)
with pydantic-settings.

Usage:
    from dlscrape.config import get_settings

    settings = get_settings()
    url = settings.portal_url_for("12345")
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from urllib.parse import quote

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Portal
    PORTAL_URL: str = Field(default="http://localhost:8080/license?")
    PORTAL_QUERY_PARAM: str = Field(default="refno")

    # Browser provisioning
    IS_LOCAL: bool = Field(default=True)
    CHROMIUM_EXECUTABLE_PATH: str | None = Field(default=None)
    BROWSER_WS_ENDPOINT: str | None = Field(default=None)
    VIEWPORT_WIDTH: int = Field(default=1280)
    VIEWPORT_HEIGHT: int = Field(default=720)
    BLOCKED_RESOURCE_TYPES: list[str] = Field(
        default=["image", "stylesheet", "font"]
    )

    # Extraction
    NAVIGATION_TIMEOUT_MS: int = Field(default=30000)
    READY_TIMEOUT_MS: int = Field(default=5000)
    MAX_CONCURRENT_EXTRACTIONS: int = Field(default=2, ge=1)

    # Storage
    CACHE_PATH: Path = Field(default=Path("cache.json"))
    DATABASE_PATH: Path = Field(default=Path("licenses.db"))

    # API server
    API_HOST: str = Field(default="127.0.0.1")
    API_PORT: int = Field(default=5000)

    # Logging
    LOG_LEVEL: str = Field(default="INFO")

    ENVIRONMENT: str = Field(default="production")

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"

    @property
    def viewport(self) -> dict[str, int]:
        return {"width": self.VIEWPORT_WIDTH, "height": self.VIEWPORT_HEIGHT}

    def portal_url_for(self, reference_no: str) -> str:
        """Build the portal URL for a reference number.

        The reference number is appended to PORTAL_URL as a query
        parameter. A base that already ends in ``?`` or ``&`` is used as-is.

        Args:
            reference_no: The reference number to look up.

        Returns:
            The absolute page URL.
        """
        base = self.PORTAL_URL
        if not base.endswith(("?", "&")):
            base += "&" if "?" in base else "?"
        return f"{base}{self.PORTAL_QUERY_PARAM}={quote(reference_no, safe='')}"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Singleton Settings instance
    """
    return Settings()
