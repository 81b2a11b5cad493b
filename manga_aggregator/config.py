from functools import lru_cache
from typing import Literal

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_env: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    cors_origins: list[str] = ["*"]
    api_host: str = "0.0.0.0"
    api_port: int = Field(default=8000, ge=1, le=65535)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    # None: JSON in production, console elsewhere
    log_json: bool | None = None

    # Challenge solver (FlareSolverr-compatible)
    solver_url: str = "http://localhost:8191/v1"
    solver_max_timeout: int = Field(default=60000, ge=1000)  # milliseconds
    solver_fallback_enabled: bool = True
    credential_ttl_seconds: float = Field(default=600.0, gt=0)

    # Scraper
    scraper_user_agent: str = DEFAULT_USER_AGENT
    scraper_max_retries: int = Field(default=3, ge=0, le=10)
    scraper_retry_delay: float = Field(default=1.0, ge=0)
    http_timeout: float = Field(default=30.0, gt=0)
    pagination_delay: float = Field(default=0.5, ge=0)
    search_result_limit: int = Field(default=5, ge=1, le=50)

    # Aggregation
    search_source_timeout: float = Field(default=20.0, gt=0)
    health_check_timeout: float = Field(default=15.0, gt=0)

    # HTML passthrough
    proxy_allowed_hosts: list[str] = ["asuracomic.net", "weebcentral.com"]

    @computed_field
    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
