"""
ShopDesk — Configuration settings.

Loads from environment variables (and .env) with sensible defaults.
"""

from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Database
    database_url: str = "sqlite:///./shop.db"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False

    # Security - leave empty to disable perimeter key (trusted network mode)
    api_key: Optional[str] = None

    # JWT secret for bearer tokens. A random per-process secret is used when unset,
    # which invalidates every token on restart.
    jwt_secret_key: Optional[str] = None
    access_token_expire_hours: int = 24

    # Frontend - comma-separated list, e.g. CORS_ORIGINS=http://localhost:5173,https://shop.example.com
    cors_origins: str = ""

    # Serverless function host (trigger-email-campaign, process-email-sequences)
    functions_url: Optional[str] = None
    functions_api_key: Optional[str] = None
    functions_timeout_seconds: float = 15.0

    # Health monitor polling interval
    health_check_interval_seconds: int = 60

    # Shop defaults
    default_labor_rate: float = 0.0

    # Unrecognised status / labor_rate_type values: coerce to default (False)
    # or reject with a 422 (True). Callers can override per request.
    strict_enums: bool = False

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
