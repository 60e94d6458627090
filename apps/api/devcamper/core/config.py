"""Application configuration."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables.

    One immutable instance is built at startup and handed to the token service,
    the auth dependencies and the ownership guard.
    """

    jwt_secret: str
    jwt_algorithm: str = "HS256"
    jwt_expire_days: int = 30
    jwt_cookie_expire_days: int = 30
    cookie_secure: bool = False

    reset_token_expire_minutes: int = 10
    elevated_roles: frozenset[str] = frozenset({"admin"})

    rate_limit_window_seconds: int = 600
    rate_limit_max_requests: int = 100

    email_provider: Literal["memory", "http"] = "memory"
    email_api_url: str | None = None
    email_api_key: str | None = None
    email_from_address: str = "noreply@devcamper.io"
    email_from_name: str = "DevCamper"

    geocoder_provider: Literal["static", "mapquest"] = "static"
    geocoder_api_key: str | None = None

    upload_dir: str = "./public/uploads"
    max_file_upload_bytes: int = 1_000_000

    public_base_url: str = "http://localhost:8000"

    model_config = SettingsConfigDict(env_prefix="DEVCAMPER_", extra="ignore", frozen=True)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
