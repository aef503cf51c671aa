from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_APP_NAME = "shopdesk-service"


class ServiceSettings(BaseSettings):
    """Base settings shared by all shopdesk services."""

    app_name: str = Field(default=DEFAULT_APP_NAME)
    environment: Literal["local", "dev", "staging", "prod"] = Field(default="local")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO")
    service_host: str = Field(default="0.0.0.0")
    service_port: int = Field(default=8000)
    enable_metrics: bool = Field(default=True)
    enable_tracing: bool = Field(default=False)
    tracing_endpoint: str | None = Field(default=None)
    tracing_protocol: Literal["http/protobuf", "grpc"] = Field(default="http/protobuf")
    tracing_insecure: bool = Field(default=True)
    tracing_sample_rate: float = Field(default=1.0, ge=0.0, le=1.0)
    database_url: str | None = Field(default=None)
    jwt_secret_key: str = Field(default="shopdesk-secret-change-me")
    jwt_algorithm: str = Field(default="HS256")
    jwt_expiration_minutes: int = Field(default=60, ge=1)
    cart_expiry_days: int = Field(default=30, ge=1)
    portal_token_ttl_days: int = Field(default=30, ge=1)
    landing_cache_ttl_seconds: int = Field(default=300, ge=0)
    upload_dir: str = Field(default="./data/uploads")
    upload_base_url: str = Field(default="/uploads")
    image_max_bytes: int = Field(default=5 * 1024 * 1024, ge=1)
    document_max_bytes: int = Field(default=10 * 1024 * 1024, ge=1)

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"), env_prefix="SHOPDESK_", extra="ignore"
    )


@lru_cache
def get_settings() -> ServiceSettings:
    """Return cached service settings."""

    return ServiceSettings()
