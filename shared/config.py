"""
Shared configuration management for the asset gateway.
"""

from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="ACCESS_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Authentication for mutating requests
    auth_secret: Optional[str] = Field(default=None)
    auth_header: str = Field(default="X-Custom-Auth-Key")

    # Object store (source of truth)
    object_store_backend: Literal["s3", "local"] = Field(default="local")
    object_store_path: str = Field(default="./data")
    s3_bucket: str = Field(default="assets")
    s3_region: str = Field(default="auto")
    s3_endpoint_url: str = Field(default="")
    s3_access_key_id: Optional[str] = Field(default=None)
    s3_secret_access_key: Optional[str] = Field(default=None)

    # Cache store
    cache_backend: Literal["redis", "memory"] = Field(default="redis")
    redis_url: str = Field(default="redis://localhost:6379/0")
    cache_key_prefix: str = Field(default="gateway:blob:")
    cache_write_policy: Literal["invalidate", "populate"] = Field(default="invalidate")
    cache_workers: int = Field(default=4, ge=1)
    cache_queue_size: int = Field(default=1000, ge=1)

    # Read response caching headers; empty disables the header
    cache_control: str = Field(default="max-age=5184000, s-maxage=2592000, immutable")
    cdn_cache_control: str = Field(default="max-age=648000")

    # Uploads
    multipart_field: str = Field(default="file")


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port, **overrides)
