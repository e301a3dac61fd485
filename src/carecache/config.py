from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CARECACHE_", env_file=".env", extra="ignore", populate_by_name=True
    )

    app_name: str = "carecache"
    env: str = "dev"
    host: str = "0.0.0.0"  # nosec B104 - intentional for container deployments
    port: int = 8080

    # Redis backend
    redis_url: str = Field(default="redis://localhost:6379/0", validation_alias="REDIS_URL")
    redis_token: str | None = Field(default=None, validation_alias="REDIS_TOKEN")
    redis_socket_timeout: float = Field(default=5.0, validation_alias="REDIS_SOCKET_TIMEOUT")
    redis_connect_timeout: float = Field(default=5.0, validation_alias="REDIS_CONNECT_TIMEOUT")

    # Response cache
    cache_default_ttl: int = Field(default=3600, gt=0, validation_alias="CACHE_DEFAULT_TTL")
    cache_default_version: str = Field(default="v1", validation_alias="CACHE_DEFAULT_VERSION")
    cache_version_prefix: str = Field(default="version:", validation_alias="CACHE_VERSION_PREFIX")
    cache_tag_prefix: str = Field(default="tag:", validation_alias="CACHE_TAG_PREFIX")
    cache_scan_count: int = Field(default=100, gt=0, validation_alias="CACHE_SCAN_COUNT")
    cache_delete_batch_size: int = Field(
        default=500, gt=0, validation_alias="CACHE_DELETE_BATCH_SIZE"
    )

    # HTTP caching headers
    http_cache_max_age: int = Field(default=10, validation_alias="HTTP_CACHE_MAX_AGE")
    http_cache_stale_while_revalidate: int = Field(
        default=59, validation_alias="HTTP_CACHE_STALE_WHILE_REVALIDATE"
    )

    # Observability
    enable_metrics: bool = Field(default=True, validation_alias="ENABLE_METRICS")
    log_level: str = "INFO"


settings = Settings()
