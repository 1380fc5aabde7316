"""Application configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. Cache policy values (TTLs, retry, alerting) are
validated at load time.
"""

from functools import lru_cache

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment and .env.

    Every setting has a default so the service boots against a local Redis
    without any environment. validate_cache_policy rejects values that would
    make the retry or alerting arithmetic meaningless.
    """

    # App
    app_name: str = "backoffice-cache"
    app_version: str = "1.0.0"
    debug: bool = False
    # "development" enables the destructive admin operations (revalidate, clear).
    environment: str = "development"

    # CORS
    allowed_origins: str = "http://localhost:3000,http://localhost:8080"

    # Redis Cache
    redis_enabled: bool = True
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: SecretStr | None = None
    redis_socket_timeout: float = 5.0

    # TTL durations in seconds (CacheDuration SHORT / MEDIUM / LONG)
    cache_ttl_short: int = 60
    cache_ttl_medium: int = 300
    cache_ttl_long: int = 3600

    # Retry policy for get_with_retry / set_with_retry
    cache_retry_attempts: int = 3
    cache_retry_backoff_ms: int = 100

    # Monitor: latency ring size and error-rate alerting
    cache_monitor_max_samples: int = 10_000
    cache_error_alert_threshold: float = 0.5
    cache_error_alert_window: int = 100
    cache_error_alert_min_samples: int = 20

    # Output cache (rendering framework) revalidation hook. Empty URL = log only.
    output_cache_revalidate_url: str = ""
    output_cache_revalidate_secret: SecretStr | None = None
    output_cache_timeout_seconds: float = 5.0

    # OpenTelemetry
    telemetry_enabled: bool = False
    telemetry_exporter: str = "console"
    telemetry_otlp_endpoint: str | None = None
    telemetry_sample_rate: float = 1.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def validate_cache_policy(self) -> "Settings":
        """Validate TTL ordering, retry policy, alerting and revalidation URL."""
        if not 0 < self.cache_ttl_short <= self.cache_ttl_medium <= self.cache_ttl_long:
            raise ValueError(
                "Cache TTLs must be positive and ordered: "
                "CACHE_TTL_SHORT <= CACHE_TTL_MEDIUM <= CACHE_TTL_LONG"
            )
        if self.cache_retry_attempts < 1:
            raise ValueError("CACHE_RETRY_ATTEMPTS must be at least 1")
        if self.cache_retry_backoff_ms < 0:
            raise ValueError("CACHE_RETRY_BACKOFF_MS must not be negative")
        if not 0.0 < self.cache_error_alert_threshold <= 1.0:
            raise ValueError(
                "CACHE_ERROR_ALERT_THRESHOLD is a failure ratio in (0, 1], "
                f"got: {self.cache_error_alert_threshold!r}"
            )
        if self.cache_error_alert_min_samples > self.cache_error_alert_window:
            raise ValueError(
                "CACHE_ERROR_ALERT_MIN_SAMPLES must not exceed CACHE_ERROR_ALERT_WINDOW"
            )
        if self.output_cache_revalidate_url and not self.output_cache_revalidate_url.startswith(
            ("http://", "https://")
        ):
            raise ValueError(
                "OUTPUT_CACHE_REVALIDATE_URL must be an http(s) URL, "
                f"got: {self.output_cache_revalidate_url!r}"
            )
        return self

    @property
    def is_development(self) -> bool:
        """True when running in the development environment."""
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings (single instance per process).

    Validation runs on first call, not at import time. In tests, call
    get_settings.cache_clear() before overriding env vars so the next
    get_settings() uses the new values.

    Returns:
        Loaded and validated Settings instance.
    """
    return Settings()
