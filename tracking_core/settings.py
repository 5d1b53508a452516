from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

GA_ENDPOINT = "https://www.google-analytics.com/mp/collect"
POSTHOG_ENDPOINT = "https://app.posthog.com/capture/"


class TrackingSettings(BaseSettings):
    """
    Process-wide settings loaded from environment variables.
    Plugin-level options (API keys, feature toggles) live in each plugin's
    config file instead.
    """

    service_name: str = Field(default="mod-tracking", alias="SERVICE_NAME")
    environment: str = Field(default="development", alias="ENVIRONMENT")
    json_logs: bool = Field(default=False, alias="JSON_LOGS")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    tracing_enabled: bool = Field(default=False, alias="TRACING_ENABLED")

    http_timeout: float = Field(default=5.0, alias="TRACKING_HTTP_TIMEOUT")
    shutdown_grace_seconds: float = Field(default=2.0, alias="TRACKING_SHUTDOWN_GRACE")
    ga_endpoint: str = Field(default=GA_ENDPOINT, alias="GA_ENDPOINT")
    posthog_endpoint: str = Field(default=POSTHOG_ENDPOINT, alias="POSTHOG_ENDPOINT")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> TrackingSettings:
    return TrackingSettings()
