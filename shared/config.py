"""
Shared configuration management for the FyxxLabs access layer.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="FYXX_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")
    enable_docs: Optional[bool] = Field(default=None)

    # Billing rules
    paywall_cooldown_seconds: int = Field(default=24 * 60 * 60, ge=0)
    trial_days: int = Field(default=3, ge=1)

    @property
    def docs_enabled(self) -> bool:
        """Whether interactive API docs are served."""
        if self.enable_docs is not None:
            return self.enable_docs
        return self.env == "local"


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
