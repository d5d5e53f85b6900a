"""Configuration management for testbox.

This module provides a unified Settings class with flat fields, read from
``TESTBOX_*`` environment variables or a ``.env`` file, and grouped views.

Usage:
    from testbox.config import settings

    # Access grouped settings
    settings.wait.startup_timeout_seconds
    settings.docker.docker_base_url

    # Or use flat access
    settings.startup_timeout_seconds
"""

from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Import grouped configurations
from .docker import DockerConfig
from .logging import LoggingConfig
from .wait import WaitConfig

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("json", "console")


class Settings(BaseSettings):
    """Library settings with environment variable support.

    This class provides both:
    1. Grouped access via nested configs (settings.wait.poll_interval_seconds)
    2. Flat access (settings.poll_interval_seconds)
    """

    model_config = SettingsConfigDict(
        env_prefix="TESTBOX_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Docker Engine Configuration
    # docker_base_url falls back to DOCKER_HOST / the local socket when unset.
    docker_base_url: Optional[str] = Field(default=None)
    docker_host_address: Optional[str] = Field(
        default=None,
        description="Address the mapped ports are reachable on (overrides DOCKER_HOST)",
    )
    docker_timeout: int = Field(default=60, ge=1, le=600)
    port_bind_address: str = Field(
        default="",
        description="Local address used when probing for free host ports",
    )

    # Readiness Configuration
    startup_timeout_seconds: float = Field(default=60.0, gt=0)
    poll_interval_seconds: float = Field(default=0.1, gt=0, le=60)
    max_poll_interval_seconds: float = Field(default=1.0, gt=0, le=300)
    poll_backoff_factor: float = Field(default=1.5, ge=1.0, le=10.0)
    http_request_timeout: float = Field(default=5.0, gt=0, le=300)

    # Teardown Configuration
    stop_timeout_seconds: float = Field(default=10.0, ge=0, le=600)

    # Logging Configuration
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        fmt = v.lower()
        if fmt not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {', '.join(LOG_FORMATS)}")
        return fmt

    @model_validator(mode="after")
    def validate_poll_intervals(self) -> "Settings":
        if self.max_poll_interval_seconds < self.poll_interval_seconds:
            raise ValueError(
                "max_poll_interval_seconds must not be smaller than poll_interval_seconds"
            )
        return self

    # ========================================================================
    # GROUPED CONFIGURATION ACCESS
    # ========================================================================

    @property
    def docker(self) -> DockerConfig:
        """Access Docker engine configuration group."""
        return DockerConfig(
            docker_base_url=self.docker_base_url,
            docker_host_address=self.docker_host_address,
            docker_timeout=self.docker_timeout,
            port_bind_address=self.port_bind_address,
        )

    @property
    def wait(self) -> WaitConfig:
        """Access readiness polling configuration group."""
        return WaitConfig(
            startup_timeout_seconds=self.startup_timeout_seconds,
            poll_interval_seconds=self.poll_interval_seconds,
            max_poll_interval_seconds=self.max_poll_interval_seconds,
            poll_backoff_factor=self.poll_backoff_factor,
            http_request_timeout=self.http_request_timeout,
            stop_timeout_seconds=self.stop_timeout_seconds,
        )

    @property
    def logging(self) -> LoggingConfig:
        """Access logging configuration group."""
        return LoggingConfig(
            log_level=self.log_level,
            log_format=self.log_format,
        )


# Global settings instance
settings = Settings()

__all__ = [
    "Settings",
    "settings",
    # Grouped configs
    "DockerConfig",
    "LoggingConfig",
    "WaitConfig",
]
