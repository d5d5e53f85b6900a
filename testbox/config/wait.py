"""Readiness polling configuration."""

from pydantic import Field
from pydantic_settings import BaseSettings


class WaitConfig(BaseSettings):
    """Startup timeout and poll cadence for wait strategies."""

    startup_timeout_seconds: float = Field(default=60.0, gt=0)
    poll_interval_seconds: float = Field(default=0.1, gt=0, le=60)
    max_poll_interval_seconds: float = Field(default=1.0, gt=0, le=300)
    poll_backoff_factor: float = Field(default=1.5, ge=1.0, le=10.0)
    http_request_timeout: float = Field(default=5.0, gt=0, le=300)
    stop_timeout_seconds: float = Field(default=10.0, ge=0, le=600)

    class Config:
        env_prefix = "TESTBOX_"
        extra = "ignore"
