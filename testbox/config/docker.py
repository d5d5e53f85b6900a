"""Docker engine connection configuration."""

from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings


class DockerConfig(BaseSettings):
    """Docker engine connection settings."""

    docker_base_url: Optional[str] = Field(default=None)
    docker_host_address: Optional[str] = Field(default=None)
    docker_timeout: int = Field(default=60, ge=1, le=600)
    port_bind_address: str = Field(default="")

    class Config:
        env_prefix = "TESTBOX_"
        extra = "ignore"
