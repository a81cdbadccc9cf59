"""Configuration management for the RBAC Manager API."""

from enum import Enum
from functools import lru_cache
from typing import Annotated, List, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class KubeConfigMode(str, Enum):
    """How the Kubernetes client locates its credentials."""

    AUTO = "auto"
    IN_CLUSTER = "in_cluster"
    KUBECONFIG = "kubeconfig"


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "RBAC Manager"
    app_version: str = "0.1.0"
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = False

    # API Configuration
    api_prefix: str = "/api/v1"
    allowed_origins: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["*"]
    )

    # Kubernetes
    kube_config_mode: KubeConfigMode = KubeConfigMode.AUTO
    kubeconfig_path: Optional[str] = None
    kube_context: Optional[str] = None

    # Redis Configuration
    redis_host: str = "redis"
    redis_port: int = 6379
    redis_password: Optional[str] = None
    redis_db: int = 0
    redis_url: Optional[str] = None
    redis_max_connections: int = 20
    redis_socket_timeout: float = 2.0
    redis_health_check_interval: int = 30

    # Logging
    log_level: LogLevel = LogLevel.INFO
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_json: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8080
    reload: bool = False

    # Health Check
    health_check_path: str = "/health"
    readiness_check_path: str = "/ready"

    # Trusted hosts
    trusted_hosts: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["localhost", "127.0.0.1"]
    )

    @model_validator(mode="after")
    def build_redis_url(self):
        """Build Redis URL from components if not provided."""
        if self.redis_url:
            return self

        if self.redis_password:
            self.redis_url = (
                f"redis://:{self.redis_password}@{self.redis_host}:"
                f"{self.redis_port}/{self.redis_db}"
            )
        else:
            self.redis_url = (
                f"redis://{self.redis_host}:{self.redis_port}/{self.redis_db}"
            )
        return self

    @field_validator("trusted_hosts", "allowed_origins", mode="before")
    @classmethod
    def parse_comma_separated(cls, v):
        """Parse lists given as comma-separated strings."""
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience function for getting settings
settings = get_settings()
