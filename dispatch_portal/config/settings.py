"""
Application settings using Pydantic BaseSettings.
"""

from typing import List, Optional, Union

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # Application
    APP_NAME: str = "Service Request Dispatch Portal"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "production"
    LOG_LEVEL: str = "INFO"

    # API Configuration
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    API_PREFIX: str = "/api/v1"
    CORS_ORIGINS: Union[str, List[str]] = "*"
    ENABLE_SWAGGER: bool = True

    # Storage
    STORAGE_BACKEND: str = "sql"

    # Database
    POSTGRES_USER: Optional[str] = None
    POSTGRES_PASSWORD: Optional[str] = None
    POSTGRES_SERVER: Optional[str] = None
    POSTGRES_DB: Optional[str] = None
    DATABASE_URL: Optional[str] = Field(None, validate_default=True)
    DATABASE_POOL_SIZE: int = 10
    DATABASE_MAX_OVERFLOW: int = 20
    DATABASE_ECHO: bool = False

    # Redis / Queue
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/0"
    CELERY_TASK_ACKS_LATE: bool = True
    CELERY_TASK_REJECT_ON_WORKER_LOST: bool = True
    CELERY_TASK_TIME_LIMIT: int = 300  # 5 minutes
    CELERY_TASK_SOFT_TIME_LIMIT: int = 240  # 4 minutes

    # Monitoring
    ENABLE_METRICS: bool = True
    HEALTH_CHECK_BROKER: bool = True

    # Dispatch
    DEFAULT_SLA_TIMEOUT_MINUTES: int = 15
    MAX_SLA_TIMEOUT_MINUTES: int = 60
    SLA_TIMEOUT_CONFIG_KEY: str = "sla_timeout_minutes"
    REJECTION_REASON_MIN_LENGTH: int = 10
    SYSTEM_USER_ID: int = 1
    REQUEST_NUMBER_PREFIX: str = "REQ"
    REQUEST_NUMBER_MAX_ATTEMPTS: int = 5
    DISPATCH_QUEUE_LIMIT: int = 100

    # SLA reclaim job
    SLA_AUTO_RECLAIM_ENABLED: bool = True
    SLA_RECLAIM_INTERVAL_SECONDS: int = 60
    SLA_RECLAIM_BATCH_SIZE: int = 100

    # Outbox relay and retention
    OUTBOX_RELAY_INTERVAL_SECONDS: int = 30
    OUTBOX_RELAY_BATCH_SIZE: int = 50
    OUTBOX_RETRY_BASE_DELAY_MINUTES: int = 5
    OUTBOX_RETENTION_DAYS: int = 7
    OUTBOX_CLEANUP_INTERVAL_HOURS: int = 24

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> List[str]:
        if isinstance(v, str):
            if v == "*":
                return ["*"]
            return [i.strip() for i in v.split(",")]
        elif isinstance(v, list):
            return v
        return ["*"]

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def assemble_db_connection(cls, v: Optional[str], info: ValidationInfo) -> str:
        if isinstance(v, str):
            return v
        # Build from individual components if DATABASE_URL is not provided
        user = info.data.get("POSTGRES_USER") or "dispatch_user"
        password = info.data.get("POSTGRES_PASSWORD") or "dispatch_pass"
        host = info.data.get("POSTGRES_SERVER") or "localhost"
        db = info.data.get("POSTGRES_DB") or "dispatch_portal"
        return f"postgresql+asyncpg://{user}:{password}@{host}:5432/{db}"

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        if v not in ["development", "staging", "production", "test"]:
            raise ValueError(
                "Environment must be one of: development, staging, production, test"
            )
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("STORAGE_BACKEND")
    @classmethod
    def validate_storage_backend(cls, v: str) -> str:
        if v.lower() not in ["sql", "memory"]:
            raise ValueError("Storage backend must be one of: sql, memory")
        return v.lower()

    @field_validator("DEFAULT_SLA_TIMEOUT_MINUTES")
    @classmethod
    def validate_default_sla_timeout(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Default SLA timeout must be a positive number of minutes")
        return v

    model_config = {"env_file": ".env", "case_sensitive": True, "extra": "ignore"}


# Global settings instance
settings = Settings()
