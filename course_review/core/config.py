"""
Core configuration and settings for the Course Review Service
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    """Application configuration with environment variable support"""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Service information
    service_name: str = Field(default="course-review-service")
    service_version: str = Field(default="1.0.0")
    api_version: str = Field(default="1.0.0")
    environment: str = Field(default="development")

    # Server configuration
    port: int = Field(default=8004)
    host: str = Field(default="0.0.0.0")  # nosec B104

    # Database configuration
    mongodb_host: str = Field(default="localhost")
    mongodb_port: int = Field(default=27017)
    mongodb_username: Optional[str] = Field(default=None)
    mongodb_password: Optional[str] = Field(default=None)
    mongodb_database: str = Field(default="coursereviewdb")
    mongodb_auth_source: str = Field(default="admin")
    mongodb_timeout_ms: int = Field(default=5000, ge=100)

    # Transactions are used only when the deployment supports them
    mongodb_use_transactions: bool = Field(default=True)

    @property
    def mongodb_url(self) -> str:
        """Construct MongoDB connection URL"""
        if self.mongodb_username and self.mongodb_password:
            return (
                f"mongodb://{self.mongodb_username}:{self.mongodb_password}"
                f"@{self.mongodb_host}:{self.mongodb_port}/{self.mongodb_database}"
                f"?authSource={self.mongodb_auth_source}"
            )
        return f"mongodb://{self.mongodb_host}:{self.mongodb_port}/{self.mongodb_database}"

    # Aggregate recalculation
    aggregate_max_attempts: int = Field(default=8, ge=1)
    aggregate_backoff_base_ms: int = Field(default=25, ge=0)
    aggregate_backoff_max_ms: int = Field(default=1000, ge=0)

    # Logging configuration
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console")
    log_to_file: bool = Field(default=False)
    log_to_console: bool = Field(default=True)
    log_file_path: str = Field(default="logs/course-review-service.log")

    # Request tracing
    correlation_id_header: str = Field(default="X-Correlation-ID")

    # JWT Authentication configuration
    jwt_secret: str = Field(default="your_jwt_secret_key")
    jwt_algorithm: str = Field(default="HS256")


# Global config instance
config = Config()
