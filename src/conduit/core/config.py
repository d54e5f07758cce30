"""Configuration management for Conduit."""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class DatabaseConfig(BaseSettings):
    """Database connection configuration."""

    url: str = Field(
        default="sqlite:///./conduit.db",
        description="Database connection URL"
    )
    pool_size: int = Field(default=5, description="Connection pool size")
    max_overflow: int = Field(default=10, description="Maximum overflow connections")
    echo: bool = Field(default=False, description="Echo SQL queries")
    foreign_keys: bool = Field(
        default=True, description="Enable foreign key enforcement on SQLite connections"
    )
    busy_timeout: float = Field(
        default=30.0, description="Seconds a SQLite writer waits for the database lock"
    )

    class Config:
        env_prefix = "CONDUIT_DB_"


class AppConfig(BaseSettings):
    """Application configuration."""

    name: str = Field(default="Conduit", description="Application name")
    version: str = Field(default="0.1.0", description="Application version")
    debug: bool = Field(default=False, description="Debug mode")
    environment: str = Field(default="development", description="Environment")

    class Config:
        env_prefix = "CONDUIT_"

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is one of the allowed values."""
        allowed = ["development", "staging", "production", "test"]
        if v not in allowed:
            raise ValueError(f"Environment must be one of {allowed}")
        return v


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format"
    )
    file: Optional[str] = Field(default=None, description="Log file path")
    max_file_size: int = Field(default=10 * 1024 * 1024, description="Max log file size")
    backup_count: int = Field(default=5, description="Number of backup log files")

    class Config:
        env_prefix = "CONDUIT_LOG_"


class Settings(BaseSettings):
    """Main settings class that combines all configuration sections."""

    app: AppConfig = Field(default_factory=AppConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    def get_database_url(self) -> str:
        """Get database URL with the driver SQLAlchemy should use."""
        url = self.database.url
        if url.startswith("postgresql://"):
            return url.replace("postgresql://", "postgresql+psycopg2://", 1)
        return url

    def is_sqlite(self) -> bool:
        """Check if the configured database is SQLite."""
        return self.database.url.startswith("sqlite")

    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app.environment == "development"

    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app.environment == "production"


# Global settings instance
settings = Settings()
