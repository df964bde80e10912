"""Configuration settings for the Tour API."""

from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode


class Settings(BaseSettings):
    """Application settings with Pydantic validation."""

    # Database settings
    database_url: str = Field(
        default="postgresql+asyncpg://natours:<PASSWORD>@localhost:5432/natours",
        description="Async database URL, may contain a <PASSWORD> placeholder"
    )

    database_password: str | None = Field(
        default=None,
        description="Substituted for <PASSWORD> in the database URL"
    )

    # Environment settings
    environment: str = Field(
        default="development",
        description="Application environment"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Application log level"
    )

    # CORS settings
    cors_origins: Annotated[list[str], NoDecode] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins"
    )

    # Server settings
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=3000, description="Server port")
    api_prefix: str = Field(default="/api/v1", description="Versioned path prefix")

    # Query settings
    default_page_limit: int = Field(
        default=100,
        ge=1,
        description="Page size used when the request has no limit parameter"
    )

    max_page_limit: int = Field(
        default=1000,
        ge=1,
        description="Upper bound applied to the limit query parameter"
    )

    # Observability
    otlp_endpoint: str | None = Field(
        default=None,
        description="OTLP collector endpoint, exporting is disabled when unset"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        valid_environments = ["development", "staging", "production"]
        if v.lower() not in valid_environments:
            raise ValueError(f"Environment must be one of: {valid_environments}")
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level value."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Parse CORS origins from string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    @property
    def resolved_database_url(self) -> str:
        """Database URL with the password placeholder filled in."""
        if self.database_password is None:
            return self.database_url
        return self.database_url.replace("<PASSWORD>", self.database_password)

    @property
    def debug(self) -> bool:
        """Return True if in development mode."""
        return self.environment == "development"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


# Global settings instance
settings = Settings()
