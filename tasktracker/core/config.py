"""Configuration management for tasktracker."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database Configuration
    sqlite_db_path: str = Field(default="./data/tasktracker.db", description="SQLite database file path")

    # Auth Configuration
    secret_key: str | None = Field(default=None, description="Secret used to sign bearer tokens")
    token_max_age_seconds: int = Field(default=604800, description="Bearer token lifetime in seconds (7 days)")

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")

    # Redis Configuration (optional)
    redis_url: str | None = Field(default=None, description="Redis connection URL (e.g., redis://localhost:6379)")

    # HTTP Configuration
    cors_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of origins allowed to call the API",
    )
    environment: str = Field(default="development", description="Deployment environment name")

    @property
    def cors_origin_list(self) -> list[str]:
        """Return configured CORS origins as a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    def require_credential(self, field_name: str, service_name: str) -> str:
        """Validate that a required credential is set, raising a clear error if missing.

        Args:
            field_name: Name of the field to check
            service_name: Human-readable service name for error message

        Returns:
            The credential value

        Raises:
            ValueError: If the credential is None or empty
        """
        value = getattr(self, field_name)
        if not value:
            raise ValueError(
                f"{service_name} credential not configured. "
                f"Set {field_name.upper()} environment variable or add to .env file."
            )
        return value


# Application Constants
class Constants:
    """Application-wide constants."""

    # HTTP Status Codes
    HTTP_OK: int = 200
    HTTP_BAD_REQUEST: int = 400
    HTTP_UNAUTHORIZED: int = 401
    HTTP_FORBIDDEN: int = 403
    HTTP_NOT_FOUND: int = 404
    HTTP_SERVER_ERROR: int = 500

    # Task Validation
    TITLE_MAX_LENGTH: int = 200

    # User Validation
    NAME_MAX_LENGTH: int = 50
    PASSWORD_MIN_LENGTH: int = 6

    # Password Hashing
    PASSWORD_HASH_ITERATIONS: int = 260_000
    PASSWORD_SALT_BYTES: int = 16

    # Login Rate Limiting
    LOGIN_ATTEMPTS_PER_WINDOW: int = 5
    LOGIN_WINDOW_SECONDS: int = 60

    # Redis Configuration
    REDIS_MAX_CONNECTIONS: int = 10  # Maximum connections in Redis connection pool


# Global settings instance
settings = Settings()
constants = Constants()
