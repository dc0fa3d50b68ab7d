"""
Application configuration with Pydantic Settings for validation and type safety.
Supports environment-specific configurations and .env file loading.
"""

from enum import Enum
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator


class Environment(str, Enum):
    """Application environment types"""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class Settings(BaseSettings):
    """
    Application settings with validation.
    Settings are loaded from environment variables or .env file.
    """

    # Application settings
    app_name: str = Field(default="PantryLedger", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: Environment = Field(
        default=Environment.DEVELOPMENT, description="Application environment"
    )
    debug: bool = Field(default=False, description="Debug mode")

    # Server settings
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, ge=1, le=65535, description="Server port")

    # Database settings
    database_url: str = Field(
        default="postgresql+psycopg2://user@localhost:5432/pantryledger",
        description="SQLAlchemy connection URL",
    )
    db_echo: bool = Field(default=False, description="SQLAlchemy echo SQL statements")
    db_init_attempts: int = Field(
        default=8, ge=1, description="Database initialization retry attempts"
    )
    db_init_delay_sec: float = Field(
        default=2.0, ge=0, description="Delay between DB init attempts"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(
        default="%(asctime)s %(levelname)s %(name)s: %(message)s",
        description="Log format string",
    )

    # CORS settings
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:8000"],
        description="Allowed CORS origins",
    )
    cors_allow_credentials: bool = Field(
        default=True, description="Allow CORS credentials"
    )
    cors_allow_methods: list[str] = Field(
        default=["*"], description="Allowed HTTP methods"
    )
    cors_allow_headers: list[str] = Field(
        default=["*"], description="Allowed HTTP headers"
    )

    # API settings
    api_prefix: str = Field(default="", description="API route prefix")
    api_title: str = Field(
        default="PantryLedger API", description="API documentation title"
    )
    api_description: str = Field(
        default="Kitchen inventory ledger and ingredient resolution service",
        description="API documentation description",
    )

    # Ledger tunables
    low_stock_threshold: float = Field(
        default=0.20, gt=0, lt=1, description="Remaining fraction at or below which a container is LOW"
    )
    fuzzy_candidate_floor: float = Field(
        default=0.5, ge=0, le=1, description="Minimum bigram similarity for a fuzzy candidate"
    )
    fuzzy_match_floor: float = Field(
        default=0.85, ge=0, le=1, description="Similarity above which a fuzzy match is accepted"
    )
    fuzzy_max_alternatives: int = Field(
        default=3, ge=0, description="Alternatives returned with a confident fuzzy match"
    )
    ambiguous_max_alternatives: int = Field(
        default=4, ge=1, description="Alternatives returned with an ambiguous match"
    )
    duplicate_recent_window_hours: float = Field(
        default=4, ge=0, description="Containers newer than this are likely duplicates"
    )
    duplicate_qty_tolerance: float = Field(
        default=0.20, ge=0, description="Relative quantity difference for a possible duplicate"
    )
    leftover_default_expiry_days: int = Field(
        default=4, ge=0, description="Default shelf life of cooked leftovers"
    )
    expiring_default_days: int = Field(
        default=3, ge=0, description="Default window for expiring items"
    )
    search_default_limit: int = Field(
        default=100, ge=1, description="Default page size for inventory search"
    )
    conflict_retry_attempts: int = Field(
        default=2, ge=1, description="Attempts for a ledger mutation on concurrency conflict"
    )
    conflict_retry_backoff_sec: float = Field(
        default=0.05, ge=0, description="Backoff between conflict retries"
    )

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    @field_validator("environment", mode="before")
    @classmethod
    def validate_environment(cls, v):
        """Validate and normalize environment value"""
        if isinstance(v, str):
            return Environment(v.lower())
        return v

    def is_production(self) -> bool:
        """Check if running in production environment"""
        return self.environment == Environment.PRODUCTION

    def is_development(self) -> bool:
        """Check if running in development environment"""
        return self.environment == Environment.DEVELOPMENT


# Global settings instance
settings = Settings()
