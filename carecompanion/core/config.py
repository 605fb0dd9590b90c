import secrets
from functools import lru_cache
from typing import List, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseModel):
    """Database configuration settings"""
    POSTGRES_HOST: str = Field(default="localhost")
    POSTGRES_PORT: int = Field(default=5432)
    POSTGRES_USER: str = Field(default="care_user")
    POSTGRES_PASSWORD: str = Field(default="care_password")
    POSTGRES_DB: str = Field(default="carecompanion_db")
    DATABASE_URL: Optional[str] = Field(default=None)

    # Connection pool settings (ignored for SQLite)
    DB_POOL_SIZE: int = Field(default=10, ge=1, le=100)
    DB_MAX_OVERFLOW: int = Field(default=20, ge=0, le=100)
    DB_POOL_TIMEOUT: int = Field(default=30, ge=1, le=300)
    DB_POOL_RECYCLE: int = Field(default=3600, ge=300, le=86400)
    DB_ECHO: bool = Field(default=False)

    @model_validator(mode="after")
    def assemble_db_connection(self) -> "DatabaseSettings":
        if self.DATABASE_URL:
            return self
        self.DATABASE_URL = (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )
        return self

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")


class SecuritySettings(BaseModel):
    """Token verification settings"""
    JWT_SECRET_KEY: str = Field(default_factory=lambda: secrets.token_urlsafe(32))
    JWT_ALGORITHM: str = Field(default="HS256")
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=60, ge=1, le=1440)


class ClinicalSettings(BaseModel):
    """Tunables for the dashboard aggregation rules"""
    MOOD_TALLY_WINDOW_DAYS: int = Field(default=7, ge=1, le=90)
    BURNOUT_SCORER: str = Field(default="stored")


class Settings(BaseSettings):
    """Main application settings"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=True,
        validate_assignment=True,
        extra="ignore",
    )

    # Basic application settings
    ENVIRONMENT: str = Field(default="development", pattern="^(development|staging|production)$")
    DEBUG: bool = Field(default=False)
    API_VERSION: str = Field(default="v1")
    LOG_LEVEL: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    LOG_JSON: Optional[bool] = Field(default=None)

    # Server settings
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8000, ge=1000, le=65535)

    # CORS settings
    CORS_ORIGINS: List[str] = Field(default=["http://localhost:5173"])
    CORS_ALLOW_CREDENTIALS: bool = Field(default=True)

    # Monitoring settings
    PROMETHEUS_ENABLED: bool = Field(default=True)

    # Server-held session state
    SESSION_IDLE_TIMEOUT_MINUTES: int = Field(default=120, ge=1, le=10080)
    SESSION_MAX_ACTIVE: int = Field(default=10000, ge=1)

    # Nested configuration objects
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    clinical: ClinicalSettings = Field(default_factory=ClinicalSettings)

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",")]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Validate critical settings for production environment"""
        if self.ENVIRONMENT != "development" and "JWT_SECRET_KEY" not in self.security.model_fields_set:
            # A generated key differs per worker process
            raise ValueError(f"security__JWT_SECRET_KEY must be set in {self.ENVIRONMENT}")
        if self.ENVIRONMENT == "production":
            if self.DEBUG:
                raise ValueError("DEBUG must be False in production")
            if "*" in self.CORS_ORIGINS or any("localhost" in o for o in self.CORS_ORIGINS):
                raise ValueError("CORS_ORIGINS must not include localhost or wildcard in production")
        return self

    @property
    def use_json_logs(self) -> bool:
        if self.LOG_JSON is not None:
            return self.LOG_JSON
        return self.ENVIRONMENT == "production"


# Global settings instance cache
@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


def get_database_url() -> str:
    """Get database connection URL"""
    return get_settings().database.DATABASE_URL


class AppConstants:
    """Application-wide constants"""

    # API Response Messages
    API_SUCCESS_MESSAGE = "Operation completed successfully"
    API_ERROR_MESSAGE = "An error occurred while processing your request"
    NOT_LOGGED_IN_MESSAGE = "Not logged in"

    # Safety alert tiers
    ALERT_CATEGORIES = ("red", "yellow", "green")

    # ADL scoring
    ADL_MIN_SCORE = 1
    ADL_MAX_SCORE = 5
    ADL_DECLINE_THRESHOLD = 2
    BASIC_ADL_FIELDS = ("dressing", "eating", "bathing", "toileting", "transferring", "continence")
    INSTRUMENTAL_ADL_FIELDS = (
        "meal_preparation",
        "medication_management",
        "phone_use",
        "finances",
        "transportation",
        "shopping",
    )

    # Mood classification; anything outside this set counts as positive
    NEGATIVE_MOODS = frozenset({"sad", "anxious", "angry", "confused", "scared", "worried"})

    # Health Check Constants
    HEALTH_CHECK_TIMEOUT = 5


__all__ = [
    "Settings",
    "DatabaseSettings",
    "SecuritySettings",
    "ClinicalSettings",
    "get_settings",
    "get_database_url",
    "AppConstants",
]
