"""Application configuration using pydantic-settings."""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    DATABASE_URL: str = "sqlite:///./trades.db"

    # Cost basis
    PL_DECIMAL_PLACES: int = 2
    TAX_BASIS: str = "proceeds"  # "proceeds" | "gain"
    BUY_FEE_IN_COST_BASIS: bool = True

    # Transaction listing cache
    TRANSACTION_CACHE_TTL_SECONDS: int = 300
    TRANSACTION_CACHE_MAX_ENTRIES: int = 1000

    # Accounts
    DEFAULT_ACCOUNT_NAME: str = "Default account"

    # App settings
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    LOG_SQL: bool = False  # log SQL statements, including ledger lock acquisition
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize LOG_LEVEL to an uppercase Python logging level."""
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"LOG_LEVEL must be one of {valid}, got {v!r}")
        return v.upper()

    @field_validator("TAX_BASIS", mode="before")
    @classmethod
    def validate_tax_basis(cls, v: str) -> str:
        """Sale tax is charged either on gross proceeds or on a positive gain."""
        valid = {"proceeds", "gain"}
        if v.lower() not in valid:
            raise ValueError(f"TAX_BASIS must be one of {valid}, got {v!r}")
        return v.lower()

    @field_validator("PL_DECIMAL_PLACES")
    @classmethod
    def validate_decimal_places(cls, v: int) -> int:
        if v < 0 or v > 8:
            raise ValueError(f"PL_DECIMAL_PLACES must be between 0 and 8, got {v}")
        return v


settings = Settings()
