from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from functools import lru_cache
from typing import List


class Settings(BaseSettings):
    # Environment
    environment: str = Field(default="development", alias="ENVIRONMENT")

    # Database - PostgreSQL for production, SQLite for development
    database_url: str = Field(
        default="sqlite:///./stayledger.db",
        alias="DATABASE_URL"
    )

    # Tenant used when the upstream gateway does not send X-Tenant-ID
    default_tenant: str = Field(default="default", alias="DEFAULT_TENANT")

    # Money
    default_currency: str = Field(default="GBP", alias="DEFAULT_CURRENCY")
    deposit_percent: int = Field(default=20, alias="DEPOSIT_PERCENT")

    # Booking window (days ahead a check-in may be requested)
    max_advance_days: int = Field(default=730, alias="MAX_ADVANCE_DAYS")

    # Roles allowed to act as operators (comma-separated)
    operator_roles: str = Field(default="operator,admin,superadmin", alias="OPERATOR_ROLES")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_json: bool = Field(default=True, alias="LOG_JSON")

    # Rate limit for reservation creation (slowapi syntax)
    reservation_rate_limit: str = Field(default="30/minute", alias="RESERVATION_RATE_LIMIT")
    rate_limit_enabled: bool = Field(default=True, alias="RATE_LIMIT_ENABLED")
    # memory:// or redis://host:6379 (shared across instances)
    rate_limit_storage_uri: str = Field(default="memory://", alias="RATE_LIMIT_STORAGE_URI")

    # CORS - Frontend URLs (comma-separated)
    allowed_origins: str = Field(
        default="http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173",
        alias="ALLOWED_ORIGINS"
    )

    @field_validator('deposit_percent')
    @classmethod
    def validate_deposit_percent(cls, v: int) -> int:
        if v < 0 or v > 100:
            raise ValueError("DEPOSIT_PERCENT must be between 0 and 100")
        return v

    @field_validator('default_currency')
    @classmethod
    def validate_currency(cls, v: str) -> str:
        if len(v) != 3:
            raise ValueError("DEFAULT_CURRENCY must be a 3-letter ISO code")
        return v.upper()

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def operator_role_set(self) -> set:
        return {r.strip().lower() for r in self.operator_roles.split(",") if r.strip()}

    @property
    def cors_origins(self) -> List[str]:
        """
        Parse allowed origins from comma-separated string.
        Returns a list suitable for CORSMiddleware.
        """
        origins = []
        for origin in self.allowed_origins.split(","):
            origin = origin.strip().rstrip("/")
            if origin and origin not in origins:
                origins.append(origin)
        return origins or ["http://localhost:5173"]

    class Config:
        env_file = ".env"
        extra = "ignore"
        populate_by_name = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
