"""
Propreports Application Configuration
Loads settings from .env file using Pydantic v2 with BaseSettings
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # ==================== Project Info ====================
    PROJECT_NAME: str = "Propreports API"
    PROJECT_DESCRIPTION: str = "Financial, occupancy, tenant and property reports for landlord portfolios"
    VERSION: str = "1.0.0"
    API_PREFIX: str = "/api"

    # ==================== Database ====================
    DATABASE_URL: str = "sqlite:///propreports_local.db"
    DATABASE_POOL_SIZE: int = 5
    DATABASE_MAX_OVERFLOW: int = 10
    DATABASE_POOL_RECYCLE: int = 3600

    # ==================== Record Source ====================
    # "sql" reads through SQLAlchemy, "supabase" through the hosted REST API
    RECORD_SOURCE: str = "sql"

    # ==================== Supabase Configuration ====================
    SUPABASE_URL: str = ""
    SUPABASE_KEY: str = ""
    SUPABASE_JWT_SECRET: str = "change-this-supabase-jwt-secret"

    # ==================== Session Boundary ====================
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: str = "authenticated"

    # ==================== CORS & Frontend ====================
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:3001",
    ]

    # ==================== Reports ====================
    REPORT_MAX_SPAN_DAYS: int = 1825  # 5 years
    DEFAULT_PRESET: str = "last_6_months"
    CURRENCY: str = "KES"

    # ==================== Features ====================
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # ==================== Configuration Loading ====================
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="allow",
        validate_default=True,
    )

    # ==================== Properties ====================
    @property
    def supabase_enabled(self) -> bool:
        """Check if the Supabase record source is selected and configured"""
        return self.RECORD_SOURCE == "supabase" and bool(self.SUPABASE_URL and self.SUPABASE_KEY)

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")


# ==================== Settings Singleton ====================
@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


# Create default settings instance
settings = get_settings()


# ==================== Helper Functions ====================
def get_cors_origins() -> List[str]:
    """Get CORS allowed origins"""
    return settings.ALLOWED_ORIGINS
