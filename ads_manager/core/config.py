"""
Ads Platform Manager Configuration
Load settings from environment variables
"""
from functools import lru_cache
from typing import List
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # ============================================
    # Application Settings
    # ============================================
    APP_NAME: str = "Ads Platform Manager"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"  # development, staging, production
    LOG_LEVEL: str = "INFO"

    # ============================================
    # Ads Platform REST API
    # ============================================
    PLATFORM_API_BASE_URL: str = "http://localhost:5000/api"
    PLATFORM_API_TIMEOUT_SECONDS: float = 30.0

    @property
    def platform_api_url(self) -> str:
        return self.PLATFORM_API_BASE_URL.rstrip("/")

    # ============================================
    # Session Settings
    # ============================================
    SECRET_KEY: str = "your-secret-key-change-in-production"
    SESSION_COOKIE_NAME: str = "ads_manager_session"
    SESSION_MAX_AGE_SECONDS: int = 60 * 60 * 24 * 7  # 7 days
    SESSION_HTTPS_ONLY: bool = False
    # Tokens expiring within this window are treated as already expired
    TOKEN_EXPIRY_BUFFER_SECONDS: int = 5 * 60

    # ============================================
    # Query Cache / Drafts
    # ============================================
    QUERY_CACHE_TTL_SECONDS: int = 5 * 60
    QUERY_CACHE_MAX_USERS: int = 1000
    DRAFT_STORE_MAX_DRAFTS: int = 1000

    # ============================================
    # Meta Connect (OAuth) Settings
    # ============================================
    META_CONNECT_SUCCESS_REDIRECT_SECONDS: int = 2
    META_CONNECT_ERROR_REDIRECT_SECONDS: int = 3

    # ============================================
    # Navigation
    # ============================================
    DEFAULT_AUTHENTICATED_PATH: str = "/dashboard"
    LOGIN_PATH: str = "/login"

    # ============================================
    # CORS Settings
    # ============================================
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8000"]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields from .env


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


# Global settings instance
settings = get_settings()
