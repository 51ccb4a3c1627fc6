"""Configuration settings for the Sweaquity backend."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Supabase
    supabase_url: str
    # New key system (preferred)
    supabase_secret_key: str | None = None  # Backend/admin access
    # Legacy key
    supabase_service_role_key: str | None = None

    # JWT - the Supabase project's JWT secret; tokens are issued by Supabase Auth
    jwt_secret_key: str  # Required - no default for security
    jwt_algorithm: str = "HS256"
    jwt_audience: str | None = "authenticated"
    jwt_expire_minutes: int = 60  # only for locally minted dev tokens

    # App
    debug: bool = False
    log_level: str = "INFO"
    # CORS: Allowed origins for cross-origin requests
    cors_origins: list[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "https://sweaquity.com",
        "https://www.sweaquity.com",
    ]
    # Only these peers may set X-Forwarded-For
    trusted_proxy_cidrs: list[str] = [
        "10.0.0.0/8",
        "172.16.0.0/12",
        "192.168.0.0/16",
        "127.0.0.0/8",
        "::1/128",
    ]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra env vars not in model


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
