"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - default_avatar_url is read here once and injected into the coordinator,
      never looked up at call time
    - environment defaults to "production": debug output is opt-in, never the fallback

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Only "development" exposes debug_info in error responses
    environment: str = "production"

    # Database
    database_url: str = (
        "postgresql+asyncpg://englishconnect:englishconnect@db:5432/englishconnect"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Plain postgresql:// URLs are rewritten to the asyncpg driver."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Avatars
    default_avatar_url: str = (
        "https://englishconnect.public.blob.vercel-storage.com/avatars/default.png"
    )
    avatar_max_bytes: int = 2 * 1024 * 1024

    # Asset store (blob HTTP API)
    asset_store_base_url: str = "https://blob.vercel-storage.com"
    asset_store_token: str = "blob-token-placeholder"
    asset_store_public_host: str = "public.blob.vercel-storage.com"
    asset_store_timeout_seconds: float = 30.0
    asset_store_max_retries: int = 2
    asset_store_base_delay_ms: int = 250

    # Student deletion retry
    delete_max_attempts: int = 3
    delete_retry_delay_ms: int = 200

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    return Settings()
