"""
Application configuration using Pydantic Settings.

Environment variables are loaded from .env file or system environment.
"""

from functools import lru_cache
from typing import Optional

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

    # Application
    app_name: str = "Project Bank"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: str = Field(default="development", pattern="^(development|staging|production)$")

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    ping_message: str = "ping"

    # CORS
    cors_origins: list[str] = Field(default=["http://localhost:8080", "http://127.0.0.1:8080"])

    # Storage
    storage_backend: str = Field(
        default="memory",
        pattern="^(memory|supabase)$",
        description="Where project records live: process memory or a Supabase table",
    )

    # Supabase (only required when storage_backend=supabase)
    supabase_url: Optional[str] = Field(default=None, description="Supabase project URL")
    supabase_anon_key: Optional[str] = Field(default=None, description="Supabase anonymous/public key")
    supabase_service_role_key: Optional[str] = Field(
        default=None,
        description="Supabase service role key (for server-side operations)"
    )
    supabase_project_table: str = Field(
        default="project",
        description="Table holding project records",
    )

    # Auth
    jwt_secret: Optional[str] = Field(
        default=None,
        description="HS256 secret used to verify bearer tokens"
    )
    jwt_audience: str = "authenticated"
    faculty_roles: list[str] = Field(
        default=["faculty", "admin"],
        description="Roles allowed to approve or disapprove projects",
    )

    # Catalog
    default_page_size: int = Field(default=20, ge=0)

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to avoid re-reading environment on every call.
    """
    return Settings()
