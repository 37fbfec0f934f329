"""Application configuration management using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    Required settings will raise validation errors if not provided.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="tradepulse-backend", description="Application name")
    app_env: str = Field(default="development", description="Environment (development/staging/production)")
    debug: bool = Field(default=False, description="Enable debug mode")

    # Server
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8080, description="Server port")

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed CORS origins",
    )

    # Site (used for auth redirects: magic links, password reset, callback)
    site_url: str = Field(default="http://localhost:3000", description="Public URL of the dashboard frontend")

    # Supabase
    supabase_url: str = Field(..., description="Supabase project URL")
    supabase_secret_key: str = Field(..., description="Supabase secret key for backend operations")
    supabase_signing_key_jwk: str = Field(..., description="Supabase signing key JWK (JSON string) for JWT token verification")

    # Storage
    avatar_bucket: str = Field(default="avatars", description="Storage bucket for profile avatars")
    attachment_bucket: str = Field(default="feedback-attachments", description="Storage bucket for feedback attachments")
    avatar_max_bytes: int = Field(default=2 * 1024 * 1024, description="Maximum avatar upload size in bytes")
    attachment_max_bytes: int = Field(default=4 * 1024 * 1024, description="Maximum feedback attachment size in bytes")

    # Request limits
    max_request_body_size: int = Field(
        default=5 * 1024 * 1024,
        description="Maximum request body size in bytes (must exceed the largest upload ceiling)",
    )

    # Session cookies (relay of Supabase tokens)
    access_token_cookie_name: str = Field(default="sb-access-token", description="Access token cookie name")
    refresh_token_cookie_name: str = Field(default="sb-refresh-token", description="Refresh token cookie name")
    session_cookie_max_age: int = Field(default=604800, description="Session cookie max age in seconds (7 days)")
    session_cookie_secure: bool = Field(default=True, description="Use secure cookies (HTTPS only)")

    # Form sessions
    max_form_sessions: int = Field(default=1000, description="Maximum live form instances kept in memory")

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins string into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @property
    def auth_callback_url(self) -> str:
        """URL Supabase redirects to after magic-link or OAuth sign in."""
        return f"{self.site_url.rstrip('/')}/auth/callback"

    @property
    def password_reset_url(self) -> str:
        """URL Supabase redirects to from a password reset email."""
        return f"{self.site_url.rstrip('/')}/auth/reset-password"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton.

    Returns:
        Settings: Application settings instance.

    Note:
        Settings are cached using lru_cache for performance.
        Call get_settings.cache_clear() to reload settings.
    """
    return Settings()
