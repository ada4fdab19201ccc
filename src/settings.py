"""Settings configuration for the AGIT learning platform API."""

from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import ConfigDict, Field
from pydantic_settings import BaseSettings

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = ConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Application Settings
    app_env: str = Field(default="development", description="Application environment")
    log_level: str = Field(default="INFO", description="Logging level")
    frontend_url: str = Field(
        default="http://localhost:5173", description="Base URL used when building invite links"
    )

    # Database
    database_url: Optional[str] = Field(
        default=None, description="PostgreSQL connection URL (postgresql+asyncpg://...)"
    )
    database_pool_size: int = Field(default=5, ge=1, le=50)
    database_pool_overflow: int = Field(default=10, ge=0, le=100)

    # CORS
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173"], description="CORS allowed origins"
    )

    # Identity provider (Supabase GoTrue)
    identity_url: Optional[str] = Field(
        default=None, description="Identity provider base URL (https://<project>.supabase.co)"
    )
    identity_anon_key: Optional[str] = Field(
        default=None, description="Public API key sent with identity provider requests"
    )
    identity_jwt_secret: Optional[str] = Field(
        default=None, description="Secret used by the identity provider to sign access tokens"
    )
    identity_jwt_algorithm: str = Field(default="HS256", description="Access token algorithm")
    identity_jwt_audience: str = Field(
        default="authenticated", description="Expected 'aud' claim of provider access tokens"
    )
    identity_timeout_seconds: float = Field(default=10.0, gt=0)

    # Account lockout
    max_login_attempts: int = Field(default=5, ge=1, description="Failures before locking")
    lock_duration_minutes: int = Field(default=5, ge=1, description="Lock duration in minutes")

    # Invites
    invite_ttl_hours: int = Field(default=24, ge=1, description="Invite link lifetime in hours")
    invite_default_max_uses: int = Field(default=100, ge=1, le=100)

    # LLM Configuration (OpenAI-compatible) used by the Prompt tab
    llm_provider: Literal["openrouter", "openai", "ollama"] = Field(
        default="openai", description="LLM provider to use"
    )
    llm_api_key: Optional[str] = Field(default=None, description="API key for the LLM provider")
    llm_model: str = Field(default="gpt-4", description="Default model for prompt submissions")
    llm_evaluation_model: str = Field(
        default="gpt-4", description="Model used to score submitted prompts"
    )
    llm_base_url: Optional[str] = Field(
        default=None, description="Base URL for the LLM API (for OpenAI-compatible providers)"
    )


def load_settings() -> Settings:
    """Load settings with proper error handling."""
    try:
        return Settings()
    except Exception as e:
        raise ValueError(f"Failed to load settings: {e}") from e
