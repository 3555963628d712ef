"""
Core configuration settings for the application.
"""
import json
from typing import List, Optional, Union
from pydantic import Field, ConfigDict, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Supabase Configuration
    supabase_url: str = Field(..., description="Supabase project URL")
    supabase_service_role_key: str = Field(..., description="Supabase service role key")

    # JWT Configuration (Supabase access tokens)
    supabase_jwt_secret: str = Field(..., description="Supabase project JWT secret")
    jwt_algorithm: str = Field(default="HS256", description="JWT algorithm")
    jwt_audience: str = Field(default="authenticated", description="Expected audience of Supabase tokens")

    # Session cookies (checked in order)
    session_cookie_names: List[str] = Field(
        default=["sb-access-token", "agapefy_session"],
        description="Cookies that may carry the Supabase access token"
    )

    # FastAPI Configuration
    api_prefix: str = Field(default="/api", description="API prefix")
    project_name: str = Field(default="agapefy-api", description="Project name")
    environment: str = Field(default="dev", description="Environment (dev, staging, production)")
    debug: bool = Field(default=False, description="Debug mode - set True only for local development")

    # CORS Configuration
    allowed_origins: List[str] = Field(
        default=[
            "https://agapefy.com",
            "https://www.agapefy.com",
        ],
        description="Allowed CORS origins (production)"
    )

    cors_origin_patterns: List[str] = Field(
        default=[
            r"https://.*\.vercel\.app$",  # Preview deployments
            r"https://.*\.agapefy\.com$",
        ],
        description="Regex patterns for allowed CORS origins"
    )

    @field_validator('allowed_origins', 'session_cookie_names', mode='before')
    @classmethod
    def parse_string_list(cls, v: Union[str, List[str]]) -> List[str]:
        """Parse list settings from string (JSON) or list."""
        if isinstance(v, str):
            try:
                return json.loads(v)
            except (json.JSONDecodeError, ValueError):
                # If not JSON, split by comma as fallback
                return [item.strip() for item in v.split(',') if item.strip()]
        return v

    # Billing provider (Digital Manager Guru) webhook token
    dmg_api_token: Optional[str] = Field(default=None, description="Token expected on subscription webhooks")

    # WhatsApp provider webhooks
    whatsapp_webhook_secret: Optional[str] = Field(default=None, description="Shared secret for WhatsApp webhooks")
    zapi_client_token: Optional[str] = Field(default=None, description="Z-API Client-Token, fallback webhook secret")

    # Back-office access for automation
    admin_api_key: Optional[str] = Field(default=None, description="Static key granting admin access")

    # Paywall
    subscription_lookup_limit: int = Field(default=10, description="Billing rows considered per status check")
    webhook_rate_limit: str = Field(default="60/minute", description="Rate limit for public webhook routes")

    @property
    def is_production_environment(self) -> bool:
        """Check if running in production environment."""
        return self.environment in ["production", "prod"]

    @property
    def effective_cors_origins(self) -> List[str]:
        """
        Get CORS origins based on environment.

        - Production: Only production origins
        - Development: Adds localhost origins for local testing
        """
        origins = list(self.allowed_origins)

        if not self.is_production_environment and self.debug:
            for origin in ["http://localhost:3000", "http://127.0.0.1:3000"]:
                if origin not in origins:
                    origins.append(origin)

        return origins

    model_config = ConfigDict(
        env_file=".env.dev",
        case_sensitive=False,
        extra="ignore"
    )


# Global settings instance
settings = Settings()
